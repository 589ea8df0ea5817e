"""LLM prompt templates for directive narration and companion cards."""

from typing import Iterable, Optional, Sequence, Tuple

from ..models import BiometricSnapshot, Directive, DirectiveConstraints, ScoringResult
from .schemas import NarrationSchema


VOICE_RULES = """VOICE:
- Calm, plain, precise. Suggest, never command.
- No hype, no motivational coaching, no emojis, no medical claims.
- Do not use corporate or military vocabulary (e.g. "protocol", "mission", "execute", "optimize").
- Only state facts that appear in the data below. Do not invent numbers or studies."""


# ============================================================================
# DIRECTIVE NARRATION PROMPTS
# ============================================================================

DIRECTIVE_NARRATION_SYSTEM = """You are the narrator for a daily training guide.

ROLE:
A deterministic planner has already chosen today's directive from the athlete's
biometrics. You do NOT change the directive. You explain it in human terms and
give a short focus cue and a short avoid cue for the session.

""" + VOICE_RULES + """

RULES:
1. Narrate the directive as given: {directive_label}
2. Respect every constraint listed in the data
3. The avoid cue names what to stay away from (start it with "Avoid")
4. Reference at least one of the evidence points in the insight summary

OUTPUT (JSON only, no prose before or after):
{json_shape}"""

DIRECTIVE_NARRATION_USER = """DIRECTIVE: {category} / {stimulus}
STATE: {state}
WINNING SCORE: {winner_score}

EVIDENCE:
{evidence}

CONSTRAINTS:
{constraints}

ALTERNATIVES THE PLANNER REJECTED:
{rejected}

Write today's narration. JSON only."""


# ============================================================================
# ONBOARDING WELCOME PROMPTS
# ============================================================================

WELCOME_SYSTEM = """You are the onboarding guide for a daily training guide app.

""" + VOICE_RULES + """

TONE:
- Professional, understated
- Describe what the app does, not what it promises
- Example: "Your biometrics are being read to shape daily training guidance."

OUTPUT (JSON only):
{json_shape}"""

WELCOME_USER = """Generate a welcome message for a first-time user.

Context: {context}

The welcome should:
1. Acknowledge this is their first day
2. Briefly explain what the app does (reads biometrics, gives training guidance)
3. Set calm expectations

Return JSON only."""


# ============================================================================
# POST-ACTIVITY INSIGHT PROMPTS
# ============================================================================

ACTIVITY_INSIGHT_SYSTEM = """You are a post-activity physiology observer for a daily training guide.

""" + VOICE_RULES + """

TONE:
- Observational: describe what the data suggests, not prescriptions
- No diagnostic language

OUTPUT (JSON only):
{json_shape}"""

ACTIVITY_INSIGHT_USER = """ACTIVITY:
{activity}

TODAY:
- State: {state}
- Vitality: {vitality}/100
- Sleep score: {sleep_score}/100
- HRV: {hrv} ms

Describe what this session likely means for the body today. JSON only."""


# ============================================================================
# ACTIVITY SUGGESTION PROMPTS
# ============================================================================

TAXONOMY_CONTEXT = """ENERGY SYSTEMS:
- Aerobic (Zone 2): 50-75% max HR, 20+ min, nasal breathing, conversational pace
- Anaerobic: 85-100% max HR, 30s-3min
- Phosphagen (Power): under 10s of top effort, full rest between sets

TRAINING MODALITIES:
- Strength: compound lifts, progressive overload, 3-5 reps for power, 8-12 for hypertrophy
- Endurance: Zone 2 base, tempo runs, intervals (4x4, fartlek)
- Neural: skill acquisition, coordination, agility
- Regulation: yoga, mobility, breathwork, recovery walks

INTENSITY PROFILES:
- LOW: RPE 3-4, recovery, flush, mobility
- MODERATE: RPE 5-6, maintenance, base building
- HIGH: RPE 7-9, overload, adaptation stimulus"""

ACTIVITY_SUGGESTION_SYSTEM = """You are a practical workout programming assistant.

""" + VOICE_RULES + """

TAXONOMY:
""" + TAXONOMY_CONTEXT + """

RULES:
1. The suggestion aligns with the directive category and stimulus
2. The suggestion respects every constraint (no impact work when impact is disallowed)
3. Keep it practical and specific (e.g. "Norwegian 4x4 intervals", not "do cardio")
4. Vary from the recent sessions listed

OUTPUT (JSON only):
{json_shape}"""

ACTIVITY_SUGGESTION_USER = """DIRECTIVE: {category} / {stimulus}
STATE: {state}
VITALITY: {vitality}/100

CONSTRAINTS:
{constraints}

RECENT SESSIONS (avoid repetition):
{recent}

Suggest one session for today. JSON only."""


# ============================================================================
# REPAIR PROMPT
# ============================================================================

REPAIR_PROMPT = """{original_prompt}

YOUR PREVIOUS RESPONSE WAS REJECTED.
{critical_section}ALL ERRORS:
{errors}

Keep the meaning of your previous response and change only what the errors require.
Return a corrected response that fixes every error above. JSON only."""

CRITICAL_SECTION = """FIX THESE FIRST (empty, too long, or banned wording):
{critical}

"""


def _bullets(lines: Iterable[str], empty: str = "None") -> str:
    lines = list(lines)
    if not lines:
        return empty
    return "\n".join(f"- {line}" for line in lines)


def build_directive_narration_prompts(
    schema: NarrationSchema,
    snapshot: BiometricSnapshot,
    scoring: ScoringResult,
    directive: Directive,
    constraints: DirectiveConstraints,
) -> Tuple[str, str]:
    """Build (system, user) prompts for today's directive narration."""
    system = DIRECTIVE_NARRATION_SYSTEM.format(
        directive_label=directive.label,
        json_shape=schema.json_shape(),
    )
    user = DIRECTIVE_NARRATION_USER.format(
        category=directive.category.value,
        stimulus=directive.stimulus_type.value,
        state=snapshot.state.value,
        winner_score=f"{scoring.winner.score:.2f}",
        evidence=_bullets(snapshot.evidence()),
        constraints=_bullets(constraints.describe()),
        rejected=_bullets(scoring.rejected_alternatives),
    )
    return system, user


def build_welcome_prompts(
    schema: NarrationSchema,
    snapshot: Optional[BiometricSnapshot] = None,
) -> Tuple[str, str]:
    context = "First launch detected."
    if snapshot is not None:
        context += f" Initial vitality reading: {round(snapshot.vitality)}/100"
        if snapshot.vitality_confidence:
            context += f" ({snapshot.vitality_confidence} confidence)"
        context += f". System state: {snapshot.state.value}"
    return (
        WELCOME_SYSTEM.format(json_shape=schema.json_shape()),
        WELCOME_USER.format(context=context),
    )


def build_activity_insight_prompts(
    schema: NarrationSchema,
    snapshot: BiometricSnapshot,
    activity_lines: Sequence[str],
) -> Tuple[str, str]:
    return (
        ACTIVITY_INSIGHT_SYSTEM.format(json_shape=schema.json_shape()),
        ACTIVITY_INSIGHT_USER.format(
            activity=_bullets(activity_lines),
            state=snapshot.state.value,
            vitality=round(snapshot.vitality),
            sleep_score=round(snapshot.sleep_score),
            hrv=round(snapshot.hrv),
        ),
    )


def build_activity_suggestion_prompts(
    schema: NarrationSchema,
    snapshot: BiometricSnapshot,
    directive: Directive,
    constraints: DirectiveConstraints,
) -> Tuple[str, str]:
    return (
        ACTIVITY_SUGGESTION_SYSTEM.format(json_shape=schema.json_shape()),
        ACTIVITY_SUGGESTION_USER.format(
            category=directive.category.value,
            stimulus=directive.stimulus_type.value,
            state=snapshot.state.value,
            vitality=round(snapshot.vitality),
            constraints=_bullets(constraints.describe()),
            recent=snapshot.activity_summary(),
        ),
    )


def build_repair_prompt(
    original_prompt: str,
    errors: Sequence[str],
    critical: Sequence[str] = (),
) -> str:
    """
    Build the repair prompt for a rejected attempt.

    The original prompt is carried verbatim; critical errors (empty fields,
    length overruns, banned wording) are listed ahead of the full error list.

    Args:
        original_prompt: The user prompt of the rejected attempt
        errors: Every validation or parse error from that attempt
        critical: The subset of errors to fix first

    Returns:
        The user prompt for the repair attempt
    """
    critical_section = CRITICAL_SECTION.format(critical=_bullets(critical)) if critical else ""
    return REPAIR_PROMPT.format(
        original_prompt=original_prompt,
        critical_section=critical_section,
        errors=_bullets(errors),
    )

