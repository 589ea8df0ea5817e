"""
Narration call sites.

Each function builds its prompts, wires the matching schema and validator,
and hands off to the orchestrator. None of them raise on generation failure.
"""

import logging
from typing import Optional

from ..models import (
    ActivityRecord,
    BiometricSnapshot,
    Directive,
    DirectiveConstraints,
    NarrationPayload,
    ScoringResult,
    SystemState,
)
from .orchestrator import GenerativeOrchestrator, PromptContext
from .prompts import (
    build_activity_insight_prompts,
    build_activity_suggestion_prompts,
    build_directive_narration_prompts,
    build_welcome_prompts,
)
from .schemas import (
    ACTIVITY_SUGGESTION,
    DIRECTIVE_NARRATION,
    ONBOARDING_WELCOME,
    POST_ACTIVITY_INSIGHT,
)
from .validator import ContentValidator


logger = logging.getLogger(__name__)


# Suggestions need enough history to avoid repeating the user
MIN_RECENT_ACTIVITIES_FOR_SUGGESTION = 3

NO_SUGGESTION_STATES = frozenset({SystemState.RECOVERY_MODE, SystemState.PHYSICAL_STRAIN})

# Companion cards run a little warmer than directive narration
COMPANION_TEMPERATURE = 0.6
SUGGESTION_TEMPERATURE = 0.7


async def narrate_directive(
    orchestrator: GenerativeOrchestrator,
    snapshot: BiometricSnapshot,
    scoring: ScoringResult,
    constraints: DirectiveConstraints,
) -> NarrationPayload:
    """
    Narrate today's winning directive.

    The winner's score, the rejected alternatives, the constraints and the
    snapshot evidence all go into the prompt as grounding.
    """
    directive = scoring.winner.directive
    system, user = build_directive_narration_prompts(
        DIRECTIVE_NARRATION, snapshot, scoring, directive, constraints
    )
    context = PromptContext(
        system_instruction=system,
        user_prompt=user,
        directive=directive,
        constraints=constraints,
        evidence=tuple(snapshot.evidence()),
    )
    return await orchestrator.narrate(context, DIRECTIVE_NARRATION, ContentValidator(DIRECTIVE_NARRATION))


async def generate_welcome(
    orchestrator: GenerativeOrchestrator,
    snapshot: Optional[BiometricSnapshot] = None,
) -> NarrationPayload:
    """Day-one onboarding card."""
    system, user = build_welcome_prompts(ONBOARDING_WELCOME, snapshot)
    context = PromptContext(
        system_instruction=system,
        user_prompt=user,
        temperature=COMPANION_TEMPERATURE,
        max_output_tokens=256,
    )
    return await orchestrator.narrate(context, ONBOARDING_WELCOME, ContentValidator(ONBOARDING_WELCOME))


async def generate_activity_insight(
    orchestrator: GenerativeOrchestrator,
    activity: ActivityRecord,
    snapshot: BiometricSnapshot,
) -> NarrationPayload:
    """Post-activity physiology card for a just-logged session."""
    lines = [f"Type: {activity.activity_type}"]
    if activity.duration_min is not None:
        lines.append(f"Duration: {round(activity.duration_min)} min")
    if activity.calories is not None:
        lines.append(f"Active calories: {round(activity.calories)}")
    if activity.distance_km is not None:
        lines.append(f"Distance: {activity.distance_km:.1f} km")
    if activity.avg_hr is not None:
        lines.append(f"Average HR: {round(activity.avg_hr)} bpm")
    if activity.max_hr is not None:
        lines.append(f"Peak HR: {round(activity.max_hr)} bpm")
    if activity.note:
        lines.append(f"Note: {activity.note}")

    system, user = build_activity_insight_prompts(POST_ACTIVITY_INSIGHT, snapshot, lines)
    context = PromptContext(
        system_instruction=system,
        user_prompt=user,
        temperature=COMPANION_TEMPERATURE,
        max_output_tokens=512,
    )
    return await orchestrator.narrate(context, POST_ACTIVITY_INSIGHT, ContentValidator(POST_ACTIVITY_INSIGHT))


def should_suggest_activity(state: SystemState, recent_activity_count: int) -> bool:
    """Whether an activity suggestion card should be shown today."""
    if state in NO_SUGGESTION_STATES:
        return False
    return recent_activity_count >= MIN_RECENT_ACTIVITIES_FOR_SUGGESTION


async def generate_activity_suggestion(
    orchestrator: GenerativeOrchestrator,
    snapshot: BiometricSnapshot,
    directive: Directive,
    constraints: DirectiveConstraints,
) -> NarrationPayload:
    """One concrete session that fits the directive and its constraints."""
    system, user = build_activity_suggestion_prompts(
        ACTIVITY_SUGGESTION, snapshot, directive, constraints
    )
    context = PromptContext(
        system_instruction=system,
        user_prompt=user,
        directive=directive,
        constraints=constraints,
        temperature=SUGGESTION_TEMPERATURE,
        max_output_tokens=512,
    )
    return await orchestrator.narrate(context, ACTIVITY_SUGGESTION, ContentValidator(ACTIVITY_SUGGESTION))
