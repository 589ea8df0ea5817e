"""
Deterministic fallback templates.

Used whenever generation is unavailable, fails, or does not validate within
the attempt budget. Every template must pass the same validator as generated
content; `verify_all_templates()` is run at startup and by the CLI.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..exceptions import TemplateDefinitionError
from ..models import (
    Category,
    Directive,
    DirectiveConstraints,
    Modality,
    NarrationPayload,
    NarrationSource,
    StimulusType,
)
from .schemas import (
    ACTIVITY_SUGGESTION,
    DIRECTIVE_NARRATION,
    ONBOARDING_WELCOME,
    POST_ACTIVITY_INSIGHT,
    NarrationSchema,
)
from .validator import ContentValidator


logger = logging.getLogger(__name__)


TemplateKey = Optional[Tuple[Category, StimulusType]]

# Entry served when a directive-keyed lookup misses
FALLBACK_KEY: TemplateKey = (Category.REGULATION, StimulusType.FLUSH)

# Key for schemas that are not keyed by directive
UNKEYED: TemplateKey = None


@dataclass
class SelfCheckReport:
    """Result of checking a template store against its validator."""

    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors}


def _key_label(key: TemplateKey) -> str:
    if key is None:
        return "default"
    return f"{key[0].value}/{key[1].value}"


class FallbackTemplateStore:
    """
    Fixed narration content for one schema.

    Directive-keyed schemas hold one entry per (category, stimulus type);
    other schemas hold a single entry under the `UNKEYED` key.
    """

    def __init__(
        self,
        schema: NarrationSchema,
        templates: Mapping[TemplateKey, Mapping[str, Any]],
        validator: Optional[ContentValidator] = None,
    ) -> None:
        self.schema = schema
        self._templates = {key: dict(value) for key, value in templates.items()}
        self.validator = validator or ContentValidator(schema)

    @property
    def keys(self) -> List[TemplateKey]:
        return list(self._templates)

    def get_template(
        self,
        category: Optional[Category] = None,
        stimulus_type: Optional[StimulusType] = None,
        retry_count: int = 0,
    ) -> NarrationPayload:
        """
        Get the fallback payload for a directive.

        Args:
            category: Directive category (ignored for unkeyed schemas)
            stimulus_type: Directive stimulus (ignored for unkeyed schemas)
            retry_count: Generation attempts already spent before falling back

        Returns:
            NarrationPayload with source FALLBACK
        """
        key = self._lookup_key(category, stimulus_type)
        return NarrationPayload(
            schema=self.schema.name,
            content=self._templates[key],
            source=NarrationSource.FALLBACK,
            retry_count=retry_count,
        )

    def _lookup_key(
        self,
        category: Optional[Category],
        stimulus_type: Optional[StimulusType],
    ) -> TemplateKey:
        if not self.schema.keyed_by_directive:
            return UNKEYED
        key = (category, stimulus_type)
        if key not in self._templates:
            logger.warning(
                f"No {self.schema.name} template for {category}/{stimulus_type}, "
                f"using {_key_label(FALLBACK_KEY)}"
            )
            return FALLBACK_KEY
        return key

    def self_check(self) -> SelfCheckReport:
        """
        Check completeness, then validate every entry.

        Directive-keyed entries are validated against their own directive with
        impact both allowed and disallowed.
        """
        errors: List[str] = []

        if self.schema.keyed_by_directive:
            expected = [(c, s) for c in Category for s in StimulusType]
        else:
            expected = [UNKEYED]
        for key in expected:
            if key not in self._templates:
                errors.append(f"Missing {self.schema.name} template for {_key_label(key)}")

        for key, content in self._templates.items():
            label = _key_label(key)
            _, shape_errors = self.schema.parse(dict(content))
            errors.extend(f"{label}: {e}" for e in shape_errors)

            if key is None:
                result = self.validator.validate(content)
                errors.extend(f"{label}: {e}" for e in result.errors)
                continue

            directive = Directive(category=key[0], stimulus_type=key[1])
            for allow_impact in (True, False):
                constraints = DirectiveConstraints(
                    allow_impact=allow_impact,
                    max_load=10,
                    allowed_modalities=frozenset({Modality.ALL}),
                )
                result = self.validator.validate(content, directive, constraints)
                errors.extend(
                    f"{label} (impact {'allowed' if allow_impact else 'disallowed'}): {e}"
                    for e in result.errors
                )

        return SelfCheckReport(valid=not errors, errors=errors)

    def verify(self) -> None:
        """Raise TemplateDefinitionError if the self-check fails."""
        report = self.self_check()
        if not report.valid:
            raise TemplateDefinitionError(report.errors, schema=self.schema.name)


# ============================================================================
# Template content
# ============================================================================

def _narration(focus: str, avoid: str, summary: str, detail: str) -> Dict[str, str]:
    return {
        "sessionFocus": focus,
        "avoidCue": avoid,
        "insightSummary": summary,
        "insightDetail": detail,
    }


DIRECTIVE_NARRATION_TEMPLATES: Dict[TemplateKey, Dict[str, Any]] = {
    (Category.STRENGTH, StimulusType.OVERLOAD): _narration(
        "Heavy, crisp reps with full rest between sets.",
        "Avoid rushing reps or cutting rest short. Quality over volume.",
        "Recovery markers support high-force work. Load heavy with full rest between "
        "sets to build strength.",
        "HRV and sleep point to readiness for heavy lifting. Keep movement quality "
        "high and recover fully between efforts so force output stays high without "
        "piling up fatigue.",
    ),
    (Category.STRENGTH, StimulusType.MAINTENANCE): _narration(
        "Moderate load and a controlled tempo. Hold strength without strain.",
        "Avoid training to failure or adding volume. Keep it crisp.",
        "Holding the strength base without adding stress. Moderate loads keep the "
        "body primed.",
        "Current recovery supports maintenance work. Use familiar movements at "
        "moderate loads to keep strength without digging into reserves.",
    ),
    (Category.STRENGTH, StimulusType.FLUSH): _narration(
        "Light movement with a blood flow focus. Active recovery only.",
        "Avoid hard efforts or complex sessions. This is restoration work.",
        "Recovery is suppressed. Light movement helps circulation without adding load.",
        "Biometric markers call for active recovery. Gentle movement helps "
        "circulation and calms the nervous system without adding training stress.",
    ),
    (Category.STRENGTH, StimulusType.TEST): _narration(
        "Full preparation, then a true top effort to test current capacity.",
        "Avoid second-guessing the attempt. Commit once warmed up.",
        "The body is primed for testing. Full recovery supports a true top effort.",
        "All markers line up for a test day. Warm up thoroughly, then make the "
        "attempt with confidence and note the result.",
    ),
    (Category.ENDURANCE, StimulusType.OVERLOAD): _narration(
        "Sustained effort with controlled breathing to raise the aerobic ceiling.",
        "Avoid spiking heart rate or going anaerobic. Stay aerobic.",
        "Aerobic capacity can be pushed today. Sustained zone 2 to 3 work builds "
        "endurance.",
        "Recovery and stress markers support extended aerobic work. Breathe through "
        "the nose and keep a conversational pace for most of the session.",
    ),
    (Category.ENDURANCE, StimulusType.MAINTENANCE): _narration(
        "Steady, conversational pace. Build the aerobic base without stress.",
        "Avoid drifting into breathless zones. Keep heart rate controlled.",
        "Holding the aerobic base with moderate volume. An easy pace keeps fitness "
        "without fatigue.",
        "Current state supports steady aerobic work. Keep intensity low and duration "
        "moderate to hold cardiovascular fitness while managing overall load.",
    ),
    (Category.ENDURANCE, StimulusType.FLUSH): _narration(
        "Easy movement and nasal breathing to restore circulation.",
        "Avoid hard intervals or long duration. This is active rest.",
        "Recovery comes first. Easy aerobic work helps circulation without adding "
        "stress.",
        "Biometrics point to a need for restoration. Gentle movement at very low "
        "effort helps recovery without interfering with adaptation.",
    ),
    (Category.ENDURANCE, StimulusType.TEST): _narration(
        "Race pace with full commitment to test aerobic capacity.",
        "Avoid holding back or pacing too conservatively. Trust the plan.",
        "The body is ready for an aerobic test. Recovery supports a strong sustained "
        "effort.",
        "Indicators support a performance test. Hold race pace with confidence and "
        "note where the aerobic ceiling sits today.",
    ),
    (Category.NEURAL, StimulusType.OVERLOAD): _narration(
        "Complex patterns and high attention to build coordination.",
        "Avoid working through fatigue or distraction. Stop when quality drops.",
        "Neural readiness is high. Complex skill work builds coordination at little "
        "metabolic cost.",
        "HRV supports technical work today. Focus on movement quality and new "
        "patterns while keeping physical load modest.",
    ),
    (Category.NEURAL, StimulusType.MAINTENANCE): _narration(
        "Familiar patterns at moderate complexity to keep coordination sharp.",
        "Avoid novelty or high complexity. Keep it familiar.",
        "Keeping movement patterns fresh with moderate practice. Familiar drills "
        "preserve skill.",
        "Current state supports skill maintenance. Well-practiced movements at "
        "moderate effort keep coordination active without extra demand.",
    ),
    (Category.NEURAL, StimulusType.FLUSH): _narration(
        "Simple movement with low mental load to settle the nervous system.",
        "Avoid hard drills, complexity or decision-making. Keep it automatic.",
        "The nervous system needs rest. Simple, rhythmic movement aids recovery.",
        "Stress and recovery markers suggest neural fatigue. Simple, rhythmic "
        "movement helps recovery without mental demand.",
    ),
    (Category.NEURAL, StimulusType.TEST): _narration(
        "Peak performance with full focus to test the skill ceiling.",
        "Avoid hesitation or overthinking. Trust your training.",
        "Neural readiness is high. A good day to test skill and coordination.",
        "Recovery and readiness markers support a skill test. Attention is fresh, "
        "so make the attempt with confidence and note the result.",
    ),
    (Category.REGULATION, StimulusType.OVERLOAD): _narration(
        "Focused breathwork to build calm under stress.",
        "Avoid intensity or complexity. This is regulation work.",
        "Building stress resilience. Focused breathwork strengthens the calming "
        "response.",
        "Stress markers suggest regulation practice will pay off. Slow, deliberate "
        "breathing builds the capacity to handle stress.",
    ),
    (Category.REGULATION, StimulusType.MAINTENANCE): _narration(
        "Gentle breathwork and mindful movement to keep balance.",
        "Avoid pushing or striving. This is a holding day.",
        "Keeping the stress response balanced with gentle practice.",
        "Current state supports regulation maintenance. Familiar breathwork and "
        "mindful movement keep the stress response steady.",
    ),
    (Category.REGULATION, StimulusType.FLUSH): _narration(
        "Gentle movement and nasal breathing to settle the body.",
        "Avoid hard efforts or complex sessions. This is active recovery only.",
        "The stress response needs restoration. Gentle movement helps the body "
        "settle.",
        "Stress and HRV markers point to a system under load. Slow, rhythmic "
        "movement and nasal breathing help it settle.",
    ),
    (Category.REGULATION, StimulusType.TEST): _narration(
        "Controlled stress exposure followed by deliberate recovery.",
        "Avoid skipping the recovery phase. It is part of the test.",
        "Testing stress resilience. Controlled exposure shows how well the body "
        "settles afterwards.",
        "Recovery markers support a resilience test. Follow a controlled challenge "
        "with deliberate recovery and note how quickly breathing settles.",
    ),
}


def _suggestion(
    title: str,
    summary: str,
    duration: int,
    intensity: str,
    why: Optional[str] = None,
) -> Dict[str, Any]:
    suggestion: Dict[str, Any] = {
        "title": title,
        "summary": summary,
        "durationMinutes": duration,
        "intensity": intensity,
    }
    if why:
        suggestion["why"] = why
    return suggestion


ACTIVITY_SUGGESTION_TEMPLATES: Dict[TemplateKey, Dict[str, Any]] = {
    (Category.STRENGTH, StimulusType.OVERLOAD): _suggestion(
        "Heavy Compound Session",
        "Squat, deadlift, or press at 80%+ for 3-5 reps. Full rest between sets.",
        45, "HIGH", "Progressive overload drives strength adaptation.",
    ),
    (Category.STRENGTH, StimulusType.MAINTENANCE): _suggestion(
        "Moderate Strength Work",
        "Main lifts at 70% for 3x8. Keep form crisp.",
        40, "MODERATE", "Holds strength without adding excess fatigue.",
    ),
    (Category.STRENGTH, StimulusType.FLUSH): _suggestion(
        "Mobility & Light Movement",
        "Bodyweight flow, joint circles, light stretching.",
        20, "LOW",
    ),
    (Category.STRENGTH, StimulusType.TEST): _suggestion(
        "Strength Test Day",
        "Work up to a heavy single on your main lift.",
        60, "HIGH",
    ),
    (Category.ENDURANCE, StimulusType.OVERLOAD): _suggestion(
        "Norwegian 4x4 Intervals",
        "4 min hard at 90% HR, 3 min easy. Repeat 4x.",
        35, "HIGH", "VO2max stimulus with controlled recovery.",
    ),
    (Category.ENDURANCE, StimulusType.MAINTENANCE): _suggestion(
        "Zone 2 Base Build",
        "30-45 min steady effort, nasal breathing, conversational pace.",
        40, "MODERATE", "Aerobic base without metabolic cost.",
    ),
    (Category.ENDURANCE, StimulusType.FLUSH): _suggestion(
        "Easy Recovery Walk",
        "20-30 min walk, keep HR under 100bpm.",
        25, "LOW",
    ),
    (Category.ENDURANCE, StimulusType.TEST): _suggestion(
        "Time Trial",
        "5K or 20-min best effort to test current capacity.",
        30, "HIGH",
    ),
    (Category.NEURAL, StimulusType.OVERLOAD): _suggestion(
        "Skill Acquisition Block",
        "Complex movement patterns with full focus. Quality reps only.",
        30, "MODERATE", "Coordination adapts best with fresh attention.",
    ),
    (Category.NEURAL, StimulusType.MAINTENANCE): _suggestion(
        "Coordination Practice",
        "Familiar movement drills with a little added complexity.",
        25, "MODERATE",
    ),
    (Category.NEURAL, StimulusType.FLUSH): _suggestion(
        "Light Movement Flow",
        "Easy mobility, animal flows, low-stakes movement.",
        20, "LOW",
    ),
    (Category.NEURAL, StimulusType.TEST): _suggestion(
        "Performance Test",
        "Perform your best version of a complex skill.",
        30, "HIGH",
    ),
    (Category.REGULATION, StimulusType.OVERLOAD): _suggestion(
        "Focused Breathwork Session",
        "Yoga or Pilates with long, slow exhales.",
        30, "MODERATE",
    ),
    (Category.REGULATION, StimulusType.MAINTENANCE): _suggestion(
        "Gentle Movement",
        "Light stretching and mobility work.",
        20, "LOW",
    ),
    (Category.REGULATION, StimulusType.FLUSH): _suggestion(
        "Rest & Breathwork",
        "Box breathing, meditation, or complete rest.",
        15, "LOW", "Gives the nervous system a reset.",
    ),
    (Category.REGULATION, StimulusType.TEST): _suggestion(
        "Mindfulness Check",
        "Extended meditation or body scan.",
        20, "LOW",
    ),
}

WELCOME_TEMPLATES: Dict[TemplateKey, Dict[str, Any]] = {
    UNKEYED: {
        "headline": "Welcome to your daily guide",
        "message": "Your sleep, HRV and recent training are being read to shape a "
                   "daily training direction. Guidance sharpens as more days of "
                   "data come in.",
    },
}

ACTIVITY_INSIGHT_TEMPLATES: Dict[TemplateKey, Dict[str, Any]] = {
    UNKEYED: {
        "headline": "Session logged",
        "summary": "This session has been added to your recent load. Tomorrow's "
                   "direction will take it into account.",
    },
}


@lru_cache()
def default_template_stores() -> Dict[str, FallbackTemplateStore]:
    """Fallback stores for every narration call site, keyed by schema name."""
    stores = [
        FallbackTemplateStore(DIRECTIVE_NARRATION, DIRECTIVE_NARRATION_TEMPLATES),
        FallbackTemplateStore(ONBOARDING_WELCOME, WELCOME_TEMPLATES),
        FallbackTemplateStore(POST_ACTIVITY_INSIGHT, ACTIVITY_INSIGHT_TEMPLATES),
        FallbackTemplateStore(ACTIVITY_SUGGESTION, ACTIVITY_SUGGESTION_TEMPLATES),
    ]
    return {store.schema.name: store for store in stores}


def verify_all_templates() -> Dict[str, SelfCheckReport]:
    """
    Self-check every default store.

    Raises:
        TemplateDefinitionError: listing every failing entry across stores
    """
    reports = {name: store.self_check() for name, store in default_template_stores().items()}
    errors = [e for report in reports.values() for e in report.errors]
    if errors:
        raise TemplateDefinitionError(errors)
    logger.info(f"Verified fallback templates for {len(reports)} schemas")
    return reports
