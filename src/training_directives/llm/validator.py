"""
Content validation for generated narration.

Enforces strict constraints on every narration call site to prevent drift,
jargon and invented facts:
- Per-field non-empty and character ceilings (supplied by the schema)
- Banned vocabulary, case-insensitive substring match, any field
- Directive consistency (intensity vocabulary vs. stimulus, impact rules)
- Evidence grounding, as a warning only
"""

import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..models import (
    Directive,
    DirectiveConstraints,
    StimulusType,
    ValidationResult,
)
from .schemas import DirectiveRules, NarrationSchema


# Jargon, corporate speak and command language
BANNED_TERMS = (
    "execute",
    "protocol",
    "briefing",
    "mission",
    "maximize",
    "absolutely",
    "ensure",
    "optimal",
    "optimize",
    "leverage",
    "utilize",
    "implement",
    "deploy",
    "strategic",
    "tactical",
    "synergy",
    "paradigm",
    "holistic",
    "ecosystem",
    "bandwidth",
    "circle back",
    "touch base",
    "deep dive",
    "low-hanging fruit",
    "move the needle",
    "think outside the box",
)

# Must not appear in FLUSH session text
INTENSITY_TERMS = (
    "max",
    "maximum",
    "hard",
    "intense",
    "push",
    "drive",
    "aggressive",
    "explosive",
    "all-out",
    "failure",
)

# OVERLOAD focus must not read as an easy day
LOW_INTENSITY_TERMS = (
    "easy",
    "gentle",
    "light",
    "restorative",
    "relaxed",
    "rest day",
    "active recovery",
    "take it easy",
)

IMPACT_TERMS = ("jump", "impact", "plyometric", "explosive", "bound")

NEGATION_PATTERN = re.compile(
    r"\b(avoid\w*|no|not|don't|do not|never|skip\w*|without)\b",
    re.IGNORECASE,
)

PRESCRIPTIVE_PATTERN = re.compile(r"\b(must|should|need to)\b", re.IGNORECASE)

INVENTED_FACT_PATTERNS = (
    re.compile(r"\d+% (increase|decrease|improvement)", re.IGNORECASE),
    re.compile(r"exactly \d+", re.IGNORECASE),
    re.compile(r"studies show", re.IGNORECASE),
    re.compile(r"research indicates", re.IGNORECASE),
    re.compile(r"proven to", re.IGNORECASE),
)

JARGON_TERMS = (
    "homeostasis",
    "allostatic",
    "sympathetic dominance",
    "parasympathetic activation",
)

EMOJI_PATTERN = re.compile(
    "[\U0001F300-\U0001FAFF\U00002600-\U000027BF\U0001F000-\U0001F2FF]"
)

# Errors that repair prompts should address first
CRITICAL_ERROR_MARKERS = ("cannot be empty", "too long", "banned term")

# Evidence words shorter than this are too generic to count as grounding
MIN_EVIDENCE_KEYWORD_LENGTH = 5


def _substring_hits(text: str, terms: Iterable[str]) -> List[str]:
    lowered = text.lower()
    return [term for term in terms if term.lower() in lowered]


def _word_hits(text: str, terms: Iterable[str]) -> List[str]:
    return [
        term for term in terms
        if re.search(rf"\b{re.escape(term)}", text, re.IGNORECASE)
    ]


def evidence_keywords(evidence: Sequence[str]) -> List[str]:
    """Distinctive words from evidence bullets."""
    keywords = []
    for bullet in evidence:
        for word in re.findall(r"[a-z][a-z'-]*", bullet.lower()):
            if len(word) >= MIN_EVIDENCE_KEYWORD_LENGTH and word not in keywords:
                keywords.append(word)
    return keywords


def is_critical_failure(result: ValidationResult) -> bool:
    """True when any error is an empty, too-long or banned-term failure."""
    return any(
        marker in error
        for error in result.errors
        for marker in CRITICAL_ERROR_MARKERS
    )


def critical_errors(errors: Sequence[str]) -> List[str]:
    return [e for e in errors if any(m in e for m in CRITICAL_ERROR_MARKERS)]


class ContentValidator:
    """
    Validates narration payloads for one schema.

    A single validator class serves every call site; the schema supplies the
    field set and character ceilings.
    """

    def __init__(self, schema: NarrationSchema) -> None:
        self.schema = schema

    def validate(
        self,
        payload: Mapping[str, Any],
        directive: Optional[Directive] = None,
        constraints: Optional[DirectiveConstraints] = None,
        evidence: Optional[Sequence[str]] = None,
    ) -> ValidationResult:
        """
        Validate a parsed payload.

        Args:
            payload: Field values keyed by wire name
            directive: Directive the content narrates, if any
            constraints: Day constraints (impact rules), if any
            evidence: Evidence bullets the content should reference

        Returns:
            ValidationResult. Every failure here is retryable.
        """
        errors: List[str] = []
        warnings: List[str] = []
        texts = {}

        for spec in self.schema.fields:
            value = payload.get(spec.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                if spec.required:
                    errors.append(f"{spec.name} cannot be empty")
                continue
            if not isinstance(value, str):
                errors.append(f"{spec.name} must be text, got {type(value).__name__}")
                continue
            if len(value) > spec.max_length:
                errors.append(
                    f"{spec.name} too long ({len(value)} chars, max {spec.max_length})"
                )
            texts[spec.name] = value

        for name, text in texts.items():
            for term in _substring_hits(text, BANNED_TERMS):
                errors.append(f'{name} contains banned term: "{term}"')
            if EMOJI_PATTERN.search(text):
                errors.append(f"{name} contains emoji")

        if directive is not None:
            if self.schema.directive_rules == DirectiveRules.NARRATION:
                self._check_narration(texts, directive, constraints, errors, warnings)
            elif self.schema.directive_rules == DirectiveRules.SUGGESTION:
                self._check_suggestion(payload, texts, directive, constraints, errors)

        full_text = " ".join(texts.values())
        self._check_style(full_text, warnings)
        if evidence:
            keywords = evidence_keywords(evidence)
            lowered = full_text.lower()
            if keywords and not any(k in lowered for k in keywords):
                warnings.append(f"{self.schema.name} should reference at least one evidence bullet")

        return ValidationResult.from_findings(errors, warnings, retryable=True)

    # --- Directive consistency ---

    def _check_narration(
        self,
        texts: Mapping[str, str],
        directive: Directive,
        constraints: Optional[DirectiveConstraints],
        errors: List[str],
        warnings: List[str],
    ) -> None:
        focus = texts.get("sessionFocus", "")
        avoid = texts.get("avoidCue", "")

        if directive.stimulus_type == StimulusType.FLUSH:
            for name in ("sessionFocus", "insightSummary", "insightDetail"):
                for term in _substring_hits(texts.get(name, ""), INTENSITY_TERMS):
                    errors.append(f'{name} for FLUSH should not contain intensity term: "{term}"')
            if avoid and not _substring_hits(avoid, INTENSITY_TERMS):
                warnings.append("avoidCue for FLUSH should explicitly warn against intensity")

        if directive.stimulus_type == StimulusType.OVERLOAD:
            for name in ("sessionFocus", "insightSummary"):
                for term in _word_hits(texts.get(name, ""), LOW_INTENSITY_TERMS):
                    errors.append(f'{name} for OVERLOAD should not read as low intensity: "{term}"')

        if constraints is not None and not constraints.allow_impact:
            if _word_hits(avoid, IMPACT_TERMS) and not NEGATION_PATTERN.search(avoid):
                errors.append("avoidCue should explicitly warn against impact when impact is disallowed")

        if PRESCRIPTIVE_PATTERN.search(focus):
            warnings.append("sessionFocus uses prescriptive language, prefer suggestive framing")

    def _check_suggestion(
        self,
        payload: Mapping[str, Any],
        texts: Mapping[str, str],
        directive: Directive,
        constraints: Optional[DirectiveConstraints],
        errors: List[str],
    ) -> None:
        intensity = payload.get("intensity")
        if directive.stimulus_type == StimulusType.FLUSH and intensity == "HIGH":
            errors.append("intensity HIGH conflicts with a FLUSH directive")
        if directive.stimulus_type == StimulusType.OVERLOAD and intensity == "LOW":
            errors.append("intensity LOW conflicts with an OVERLOAD directive")

        if constraints is not None and not constraints.allow_impact:
            for name in ("title", "summary"):
                text = texts.get(name, "")
                if _word_hits(text, IMPACT_TERMS) and not NEGATION_PATTERN.search(text):
                    errors.append(f"{name} proposes impact work while impact is disallowed")

    # --- Soft checks ---

    def _check_style(self, full_text: str, warnings: List[str]) -> None:
        for pattern in INVENTED_FACT_PATTERNS:
            if pattern.search(full_text):
                warnings.append(f"{self.schema.name} may contain invented facts: {pattern.pattern}")
        if _substring_hits(full_text, JARGON_TERMS):
            warnings.append(f"{self.schema.name} contains technical jargon, prefer plain language")
