"""
Output schemas for every narration call site.

Each schema names its fields, their character ceilings, and a pydantic draft
model used to shape-check the parsed provider response before content
validation runs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class DirectiveRules(str, Enum):
    """Which directive-consistency rules a schema is subject to."""

    NONE = "none"
    NARRATION = "narration"
    SUGGESTION = "suggestion"


@dataclass(frozen=True)
class FieldSpec:
    """A text field and its character ceiling."""

    name: str
    max_length: int
    required: bool = True


# ============================================================================
# Draft models (shape only; lengths are checked by the content validator)
# ============================================================================

class _Draft(BaseModel):
    model_config = ConfigDict(extra="ignore")


class DirectiveNarrationDraft(_Draft):
    sessionFocus: str
    avoidCue: str
    insightSummary: str
    insightDetail: Optional[str] = None


class WelcomeDraft(_Draft):
    headline: str
    message: str


class ActivityInsightDraft(_Draft):
    headline: str
    summary: str
    physiology: Optional[str] = None
    guidance: Optional[str] = None


class ActivitySuggestionDraft(_Draft):
    title: str
    summary: str
    why: Optional[str] = None
    durationMinutes: Optional[int] = Field(default=None, ge=1, le=600)
    intensity: Optional[Literal["LOW", "MODERATE", "HIGH"]] = None


@dataclass(frozen=True)
class NarrationSchema:
    """Field set and rules for one narration call site."""

    name: str
    fields: Tuple[FieldSpec, ...]
    draft_model: Type[BaseModel]
    directive_rules: DirectiveRules = DirectiveRules.NONE
    keyed_by_directive: bool = False

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def json_shape(self) -> str:
        """Human-readable JSON shape for the prompt's output section."""
        lines = []
        for spec in self.fields:
            optional = "" if spec.required else "optional, "
            lines.append(f'  "{spec.name}": "string ({optional}max {spec.max_length} characters)"')
        if self.draft_model is ActivitySuggestionDraft:
            lines.append('  "durationMinutes": number (optional)')
            lines.append('  "intensity": "LOW" | "MODERATE" | "HIGH" (optional)')
        return "{\n" + ",\n".join(lines) + "\n}"

    def parse(self, data: Any) -> Tuple[Optional[Dict[str, Any]], List[str]]:
        """
        Shape-check a decoded JSON object against the draft model.

        Returns:
            (content, errors) where content is None when the shape is wrong.
        """
        if not isinstance(data, dict):
            return None, [f"response must be a JSON object, got {type(data).__name__}"]
        try:
            draft = self.draft_model.model_validate(data)
        except ValidationError as e:
            errors = []
            for err in e.errors():
                location = ".".join(str(part) for part in err["loc"]) or "response"
                errors.append(f"{location} {err['msg'].lower()}")
            return None, errors
        return draft.model_dump(exclude_none=True), []


DIRECTIVE_NARRATION = NarrationSchema(
    name="directive_narration",
    fields=(
        FieldSpec("sessionFocus", 160),
        FieldSpec("avoidCue", 120),
        FieldSpec("insightSummary", 300),
        FieldSpec("insightDetail", 1500, required=False),
    ),
    draft_model=DirectiveNarrationDraft,
    directive_rules=DirectiveRules.NARRATION,
    keyed_by_directive=True,
)

ONBOARDING_WELCOME = NarrationSchema(
    name="onboarding_welcome",
    fields=(
        FieldSpec("headline", 32),
        FieldSpec("message", 220),
    ),
    draft_model=WelcomeDraft,
)

POST_ACTIVITY_INSIGHT = NarrationSchema(
    name="post_activity_insight",
    fields=(
        FieldSpec("headline", 50),
        FieldSpec("summary", 200),
        FieldSpec("physiology", 300, required=False),
        FieldSpec("guidance", 200, required=False),
    ),
    draft_model=ActivityInsightDraft,
)

ACTIVITY_SUGGESTION = NarrationSchema(
    name="activity_suggestion",
    fields=(
        FieldSpec("title", 50),
        FieldSpec("summary", 120),
        FieldSpec("why", 200, required=False),
    ),
    draft_model=ActivitySuggestionDraft,
    directive_rules=DirectiveRules.SUGGESTION,
    keyed_by_directive=True,
)

ALL_SCHEMAS = (
    DIRECTIVE_NARRATION,
    ONBOARDING_WELCOME,
    POST_ACTIVITY_INSIGHT,
    ACTIVITY_SUGGESTION,
)
