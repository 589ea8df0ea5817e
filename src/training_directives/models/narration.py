"""Narration payload and validation result models."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class NarrationSource(str, Enum):
    """Where a narration payload came from."""

    GENERATED = "GENERATED"
    FALLBACK = "FALLBACK"


@dataclass(frozen=True)
class NarrationPayload:
    """
    Validated narration content for one call site.

    `content` holds the schema's fields under their wire names
    (e.g. ``sessionFocus``). It is wrapped read-only at construction.
    """

    schema: str
    content: Mapping[str, Any]
    source: NarrationSource
    retry_count: int = 0
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError(f"retry_count must be >= 0, got {self.retry_count}")
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    def get(self, name: str, default: Any = None) -> Any:
        return self.content.get(name, default)

    # Directive-narration accessors
    @property
    def session_focus(self) -> Optional[str]:
        return self.content.get("sessionFocus")

    @property
    def avoid_cue(self) -> Optional[str]:
        return self.content.get("avoidCue")

    @property
    def insight_summary(self) -> Optional[str]:
        return self.content.get("insightSummary")

    @property
    def insight_detail(self) -> Optional[str]:
        return self.content.get("insightDetail")

    @property
    def is_fallback(self) -> bool:
        return self.source == NarrationSource.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "schema": self.schema,
            **dict(self.content),
            "source": self.source.value,
            "retryCount": self.retry_count,
        }


@dataclass
class ValidationResult:
    """Outcome of validating one narration attempt."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    retryable: bool = True

    @classmethod
    def from_findings(
        cls,
        errors: List[str],
        warnings: Optional[List[str]] = None,
        retryable: bool = True,
    ) -> "ValidationResult":
        return cls(
            valid=not errors,
            errors=list(errors),
            warnings=list(warnings or []),
            retryable=retryable,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "retryable": self.retryable,
        }
