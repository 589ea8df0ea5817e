"""
Directive, safety and horizon models.

Everything here is immutable and created fresh per evaluation call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .biometrics import SystemState
from .narration import NarrationPayload


class Category(str, Enum):
    """Training category of a directive."""

    STRENGTH = "STRENGTH"
    ENDURANCE = "ENDURANCE"
    NEURAL = "NEURAL"
    REGULATION = "REGULATION"


class StimulusType(str, Enum):
    """Training-load strategy for a day."""

    OVERLOAD = "OVERLOAD"        # push
    MAINTENANCE = "MAINTENANCE"  # hold
    FLUSH = "FLUSH"              # recover
    TEST = "TEST"                # assess


class Modality(str, Enum):
    """Activity modalities a safety envelope can allow."""

    ALL = "ALL"  # sentinel: no modality restriction
    YOGA = "YOGA"
    WALKING = "WALKING"
    MOBILITY = "MOBILITY"
    MEDITATION = "MEDITATION"
    RUNNING = "RUNNING"
    CYCLING = "CYCLING"
    SWIMMING = "SWIMMING"


@dataclass(frozen=True)
class Directive:
    """A (category, stimulus type) pair recommended for a day."""

    category: Category
    stimulus_type: StimulusType

    @property
    def label(self) -> str:
        return f"{self.category.value}/{self.stimulus_type.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "stimulus_type": self.stimulus_type.value,
        }


@dataclass(frozen=True)
class DirectiveCandidate:
    """A scored candidate directive."""

    category: Category
    stimulus_type: StimulusType
    score: float   # 0-1
    reason: str    # diagnostic only

    @property
    def directive(self) -> Directive:
        return Directive(self.category, self.stimulus_type)

    def describe_rejection(self) -> str:
        """Diagnostic string used when this candidate lost the ranking."""
        return (
            f"{self.category.value}/{self.stimulus_type.value} "
            f"(score {self.score:.2f}) rejected: {self.reason}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "stimulus_type": self.stimulus_type.value,
            "score": round(self.score, 3),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class SafetyEnvelope:
    """Hard bounds derived from system state alone."""

    max_load: int                          # 0-10
    allowed_modalities: FrozenSet[Modality]

    def __post_init__(self) -> None:
        if not 0 <= self.max_load <= 10:
            raise ValueError(f"max_load must be within 0-10, got {self.max_load}")
        object.__setattr__(self, "allowed_modalities", frozenset(self.allowed_modalities))

    @property
    def unrestricted(self) -> bool:
        return Modality.ALL in self.allowed_modalities

    def permits(self, modality: Modality) -> bool:
        """Whether an activity of this modality fits inside the envelope."""
        return self.unrestricted or modality in self.allowed_modalities

    def describe(self) -> List[str]:
        """Constraint lines for prompt grounding."""
        if self.unrestricted:
            modalities = "all modalities"
        else:
            modalities = ", ".join(sorted(m.value.lower() for m in self.allowed_modalities))
        return [f"Max load {self.max_load}/10", f"Allowed: {modalities}"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_load": self.max_load,
            "allowed_modalities": sorted(m.value for m in self.allowed_modalities),
        }


@dataclass(frozen=True)
class DirectiveConstraints:
    """Per-day constraints handed to narration and activity suggestion."""

    allow_impact: bool
    max_load: int
    allowed_modalities: FrozenSet[Modality]
    heart_rate_cap: Optional[int] = None

    def describe(self) -> List[str]:
        """Constraint lines for prompts."""
        lines = []
        if not self.allow_impact:
            lines.append("No impact movements")
        lines.extend(SafetyEnvelope(self.max_load, self.allowed_modalities).describe())
        if self.heart_rate_cap:
            lines.append(f"HR cap: {self.heart_rate_cap}bpm")
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allow_impact": self.allow_impact,
            "max_load": self.max_load,
            "allowed_modalities": sorted(m.value for m in self.allowed_modalities),
            "heart_rate_cap": self.heart_rate_cap,
        }


@dataclass(frozen=True)
class ScoringResult:
    """Output of one scoring evaluation."""

    ranked: Tuple[DirectiveCandidate, ...]
    envelope: SafetyEnvelope

    def __post_init__(self) -> None:
        if not self.ranked:
            raise ValueError("ScoringResult requires at least one ranked candidate")

    @property
    def winner(self) -> DirectiveCandidate:
        return self.ranked[0]

    @property
    def runner_up(self) -> Optional[DirectiveCandidate]:
        return self.ranked[1] if len(self.ranked) > 1 else None

    @property
    def rejected_alternatives(self) -> List[str]:
        return [c.describe_rejection() for c in self.ranked[1:]]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ranked": [c.to_dict() for c in self.ranked],
            "envelope": self.envelope.to_dict(),
            "rejected": self.rejected_alternatives,
        }


@dataclass(frozen=True)
class DayEntry:
    """One day of the horizon."""

    day_offset: int
    state: SystemState
    directive: Directive
    constraints: DirectiveConstraints
    narration: Optional[NarrationPayload] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "day_offset": self.day_offset,
            "state": self.state.value,
            "directive": self.directive.to_dict(),
            "constraints": self.constraints.to_dict(),
            "narration": self.narration.to_dict() if self.narration else None,
        }


HORIZON_LENGTH = 3


@dataclass(frozen=True)
class HorizonContract:
    """
    The three-day arc: today (narrated) and two forecast days.

    Construction fails unless the entries are exactly offsets 0, 1, 2 and
    only today carries narration.
    """

    entries: Tuple[DayEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        entries = tuple(self.entries)
        object.__setattr__(self, "entries", entries)

        offsets = [e.day_offset for e in entries]
        if offsets != list(range(HORIZON_LENGTH)):
            raise ValueError(f"Horizon must cover offsets 0-2 in order, got {offsets}")
        if entries[0].narration is None:
            raise ValueError("Today's entry must carry narration")
        if any(e.narration is not None for e in entries[1:]):
            raise ValueError("Forecast entries must not carry narration")

    @property
    def today(self) -> DayEntry:
        return self.entries[0]

    @property
    def tomorrow(self) -> DayEntry:
        return self.entries[1]

    @property
    def day_after(self) -> DayEntry:
        return self.entries[2]

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {"horizon": [e.to_dict() for e in self.entries]}
