"""
Biometric input models.

A BiometricSnapshot is owned by the host application. The core only reads it.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import SnapshotValidationError


# HRV baseline assumed when no trailing baseline is available yet
DEFAULT_HRV_BASELINE_MS = 50.0


class SystemState(str, Enum):
    """Physiological readiness classification."""

    RECOVERY_MODE = "RECOVERY_MODE"          # Sickness / deep fatigue
    PHYSICAL_STRAIN = "PHYSICAL_STRAIN"      # Structural / mechanical risk
    HIGH_STRAIN = "HIGH_STRAIN"              # Warning zone
    NEEDS_STIMULATION = "NEEDS_STIMULATION"  # Undertraining
    BUILDING_CAPACITY = "BUILDING_CAPACITY"  # Adaptation zone
    READY_FOR_LOAD = "READY_FOR_LOAD"        # Balanced, high readiness
    METABOLIC_HEALTH = "METABOLIC_HEALTH"
    PRIMED_TO_PERFORM = "PRIMED_TO_PERFORM"
    OVERREACHING = "OVERREACHING"
    CALCULATING = "CALCULATING"              # Not enough data yet

    @classmethod
    def coerce(cls, value: Any) -> Optional["SystemState"]:
        """Return the matching state, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


class Trend(str, Enum):
    """Direction of recent recovery."""

    RISING = "RISING"
    FALLING = "FALLING"
    STABLE = "STABLE"


@dataclass(frozen=True)
class ActivityRecord:
    """A recently completed activity."""

    activity_type: str
    duration_min: float
    calories: Optional[float] = None
    distance_km: Optional[float] = None
    avg_hr: Optional[int] = None
    max_hr: Optional[int] = None
    note: Optional[str] = None

    def describe(self) -> str:
        """Short label used in prompts and activity summaries."""
        label = f"{self.activity_type} ({round(self.duration_min)}min)"
        if self.note:
            label += f" - {self.note}"
        return label

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "activity_type": self.activity_type,
            "duration_min": self.duration_min,
            "calories": self.calories,
            "distance_km": self.distance_km,
            "avg_hr": self.avg_hr,
            "max_hr": self.max_hr,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityRecord":
        return cls(
            activity_type=data["activity_type"],
            duration_min=float(data.get("duration_min", 0)),
            calories=data.get("calories"),
            distance_km=data.get("distance_km"),
            avg_hr=data.get("avg_hr"),
            max_hr=data.get("max_hr"),
            note=data.get("note"),
        )


def _check_range(name: str, value: Optional[float], low: float, high: Optional[float]) -> None:
    if value is None:
        return
    if not math.isfinite(value):
        raise SnapshotValidationError(
            message=f"{name} must be a finite number, got {value}",
            field=name,
            details={"value": str(value)},
        )
    if value < low or (high is not None and value > high):
        bound = f"[{low}, {high}]" if high is not None else f">= {low}"
        raise SnapshotValidationError(
            message=f"{name} out of range: {value} (expected {bound})",
            field=name,
            details={"value": value},
        )


@dataclass(frozen=True)
class BiometricSnapshot:
    """Immutable daily readiness input."""

    vitality: float                          # 0-100 composite readiness
    sleep_score: float                       # 0-100
    hrv: float                               # ms, last night
    state: SystemState
    hrv_baseline: Optional[float] = None     # ms, trailing average
    load_density: float = 0.0                # 72h accumulated load
    stress_elevated_pct: Optional[float] = None  # % of day with elevated stress
    recent_activities: Tuple[ActivityRecord, ...] = field(default_factory=tuple)
    vitality_confidence: Optional[str] = None

    def __post_init__(self) -> None:
        state = SystemState.coerce(self.state)
        if state is None:
            raise SnapshotValidationError(
                message=f"Unknown system state: {self.state!r}",
                field="state",
            )
        object.__setattr__(self, "state", state)
        object.__setattr__(self, "recent_activities", tuple(self.recent_activities))

        _check_range("vitality", self.vitality, 0, 100)
        _check_range("sleep_score", self.sleep_score, 0, 100)
        _check_range("hrv", self.hrv, 0, None)
        _check_range("hrv_baseline", self.hrv_baseline, 0, None)
        _check_range("load_density", self.load_density, 0, None)
        _check_range("stress_elevated_pct", self.stress_elevated_pct, 0, 100)

    @property
    def effective_hrv_baseline(self) -> float:
        """Trailing HRV baseline, with a default for new users."""
        if self.hrv_baseline:
            return self.hrv_baseline
        return DEFAULT_HRV_BASELINE_MS

    @property
    def hrv_below_baseline(self) -> bool:
        return self.hrv < self.effective_hrv_baseline

    def activity_summary(self, limit: int = 5) -> str:
        """Comma-separated summary of the most recent activities."""
        if not self.recent_activities:
            return "No distinct sessions recorded recently"
        return ", ".join(a.describe() for a in self.recent_activities[:limit])

    def evidence(self) -> List[str]:
        """
        Plain-language evidence bullets for prompt grounding.

        These are the only facts the narration is allowed to lean on.
        """
        bullets = [
            f"Vitality reading is {round(self.vitality)} out of 100",
            f"Sleep score is {round(self.sleep_score)} out of 100",
        ]

        baseline = self.effective_hrv_baseline
        if self.hrv_below_baseline:
            bullets.append(f"HRV at {round(self.hrv)} ms sits below the baseline of {round(baseline)} ms")
        else:
            bullets.append(f"HRV at {round(self.hrv)} ms holds at or above the baseline of {round(baseline)} ms")

        if self.load_density > 0:
            bullets.append(f"Training load over the last three days totals {round(self.load_density)} units")

        if self.stress_elevated_pct is not None:
            bullets.append(f"Stress was elevated for {round(self.stress_elevated_pct)}% of the day")

        if self.recent_activities:
            bullets.append(f"Recent sessions: {self.activity_summary(limit=3)}")

        return bullets

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "vitality": self.vitality,
            "sleep_score": self.sleep_score,
            "hrv": self.hrv,
            "hrv_baseline": self.hrv_baseline,
            "load_density": self.load_density,
            "stress_elevated_pct": self.stress_elevated_pct,
            "state": self.state.value,
            "recent_activities": [a.to_dict() for a in self.recent_activities],
            "vitality_confidence": self.vitality_confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BiometricSnapshot":
        """Build a snapshot from a plain dictionary (e.g. a JSON file)."""
        try:
            return cls(
                vitality=float(data["vitality"]),
                sleep_score=float(data["sleep_score"]),
                hrv=float(data["hrv"]),
                state=data["state"],
                hrv_baseline=data.get("hrv_baseline"),
                load_density=float(data.get("load_density") or 0.0),
                stress_elevated_pct=data.get("stress_elevated_pct"),
                recent_activities=tuple(
                    ActivityRecord.from_dict(a) for a in data.get("recent_activities", [])
                ),
                vitality_confidence=data.get("vitality_confidence"),
            )
        except KeyError as e:
            raise SnapshotValidationError(
                message=f"Snapshot is missing required field {e.args[0]!r}",
                field=str(e.args[0]),
            ) from e
