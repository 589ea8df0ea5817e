"""Data models for the training directives core."""

from .biometrics import (
    DEFAULT_HRV_BASELINE_MS,
    ActivityRecord,
    BiometricSnapshot,
    SystemState,
    Trend,
)
from .narration import (
    NarrationPayload,
    NarrationSource,
    ValidationResult,
)
from .directives import (
    HORIZON_LENGTH,
    Category,
    DayEntry,
    Directive,
    DirectiveCandidate,
    DirectiveConstraints,
    HorizonContract,
    Modality,
    SafetyEnvelope,
    ScoringResult,
    StimulusType,
)

__all__ = [
    "DEFAULT_HRV_BASELINE_MS",
    "ActivityRecord",
    "BiometricSnapshot",
    "SystemState",
    "Trend",
    "NarrationPayload",
    "NarrationSource",
    "ValidationResult",
    "HORIZON_LENGTH",
    "Category",
    "DayEntry",
    "Directive",
    "DirectiveCandidate",
    "DirectiveConstraints",
    "HorizonContract",
    "Modality",
    "SafetyEnvelope",
    "ScoringResult",
    "StimulusType",
]
