"""
State-keyed lookup tables shared by scoring and forecasting.

Every table is keyed by SystemState and checked for totality when this
module is imported. A missing state is a configuration defect and fails
fast instead of surfacing as a KeyError on a live request.
"""

from types import MappingProxyType
from typing import Mapping, TypeVar

from ..exceptions import ConfigurationError
from ..models import (
    Category,
    DirectiveConstraints,
    Modality,
    SafetyEnvelope,
    StimulusType,
    SystemState,
)


V = TypeVar("V")


def ensure_total(table: Mapping[SystemState, V], name: str) -> Mapping[SystemState, V]:
    """Return a read-only view of the table after checking every state is keyed."""
    missing = [s.value for s in SystemState if s not in table]
    if missing:
        raise ConfigurationError(
            message=f"{name} is missing entries for: {', '.join(missing)}",
            details={"table": name, "missing": missing},
        )
    return MappingProxyType(dict(table))


ALL_STIMULI = frozenset(StimulusType)

# Hard masks: which stimulus types may even be scored in each state
STIMULUS_MASKS = ensure_total(
    {
        SystemState.RECOVERY_MODE: frozenset({StimulusType.FLUSH}),
        SystemState.PHYSICAL_STRAIN: frozenset({StimulusType.FLUSH}),
        SystemState.HIGH_STRAIN: ALL_STIMULI - {StimulusType.OVERLOAD, StimulusType.TEST},
        SystemState.NEEDS_STIMULATION: ALL_STIMULI - {StimulusType.FLUSH},
        SystemState.BUILDING_CAPACITY: ALL_STIMULI,
        SystemState.READY_FOR_LOAD: ALL_STIMULI,
        SystemState.METABOLIC_HEALTH: ALL_STIMULI,
        SystemState.PRIMED_TO_PERFORM: ALL_STIMULI,
        SystemState.OVERREACHING: ALL_STIMULI,
        SystemState.CALCULATING: ALL_STIMULI,
    },
    "STIMULUS_MASKS",
)


_RESTORATIVE = SafetyEnvelope(
    max_load=3,
    allowed_modalities=frozenset(
        {Modality.YOGA, Modality.WALKING, Modality.MOBILITY, Modality.MEDITATION}
    ),
)
_STRAINED = SafetyEnvelope(
    max_load=5,
    allowed_modalities=frozenset(
        {Modality.RUNNING, Modality.CYCLING, Modality.YOGA, Modality.SWIMMING}
    ),
)
_OPEN = SafetyEnvelope(max_load=10, allowed_modalities=frozenset({Modality.ALL}))

SAFETY_ENVELOPES = ensure_total(
    {
        SystemState.RECOVERY_MODE: _RESTORATIVE,
        SystemState.PHYSICAL_STRAIN: _RESTORATIVE,
        SystemState.HIGH_STRAIN: _STRAINED,
        SystemState.NEEDS_STIMULATION: _OPEN,
        SystemState.BUILDING_CAPACITY: _OPEN,
        SystemState.READY_FOR_LOAD: _OPEN,
        SystemState.METABOLIC_HEALTH: _OPEN,
        SystemState.PRIMED_TO_PERFORM: _OPEN,
        SystemState.OVERREACHING: _OPEN,
        SystemState.CALCULATING: _OPEN,
    },
    "SAFETY_ENVELOPES",
)

# States in which impact work (jumps, plyometrics) is off the table
NO_IMPACT_STATES = frozenset({SystemState.RECOVERY_MODE, SystemState.PHYSICAL_STRAIN})

# Category each scored stimulus is expressed through
CATEGORY_FOR_STIMULUS = MappingProxyType({
    StimulusType.OVERLOAD: Category.STRENGTH,
    StimulusType.MAINTENANCE: Category.ENDURANCE,
    StimulusType.FLUSH: Category.REGULATION,
    StimulusType.TEST: Category.NEURAL,
})

# Tie-break on equal scores: the more conservative stimulus wins
TIE_BREAK_PRIORITY = (
    StimulusType.FLUSH,
    StimulusType.MAINTENANCE,
    StimulusType.OVERLOAD,
    StimulusType.TEST,
)


def safety_envelope_for(state: SystemState) -> SafetyEnvelope:
    """Hard bounds for a state, independent of any candidate score."""
    return SAFETY_ENVELOPES[state]


def constraints_for(state: SystemState) -> DirectiveConstraints:
    """Day constraints derived from the state's safety envelope."""
    envelope = safety_envelope_for(state)
    return DirectiveConstraints(
        allow_impact=state not in NO_IMPACT_STATES,
        max_load=envelope.max_load,
        allowed_modalities=envelope.allowed_modalities,
    )
