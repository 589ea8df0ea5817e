"""
Horizon forecasting.

A small finite-state machine projects today's state forward one day at a
time, and a second total table maps any state to a deterministic directive.
Both are pure: no generation call, no I/O.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from ..exceptions import ConfigurationError
from ..models import (
    Category,
    DayEntry,
    Directive,
    StimulusType,
    SystemState,
    Trend,
)
from .tables import STIMULUS_MASKS, constraints_for, ensure_total


@dataclass(frozen=True)
class TransitionRule:
    """
    Next-state rule for one state.

    Resolution order: a day-specific override, then a trend-specific
    override, then the default.
    """

    default: SystemState
    by_trend: Mapping[Trend, SystemState] = field(default_factory=dict)
    on_day: Mapping[int, SystemState] = field(default_factory=dict)

    def resolve(self, trend: Trend, day_offset: int) -> SystemState:
        if day_offset in self.on_day:
            return self.on_day[day_offset]
        return self.by_trend.get(trend, self.default)


# Fallback for states without a meaningful projection
DEFAULT_NEXT_STATE = SystemState.BUILDING_CAPACITY

TRANSITIONS = ensure_total(
    {
        SystemState.RECOVERY_MODE: TransitionRule(
            default=SystemState.RECOVERY_MODE,
            by_trend={Trend.RISING: SystemState.BUILDING_CAPACITY},
        ),
        SystemState.BUILDING_CAPACITY: TransitionRule(
            default=SystemState.READY_FOR_LOAD,
            by_trend={Trend.FALLING: SystemState.RECOVERY_MODE},
        ),
        # A load day carries a metabolic cost the next day
        SystemState.READY_FOR_LOAD: TransitionRule(
            default=SystemState.READY_FOR_LOAD,
            on_day={1: SystemState.METABOLIC_HEALTH},
        ),
        SystemState.METABOLIC_HEALTH: TransitionRule(
            default=SystemState.BUILDING_CAPACITY,
            by_trend={Trend.RISING: SystemState.PRIMED_TO_PERFORM},
        ),
        # A peak day is followed by mandatory recovery
        SystemState.PRIMED_TO_PERFORM: TransitionRule(
            default=SystemState.PRIMED_TO_PERFORM,
            on_day={1: SystemState.RECOVERY_MODE},
        ),
        SystemState.OVERREACHING: TransitionRule(default=SystemState.RECOVERY_MODE),
        SystemState.PHYSICAL_STRAIN: TransitionRule(default=DEFAULT_NEXT_STATE),
        SystemState.HIGH_STRAIN: TransitionRule(default=DEFAULT_NEXT_STATE),
        SystemState.NEEDS_STIMULATION: TransitionRule(default=DEFAULT_NEXT_STATE),
        SystemState.CALCULATING: TransitionRule(default=DEFAULT_NEXT_STATE),
    },
    "TRANSITIONS",
)


def _directive(category: Category, stimulus: StimulusType) -> Directive:
    return Directive(category=category, stimulus_type=stimulus)


DAILY_DIRECTIVES = ensure_total(
    {
        SystemState.RECOVERY_MODE: _directive(Category.REGULATION, StimulusType.FLUSH),
        SystemState.PHYSICAL_STRAIN: _directive(Category.REGULATION, StimulusType.FLUSH),
        SystemState.OVERREACHING: _directive(Category.REGULATION, StimulusType.FLUSH),
        SystemState.BUILDING_CAPACITY: _directive(Category.ENDURANCE, StimulusType.MAINTENANCE),
        SystemState.READY_FOR_LOAD: _directive(Category.STRENGTH, StimulusType.OVERLOAD),
        SystemState.METABOLIC_HEALTH: _directive(Category.ENDURANCE, StimulusType.OVERLOAD),
        SystemState.PRIMED_TO_PERFORM: _directive(Category.NEURAL, StimulusType.TEST),
        SystemState.HIGH_STRAIN: _directive(Category.REGULATION, StimulusType.MAINTENANCE),
        SystemState.NEEDS_STIMULATION: _directive(Category.REGULATION, StimulusType.MAINTENANCE),
        SystemState.CALCULATING: _directive(Category.REGULATION, StimulusType.MAINTENANCE),
    },
    "DAILY_DIRECTIVES",
)


def _check_directives_respect_masks() -> None:
    violations = [
        f"{state.value} -> {d.label}"
        for state, d in DAILY_DIRECTIVES.items()
        if d.stimulus_type not in STIMULUS_MASKS[state]
    ]
    if violations:
        raise ConfigurationError(
            message="Forecast directives violate state masks: " + "; ".join(violations),
            details={"violations": violations},
        )


_check_directives_respect_masks()


def _coerce_trend(trend: Union[Trend, str, None]) -> Trend:
    if isinstance(trend, Trend):
        return trend
    try:
        return Trend(str(trend).upper())
    except ValueError:
        return Trend.STABLE


def predict_next_state(
    state: Union[SystemState, str, Any],
    trend: Union[Trend, str, None],
    day_offset: int,
) -> SystemState:
    """
    Predict the likely state for a forecast day.

    Total over every input: unknown states project to BUILDING_CAPACITY and
    unknown trends are read as STABLE.

    Args:
        state: State of the previous day
        trend: Recent recovery direction
        day_offset: Offset of the day being predicted (1 = tomorrow)

    Returns:
        The projected SystemState
    """
    current = SystemState.coerce(state)
    if current is None:
        return DEFAULT_NEXT_STATE
    return TRANSITIONS[current].resolve(_coerce_trend(trend), day_offset)


def determine_daily_directive(state: SystemState, day_offset: int) -> DayEntry:
    """Map a (forecast) state to its deterministic, un-narrated day entry."""
    return DayEntry(
        day_offset=day_offset,
        state=state,
        directive=DAILY_DIRECTIVES[state],
        constraints=constraints_for(state),
    )

