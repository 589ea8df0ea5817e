"""Tests for horizon forecasting tables."""

import pytest

from training_directives.models import (
    Category,
    DayEntry,
    StimulusType,
    SystemState,
    Trend,
)
from training_directives.recommendations.forecast import (
    DAILY_DIRECTIVES,
    TRANSITIONS,
    determine_daily_directive,
    predict_next_state,
)
from training_directives.recommendations.tables import STIMULUS_MASKS


class TestPredictNextState:
    """Transition rules of the forecast state machine."""

    @pytest.mark.parametrize("state", list(SystemState))
    @pytest.mark.parametrize("trend", list(Trend))
    @pytest.mark.parametrize("day_offset", [1, 2])
    def test_total_over_every_input(self, state, trend, day_offset):
        assert isinstance(predict_next_state(state, trend, day_offset), SystemState)

    def test_every_state_has_a_rule(self):
        assert set(TRANSITIONS) == set(SystemState)

    def test_unknown_state_projects_to_building_capacity(self):
        assert predict_next_state("NOT_A_STATE", Trend.RISING, 1) == SystemState.BUILDING_CAPACITY
        assert predict_next_state(None, Trend.STABLE, 2) == SystemState.BUILDING_CAPACITY

    def test_unknown_trend_reads_as_stable(self):
        assert predict_next_state(SystemState.RECOVERY_MODE, "sideways", 1) == SystemState.RECOVERY_MODE

    def test_string_inputs_are_accepted(self):
        assert predict_next_state("recovery_mode", "rising", 1) == SystemState.BUILDING_CAPACITY

    @pytest.mark.parametrize(
        "state,trend,day_offset,expected",
        [
            (SystemState.RECOVERY_MODE, Trend.STABLE, 1, SystemState.RECOVERY_MODE),
            (SystemState.RECOVERY_MODE, Trend.RISING, 1, SystemState.BUILDING_CAPACITY),
            (SystemState.BUILDING_CAPACITY, Trend.STABLE, 1, SystemState.READY_FOR_LOAD),
            (SystemState.BUILDING_CAPACITY, Trend.FALLING, 2, SystemState.RECOVERY_MODE),
            (SystemState.READY_FOR_LOAD, Trend.STABLE, 1, SystemState.METABOLIC_HEALTH),
            (SystemState.READY_FOR_LOAD, Trend.RISING, 2, SystemState.READY_FOR_LOAD),
            (SystemState.METABOLIC_HEALTH, Trend.STABLE, 2, SystemState.BUILDING_CAPACITY),
            (SystemState.METABOLIC_HEALTH, Trend.RISING, 1, SystemState.PRIMED_TO_PERFORM),
            (SystemState.PRIMED_TO_PERFORM, Trend.RISING, 1, SystemState.RECOVERY_MODE),
            (SystemState.PRIMED_TO_PERFORM, Trend.STABLE, 2, SystemState.PRIMED_TO_PERFORM),
            (SystemState.OVERREACHING, Trend.RISING, 1, SystemState.RECOVERY_MODE),
            (SystemState.HIGH_STRAIN, Trend.FALLING, 1, SystemState.BUILDING_CAPACITY),
            (SystemState.CALCULATING, Trend.STABLE, 1, SystemState.BUILDING_CAPACITY),
        ],
    )
    def test_transition_rules(self, state, trend, day_offset, expected):
        assert predict_next_state(state, trend, day_offset) == expected


class TestDetermineDailyDirective:
    """Deterministic state-to-directive mapping."""

    @pytest.mark.parametrize("state", list(SystemState))
    def test_mapped_stimulus_respects_mask(self, state):
        entry = determine_daily_directive(state, 1)

        assert isinstance(entry, DayEntry)
        assert entry.directive.stimulus_type in STIMULUS_MASKS[state]
        assert entry.narration is None
        assert entry.day_offset == 1

    def test_every_state_has_a_directive(self):
        assert set(DAILY_DIRECTIVES) == set(SystemState)

    @pytest.mark.parametrize(
        "state,category,stimulus",
        [
            (SystemState.RECOVERY_MODE, Category.REGULATION, StimulusType.FLUSH),
            (SystemState.OVERREACHING, Category.REGULATION, StimulusType.FLUSH),
            (SystemState.BUILDING_CAPACITY, Category.ENDURANCE, StimulusType.MAINTENANCE),
            (SystemState.READY_FOR_LOAD, Category.STRENGTH, StimulusType.OVERLOAD),
            (SystemState.METABOLIC_HEALTH, Category.ENDURANCE, StimulusType.OVERLOAD),
            (SystemState.PRIMED_TO_PERFORM, Category.NEURAL, StimulusType.TEST),
            (SystemState.HIGH_STRAIN, Category.REGULATION, StimulusType.MAINTENANCE),
            (SystemState.CALCULATING, Category.REGULATION, StimulusType.MAINTENANCE),
        ],
    )
    def test_directive_table(self, state, category, stimulus):
        directive = determine_daily_directive(state, 2).directive

        assert directive.category == category
        assert directive.stimulus_type == stimulus

    def test_recovery_days_disallow_impact(self):
        constraints = determine_daily_directive(SystemState.RECOVERY_MODE, 1).constraints

        assert constraints.allow_impact is False
        assert constraints.max_load == 3
        assert "No impact movements" in constraints.describe()

    def test_load_days_allow_impact(self):
        constraints = determine_daily_directive(SystemState.READY_FOR_LOAD, 1).constraints

        assert constraints.allow_impact is True
        assert constraints.max_load == 10
