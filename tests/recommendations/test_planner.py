"""Tests for the arc planner."""

import pytest

from training_directives.exceptions import ConfigurationError, LLMTimeoutError
from training_directives.llm.orchestrator import GenerativeOrchestrator
from training_directives.models import (
    Category,
    HorizonContract,
    NarrationSource,
    StimulusType,
    SystemState,
    Trend,
)
from training_directives.recommendations.planner import ArcPlanner
from training_directives.recommendations.tables import ensure_total


def labels(horizon):
    return [e.directive.label for e in horizon]


class TestPlanHorizon:
    """Three-day horizon assembly."""

    @pytest.mark.asyncio
    async def test_offline_horizon_uses_fallback_for_today(self, ready_snapshot):
        planner = ArcPlanner(GenerativeOrchestrator(provider=None))

        horizon = await planner.plan_horizon(ready_snapshot)

        assert isinstance(horizon, HorizonContract)
        assert len(horizon) == 3
        assert [e.day_offset for e in horizon] == [0, 1, 2]
        assert horizon.today.narration.source == NarrationSource.FALLBACK
        assert horizon.today.narration.retry_count == 0
        assert horizon.tomorrow.narration is None
        assert horizon.day_after.narration is None

    @pytest.mark.asyncio
    async def test_ready_day_forecast(self, ready_snapshot):
        planner = ArcPlanner(GenerativeOrchestrator(provider=None))

        horizon = await planner.plan_horizon(ready_snapshot, Trend.STABLE)

        assert labels(horizon) == [
            "STRENGTH/OVERLOAD",
            "ENDURANCE/OVERLOAD",
            "ENDURANCE/MAINTENANCE",
        ]
        assert [e.state for e in horizon] == [
            SystemState.READY_FOR_LOAD,
            SystemState.METABOLIC_HEALTH,
            SystemState.BUILDING_CAPACITY,
        ]

    @pytest.mark.asyncio
    async def test_recovery_with_rising_trend(self, recovery_snapshot):
        planner = ArcPlanner(GenerativeOrchestrator(provider=None))

        horizon = await planner.plan_horizon(recovery_snapshot, "RISING")

        assert horizon.today.directive.stimulus_type == StimulusType.FLUSH
        assert horizon.today.constraints.allow_impact is False
        assert horizon.tomorrow.state == SystemState.BUILDING_CAPACITY
        assert horizon.day_after.state == SystemState.READY_FOR_LOAD

    @pytest.mark.asyncio
    async def test_forecast_days_never_call_the_provider(
        self, ready_snapshot, fake_provider
    ):
        provider = fake_provider()
        planner = ArcPlanner(GenerativeOrchestrator(provider))

        horizon = await planner.plan_horizon(ready_snapshot)

        assert provider.call_count == 1
        assert horizon.today.narration.source == NarrationSource.GENERATED
        assert horizon.today.narration.retry_count == 0

    @pytest.mark.asyncio
    async def test_today_prompt_carries_grounding(self, ready_snapshot, fake_provider):
        provider = fake_provider()
        planner = ArcPlanner(GenerativeOrchestrator(provider))

        await planner.plan_horizon(ready_snapshot)

        request = provider.requests[0]
        assert "STRENGTH / OVERLOAD" in request.user_prompt
        assert "Vitality reading is 85 out of 100" in request.user_prompt
        assert "WINNING SCORE: 0.90" in request.user_prompt
        assert "rejected:" in request.user_prompt
        assert "Max load 10/10" in request.user_prompt

    @pytest.mark.asyncio
    async def test_provider_failure_still_yields_full_horizon(
        self, recovery_snapshot, fake_provider
    ):
        provider = fake_provider(LLMTimeoutError(timeout_seconds=5))
        planner = ArcPlanner(GenerativeOrchestrator(provider))

        horizon = await planner.plan_horizon(recovery_snapshot)

        assert len(horizon) == 3
        assert horizon.today.narration.is_fallback
        assert horizon.today.narration.session_focus
        assert horizon.today.directive.category == Category.REGULATION


class TestForecast:
    """Synchronous forecast of days 1 and 2."""

    @pytest.mark.parametrize("state", list(SystemState))
    @pytest.mark.parametrize("trend", list(Trend))
    def test_forecast_covers_two_unnarrated_days(self, state, trend):
        entries = ArcPlanner.forecast(state, trend)

        assert [e.day_offset for e in entries] == [1, 2]
        assert all(e.narration is None for e in entries)

    def test_primed_day_is_followed_by_recovery(self):
        entries = ArcPlanner.forecast(SystemState.PRIMED_TO_PERFORM, Trend.RISING)

        assert entries[0].state == SystemState.RECOVERY_MODE
        assert entries[0].directive.stimulus_type == StimulusType.FLUSH


class TestTableTotality:
    def test_missing_state_fails_fast(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ensure_total({SystemState.RECOVERY_MODE: 1}, "PARTIAL")

        assert "PARTIAL" in exc_info.value.message
        assert "CALCULATING" in exc_info.value.details["missing"]
