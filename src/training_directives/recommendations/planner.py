"""
Arc Planner.

Builds the three-day horizon:
- Day 0 comes from the scoring engine and is narrated
- Days 1 and 2 are projected by the forecast state machine, un-narrated

Forecast days never trigger a generation call.
"""

import logging
from typing import List, Union

from ..llm.narration import narrate_directive
from ..llm.orchestrator import GenerativeOrchestrator
from ..models import (
    HORIZON_LENGTH,
    BiometricSnapshot,
    DayEntry,
    HorizonContract,
    SystemState,
    Trend,
)
from .forecast import determine_daily_directive, predict_next_state
from .scoring import ScoringEngine
from .tables import constraints_for


logger = logging.getLogger(__name__)


class ArcPlanner:
    """Produces a HorizonContract for a snapshot."""

    def __init__(self, orchestrator: GenerativeOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def plan_horizon(
        self,
        snapshot: BiometricSnapshot,
        trend: Union[Trend, str] = Trend.STABLE,
    ) -> HorizonContract:
        """
        Plan today plus the next two days.

        Args:
            snapshot: Today's biometric snapshot
            trend: Recent recovery direction used for the forecast

        Returns:
            HorizonContract with exactly three entries
        """
        scoring = ScoringEngine.evaluate(snapshot)
        constraints = constraints_for(snapshot.state)
        narration = await narrate_directive(self.orchestrator, snapshot, scoring, constraints)

        today = DayEntry(
            day_offset=0,
            state=snapshot.state,
            directive=scoring.winner.directive,
            constraints=constraints,
            narration=narration,
        )
        entries = [today] + self.forecast(snapshot.state, trend)

        logger.info(
            "Planned horizon: "
            + ", ".join(f"day {e.day_offset} {e.directive.label}" for e in entries)
            + f" (today's narration {narration.source.value})"
        )
        return HorizonContract(entries=tuple(entries))

    @staticmethod
    def forecast(state: SystemState, trend: Union[Trend, str] = Trend.STABLE) -> List[DayEntry]:
        """Deterministic, un-narrated entries for days 1 and 2."""
        entries = []
        current = state
        for day_offset in range(1, HORIZON_LENGTH):
            current = predict_next_state(current, trend, day_offset)
            entries.append(determine_daily_directive(current, day_offset))
        return entries
