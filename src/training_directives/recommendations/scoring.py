"""
Directive Scoring Engine

Deterministic utility scoring of the four stimulus types:
- Hard state masks decide what may be considered at all
- Soft weighted adjustments rank what remains
- A safety envelope bounds the day regardless of score

No LLM is involved here. Identical snapshots always rank identically.
"""

import logging
from typing import Callable, Dict, List

from ..models import (
    BiometricSnapshot,
    Category,
    DirectiveCandidate,
    ScoringResult,
    StimulusType,
    SystemState,
)
from .tables import (
    CATEGORY_FOR_STIMULUS,
    STIMULUS_MASKS,
    TIE_BREAK_PRIORITY,
    safety_envelope_for,
)


logger = logging.getLogger(__name__)


# Load density thresholds (72h sum; a normal day is ~500 units)
HIGH_LOAD_DENSITY = 2000
FLUSH_LOAD_DENSITY = 2500
FRESH_LOAD_DENSITY = 1000

# Percent of the day spent with elevated stress
STRESS_PENALTY_PCT = 40
STRESS_MAINTENANCE_PCT = 30


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def vitality_band_adjustment(vitality: float) -> float:
    """Bonus or penalty for the vitality band."""
    if vitality >= 80:
        return 0.1
    if vitality >= 60:
        return 0.05
    if vitality < 40:
        return -0.2
    return 0.0


def _stress_pct(snapshot: BiometricSnapshot) -> float:
    return snapshot.stress_elevated_pct or 0.0


class ScoringEngine:
    """Ranks candidate directives and derives the day's safety envelope."""

    @classmethod
    def evaluate(cls, snapshot: BiometricSnapshot) -> ScoringResult:
        """
        Evaluate every permitted stimulus type for a snapshot.

        Args:
            snapshot: Today's biometric snapshot

        Returns:
            ScoringResult with candidates ranked best-first and the
            state's safety envelope. The ranking is never empty.
        """
        state = snapshot.state
        allowed = STIMULUS_MASKS.get(state, frozenset())

        candidates: List[DirectiveCandidate] = [
            scorer(snapshot)
            for stimulus, scorer in cls._scorers().items()
            if stimulus in allowed
        ]

        if not candidates:
            logger.warning(f"State mask for {state.value} left no candidates, forcing FLUSH")
            candidates.append(
                DirectiveCandidate(
                    category=Category.REGULATION,
                    stimulus_type=StimulusType.FLUSH,
                    score=1.0,
                    reason=f"Fail-safe: no stimulus permitted in {state.value}",
                )
            )

        ranked = sorted(
            candidates,
            key=lambda c: (-c.score, TIE_BREAK_PRIORITY.index(c.stimulus_type)),
        )

        result = ScoringResult(ranked=tuple(ranked), envelope=safety_envelope_for(state))
        logger.debug(
            f"Scored {len(ranked)} candidates for {state.value}: "
            f"winner {result.winner.category.value}/{result.winner.stimulus_type.value} "
            f"({result.winner.score:.2f})"
        )
        return result

    @classmethod
    def _scorers(cls) -> Dict[StimulusType, Callable[[BiometricSnapshot], DirectiveCandidate]]:
        return {
            StimulusType.OVERLOAD: cls.score_overload,
            StimulusType.MAINTENANCE: cls.score_maintenance,
            StimulusType.FLUSH: cls.score_flush,
            StimulusType.TEST: cls.score_test,
        }

    # --- Scorers ---

    @staticmethod
    def score_overload(snapshot: BiometricSnapshot) -> DirectiveCandidate:
        """
        OVERLOAD: high stimulus, requires surplus resources.

        Rewards high vitality and load-seeking states; penalizes
        accumulated load, suppressed HRV and a stressful day.
        """
        score = 0.5
        state = snapshot.state

        if state == SystemState.READY_FOR_LOAD:
            score += 0.3
        if state == SystemState.NEEDS_STIMULATION:
            score += 0.4

        score += vitality_band_adjustment(snapshot.vitality)

        if snapshot.load_density > HIGH_LOAD_DENSITY:
            score -= 0.3
        if snapshot.load_density < FRESH_LOAD_DENSITY:
            score += 0.1

        if snapshot.hrv_below_baseline:
            score -= 0.2
        if _stress_pct(snapshot) > STRESS_PENALTY_PCT:
            score -= 0.2

        return DirectiveCandidate(
            category=CATEGORY_FOR_STIMULUS[StimulusType.OVERLOAD],
            stimulus_type=StimulusType.OVERLOAD,
            score=_clamp(score),
            reason=f"State {state.value}, vitality {round(snapshot.vitality)}, "
                   f"load density {round(snapshot.load_density)}",
        )

    @staticmethod
    def score_maintenance(snapshot: BiometricSnapshot) -> DirectiveCandidate:
        """MAINTENANCE: the safe zone, favoured while building capacity."""
        score = 0.4

        if snapshot.state == SystemState.BUILDING_CAPACITY:
            score += 0.4
        # Under moderate stress, holding beats pushing
        if _stress_pct(snapshot) > STRESS_MAINTENANCE_PCT:
            score += 0.2

        return DirectiveCandidate(
            category=CATEGORY_FOR_STIMULUS[StimulusType.MAINTENANCE],
            stimulus_type=StimulusType.MAINTENANCE,
            score=_clamp(score),
            reason="Capacity building focus",
        )

    @staticmethod
    def score_flush(snapshot: BiometricSnapshot) -> DirectiveCandidate:
        """FLUSH: recovery. Dominates in strain and recovery states."""
        score = 0.2
        state = snapshot.state

        if state in (SystemState.RECOVERY_MODE, SystemState.PHYSICAL_STRAIN):
            score = 1.0
        if state == SystemState.HIGH_STRAIN:
            score += 0.6
        if snapshot.load_density > FLUSH_LOAD_DENSITY:
            score += 0.5

        return DirectiveCandidate(
            category=CATEGORY_FOR_STIMULUS[StimulusType.FLUSH],
            stimulus_type=StimulusType.FLUSH,
            score=_clamp(score),
            reason=f"System protection ({state.value})",
        )

    @staticmethod
    def score_test(snapshot: BiometricSnapshot) -> DirectiveCandidate:
        """TEST: capacity assessment, only worthwhile when primed and fresh."""
        score = 0.3

        if snapshot.state == SystemState.PRIMED_TO_PERFORM:
            score += 0.4
        if snapshot.vitality >= 80:
            score += 0.1
        if snapshot.load_density > HIGH_LOAD_DENSITY:
            score -= 0.3
        if snapshot.hrv_below_baseline:
            score -= 0.2

        return DirectiveCandidate(
            category=CATEGORY_FOR_STIMULUS[StimulusType.TEST],
            stimulus_type=StimulusType.TEST,
            score=_clamp(score),
            reason=f"Assessment window ({snapshot.state.value})",
        )
