"""Directive scoring, forecasting and horizon planning."""

from .scoring import ScoringEngine, vitality_band_adjustment
from .tables import (
    STIMULUS_MASKS,
    SAFETY_ENVELOPES,
    TIE_BREAK_PRIORITY,
    constraints_for,
    safety_envelope_for,
)
from .forecast import (
    DAILY_DIRECTIVES,
    TRANSITIONS,
    determine_daily_directive,
    predict_next_state,
)
from .planner import ArcPlanner

__all__ = [
    # Scoring
    "ScoringEngine",
    "vitality_band_adjustment",
    # Tables
    "STIMULUS_MASKS",
    "SAFETY_ENVELOPES",
    "TIE_BREAK_PRIORITY",
    "constraints_for",
    "safety_envelope_for",
    # Forecast
    "DAILY_DIRECTIVES",
    "TRANSITIONS",
    "determine_daily_directive",
    "predict_next_state",
    # Planning
    "ArcPlanner",
]
