"""Shared fixtures for the training directives test suite."""

import json
from typing import Any, Dict, List, Optional, Union

import pytest

from training_directives.config import get_settings
from training_directives.llm.providers import (
    GenerationRequest,
    TextGenerationProvider,
    reset_llm_client,
)
from training_directives.models import ActivityRecord, BiometricSnapshot, SystemState


class FakeProvider(TextGenerationProvider):
    """
    Scripted provider.

    Each queued item is either raw text to return or an exception to raise.
    The last item repeats once the queue runs out.
    """

    def __init__(self, responses: List[Union[str, Exception]], available: bool = True) -> None:
        self.responses = list(responses)
        self.available = available
        self.requests: List[GenerationRequest] = []

    def is_available(self) -> bool:
        return self.available

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep real credentials and cached clients out of every test."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    get_settings.cache_clear()
    reset_llm_client()
    yield
    get_settings.cache_clear()
    reset_llm_client()


@pytest.fixture
def make_snapshot():
    """Factory for snapshots with sensible defaults."""

    def _make(
        state: SystemState = SystemState.BUILDING_CAPACITY,
        vitality: float = 65,
        sleep_score: float = 75,
        hrv: float = 60,
        hrv_baseline: Optional[float] = 55,
        load_density: float = 1200,
        stress_elevated_pct: Optional[float] = None,
        recent_activities: tuple = (),
    ) -> BiometricSnapshot:
        return BiometricSnapshot(
            vitality=vitality,
            sleep_score=sleep_score,
            hrv=hrv,
            state=state,
            hrv_baseline=hrv_baseline,
            load_density=load_density,
            stress_elevated_pct=stress_elevated_pct,
            recent_activities=recent_activities,
        )

    return _make


@pytest.fixture
def ready_snapshot(make_snapshot) -> BiometricSnapshot:
    """High readiness: vitality 85 in READY_FOR_LOAD."""
    return make_snapshot(state=SystemState.READY_FOR_LOAD, vitality=85, hrv=68)


@pytest.fixture
def recovery_snapshot(make_snapshot) -> BiometricSnapshot:
    """Deep fatigue: vitality 25 in RECOVERY_MODE."""
    return make_snapshot(
        state=SystemState.RECOVERY_MODE,
        vitality=25,
        sleep_score=40,
        hrv=38,
        load_density=2600,
    )


@pytest.fixture
def sample_activity() -> ActivityRecord:
    return ActivityRecord(
        activity_type="Run",
        duration_min=42,
        calories=510,
        distance_km=8.2,
        avg_hr=148,
        max_hr=171,
        note="Tempo finish",
    )


def narration_json(**overrides: Any) -> str:
    """A directive narration response that passes validation for OVERLOAD."""
    content: Dict[str, Any] = {
        "sessionFocus": "Heavy compound lifts with full rest between sets.",
        "avoidCue": "Avoid cutting rest short between heavy sets.",
        "insightSummary": "Vitality and sleep both read well, so today supports heavy work.",
    }
    content.update(overrides)
    return json.dumps(content)


@pytest.fixture
def fake_provider():
    """Factory for scripted providers."""

    def _make(*responses: Union[str, Exception], available: bool = True) -> FakeProvider:
        return FakeProvider(list(responses) or [narration_json()], available=available)

    return _make


@pytest.fixture
def narration_response():
    """Builder for directive narration responses."""
    return narration_json
