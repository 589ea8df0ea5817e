"""Tests for the narration call sites."""

import json

import pytest

from training_directives.exceptions import LLMServiceUnavailableError
from training_directives.llm.narration import (
    generate_activity_insight,
    generate_activity_suggestion,
    generate_welcome,
    narrate_directive,
    should_suggest_activity,
)
from training_directives.llm.orchestrator import GenerativeOrchestrator
from training_directives.llm.templates import (
    ACTIVITY_SUGGESTION_TEMPLATES,
    FALLBACK_KEY,
)
from training_directives.models import (
    Category,
    Directive,
    DirectiveConstraints,
    Modality,
    NarrationSource,
    StimulusType,
    SystemState,
)
from training_directives.recommendations.scoring import ScoringEngine
from training_directives.recommendations.tables import constraints_for


FLUSH_CONSTRAINTS = DirectiveConstraints(
    allow_impact=False,
    max_load=3,
    allowed_modalities=frozenset({Modality.WALKING, Modality.YOGA}),
)


class TestShouldSuggestActivity:
    """Gate for the activity suggestion card."""

    @pytest.mark.parametrize("state", [SystemState.RECOVERY_MODE, SystemState.PHYSICAL_STRAIN])
    def test_never_during_recovery_or_strain(self, state):
        assert should_suggest_activity(state, 10) is False

    def test_needs_recent_history(self):
        assert should_suggest_activity(SystemState.READY_FOR_LOAD, 2) is False
        assert should_suggest_activity(SystemState.READY_FOR_LOAD, 3) is True


class TestNarrateDirective:
    @pytest.mark.asyncio
    async def test_narrates_the_scoring_winner(self, ready_snapshot, fake_provider):
        scoring = ScoringEngine.evaluate(ready_snapshot)
        provider = fake_provider()

        payload = await narrate_directive(
            GenerativeOrchestrator(provider),
            ready_snapshot,
            scoring,
            constraints_for(ready_snapshot.state),
        )

        assert payload.source == NarrationSource.GENERATED
        assert payload.schema == "directive_narration"
        assert "Narrate the directive as given: STRENGTH/OVERLOAD" in provider.requests[0].system_instruction

    @pytest.mark.asyncio
    async def test_recovery_day_rejects_intense_narration(
        self, recovery_snapshot, fake_provider, narration_response
    ):
        """Narration that pushes intensity on a FLUSH day ends in the template."""
        scoring = ScoringEngine.evaluate(recovery_snapshot)
        provider = fake_provider(narration_response(sessionFocus="Push hard through heavy compound lifts."))

        payload = await narrate_directive(
            GenerativeOrchestrator(provider),
            recovery_snapshot,
            scoring,
            constraints_for(recovery_snapshot.state),
        )

        assert provider.call_count == 2
        assert payload.is_fallback
        assert payload.retry_count == 1
        assert "hard" in payload.avoid_cue.lower()


class TestCompanionCards:
    """Welcome, post-activity and suggestion cards."""

    @pytest.mark.asyncio
    async def test_welcome_generated(self, fake_provider, make_snapshot):
        provider = fake_provider(json.dumps({
            "headline": "Glad you are here",
            "message": "Each morning the guide reads your sleep and recovery and suggests a fitting day.",
        }))

        payload = await generate_welcome(GenerativeOrchestrator(provider), make_snapshot())

        assert payload.source == NarrationSource.GENERATED
        assert payload.get("headline") == "Glad you are here"
        request = provider.requests[0]
        assert request.temperature == 0.6
        assert "Initial vitality reading: 65/100" in request.user_prompt

    @pytest.mark.asyncio
    async def test_welcome_falls_back_when_provider_is_down(self, fake_provider):
        provider = fake_provider(LLMServiceUnavailableError())

        payload = await generate_welcome(GenerativeOrchestrator(provider))

        assert payload.is_fallback
        assert payload.get("headline") == "Welcome to your daily guide"

    @pytest.mark.asyncio
    async def test_activity_insight_prompt_lists_the_session(
        self, fake_provider, make_snapshot, sample_activity
    ):
        provider = fake_provider(json.dumps({
            "headline": "Tempo run logged",
            "summary": "A steady run with a quicker finish, mostly aerobic work.",
        }))

        payload = await generate_activity_insight(
            GenerativeOrchestrator(provider), sample_activity, make_snapshot()
        )

        assert payload.source == NarrationSource.GENERATED
        prompt = provider.requests[0].user_prompt
        assert "- Type: Run" in prompt
        assert "- Duration: 42 min" in prompt
        assert "- Distance: 8.2 km" in prompt
        assert "- Peak HR: 171 bpm" in prompt
        assert "- Note: Tempo finish" in prompt

    @pytest.mark.asyncio
    async def test_activity_insight_offline(self, make_snapshot, sample_activity):
        payload = await generate_activity_insight(
            GenerativeOrchestrator(provider=None), sample_activity, make_snapshot()
        )

        assert payload.is_fallback
        assert payload.get("headline") == "Session logged"

    @pytest.mark.asyncio
    async def test_suggestion_generated(self, fake_provider, make_snapshot):
        provider = fake_provider(json.dumps({
            "title": "Zone 2 Ride",
            "summary": "Forty minutes at a conversational pace.",
            "durationMinutes": 40,
            "intensity": "MODERATE",
        }))
        directive = Directive(Category.ENDURANCE, StimulusType.MAINTENANCE)

        payload = await generate_activity_suggestion(
            GenerativeOrchestrator(provider),
            make_snapshot(),
            directive,
            constraints_for(SystemState.BUILDING_CAPACITY),
        )

        assert payload.source == NarrationSource.GENERATED
        assert payload.get("durationMinutes") == 40
        assert provider.requests[0].temperature == 0.7

    @pytest.mark.asyncio
    async def test_suggestion_intensity_conflict_falls_back(self, fake_provider, recovery_snapshot):
        provider = fake_provider(json.dumps({
            "title": "Tempo Run",
            "summary": "Thirty minutes at threshold pace.",
            "intensity": "HIGH",
        }))
        directive = Directive(Category.REGULATION, StimulusType.FLUSH)

        payload = await generate_activity_suggestion(
            GenerativeOrchestrator(provider), recovery_snapshot, directive, FLUSH_CONSTRAINTS
        )

        assert provider.call_count == 2
        assert payload.is_fallback
        assert dict(payload.content) == ACTIVITY_SUGGESTION_TEMPLATES[FALLBACK_KEY]
        assert "intensity HIGH conflicts with a FLUSH directive" in provider.requests[1].user_prompt

    @pytest.mark.asyncio
    async def test_suggestion_with_bad_intensity_value_is_repaired(
        self, fake_provider, make_snapshot
    ):
        provider = fake_provider(
            json.dumps({"title": "Ride", "summary": "Easy spin.", "intensity": "EXTREME"}),
            json.dumps({"title": "Ride", "summary": "Easy spin.", "intensity": "LOW"}),
        )
        directive = Directive(Category.ENDURANCE, StimulusType.FLUSH)

        payload = await generate_activity_suggestion(
            GenerativeOrchestrator(provider), make_snapshot(), directive, FLUSH_CONSTRAINTS
        )

        assert payload.source == NarrationSource.GENERATED
        assert payload.retry_count == 1
        assert payload.get("intensity") == "LOW"
