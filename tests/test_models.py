"""Tests for the data models."""

import json

import pytest

from training_directives.exceptions import ErrorCode, SnapshotValidationError
from training_directives.models import (
    ActivityRecord,
    BiometricSnapshot,
    Category,
    DayEntry,
    Directive,
    DirectiveConstraints,
    HorizonContract,
    Modality,
    NarrationPayload,
    NarrationSource,
    SafetyEnvelope,
    StimulusType,
    SystemState,
)


def entry(offset, narration=None):
    return DayEntry(
        day_offset=offset,
        state=SystemState.BUILDING_CAPACITY,
        directive=Directive(Category.ENDURANCE, StimulusType.MAINTENANCE),
        constraints=DirectiveConstraints(True, 10, frozenset({Modality.ALL})),
        narration=narration,
    )


@pytest.fixture
def narration():
    return NarrationPayload(
        schema="directive_narration",
        content={"sessionFocus": "Steady pace.", "avoidCue": "Avoid surges.", "insightSummary": "Fine."},
        source=NarrationSource.FALLBACK,
    )


class TestBiometricSnapshot:
    """Input validation and evidence."""

    def test_state_is_coerced(self):
        snapshot = BiometricSnapshot(vitality=50, sleep_score=60, hrv=40, state="ready_for_load")

        assert snapshot.state == SystemState.READY_FOR_LOAD

    def test_unknown_state_is_rejected(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            BiometricSnapshot(vitality=50, sleep_score=60, hrv=40, state="SLEEPY")

        assert exc_info.value.details["field"] == "state"
        assert exc_info.value.code == ErrorCode.SNAPSHOT_INVALID

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"vitality": 101}, "vitality"),
            ({"sleep_score": -1}, "sleep_score"),
            ({"hrv": -5}, "hrv"),
            ({"load_density": -1}, "load_density"),
            ({"stress_elevated_pct": 120}, "stress_elevated_pct"),
        ],
    )
    def test_out_of_range_values_are_rejected(self, make_snapshot, overrides, field):
        with pytest.raises(SnapshotValidationError) as exc_info:
            make_snapshot(**overrides)

        assert exc_info.value.details["field"] == field

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"vitality": float("nan")}, "vitality"),
            ({"hrv": float("nan")}, "hrv"),
            ({"load_density": float("inf")}, "load_density"),
            ({"hrv_baseline": float("inf")}, "hrv_baseline"),
            ({"stress_elevated_pct": float("-inf")}, "stress_elevated_pct"),
        ],
    )
    def test_non_finite_values_are_rejected(self, make_snapshot, overrides, field):
        with pytest.raises(SnapshotValidationError) as exc_info:
            make_snapshot(**overrides)

        assert exc_info.value.details["field"] == field
        assert exc_info.value.code == ErrorCode.SNAPSHOT_INVALID

    def test_from_dict_rejects_non_finite_json(self):
        data = json.loads('{"vitality": NaN, "sleep_score": 80, "hrv": 61, "state": "CALCULATING"}')

        with pytest.raises(SnapshotValidationError) as exc_info:
            BiometricSnapshot.from_dict(data)

        assert exc_info.value.details["field"] == "vitality"

    def test_from_dict(self):
        snapshot = BiometricSnapshot.from_dict({
            "vitality": 72,
            "sleep_score": 80,
            "hrv": 61,
            "state": "BUILDING_CAPACITY",
            "recent_activities": [{"activity_type": "Yoga", "duration_min": 30}],
        })

        assert snapshot.load_density == 0.0
        assert snapshot.recent_activities == (ActivityRecord("Yoga", 30.0),)

    def test_from_dict_missing_field(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            BiometricSnapshot.from_dict({"vitality": 72, "sleep_score": 80, "state": "CALCULATING"})

        assert exc_info.value.details["field"] == "hrv"

    def test_round_trip_through_dict(self, make_snapshot, sample_activity):
        snapshot = make_snapshot(recent_activities=(sample_activity,))

        assert BiometricSnapshot.from_dict(snapshot.to_dict()) == snapshot

    def test_evidence_bullets(self, make_snapshot):
        snapshot = make_snapshot(hrv=40, hrv_baseline=None, stress_elevated_pct=35)

        assert snapshot.evidence() == [
            "Vitality reading is 65 out of 100",
            "Sleep score is 75 out of 100",
            "HRV at 40 ms sits below the baseline of 50 ms",
            "Training load over the last three days totals 1200 units",
            "Stress was elevated for 35% of the day",
        ]

    def test_activity_summary(self, make_snapshot):
        assert make_snapshot().activity_summary() == "No distinct sessions recorded recently"


class TestNarrationPayload:
    def test_negative_retry_count_is_rejected(self):
        with pytest.raises(ValueError):
            NarrationPayload("welcome", {}, NarrationSource.GENERATED, retry_count=-1)

    def test_to_dict_flattens_content(self, narration):
        data = narration.to_dict()

        assert data["sessionFocus"] == "Steady pace."
        assert data["source"] == "FALLBACK"
        assert data["retryCount"] == 0


class TestSafetyEnvelope:
    def test_unrestricted_permits_everything(self):
        envelope = SafetyEnvelope(max_load=10, allowed_modalities=frozenset({Modality.ALL}))

        assert envelope.permits(Modality.RUNNING)
        assert envelope.describe() == ["Max load 10/10", "Allowed: all modalities"]

    def test_restricted_envelope(self):
        envelope = SafetyEnvelope(max_load=3, allowed_modalities=frozenset({Modality.YOGA, Modality.WALKING}))

        assert not envelope.permits(Modality.RUNNING)
        assert envelope.describe() == ["Max load 3/10", "Allowed: walking, yoga"]

    def test_load_out_of_range(self):
        with pytest.raises(ValueError):
            SafetyEnvelope(max_load=11, allowed_modalities=frozenset({Modality.ALL}))

    def test_constraints_describe_heart_rate_cap(self):
        constraints = DirectiveConstraints(False, 3, frozenset({Modality.YOGA}), heart_rate_cap=120)

        assert constraints.describe() == [
            "No impact movements",
            "Max load 3/10",
            "Allowed: yoga",
            "HR cap: 120bpm",
        ]


class TestHorizonContract:
    """Horizon shape is enforced at construction."""

    def test_valid_horizon(self, narration):
        horizon = HorizonContract((entry(0, narration), entry(1), entry(2)))

        assert len(horizon) == 3
        assert horizon.today.narration is narration
        assert horizon.to_dict()["horizon"][1]["narration"] is None

    def test_wrong_offsets(self, narration):
        with pytest.raises(ValueError):
            HorizonContract((entry(0, narration), entry(2), entry(1)))

    def test_today_requires_narration(self):
        with pytest.raises(ValueError):
            HorizonContract((entry(0), entry(1), entry(2)))

    def test_forecast_days_cannot_be_narrated(self, narration):
        with pytest.raises(ValueError):
            HorizonContract((entry(0, narration), entry(1, narration), entry(2)))
