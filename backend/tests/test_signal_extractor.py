"""
Tests for activity validation and signal extraction.
"""

import pytest

from config import PipelineOptions
from schemas.activity import RawActivity
from schemas.signals import Elevation, Intensity, Signals, TimeOfDay
from services.errors import ActivityValidationError, SignalValidationError
from services.signal_extractor import (
    SignalExtractor,
    extract_signals,
    parse_activity,
    validate_activity,
    validate_signals,
)


def _signals(**overrides) -> dict:
    data = {
        "activity_type": "Run",
        "intensity": "medium",
        "elevation": "flat",
        "time_of_day": "day",
        "weather": None,
        "tags": [],
        "brands": None,
        "semantic_context": None,
    }
    data.update(overrides)
    return data


class TestParseActivity:
    """Tests for raw activity parsing."""

    def test_mapping_is_parsed(self, run_activity):
        activity = parse_activity(run_activity)
        assert isinstance(activity, RawActivity)
        assert activity.type == "Run"
        assert activity.gear.name == "Nike Pegasus 40"

    def test_model_passed_through(self):
        activity = RawActivity(type="Run", sport_type="Run")
        assert parse_activity(activity) is activity

    def test_non_mapping_rejected(self):
        with pytest.raises(ActivityValidationError) as exc_info:
            parse_activity(["Run"])
        assert exc_info.value.errors == ["activity must be an object"]

    def test_wrong_field_types_reported(self):
        with pytest.raises(ActivityValidationError) as exc_info:
            parse_activity({"type": "Run", "distance": "far"})
        assert any(e.startswith("distance:") for e in exc_info.value.errors)

    def test_text_fields_normalized(self):
        activity = parse_activity(
            {"type": " Run\u200b", "name": "<b>Hill repeats</b>", "description": "   "}
        )
        assert activity.type == "Run"
        assert activity.name == "Hill repeats"
        assert activity.description is None

    def test_null_tags_become_empty(self):
        assert parse_activity({"type": "Run", "tags": None}).tags == []

    def test_non_string_tags_dropped(self):
        assert parse_activity({"type": "Run", "tags": ["race", 7, None]}).tags == ["race"]

    def test_non_list_tags_become_empty(self):
        assert parse_activity({"type": "Run", "tags": "race"}).tags == []

    def test_unencodable_text_dropped(self, caplog):
        with caplog.at_level("WARNING"):
            activity = parse_activity(
                {"type": "Run", "name": "Morning \ud800 run", "gear": {"name": "Shoe \udfff"}}
            )
        assert activity.type == "Run"
        assert activity.name is None
        assert activity.gear.name is None
        assert "name" in caplog.text

    def test_unknown_fields_ignored(self):
        activity = parse_activity({"type": "Run", "sport_type": "Run", "kudos_count": 3})
        assert not hasattr(activity, "kudos_count")


class TestValidateActivity:
    """Tests for range checks and repairs."""

    def test_valid_activity(self, run_activity):
        result = validate_activity(parse_activity(run_activity))
        assert result.valid is True
        assert result.errors == []
        assert result.sanitized is not None

    def test_missing_type_and_sport_type(self):
        result = validate_activity(RawActivity(distance=1000, moving_time=300))
        assert result.valid is False
        assert "type is required" in result.errors
        assert "sport_type is required" in result.errors
        assert result.sanitized is None

    def test_blank_type_counts_as_missing(self):
        result = validate_activity(RawActivity(type="   ", sport_type="Run"))
        assert "type is required" in result.errors

    def test_all_errors_reported_together(self):
        result = validate_activity(RawActivity(distance=-5, moving_time=-1))
        assert len(result.errors) == 4

    def test_zero_distance_rejected(self):
        result = validate_activity(RawActivity(type="Run", sport_type="Run", distance=0))
        assert "distance must be positive" in result.errors

    def test_zero_moving_time_with_distance(self):
        result = validate_activity(
            RawActivity(type="Run", sport_type="Run", distance=1000, moving_time=0)
        )
        assert result.errors == ["pace must be positive"]

    def test_negative_elevation_clamped(self):
        result = validate_activity(
            RawActivity(type="Run", sport_type="Run", total_elevation_gain=-12)
        )
        assert result.valid is True
        assert result.sanitized.total_elevation_gain == 0
        assert len(result.warnings) == 1

    def test_negative_power_cleared(self):
        result = validate_activity(
            RawActivity(type="Ride", sport_type="Ride", average_watts=-50)
        )
        assert result.valid is True
        assert result.sanitized.average_watts is None

    def test_implausible_heart_rate_cleared(self):
        result = validate_activity(
            RawActivity(type="Run", sport_type="Run", average_heartrate=260)
        )
        assert result.valid is True
        assert result.sanitized.average_heartrate is None
        assert result.warnings

    def test_implausible_run_pace_warns(self):
        result = validate_activity(
            RawActivity(type="Run", sport_type="Run", distance=10000, moving_time=600)
        )
        assert result.valid is True
        assert any("implausibly fast" in w for w in result.warnings)

    def test_fast_ride_does_not_warn(self):
        result = validate_activity(
            RawActivity(type="Ride", sport_type="Ride", distance=10000, moving_time=600)
        )
        assert result.warnings == []

    def test_original_not_mutated(self):
        activity = RawActivity(type="Run", sport_type="Run", total_elevation_gain=-3)
        validate_activity(activity)
        assert activity.total_elevation_gain == -3


class TestValidateSignals:
    """Tests for signal re-validation and sanitization."""

    def test_valid_mapping(self):
        result = validate_signals(_signals(tags=["race"], brands=["Nike Pegasus 40"]))
        assert result.valid is True
        assert isinstance(result.sanitized, Signals)

    def test_valid_model_returned_unchanged(self):
        signals = Signals.model_validate(_signals())
        result = validate_signals(signals)
        assert result.valid is True
        assert result.sanitized is signals

    def test_bad_enum_value(self):
        result = validate_signals(_signals(intensity="extreme"))
        assert result.valid is False
        assert any(e.startswith("intensity") for e in result.errors)
        assert result.sanitized is None

    def test_bad_weather_is_dropped(self):
        result = validate_signals(_signals(weather="snowy"))
        assert result.valid is False
        assert result.sanitized is not None
        assert result.sanitized.weather is None

    def test_empty_activity_type(self):
        result = validate_signals(_signals(activity_type=""))
        assert result.valid is False
        assert result.sanitized is None

    def test_flagged_activity_type_cannot_be_repaired(self):
        result = validate_signals(_signals(activity_type="War"))
        assert result.valid is False
        assert result.sanitized is None

    def test_flagged_brand_dropped(self):
        result = validate_signals(_signals(brands=["Nike", "Army Surplus"]))
        assert result.valid is False
        assert result.sanitized.brands == ["Nike"]

    def test_unknown_tag_dropped(self):
        result = validate_signals(_signals(tags=["race", "personal best"]))
        assert result.valid is False
        assert result.sanitized.tags == ["race"]

    def test_non_string_entries_dropped(self):
        result = validate_signals(_signals(semantic_context=["park", 7]))
        assert result.valid is False
        assert result.sanitized.semantic_context == ["park"]

    def test_emptied_optional_list_becomes_none(self):
        result = validate_signals(_signals(brands=["Ms. Rachel signature edition"]))
        assert result.sanitized.brands is None


class TestSignalExtractor:
    """Tests for the end-to-end extraction."""

    def test_run_signals(self, run_activity):
        signals = extract_signals(run_activity)
        assert signals.activity_type == "Run"
        assert signals.intensity == Intensity.MEDIUM
        assert signals.elevation == Elevation.ROLLING
        assert signals.time_of_day == TimeOfDay.MORNING
        assert signals.weather is None
        assert signals.tags == []
        assert signals.brands == ["Nike Pegasus 40 Daily"]
        assert signals.semantic_context == ["trail", "park"]

    def test_ride_signals(self, ride_activity):
        signals = extract_signals(ride_activity)
        assert signals.intensity == Intensity.HIGH
        assert signals.elevation == Elevation.MOUNTAINOUS
        assert signals.time_of_day == TimeOfDay.EVENING
        assert signals.brands is None
        assert signals.semantic_context is None

    def test_deterministic(self, run_activity):
        assert extract_signals(run_activity) == extract_signals(run_activity)

    def test_invalid_activity_raises(self):
        with pytest.raises(ActivityValidationError) as exc_info:
            extract_signals({"name": "No type"})
        assert "type is required" in exc_info.value.errors
        assert str(exc_info.value).startswith("Invalid activity:")

    def test_unencodable_name_does_not_reject_activity(self):
        signals = extract_signals(
            {"type": "Run", "sport_type": "Run", "name": "Morning \ud800 run"}
        )
        assert signals.activity_type == "Run"
        assert signals.semantic_context is None

    def test_non_string_tag_does_not_reject_activity(self):
        signals = extract_signals({"type": "Run", "sport_type": "Run", "tags": ["race", 7]})
        assert signals.tags == ["race"]

    def test_flagged_gear_dropped(self, run_activity):
        run_activity["gear"] = {"name": "Combat boots"}
        signals = extract_signals(run_activity)
        assert signals.brands is None

    def test_flagged_activity_type_raises(self, run_activity):
        run_activity["type"] = "Battle"
        with pytest.raises(SignalValidationError):
            extract_signals(run_activity)

    def test_options_are_applied(self, run_activity):
        extractor = SignalExtractor(PipelineOptions(elevation_mountainous_threshold=100))
        assert extractor.extract(run_activity).elevation == Elevation.MOUNTAINOUS

    def test_warnings_logged(self, run_activity, caplog):
        run_activity["average_heartrate"] = 15
        with caplog.at_level("WARNING"):
            extract_signals(run_activity)
        assert "average_heartrate" in caplog.text
