"""
Signal extraction: validate a raw activity, classify it, validate the result.

Structural problems (missing type, non-positive distance) are fatal and
reported together. Repairable values are fixed on a sanitized copy with a
warning. Forbidden content in derived text never fails extraction; the
offending entries are dropped from the signals instead.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from config import PipelineOptions
from schemas.activity import RawActivity
from schemas.signals import KNOWN_TAGS, Elevation, Intensity, Signals, TimeOfDay, Weather
from services.classifiers import (
    DEFAULT_OPTIONS,
    classify_elevation,
    classify_intensity,
    classify_time_of_day,
    compute_pace,
    extract_brands,
    extract_semantic_context,
    extract_tags,
    extract_weather,
)
from services.content_guard import check_forbidden_content
from services.errors import ActivityValidationError, SignalValidationError

logger = logging.getLogger(__name__)

MIN_HEART_RATE = 40
MAX_HEART_RATE = 220
# Faster than 2:00/km is not a plausible running pace.
MIN_PLAUSIBLE_RUN_PACE = 120
RUN_TYPES = frozenset({"Run", "TrailRun", "VirtualRun"})


@dataclass
class ActivityValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    sanitized: Optional[RawActivity] = None


@dataclass
class SignalValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    sanitized: Optional[Signals] = None


def _format_pydantic_errors(exc: ValidationError) -> List[str]:
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "activity"
        errors.append(f"{location}: {err.get('msg', 'invalid value')}")
    return errors


def parse_activity(raw: Union[RawActivity, Mapping[str, Any]]) -> RawActivity:
    """Coerce a mapping into RawActivity, reporting type errors as validation errors."""
    if isinstance(raw, RawActivity):
        return raw
    if not isinstance(raw, Mapping):
        raise ActivityValidationError(["activity must be an object"])
    try:
        return RawActivity.model_validate(dict(raw))
    except ValidationError as e:
        raise ActivityValidationError(_format_pydantic_errors(e)) from e


def validate_activity(activity: RawActivity) -> ActivityValidationResult:
    """
    Check required fields and value ranges.

    Returns every violated rule at once. `sanitized` is only set for valid
    activities and carries the repaired values.
    """
    errors: list[str] = []
    warnings: list[str] = []
    updates: dict[str, Any] = {}

    if not activity.type:
        errors.append("type is required")
    if not activity.sport_type:
        errors.append("sport_type is required")

    if activity.distance is not None and activity.distance <= 0:
        errors.append("distance must be positive")
    if activity.moving_time is not None and activity.moving_time < 0:
        errors.append("moving_time must not be negative")
    if (
        activity.distance is not None
        and activity.distance > 0
        and activity.moving_time is not None
        and activity.moving_time == 0
    ):
        errors.append("pace must be positive")

    gain = activity.total_elevation_gain
    if gain is not None and gain < 0:
        warnings.append(f"total_elevation_gain {gain} is negative; clamped to 0")
        updates["total_elevation_gain"] = 0.0

    for power_field in ("average_watts", "weighted_average_watts"):
        watts = getattr(activity, power_field)
        if watts is not None and watts < 0:
            warnings.append(f"{power_field} {watts} is negative; ignored")
            updates[power_field] = None

    heart_rate = activity.average_heartrate
    if heart_rate is not None and not (MIN_HEART_RATE <= heart_rate <= MAX_HEART_RATE):
        warnings.append(
            f"average_heartrate {heart_rate} outside {MIN_HEART_RATE}-{MAX_HEART_RATE}; ignored"
        )
        updates["average_heartrate"] = None

    pace = compute_pace(activity)
    if (
        pace is not None
        and activity.type in RUN_TYPES
        and pace < MIN_PLAUSIBLE_RUN_PACE
    ):
        warnings.append(f"pace {pace:.0f} s/km is implausibly fast for a run")

    if errors:
        return ActivityValidationResult(valid=False, errors=errors, warnings=warnings)

    sanitized = activity.model_copy(update=updates) if updates else activity
    return ActivityValidationResult(
        valid=True, errors=[], warnings=warnings, sanitized=sanitized
    )


def _enum_values(enum_cls) -> set[str]:
    return {member.value for member in enum_cls}


def _as_plain(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _check_string_list(
    name: str,
    value: Any,
    errors: list[str],
    allowed: Optional[tuple[str, ...]] = None,
) -> Optional[List[str]]:
    """Validate a list of strings; returns the cleaned list for sanitization."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        errors.append(f"{name} must be a list of strings")
        return []
    cleaned = []
    for item in value:
        if not isinstance(item, str):
            errors.append(f"{name} contains a non-string entry")
            continue
        if allowed is not None and item not in allowed:
            errors.append(f"{name} contains unknown value {item!r}")
            continue
        if check_forbidden_content(item):
            errors.append(f"{name} contains forbidden content")
            continue
        cleaned.append(item)
    return cleaned


def validate_signals(signals: Union[Signals, Mapping[str, Any]]) -> SignalValidationResult:
    """
    Re-validate extracted signals.

    Enum membership and list typing are checked, and every free-text-derived
    entry is scanned for forbidden content. When the signals are invalid a
    sanitized copy is produced by dropping offending entries; it is only
    returned if it validates cleanly.
    """
    data = signals.model_dump() if isinstance(signals, Signals) else dict(signals)
    errors: list[str] = []
    sanitized = dict(data)

    activity_type = data.get("activity_type")
    if not isinstance(activity_type, str) or not activity_type.strip():
        errors.append("activity_type must be a non-empty string")
    elif check_forbidden_content(activity_type):
        errors.append("activity_type contains forbidden content")
        sanitized["activity_type"] = None

    for name, enum_cls in (
        ("intensity", Intensity),
        ("elevation", Elevation),
        ("time_of_day", TimeOfDay),
    ):
        if _as_plain(data.get(name)) not in _enum_values(enum_cls):
            errors.append(f"{name} must be one of {sorted(_enum_values(enum_cls))}")

    weather = data.get("weather")
    if weather is not None and _as_plain(weather) not in _enum_values(Weather):
        errors.append(f"weather must be one of {sorted(_enum_values(Weather))}")
        sanitized["weather"] = None

    tags = _check_string_list("tags", data.get("tags", []), errors, allowed=KNOWN_TAGS)
    sanitized["tags"] = tags or []
    sanitized["brands"] = _check_string_list("brands", data.get("brands"), errors) or None
    sanitized["semantic_context"] = (
        _check_string_list("semantic_context", data.get("semantic_context"), errors)
        or None
    )

    if not errors:
        if isinstance(signals, Signals):
            return SignalValidationResult(valid=True, sanitized=signals)
        return SignalValidationResult(valid=True, sanitized=Signals.model_validate(data))

    try:
        repaired = Signals.model_validate(sanitized)
    except ValidationError:
        return SignalValidationResult(valid=False, errors=errors)
    return SignalValidationResult(valid=False, errors=errors, sanitized=repaired)


class SignalExtractor:
    """Turns raw activities into validated signals using injected thresholds."""

    def __init__(self, options: Optional[PipelineOptions] = None):
        self.options = options or DEFAULT_OPTIONS

    def build_signals(self, activity: RawActivity) -> Signals:
        return Signals(
            activity_type=activity.type,
            intensity=classify_intensity(activity, self.options),
            elevation=classify_elevation(activity, self.options),
            time_of_day=classify_time_of_day(activity, self.options),
            weather=extract_weather(activity),
            tags=extract_tags(activity),
            brands=extract_brands(activity),
            semantic_context=extract_semantic_context(activity) or None,
        )

    def extract(self, raw: Union[RawActivity, Mapping[str, Any]]) -> Signals:
        activity = parse_activity(raw)
        result = validate_activity(activity)
        for warning in result.warnings:
            logger.warning("Activity %s: %s", activity.id, warning)
        if not result.valid:
            raise ActivityValidationError(result.errors)

        signals = self.build_signals(result.sanitized)
        checked = validate_signals(signals)
        if checked.valid:
            return checked.sanitized
        if checked.sanitized is None:
            raise SignalValidationError(checked.errors)

        logger.warning(
            "Sanitized signals for activity %s: %s",
            activity.id,
            "; ".join(checked.errors),
        )
        return checked.sanitized


def extract_signals(
    raw: Union[RawActivity, Mapping[str, Any]],
    options: Optional[PipelineOptions] = None,
) -> Signals:
    return SignalExtractor(options).extract(raw)
