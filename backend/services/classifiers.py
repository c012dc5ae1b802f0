"""
Pure classifiers mapping a raw activity to discrete signals.

Each function is total and deterministic: missing or unusable data falls
back to a neutral label instead of raising.
"""

import re
from datetime import datetime
from typing import Iterable, List, Optional

from config import PipelineOptions
from schemas.activity import RawActivity
from schemas.signals import KNOWN_TAGS, Elevation, Intensity, TimeOfDay, Weather
from services.content_guard import sanitize_text

DEFAULT_OPTIONS = PipelineOptions()

# Strava workout_type codes (run: 1 race, 2 long run, 3 workout; ride: 11 race, 12 workout)
WORKOUT_TYPE_TAGS: dict[int, str] = {
    1: "race",
    2: "long run",
    3: "workout",
    11: "race",
    12: "workout",
}

SAFE_CONTEXT_KEYWORDS: tuple[str, ...] = (
    "trail",
    "road",
    "track",
    "indoor",
    "outdoor",
    "park",
    "beach",
    "mountain",
    "hill",
)


def compute_pace(activity: RawActivity) -> Optional[float]:
    """Pace in seconds per kilometre, or None when it cannot be derived."""
    distance = activity.distance
    moving_time = activity.moving_time
    if distance is None or moving_time is None:
        return None
    if distance <= 0 or moving_time <= 0:
        return None
    return moving_time / (distance / 1000)


def _classify_power(watts: Optional[float], options: PipelineOptions) -> Optional[Intensity]:
    if watts is None:
        return None
    if watts > options.power_high_threshold:
        return Intensity.HIGH
    if watts < options.power_low_threshold:
        return Intensity.LOW
    return None


def classify_intensity(
    activity: RawActivity, options: PipelineOptions = DEFAULT_OPTIONS
) -> Intensity:
    pace = compute_pace(activity)
    if pace is not None:
        if pace >= options.pace_low_threshold:
            return Intensity.LOW
        if pace <= options.pace_high_threshold:
            return Intensity.HIGH

    for watts in (activity.average_watts, activity.weighted_average_watts):
        by_power = _classify_power(watts, options)
        if by_power is not None:
            return by_power

    return Intensity.MEDIUM


def classify_elevation(
    activity: RawActivity, options: PipelineOptions = DEFAULT_OPTIONS
) -> Elevation:
    gain = activity.total_elevation_gain
    if gain is None or gain < options.elevation_rolling_threshold:
        return Elevation.FLAT
    if gain >= options.elevation_mountainous_threshold:
        return Elevation.MOUNTAINOUS
    return Elevation.ROLLING


def _parse_hour(timestamp: Optional[str]) -> Optional[int]:
    if not timestamp:
        return None
    value = timestamp.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value).hour
    except ValueError:
        return None


def classify_time_of_day(
    activity: RawActivity, options: PipelineOptions = DEFAULT_OPTIONS
) -> TimeOfDay:
    """
    Bucket the start hour into a time of day.

    The local timestamp is preferred; its wall-clock hour is read as written,
    since the tracking service marks local times with a nominal "Z" suffix.
    """
    hour = _parse_hour(activity.start_date_local)
    if hour is None:
        hour = _parse_hour(activity.start_date)
    if hour is None:
        return TimeOfDay.DAY

    if options.morning_start_hour <= hour < options.day_start_hour:
        return TimeOfDay.MORNING
    if options.day_start_hour <= hour < options.evening_start_hour:
        return TimeOfDay.DAY
    if options.evening_start_hour <= hour < options.night_start_hour:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def extract_weather(activity: RawActivity) -> Optional[Weather]:
    # No weather source is wired in yet.
    return None


def _normalize_tag(tag: str) -> str:
    return re.sub(r"\s+", " ", tag.strip().lower())


def _dedupe(values: Iterable[str]) -> List[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def extract_tags(activity: RawActivity) -> List[str]:
    """Known-vocabulary tags only; unknown raw tags are never passed through."""
    candidates: list[str] = [
        _normalize_tag(tag) for tag in activity.tags if isinstance(tag, str)
    ]
    if activity.commute is True:
        candidates.append("commute")
    if activity.workout_type in WORKOUT_TYPE_TAGS:
        candidates.append(WORKOUT_TYPE_TAGS[activity.workout_type])

    return _dedupe(tag for tag in candidates if tag in KNOWN_TAGS)


def extract_semantic_context(activity: RawActivity) -> List[str]:
    """
    Safe scene keywords found in the activity name and description.

    User text goes through the content guard first and is never copied
    verbatim; only keywords from a fixed list are emitted.
    """
    keywords: list[str] = []
    for text in (activity.name, activity.description):
        sanitized = sanitize_text(text).lower()
        if not sanitized:
            continue
        for keyword in SAFE_CONTEXT_KEYWORDS:
            if re.search(rf"\b{keyword}s?\b", sanitized):
                keywords.append(keyword)
    return _dedupe(keywords)


def extract_brands(activity: RawActivity) -> Optional[List[str]]:
    gear = activity.gear
    if gear is None:
        return None
    parts = [p for p in (gear.name, gear.nickname) if p and p.strip()]
    if not parts:
        return None
    return [re.sub(r"\s+", " ", " ".join(parts).strip())]
