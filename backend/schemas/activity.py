import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from schemas.validators import normalize_optional_text

logger = logging.getLogger(__name__)


def _clean_text(value, field_name: str):
    try:
        return normalize_optional_text(value)
    except ValueError as e:
        logger.warning("Dropping activity field %s: %s", field_name, e)
        return None


class ActivityGear(BaseModel):
    """Gear attached to an activity (shoes, bike)."""

    name: Optional[str] = None
    nickname: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("name", "nickname", mode="before")
    @classmethod
    def normalize_text(cls, v, info):
        return _clean_text(v, f"gear.{info.field_name}")


class RawActivity(BaseModel):
    """
    Activity record as delivered by the tracking service.

    Everything is optional and untrusted: range rules live in the signal
    extractor so that a single bad value is reported together with every
    other violation instead of failing model parsing early.
    """

    id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    sport_type: Optional[str] = None

    distance: Optional[float] = Field(None, description="Distance in meters")
    moving_time: Optional[float] = Field(None, description="Moving time in seconds")
    elapsed_time: Optional[float] = None
    total_elevation_gain: Optional[float] = Field(
        None, description="Elevation gain in meters"
    )
    average_speed: Optional[float] = None
    average_watts: Optional[float] = None
    weighted_average_watts: Optional[float] = None
    average_heartrate: Optional[float] = None

    # Timestamps stay as text; a malformed value only degrades time of day.
    start_date: Optional[str] = None
    start_date_local: Optional[str] = None

    commute: Optional[bool] = None
    trainer: Optional[bool] = None
    workout_type: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    gear: Optional[ActivityGear] = None

    model_config = {"extra": "ignore"}

    @field_validator("name", "description", "type", "sport_type", mode="before")
    @classmethod
    def normalize_text(cls, v, info):
        return _clean_text(v, info.field_name)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        # Non-string entries are dropped here; vocabulary filtering happens later.
        if not isinstance(v, (list, tuple)):
            return []
        return [tag for tag in v if isinstance(tag, str)]
