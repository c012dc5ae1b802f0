from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Elevation(str, Enum):
    FLAT = "flat"
    ROLLING = "rolling"
    MOUNTAINOUS = "mountainous"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    DAY = "day"
    EVENING = "evening"
    NIGHT = "night"


class Weather(str, Enum):
    SUNNY = "sunny"
    RAINY = "rainy"
    CLOUDY = "cloudy"
    FOGGY = "foggy"


# Closed tag vocabulary; anything else is dropped during extraction.
KNOWN_TAGS: tuple[str, ...] = (
    "recovery",
    "race",
    "commute",
    "with kid",
    "long run",
    "easy",
    "workout",
)


class Signals(BaseModel):
    """Discrete classifications derived from one activity."""

    activity_type: str = Field(..., min_length=1)
    intensity: Intensity
    elevation: Elevation
    time_of_day: TimeOfDay
    weather: Optional[Weather] = None
    tags: List[str] = Field(default_factory=list)
    brands: Optional[List[str]] = None
    semantic_context: Optional[List[str]] = None

    model_config = {"frozen": True}
