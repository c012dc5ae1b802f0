from .activity import ActivityGear, RawActivity
from .generate import ActivityImageResponse, ActivityPromptResponse, ValidationErrorResponse
from .prompt import GenerationResult, ImagePrompt, Style
from .signals import KNOWN_TAGS, Elevation, Intensity, Signals, TimeOfDay, Weather

__all__ = [
    "ActivityGear",
    "RawActivity",
    "ActivityImageResponse",
    "ActivityPromptResponse",
    "ValidationErrorResponse",
    "GenerationResult",
    "ImagePrompt",
    "Style",
    "KNOWN_TAGS",
    "Elevation",
    "Intensity",
    "Signals",
    "TimeOfDay",
    "Weather",
]
