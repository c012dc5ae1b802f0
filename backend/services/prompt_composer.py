"""
Deterministic prompt composition from activity signals.

Prompt text is always "{style} style, {subject}, {mood} mood, {scene}".
When that exceeds the length limit the scene alone is truncated.
"""

import logging
from typing import Optional, Union

from config import PipelineOptions
from schemas.prompt import ImagePrompt, Style
from schemas.signals import Elevation, Intensity, Signals, TimeOfDay, Weather
from services.errors import PromptLengthError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PROMPT_LENGTH = 600
TRUNCATION_SUFFIX = "..."

HIGH_INTENSITY_ACTIVITIES = frozenset({"Run", "Ride", "TrailRun"})

SUBJECTS: dict[str, str] = {
    "Run": "runner",
    "Ride": "cyclist",
    "TrailRun": "trail runner",
    "Walk": "walker",
    "Hike": "hiker",
    "Swim": "swimmer",
    "VirtualRide": "cyclist",
    "VirtualRun": "runner",
    "Other": "athlete",
}
DEFAULT_SUBJECT = "athlete"

TERRAIN: dict[Elevation, str] = {
    Elevation.MOUNTAINOUS: "mountainous terrain",
    Elevation.ROLLING: "rolling hills",
    Elevation.FLAT: "flat terrain",
}

ATMOSPHERE: dict[TimeOfDay, str] = {
    TimeOfDay.MORNING: "soft morning light",
    TimeOfDay.DAY: "bright daylight",
    TimeOfDay.EVENING: "warm evening glow",
    TimeOfDay.NIGHT: "dark night atmosphere",
}

# Tag moods in priority order; tags always outrank weather and intensity.
TAG_MOODS: tuple[tuple[str, str], ...] = (
    ("recovery", "calm"),
    ("race", "intense"),
    ("commute", "routine"),
    ("with kid", "playful"),
)

WEATHER_MOODS: dict[Weather, str] = {
    Weather.SUNNY: "energetic",
    Weather.RAINY: "contemplative",
    Weather.FOGGY: "mysterious",
}

INTENSITY_MOODS: dict[Intensity, str] = {
    Intensity.LOW: "calm",
    Intensity.HIGH: "intense",
    Intensity.MEDIUM: "focused",
}

DEFAULT_MOOD = "focused"


def select_style(signals: Signals) -> Style:
    """First matching rule wins: recovery tags, mountains, hard efforts, cartoon."""
    if "recovery" in signals.tags or "easy" in signals.tags:
        return Style.MINIMAL
    if signals.elevation == Elevation.MOUNTAINOUS:
        return Style.ILLUSTRATED
    if (
        signals.intensity == Intensity.HIGH
        and signals.activity_type in HIGH_INTENSITY_ACTIVITIES
    ):
        return Style.ILLUSTRATED
    return Style.CARTOON


def select_mood(signals: Signals) -> str:
    for tag, mood in TAG_MOODS:
        if tag in signals.tags:
            return mood
    if signals.weather in WEATHER_MOODS:
        return WEATHER_MOODS[signals.weather]
    return INTENSITY_MOODS.get(signals.intensity, DEFAULT_MOOD)


def compose_scene(signals: Signals) -> tuple[str, str]:
    """Return (subject, scene); scene is environment, terrain, atmosphere."""
    subject = SUBJECTS.get(signals.activity_type, DEFAULT_SUBJECT)
    if "virtual" in signals.activity_type.lower():
        environment = "indoor training space"
    else:
        environment = "outdoor training space"
    scene = ", ".join(
        [
            environment,
            TERRAIN.get(signals.elevation, "flat terrain"),
            ATMOSPHERE.get(signals.time_of_day, "soft neutral light"),
        ]
    )
    return subject, scene


def _style_value(style: Union[Style, str]) -> str:
    return Style(style).value


def _prompt_prefix(style: Union[Style, str], subject: str, mood: str) -> str:
    return f"{_style_value(style)} style, {subject}, {mood} mood, "


def canonical_prompt_text(
    style: Union[Style, str], subject: str, mood: str, scene: str
) -> str:
    return _prompt_prefix(style, subject, mood) + scene


def fit_scene(
    style: Union[Style, str],
    mood: str,
    subject: str,
    scene: str,
    max_length: int = DEFAULT_MAX_PROMPT_LENGTH,
) -> str:
    """
    Return the scene, truncated with "..." if the full text would be too long.

    Style, subject and mood are never shortened. The kept part of the scene
    is clamped at zero characters.
    """
    prefix = _prompt_prefix(style, subject, mood)
    if len(prefix) + len(scene) <= max_length:
        return scene
    keep = max(0, max_length - len(prefix) - len(TRUNCATION_SUFFIX))
    return scene[:keep] + TRUNCATION_SUFFIX


def assemble_prompt(
    style: Union[Style, str],
    mood: str,
    subject: str,
    scene: str,
    max_length: int = DEFAULT_MAX_PROMPT_LENGTH,
) -> str:
    scene = fit_scene(style, mood, subject, scene, max_length)
    text = canonical_prompt_text(style, subject, mood, scene)
    if len(text) > max_length:
        raise PromptLengthError(len(text), max_length)
    return text


def truncate_prompt(
    prompt: ImagePrompt, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> ImagePrompt:
    """Fit an existing prompt to the limit; a prompt that already fits is returned as is."""
    if len(prompt.text) <= max_length:
        return prompt
    scene = fit_scene(prompt.style, prompt.mood, prompt.subject, prompt.scene, max_length)
    text = assemble_prompt(prompt.style, prompt.mood, prompt.subject, scene, max_length)
    return prompt.model_copy(update={"scene": scene, "text": text})


def build_prompt(
    style: Union[Style, str],
    mood: str,
    subject: str,
    scene: str,
    max_length: int = DEFAULT_MAX_PROMPT_LENGTH,
) -> ImagePrompt:
    fitted = fit_scene(style, mood, subject, scene, max_length)
    return ImagePrompt(
        style=Style(style),
        mood=mood,
        subject=subject,
        scene=fitted,
        text=assemble_prompt(style, mood, subject, fitted, max_length),
    )


def compose_prompt(
    signals: Signals, options: Optional[PipelineOptions] = None
) -> ImagePrompt:
    """Compose the prompt for a set of signals and run it through the validator."""
    from services.prompt_validator import ensure_valid_prompt

    max_length = options.max_prompt_length if options else DEFAULT_MAX_PROMPT_LENGTH
    style = select_style(signals)
    mood = select_mood(signals)
    subject, scene = compose_scene(signals)
    prompt = build_prompt(style, mood, subject, scene, max_length)
    logger.debug("Composed prompt for %s: %s", signals.activity_type, prompt.text)
    return ensure_valid_prompt(prompt, max_length)
