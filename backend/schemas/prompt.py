from enum import Enum

from pydantic import BaseModel, Field


class Style(str, Enum):
    CARTOON = "cartoon"
    MINIMAL = "minimal"
    ABSTRACT = "abstract"
    ILLUSTRATED = "illustrated"


class ImagePrompt(BaseModel):
    """
    Prompt sent to the image provider.

    `text` is always the canonical assembly
    "{style} style, {subject}, {mood} mood, {scene}" (scene possibly truncated or
    simplified down to empty).
    Simplified variants are rebuilt, never mutated.
    """

    style: Style
    mood: str
    subject: str
    scene: str
    text: str

    model_config = {"frozen": True}


class GenerationResult(BaseModel):
    """Outcome of one orchestrated generation."""

    image_data: str = Field(..., description="Inline data URL of the generated image")
    fallback: bool = False
    attempts: int = Field(0, ge=0)

    model_config = {"frozen": True}
