from typing import List

from pydantic import BaseModel, Field

from schemas.prompt import GenerationResult, ImagePrompt
from schemas.signals import Signals


class ActivityPromptResponse(BaseModel):
    """Dry-run result: signals and the prompt that would be sent"""

    signals: Signals
    prompt: ImagePrompt


class ActivityImageResponse(BaseModel):
    """Full generation result"""

    signals: Signals
    prompt: ImagePrompt
    image: GenerationResult


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: List[str] = Field(default_factory=list)
