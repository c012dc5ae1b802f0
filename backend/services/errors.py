"""Error taxonomy for the activity image pipeline."""

from typing import Optional, Sequence


class ImagePipelineError(Exception):
    """Base class for pipeline failures surfaced to callers."""


class ActivityValidationError(ImagePipelineError):
    """Raw activity is structurally invalid and cannot be classified."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("Invalid activity: " + "; ".join(self.errors))


class SignalValidationError(ImagePipelineError):
    """Extracted signals are invalid and sanitization could not repair them."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("Invalid signals: " + "; ".join(self.errors))


class PromptLengthError(ImagePipelineError):
    def __init__(self, length: int, max_length: int):
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"Prompt length {length} exceeds maximum of {max_length} characters"
        )


class ProviderError(ImagePipelineError):
    """Image generation call failed (network error, non-2xx, unusable payload)."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)
