"""
Retry/fallback state machine around an image provider.

One request walks ATTEMPTING(0..max_retries) with a progressively
simplified prompt, then FALLBACK_ATTEMPTING with a fixed safe prompt.
Retries are immediate: no backoff, no jitter, no core timeout. The only
error that reaches the caller is the fallback call's own failure.
"""

import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from config import PipelineOptions
from schemas.prompt import GenerationResult, ImagePrompt
from services.errors import PromptLengthError, ProviderError
from services.fallback_prompt import get_fallback_prompt, simplify_prompt
from services.image_validation import (
    parse_data_url,
    to_data_url,
    validate_generated_image_payload,
)
from services.providers.base import ImageProvider, ImageResult, download_image

logger = logging.getLogger(__name__)


class GenerationState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FALLBACK_ATTEMPTING = "fallback_attempting"
    FALLBACK_SUCCEEDED = "fallback_succeeded"
    FAILED = "failed"


ProgressCallback = Callable[[GenerationState, int], Union[Awaitable[None], None]]
Downloader = Callable[[str], Awaitable[tuple[bytes, Optional[str]]]]


class GenerationOrchestrator:
    """Drives one provider through retries and the fallback prompt."""

    def __init__(
        self,
        provider: ImageProvider,
        options: Optional[PipelineOptions] = None,
        downloader: Optional[Downloader] = None,
    ):
        self.provider = provider
        self.options = options or PipelineOptions()
        self.downloader = downloader or download_image

    async def _transition(
        self,
        state: GenerationState,
        attempt: int,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        logger.debug("Generation state -> %s (attempt %s)", state.value, attempt)
        if progress_callback is None:
            return
        outcome = progress_callback(state, attempt)
        if inspect.isawaitable(outcome):
            await outcome

    async def resolve_image(self, result: ImageResult) -> str:
        """Turn provider output into an inline data URL, downloading if needed."""
        if result.data is not None:
            info = validate_generated_image_payload(result.data, result.mime_type)
            return to_data_url(result.data, info.mime_type)

        url = (result.url or "").strip()
        if url.startswith("data:"):
            _, content = parse_data_url(url)
            info = validate_generated_image_payload(content)
            return to_data_url(content, info.mime_type)
        if url.startswith(("http://", "https://")):
            content, content_type = await self.downloader(url)
            info = validate_generated_image_payload(content, content_type)
            return to_data_url(content, info.mime_type)

        raise ProviderError(
            "Provider returned neither image bytes nor a usable URL",
            provider=getattr(self.provider, "name", None),
        )

    async def _attempt(self, prompt_text: str) -> str:
        result = await self.provider.generate(prompt_text)
        return await self.resolve_image(result)

    async def generate(
        self,
        prompt: ImagePrompt,
        activity_type: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> GenerationResult:
        max_length = self.options.max_prompt_length
        max_retries = self.options.max_retries
        provider_name = getattr(self.provider, "name", "provider")

        if len(prompt.text) > max_length:
            raise PromptLengthError(len(prompt.text), max_length)

        current = prompt
        last_attempt = 0
        for attempt in range(max_retries + 1):
            last_attempt = attempt
            await self._transition(GenerationState.ATTEMPTING, attempt, progress_callback)
            try:
                image_data = await self._attempt(current.text)
            except Exception as e:
                logger.warning(
                    "Image generation via %s failed (attempt %s/%s): %s",
                    provider_name,
                    attempt + 1,
                    max_retries + 1,
                    e,
                )
                if attempt == max_retries:
                    continue
                simpler = simplify_prompt(current, max_length)
                if simpler is current:
                    # Never resend an identical prompt
                    logger.warning(
                        "Prompt cannot be simplified further; skipping %s remaining retries",
                        max_retries - attempt,
                    )
                    break
                current = simpler
                continue

            await self._transition(GenerationState.SUCCEEDED, attempt, progress_callback)
            return GenerationResult(image_data=image_data, fallback=False, attempts=attempt)

        fallback = get_fallback_prompt(activity_type, max_length)
        if len(fallback.text) > max_length:
            raise PromptLengthError(len(fallback.text), max_length)

        logger.warning(
            "Retries exhausted for %s; trying fallback prompt: %s",
            activity_type,
            fallback.text,
        )
        await self._transition(
            GenerationState.FALLBACK_ATTEMPTING, last_attempt, progress_callback
        )
        try:
            image_data = await self._attempt(fallback.text)
        except Exception as e:
            logger.error("Fallback generation via %s failed: %s", provider_name, e)
            await self._transition(GenerationState.FAILED, last_attempt, progress_callback)
            raise

        await self._transition(
            GenerationState.FALLBACK_SUCCEEDED, last_attempt, progress_callback
        )
        return GenerationResult(image_data=image_data, fallback=True, attempts=last_attempt)
