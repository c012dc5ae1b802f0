"""
Pollinations.ai image provider.

Free, no authentication required (an optional token lifts rate limits).
The image is returned directly as the response body of a GET request.
"""

import logging
import random
from typing import Optional
from urllib.parse import quote

import httpx

from services.errors import ProviderError
from services.providers.base import ImageResult

logger = logging.getLogger(__name__)

PROMPT_ENHANCER = "high quality digital illustration, clean composition, vibrant colors"

# Steers the model away from common anatomy and quality defects.
NEGATIVE_PROMPT = (
    "distorted faces, extra limbs, malformed hands, blurry, low quality, pixelated, "
    "deformed, disfigured, bad anatomy, bad proportions, extra fingers, missing fingers, "
    "mutated hands, poorly drawn hands, poorly drawn face, cloned face, gross proportions, "
    "malformed limbs, missing arms, missing legs, extra arms, extra legs, out of focus, "
    "long neck, long body"
)


class PollinationsProvider:
    name = "pollinations"

    def __init__(
        self,
        *,
        base_url: str = "https://image.pollinations.ai",
        model: str = "flux",
        width: int = 1024,
        height: int = 1024,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.width = width
        self.height = height
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    def build_url(self, prompt_text: str) -> str:
        enhanced = f"{PROMPT_ENHANCER}, {prompt_text}"
        return f"{self.base_url}/prompt/{quote(enhanced, safe='')}"

    def build_params(self) -> dict[str, str]:
        # A random seed defeats the CDN cache so retries produce new images.
        return {
            "width": str(self.width),
            "height": str(self.height),
            "model": self.model,
            "nologo": "true",
            "enhance": "true",
            "negative": NEGATIVE_PROMPT,
            "seed": str(random.randint(0, 999_999)),
        }

    async def generate(self, prompt_text: str) -> ImageResult:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        url = self.build_url(prompt_text)
        logger.debug("Requesting Pollinations image: %s...", prompt_text[:80])

        client = self._client or httpx.AsyncClient(follow_redirects=True)
        try:
            response = await client.get(
                url, params=self.build_params(), headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"Pollinations request timed out after {self.timeout}s", provider=self.name
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Pollinations request failed: {e}", provider=self.name) from e
        finally:
            if self._client is None:
                await client.aclose()

        if response.is_error:
            raise ProviderError(
                f"Pollinations API error: {response.status_code} {response.reason_phrase}",
                provider=self.name,
                status_code=response.status_code,
            )

        return ImageResult(data=response.content, mime_type=response.headers.get("content-type"))
