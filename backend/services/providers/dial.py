"""
EPAM DIAL image provider (DALL-E 3 behind an OpenAI-compatible proxy).

The chat-completions response carries the image as an attachment URL in
DIAL storage; the image is then downloaded with the same API key.
"""

import logging
from typing import Any, Optional

import httpx

from services.errors import ProviderError
from services.providers.base import ImageResult, download_image

logger = logging.getLogger(__name__)


class DialProvider:
    name = "dial"

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str = "dall-e-3",
        api_version: str = "2024-02-01",
        quality: str = "standard",
        style: str = "natural",
        size: str = "1024x1024",
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_version = api_version
        self.quality = quality
        self.style = style
        self.size = size
        self.timeout = timeout
        self._client = client

    @property
    def completions_url(self) -> str:
        return (
            f"{self.base_url}/openai/deployments/{self.model}/chat/completions"
            f"?api-version={self.api_version}"
        )

    def build_payload(self, prompt_text: str) -> dict[str, Any]:
        return {
            "messages": [{"role": "user", "content": prompt_text}],
            "extra_body": {
                "custom_fields": {
                    "configuration": {
                        "quality": self.quality,
                        "size": self.size,
                        "style": self.style,
                    }
                }
            },
        }

    def resolve_attachment_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/v1/{url.lstrip('/')}"

    @staticmethod
    def _find_image_attachment(body: dict[str, Any]) -> Optional[dict[str, Any]]:
        choices = body.get("choices") or []
        if not choices:
            return None
        message = choices[0].get("message") or {}
        attachments = (message.get("custom_content") or {}).get("attachments") or []
        for attachment in attachments:
            if str(attachment.get("type") or "").startswith("image/"):
                return attachment
        return None

    async def generate(self, prompt_text: str) -> ImageResult:
        if not self.api_key:
            raise ProviderError("DIAL_KEY is not set", provider=self.name)

        headers = {"Api-Key": self.api_key}
        client = self._client or httpx.AsyncClient()
        try:
            try:
                response = await client.post(
                    self.completions_url,
                    json=self.build_payload(prompt_text),
                    headers=headers,
                    timeout=self.timeout,
                )
            except httpx.TimeoutException as e:
                raise ProviderError(
                    f"DIAL request timed out after {self.timeout}s", provider=self.name
                ) from e
            except httpx.HTTPError as e:
                raise ProviderError(f"DIAL request failed: {e}", provider=self.name) from e

            try:
                body = response.json()
            except ValueError:
                body = {}

            error = body.get("error") if isinstance(body, dict) else None
            if error:
                message = error.get("message") if isinstance(error, dict) else str(error)
                raise ProviderError(
                    message or "Unknown DIAL error",
                    provider=self.name,
                    status_code=response.status_code,
                )
            if response.is_error:
                raise ProviderError(
                    f"DIAL API error: {response.status_code} {response.reason_phrase}",
                    provider=self.name,
                    status_code=response.status_code,
                )

            attachment = self._find_image_attachment(body if isinstance(body, dict) else {})
            if attachment is None:
                raise ProviderError("No image attachment in DIAL response", provider=self.name)
            if not attachment.get("url"):
                raise ProviderError(
                    "No image URL in DIAL response attachment", provider=self.name
                )

            image_url = self.resolve_attachment_url(attachment["url"])
            content, content_type = await download_image(
                image_url, headers=headers, timeout=self.timeout, client=client
            )
        finally:
            if self._client is None:
                await client.aclose()

        return ImageResult(data=content, mime_type=attachment.get("type") or content_type)
