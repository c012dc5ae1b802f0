"""
Provider capability shared by every image backend.

A provider turns prompt text into either raw image bytes or a URL that
resolves to the image. Any failure (network, non-2xx, unusable response)
is raised as ProviderError so the orchestrator can retry or fall back.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import httpx

from services.errors import ProviderError
from services.image_validation import MAX_IMAGE_SIZE_BYTES

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ImageResult:
    data: Optional[bytes] = None
    url: Optional[str] = None
    mime_type: Optional[str] = None


@runtime_checkable
class ImageProvider(Protocol):
    name: str

    async def generate(self, prompt_text: str) -> ImageResult:
        ...


async def download_image(
    url: str,
    *,
    headers: Optional[dict[str, str]] = None,
    timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
    max_size: int = MAX_IMAGE_SIZE_BYTES,
    client: Optional[httpx.AsyncClient] = None,
) -> tuple[bytes, Optional[str]]:
    """
    Fetch a generated image with streaming and a size limit.

    Returns (content, content_type). Raises ProviderError on any failure.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(follow_redirects=True, max_redirects=3)
    try:
        async with client.stream("GET", url, headers=headers, timeout=timeout) as response:
            response.raise_for_status()

            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > max_size:
                raise ProviderError(
                    f"Generated image too large (Content-Length: {content_length} bytes)"
                )

            chunks = []
            total_size = 0
            async for chunk in response.aiter_bytes(chunk_size=8192):
                total_size += len(chunk)
                if total_size > max_size:
                    raise ProviderError(
                        f"Generated image exceeded size limit during download (max: {max_size})"
                    )
                chunks.append(chunk)

            return b"".join(chunks), response.headers.get("content-type")
    except httpx.TimeoutException as e:
        raise ProviderError(f"Timeout downloading generated image: {url}") from e
    except httpx.HTTPStatusError as e:
        raise ProviderError(
            f"HTTP {e.response.status_code} downloading generated image",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise ProviderError(f"Error downloading generated image: {e}") from e
    finally:
        if owns_client:
            await client.aclose()
