"""Image generation providers, selected by the IMAGE_PROVIDER setting."""

import logging
from typing import Optional

from config import ImageProviderName, Settings, get_settings
from services.providers.base import ImageProvider, ImageResult, download_image
from services.providers.dial import DialProvider
from services.providers.gemini import GeminiProvider
from services.providers.pollinations import PollinationsProvider

logger = logging.getLogger(__name__)


def get_provider(
    name: Optional[str] = None, settings: Optional[Settings] = None
) -> ImageProvider:
    """
    Build the provider named `name` (defaults to IMAGE_PROVIDER).

    Raises ValueError for unknown provider names.
    """
    settings = settings or get_settings()
    raw_name = name if name is not None else settings.IMAGE_PROVIDER
    try:
        provider_name = ImageProviderName(raw_name)
    except ValueError:
        known = ", ".join(p.value for p in ImageProviderName)
        raise ValueError(f"Unknown image provider {raw_name!r} (expected one of: {known})")

    timeout = settings.PROVIDER_TIMEOUT_SECONDS
    if provider_name == ImageProviderName.POLLINATIONS:
        provider = PollinationsProvider(
            base_url=settings.POLLINATIONS_BASE_URL,
            model=settings.POLLINATIONS_MODEL,
            width=settings.IMAGE_WIDTH,
            height=settings.IMAGE_HEIGHT,
            api_key=settings.POLLINATIONS_API_KEY,
            timeout=timeout,
        )
    elif provider_name == ImageProviderName.DIAL:
        provider = DialProvider(
            api_key=settings.DIAL_KEY,
            base_url=settings.DIAL_BASE_URL,
            model=settings.DIAL_MODEL,
            api_version=settings.DIAL_API_VERSION,
            quality=settings.DEFAULT_IMAGE_QUALITY,
            style=settings.DEFAULT_IMAGE_STYLE,
            size=f"{settings.IMAGE_WIDTH}x{settings.IMAGE_HEIGHT}",
            timeout=timeout,
        )
    else:
        provider = GeminiProvider(
            api_key=settings.GOOGLE_API_KEY,
            model=settings.GEMINI_IMAGE_MODEL,
            timeout=timeout,
        )

    logger.info("Using image provider: %s", provider.name)
    return provider


__all__ = [
    "DialProvider",
    "GeminiProvider",
    "ImageProvider",
    "ImageResult",
    "PollinationsProvider",
    "download_image",
    "get_provider",
]
