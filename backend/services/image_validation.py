import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from services.errors import ProviderError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/webp"})
MAX_IMAGE_SIZE_BYTES = 20 * 1024 * 1024  # 20MB
MIN_IMAGE_WIDTH = 16
MIN_IMAGE_HEIGHT = 16
MAX_IMAGE_WIDTH = 8192
MAX_IMAGE_HEIGHT = 8192

IMAGE_MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-jpg": "image/jpeg",
    "image/x-jpeg": "image/jpeg",
    "image/jfif": "image/jpeg",
    "image/apng": "image/png",
    "image/x-png": "image/png",
    "image/x-webp": "image/webp",
}


@dataclass(frozen=True)
class ImagePayloadInfo:
    mime_type: str
    width: int
    height: int


def normalize_image_mime_type(claimed_mime_type: Optional[str]) -> str:
    mime_type = (claimed_mime_type or "").strip()
    if not mime_type:
        return ""

    # Providers sometimes send "image/png; charset=binary" or comma-joined values.
    if "," in mime_type:
        mime_type = mime_type.split(",", 1)[0].strip()
    if ";" in mime_type:
        mime_type = mime_type.split(";", 1)[0].strip()

    mime_type = mime_type.strip().strip("\"'").lower()
    return IMAGE_MIME_ALIASES.get(mime_type, mime_type)


def sniff_image_mime_type(content: bytes) -> str | None:
    """
    Best-effort MIME sniffing by magic bytes.

    Returns normalized mime_type ("image/png", "image/jpeg", "image/webp") or None.
    """
    if not content:
        return None
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if len(content) >= 12 and content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


def _detect_image_dimensions(content: bytes) -> tuple[int, int]:
    try:
        with Image.open(BytesIO(content)) as image:
            image.load()
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError):
        raise ProviderError("Provider returned a corrupted or unsupported image")

    if width <= 0 or height <= 0:
        raise ProviderError("Provider returned an image with invalid dimensions")
    return width, height


def validate_generated_image_payload(
    content: bytes,
    claimed_mime_type: Optional[str] = None,
    *,
    min_width: int = MIN_IMAGE_WIDTH,
    min_height: int = MIN_IMAGE_HEIGHT,
    max_width: int = MAX_IMAGE_WIDTH,
    max_height: int = MAX_IMAGE_HEIGHT,
    max_bytes: int = MAX_IMAGE_SIZE_BYTES,
) -> ImagePayloadInfo:
    """
    Validate image bytes returned by a provider and return canonical metadata.

    The MIME type is taken from the magic bytes; a claimed type that disagrees
    is logged and ignored. Anything that is not a decodable PNG/JPEG/WEBP
    counts as a failed generation attempt.
    """
    if not content or len(content) < 12:
        raise ProviderError("Provider returned an empty or truncated image")
    if len(content) > max_bytes:
        raise ProviderError(
            f"Provider returned an image of {len(content)} bytes (limit {max_bytes})"
        )

    sniffed_mime = sniff_image_mime_type(content)
    if sniffed_mime not in ALLOWED_IMAGE_MIME_TYPES:
        raise ProviderError("Provider returned a payload that is not a PNG, JPEG or WEBP image")

    normalized_claimed = normalize_image_mime_type(claimed_mime_type)
    if normalized_claimed and normalized_claimed != sniffed_mime:
        logger.warning(
            "Claimed MIME type mismatch (claimed=%s, sniffed=%s); using sniffed MIME",
            normalized_claimed,
            sniffed_mime,
        )

    width, height = _detect_image_dimensions(content)
    if width < min_width or height < min_height:
        raise ProviderError(f"Generated image is too small ({width}x{height})")
    if width > max_width or height > max_height:
        raise ProviderError(f"Generated image is too large ({width}x{height})")

    return ImagePayloadInfo(mime_type=sniffed_mime, width=width, height=height)


def to_data_url(content: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def parse_data_url(url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into (mime_type, bytes)."""
    if not url.startswith("data:") or "," not in url:
        raise ProviderError("Malformed data URL")
    header, payload = url[5:].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise ProviderError("Data URL is not base64 encoded")
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ProviderError("Data URL payload is not valid base64")
    return normalize_image_mime_type(parts[0]), content
