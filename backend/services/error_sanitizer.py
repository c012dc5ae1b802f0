import re
from typing import Optional


_SUSPICIOUS_ERROR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"traceback", re.IGNORECASE),
    re.compile(r"\bfile\s+\".*?\.py\"", re.IGNORECASE),
    re.compile(r"/home/|/users/|/root/|[a-z]:\\", re.IGNORECASE),
    re.compile(r"\bapi[-_ ]?key\b", re.IGNORECASE),
    re.compile(r"\bbearer\s+\S+", re.IGNORECASE),
    re.compile(r"[?&](?:key|token|api-key)=", re.IGNORECASE),
    re.compile(r"\bAIza[0-9A-Za-z_\-]{20,}"),
    re.compile(r"\bhttpcore\b|\bssl\b|\bconnecterror\b", re.IGNORECASE),
)


def sanitize_public_error_message(
    message: Optional[str],
    *,
    fallback: str = "Internal error",
    max_chars: int = 240,
) -> Optional[str]:
    """
    Sanitize an error message before returning it to clients.

    Treat `message` as untrusted: provider errors may echo stack traces,
    request URLs with credentials, or file paths (especially if derived from
    `str(exception)`).
    """
    if not message:
        return None

    safe = message.encode("utf-8", errors="replace").decode("utf-8", errors="replace")
    safe = safe.strip()
    safe = re.sub(r"\s+", " ", safe)
    if not safe:
        return None

    if any(p.search(safe) for p in _SUSPICIOUS_ERROR_PATTERNS):
        return fallback

    if len(safe) > max_chars:
        return f"{safe[:max_chars]}..."
    return safe
