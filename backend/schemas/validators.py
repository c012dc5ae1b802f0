"""Shared Pydantic validators for activity text fields.

Kept dependency-free so schema modules can reuse them without import cycles.
"""

import re
import unicodedata
from typing import Any


HTML_TAG_PATTERN = re.compile(r"<[^>]+>")


def strip_html_tags(text: str) -> str:
    if not isinstance(text, str):
        return text
    return HTML_TAG_PATTERN.sub("", text)


def strip_invisible_edges(value: str) -> str:
    """
    Strip leading/trailing whitespace and Unicode format characters (Cf).

    Activity titles copied from phones often carry zero-width joiners or a BOM
    that would otherwise survive into the sanitizer.
    """
    if not isinstance(value, str):
        return value
    start = 0
    end = len(value)
    while start < end and (
        value[start].isspace() or unicodedata.category(value[start]) == "Cf"
    ):
        start += 1
    while end > start and (
        value[end - 1].isspace() or unicodedata.category(value[end - 1]) == "Cf"
    ):
        end -= 1
    return value[start:end]


def ensure_utf8_encodable(value: str) -> str:
    """Reject strings with unpaired surrogates; they crash JSON encoding later."""
    if not isinstance(value, str):
        return value
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("Text contains invalid Unicode characters")
    return value


def normalize_optional_text(value: Any) -> Any:
    """Normalize optional free text: strip markup and invisible edges, blank->None."""
    if value is None or not isinstance(value, str):
        return value
    text = strip_invisible_edges(strip_html_tags(value))
    if not text:
        return None
    return ensure_utf8_encodable(text)
