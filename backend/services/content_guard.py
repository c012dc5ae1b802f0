"""
Content guard for text that can reach the image prompt.

Every free-text unit derived from an activity (name, description, gear,
tags, prompt clauses) passes through `check_forbidden_content` or
`sanitize_text` before it may influence generation. Matching is
case-insensitive and word-bounded so that e.g. "warm" or "deadlift" stay
clean while "war" or "dead" are flagged.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)


def _words(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(words) + r")\b", re.IGNORECASE)


_PERSON_PATTERNS: tuple[re.Pattern[str], ...] = (
    _words(
        "person", "persons", "people", "individual", "individuals", "human", "humans",
        "celebrity", "celebrities", "famous", "star athlete",
        "portrait", "portraits", "selfie", "selfies", "likeness", "lookalike", "look-alike",
        "face", "faces", "facial",
    ),
    re.compile(r"\bphoto(?:graph)?s?\s+of\b", re.IGNORECASE),
    re.compile(r"\bpicture\s+of\b", re.IGNORECASE),
    # Honorific followed by a name
    re.compile(r"\b(?:mr|mrs|ms|dr)\.\s*[a-z][a-z'-]+", re.IGNORECASE),
    re.compile(r"\b(?:sir|king|queen|prince|princess)\s+[a-z][a-z'-]+", re.IGNORECASE),
)

_POLITICAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    _words(
        "political", "politics", "politician", "government", "president", "senator",
        "minister", "election", "elections", "vote", "voting", "democracy",
        "republican", "democrat", "parliament", "propaganda", "protest", "ideology",
    ),
    _words(
        "flag", "flags", "banner", "banners", "symbol", "symbols", "emblem", "crest",
        "swastika", "nazi", "fascist", "communist", "hammer and sickle",
    ),
)

_VIOLENCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    _words(
        "violence", "violent", "fight", "fighting", "war", "wars", "warfare",
        "battle", "battles", "weapon", "weapons", "gun", "guns", "rifle", "pistol",
        "knife", "knives", "sword", "swords", "attack", "kill", "killing", "killed",
        "murder", "death", "dead", "blood", "bloody", "gore", "bomb", "explosion",
        "terror", "terrorist",
    ),
    _words(
        "combat", "military", "soldier", "soldiers", "army", "navy", "air force",
        "marines", "troops",
    ),
)

_SEXUAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    _words(
        "sexual", "sex", "sexy", "nude", "nudity", "naked", "explicit", "adult",
        "porn", "pornographic", "erotic", "nsfw", "lingerie",
    ),
)

_TEXT_PATTERNS: tuple[re.Pattern[str], ...] = (
    _words(
        "text", "texts", "word", "words", "letter", "letters", "lettering", "alphabet",
        "typography", "caption", "captions", "label", "labels", "title", "heading",
        "headline", "subtitle", "subtitles", "slogan", "font", "fonts", "watermark",
        "signature", "logo", "logos",
    ),
    _words(
        "write", "writing", "written", "print", "printed", "spell", "spelled",
        "say", "says", "saying", "read", "reads", "quote", "display", "displaying",
    ),
)

FORBIDDEN_CATEGORIES: dict[str, tuple[re.Pattern[str], ...]] = {
    "person": _PERSON_PATTERNS,
    "political": _POLITICAL_PATTERNS,
    "violence": _VIOLENCE_PATTERNS,
    "sexual": _SEXUAL_PATTERNS,
    "text": _TEXT_PATTERNS,
}


def find_forbidden_categories(text: Optional[str]) -> list[str]:
    """Return the names of every forbidden category the text matches."""
    if not text:
        return []
    return [
        category
        for category, patterns in FORBIDDEN_CATEGORIES.items()
        if any(p.search(text) for p in patterns)
    ]


def check_forbidden_content(text: Optional[str]) -> bool:
    if not text:
        return False
    return any(
        p.search(text) for patterns in FORBIDDEN_CATEGORIES.values() for p in patterns
    )


def sanitize_text(text: Optional[str]) -> str:
    """
    Sanitize user-provided text.

    Flagged text is dropped entirely (empty string), never partially
    rewritten. Clean text is trimmed and its whitespace collapsed.
    """
    if not text or not text.strip():
        return ""
    categories = find_forbidden_categories(text)
    if categories:
        logger.warning(
            "Dropped user text flagged by content guard (categories=%s, chars=%s)",
            ",".join(categories),
            len(text),
        )
        return ""
    return re.sub(r"\s+", " ", text.strip())
