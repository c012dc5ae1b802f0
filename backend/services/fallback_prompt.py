"""Fallback and simplified prompts used between generation attempts."""

from schemas.prompt import ImagePrompt, Style
from services.prompt_composer import DEFAULT_MAX_PROMPT_LENGTH, build_prompt

FALLBACK_STYLES: tuple[Style, ...] = (Style.MINIMAL, Style.ABSTRACT)
FALLBACK_SUBJECT = "fitness activity illustration"
FALLBACK_MOOD = "energetic"
FALLBACK_SCENE = "neutral background"


def stable_hash(value: str) -> int:
    """32-bit signed rolling hash (h * 31 + code), stable across processes."""
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def fallback_style_index(activity_type: str, count: int = len(FALLBACK_STYLES)) -> int:
    return abs(stable_hash(activity_type or "")) % count


def get_fallback_prompt(
    activity_type: str, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> ImagePrompt:
    """Maximally safe prompt; the same activity type always gets the same style."""
    style = FALLBACK_STYLES[fallback_style_index(activity_type)]
    return build_prompt(
        style, FALLBACK_MOOD, FALLBACK_SUBJECT, FALLBACK_SCENE, max_length
    )


def simplify_prompt(
    prompt: ImagePrompt, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> ImagePrompt:
    """
    Derive a strictly simpler prompt.

    Drops the last scene clause; a single remaining clause loses its last
    word instead, and a last word drops the scene altogether. Once the scene
    is empty the same prompt object is returned, which callers use to detect
    that no further simplification is possible.
    """
    clauses = [c.strip() for c in prompt.scene.split(",") if c.strip()]
    if not clauses:
        return prompt
    if len(clauses) > 1:
        scene = ", ".join(clauses[:-1])
    else:
        scene = " ".join(clauses[0].split()[:-1])
    return build_prompt(prompt.style, prompt.mood, prompt.subject, scene, max_length)
