"""
Final content check on assembled prompts.

The validator never fails outward: an unsafe prompt is repaired by dropping
the offending scene clauses, or replaced by DEFAULT_PROMPT when no safe
variant exists.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from schemas.prompt import ImagePrompt, Style
from services.content_guard import check_forbidden_content, find_forbidden_categories
from services.errors import PromptLengthError
from services.prompt_composer import (
    DEFAULT_MAX_PROMPT_LENGTH,
    build_prompt,
    canonical_prompt_text,
)

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = ImagePrompt(
    style=Style.MINIMAL,
    mood="neutral",
    subject="athlete",
    scene="simple outdoor setting",
    text="minimal style, athlete, neutral mood, simple outdoor setting",
)


@dataclass
class PromptValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    sanitized: Optional[ImagePrompt] = None


def _is_allowed_style(style: object) -> bool:
    return style in {s.value for s in Style}


def _collect_errors(prompt: ImagePrompt, max_length: int) -> List[str]:
    errors: list[str] = []
    if not prompt.text or not prompt.text.strip():
        errors.append("text is empty")
    elif len(prompt.text) > max_length:
        errors.append(f"text exceeds {max_length} characters")
    if not _is_allowed_style(prompt.style):
        errors.append(f"style {prompt.style!r} is not allowed")
    elif prompt.text != canonical_prompt_text(
        prompt.style, prompt.subject, prompt.mood, prompt.scene
    ):
        errors.append("text does not match its components")
    for name in ("text", "subject", "mood", "scene"):
        categories = find_forbidden_categories(getattr(prompt, name))
        if categories:
            errors.append(f"{name} contains forbidden content ({', '.join(categories)})")
    return errors


def sanitize_prompt(
    prompt: ImagePrompt, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> ImagePrompt:
    """
    Rebuild the prompt from its safe scene clauses.

    The subject and mood are never rewritten; if either is flagged, or every
    scene clause is flagged, the default prompt is returned.
    """
    if not _is_allowed_style(prompt.style):
        return DEFAULT_PROMPT
    if check_forbidden_content(prompt.subject) or check_forbidden_content(prompt.mood):
        return DEFAULT_PROMPT

    clauses = [c.strip() for c in prompt.scene.split(",") if c.strip()]
    safe_clauses = [c for c in clauses if not check_forbidden_content(c)]
    if not safe_clauses:
        return DEFAULT_PROMPT

    try:
        candidate = build_prompt(
            prompt.style, prompt.mood, prompt.subject, ", ".join(safe_clauses), max_length
        )
    except PromptLengthError:
        return DEFAULT_PROMPT

    if _collect_errors(candidate, max_length):
        return DEFAULT_PROMPT
    return candidate


def validate_prompt(
    prompt: ImagePrompt, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> PromptValidationResult:
    errors = _collect_errors(prompt, max_length)
    if not errors:
        return PromptValidationResult(valid=True, sanitized=prompt)
    return PromptValidationResult(
        valid=False, errors=errors, sanitized=sanitize_prompt(prompt, max_length)
    )


def ensure_valid_prompt(
    prompt: ImagePrompt, max_length: int = DEFAULT_MAX_PROMPT_LENGTH
) -> ImagePrompt:
    result = validate_prompt(prompt, max_length)
    if result.valid:
        return prompt
    logger.warning(
        "Prompt failed validation (%s); using %s",
        "; ".join(result.errors),
        "default prompt" if result.sanitized is DEFAULT_PROMPT else "sanitized prompt",
    )
    return result.sanitized
