"""
Tests for fallback and simplified prompts.
"""

from schemas.prompt import Style
from services.content_guard import check_forbidden_content
from services.fallback_prompt import (
    get_fallback_prompt,
    simplify_prompt,
    stable_hash,
)
from services.prompt_composer import build_prompt


class TestStableHash:
    """Tests for the deterministic hash."""

    def test_known_values(self):
        assert stable_hash("") == 0
        assert stable_hash("Run") == 82539
        assert stable_hash("Ride") == 2546968

    def test_wraps_to_signed_32_bit(self):
        value = stable_hash("VirtualRide" * 4)
        assert -(2**31) <= value < 2**31


class TestGetFallbackPrompt:
    """Tests for the fixed safe prompt."""

    def test_style_is_stable_per_activity(self):
        assert get_fallback_prompt("Run").style == Style.ABSTRACT
        assert get_fallback_prompt("Ride").style == Style.MINIMAL
        assert get_fallback_prompt("Run") == get_fallback_prompt("Run")

    def test_fixed_content(self):
        prompt = get_fallback_prompt("Ride")
        assert prompt.text == (
            "minimal style, fitness activity illustration, energetic mood, neutral background"
        )
        assert check_forbidden_content(prompt.text) is False

    def test_empty_activity_type(self):
        assert get_fallback_prompt("").style == Style.MINIMAL


class TestSimplifyPrompt:
    """Tests for prompt simplification between retries."""

    def test_drops_last_clause(self):
        prompt = build_prompt(
            Style.CARTOON, "calm", "runner",
            "outdoor training space, rolling hills, soft morning light",
        )
        simpler = simplify_prompt(prompt)
        assert simpler.scene == "outdoor training space, rolling hills"
        assert simpler.text == "cartoon style, runner, calm mood, outdoor training space, rolling hills"

    def test_single_clause_loses_last_word(self):
        prompt = build_prompt(Style.CARTOON, "calm", "runner", "outdoor training space")
        assert simplify_prompt(prompt).scene == "outdoor training"

    def test_strictly_shorter(self):
        prompt = build_prompt(Style.MINIMAL, "calm", "walker", "flat terrain, bright daylight")
        assert len(simplify_prompt(prompt).text) < len(prompt.text)

    def test_last_word_drops_scene(self):
        prompt = build_prompt(Style.MINIMAL, "calm", "walker", "daylight")
        simpler = simplify_prompt(prompt)
        assert simpler.scene == ""
        assert simpler.text == "minimal style, walker, calm mood, "

    def test_nothing_left_to_drop(self):
        prompt = build_prompt(Style.MINIMAL, "calm", "walker", "")
        assert prompt.text == "minimal style, walker, calm mood, "
        assert simplify_prompt(prompt) is prompt

    def test_keeps_style_mood_subject(self):
        prompt = build_prompt(Style.ILLUSTRATED, "intense", "cyclist", "a, b, c")
        simpler = simplify_prompt(prompt)
        assert (simpler.style, simpler.mood, simpler.subject) == (
            Style.ILLUSTRATED, "intense", "cyclist",
        )
