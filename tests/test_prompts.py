"""Tests for prompt construction."""

from __future__ import annotations

import pytest

from clear_redesigner import rubric
from clear_redesigner.prompts import (
    build_code_generation_prompt,
    build_critique_prompt,
    build_refine_prompt,
)


class TestCritiquePrompt:
    def test_names_every_module_and_check(self) -> None:
        prompt = build_critique_prompt()
        for letter in rubric.MODULE_LETTERS:
            assert f"## {letter} - {rubric.MODULE_NAMES[letter]}" in prompt
            for label, _ in rubric.MODULE_CHECKS[letter]:
                assert f"[{label}]" in prompt

    def test_requires_scores_and_suggestions(self) -> None:
        prompt = build_critique_prompt()
        assert "Score: XX/20" in prompt
        assert "• **Redesign Suggestion:**" in prompt
        assert "Do NOT include an overall score line" in prompt

    def test_context_appended(self) -> None:
        prompt = build_critique_prompt("  Checkout page for seniors  ")
        assert prompt.endswith(
            'ADDITIONAL CONTEXT FROM USER:\n"Checkout page for seniors"\n\n'
            "Please incorporate this context into your analysis."
        )

    @pytest.mark.parametrize("context", ["", "   ", None])
    def test_blank_context_ignored(self, context) -> None:
        assert build_critique_prompt(context) == build_critique_prompt()
        assert "ADDITIONAL CONTEXT" not in build_critique_prompt(context)


class TestCodeGenerationPrompt:
    def test_embeds_critique_verbatim(self, scored_critique: str) -> None:
        prompt = build_code_generation_prompt(scored_critique)
        assert scored_critique in prompt
        assert "```html" in prompt

    def test_critique_with_braces_is_not_formatted(self) -> None:
        critique = "## C - Copywriting\nUse {brand} tokens like {{this}}"
        assert critique in build_code_generation_prompt(critique)

    def test_context(self, scored_critique: str) -> None:
        prompt = build_code_generation_prompt(scored_critique, "dark mode")
        assert 'ADDITIONAL USER CONTEXT:\n"dark mode"' in prompt
        assert "ADDITIONAL USER CONTEXT" not in build_code_generation_prompt(scored_critique, " ")


def test_refine_prompt_embeds_html_and_request(html_doc: str) -> None:
    prompt = build_refine_prompt(html_doc, "Make the header sticky")
    assert html_doc in prompt
    assert "USER REQUEST:\nMake the header sticky" in prompt
