"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from clear_redesigner.models import ImagePayload, ModelSelection

SCORED_CRITIQUE = """\
Here is the C.L.E.A.R. analysis.

## C - Copywriting
Score: 15/20
• **Clear Benefit:** The headline states what the product does.
• **Action Labels:** "Submit" does not say what happens next.
• **Redesign Suggestion:** Rename the button to "Start free trial".

## L - Layout
Score: 12/20
• **Proximity:** Form labels float far from their inputs.
• **Redesign Suggestion:** Tighten label spacing to 4px.

## E - Emphasis
Score: 18/20
• **Focal Point:** The hero image draws the eye first.
• **Redesign Suggestion:** Keep the hero, shrink the secondary banner.

## A - Accessibility
Score: 8/20
• **Color Contrast:** Grey on white body text fails AA.
• **Redesign Suggestion:** Darken body text to #333.

## R - Reward
Score: 20/20
• **Friction:** Two fields only.
• **Feedback:** Inline success message on submit.
• **Redesign Suggestion:** Add a progress check mark.
"""

LEGACY_CRITIQUE = """\
Overall Score: 73%

## C - Copywriting
Status: Needs Improvement
• Clear Benefit: Mostly clear.
• Redesign Suggestion: Shorten the headline.

## L - Layout
Status: Pass
- Proximity is fine.
"""

HTML_DOC = "<!DOCTYPE html>\n<html><body><h1>Redesign</h1></body></html>"


def fenced(html: str, before: str = "Here you go:", after: str = "Enjoy!") -> str:
    return f"{before}\n```html\n{html}\n```\n{after}"


@pytest.fixture
def scored_critique() -> str:
    return SCORED_CRITIQUE


@pytest.fixture
def legacy_critique() -> str:
    return LEGACY_CRITIQUE


@pytest.fixture
def selection() -> ModelSelection:
    return ModelSelection(model_id="gemini-2.5-flash", api_key="test-key")


@pytest.fixture
def openai_selection() -> ModelSelection:
    return ModelSelection(model_id="custom", custom_model_id="gpt-4o", api_key="sk-test")


@pytest.fixture
def image() -> ImagePayload:
    return ImagePayload(data=b"\x89PNG fake image", mime_type="image/png", name="shot.png")


@pytest.fixture
def model_caller() -> AsyncMock:
    """Scripted model caller: critique for image calls, fenced HTML otherwise."""

    async def respond(selection, prompt, image):
        if image is not None:
            return SCORED_CRITIQUE
        return fenced(HTML_DOC)

    return AsyncMock(side_effect=respond)


@pytest.fixture
def html_doc() -> str:
    return HTML_DOC
