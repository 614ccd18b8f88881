"""
Model Backend Implementations

Two hosted-model wire protocols behind one interface. The backend is
picked from the effective model id alone.
"""

from typing import Awaitable, Callable, Optional

from ..models import (
    ImagePayload,
    ModelSelection,
    Provider,
    classify_provider,
    is_newest_openai_model,
    is_openai_model,
)
from .base import ModelBackend
from .gemini import GeminiBackend
from .openai import OpenAIBackend

__all__ = [
    "ModelBackend",
    "GeminiBackend",
    "OpenAIBackend",
    "ModelCaller",
    "Provider",
    "call_model",
    "classify_provider",
    "get_backend",
    "is_newest_openai_model",
    "is_openai_model",
]

ModelCaller = Callable[[ModelSelection, str, Optional[ImagePayload]], Awaitable[str]]
"""Signature: async (selection, prompt, image_or_none) -> response text."""


def get_backend(
    selection: ModelSelection,
    timeout: Optional[float] = None
) -> ModelBackend:
    """
    Factory function to get the backend for a model selection.

    Args:
        selection: Model selection with API key
        timeout: Optional HTTP timeout in seconds

    Returns:
        GeminiBackend or OpenAIBackend

    Example:
        backend = get_backend(config.selection("gpt-5.1"))
        text = await backend.generate(prompt)
    """
    if classify_provider(selection.effective_model_id) is Provider.OPENAI:
        return OpenAIBackend(selection, timeout=timeout)
    return GeminiBackend(selection, timeout=timeout)


async def call_model(
    selection: ModelSelection,
    prompt: str,
    image: Optional[ImagePayload] = None,
    timeout: Optional[float] = None
) -> str:
    """Send one prompt to whichever provider the selection routes to."""
    return await get_backend(selection, timeout=timeout).generate(prompt, image)
