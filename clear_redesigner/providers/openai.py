"""
OpenAI-Compatible Backend

Talks to the Chat Completions endpoint with a bearer token. Images are
sent as ``data:`` URLs inside a multi-part user message.

The GPT-5 family rejects ``max_tokens`` and needs
``max_completion_tokens`` instead, with a higher ceiling.
"""

import base64
from typing import Any, Optional

from ..errors import TruncatedResponseError
from ..models import ImagePayload, is_newest_openai_model
from .base import MAX_OUTPUT_TOKENS, TEMPERATURE, ModelBackend, require_image_data

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
NEWEST_MAX_COMPLETION_TOKENS = 32000


def _content_text(content: Any) -> Optional[str]:
    """
    Normalise a ``content`` field to text.

    Plain strings pass through; multi-part lists have their text parts
    joined. Anything else yields None.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [
            part if isinstance(part, str) else part.get("text")
            for part in content
            if isinstance(part, str) or isinstance(part, dict)
        ]
        return "".join(t for t in texts if isinstance(t, str)) or None
    return None


class OpenAIBackend(ModelBackend):
    """
    Backend for OpenAI chat models (gpt-, o1-, o3- prefixes).

    Example:
        backend = OpenAIBackend(ModelSelection(model_id="gpt-5.1", api_key="sk-..."))
        text = await backend.generate(prompt, image)
    """

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "openai"

    def endpoint(self) -> str:
        return OPENAI_CHAT_URL

    def headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def encode_image(self, image: ImagePayload) -> str:
        """Encode image as a full ``data:<mime>;base64,<data>`` URL."""
        data = base64.b64encode(require_image_data(image)).decode("utf-8")
        mime_type = image.mime_type or "application/octet-stream"
        return f"data:{mime_type};base64,{data}"

    def build_request(self, prompt: str, encoded_image: Optional[str] = None) -> dict:
        if encoded_image is not None:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": encoded_image}},
            ]
        else:
            content = prompt

        body = {
            "model": self.model_id,
            "messages": [{"role": "user", "content": content}],
            "temperature": TEMPERATURE,
        }
        if is_newest_openai_model(self.model_id):
            body["max_completion_tokens"] = NEWEST_MAX_COMPLETION_TOKENS
        else:
            body["max_tokens"] = MAX_OUTPUT_TOKENS
        return body

    def parse_response(self, data: dict) -> str:
        """
        Extract text from ``choices[0].message.content``.

        Falls back to a streaming-style ``choices[0].delta.content`` and
        then a top-level ``content`` field before giving up.
        """
        choices = data.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else {}
        if not isinstance(choice, dict):
            choice = {}

        for holder in (choice.get("message"), choice.get("delta"), data):
            text = _content_text(holder.get("content")) if isinstance(holder, dict) else None
            if text:
                return text

        finish_reason = choice.get("finish_reason")
        if finish_reason == "length":
            raise TruncatedResponseError(
                self.model_id,
                "Response was truncated due to token limit. The generated code "
                "may be incomplete. Try reducing the analysis length or "
                "increase max_completion_tokens."
            )
        raise self._error(
            f"No content generated. Finish reason: {finish_reason or 'unknown'}"
        )
