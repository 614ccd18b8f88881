"""
Google Gemini Backend

Talks to the Generative Language REST API (``generateContent``).
The API key travels as a query parameter; images are sent inline as
base64 blobs tagged with their MIME type.
"""

import base64
from typing import Optional

from ..errors import TruncatedResponseError
from ..models import ImagePayload
from .base import MAX_OUTPUT_TOKENS, TEMPERATURE, ModelBackend, require_image_data

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiBackend(ModelBackend):
    """
    Backend for Gemini models.

    Example:
        backend = GeminiBackend(ModelSelection(model_id="gemini-2.5-flash", api_key="..."))
        text = await backend.generate(prompt, image)
    """

    @property
    def name(self) -> str:
        """Provider name for identification"""
        return "gemini"

    def endpoint(self) -> str:
        return f"{GEMINI_API_BASE}/{self.model_id}:generateContent?key={self._api_key}"

    def headers(self) -> dict:
        return {"Content-Type": "application/json"}

    def encode_image(self, image: ImagePayload) -> dict:
        """
        Encode image as an inline data part.

        Returns:
            ``{"inlineData": {"data": <base64>, "mimeType": <type>}}``
        """
        data = base64.b64encode(require_image_data(image)).decode("utf-8")
        return {
            "inlineData": {
                "data": data,
                "mimeType": image.mime_type or "application/octet-stream",
            }
        }

    def build_request(self, prompt: str, encoded_image: Optional[dict] = None) -> dict:
        parts = [{"text": prompt}]
        if encoded_image is not None:
            parts.append(encoded_image)

        return {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": TEMPERATURE,
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
            },
        }

    def parse_response(self, data: dict) -> str:
        """
        Extract text from ``candidates[0].content.parts[0].text``.

        A candidate that stopped with ``MAX_TOKENS`` and carries no text
        is reported as truncated.
        """
        candidates = data.get("candidates")
        candidate = candidates[0] if isinstance(candidates, list) and candidates else {}
        if not isinstance(candidate, dict):
            candidate = {}

        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if parts and isinstance(parts, list) and isinstance(parts[0], dict):
            text = parts[0].get("text")
            if isinstance(text, str):
                return text

        finish_reason = candidate.get("finishReason")
        if finish_reason == "MAX_TOKENS":
            raise TruncatedResponseError(
                self.model_id,
                "Response was truncated due to token limit. The generated output "
                "may be incomplete. Try reducing the analysis length or "
                "increasing maxOutputTokens."
            )
        raise self._error(
            f"No content generated. Finish reason: {finish_reason or 'unknown'}"
        )
