"""
Base Model Backend Interface

Abstract base class defining the contract for hosted model providers.
Each backend translates one prompt (plus an optional image) into its
vendor's wire format and pulls the generated text back out; the shared
``generate`` method sends the request and normalises every failure.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from ..errors import ImageReadError, ModelCallError
from ..models import ImagePayload, ModelSelection

logger = logging.getLogger(__name__)

TEMPERATURE = 0.4
MAX_OUTPUT_TOKENS = 8192
REDACTED = "***"


class ModelBackend(ABC):
    """
    Abstract base class for hosted model backends.

    Subclasses must implement:
    - name: Provider name for logging
    - endpoint(): URL the request is POSTed to
    - headers(): HTTP headers, including any credentials
    - encode_image(): Image encoding the provider expects
    - build_request(): JSON request body
    - parse_response(): Generated text from a decoded JSON response

    The orchestrator only calls ``generate``; it never looks at which
    subclass it holds.
    """

    def __init__(
        self,
        selection: ModelSelection,
        timeout: Optional[float] = None
    ):
        """
        Initialize backend for one model selection.

        Args:
            selection: Model and API key to use
            timeout: Optional HTTP timeout in seconds (None waits forever)
        """
        self.selection = selection
        self.model_id = selection.effective_model_id
        self.timeout = timeout
        self._api_key = selection.api_key

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and identification."""
        pass

    @abstractmethod
    def endpoint(self) -> str:
        """Return the URL for a generation request."""
        pass

    @abstractmethod
    def headers(self) -> dict:
        """Return HTTP headers for a generation request."""
        pass

    @abstractmethod
    def encode_image(self, image: ImagePayload) -> Any:
        """
        Encode an image for inclusion in the request body.

        Raises:
            ImageReadError: If the payload has no data
        """
        pass

    @abstractmethod
    def build_request(self, prompt: str, encoded_image: Optional[Any] = None) -> dict:
        """Build the JSON request body for a prompt and optional encoded image."""
        pass

    @abstractmethod
    def parse_response(self, data: dict) -> str:
        """
        Extract generated text from a decoded response body.

        Raises:
            ModelCallError: If no content was generated
            TruncatedResponseError: If the token limit cut the response off
        """
        pass

    def _redact(self, text: str) -> str:
        """Mask the API key; transport errors echo the request URL."""
        if self._api_key:
            text = text.replace(self._api_key, REDACTED)
        return text

    def _error(self, message: str) -> ModelCallError:
        return ModelCallError(self.model_id, self._redact(message))

    async def generate(
        self,
        prompt: str,
        image: Optional[ImagePayload] = None
    ) -> str:
        """
        Send one prompt (and optional image) and return the generated text.

        The image is encoded before anything is sent, so an unreadable
        image never results in a request with an empty payload. No
        retries are attempted.

        Args:
            prompt: Full prompt text
            image: Optional screenshot to attach

        Returns:
            Generated text

        Raises:
            ImageReadError: If the image cannot be encoded
            ModelCallError: On transport, HTTP, provider or content errors
        """
        encoded_image = self.encode_image(image) if image is not None else None
        body = self.build_request(prompt, encoded_image)

        logger.info(
            "Calling %s model %s (prompt %d chars, image: %s)",
            self.name, self.model_id, len(prompt),
            image.mime_type if image is not None else "none",
        )

        try:
            response = await asyncio.to_thread(
                requests.post,
                self.endpoint(),
                headers=self.headers(),
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise self._error(f"Request failed: {type(e).__name__}: {e}") from None

        if not response.ok:
            raise self._error(self._describe_http_error(response))

        try:
            data = response.json()
        except ValueError as e:
            raise self._error("Response was not valid JSON.") from e

        if not isinstance(data, dict):
            raise self._error("Response was not a JSON object.")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise self._error(message or "Unknown provider error.")

        text = self.parse_response(data)
        logger.debug("%s returned %d chars", self.model_id, len(text))
        return text

    def _describe_http_error(self, response: requests.Response) -> str:
        """
        Build a message for a non-success HTTP response.

        Prefers the provider's ``error.message``; falls back to the status
        line when the body is not JSON.
        """
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.reason}"

        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        return f"API request failed with status {response.status_code}"


def require_image_data(image: ImagePayload) -> bytes:
    """Return the image bytes, refusing to encode an empty payload."""
    if not image.data:
        raise ImageReadError(f"Image data is empty: {image.name}")
    return image.data
