"""
Error Types

Every failure the core can surface. Each carries a single human-readable
message; the session turns them into the user-visible error string.
"""


class ClearRedesignerError(Exception):
    """Base class for all errors raised by clear_redesigner."""


class InputValidationError(ClearRedesignerError):
    """A required input (API key, image, mockup, critique) is missing."""


class ImageReadError(ClearRedesignerError):
    """The uploaded image could not be read or is empty."""


class ModelCallError(ClearRedesignerError):
    """
    A hosted model call failed.

    Covers transport errors, non-success HTTP statuses, provider error
    objects and responses with no generated content. The message is
    prefixed with the effective model id.
    """

    def __init__(self, model_id: str, message: str):
        self.model_id = model_id
        self.reason = message
        super().__init__(f'Model "{model_id}": {message}')


class TruncatedResponseError(ModelCallError):
    """The provider stopped generating because it hit the token limit."""


class HtmlExtractionError(ClearRedesignerError):
    """A model response contained no usable HTML document."""

    def __init__(self, message: str = "Could not parse HTML from response."):
        super().__init__(message)
