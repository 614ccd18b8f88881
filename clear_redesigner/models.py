"""
Data Models for Clear Redesigner

Type-safe Pydantic models for every value that crosses the core's
boundary: model selection, uploaded images, parsed critique records,
session snapshots and configuration.
"""

import mimetypes
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import rubric
from .errors import ImageReadError

CUSTOM_MODEL = "custom"
DEFAULT_MODEL = "gemini-3-flash-preview"

KNOWN_MODELS = (
    # Google Gemini
    "gemini-3-flash-preview",
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-3-pro-preview",
    # OpenAI GPT-5 series
    "gpt-5.2",
    "gpt-5.1",
    "gpt-5.1-codex-max",
    "gpt-5.1-codex-mini",
    "gpt-5-nano",
)

OPENAI_PREFIXES = ("gpt-", "o1-", "o3-")
NEWEST_OPENAI_PREFIX = "gpt-5"


class Provider(str, Enum):
    """Hosted model vendors the adapter knows how to talk to."""

    GEMINI = "gemini"
    OPENAI = "openai"


def is_openai_model(model_id: str) -> bool:
    """Check whether a model id routes to the OpenAI-compatible API."""
    return model_id.startswith(OPENAI_PREFIXES)


def is_newest_openai_model(model_id: str) -> bool:
    """Check whether a model belongs to the GPT-5 family (new token parameter)."""
    return model_id.startswith(NEWEST_OPENAI_PREFIX)


def classify_provider(model_id: str) -> Provider:
    """
    Derive the provider from an effective model id.

    ``gpt-``, ``o1-`` and ``o3-`` prefixes route to OpenAI; everything
    else routes to Gemini.

    Example:
        classify_provider("gpt-5.1")            # Provider.OPENAI
        classify_provider("gemini-2.5-flash")   # Provider.GEMINI
    """
    return Provider.OPENAI if is_openai_model(model_id) else Provider.GEMINI


class ModelSelection(BaseModel):
    """
    Which hosted model to call and with which key.

    Attributes:
        model_id: One of KNOWN_MODELS or the sentinel "custom"
        custom_model_id: Model id used when model_id is "custom"
        api_key: Provider API key (may be empty; the session validates it)
    """

    model_config = ConfigDict(frozen=True)

    model_id: str = DEFAULT_MODEL
    custom_model_id: str = ""
    api_key: str = Field(default="", repr=False)

    @field_validator("model_id")
    @classmethod
    def check_known_model(cls, v: str) -> str:
        """Only known models or the custom sentinel are accepted"""
        if v != CUSTOM_MODEL and v not in KNOWN_MODELS:
            raise ValueError(
                f"Unknown model: {v}. Choose one of {', '.join(KNOWN_MODELS)} "
                f"or '{CUSTOM_MODEL}' with a custom model id"
            )
        return v

    @model_validator(mode="after")
    def check_custom_model(self) -> "ModelSelection":
        if self.model_id == CUSTOM_MODEL and not self.custom_model_id.strip():
            raise ValueError("A custom model id is required when model_id is 'custom'")
        return self

    @property
    def effective_model_id(self) -> str:
        """The model id actually sent to the provider"""
        if self.model_id == CUSTOM_MODEL:
            return self.custom_model_id.strip()
        return self.model_id

    @property
    def provider(self) -> Provider:
        return classify_provider(self.effective_model_id)


class ImagePayload(BaseModel):
    """
    An uploaded UI screenshot held in memory.

    Attributes:
        data: Raw image bytes
        mime_type: MIME type, e.g. "image/png"
        name: Original file name, for messages only
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    mime_type: str = "application/octet-stream"
    name: str = "image"

    @classmethod
    def from_path(cls, path: Path) -> "ImagePayload":
        """
        Read an image file into a payload.

        Args:
            path: Path to the screenshot

        Returns:
            ImagePayload with the file's bytes and guessed MIME type

        Raises:
            ImageReadError: If the file is missing, unreadable or empty
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageReadError(
                f"Unable to read image {path}. Please try another file. ({e})"
            ) from e

        if not data:
            raise ImageReadError(f"Image data is empty: {path}")

        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            data=data,
            mime_type=mime_type or "application/octet-stream",
            name=path.name,
        )


class BulletLine(BaseModel):
    """One bullet observation, optionally prefixed by a bold label."""

    label: Optional[str] = None
    text: str

    def __str__(self) -> str:
        if self.label:
            return f"{self.label}: {self.text}"
        return self.text


class ModuleRecord(BaseModel):
    """
    One parsed C.L.E.A.R. module from a critique.

    Attributes:
        letter: Module letter (C, L, E, A or R)
        display_name: Human-readable module name
        sub_score: 0-20 score, absent in the older status-only format
        reported_status: Status string stated by the model (older format)
        bullet_lines: Labelled observations, in source order
        notes: Non-bullet lines outside the redesign suggestion
        redesign_suggestion: Aggregated redesign suggestion text
    """

    letter: Literal["C", "L", "E", "A", "R"]
    display_name: str
    sub_score: Optional[int] = Field(default=None, ge=0, le=rubric.MAX_SUB_SCORE)
    reported_status: Optional[str] = None
    bullet_lines: list[BulletLine] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    redesign_suggestion: Optional[str] = None

    @property
    def status(self) -> str:
        """
        Display status, always derived.

        A numeric sub-score wins; otherwise the status the model reported;
        otherwise "Unknown".
        """
        if self.sub_score is not None:
            return rubric.classify_score(self.sub_score)
        return self.reported_status or rubric.STATUS_UNKNOWN


class MarkdownBlock(BaseModel):
    """A generic block used when a critique has no module structure."""

    kind: Literal["heading", "bullet", "paragraph"]
    text: str
    level: int = 0


class CritiqueReport(BaseModel):
    """
    Structured view of a raw critique.

    Either ``modules`` is populated (structured critique) or ``blocks``
    holds a generic rendering of the whole text (unstructured fallback).

    Attributes:
        overall_score: 0-100, explicit marker or sum of five sub-scores
        modules: Parsed modules in order of appearance
        preamble: Lines that appeared before the first module header
        blocks: Generic blocks when no module header was found
    """

    overall_score: Optional[int] = Field(default=None, ge=0, le=rubric.MAX_OVERALL_SCORE)
    modules: list[ModuleRecord] = Field(default_factory=list)
    preamble: list[str] = Field(default_factory=list)
    blocks: list[MarkdownBlock] = Field(default_factory=list)

    @property
    def is_structured(self) -> bool:
        return len(self.modules) > 0

    def module(self, letter: str) -> Optional[ModuleRecord]:
        """Look up a module by letter"""
        for record in self.modules:
            if record.letter == letter.upper():
                return record
        return None


class SessionSnapshot(BaseModel):
    """
    Immutable state of a redesign session at one point in time.

    The session publishes a new snapshot on every change; consumers
    never mutate one.

    Attributes:
        critique_text: Raw round-1 output, the source of truth
        report: Parsed form of critique_text
        mockup: Current generated HTML document
        error: Single user-visible error message
        is_analyzing: A full cycle, iteration or retry is in flight
        is_round1_running: The critique call is in flight
        is_round2_running: The code-generation call is in flight
        is_refining: A refinement call is in flight
        epoch: Operation counter of the session when this was published
    """

    model_config = ConfigDict(frozen=True)

    critique_text: Optional[str] = None
    report: Optional[CritiqueReport] = None
    mockup: Optional[str] = None
    error: Optional[str] = None
    is_analyzing: bool = False
    is_round1_running: bool = False
    is_round2_running: bool = False
    is_refining: bool = False
    epoch: int = 0

    @property
    def busy(self) -> bool:
        return self.is_analyzing or self.is_refining

    @property
    def overall_score(self) -> Optional[int]:
        return self.report.overall_score if self.report else None


class Config(BaseModel):
    """
    Configuration for the redesigner.

    Loaded from a .env file and the environment.

    Attributes:
        gemini_api_key: Gemini API key (optional)
        openai_api_key: OpenAI API key (optional)
        model_id: Default model (one of KNOWN_MODELS or "custom")
        custom_model_id: Model id used when model_id is "custom"
        request_timeout: HTTP timeout in seconds; None means wait forever
    """

    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    model_id: str = DEFAULT_MODEL
    custom_model_id: Optional[str] = None
    request_timeout: Optional[float] = Field(default=None, gt=0)

    def has_gemini(self) -> bool:
        """Check if Gemini is configured"""
        return self.gemini_api_key is not None and len(self.gemini_api_key) > 0

    def has_openai(self) -> bool:
        """Check if OpenAI is configured"""
        return self.openai_api_key is not None and len(self.openai_api_key) > 0

    def api_key_for(self, effective_model_id: str) -> str:
        """Return the configured key for the provider a model routes to"""
        if classify_provider(effective_model_id) is Provider.OPENAI:
            return self.openai_api_key or ""
        return self.gemini_api_key or ""

    def selection(
        self,
        model_id: Optional[str] = None,
        custom_model_id: Optional[str] = None,
        api_key: Optional[str] = None
    ) -> ModelSelection:
        """
        Build a ModelSelection, letting explicit arguments override config.

        A custom model id given without a model id implies "custom".

        Raises:
            pydantic.ValidationError: If the model id is unknown
        """
        custom = custom_model_id or self.custom_model_id or ""
        if model_id is None:
            model_id = CUSTOM_MODEL if custom_model_id else self.model_id

        effective = custom.strip() if model_id == CUSTOM_MODEL else model_id
        key = api_key if api_key is not None else self.api_key_for(effective)

        return ModelSelection(model_id=model_id, custom_model_id=custom, api_key=key)
