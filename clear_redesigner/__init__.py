"""
Clear Redesigner - Screenshot Critique and Redesign Tool

Critiques a UI screenshot against the C.L.E.A.R. framework (Copywriting,
Layout, Emphasis, Accessibility, Reward) with a hosted multimodal model,
then has a model generate a redesigned, self-contained HTML mockup from
that critique. Mockups can be refined with free-text requests or
regenerated from a fresh critique.

Supports two model providers:
- Google Gemini
- OpenAI (gpt-, o1-, o3- models)
"""

from .errors import (
    ClearRedesignerError,
    HtmlExtractionError,
    ImageReadError,
    InputValidationError,
    ModelCallError,
    TruncatedResponseError,
)
from .models import CritiqueReport, ImagePayload, ModelSelection, ModuleRecord, SessionSnapshot
from .parser import extract_html, parse_critique
from .providers import call_model, classify_provider
from .session import RedesignSession

__version__ = "0.1.0"
__all__ = [
    "ClearRedesignerError",
    "CritiqueReport",
    "HtmlExtractionError",
    "ImagePayload",
    "ImageReadError",
    "InputValidationError",
    "ModelCallError",
    "ModelSelection",
    "ModuleRecord",
    "RedesignSession",
    "SessionSnapshot",
    "TruncatedResponseError",
    "call_model",
    "classify_provider",
    "extract_html",
    "parse_critique",
]
