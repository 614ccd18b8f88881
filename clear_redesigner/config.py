"""
Configuration Loading

Reads per-provider API keys, the default model and the optional HTTP
timeout from a .env file plus the process environment.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import DEFAULT_MODEL, Config

logger = logging.getLogger(__name__)

ENV_GEMINI_KEY = "GEMINI_API_KEY"
ENV_OPENAI_KEY = "OPENAI_API_KEY"
ENV_MODEL = "CLEAR_MODEL_ID"
ENV_CUSTOM_MODEL = "CLEAR_CUSTOM_MODEL_ID"
ENV_TIMEOUT = "CLEAR_REQUEST_TIMEOUT"


def find_env_file(env_file: Optional[Path] = None) -> Optional[Path]:
    """
    Pick the first .env file that exists.

    Order: the given path, ``./.env``, then ``~/.env``.
    """
    candidates = [env_file] if env_file else []
    candidates += [Path(".env"), Path.home() / ".env"]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(env_file: Optional[Path] = None) -> Config:
    """
    Build a Config from a .env file and the environment.

    Variables already present in the environment are not overridden by
    the .env file.

    Args:
        env_file: Optional explicit .env path

    Returns:
        Config with keys, default model and timeout

    Raises:
        pydantic.ValidationError: If CLEAR_REQUEST_TIMEOUT is not a positive number

    Example:
        config = load_config()
        selection = config.selection("gpt-5.1")
    """
    found = find_env_file(env_file)
    if found is not None:
        logger.debug("Loading environment from %s", found)
        load_dotenv(found)

    return Config(
        gemini_api_key=os.getenv(ENV_GEMINI_KEY),
        openai_api_key=os.getenv(ENV_OPENAI_KEY),
        model_id=os.getenv(ENV_MODEL) or DEFAULT_MODEL,
        custom_model_id=os.getenv(ENV_CUSTOM_MODEL),
        request_timeout=os.getenv(ENV_TIMEOUT) or None,
    )
