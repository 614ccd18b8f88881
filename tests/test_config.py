"""Tests for .env loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from clear_redesigner.config import load_config
from clear_redesigner.models import DEFAULT_MODEL

ENV_VARS = (
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "CLEAR_MODEL_ID",
    "CLEAR_CUSTOM_MODEL_ID",
    "CLEAR_REQUEST_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate from the real environment, cwd and home .env files.

    setenv then delenv makes monkeypatch remove whatever load_dotenv
    writes into os.environ during the test.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)


def test_defaults_without_any_env_file() -> None:
    config = load_config()
    assert config.model_id == DEFAULT_MODEL
    assert config.request_timeout is None
    assert not config.has_gemini()
    assert not config.has_openai()


def test_explicit_env_file(tmp_path: Path) -> None:
    env_file = tmp_path / "custom.env"
    env_file.write_text(
        "GEMINI_API_KEY=g-key\n"
        "OPENAI_API_KEY=sk-key\n"
        "CLEAR_MODEL_ID=gpt-5.1\n"
        "CLEAR_REQUEST_TIMEOUT=45\n"
    )

    config = load_config(env_file)

    assert config.has_gemini()
    assert config.model_id == "gpt-5.1"
    assert config.request_timeout == 45.0
    assert config.selection().api_key == "sk-key"


def test_env_file_in_current_directory(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("CLEAR_CUSTOM_MODEL_ID=o3-mini\nOPENAI_API_KEY=sk-cwd\n")

    config = load_config()
    sel = config.selection(custom_model_id=config.custom_model_id)

    assert config.custom_model_id == "o3-mini"
    assert sel.effective_model_id == "o3-mini"
    assert sel.api_key == "sk-cwd"


def test_home_env_file_is_last_resort(tmp_path: Path) -> None:
    (tmp_path / "home" / ".env").write_text("GEMINI_API_KEY=from-home\n")
    assert load_config().gemini_api_key == "from-home"


def test_process_environment_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    env_file = tmp_path / "custom.env"
    env_file.write_text("GEMINI_API_KEY=from-file\n")

    assert load_config(env_file).gemini_api_key == "from-env"


def test_non_positive_timeout_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLEAR_REQUEST_TIMEOUT", "0")
    with pytest.raises(ValidationError):
        load_config()
