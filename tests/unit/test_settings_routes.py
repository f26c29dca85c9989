from pathlib import Path

import pytest

from config import (
    EVALUATION_KEY,
    QUESTIONS_KEY,
    TRANSCRIPTION_KEY,
    AppConfig,
    LlmRoute,
    SpeechRoute,
    load_config,
    resolve_route,
)
from config.settings import Settings

ROOT = Path(__file__).resolve().parents[2]


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.QUESTION_SECONDS == 60
    assert settings.MAX_QUESTIONS == 7


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MAX_QUESTIONS", "5")
    monkeypatch.setenv("JWT_SECRET", "from-env")
    settings = Settings(_env_file=None)
    assert settings.MAX_QUESTIONS == 5
    assert settings.JWT_SECRET == "from-env"


def test_shipped_config_binds_every_adapter():
    cfg = load_config(ROOT / "app_config.json")

    assert resolve_route(cfg, QUESTIONS_KEY, LlmRoute).name == "interviewer"
    assert resolve_route(cfg, EVALUATION_KEY, LlmRoute).sequential is True
    assert resolve_route(cfg, TRANSCRIPTION_KEY, SpeechRoute).model == "whisper-1"


def test_resolve_route_reports_missing_entries():
    cfg = AppConfig(registry={QUESTIONS_KEY: "ghost"})

    with pytest.raises(KeyError, match="Registry entry missing"):
        resolve_route(cfg, EVALUATION_KEY, LlmRoute)
    with pytest.raises(KeyError, match="Route 'ghost' missing"):
        resolve_route(cfg, QUESTIONS_KEY, LlmRoute)
