"""Configuration package for the mock interview service."""
from .routes import (
    EVALUATION_KEY,
    QUESTIONS_KEY,
    TRANSCRIPTION_KEY,
    AppConfig,
    LlmRoute,
    SpeechRoute,
    load_config,
    resolve_route,
)
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "SpeechRoute",
    "load_config",
    "resolve_route",
    "QUESTIONS_KEY",
    "EVALUATION_KEY",
    "TRANSCRIPTION_KEY",
    "Settings",
    "settings",
]
