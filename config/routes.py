"""Routing configuration for the external AI services."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Type, TypeVar

from pydantic import BaseModel, Field

QUESTIONS_KEY = "question_generation.generate_questions"
EVALUATION_KEY = "answer_evaluation.evaluate_answer"
TRANSCRIPTION_KEY = "transcription.transcribe_media"


class LlmRoute(BaseModel):
    """Text-generation endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=2, ge=0)
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False
    enforce_json: bool = True


class SpeechRoute(BaseModel):
    """Speech-recognition endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(default=120.0, ge=0.1)
    language: str = "en-US"
    api_key_env: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """Application configuration root."""

    llm_routes: Dict[str, LlmRoute] = Field(default_factory=dict)
    speech_routes: Dict[str, SpeechRoute] = Field(default_factory=dict)
    registry: Dict[str, str]


R = TypeVar("R", LlmRoute, SpeechRoute)


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_route(cfg: AppConfig, target: str, kind: Type[R]) -> R:
    """Return the route bound to ``target`` in the registry.

    Raises:
        KeyError: If the registry entry or the referenced route is missing.
    """

    if target not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{target}'")
    route_id = cfg.registry[target]
    routes: Dict[str, R] = cfg.speech_routes if kind is SpeechRoute else cfg.llm_routes  # type: ignore[assignment]
    if route_id not in routes:
        raise KeyError(f"Route '{route_id}' missing for '{target}'")
    return routes[route_id]
