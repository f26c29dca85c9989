"""Construction of the long-lived service objects shared by both transports."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Optional

from answer_evaluation import evaluate_answer
from config import (
    EVALUATION_KEY,
    QUESTIONS_KEY,
    TRANSCRIPTION_KEY,
    AppConfig,
    LlmRoute,
    Settings,
    SpeechRoute,
    load_config,
    resolve_route,
)
from interview_session.controller import SessionController
from question_generation import generate_questions
from storage.catalog import CatalogStore
from storage.media import LocalMediaStorage
from storage.migrate import migrate
from storage.sessions import SessionStore
from storage.users import UserStore
from transcription import transcribe_media

from .auth import AuthService, build_auth

logger = logging.getLogger(__name__)


@dataclass
class AppServices:  # Everything a request handler needs
    settings: Settings
    controller: SessionController
    catalog: CatalogStore
    auth: AuthService
    media: LocalMediaStorage


def build_services(settings: Settings, *, app_config: Optional[AppConfig] = None) -> AppServices:
    """Migrate the database and wire stores, AI routes and the controller together."""

    migrate(settings.DB_PATH)
    cfg = app_config or load_config(Path(settings.APP_CONFIG_PATH))
    question_route = resolve_route(cfg, QUESTIONS_KEY, LlmRoute)
    evaluation_route = resolve_route(cfg, EVALUATION_KEY, LlmRoute)
    speech_route = resolve_route(cfg, TRANSCRIPTION_KEY, SpeechRoute)

    catalog = CatalogStore(settings.DB_PATH)
    media = LocalMediaStorage(Path(settings.MEDIA_DIR), settings.MEDIA_URL_PREFIX)
    controller = SessionController(
        sessions=SessionStore(settings.DB_PATH),
        catalog=catalog,
        media=media,
        generate=partial(generate_questions, route=question_route),
        transcribe=partial(transcribe_media, route=speech_route),
        evaluate=partial(evaluate_answer, route=evaluation_route),
        max_questions=settings.MAX_QUESTIONS,
    )
    logger.info(
        "Services ready db=%s questions=%s evaluation=%s speech=%s",
        settings.DB_PATH,
        question_route.name,
        evaluation_route.name,
        speech_route.name,
    )
    return AppServices(
        settings=settings,
        controller=controller,
        catalog=catalog,
        auth=build_auth(settings, UserStore(settings.DB_PATH)),
        media=media,
    )


__all__ = ["AppServices", "build_services"]
