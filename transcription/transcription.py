"""Speech-to-text adapter for recorded answers."""
from __future__ import annotations

import logging

from config import SpeechRoute
from interview_session.errors import TranscriptionFailure, ValidationFailure
from llm_gateway import SpeechGatewayError, transcribe_audio

logger = logging.getLogger(__name__)

SUPPORTED_PREFIXES = ("audio/", "video/")


def is_supported_media(content_type: str) -> bool:
    return (content_type or "").lower().startswith(SUPPORTED_PREFIXES)


def transcribe_media(blob: bytes, content_type: str, *, route: SpeechRoute) -> str:
    """Return the transcript for an audio or video answer.

    An empty recording yields an empty transcript without calling the service.

    Raises:
        ValidationFailure: If ``content_type`` is not audio or video.
        TranscriptionFailure: If the speech service fails or returns nothing usable.
    """

    if not is_supported_media(content_type):
        raise ValidationFailure(f"unsupported media type '{content_type}'")
    if not blob:
        return ""
    try:
        return transcribe_audio(blob, content_type, cfg=route)
    except SpeechGatewayError as exc:
        logger.warning("Transcription failed route=%s: %s", route.name, exc)
        raise TranscriptionFailure(str(exc)) from exc
