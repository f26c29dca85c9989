"""Error taxonomy shared by the session controller and both transports."""
from __future__ import annotations


class InterviewError(Exception):
    """Base class for interview failures that map onto a client-visible status."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailure(InterviewError):
    status_code = 400


class Unauthorized(InterviewError):
    status_code = 401


class Forbidden(InterviewError):
    status_code = 403


class NotFound(InterviewError):
    status_code = 404


class InvalidState(InterviewError):
    status_code = 409


class GenerationFailure(InterviewError):
    status_code = 502


class TranscriptionFailure(InterviewError):
    """Raised by the transcription adapter; recorded as a marker, never returned to clients."""

    status_code = 502


class EvaluationFailure(InterviewError):
    """Raised by the answer evaluator; degrades a single question's feedback."""

    status_code = 502


__all__ = [
    "InterviewError",
    "ValidationFailure",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "InvalidState",
    "GenerationFailure",
    "TranscriptionFailure",
    "EvaluationFailure",
]
