"""Interview session domain: models, errors and the lifecycle controller.

The controller lives in :mod:`interview_session.controller` and is imported
from there; this package only re-exports the models and errors that the
storage layer and the AI adapters depend on.
"""
from .errors import (
    EvaluationFailure,
    Forbidden,
    GenerationFailure,
    InterviewError,
    InvalidState,
    NotFound,
    TranscriptionFailure,
    Unauthorized,
    ValidationFailure,
)
from .models import (
    EvaluationOutcome,
    InterviewSession,
    Question,
    SessionStatus,
    SessionSummary,
    SessionView,
)

__all__ = [
    "EvaluationFailure",
    "EvaluationOutcome",
    "Forbidden",
    "GenerationFailure",
    "InterviewError",
    "InterviewSession",
    "InvalidState",
    "NotFound",
    "Question",
    "SessionStatus",
    "SessionSummary",
    "SessionView",
    "TranscriptionFailure",
    "Unauthorized",
    "ValidationFailure",
]
