from __future__ import annotations  # Interview session domain models

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .errors import InvalidState

SessionStatus = Literal["pending", "in-progress", "completed", "evaluated"]
QuestionType = Literal["behavioral", "technical", "situational", "general"]
Direction = Literal["next", "previous"]

STATUS_ORDER: tuple[str, ...] = ("pending", "in-progress", "completed", "evaluated")
CATEGORY_KEYS: tuple[str, ...] = ("technical", "behavioral", "soft_skills")

TRANSCRIPTION_FAILED_PREFIX = "Transcription failed:"
EVALUATION_FAILED_SUMMARY = "Evaluation failed due to AI error."


def utc_now() -> str:  # ISO timestamp used for every persisted time field
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_id() -> str:
    return uuid4().hex


def has_answer(user_answer: str, transcription: str) -> bool:  # Derived answered flag
    return bool((user_answer or "").strip()) or bool((transcription or "").strip())


def is_transcription_failure(transcription: str) -> bool:
    return (transcription or "").startswith(TRANSCRIPTION_FAILED_PREFIX)


def check_transition(current: str, target: str) -> None:
    """Reject any status change that does not move forward."""

    if STATUS_ORDER.index(target) <= STATUS_ORDER.index(current):
        raise InvalidState(f"cannot move session from '{current}' to '{target}'")


def zero_category_scores() -> Dict[str, float]:
    return {key: 0.0 for key in CATEGORY_KEYS}


class Question(BaseModel):  # Question subdocument embedded in a session
    id: str = Field(default_factory=new_id)
    text: str
    type: QuestionType = "general"
    user_answer: str = ""
    media_url: Optional[str] = None
    transcription: str = ""
    is_answered: bool = False
    answered_at: Optional[str] = None
    ai_score: float = Field(default=0.0, ge=0.0, le=10.0)
    ai_category_scores: Dict[str, float] = Field(default_factory=zero_category_scores)
    ai_feedback_summary: str = ""
    ai_strengths: List[str] = Field(default_factory=list)
    ai_areas_for_improvement: List[str] = Field(default_factory=list)

    def answer_content(self) -> str:  # Text handed to the evaluator
        if self.transcription.strip() and not is_transcription_failure(self.transcription):
            return self.transcription.strip()
        if self.user_answer.strip():
            return self.user_answer.strip()
        return self.transcription.strip()


class InterviewSession(BaseModel):  # Root aggregate persisted as one document
    id: str = Field(default_factory=new_id)
    owner_id: str
    selected_jobs: List[str] = Field(min_length=1)
    selected_skills: List[str] = Field(min_length=1)
    resume_text: str = ""
    questions: List[Question] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    overall_score: float = Field(default=0.0, ge=0.0, le=10.0)
    status: SessionStatus = "pending"
    start_time: str = Field(default_factory=utc_now)
    end_time: Optional[str] = None

    def question_index(self, question_id: str) -> int:
        for index, item in enumerate(self.questions):
            if item.id == question_id:
                return index
        return -1

    def answered_count(self) -> int:
        return sum(1 for item in self.questions if item.is_answered)

    def move_to(self, target: SessionStatus) -> None:
        check_transition(self.status, target)
        self.status = target


class SessionView(InterviewSession):  # Session document enriched with catalog names for clients
    job_titles: List[str] = Field(default_factory=list)
    skill_names: List[str] = Field(default_factory=list)


class SessionSummary(BaseModel):  # Row shown on the past interviews screen
    id: str
    status: SessionStatus
    overall_score: float
    start_time: str
    end_time: Optional[str] = None
    job_titles: List[str] = Field(default_factory=list)
    skill_names: List[str] = Field(default_factory=list)
    total_questions: int
    answered_questions: int


class EvaluationOutcome(BaseModel):  # Result of complete_and_evaluate
    session_id: str
    status: SessionStatus
    overall_score: float
    evaluated_questions: int
    already_evaluated: bool = False


__all__ = [
    "CATEGORY_KEYS",
    "Direction",
    "EVALUATION_FAILED_SUMMARY",
    "EvaluationOutcome",
    "InterviewSession",
    "Question",
    "QuestionType",
    "STATUS_ORDER",
    "SessionStatus",
    "SessionSummary",
    "SessionView",
    "TRANSCRIPTION_FAILED_PREFIX",
    "check_transition",
    "has_answer",
    "is_transcription_failure",
    "new_id",
    "utc_now",
    "zero_category_scores",
]
