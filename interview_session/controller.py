"""Lifecycle controller for mock interview sessions.

The controller owns every state change of an :class:`InterviewSession`:
creation with generated questions, per-question answer capture, index
navigation and the one-shot completion/evaluation pass. Both transports
(HTTP routes and the WebSocket channel) call these methods and nothing else,
so authorization, ordering and error mapping stay identical between them.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from answer_evaluation import AnswerFeedback, EvaluationRequest
from observability import log_event, span
from question_generation import QuestionRequest
from storage.catalog import CatalogStore
from storage.media import MediaStorage
from storage.sessions import SessionStore
from transcription import is_supported_media

from .errors import (
    EvaluationFailure,
    Forbidden,
    GenerationFailure,
    InvalidState,
    NotFound,
    TranscriptionFailure,
    ValidationFailure,
)
from .models import (
    EVALUATION_FAILED_SUMMARY,
    TRANSCRIPTION_FAILED_PREFIX,
    Direction,
    EvaluationOutcome,
    InterviewSession,
    Question,
    SessionSummary,
    SessionView,
    has_answer,
    new_id,
    utc_now,
    zero_category_scores,
)

logger = logging.getLogger(__name__)

QuestionGenerator = Callable[[QuestionRequest], List[str]]
Transcriber = Callable[[bytes, str], str]
AnswerEvaluator = Callable[[EvaluationRequest], AnswerFeedback]


@dataclass(frozen=True)
class MediaUpload:  # Recorded answer blob as received from a transport
    data: bytes
    content_type: str


@dataclass
class _LockEntry:  # Per-session evaluation lock with a count of interested threads
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _unique(ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(item.strip() for item in ids if item and item.strip()))


def _failed(question: Question) -> Question:  # Degraded feedback for a question the grader could not score
    return question.model_copy(
        update={
            "ai_score": 0.0,
            "ai_category_scores": zero_category_scores(),
            "ai_feedback_summary": EVALUATION_FAILED_SUMMARY,
            "ai_strengths": [],
            "ai_areas_for_improvement": [],
        }
    )


class SessionController:
    def __init__(
        self,
        *,
        sessions: SessionStore,
        catalog: CatalogStore,
        media: MediaStorage,
        generate: QuestionGenerator,
        transcribe: Transcriber,
        evaluate: AnswerEvaluator,
        max_questions: int = 7,
        clock: Callable[[], str] = utc_now,
        epoch_ms: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._sessions = sessions
        self._catalog = catalog
        self._media = media
        self._generate = generate
        self._transcribe = transcribe
        self._evaluate = evaluate
        self._max_questions = max_questions
        self._clock = clock
        self._epoch_ms = epoch_ms
        self._locks: Dict[str, _LockEntry] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------ create
    def create_session(
        self,
        owner_id: str,
        job_ids: Sequence[str],
        skill_ids: Sequence[str],
        resume_text: str = "",
    ) -> SessionView:
        """Validate the selection, generate questions and persist an in-progress session.

        Nothing is persisted when validation or generation fails.
        """

        jobs = _unique(job_ids)
        skills = _unique(skill_ids)
        if not jobs or not skills:
            raise ValidationFailure("select at least one job and one skill")
        known_jobs = self._catalog.jobs_by_id(jobs)
        known_skills = self._catalog.skills_by_id(skills)
        unknown = [item for item in jobs if item not in known_jobs] + [
            item for item in skills if item not in known_skills
        ]
        if unknown:
            raise ValidationFailure(f"unknown job or skill ids: {', '.join(unknown)}")

        job_titles = [known_jobs[item].title for item in jobs]
        skill_names = [known_skills[item].name for item in skills]
        session_id = new_id()
        request = QuestionRequest(job_titles=job_titles, skill_names=skill_names, resume_text=resume_text or "")
        with span("generate_questions", session_id):
            texts = [text.strip() for text in self._generate(request) if text and text.strip()]
        texts = texts[: self._max_questions]
        if not texts:
            raise GenerationFailure("no interview questions could be generated")

        session = InterviewSession(
            id=session_id,
            owner_id=owner_id,
            selected_jobs=jobs,
            selected_skills=skills,
            resume_text=resume_text or "",
            questions=[Question(text=text) for text in texts],
            start_time=self._clock(),
        )
        session.move_to("in-progress")
        self._sessions.insert(session)
        log_event("session_created", session.id, status=session.status, questions=len(texts), owner_id=owner_id)
        return SessionView(**session.model_dump(), job_titles=job_titles, skill_names=skill_names)

    # ------------------------------------------------------------------ answers
    def save_answer(
        self,
        session_id: str,
        question_id: str,
        requester_id: str,
        text: str = "",
        media: Optional[MediaUpload] = None,
    ) -> Question:
        """Record the answer for one question, transcribing any attached recording.

        Each save fully describes the answer: without media the stored URL and
        transcription are cleared. Saves to other questions are never affected.
        """

        session = self._owned(session_id, requester_id)
        index = session.question_index(question_id)
        if index < 0:
            raise NotFound(f"question {question_id} not found")
        if session.status != "in-progress":
            raise InvalidState(f"answers cannot be saved while the session is {session.status}")

        media_url: Optional[str] = None
        transcription = ""
        if media is not None:
            if not is_supported_media(media.content_type):
                raise ValidationFailure(f"unsupported media type '{media.content_type}'")
            media_url = self._media.write(
                media.data,
                media.content_type,
                f"{session_id}_{question_id}_{self._epoch_ms()}",
            )
            transcription = self._transcribe_safely(session_id, question_id, media)

        answer = text or ""
        question = session.questions[index].model_copy(
            update={
                "user_answer": answer,
                "media_url": media_url,
                "transcription": transcription,
                "is_answered": has_answer(answer, transcription),
                "answered_at": self._clock(),
            }
        )
        if not self._sessions.update_answer(session_id, index, question):
            current = self._sessions.get(session_id)
            if current is None:
                raise NotFound(f"interview {session_id} not found")
            raise InvalidState(f"answers cannot be saved while the session is {current.status}")
        log_event(
            "answer_saved",
            session_id,
            question_id=question_id,
            index=index,
            answered=question.is_answered,
            media=media_url is not None,
        )
        return question

    def _transcribe_safely(self, session_id: str, question_id: str, media: MediaUpload) -> str:
        try:
            with span("transcribe_media", session_id, question_id=question_id):
                return self._transcribe(media.data, media.content_type)
        except TranscriptionFailure as exc:
            log_event("transcription_failed", session_id, question_id=question_id, reason=exc.message)
            return f"{TRANSCRIPTION_FAILED_PREFIX} {exc.message}"
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected transcription error session=%s question=%s", session_id, question_id)
            log_event("transcription_failed", session_id, question_id=question_id, reason=type(exc).__name__)
            return f"{TRANSCRIPTION_FAILED_PREFIX} unexpected {type(exc).__name__}"

    # ------------------------------------------------------------------ navigation
    def advance_question(self, session_id: str, requester_id: str, direction: Direction = "next") -> SessionView:
        """Move the presented question one step; racing moves from the same index apply once."""

        if direction not in ("next", "previous"):
            raise ValidationFailure(f"unknown direction '{direction}'")
        session = self._owned(session_id, requester_id)
        if session.status != "in-progress":
            raise InvalidState(f"cannot navigate while the session is {session.status}")
        target = session.current_index + (1 if direction == "next" else -1)
        if target < 0 or target >= len(session.questions):
            raise InvalidState(f"no {direction} question from index {session.current_index}")
        if not self._sessions.move_index(session_id, session.current_index, target):
            raise InvalidState("the session changed while navigating; reload and retry")
        log_event("question_advanced", session_id, direction=direction, index=target)
        return self.get_session(session_id, requester_id)

    # ------------------------------------------------------------------ evaluation
    def complete_and_evaluate(self, session_id: str, requester_id: str) -> EvaluationOutcome:
        """Close the session and score every answered question exactly once.

        A session that is already evaluated is returned unchanged. A session
        left in ``completed`` by an interrupted run is evaluated again from its
        stored answers.
        """

        with self._session_lock(session_id):
            session = self._owned(session_id, requester_id)
            if session.status == "evaluated":
                return self._outcome(session, already_evaluated=True)
            if session.status == "pending":
                raise InvalidState("the session has not started")
            if session.status == "in-progress":
                self._sessions.mark_completed(session_id, self._clock())
                session = self._reload(session_id)
                if session.status == "evaluated":
                    return self._outcome(session, already_evaluated=True)
                if session.status != "completed":
                    raise InvalidState(f"cannot complete a session that is {session.status}")

            log_event("evaluation_started", session_id, status=session.status, answered=session.answered_count())
            job_titles, skill_names = self._names(session.selected_jobs, session.selected_skills)
            evaluated: List[Question] = []
            scores: List[float] = []
            for question in session.questions:
                if not question.is_answered:
                    evaluated.append(question)
                    continue
                scored = self._score(session, question, job_titles, skill_names)
                scores.append(scored.ai_score)
                evaluated.append(scored)

            overall = sum(scores) / len(scores) if scores else 0.0
            if not self._sessions.finalize(session_id, evaluated, overall):
                current = self._reload(session_id)
                if current.status == "evaluated":
                    return self._outcome(current, already_evaluated=True)
                raise InvalidState(f"cannot finalize a session that is {current.status}")
            log_event("session_evaluated", session_id, status="evaluated", score=round(overall, 2), answered=len(scores))
            return self._outcome(self._reload(session_id), already_evaluated=False)

    def _score(
        self,
        session: InterviewSession,
        question: Question,
        job_titles: List[str],
        skill_names: List[str],
    ) -> Question:
        request = EvaluationRequest(
            question=question.text,
            answer=question.answer_content(),
            job_titles=job_titles,
            skill_names=skill_names,
            resume_text=session.resume_text,
        )
        try:
            with span("evaluate_answer", session.id, question_id=question.id):
                feedback = self._evaluate(request)
        except EvaluationFailure as exc:
            log_event("question_evaluation_failed", session.id, question_id=question.id, reason=exc.message)
            return _failed(question)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected evaluation error session=%s question=%s", session.id, question.id)
            log_event("question_evaluation_failed", session.id, question_id=question.id, reason=type(exc).__name__)
            return _failed(question)
        return question.model_copy(
            update={
                "ai_score": feedback.score,
                "ai_category_scores": dict(feedback.category_scores),
                "ai_feedback_summary": feedback.summary,
                "ai_strengths": list(feedback.strengths),
                "ai_areas_for_improvement": list(feedback.areas_for_improvement),
            }
        )

    # ------------------------------------------------------------------ reads
    def get_session(self, session_id: str, requester_id: str) -> SessionView:
        session = self._owned(session_id, requester_id)
        job_titles, skill_names = self._names(session.selected_jobs, session.selected_skills)
        return SessionView(**session.model_dump(), job_titles=job_titles, skill_names=skill_names)

    def list_sessions(self, owner_id: str) -> List[SessionSummary]:
        sessions = self._sessions.list_for_owner(owner_id)
        jobs = self._catalog.jobs_by_id(_unique([item for s in sessions for item in s.selected_jobs]))
        skills = self._catalog.skills_by_id(_unique([item for s in sessions for item in s.selected_skills]))
        return [
            SessionSummary(
                id=session.id,
                status=session.status,
                overall_score=session.overall_score,
                start_time=session.start_time,
                end_time=session.end_time,
                job_titles=[jobs[item].title for item in session.selected_jobs if item in jobs],
                skill_names=[skills[item].name for item in session.selected_skills if item in skills],
                total_questions=len(session.questions),
                answered_questions=session.answered_count(),
            )
            for session in sessions
        ]

    # ------------------------------------------------------------------ helpers
    def _owned(self, session_id: str, requester_id: str) -> InterviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f"interview {session_id} not found")
        if session.owner_id != requester_id:
            raise Forbidden("not authorized for this interview")
        return session

    def _reload(self, session_id: str) -> InterviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f"interview {session_id} not found")
        return session

    def _names(self, job_ids: Sequence[str], skill_ids: Sequence[str]) -> Tuple[List[str], List[str]]:
        jobs = self._catalog.jobs_by_id(list(job_ids))
        skills = self._catalog.skills_by_id(list(skill_ids))
        return (
            [jobs[item].title for item in job_ids if item in jobs],
            [skills[item].name for item in skill_ids if item in skills],
        )

    @contextmanager
    def _session_lock(self, session_id: str) -> Iterator[None]:  # Entry lives only while someone holds or waits
        with self._locks_guard:
            entry = self._locks.setdefault(session_id, _LockEntry())
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[session_id]

    @staticmethod
    def _outcome(session: InterviewSession, *, already_evaluated: bool) -> EvaluationOutcome:
        return EvaluationOutcome(
            session_id=session.id,
            status=session.status,
            overall_score=session.overall_score,
            evaluated_questions=session.answered_count(),
            already_evaluated=already_evaluated,
        )


__all__ = [
    "AnswerEvaluator",
    "MediaUpload",
    "QuestionGenerator",
    "SessionController",
    "Transcriber",
]
