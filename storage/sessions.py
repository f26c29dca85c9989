"""Persistence for interview session documents."""
from __future__ import annotations

import json
import sqlite3
from typing import List, Optional, Sequence

from interview_session.models import InterviewSession, Question, utc_now

from .sqlite import get_conn


class SessionStore:
    """SQLite-backed store holding one row per session with embedded questions.

    Every mutation is a single conditional UPDATE so callers can tell a lost
    race (no row matched) from a successful write.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def insert(self, session: InterviewSession) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute(
                """INSERT INTO interview_sessions
                   (id, owner_id, selected_jobs, selected_skills, resume_text, questions,
                    current_index, overall_score, status, start_time, end_time, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    session.id,
                    session.owner_id,
                    json.dumps(session.selected_jobs),
                    json.dumps(session.selected_skills),
                    session.resume_text,
                    _dump_questions(session.questions),
                    session.current_index,
                    session.overall_score,
                    session.status,
                    session.start_time,
                    session.end_time,
                    utc_now(),
                ),
            )

    def get(self, session_id: str) -> Optional[InterviewSession]:
        with get_conn(self._db_path) as conn:
            row = conn.execute("SELECT * FROM interview_sessions WHERE id = ?", (session_id,)).fetchone()
        return _row_to_session(row) if row else None

    def list_for_owner(self, owner_id: str, limit: int = 100) -> List[InterviewSession]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                """SELECT * FROM interview_sessions
                   WHERE owner_id = ?
                   ORDER BY start_time DESC, rowid DESC
                   LIMIT ?""",
                (owner_id, limit),
            ).fetchall()
        return [_row_to_session(row) for row in rows]

    def recent(self, limit: int = 20) -> List[InterviewSession]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM interview_sessions ORDER BY updated_at DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_session(row) for row in rows]

    def update_answer(
        self,
        session_id: str,
        index: int,
        question: Question,
    ) -> bool:
        """Write the answer fields of one question while the session is in progress.

        Only the addressed array element is touched, so concurrent saves to
        other questions of the same session are preserved.
        """

        prefix = f"$[{index}]"
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """UPDATE interview_sessions
                   SET questions = json_set(
                         questions,
                         ?, ?,
                         ?, ?,
                         ?, ?,
                         ?, json(?),
                         ?, ?
                       ),
                       updated_at = ?
                   WHERE id = ?
                     AND status = 'in-progress'
                     AND json_extract(questions, ?) = ?""",
                (
                    f"{prefix}.user_answer",
                    question.user_answer,
                    f"{prefix}.media_url",
                    question.media_url,
                    f"{prefix}.transcription",
                    question.transcription,
                    f"{prefix}.is_answered",
                    "true" if question.is_answered else "false",
                    f"{prefix}.answered_at",
                    question.answered_at,
                    utc_now(),
                    session_id,
                    f"{prefix}.id",
                    question.id,
                ),
            )
            return cur.rowcount == 1

    def move_index(self, session_id: str, from_index: int, to_index: int) -> bool:
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """UPDATE interview_sessions
                   SET current_index = ?, updated_at = ?
                   WHERE id = ?
                     AND status = 'in-progress'
                     AND current_index = ?
                     AND ? >= 0
                     AND ? < json_array_length(questions)""",
                (to_index, utc_now(), session_id, from_index, to_index, to_index),
            )
            return cur.rowcount == 1

    def mark_completed(self, session_id: str, end_time: str) -> bool:
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """UPDATE interview_sessions
                   SET status = 'completed', end_time = ?, updated_at = ?
                   WHERE id = ? AND status = 'in-progress'""",
                (end_time, utc_now(), session_id),
            )
            return cur.rowcount == 1

    def finalize(self, session_id: str, questions: Sequence[Question], overall_score: float) -> bool:
        """Persist evaluated questions and the overall score, moving ``completed`` to ``evaluated``."""

        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """UPDATE interview_sessions
                   SET questions = ?, overall_score = ?, status = 'evaluated', updated_at = ?
                   WHERE id = ? AND status = 'completed'""",
                (_dump_questions(questions), overall_score, utc_now(), session_id),
            )
            return cur.rowcount == 1


def _dump_questions(questions: Sequence[Question]) -> str:
    return json.dumps([question.model_dump() for question in questions], ensure_ascii=False)


def _row_to_session(row: sqlite3.Row) -> InterviewSession:
    return InterviewSession(
        id=row["id"],
        owner_id=row["owner_id"],
        selected_jobs=json.loads(row["selected_jobs"]),
        selected_skills=json.loads(row["selected_skills"]),
        resume_text=row["resume_text"] or "",
        questions=[Question.model_validate(item) for item in json.loads(row["questions"])],
        current_index=int(row["current_index"]),
        overall_score=float(row["overall_score"]),
        status=row["status"],
        start_time=row["start_time"],
        end_time=row["end_time"],
    )


__all__ = ["SessionStore"]
