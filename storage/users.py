from __future__ import annotations  # User account storage

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel

from interview_session.models import utc_now

from .sqlite import get_conn


class UserRecord(BaseModel):  # Public user fields
    id: str
    username: str
    email: str
    created_at: str


class UserStore:  # SQLite-backed user accounts
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def create(self, *, username: str, email: str, password_hash: str) -> UserRecord:
        """Insert a user; raises ``sqlite3.IntegrityError`` on duplicate username or email."""

        record = UserRecord(
            id=uuid4().hex,
            username=username.strip(),
            email=email.strip().lower(),
            created_at=utc_now(),
        )
        with get_conn(self._db_path) as conn:
            conn.execute(
                "INSERT INTO users (id, username, email, password_hash, created_at) VALUES (?, ?, ?, ?, ?)",
                (record.id, record.username, record.email, password_hash, record.created_at),
            )
        return record

    def get(self, user_id: str) -> Optional[UserRecord]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                "SELECT id, username, email, created_at FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return None
        return UserRecord(id=row["id"], username=row["username"], email=row["email"], created_at=row["created_at"])

    def credentials_for(self, email: str) -> Optional[tuple[UserRecord, str]]:  # User plus stored hash for login
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                "SELECT id, username, email, created_at, password_hash FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        if row is None:
            return None
        user = UserRecord(id=row["id"], username=row["username"], email=row["email"], created_at=row["created_at"])
        return user, row["password_hash"]


__all__ = ["UserRecord", "UserStore"]
