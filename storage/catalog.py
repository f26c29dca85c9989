from __future__ import annotations  # Job and skill catalog storage

from typing import Dict, List, Sequence
from uuid import uuid4

from pydantic import BaseModel

from interview_session.models import utc_now

from .sqlite import get_conn


class JobRecord(BaseModel):  # Selectable job role
    id: str
    title: str
    description: str


class SkillRecord(BaseModel):  # Selectable skill
    id: str
    name: str
    category: str = "General"


class CatalogStore:  # Read-mostly access to the job and skill tables
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def list_jobs(self) -> List[JobRecord]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute("SELECT id, title, description FROM jobs ORDER BY title").fetchall()
        return [JobRecord(id=row["id"], title=row["title"], description=row["description"]) for row in rows]

    def list_skills(self) -> List[SkillRecord]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute("SELECT id, name, category FROM skills ORDER BY category, name").fetchall()
        return [SkillRecord(id=row["id"], name=row["name"], category=row["category"]) for row in rows]

    def jobs_by_id(self, ids: Sequence[str]) -> Dict[str, JobRecord]:  # Resolve ids, silently dropping unknown ones
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                f"SELECT id, title, description FROM jobs WHERE id IN ({placeholders})",
                tuple(ids),
            ).fetchall()
        return {row["id"]: JobRecord(id=row["id"], title=row["title"], description=row["description"]) for row in rows}

    def skills_by_id(self, ids: Sequence[str]) -> Dict[str, SkillRecord]:
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                f"SELECT id, name, category FROM skills WHERE id IN ({placeholders})",
                tuple(ids),
            ).fetchall()
        return {row["id"]: SkillRecord(id=row["id"], name=row["name"], category=row["category"]) for row in rows}

    def add_job(self, title: str, description: str) -> JobRecord:
        record = JobRecord(id=uuid4().hex, title=title.strip(), description=description.strip())
        with get_conn(self._db_path) as conn:
            conn.execute(
                "INSERT INTO jobs (id, title, description, created_at) VALUES (?, ?, ?, ?)",
                (record.id, record.title, record.description, utc_now()),
            )
        return record

    def add_skill(self, name: str, category: str = "General") -> SkillRecord:
        record = SkillRecord(id=uuid4().hex, name=name.strip(), category=category.strip() or "General")
        with get_conn(self._db_path) as conn:
            conn.execute(
                "INSERT INTO skills (id, name, category, created_at) VALUES (?, ?, ?, ?)",
                (record.id, record.name, record.category, utc_now()),
            )
        return record


__all__ = ["CatalogStore", "JobRecord", "SkillRecord"]
