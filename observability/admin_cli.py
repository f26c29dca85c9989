"""Lightweight CLI helpers for inspecting sessions and seeding the catalog."""
from __future__ import annotations

import argparse
import sqlite3
from typing import Optional, Sequence

from config.settings import settings
from storage.catalog import CatalogStore
from storage.migrate import migrate
from storage.sessions import SessionStore


def tail_sessions(limit: int = 20, db_path: Optional[str] = None) -> None:
    for session in SessionStore(db_path or settings.DB_PATH).recent(limit):
        print(
            f"[{session.start_time}] {session.id} owner={session.owner_id} status={session.status} "
            f"answered={session.answered_count()}/{len(session.questions)} score={session.overall_score:.1f}"
        )


def add_job(title: str, description: str, db_path: Optional[str] = None) -> None:
    try:
        record = CatalogStore(db_path or settings.DB_PATH).add_job(title, description)
    except sqlite3.IntegrityError:
        print(f"job '{title}' already exists")
        return
    print(f"added job {record.id} {record.title}")


def add_skill(name: str, category: str = "General", db_path: Optional[str] = None) -> None:
    try:
        record = CatalogStore(db_path or settings.DB_PATH).add_skill(name, category)
    except sqlite3.IntegrityError:
        print(f"skill '{name}' already exists")
        return
    print(f"added skill {record.id} {record.name} ({record.category})")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--add-job", nargs=2, metavar=("TITLE", "DESCRIPTION"), help="Add a job to the catalog")
    parser.add_argument("--add-skill", nargs="+", metavar="NAME", help="Add a skill: NAME [CATEGORY]")
    args = parser.parse_args(argv)

    migrate(settings.DB_PATH)
    if args.add_job:
        add_job(*args.add_job)
    if args.add_skill:
        add_skill(args.add_skill[0], *(args.add_skill[1:2] or ["General"]))
    if args.tail_sessions:
        tail_sessions(args.tail_sessions)


if __name__ == "__main__":
    main()
