import os
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from answer_evaluation import AnswerFeedback, EvaluationRequest
from config.settings import settings
from interview_session.controller import SessionController
from interview_session.errors import EvaluationFailure, TranscriptionFailure
from question_generation import QuestionRequest
from storage.catalog import CatalogStore
from storage.media import LocalMediaStorage
from storage.migrate import migrate
from storage.sessions import SessionStore

FIXED_EPOCH_MS = 1_700_000_000_000


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch, tmp_path):
    db_path = str(tmp_path / "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "MEDIA_DIR", str(tmp_path / "uploads"), raising=False)
    migrate(db_path)
    yield db_path


class FakeAI:
    """Stand-in for the three AI adapters that records every call."""

    def __init__(self) -> None:
        self.questions: List[str] = [
            f"Question {index}: can you describe a relevant project?" for index in range(1, 6)
        ]
        self.generate_error: Optional[Exception] = None
        self.transcript = "I would profile first, then optimise the hot path."
        self.transcribe_error: Optional[str] = None
        self.scores: Dict[str, float] = {}
        self.failing_answers: set = set()
        self.generate_calls: List[QuestionRequest] = []
        self.transcribe_calls: List[tuple] = []
        self.evaluate_calls: List[EvaluationRequest] = []
        self._guard = threading.Lock()

    def generate(self, request: QuestionRequest) -> List[str]:
        self.generate_calls.append(request)
        if self.generate_error is not None:
            raise self.generate_error
        return list(self.questions)

    def transcribe(self, blob: bytes, content_type: str) -> str:
        self.transcribe_calls.append((blob, content_type))
        if self.transcribe_error is not None:
            raise TranscriptionFailure(self.transcribe_error)
        return self.transcript

    def evaluate(self, request: EvaluationRequest) -> AnswerFeedback:
        with self._guard:
            self.evaluate_calls.append(request)
        if request.answer in self.failing_answers:
            raise EvaluationFailure("grader unavailable")
        score = self.scores.get(request.answer, 7.0)
        return AnswerFeedback(
            summary="Clear and structured answer.",
            strengths=["Concrete example"],
            areas_for_improvement=["Quantify the impact"],
            score=score,
            category_scores={"technical": score, "behavioral": 6, "soft_skills": 8},
        )


@pytest.fixture
def fake_ai() -> FakeAI:
    return FakeAI()


@pytest.fixture
def catalog_ids(tmp_db) -> Dict[str, object]:
    catalog = CatalogStore(tmp_db)
    job = catalog.add_job("Backend Engineer", "Design and operate HTTP services")
    python = catalog.add_skill("Python", "Programming")
    sql = catalog.add_skill("SQL", "Data")
    return {"jobs": [job.id], "skills": [python.id, sql.id]}


@pytest.fixture
def controller(tmp_db, tmp_path, fake_ai) -> SessionController:
    return SessionController(
        sessions=SessionStore(tmp_db),
        catalog=CatalogStore(tmp_db),
        media=LocalMediaStorage(tmp_path / "uploads"),
        generate=fake_ai.generate,
        transcribe=fake_ai.transcribe,
        evaluate=fake_ai.evaluate,
        max_questions=settings.MAX_QUESTIONS,
        epoch_ms=lambda: FIXED_EPOCH_MS,
    )


@pytest.fixture
def app_client(tmp_db, tmp_path, controller):
    from fastapi.testclient import TestClient

    from api_server import create_app
    from services.auth import build_auth
    from services.container import AppServices
    from storage.users import UserStore

    services = AppServices(
        settings=settings,
        controller=controller,
        catalog=CatalogStore(tmp_db),
        auth=build_auth(settings, UserStore(tmp_db)),
        media=LocalMediaStorage(tmp_path / "uploads"),
    )
    with TestClient(create_app(services)) as client:
        yield client
