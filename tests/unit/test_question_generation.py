import pytest

import question_generation.question_generation as qg_mod
from config import LlmRoute
from config.settings import settings
from interview_session.errors import GenerationFailure
from llm_gateway import LlmGatewayError


def _route() -> LlmRoute:
    return LlmRoute(
        name="test",
        base_url="http://example.com",
        endpoint="/llm",
        model="test-model",
        timeout_s=1.0,
    )


def _request(resume: str = "") -> qg_mod.QuestionRequest:
    return qg_mod.QuestionRequest(
        job_titles=["Backend Engineer", "Data Engineer"],
        skill_names=["Python", "SQL"],
        resume_text=resume,
    )


def test_parse_questions_keeps_numbered_questions_only() -> None:
    reply = "\n".join(
        [
            "Here are your questions:",
            "1. Tell me about a service you scaled under load?",
            "2.   How do you design idempotent APIs?",
            "3. Short?",
            "4. Describe your testing strategy for data pipelines.",
            "A closing remark without numbering?",
            "  5. What trade-offs did you make when choosing SQLite over Postgres?",
        ]
    )

    questions = qg_mod.parse_questions(reply, limit=7)

    assert questions == [
        "Tell me about a service you scaled under load?",
        "How do you design idempotent APIs?",
        "What trade-offs did you make when choosing SQLite over Postgres?",
    ]


def test_parse_questions_returns_empty_when_nothing_survives() -> None:
    assert qg_mod.parse_questions("No questions today.\n1. Why?", limit=7) == []


def test_json_reply_is_filtered_like_text() -> None:
    parsed = qg_mod.QuestionList.model_validate_json(
        '{"questions": ["1. How do you review code for security issues?", "bad", "Why?"]}'
    )
    assert parsed.questions == ["How do you review code for security issues?"]


def test_build_task_truncates_resume_and_lists_roles() -> None:
    resume = "R" * (settings.RESUME_PROMPT_CHARS + 500)
    task = qg_mod._build_task(_request(resume))

    assert '"Backend Engineer, Data Engineer"' in task
    assert '"Python, SQL"' in task
    assert "R" * settings.RESUME_PROMPT_CHARS in task
    assert "R" * (settings.RESUME_PROMPT_CHARS + 1) not in task
    assert "numbered list" in task


def test_build_task_without_resume_mentions_it() -> None:
    assert "No resume was provided." in qg_mod._build_task(_request())


def test_generate_questions_caps_count(monkeypatch) -> None:
    captured = {}

    def fake_call(task, schema, *, cfg):
        captured["task"] = task
        captured["cfg"] = cfg
        return schema(questions=[f"Question {index} about your background here?" for index in range(10)])

    monkeypatch.setattr(qg_mod, "call", fake_call)
    questions = qg_mod.generate_questions(_request(), route=_route())

    assert len(questions) == settings.MAX_QUESTIONS
    assert captured["cfg"].name == "test"
    assert "Backend Engineer" in captured["task"]


def test_generate_questions_wraps_gateway_errors(monkeypatch) -> None:
    def failing_call(task, schema, *, cfg):
        raise LlmGatewayError("LLM transport failed")

    monkeypatch.setattr(qg_mod, "call", failing_call)
    with pytest.raises(GenerationFailure):
        qg_mod.generate_questions(_request(), route=_route())
