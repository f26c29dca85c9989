import pytest
from pydantic import ValidationError

import answer_evaluation.evaluation as eval_mod
from config import LlmRoute
from config.settings import settings
from interview_session.errors import EvaluationFailure
from llm_gateway import LlmGatewayError

TEXT_REPLY = """Summary: The answer is structured and gives a concrete example.
Strengths: - Uses a real incident
- Explains the rollback plan
Areas for Improvement: - Quantify the impact
- Mention monitoring
Score: 8
Technical Relevance: 7
Behavioral Aspects: 6
Communication Clarity: 9
"""


def _route() -> LlmRoute:
    return LlmRoute(name="grader", base_url="http://example.com", endpoint="/llm", model="m", timeout_s=1.0)


def test_from_raw_content_parses_labelled_reply() -> None:
    feedback = eval_mod.AnswerFeedback.from_raw_content(TEXT_REPLY)

    assert feedback.summary == "The answer is structured and gives a concrete example."
    assert feedback.strengths == ["Uses a real incident", "Explains the rollback plan"]
    assert feedback.areas_for_improvement == ["Quantify the impact", "Mention monitoring"]
    assert feedback.score == 8.0
    assert feedback.category_scores == {"technical": 7.0, "behavioral": 6.0, "soft_skills": 9.0}


def test_from_raw_content_defaults_missing_parts() -> None:
    feedback = eval_mod.AnswerFeedback.from_raw_content("Score: 5")

    assert feedback.summary == eval_mod.NO_SUMMARY
    assert feedback.strengths == []
    assert feedback.category_scores == {"technical": 0.0, "behavioral": 0.0, "soft_skills": 0.0}


def test_from_raw_content_rejects_unrelated_text() -> None:
    with pytest.raises(ValueError):
        eval_mod.AnswerFeedback.from_raw_content("I cannot grade this.")


def test_scores_are_clamped_to_range() -> None:
    feedback = eval_mod.AnswerFeedback(score=14, category_scores={"technical": -2, "behavioral": 11})

    assert feedback.score == 10.0
    assert feedback.category_scores == {"technical": 0.0, "behavioral": 10.0, "soft_skills": 0.0}


def test_build_task_truncates_resume_for_grading() -> None:
    request = eval_mod.EvaluationRequest(
        question="How do you handle flaky tests?",
        answer="Quarantine and fix them.",
        job_titles=["QA Engineer"],
        skill_names=["pytest"],
        resume_text="x" * (settings.RESUME_EVAL_CHARS + 10),
    )
    task = eval_mod._build_task(request)

    assert 'Question: "How do you handle flaky tests?"' in task
    assert "Quarantine and fix them." in task
    assert "x" * settings.RESUME_EVAL_CHARS in task
    assert "x" * (settings.RESUME_EVAL_CHARS + 1) not in task


def test_evaluate_answer_wraps_gateway_errors(monkeypatch) -> None:
    def failing_call(task, schema, *, cfg):
        raise LlmGatewayError("LLM rate limit reached")

    monkeypatch.setattr(eval_mod, "call", failing_call)
    request = eval_mod.EvaluationRequest(question="Q?", answer="A")
    with pytest.raises(EvaluationFailure):
        eval_mod.evaluate_answer(request, route=_route())


@pytest.mark.parametrize("bad", [None, [7], {"value": 7}, "seven", True])
def test_non_numeric_scores_fail_validation(bad) -> None:
    with pytest.raises(ValidationError):
        eval_mod.AnswerFeedback.model_validate({"summary": "ok", "score": bad})
    with pytest.raises(ValidationError):
        eval_mod.AnswerFeedback.model_validate({"score": 5, "category_scores": {"technical": [bad]}})


def test_null_score_reply_becomes_evaluation_failure(monkeypatch) -> None:
    import llm_gateway.llm_gateway as gateway_mod

    replies = []

    def reply(messages, cfg, client, options):
        replies.append(messages)
        return '{"summary": "ok", "score": null}'

    monkeypatch.setattr(gateway_mod, "_request", reply)
    request = eval_mod.EvaluationRequest(question="Why Python?", answer="Because.")

    with pytest.raises(EvaluationFailure):
        eval_mod.evaluate_answer(request, route=_route())
    assert len(replies) == _route().max_retries + 1


def test_null_score_then_valid_reply_is_retried(monkeypatch) -> None:
    import llm_gateway.llm_gateway as gateway_mod

    replies = iter(['{"summary": "ok", "score": null}', '{"summary": "Better.", "score": "6.5"}'])
    monkeypatch.setattr(gateway_mod, "_request", lambda messages, cfg, client, options: next(replies))
    request = eval_mod.EvaluationRequest(question="Why Python?", answer="Because.")

    feedback = eval_mod.evaluate_answer(request, route=_route())

    assert feedback.summary == "Better."
    assert feedback.score == 6.5
