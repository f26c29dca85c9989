import json
from typing import Any, Dict, List

import pytest

from answer_evaluation import AnswerFeedback
from config import LlmRoute
from llm_gateway import LlmGatewayError, call
from question_generation import QuestionList


class FakeResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        return self._payload

    @property
    def text(self) -> str:
        return json.dumps(self._payload)


class FakeClient:
    def __init__(self, replies: List[FakeResponse]) -> None:
        self.replies = list(replies)
        self.requests: List[Dict[str, Any]] = []

    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        self.requests.append({"url": url, "json": json, "headers": headers})
        return self.replies.pop(0)


def _chat(content: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"content": content}}]})


def _route(**overrides: Any) -> LlmRoute:
    values = dict(name="r", base_url="http://llm", endpoint="/v1/chat", model="m", timeout_s=1.0, max_retries=1)
    values.update(overrides)
    return LlmRoute(**values)


def test_call_accepts_json_reply() -> None:
    client = FakeClient([_chat('{"questions": ["1. How would you shard a growing table?"]}')])

    result = call("task", QuestionList, cfg=_route(), client=client)

    assert result.questions == ["How would you shard a growing table?"]
    assert client.requests[0]["url"] == "http://llm/v1/chat"
    assert client.requests[0]["json"]["messages"][0]["role"] == "system"


def test_call_falls_back_to_plain_text_adapter() -> None:
    client = FakeClient([_chat("```\nSummary: Good.\nScore: 6\nTechnical Relevance: 5\n```")])

    result = call("task", AnswerFeedback, cfg=_route(), client=client)

    assert result.summary == "Good."
    assert result.score == 6.0
    assert result.category_scores["technical"] == 5.0


def test_call_retries_then_fails_on_unusable_output() -> None:
    client = FakeClient([_chat("nothing useful"), _chat("still nothing")])

    with pytest.raises(LlmGatewayError):
        call("task", QuestionList, cfg=_route(), client=client)
    assert len(client.requests) == 2
    retry_messages = client.requests[1]["json"]["messages"]
    assert "previous reply failed validation" in retry_messages[-1]["content"]


def test_rate_limit_is_reported_as_gateway_error() -> None:
    client = FakeClient([FakeResponse(429, {"error": "slow down"})])

    with pytest.raises(LlmGatewayError, match="rate limit"):
        call("task", QuestionList, cfg=_route(), client=client)


def test_api_key_is_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    client = FakeClient([_chat('{"questions": ["What is your favourite debugging tool?"]}')])

    call("task", QuestionList, cfg=_route(api_key_env="TEST_LLM_KEY"), client=client)

    assert client.requests[0]["headers"]["Authorization"] == "Bearer secret"
