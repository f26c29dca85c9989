"""Client-side driver for a timed interview.

``InterviewRunner`` keeps the local answer drafts, arms a
:class:`QuestionCountdown` for the question on screen and, when the timer
expires or the user navigates, saves the current answer before moving on.
Saving always completes before the advance or completion request is sent.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx

from .countdown import QuestionCountdown

logger = logging.getLogger(__name__)


@dataclass
class AnswerDraft:  # Local answer state for one question
    text: str = ""
    media: Optional[bytes] = None
    media_type: Optional[str] = None


class InterviewTransport(Protocol):
    async def save_answer(self, interview_id: str, question_id: str, draft: AnswerDraft) -> Dict[str, Any]: ...

    async def advance(self, interview_id: str, direction: str) -> Dict[str, Any]: ...

    async def complete(self, interview_id: str) -> Dict[str, Any]: ...


class HttpInterviewTransport:  # Talks to the HTTP routes with a bearer token
    def __init__(self, base_url: str, token: str, *, client: Optional[httpx.AsyncClient] = None) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=180.0)
        self._headers = {"Authorization": f"Bearer {token}"}

    async def save_answer(self, interview_id: str, question_id: str, draft: AnswerDraft) -> Dict[str, Any]:
        files = None
        if draft.media is not None:
            media_type = draft.media_type or "audio/webm"
            files = {"media_file": (f"answer.{media_type.split('/')[-1].split(';')[0]}", draft.media, media_type)}
        response = await self._client.put(
            f"/api/interview/{interview_id}/answer",
            data={"question_id": question_id, "user_answer": draft.text},
            files=files,
            headers=self._headers,
        )
        response.raise_for_status()
        return response.json()

    async def advance(self, interview_id: str, direction: str) -> Dict[str, Any]:
        response = await self._client.post(
            f"/api/interview/{interview_id}/advance",
            json={"direction": direction},
            headers=self._headers,
        )
        response.raise_for_status()
        return response.json()

    async def complete(self, interview_id: str) -> Dict[str, Any]:
        response = await self._client.put(
            f"/api/interview/{interview_id}/complete-and-evaluate",
            headers=self._headers,
        )
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()


@dataclass
class RunnerState:
    interview_id: str
    question_ids: List[str]
    current_index: int = 0
    status: str = "in-progress"
    drafts: Dict[str, AnswerDraft] = field(default_factory=dict)
    outcome: Optional[Dict[str, Any]] = None


class InterviewRunner:
    def __init__(self, transport: InterviewTransport, session: Dict[str, Any], *, seconds: float = 60.0) -> None:
        self._transport = transport
        self.state = RunnerState(
            interview_id=session["id"],
            question_ids=[item["id"] for item in session["questions"]],
            current_index=int(session.get("current_index", 0)),
            status=session.get("status", "in-progress"),
        )
        self._countdown = QuestionCountdown(seconds, self._on_expire)
        self._busy = asyncio.Lock()
        self.finished = asyncio.Event()

    @property
    def current_question_id(self) -> str:
        return self.state.question_ids[self.state.current_index]

    @property
    def countdown(self) -> QuestionCountdown:
        return self._countdown

    def start(self) -> None:
        if self.state.status == "in-progress":
            self._countdown.arm(self.current_question_id)

    def set_answer(self, text: str, *, media: Optional[bytes] = None, media_type: Optional[str] = None) -> None:
        self.state.drafts[self.current_question_id] = AnswerDraft(text=text, media=media, media_type=media_type)

    async def next(self) -> None:
        await self._move("next", expected=self.current_question_id)

    async def previous(self) -> None:
        await self._move("previous", expected=self.current_question_id)

    async def finish(self) -> Dict[str, Any]:
        await self._move("complete", expected=self.current_question_id)
        return self.state.outcome or {}

    async def _on_expire(self, question_id: str) -> None:
        last = self.state.current_index == len(self.state.question_ids) - 1
        await self._move("complete" if last else "next", expected=question_id)

    async def _move(self, action: str, *, expected: str) -> None:
        async with self._busy:
            # A timer expiry that lost the race against manual navigation is dropped here.
            if self.state.status != "in-progress" or self.current_question_id != expected:
                logger.info("Ignoring stale %s for question=%s", action, expected)
                return
            self._countdown.cancel()
            draft = self.state.drafts.get(expected, AnswerDraft())
            await self._transport.save_answer(self.state.interview_id, expected, draft)
            if action == "complete":
                self.state.outcome = await self._transport.complete(self.state.interview_id)
                self.state.status = str(self.state.outcome.get("status", "evaluated"))
                self.finished.set()
                return
            view = await self._transport.advance(self.state.interview_id, action)
            self.state.current_index = int(view["current_index"])
            self._countdown.arm(self.current_question_id)


__all__ = ["AnswerDraft", "HttpInterviewTransport", "InterviewRunner", "InterviewTransport", "RunnerState"]
