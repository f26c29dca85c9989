"""Per-question countdown used to auto-advance a timed interview."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

ExpiryCallback = Callable[[str], Awaitable[None]]


class QuestionCountdown:
    """Single-shot, cancellable timer bound to one question id at a time.

    Arming for a question cancels any pending timer, so at most one expiry is
    outstanding and each arming fires at most once. The expiry callback runs
    after the timer has detached itself; it may re-arm for the next question.
    """

    def __init__(self, seconds: float, on_expire: ExpiryCallback) -> None:
        if seconds <= 0:
            raise ValueError("countdown must be positive")
        self._seconds = float(seconds)
        self._on_expire = on_expire
        self._task: Optional[asyncio.Task] = None
        self._question_id: Optional[str] = None
        self._deadline = 0.0

    @property
    def armed_for(self) -> Optional[str]:
        return self._question_id if self._task is not None else None

    def remaining(self) -> float:
        if self._task is None:
            return 0.0
        return max(0.0, self._deadline - time.monotonic())

    def arm(self, question_id: str) -> None:
        self.cancel()
        self._question_id = question_id
        self._deadline = time.monotonic() + self._seconds
        self._task = asyncio.get_running_loop().create_task(self._run(question_id))

    def cancel(self) -> None:
        task, self._task = self._task, None
        self._question_id = None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, question_id: str) -> None:
        await asyncio.sleep(self._seconds)
        if self._question_id != question_id:
            return
        self._task = None
        self._question_id = None
        logger.info("Countdown expired question=%s", question_id)
        await self._on_expire(question_id)


__all__ = ["ExpiryCallback", "QuestionCountdown"]
