"""Authenticated WebSocket channel carrying correlated interview requests.

Clients send envelopes ``{"id": ..., "event": ..., "data": {...}}`` and get
exactly one reply per envelope echoing ``id`` with an HTTP-style ``status``.
Each envelope is handled in its own task, so replies can arrive out of order.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Callable, Dict, Optional, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool
from starlette.websockets import WebSocketState

from interview_session.controller import MediaUpload, SessionController
from interview_session.errors import InterviewError, Unauthorized, ValidationFailure
from observability import log_event
from services.container import AppServices

logger = logging.getLogger(__name__)

MAX_WS_TEXT_BYTES = 25 * 1024 * 1024

router = APIRouter()

Handler = Callable[[SessionController, str, Dict[str, Any]], Any]


def _required(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailure(f"'{key}' is required")
    return value


def _media_from(data: Dict[str, Any]) -> Optional[MediaUpload]:
    media = data.get("media")
    if media is None:
        return None
    if not isinstance(media, dict) or not isinstance(media.get("data"), str) or not media.get("type"):
        raise ValidationFailure("media must be an object with base64 'data' and a 'type'")
    try:
        blob = base64.b64decode(media["data"], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationFailure("media data is not valid base64") from exc
    return MediaUpload(data=blob, content_type=str(media["type"]))


def _save_answer(controller: SessionController, user_id: str, data: Dict[str, Any]) -> Any:
    question = controller.save_answer(
        _required(data, "interview_id"),
        _required(data, "question_id"),
        user_id,
        str(data.get("user_answer") or ""),
        _media_from(data),
    )
    return question.model_dump()


def _advance_question(controller: SessionController, user_id: str, data: Dict[str, Any]) -> Any:
    direction = data.get("direction", "next")
    return controller.advance_question(_required(data, "interview_id"), user_id, direction).model_dump()


def _complete_and_evaluate(controller: SessionController, user_id: str, data: Dict[str, Any]) -> Any:
    return controller.complete_and_evaluate(_required(data, "interview_id"), user_id).model_dump()


HANDLERS: Dict[str, Handler] = {
    "saveAnswer": _save_answer,
    "advanceQuestion": _advance_question,
    "completeAndEvaluate": _complete_and_evaluate,
}


def _token_from(websocket: WebSocket) -> str:
    auth_header = websocket.headers.get("authorization") or ""
    from_header = auth_header[7:].strip() if auth_header.lower().startswith("bearer ") else ""
    return from_header or str(websocket.query_params.get("token") or "").strip()


@router.websocket("/ws/interview")
async def interview_socket(websocket: WebSocket) -> None:
    services: AppServices = websocket.app.state.services
    try:
        token = _token_from(websocket)
        if not token:
            raise Unauthorized("missing token")
        user = await run_in_threadpool(services.auth.authenticate, token)
    except Unauthorized as exc:
        log_event("ws_rejected", "-", reason=exc.message, transport="ws")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unauthorized")
        return

    await websocket.accept()
    log_event("ws_connected", "-", user_id=user.id, transport="ws")
    send_lock = asyncio.Lock()
    in_flight: Set[asyncio.Task] = set()

    async def _safe_send(payload: Dict[str, Any]) -> None:
        async with send_lock:
            if websocket.client_state != WebSocketState.CONNECTED:
                logger.info("Dropping reply for closed socket id=%s", payload.get("id"))
                return
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError) as exc:
                logger.info("Reply not delivered id=%s: %s", payload.get("id"), exc)

    async def _dispatch(raw: str) -> None:
        await _safe_send(await _handle(services.controller, user.id, raw))

    try:
        while True:
            raw = await websocket.receive_text()
            task = asyncio.create_task(_dispatch(raw))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)
    except WebSocketDisconnect:
        logger.info("WebSocket closed user=%s pending=%d", user.id, len(in_flight))
    finally:
        # Requests already received run to completion even after disconnect.
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)


async def _handle(controller: SessionController, user_id: str, raw: str) -> Dict[str, Any]:
    if len(raw) > MAX_WS_TEXT_BYTES:
        return {"id": None, "event": None, "status": 413, "message": "message too large"}
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return {"id": None, "event": None, "status": 400, "message": "message is not valid JSON"}
    if not isinstance(message, dict):
        return {"id": None, "event": None, "status": 400, "message": "message must be a JSON object"}

    request_id = message.get("id")
    event = message.get("event")
    data = message.get("data") or {}
    handler = HANDLERS.get(event) if isinstance(event, str) else None
    if handler is None:
        return {"id": request_id, "event": event, "status": 400, "message": f"unknown event '{event}'"}
    if not isinstance(data, dict):
        return {"id": request_id, "event": event, "status": 400, "message": "data must be a JSON object"}

    try:
        body = await run_in_threadpool(handler, controller, user_id, data)
    except InterviewError as exc:
        return {"id": request_id, "event": event, "status": exc.status_code, "message": exc.message}
    except Exception:
        logger.exception("WebSocket handler failed event=%s", event)
        return {"id": request_id, "event": event, "status": 500, "message": "internal error"}
    return {"id": request_id, "event": event, "status": 200, "data": body}


__all__ = ["HANDLERS", "router"]
