"""Chat-completion gateway shared by question generation and answer grading.

Every call names a route from ``app_config.json``. Replies are validated
against a pydantic schema; a reply that fails validation is retried with a
note describing the failure, up to ``route.max_retries`` extra attempts.
Schemas may define ``from_raw_content(text)`` to accept plain-text replies
from models that ignore the JSON instruction.
"""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config import LlmRoute


logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```[\w-]*\s*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)
PREVIEW_CHARS = 120

_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()


class HttpResponse(Protocol):  # Subset of httpx.Response the gateway reads
    status_code: int

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Anything with an httpx-style post
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):  # Raised when a route cannot produce a valid reply
    pass


T = TypeVar("T", bound=BaseModel)


def auth_headers(api_key_env: Optional[str], extra: Dict[str, str]) -> Dict[str, str]:  # Bearer header from the route's key variable
    headers: Dict[str, str] = {}
    api_key = os.getenv(api_key_env) if api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(extra)
    return headers


def call(
    task: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Send ``task`` as a single user message and return the validated reply.

    Routes flagged ``sequential`` allow one request at a time per process.

    Raises:
        LlmGatewayError: Transport failure, error status, or no valid reply left after retries.
    """

    if not cfg.sequential:
        return _complete(task, schema, cfg, client, options)
    with _route_lock(cfg.name):
        return _complete(task, schema, cfg, client, options)


def _route_lock(name: str) -> threading.Lock:
    with _ROUTE_LOCKS_GUARD:
        return _ROUTE_LOCKS.setdefault(name, threading.Lock())


def _complete(
    task: str,
    schema: Type[T],
    cfg: LlmRoute,
    client: Optional[HttpClient],
    options: Optional[Dict[str, Any]],
) -> T:
    messages: List[Dict[str, str]] = []
    if cfg.enforce_json:
        messages.append({"role": "system", "content": _schema_instruction(schema)})
    messages.append({"role": "user", "content": task})
    attempts = cfg.max_retries + 1
    logger.info(
        "LLM request start route=%s model=%s schema=%s attempts=%d task=%s",
        cfg.name,
        cfg.model,
        schema.__name__,
        attempts,
        _preview(task),
    )

    failure: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        conversation = list(messages)
        if failure is not None:
            conversation.append({"role": "system", "content": _retry_note(failure, cfg.enforce_json)})
        content = _request(conversation, cfg, client, options)
        try:
            parsed = _parse(schema, content)
        except (ValidationError, ValueError) as exc:
            logger.warning("LLM reply rejected route=%s attempt=%d/%d: %s", cfg.name, attempt, attempts, exc)
            failure = exc
            continue
        logger.info("LLM request done route=%s attempt=%d", cfg.name, attempt)
        return parsed
    raise LlmGatewayError(f"route '{cfg.name}' gave no valid {schema.__name__}") from failure


def _request(
    messages: List[Dict[str, str]],
    cfg: LlmRoute,
    client: Optional[HttpClient],
    options: Optional[Dict[str, Any]],
) -> str:  # One HTTP round trip, returning the assistant text
    payload: Dict[str, Any] = {"model": cfg.model, "messages": messages, **(options or {})}
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    headers = {"Content-Type": "application/json", **auth_headers(cfg.api_key_env, cfg.extra_headers)}
    url = f"{cfg.base_url}{cfg.endpoint}"
    try:
        if client is not None:
            response = client.post(url, json=payload, headers=headers, timeout=cfg.timeout_s)
            return _content_of(response, cfg)
        with httpx.Client(timeout=cfg.timeout_s) as http:
            return _content_of(http.post(url, json=payload, headers=headers), cfg)
    except httpx.HTTPError as exc:
        logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
        raise LlmGatewayError("LLM transport failed") from exc


def _content_of(response: HttpResponse, cfg: LlmRoute) -> str:
    if response.status_code == 429:
        logger.error("LLM rate limited route=%s", cfg.name)
        raise LlmGatewayError("LLM rate limit reached")
    if response.status_code >= 400:
        logger.error("LLM error status route=%s status=%s", cfg.name, response.status_code)
        raise LlmGatewayError(f"LLM returned status {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError("LLM payload was not JSON") from exc
    if isinstance(data, dict):
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _parse(schema: Type[T], content: str) -> T:  # JSON first, then the schema's plain-text reader
    text = content.strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group("body").strip()
    try:
        return schema.model_validate_json(text)
    except ValidationError:
        reader = getattr(schema, "from_raw_content", None)
        if reader is None:
            raise
        return reader(text)


def _schema_instruction(schema: Type[BaseModel]) -> str:
    return "Reply with a single JSON object matching this schema:\n" + json.dumps(schema.model_json_schema(), indent=2)


def _retry_note(failure: Exception, enforce_json: bool) -> str:
    reason = (str(failure).splitlines() or [""])[0].strip()[:200]
    note = f"The previous reply failed validation. Reason: {reason}."
    if enforce_json:
        return note + " Return a single JSON object that matches the schema."
    return note + " Follow the requested format precisely."


def _preview(task: str) -> str:
    first = next((line for line in task.strip().splitlines() if line.strip()), "")
    return first if len(first) <= PREVIEW_CHARS else first[: PREVIEW_CHARS - 3] + "..."
