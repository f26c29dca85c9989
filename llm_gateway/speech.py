from __future__ import annotations  # Speech-recognition request gateway

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from config import SpeechRoute

from .llm_gateway import LlmGatewayError, auth_headers


logger = logging.getLogger(__name__)


class MultipartClient(Protocol):  # Minimal multipart-capable HTTP client protocol
    def post(
        self,
        url: str,
        *,
        data: Dict[str, Any],
        files: Dict[str, Any],
        headers: Dict[str, str],
        timeout: float,
    ) -> Any: ...


class SpeechGatewayError(LlmGatewayError):  # Speech endpoint failure
    pass


def encoding_hint(content_type: str) -> str:  # Map a recorder MIME type onto a recognizer encoding name
    mime = content_type.lower()
    if "webm" in mime:
        return "WEBM_OPUS"
    if "mp4" in mime:
        return "MP4_AUDIO"
    if "ogg" in mime:
        return "OGG_OPUS"
    return "ENCODING_UNSPECIFIED"


def transcribe_audio(
    audio: bytes,
    content_type: str,
    *,
    cfg: SpeechRoute,
    client: Optional[MultipartClient] = None,
) -> str:
    """Send ``audio`` to the configured recognizer and return the transcript text.

    Raises:
        SpeechGatewayError: On transport errors, error statuses or a reply without text.
    """

    headers = auth_headers(cfg.api_key_env, cfg.extra_headers)
    data = {
        "model": cfg.model,
        "language": cfg.language.split("-")[0],
        "encoding": encoding_hint(content_type),
        "response_format": "json",
    }
    if content_type.lower().startswith("video/"):
        data["word_timestamps"] = "false"
    files = {"file": (f"answer.{_extension(content_type)}", audio, content_type)}
    url = f"{cfg.base_url}{cfg.endpoint}"
    logger.info(
        "Speech request start route=%s model=%s bytes=%d encoding=%s",
        cfg.name,
        cfg.model,
        len(audio),
        data["encoding"],
    )
    try:
        if client is not None:
            response = client.post(url, data=data, files=files, headers=headers, timeout=cfg.timeout_s)
        else:
            with httpx.Client(timeout=cfg.timeout_s) as http_client:
                response = http_client.post(url, data=data, files=files, headers=headers)
    except Exception as exc:  # noqa: BLE001
        logger.error("Speech transport failure: %s", exc)
        raise SpeechGatewayError(f"speech transport failed: {exc}") from exc
    if response.status_code >= 400:
        logger.error("Speech error status: %s", response.status_code)
        raise SpeechGatewayError(f"speech service returned status {response.status_code}")
    try:
        payload = response.json()
    except Exception as exc:  # noqa: BLE001
        raise SpeechGatewayError("speech payload was not JSON") from exc
    return _extract_text(payload)


def _extract_text(payload: Any) -> str:  # Accept flat and segmented transcript payloads
    if isinstance(payload, dict):
        text = payload.get("text")
        if isinstance(text, str):
            return text.strip()
        results = payload.get("results")
        if isinstance(results, list):
            return "\n".join(part for part in (_best_alternative(result) for result in results) if part)
    raise SpeechGatewayError("speech response missing transcript")


def _best_alternative(result: Any) -> str:  # First alternative of one segment
    alternatives = result.get("alternatives") if isinstance(result, dict) else None
    if not isinstance(alternatives, list):
        raise SpeechGatewayError("speech segment has no alternatives list")
    if not alternatives:
        return ""
    best = alternatives[0]
    if not isinstance(best, dict) or not isinstance(best.get("transcript", ""), str):
        raise SpeechGatewayError("speech alternative is malformed")
    return best.get("transcript", "").strip()


def _extension(content_type: str) -> str:
    subtype = content_type.split("/", 1)[-1].split(";", 1)[0]
    return "".join(ch if ch.isalnum() else "_" for ch in subtype.lower()) or "bin"
