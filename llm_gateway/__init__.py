from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import HttpClient, HttpResponse, LlmGatewayError, auth_headers, call
from .speech import SpeechGatewayError, encoding_hint, transcribe_audio

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "SpeechGatewayError",
    "auth_headers",
    "call",
    "encoding_hint",
    "transcribe_audio",
]
