from typing import Any, Dict, List

import pytest

import transcription.transcription as tr_mod
from config import SpeechRoute
from interview_session.errors import TranscriptionFailure, ValidationFailure
from llm_gateway import SpeechGatewayError, encoding_hint, transcribe_audio


class FakeResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        return self._payload


class FakeMultipartClient:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, *, data, files, headers, timeout):
        self.calls.append({"url": url, "data": data, "files": files})
        return self.response


def _route() -> SpeechRoute:
    return SpeechRoute(name="stt", base_url="http://stt", endpoint="/v1/audio/transcriptions", model="whisper-1")


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("audio/webm;codecs=opus", "WEBM_OPUS"),
        ("video/mp4", "MP4_AUDIO"),
        ("audio/ogg", "OGG_OPUS"),
        ("audio/wav", "ENCODING_UNSPECIFIED"),
    ],
)
def test_encoding_hint(content_type: str, expected: str) -> None:
    assert encoding_hint(content_type) == expected


def test_transcribe_audio_posts_multipart_and_reads_text() -> None:
    client = FakeMultipartClient(FakeResponse(200, {"text": "  hello there  "}))

    text = transcribe_audio(b"abc", "audio/webm", cfg=_route(), client=client)

    assert text == "hello there"
    call = client.calls[0]
    assert call["url"] == "http://stt/v1/audio/transcriptions"
    assert call["data"]["encoding"] == "WEBM_OPUS"
    assert call["data"]["language"] == "en"
    assert call["files"]["file"][0] == "answer.webm"


def test_transcribe_audio_joins_segmented_results() -> None:
    payload = {"results": [{"alternatives": [{"transcript": "first"}]}, {"alternatives": [{"transcript": "second"}]}]}
    client = FakeMultipartClient(FakeResponse(200, payload))

    assert transcribe_audio(b"abc", "video/webm", cfg=_route(), client=client) == "first\nsecond"


def test_transcribe_audio_raises_on_error_status() -> None:
    client = FakeMultipartClient(FakeResponse(500, {"error": "down"}))

    with pytest.raises(SpeechGatewayError):
        transcribe_audio(b"abc", "audio/webm", cfg=_route(), client=client)


def test_transcribe_media_converts_gateway_errors(monkeypatch) -> None:
    def failing(audio, content_type, *, cfg):
        raise SpeechGatewayError("speech service returned status 503")

    monkeypatch.setattr(tr_mod, "transcribe_audio", failing)
    with pytest.raises(TranscriptionFailure, match="503"):
        tr_mod.transcribe_media(b"abc", "audio/webm", route=_route())


def test_transcribe_media_rejects_non_media_types() -> None:
    with pytest.raises(ValidationFailure):
        tr_mod.transcribe_media(b"abc", "application/pdf", route=_route())


def test_empty_recording_skips_the_service(monkeypatch) -> None:
    def unexpected(*args, **kwargs):
        raise AssertionError("speech service should not be called")

    monkeypatch.setattr(tr_mod, "transcribe_audio", unexpected)
    assert tr_mod.transcribe_media(b"", "audio/webm", route=_route()) == ""


@pytest.mark.parametrize(
    "payload",
    [
        {"results": [{"alternatives": {"0": {"transcript": "dict instead of list"}}}]},
        {"results": [{"alternatives": ["plain string"]}]},
        {"results": ["not a segment"]},
        {"results": [{"alternatives": [{"transcript": 42}]}]},
    ],
)
def test_malformed_segments_become_transcription_failures(monkeypatch, payload) -> None:
    client = FakeMultipartClient(FakeResponse(200, payload))

    with pytest.raises(SpeechGatewayError):
        transcribe_audio(b"abc", "audio/webm", cfg=_route(), client=client)

    monkeypatch.setattr(
        tr_mod,
        "transcribe_audio",
        lambda audio, content_type, *, cfg: transcribe_audio(audio, content_type, cfg=cfg, client=client),
    )
    with pytest.raises(TranscriptionFailure):
        tr_mod.transcribe_media(b"abc", "audio/webm", route=_route())
