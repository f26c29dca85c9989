"""WebSocket channel: handshake auth and correlated request/response envelopes."""
from __future__ import annotations

import base64

import pytest
from starlette.websockets import WebSocketDisconnect


def _token(client) -> str:
    response = client.post(
        "/api/auth/register",
        json={"username": "ada", "email": "ada@example.com", "password": "password123"},
    )
    return response.json()["token"]


def _start(client, token: str, catalog_ids) -> dict:
    response = client.post(
        "/api/interview/start",
        json={"selected_jobs": catalog_ids["jobs"], "selected_skills": catalog_ids["skills"]},
        headers={"Authorization": f"Bearer {token}"},
    )
    return response.json()


@pytest.mark.parametrize("url", ["/ws/interview", "/ws/interview?token=garbage"])
def test_handshake_without_valid_token_is_closed(app_client, url: str) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with app_client.websocket_connect(url):
            pass
    assert excinfo.value.code == 1008


def test_bearer_header_is_accepted(app_client, catalog_ids) -> None:
    token = _token(app_client)
    session = _start(app_client, token, catalog_ids)

    with app_client.websocket_connect("/ws/interview", headers={"Authorization": f"Bearer {token}"}) as ws:
        ws.send_json({"id": "a1", "event": "advanceQuestion", "data": {"interview_id": session["id"]}})
        reply = ws.receive_json()

    assert reply["id"] == "a1"
    assert reply["status"] == 200
    assert reply["data"]["current_index"] == 1


def test_replies_are_correlated_by_id(app_client, catalog_ids, fake_ai) -> None:
    token = _token(app_client)
    session = _start(app_client, token, catalog_ids)
    questions = session["questions"]
    audio = base64.b64encode(b"ogg-bytes").decode("ascii")

    with app_client.websocket_connect(f"/ws/interview?token={token}") as ws:
        ws.send_json(
            {
                "id": "r1",
                "event": "saveAnswer",
                "data": {"interview_id": session["id"], "question_id": questions[0]["id"], "user_answer": "typed"},
            }
        )
        ws.send_json(
            {
                "id": "r2",
                "event": "saveAnswer",
                "data": {
                    "interview_id": session["id"],
                    "question_id": questions[1]["id"],
                    "media": {"data": audio, "type": "audio/ogg"},
                },
            }
        )
        replies = {reply["id"]: reply for reply in (ws.receive_json(), ws.receive_json())}

        ws.send_json({"id": "r3", "event": "completeAndEvaluate", "data": {"interview_id": session["id"]}})
        completed = ws.receive_json()

    assert replies["r1"]["status"] == 200
    assert replies["r1"]["data"]["user_answer"] == "typed"
    assert replies["r2"]["data"]["transcription"] == fake_ai.transcript
    assert replies["r2"]["data"]["media_url"].endswith(".ogg")
    assert completed["id"] == "r3"
    assert completed["data"]["status"] == "evaluated"
    assert len(fake_ai.evaluate_calls) == 2


def test_errors_map_to_http_statuses(app_client, catalog_ids) -> None:
    token = _token(app_client)
    session = _start(app_client, token, catalog_ids)

    with app_client.websocket_connect(f"/ws/interview?token={token}") as ws:
        ws.send_json({"id": "e1", "event": "completeAndEvaluate", "data": {"interview_id": "missing"}})
        missing = ws.receive_json()
        ws.send_json({"id": "e2", "event": "teleport", "data": {}})
        unknown = ws.receive_json()
        ws.send_json({"id": "e3", "event": "advanceQuestion", "data": {"interview_id": session["id"], "direction": "previous"}})
        out_of_bounds = ws.receive_json()
        ws.send_json({"id": "e4", "event": "saveAnswer", "data": {"interview_id": session["id"]}})
        incomplete = ws.receive_json()
        ws.send_json(
            {
                "id": "e5",
                "event": "saveAnswer",
                "data": {
                    "interview_id": session["id"],
                    "question_id": session["questions"][0]["id"],
                    "media": {"data": "***", "type": "audio/webm"},
                },
            }
        )
        bad_media = ws.receive_json()
        ws.send_text("not json")
        garbage = ws.receive_json()

    assert (missing["id"], missing["status"]) == ("e1", 404)
    assert (unknown["id"], unknown["status"]) == ("e2", 400)
    assert (out_of_bounds["id"], out_of_bounds["status"]) == ("e3", 409)
    assert (incomplete["id"], incomplete["status"]) == ("e4", 400)
    assert (bad_media["id"], bad_media["status"]) == ("e5", 400)
    assert garbage["status"] == 400
