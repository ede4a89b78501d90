"""Tests for chat endpoints and the live message stream."""

from __future__ import annotations

import base64
from collections.abc import Iterator
from contextlib import contextmanager

import pytest
from fastapi import status
from starlette.websockets import WebSocketDisconnect

from campus_crew.api.v1 import dependencies
from campus_crew.core.security import create_access_token


@pytest.fixture()
def chat_id(client, offer, auth_a) -> int:
    response = client.post(f"/api/v1/offers/{offer.id}/accept", headers=auth_a)
    assert response.status_code == status.HTTP_200_OK
    return response.json()["chat"]["id"]


def test_accept_is_idempotent(client, offer, auth_a, chat_id) -> None:
    again = client.post(f"/api/v1/offers/{offer.id}/accept", headers=auth_a)

    assert again.json()["chat"]["id"] == chat_id
    assert len(client.get("/api/v1/chats", headers=auth_a).json()) == 1


def test_send_and_list_messages(client, auth_a, auth_b, chat_id) -> None:
    sent = client.post(
        f"/api/v1/chats/{chat_id}/messages", json={"content": "When do we start?"}, headers=auth_b
    )
    assert sent.status_code == status.HTTP_201_CREATED
    assert sent.json()["read_by"] == ["google:bob"]

    client.post(f"/api/v1/chats/{chat_id}/messages", json={"content": "Now"}, headers=auth_a)

    messages = client.get(f"/api/v1/chats/{chat_id}/messages", headers=auth_a).json()
    assert [m["content"] for m in messages] == ["When do we start?", "Now"]
    latest = client.get(f"/api/v1/chats/{chat_id}/messages", params={"limit": 1}, headers=auth_a)
    assert [m["content"] for m in latest.json()] == ["Now"]

    chat = client.get(f"/api/v1/chats/{chat_id}", headers=auth_b).json()
    assert chat["last_message"] == "Now"


def test_outsider_is_forbidden(client, chat_id, make_auth, student_c) -> None:
    headers = make_auth(student_c.id)

    assert client.get(f"/api/v1/chats/{chat_id}", headers=headers).status_code == 403
    assert client.get(f"/api/v1/chats/{chat_id}/messages", headers=headers).status_code == 403
    posted = client.post(
        f"/api/v1/chats/{chat_id}/messages", json={"content": "hi"}, headers=headers
    )
    assert posted.status_code == status.HTTP_403_FORBIDDEN
    assert client.get("/api/v1/chats", headers=headers).json() == []


def test_admin_can_read_any_chat(client, chat_id, admin_auth) -> None:
    assert client.get(f"/api/v1/chats/{chat_id}", headers=admin_auth).status_code == 200


def test_unread_count_and_mark_read(client, auth_a, auth_b, chat_id) -> None:
    for text in ("one", "two"):
        client.post(f"/api/v1/chats/{chat_id}/messages", json={"content": text}, headers=auth_b)

    assert client.get("/api/v1/chats/unread-count", headers=auth_a).json() == {"unread": 2}
    assert client.put(f"/api/v1/chats/{chat_id}/read", headers=auth_a).json() == {"marked": 2}
    assert client.put(f"/api/v1/chats/{chat_id}/read", headers=auth_a).json() == {"marked": 0}
    assert client.get("/api/v1/chats/unread-count", headers=auth_a).json() == {"unread": 0}


def test_media_message(client, auth_b, chat_id) -> None:
    response = client.post(
        f"/api/v1/chats/{chat_id}/media",
        json={
            "file_name": "draft.txt",
            "content_type": "text/plain",
            "data_b64": base64.b64encode(b"first draft").decode(),
        },
        headers=auth_b,
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["type"] == "document"
    assert response.json()["media_size"] == 11


def test_video_over_limit_is_rejected(client, auth_b, chat_id) -> None:
    response = client.post(
        f"/api/v1/chats/{chat_id}/media",
        json={
            "file_name": "clip.mp4",
            "content_type": "video/mp4",
            "data_b64": base64.b64encode(b"\x00\x00").decode(),
            "video_duration": 20,
        },
        headers=auth_b,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_delete_chat(client, auth_a, auth_b, chat_id) -> None:
    client.post(f"/api/v1/chats/{chat_id}/messages", json={"content": "bye"}, headers=auth_b)

    response = client.delete(f"/api/v1/chats/{chat_id}", headers=auth_a)

    assert response.json() == {"deleted_messages": 1}
    assert client.get(f"/api/v1/chats/{chat_id}", headers=auth_a).status_code == 404


def test_stream_sends_snapshot_then_updates(client, auth_b, chat_id) -> None:
    token = create_access_token("google:alice")
    with client.websocket_connect(f"/api/v1/chats/{chat_id}/stream?token={token}") as websocket:
        assert websocket.receive_json() == []

        client.post(f"/api/v1/chats/{chat_id}/messages", json={"content": "live"}, headers=auth_b)

        snapshot = websocket.receive_json()
        assert [m["content"] for m in snapshot] == ["live"]


def test_stream_rejects_outsiders(client, chat_id, student_c) -> None:
    token = create_access_token(student_c.id)
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/v1/chats/{chat_id}/stream?token={token}") as websocket:
            websocket.receive_json()


def test_stream_requires_token(client, chat_id) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/v1/chats/{chat_id}/stream") as websocket:
            websocket.receive_json()


def test_stream_returns_its_session_after_first_snapshot(
    client, app, db_session, auth_b, chat_id
) -> None:
    open_sessions: list[object] = []

    @contextmanager
    def _tracked() -> Iterator[object]:
        open_sessions.append(db_session)
        try:
            yield db_session
        finally:
            open_sessions.remove(db_session)

    app.dependency_overrides[dependencies.get_session_factory_dep] = lambda: _tracked
    token = create_access_token("google:alice")
    with client.websocket_connect(f"/api/v1/chats/{chat_id}/stream?token={token}") as websocket:
        assert websocket.receive_json() == []
        assert open_sessions == []

        client.post(f"/api/v1/chats/{chat_id}/messages", json={"content": "still live"}, headers=auth_b)
        assert [m["content"] for m in websocket.receive_json()] == ["still live"]
        assert open_sessions == []
