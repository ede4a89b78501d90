"""Tests for the campus-wide chat room."""

from __future__ import annotations

import base64
from datetime import timedelta

import pytest

from campus_crew.db.time import utcnow
from campus_crew.models import GlobalMessage
from campus_crew.schemas.global_chat import GlobalMediaUpload
from campus_crew.services import global_chat_service
from campus_crew.services.errors import ValidationFailed


def test_send_text_trims_and_defaults_location(db_session, student_a) -> None:
    message = global_chat_service.send_text(db_session, student_a, "  Anyone selling a cycle? ")

    assert message.content == "Anyone selling a cycle?"
    assert message.sender_name == "Alice Rao"
    assert message.sender_location == "X"
    assert message.type == "text"


def test_send_text_keeps_explicit_location(db_session, student_a) -> None:
    message = global_chat_service.send_text(db_session, student_a, "hi", "Hostel 4")
    assert message.sender_location == "Hostel 4"


def test_blank_global_message_rejected(db_session, student_a) -> None:
    with pytest.raises(ValidationFailed):
        global_chat_service.send_text(db_session, student_a, "  \n ")
    assert db_session.query(GlobalMessage).count() == 0


def test_recent_messages_keeps_newest_in_order(db_session, student_a) -> None:
    base = utcnow()
    for index in range(5):
        global_chat_service.send_text(
            db_session, student_a, f"g{index}", now=base + timedelta(seconds=index)
        )

    assert [m.content for m in global_chat_service.recent_messages(db_session, 3)] == [
        "g2",
        "g3",
        "g4",
    ]


def test_subscribe_receives_posts_from_anyone(db_session, student_a, student_b, hub) -> None:
    deliveries: list[list] = []
    global_chat_service.send_text(db_session, student_a, "before")

    with global_chat_service.subscribe(db_session, hub, deliveries.append, limit=2):
        global_chat_service.send_text(db_session, student_b, "during", hub=hub)

    assert [m.content for m in deliveries[0]] == ["before"]
    assert [m.content for m in deliveries[-1]] == ["before", "during"]
    assert not hub.has_subscribers("global")


def test_send_media_to_global_room(db_session, student_b, blob_store) -> None:
    upload = GlobalMediaUpload(
        file_name="flyer.pdf",
        content_type="application/pdf",
        data_b64=base64.b64encode(b"%PDF-1.4").decode(),
        sender_location="Main gate",
    )

    message = global_chat_service.send_media(db_session, blob_store, student_b, upload)

    assert message.type == "document"
    assert message.content == "Shared document: flyer.pdf"
    assert message.sender_location == "Main gate"
    assert message.media_url.startswith("/media/global/")
