"""Tests for phone sign-in codes."""

from __future__ import annotations

import json

import httpx
import pytest

from campus_crew.services.errors import (
    CollaboratorUnavailableError,
    NotFoundError,
    RateLimitedError,
    ValidationFailed,
)
from campus_crew.services.otp import HttpSmsSender, normalize_phone


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("98765 43210", "+919876543210"),
        ("(987) 654-3210", "+919876543210"),
        ("+1 415 555 0100", "+14155550100"),
        ("919876543210", "+919876543210"),
    ],
)
def test_normalize_phone(raw, expected) -> None:
    assert normalize_phone(raw) == expected


def test_normalize_phone_uses_given_country_code() -> None:
    assert normalize_phone("9876543210", "44") == "+449876543210"


@pytest.mark.parametrize("raw", ["", "abc", "12345", "+1234567890123456"])
def test_normalize_phone_rejects_malformed(raw) -> None:
    with pytest.raises(ValidationFailed):
        normalize_phone(raw)


def _sent_code(sms_sender) -> str:
    _, text = sms_sender.sent[-1]
    return text.split("OTP is ")[1].split(".")[0]


def test_send_and_verify(otp_service, sms_sender) -> None:
    session = otp_service.send_otp("98765 43210")

    assert sms_sender.sent[-1][0] == "+919876543210"
    assert "Valid for 5 minutes" in sms_sender.sent[-1][1]
    assert len(session.code) == 6 and session.code.isdigit()

    result = otp_service.verify_otp(session.session_id, _sent_code(sms_sender))
    assert result.success
    assert result.phone_number == "+919876543210"

    again = otp_service.verify_otp(session.session_id, session.code)
    assert not again.success
    assert "already been used" in again.message


def test_wrong_codes_count_down_then_lock(otp_service) -> None:
    session = otp_service.send_otp("9876543210")
    wrong = "000000" if session.code != "000000" else "111111"

    remaining = [otp_service.verify_otp(session.session_id, wrong).remaining_attempts for _ in range(3)]
    assert remaining == [2, 1, 0]

    final = otp_service.verify_otp(session.session_id, session.code)
    assert not final.success
    assert "Too many failed attempts" in final.message
    assert otp_service.store.get(session.session_id) is None


def test_non_ascii_code_counts_as_wrong_attempt(otp_service) -> None:
    session = otp_service.send_otp("9876543210")

    result = otp_service.verify_otp(session.session_id, "\uff11\uff12\uff13\uff14\uff15\uff16")

    assert not result.success
    assert result.remaining_attempts == 2
    assert otp_service.verify_otp(session.session_id, session.code).success


def test_expired_code_is_rejected_and_removed(otp_service, clock) -> None:
    session = otp_service.send_otp("9876543210")
    clock.advance(minutes=5, seconds=1)

    result = otp_service.verify_otp(session.session_id, session.code)

    assert not result.success
    assert "expired" in result.message
    assert len(otp_service.store) == 0


def test_unknown_session_fails_verification(otp_service) -> None:
    assert not otp_service.verify_otp("missing", "123456").success


def test_resend_is_rate_limited(otp_service, clock, sms_sender) -> None:
    session = otp_service.send_otp("9876543210")

    with pytest.raises(RateLimitedError):
        otp_service.resend_otp(session.session_id)
    with pytest.raises(RateLimitedError):
        otp_service.send_otp("+91 98765 43210")

    clock.advance(seconds=61)
    fresh = otp_service.resend_otp(session.session_id)

    assert fresh.session_id != session.session_id
    assert fresh.phone_number == session.phone_number
    assert otp_service.store.get(session.session_id) is None
    assert len(sms_sender.sent) == 2


def test_resend_unknown_session_is_not_found(otp_service) -> None:
    with pytest.raises(NotFoundError):
        otp_service.resend_otp("missing")


def test_send_sweeps_expired_sessions(otp_service, clock) -> None:
    otp_service.send_otp("9876543210")
    clock.advance(minutes=10)

    otp_service.send_otp("9123456789")

    assert len(otp_service.store) == 1


def test_http_sender_posts_to_gateway() -> None:
    captured: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"status": "queued"})

    client = httpx.Client(transport=httpx.MockTransport(_handler))
    HttpSmsSender("https://sms.example/send", client=client).send("+919876543210", "hello")

    assert captured[0].url == "https://sms.example/send"
    assert json.loads(captured[0].content) == {"to": "+919876543210", "message": "hello"}


def test_http_sender_failure_is_collaborator_error() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(502)))
    sender = HttpSmsSender("https://sms.example/send", client=client)

    with pytest.raises(CollaboratorUnavailableError):
        sender.send("+919876543210", "hello")
