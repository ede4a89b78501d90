"""One-time-password sign-in for phone numbers.

Session bookkeeping (expiry, attempt limit, minimum resend interval) is local
policy layered over an SMS collaborator that only delivers the code.
"""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Protocol

import httpx

from campus_crew.core.settings import settings
from campus_crew.db.time import utcnow

from .errors import CollaboratorUnavailableError, NotFoundError, RateLimitedError, ValidationFailed

logger = logging.getLogger(__name__)

_PHONE_CHARS = re.compile(r"[^\d+]")
_E164_DIGITS = re.compile(r"\d{8,15}")
NATIONAL_NUMBER_LENGTH = 10


def normalize_phone(raw: str, default_country_code: str | None = None) -> str:
    """Return ``raw`` as an E.164 number such as ``+919876543210``.

    Separators are dropped. A bare 10-digit national number gets the default
    country code.

    Raises:
        ValidationFailed: The number is missing or malformed.
    """
    country_code = default_country_code or settings.otp_default_country_code
    cleaned = _PHONE_CHARS.sub("", raw or "")
    if not cleaned:
        raise ValidationFailed("Phone number is required", operation="send_otp")

    if cleaned.startswith("+"):
        digits = cleaned[1:]
    elif len(cleaned) == NATIONAL_NUMBER_LENGTH:
        digits = f"{country_code}{cleaned}"
    else:
        digits = cleaned

    if not _E164_DIGITS.fullmatch(digits):
        raise ValidationFailed("Invalid phone number format", operation="send_otp")
    return f"+{digits}"


@dataclass
class OtpSession:
    """A code sent to one phone number."""

    session_id: str
    phone_number: str
    code: str
    created_at: datetime
    expires_at: datetime
    attempts: int = 0
    verified: bool = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class OtpSessionStore:
    """In-memory OTP sessions keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, OtpSession] = {}
        self._lock = Lock()

    def put(self, session: OtpSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> OtpSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def find_by_phone(self, phone_number: str) -> OtpSession | None:
        with self._lock:
            for session in self._sessions.values():
                if session.phone_number == phone_number:
                    return session
        return None

    def sweep(self, now: datetime) -> int:
        """Evict expired sessions and return how many were removed."""
        with self._lock:
            expired = [key for key, session in self._sessions.items() if session.is_expired(now)]
            for key in expired:
                del self._sessions[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class SmsSender(Protocol):
    """Delivers a text message to a phone number."""

    def send(self, phone_number: str, message: str) -> None: ...


class LoggingSmsSender:
    """Development sender that writes the message to the log."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, phone_number: str, message: str) -> None:
        self.sent.append((phone_number, message))
        logger.info("SMS to %s: %s", phone_number, message)


class HttpSmsSender:
    """Sender that posts each message to an HTTP gateway."""

    def __init__(
        self,
        gateway_url: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.gateway_url = gateway_url
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))

    def send(self, phone_number: str, message: str) -> None:
        try:
            response = self._client.post(
                self.gateway_url, json={"to": phone_number, "message": message}
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("SMS gateway rejected message to %s: %s", phone_number, exc)
            raise CollaboratorUnavailableError(
                "Could not send the verification code, please retry", operation="send_otp"
            ) from exc


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of checking a submitted code."""

    success: bool
    message: str
    phone_number: str | None = None
    remaining_attempts: int | None = None


class OtpService:
    """Issue and verify one-time codes."""

    def __init__(
        self,
        store: OtpSessionStore,
        sender: SmsSender,
        clock: Callable[[], datetime] = utcnow,
        *,
        code_length: int | None = None,
        expiry: timedelta | None = None,
        max_attempts: int | None = None,
        min_resend_interval: timedelta | None = None,
    ) -> None:
        self.store = store
        self.sender = sender
        self.clock = clock
        self.code_length = code_length or settings.otp_length
        self.expiry = expiry or timedelta(minutes=settings.otp_expiry_minutes)
        self.max_attempts = max_attempts or settings.otp_max_attempts
        self.min_resend_interval = min_resend_interval or timedelta(
            seconds=settings.otp_min_resend_seconds
        )

    @property
    def expires_in(self) -> int:
        """Lifetime of a fresh code in seconds."""
        return int(self.expiry.total_seconds())

    def _generate_code(self) -> str:
        return "".join(secrets.choice("0123456789") for _ in range(self.code_length))

    def _ensure_resend_allowed(self, session: OtpSession, now: datetime, operation: str) -> None:
        elapsed = now - session.created_at
        if elapsed < self.min_resend_interval:
            wait = int((self.min_resend_interval - elapsed).total_seconds()) + 1
            raise RateLimitedError(
                f"Please wait {wait} seconds before requesting a new OTP",
                operation=operation,
                entity_id=session.session_id,
            )

    def _issue(self, phone_number: str, now: datetime) -> OtpSession:
        session = OtpSession(
            session_id=secrets.token_urlsafe(16),
            phone_number=phone_number,
            code=self._generate_code(),
            created_at=now,
            expires_at=now + self.expiry,
        )
        minutes = self.expires_in // 60
        self.sender.send(
            phone_number,
            f"Your Campus Crew OTP is {session.code}. Valid for {minutes} minutes.",
        )
        self.store.put(session)
        logger.info("OTP session %s issued for %s", session.session_id, phone_number)
        return session

    def send_otp(self, phone_number: str) -> OtpSession:
        """Send a fresh code to ``phone_number``.

        Raises:
            ValidationFailed: The number is malformed.
            RateLimitedError: A code was sent to this number too recently.
            CollaboratorUnavailableError: The SMS gateway failed.
        """
        phone = normalize_phone(phone_number)
        now = self.clock()
        self.store.sweep(now)

        existing = self.store.find_by_phone(phone)
        if existing is not None:
            self._ensure_resend_allowed(existing, now, "send_otp")
            self.store.delete(existing.session_id)
        return self._issue(phone, now)

    def resend_otp(self, session_id: str) -> OtpSession:
        """Replace a session with a new code for the same number."""
        session = self.store.get(session_id)
        if session is None:
            raise NotFoundError(
                "Session not found. Please start over.", operation="resend_otp", entity_id=session_id
            )
        now = self.clock()
        self._ensure_resend_allowed(session, now, "resend_otp")
        self.store.delete(session_id)
        return self._issue(session.phone_number, now)

    def verify_otp(self, session_id: str, code: str) -> VerifyResult:
        """Check ``code`` against the session; each call uses one attempt."""
        session = self.store.get(session_id)
        if session is None:
            return VerifyResult(False, "Invalid or expired session. Please request a new OTP.")

        if session.is_expired(self.clock()):
            self.store.delete(session_id)
            return VerifyResult(False, "OTP has expired. Please request a new one.")

        if session.verified:
            return VerifyResult(False, "OTP has already been used. Please request a new one.")

        session.attempts += 1
        if session.attempts > self.max_attempts:
            self.store.delete(session_id)
            logger.warning("OTP session %s exhausted its attempts", session_id)
            return VerifyResult(False, "Too many failed attempts. Please request a new OTP.")

        if not secrets.compare_digest(session.code.encode(), code.strip().encode()):
            remaining = self.max_attempts - session.attempts
            return VerifyResult(
                False,
                f"Invalid OTP. {remaining} attempts remaining.",
                remaining_attempts=remaining,
            )

        session.verified = True
        return VerifyResult(True, "OTP verified successfully", phone_number=session.phone_number)


def build_sms_sender() -> SmsSender:
    """Return the SMS collaborator selected by ``SMS_PROVIDER``."""
    if settings.sms_provider == "mock":
        return LoggingSmsSender()
    if settings.sms_provider == "http" and settings.sms_gateway_url:
        return HttpSmsSender(
            settings.sms_gateway_url, timeout_seconds=settings.sms_http_timeout_seconds
        )
    raise CollaboratorUnavailableError(
        f"SMS provider {settings.sms_provider!r} is not configured", operation="send_otp"
    )


@lru_cache(maxsize=1)
def get_otp_service() -> OtpService:
    """Return the service shared by the API process."""
    return OtpService(OtpSessionStore(), build_sms_sender())
