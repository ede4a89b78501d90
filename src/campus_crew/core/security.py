"""Token and password helpers."""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import jwt
from passlib.context import CryptContext

from campus_crew.core.settings import settings
from campus_crew.db.time import utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def create_access_token(
    principal_id: str,
    *,
    role: str = ROLE_USER,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed access token for a principal.

    Args:
        principal_id: Opaque principal identifier placed in the ``sub`` claim.
        role: ``user`` for students, ``admin`` for the admin panel.
        expires_delta: Optional lifetime override.

    Returns:
        Encoded JWT string.
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": principal_id,
        "role": role,
        "exp": utcnow() + lifetime,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify an access token; raises ``JWTError`` when invalid."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def hash_password(password: str) -> str:
    """Return a passlib hash suitable for ``ADMIN_PASSWORD_HASH``."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash."""
    return pwd_context.verify(plain_password, hashed_password)
