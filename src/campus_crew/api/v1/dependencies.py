"""Shared API dependencies for authentication and common functionality."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, WebSocket, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from campus_crew.core.security import ROLE_ADMIN, decode_access_token
from campus_crew.db.session import SessionLocal, get_db
from campus_crew.models import Profile
from campus_crew.services.admin_service import AdminLoginGuard, get_admin_login_guard
from campus_crew.services.blob_store import BlobStore, get_blob_store
from campus_crew.services.errors import AuthorizationError
from campus_crew.services.live_feed import LiveFeedHub, get_live_feed_hub
from campus_crew.services.otp import OtpService, get_otp_service
from campus_crew.services.profile_service import get_profile

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

SessionFactory = Callable[[], AbstractContextManager[Session]]


@dataclass(frozen=True)
class Principal:
    """Authenticated caller resolved from an access token."""

    principal_id: str
    is_admin: bool = False


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def principal_from_token(token: str) -> Principal:
    """Decode an access token into a :class:`Principal`.

    Raises:
        HTTPException: If the token is invalid or has no subject.
    """
    try:
        payload = decode_access_token(token)
    except JWTError as err:
        raise _credentials_error() from err
    subject = payload.get("sub")
    if not subject:
        raise _credentials_error()
    return Principal(principal_id=subject, is_admin=payload.get("role") == ROLE_ADMIN)


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> Principal:
    """Return the principal behind the bearer token."""
    return principal_from_token(credentials.credentials)


PrincipalDep = Annotated[Principal, Depends(get_current_principal)]


def get_current_profile(principal: PrincipalDep, db: SessionDep) -> Profile:
    """Return the profile of the signed-in student.

    Raises:
        HTTPException: If the principal has no profile (e.g. it was deleted).
    """
    profile = get_profile(db, principal.principal_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
        )
    return profile


CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]


def require_admin(principal: PrincipalDep) -> Principal:
    """Allow only admin tokens through."""
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal


AdminDep = Annotated[Principal, Depends(require_admin)]


def ensure_owner_or_admin(
    principal: Principal,
    owner_id: str,
    *,
    operation: str,
    entity_id: object | None = None,
) -> None:
    """Raise :class:`AuthorizationError` unless the caller owns the entity."""
    if principal.is_admin or principal.principal_id == owner_id:
        return
    raise AuthorizationError(
        "You do not have permission to modify this resource",
        operation=operation,
        entity_id=entity_id,
    )


def websocket_principal(websocket: WebSocket) -> Principal | None:
    """Resolve the ``token`` query parameter of a WebSocket handshake."""
    token = websocket.query_params.get("token")
    if not token:
        return None
    try:
        return principal_from_token(token)
    except HTTPException:
        return None


def get_session_factory_dep() -> SessionFactory:
    """Session factory for long-lived connections that must not pin a session."""
    return SessionLocal


def get_hub_dep() -> LiveFeedHub:
    return get_live_feed_hub()


def get_blob_store_dep() -> BlobStore:
    return get_blob_store()


def get_otp_service_dep() -> OtpService:
    return get_otp_service()


def get_admin_guard_dep() -> AdminLoginGuard:
    return get_admin_login_guard()


SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory_dep)]
HubDep = Annotated[LiveFeedHub, Depends(get_hub_dep)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store_dep)]
OtpServiceDep = Annotated[OtpService, Depends(get_otp_service_dep)]
AdminGuardDep = Annotated[AdminLoginGuard, Depends(get_admin_guard_dep)]
