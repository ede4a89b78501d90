"""Business logic services for the Campus Crew application."""

from .blob_store import BlobStore, LocalBlobStore
from .errors import (
    AuthorizationError,
    CampusCrewError,
    CollaboratorUnavailableError,
    NotFoundError,
    RateLimitedError,
    StateConflictError,
    ValidationFailed,
)
from .live_feed import LiveFeedHub, Subscription
from .otp import OtpService, OtpSessionStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "CampusCrewError",
    "ValidationFailed",
    "StateConflictError",
    "NotFoundError",
    "AuthorizationError",
    "RateLimitedError",
    "CollaboratorUnavailableError",
    "LiveFeedHub",
    "Subscription",
    "OtpService",
    "OtpSessionStore",
]
