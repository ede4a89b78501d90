"""Admin panel: sign-in, listings, user statistics and cascading deletes."""
from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from threading import Lock

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from campus_crew.core.security import verify_password
from campus_crew.core.settings import settings
from campus_crew.db.time import utcnow
from campus_crew.models import Chat, Gig, GigStatus, Offer, Profile
from campus_crew.schemas.admin import UserDeleteResponse, UserStatsResponse

from .chat_service import delete_chats, publish_chat_lists
from .errors import AuthorizationError, CollaboratorUnavailableError, RateLimitedError, store_call
from .gig_service import cascade_delete_gigs
from .live_feed import LiveFeedHub, get_live_feed_hub
from .profile_service import require_profile

__all__ = [
    "AdminLoginGuard",
    "get_admin_login_guard",
    "authenticate_admin",
    "list_all_profiles",
    "list_all_gigs",
    "get_user_stats",
    "delete_user",
]

logger = logging.getLogger(__name__)


@dataclass
class _FailureWindow:
    count: int = 0
    last_failure: datetime | None = None
    locked_until: datetime | None = None

    def expired(self, now: datetime, lockout: timedelta) -> bool:
        if self.locked_until is not None:
            return self.locked_until <= now
        return self.last_failure is None or self.last_failure + lockout <= now


class AdminLoginGuard:
    """Locks a username out after repeated failed sign-ins."""

    def __init__(
        self,
        max_attempts: int | None = None,
        lockout: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.max_attempts = max_attempts or settings.admin_max_attempts
        self.lockout = lockout or timedelta(seconds=settings.admin_lockout_seconds)
        self.clock = clock
        self._failures: dict[str, _FailureWindow] = {}
        self._lock = Lock()

    def tracked_count(self) -> int:
        """Number of usernames with failures still on record."""
        with self._lock:
            return len(self._failures)

    def _prune(self, now: datetime) -> None:
        """Forget windows whose lockout ended or whose failures went stale.

        Must be called with ``_lock`` held.
        """
        stale = [name for name, window in self._failures.items() if window.expired(now, self.lockout)]
        for name in stale:
            del self._failures[name]

    def check(self, username: str) -> None:
        """Raise :class:`RateLimitedError` while ``username`` is locked out."""
        now = self.clock()
        with self._lock:
            self._prune(now)
            window = self._failures.get(username)
            if window is None or window.locked_until is None:
                return
            remaining = max(1, math.ceil((window.locked_until - now).total_seconds() / 60))
        raise RateLimitedError(
            f"Too many failed attempts. Try again in {remaining} minutes.",
            operation="admin_login",
        )

    def record_failure(self, username: str) -> None:
        now = self.clock()
        with self._lock:
            self._prune(now)
            window = self._failures.setdefault(username, _FailureWindow())
            window.count += 1
            window.last_failure = now
            if window.count >= self.max_attempts:
                window.locked_until = now + self.lockout
                logger.warning("Admin account %s locked after %d failures", username, window.count)

    def record_success(self, username: str) -> None:
        with self._lock:
            self._failures.pop(username, None)


@lru_cache(maxsize=1)
def get_admin_login_guard() -> AdminLoginGuard:
    """Return the guard shared by the API process."""
    return AdminLoginGuard()


def authenticate_admin(username: str, password: str, guard: AdminLoginGuard) -> None:
    """Verify admin credentials against the configured passlib hash.

    Raises:
        CollaboratorUnavailableError: No admin password is configured.
        RateLimitedError: The account is locked out.
        AuthorizationError: The credentials are wrong.
    """
    if not settings.admin_password_hash:
        raise CollaboratorUnavailableError(
            "Admin sign-in is not configured", operation="admin_login"
        )
    guard.check(username)
    if username == settings.admin_username and verify_password(
        password, settings.admin_password_hash
    ):
        guard.record_success(username)
        logger.info("Admin %s signed in", username)
        return
    guard.record_failure(username)
    raise AuthorizationError("Invalid admin credentials", operation="admin_login")


def list_all_profiles(db: Session) -> list[Profile]:
    """Return every profile, newest first."""
    return list(db.query(Profile).order_by(Profile.created_at.desc()).all())


def list_all_gigs(db: Session) -> list[Gig]:
    """Return every gig in any status, newest first."""
    return list(db.query(Gig).order_by(Gig.created_at.desc(), Gig.id.desc()).all())


def get_user_stats(db: Session, principal_id: str) -> UserStatsResponse:
    """Summarise a user's gigs and the offers they have made."""
    require_profile(db, principal_id, "get_user_stats")
    rows = (
        db.query(Gig.status, func.count(Gig.id))
        .filter(Gig.posted_by == principal_id)
        .group_by(Gig.status)
        .all()
    )
    by_status = {status: count for status, count in rows}
    total_offers = db.scalar(
        select(func.count(Offer.id)).where(Offer.offered_by == principal_id)
    )
    return UserStatsResponse(
        total_gigs=sum(by_status.values()),
        active_gigs=by_status.get(GigStatus.OPEN.value, 0),
        completed_gigs=by_status.get(GigStatus.COMPLETED.value, 0),
        total_offers=int(total_offers or 0),
    )


def delete_user(
    db: Session,
    principal_id: str,
    *,
    hub: LiveFeedHub | None = None,
) -> UserDeleteResponse:
    """Remove a user and everything that references them.

    Deletes the profile, every gig they posted, every offer they made or
    received (each counted once), every chat they took part in and the
    messages of those chats, all in one transaction.
    """
    require_profile(db, principal_id, "delete_user")

    gig_ids = [row.id for row in db.query(Gig.id).filter(Gig.posted_by == principal_id)]
    own_offer_ids = {
        row.id
        for row in db.query(Offer.id).filter(
            or_(Offer.offered_by == principal_id, Offer.gig_posted_by == principal_id)
        )
    }
    if gig_ids:
        own_offer_ids.update(
            row.id for row in db.query(Offer.id).filter(Offer.gig_id.in_(gig_ids))
        )
    chats = (
        db.query(Chat.id, Chat.poster_id, Chat.offerer_id)
        .filter(or_(Chat.poster_id == principal_id, Chat.offerer_id == principal_id))
        .all()
    )
    chat_ids = [row.id for row in chats]
    counterparts = [
        other
        for row in chats
        for other in (row.poster_id, row.offerer_id)
        if other != principal_id
    ]

    with store_call(db, "delete_user", principal_id):
        deleted_messages = delete_chats(db, chat_ids)
        # Chats tied to the user's gigs or offers but not to the user are
        # picked up here as well.
        _, extra_chats, extra_messages = cascade_delete_gigs(db, gig_ids)
        deleted_messages += extra_messages
        if own_offer_ids:
            db.query(Offer).filter(Offer.id.in_(own_offer_ids)).delete(
                synchronize_session=False
            )
        db.query(Profile).filter(Profile.id == principal_id).delete(synchronize_session=False)
        db.commit()
    db.expire_all()

    result = UserDeleteResponse(
        deleted_gigs=len(gig_ids),
        deleted_offers=len(own_offer_ids),
        deleted_chats=len(chat_ids) + extra_chats,
        deleted_messages=deleted_messages,
    )
    logger.info(
        "User %s deleted: %d gigs, %d offers, %d chats, %d messages",
        principal_id,
        result.deleted_gigs,
        result.deleted_offers,
        result.deleted_chats,
        result.deleted_messages,
    )
    if counterparts:
        publish_chat_lists(db, hub if hub is not None else get_live_feed_hub(), counterparts)
    return result
