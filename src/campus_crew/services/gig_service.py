"""Gig registry: posting, listing, editing and removing gigs."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_crew.core.settings import settings
from campus_crew.db.time import as_utc, utcnow
from campus_crew.models import Chat, Gig, GigStatus, Offer, Profile
from campus_crew.schemas.gig import GigCreate, GigUpdate

from .chat_service import delete_chats, publish_chat_lists
from .errors import NotFoundError, ValidationFailed, require, store_call
from .live_feed import LiveFeedHub, get_live_feed_hub

__all__ = [
    "create_gig",
    "get_gig",
    "require_gig",
    "list_gigs_by_college",
    "search_gigs_by_college",
    "list_gigs_by_poster",
    "update_gig",
    "delete_gig",
    "cascade_delete_gigs",
]

logger = logging.getLogger(__name__)


def _ensure_future(deadline: datetime, now: datetime, operation: str) -> datetime:
    deadline = as_utc(deadline)
    require(
        deadline > now,
        "Deadline must be in the future",
        operation=operation,
    )
    return deadline


def create_gig(
    db: Session,
    gig_data: GigCreate,
    poster: Profile,
    *,
    now: datetime | None = None,
) -> Gig:
    """Validate and persist a new open gig for ``poster``'s college.

    Raises:
        ValidationFailed: Deadline not strictly in the future, or the poster
            has no college on their profile. Raised before anything is written.
    """
    now = now or utcnow()
    deadline = _ensure_future(gig_data.deadline, now, "create_gig")
    require(
        bool(poster.college),
        "Complete your profile with a college before posting gigs",
        operation="create_gig",
        entity_id=poster.id,
    )

    gig = Gig(
        title=gig_data.title,
        description=gig_data.description,
        category=gig_data.category.value,
        budget=gig_data.budget,
        deadline=deadline,
        location=gig_data.location,
        college=poster.college,
        posted_by=poster.id,
        posted_by_name=poster.display_name,
        status=GigStatus.OPEN.value,
        created_at=now,
        updated_at=now,
    )
    with store_call(db, "create_gig"):
        db.add(gig)
        db.commit()
        db.refresh(gig)
    logger.info("Gig %s posted by %s in %s", gig.id, poster.id, gig.college)
    return gig


def get_gig(db: Session, gig_id: int) -> Gig | None:
    """Return a single gig by id."""
    return db.query(Gig).filter(Gig.id == gig_id).first()


def require_gig(db: Session, gig_id: int, operation: str) -> Gig:
    """Return the gig or raise :class:`NotFoundError`."""
    gig = get_gig(db, gig_id)
    if gig is None:
        raise NotFoundError("Gig not found", operation=operation, entity_id=gig_id)
    return gig


def _open_for_college(gigs: Sequence[Gig], college: str, limit: int) -> list[Gig]:
    matching = [
        gig for gig in gigs
        if gig.college == college and gig.status == GigStatus.OPEN.value
    ]
    matching.sort(key=lambda gig: (gig.created_at, gig.id), reverse=True)
    return matching[:limit]


def list_gigs_by_college(db: Session, college: str, limit: int | None = None) -> list[Gig]:
    """Return open gigs of ``college``, newest first.

    If the filtered query is rejected by the store, a broader unfiltered page
    is fetched and filtered here so listing keeps working.
    """
    limit = limit or settings.gig_list_limit
    try:
        return list(
            db.query(Gig)
            .filter(Gig.college == college, Gig.status == GigStatus.OPEN.value)
            .order_by(Gig.created_at.desc(), Gig.id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Filtered gig query failed for %s, falling back: %s", college, exc)

    with store_call(db, "list_gigs_by_college", college):
        broader = db.query(Gig).limit(limit * 2).all()
    return _open_for_college(broader, college, limit)


def search_gigs_by_college(
    db: Session,
    college: str,
    search_query: str,
    limit: int | None = None,
) -> list[Gig]:
    """Case-insensitive substring search over a college's open gigs."""
    needle = search_query.strip().lower()
    gigs = list_gigs_by_college(db, college, limit)
    if not needle:
        return gigs
    return [
        gig for gig in gigs
        if needle in gig.title.lower()
        or needle in gig.description.lower()
        or needle in gig.category.lower()
        or needle in gig.posted_by_name.lower()
    ]


def list_gigs_by_poster(db: Session, principal_id: str) -> list[Gig]:
    """Return every gig the principal posted, newest first."""
    return list(
        db.query(Gig)
        .filter(Gig.posted_by == principal_id)
        .order_by(Gig.created_at.desc(), Gig.id.desc())
        .all()
    )


def update_gig(
    db: Session,
    gig_id: int,
    patch: GigUpdate,
    *,
    now: datetime | None = None,
) -> Gig:
    """Apply an edit to the mutable fields of a gig.

    The same constraints as creation apply; a changed deadline must still be
    in the future.
    """
    now = now or utcnow()
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("Nothing to update", operation="update_gig", entity_id=gig_id)
    for field_name in ("title", "category", "budget", "deadline"):
        if field_name in changes and changes[field_name] is None:
            raise ValidationFailed(
                f"{field_name} cannot be cleared", operation="update_gig", entity_id=gig_id
            )
    if "title" in changes:
        changes["title"] = changes["title"].strip()
        require(bool(changes["title"]), "Title must not be blank",
                operation="update_gig", entity_id=gig_id)
    if "deadline" in changes:
        changes["deadline"] = _ensure_future(changes["deadline"], now, "update_gig")
    if "category" in changes:
        changes["category"] = changes["category"].value

    gig = require_gig(db, gig_id, "update_gig")
    for key, value in changes.items():
        setattr(gig, key, value)
    gig.updated_at = now

    with store_call(db, "update_gig", gig_id):
        db.commit()
        db.refresh(gig)
    return gig


def cascade_delete_gigs(db: Session, gig_ids: Sequence[int]) -> tuple[int, int, int]:
    """Stage deletion of gigs with their offers, chats and messages.

    Does not commit. Returns ``(offers, chats, messages)`` deleted.
    """
    if not gig_ids:
        return 0, 0, 0
    offer_ids = [
        row.id for row in db.query(Offer.id).filter(Offer.gig_id.in_(gig_ids)).all()
    ]
    chat_filter = Chat.gig_id.in_(gig_ids)
    if offer_ids:
        chat_filter = or_(chat_filter, Chat.offer_id.in_(offer_ids))
    chat_ids = [row.id for row in db.query(Chat.id).filter(chat_filter).all()]

    deleted_messages = delete_chats(db, chat_ids)
    if offer_ids:
        db.query(Offer).filter(Offer.id.in_(offer_ids)).delete(synchronize_session=False)
    db.query(Gig).filter(Gig.id.in_(gig_ids)).delete(synchronize_session=False)
    return len(offer_ids), len(chat_ids), deleted_messages


def delete_gig(db: Session, gig_id: int, *, hub: LiveFeedHub | None = None) -> tuple[int, int, int]:
    """Delete a gig together with its offers, chats and messages.

    Returns:
        ``(offers, chats, messages)`` removed alongside the gig.
    """
    require_gig(db, gig_id, "delete_gig")
    affected = [
        principal
        for row in db.query(Chat.poster_id, Chat.offerer_id).filter(Chat.gig_id == gig_id)
        for principal in row
    ]
    with store_call(db, "delete_gig", gig_id):
        counts = cascade_delete_gigs(db, [gig_id])
        db.commit()
    db.expire_all()
    logger.info(
        "Gig %s deleted with %d offers, %d chats, %d messages", gig_id, *counts
    )
    if affected:
        publish_chat_lists(db, hub if hub is not None else get_live_feed_hub(), affected)
    return counts
