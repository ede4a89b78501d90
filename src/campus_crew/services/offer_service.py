"""Offer registry: offers made by students against open gigs.

Only a ``pending`` offer may be edited, deleted, accepted or rejected;
``accepted`` and ``rejected`` are terminal.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from campus_crew.db.time import utcnow
from campus_crew.models import Chat, GigStatus, Offer, OfferStatus, Profile
from campus_crew.schemas.offer import OfferCreate, OfferUpdate

from .acceptance import accept_offer
from .errors import NotFoundError, StateConflictError, ValidationFailed, store_call
from .gig_service import require_gig
from .live_feed import LiveFeedHub

__all__ = [
    "create_offer",
    "get_offer",
    "require_offer",
    "list_offers_for_gig",
    "list_offers_received",
    "list_offers_made",
    "update_offer",
    "delete_offer",
    "reject_offer",
    "update_offer_status",
]

logger = logging.getLogger(__name__)


def create_offer(
    db: Session,
    offer_data: OfferCreate,
    offerer: Profile,
    *,
    now: datetime | None = None,
) -> Offer:
    """Persist a pending offer from ``offerer`` on an open gig.

    Raises:
        NotFoundError: The gig does not exist.
        ValidationFailed: The offerer posted the gig themselves.
        StateConflictError: The gig is no longer open.
    """
    gig = require_gig(db, offer_data.gig_id, "create_offer")
    if gig.posted_by == offerer.id:
        raise ValidationFailed(
            "You cannot make an offer on your own gig",
            operation="create_offer",
            entity_id=gig.id,
        )
    if gig.status != GigStatus.OPEN.value:
        raise StateConflictError(
            f"Gig is {gig.status} and no longer accepts offers",
            operation="create_offer",
            entity_id=gig.id,
        )

    now = now or utcnow()
    offer = Offer(
        gig_id=gig.id,
        gig_title=gig.title,
        gig_posted_by=gig.posted_by,
        offered_by=offerer.id,
        offered_by_name=offerer.display_name,
        message=offer_data.message,
        proposed_budget=offer_data.proposed_budget,
        status=OfferStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
    with store_call(db, "create_offer", gig.id):
        db.add(offer)
        db.commit()
        db.refresh(offer)
    logger.info("Offer %s made by %s on gig %s", offer.id, offerer.id, gig.id)
    return offer


def get_offer(db: Session, offer_id: int) -> Offer | None:
    """Return a single offer by id."""
    return db.query(Offer).filter(Offer.id == offer_id).first()


def require_offer(db: Session, offer_id: int, operation: str) -> Offer:
    """Return the offer or raise :class:`NotFoundError`."""
    offer = get_offer(db, offer_id)
    if offer is None:
        raise NotFoundError("Offer not found", operation=operation, entity_id=offer_id)
    return offer


def _ensure_pending(offer: Offer, operation: str) -> None:
    if offer.status != OfferStatus.PENDING.value:
        raise StateConflictError(
            f"Offer is immutable in its current state ({offer.status})",
            operation=operation,
            entity_id=offer.id,
        )


def _newest_first(query):  # type: ignore[no-untyped-def]
    return query.order_by(Offer.created_at.desc(), Offer.id.desc()).all()


def list_offers_for_gig(db: Session, gig_id: int) -> list[Offer]:
    """Return every offer on a gig, newest first."""
    return _newest_first(db.query(Offer).filter(Offer.gig_id == gig_id))


def list_offers_received(db: Session, principal_id: str) -> list[Offer]:
    """Return offers made on gigs the principal posted, newest first."""
    return _newest_first(db.query(Offer).filter(Offer.gig_posted_by == principal_id))


def list_offers_made(db: Session, principal_id: str) -> list[Offer]:
    """Return offers the principal made, newest first."""
    return _newest_first(db.query(Offer).filter(Offer.offered_by == principal_id))


def update_offer(
    db: Session,
    offer_id: int,
    patch: OfferUpdate,
    *,
    now: datetime | None = None,
) -> Offer:
    """Edit the message or proposed budget of a pending offer."""
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("Nothing to update", operation="update_offer", entity_id=offer_id)
    if "proposed_budget" in changes and changes["proposed_budget"] is None:
        raise ValidationFailed(
            "proposed_budget cannot be cleared", operation="update_offer", entity_id=offer_id
        )
    if "message" in changes and changes["message"] is None:
        changes["message"] = ""

    offer = require_offer(db, offer_id, "update_offer")
    _ensure_pending(offer, "update_offer")

    for key, value in changes.items():
        setattr(offer, key, value)
    offer.updated_at = now or utcnow()

    with store_call(db, "update_offer", offer_id):
        db.commit()
        db.refresh(offer)
    return offer


def delete_offer(db: Session, offer_id: int) -> None:
    """Withdraw a pending offer.

    Pending offers never have a chat, so nothing else needs removing.
    """
    offer = require_offer(db, offer_id, "delete_offer")
    _ensure_pending(offer, "delete_offer")
    with store_call(db, "delete_offer", offer_id):
        db.delete(offer)
        db.commit()
    logger.info("Offer %s withdrawn", offer_id)


def reject_offer(db: Session, offer_id: int, *, now: datetime | None = None) -> Offer:
    """Move a pending offer to ``rejected``."""
    offer = require_offer(db, offer_id, "reject_offer")
    _ensure_pending(offer, "reject_offer")
    offer.status = OfferStatus.REJECTED.value
    offer.updated_at = now or utcnow()
    with store_call(db, "reject_offer", offer_id):
        db.commit()
        db.refresh(offer)
    logger.info("Offer %s rejected", offer_id)
    return offer


def update_offer_status(
    db: Session,
    offer_id: int,
    status: str,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> tuple[Offer, Chat | None]:
    """Apply the gig poster's decision.

    ``accepted`` runs the acceptance transition and returns the chat it
    provisioned; ``rejected`` rejects a pending offer. No other transition
    is exposed.
    """
    if status == OfferStatus.ACCEPTED.value:
        offer = require_offer(db, offer_id, "update_offer_status")
        chat = accept_offer(db, offer, hub=hub, now=now)
        return offer, chat
    if status == OfferStatus.REJECTED.value:
        return reject_offer(db, offer_id, now=now), None
    raise StateConflictError(
        f"Cannot move an offer to {status}",
        operation="update_offer_status",
        entity_id=offer_id,
    )
