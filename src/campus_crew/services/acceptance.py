"""Offer acceptance: the one transition that spans offers, gigs and chats.

Accepting flips the offer to ``accepted``, moves its gig from ``open`` to
``in_progress`` and provisions the chat between poster and offerer. All three
writes commit together. Chat creation is check-then-create; the unique
``chat.offer_id`` constraint decides a concurrent duplicate, and the loser
returns the chat the winner created.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from campus_crew.db.time import utcnow
from campus_crew.models import Chat, GigStatus, Offer, OfferStatus

from .chat_service import find_chat_for_offer, publish_chat_lists
from .errors import CollaboratorUnavailableError, StateConflictError
from .gig_service import require_gig
from .live_feed import LiveFeedHub, get_live_feed_hub

logger = logging.getLogger(__name__)

OPERATION = "accept_offer"


def _unavailable(offer_id: int) -> CollaboratorUnavailableError:
    return CollaboratorUnavailableError(
        "Could not accept the offer, please retry",
        operation=OPERATION,
        entity_id=offer_id,
    )


def accept_offer(
    db: Session,
    offer: Offer,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> Chat:
    """Accept ``offer`` and return the chat keyed on it.

    Safe to call again for an already accepted offer: the existing chat is
    returned, or created if it is missing.

    Raises:
        StateConflictError: The offer was rejected, or another offer on the
            same gig has already been accepted.
        NotFoundError: The offer's gig no longer exists.
        CollaboratorUnavailableError: The store failed; nothing was changed.
    """
    offer_id = offer.id
    if offer.status == OfferStatus.REJECTED.value:
        raise StateConflictError(
            "A rejected offer cannot be accepted", operation=OPERATION, entity_id=offer_id
        )

    gig = require_gig(db, offer.gig_id, OPERATION)
    now = now or utcnow()

    if offer.status == OfferStatus.PENDING.value:
        competing = (
            db.query(Offer.id)
            .filter(
                Offer.gig_id == gig.id,
                Offer.status == OfferStatus.ACCEPTED.value,
                Offer.id != offer_id,
            )
            .first()
        )
        if competing is not None:
            raise StateConflictError(
                "Another offer on this gig has already been accepted",
                operation=OPERATION,
                entity_id=offer_id,
            )
        offer.status = OfferStatus.ACCEPTED.value
        offer.updated_at = now
        if gig.status == GigStatus.OPEN.value:
            gig.status = GigStatus.IN_PROGRESS.value
            gig.updated_at = now

    chat = find_chat_for_offer(db, offer_id)
    created = chat is None
    if chat is None:
        chat = Chat(
            poster_id=gig.posted_by,
            poster_name=gig.posted_by_name,
            offerer_id=offer.offered_by,
            offerer_name=offer.offered_by_name,
            gig_id=gig.id,
            gig_title=gig.title,
            offer_id=offer_id,
            created_at=now,
            updated_at=now,
        )
        db.add(chat)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = find_chat_for_offer(db, offer_id)
        if existing is None:
            logger.warning("Accept of offer %s hit a constraint with no chat present", offer_id)
            raise _unavailable(offer_id)
        logger.info("Offer %s was accepted concurrently; reusing chat %s", offer_id, existing.id)
        db.refresh(offer)
        return existing
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Accept of offer %s failed: %s", offer_id, exc)
        raise _unavailable(offer_id) from exc

    db.refresh(chat)
    db.refresh(offer)
    if created:
        logger.info("Offer %s accepted; chat %s opened for gig %s", offer_id, chat.id, gig.id)
        publish_chat_lists(
            db, hub if hub is not None else get_live_feed_hub(), chat.participants
        )
    return chat
