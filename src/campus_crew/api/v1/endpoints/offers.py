"""Offer endpoints, including acceptance and rejection by the gig poster."""

from __future__ import annotations

from fastapi import APIRouter, status

from campus_crew.models import Offer
from campus_crew.schemas.chat import AcceptOfferResponse, ChatResponse
from campus_crew.schemas.offer import OfferCreate, OfferResponse, OfferStatusUpdate, OfferUpdate
from campus_crew.services import offer_service
from campus_crew.services.errors import AuthorizationError

from ..dependencies import (
    CurrentProfileDep,
    HubDep,
    Principal,
    PrincipalDep,
    SessionDep,
    ensure_owner_or_admin,
)

router = APIRouter(prefix="/offers", tags=["offers"])


def _ensure_can_view(principal: Principal, offer: Offer) -> None:
    if principal.is_admin or principal.principal_id in (offer.offered_by, offer.gig_posted_by):
        return
    raise AuthorizationError(
        "You cannot view this offer", operation="get_offer", entity_id=offer.id
    )


@router.post("", response_model=OfferResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    offer_data: OfferCreate,
    current_profile: CurrentProfileDep,
    db: SessionDep,
) -> Offer:
    """Make an offer on someone else's open gig."""
    return offer_service.create_offer(db, offer_data, current_profile)


@router.get("/received", response_model=list[OfferResponse])
async def list_received(principal: PrincipalDep, db: SessionDep) -> list[Offer]:
    """Offers made on the caller's gigs, newest first."""
    return offer_service.list_offers_received(db, principal.principal_id)


@router.get("/made", response_model=list[OfferResponse])
async def list_made(principal: PrincipalDep, db: SessionDep) -> list[Offer]:
    """Offers the caller has made, newest first."""
    return offer_service.list_offers_made(db, principal.principal_id)


@router.get("/{offer_id}", response_model=OfferResponse)
async def read_offer(offer_id: int, principal: PrincipalDep, db: SessionDep) -> Offer:
    """Return one offer to its maker, the gig's poster or an admin."""
    offer = offer_service.require_offer(db, offer_id, "get_offer")
    _ensure_can_view(principal, offer)
    return offer


@router.patch("/{offer_id}", response_model=OfferResponse)
async def update_offer(
    offer_id: int,
    patch: OfferUpdate,
    principal: PrincipalDep,
    db: SessionDep,
) -> Offer:
    """Edit a pending offer; only its maker may do so."""
    offer = offer_service.require_offer(db, offer_id, "update_offer")
    ensure_owner_or_admin(principal, offer.offered_by, operation="update_offer", entity_id=offer_id)
    return offer_service.update_offer(db, offer_id, patch)


@router.delete("/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_offer(offer_id: int, principal: PrincipalDep, db: SessionDep) -> None:
    """Withdraw a pending offer."""
    offer = offer_service.require_offer(db, offer_id, "delete_offer")
    ensure_owner_or_admin(principal, offer.offered_by, operation="delete_offer", entity_id=offer_id)
    offer_service.delete_offer(db, offer_id)


@router.put("/{offer_id}/status", response_model=OfferResponse)
async def update_offer_status(
    offer_id: int,
    status_update: OfferStatusUpdate,
    principal: PrincipalDep,
    db: SessionDep,
    hub: HubDep,
) -> Offer:
    """Accept or reject an offer; only the gig's poster may decide."""
    offer = offer_service.require_offer(db, offer_id, "update_offer_status")
    ensure_owner_or_admin(
        principal, offer.gig_posted_by, operation="update_offer_status", entity_id=offer_id
    )
    updated, _ = offer_service.update_offer_status(db, offer_id, status_update.status, hub=hub)
    return updated


@router.post("/{offer_id}/accept", response_model=AcceptOfferResponse)
async def accept_offer(
    offer_id: int,
    principal: PrincipalDep,
    db: SessionDep,
    hub: HubDep,
) -> AcceptOfferResponse:
    """Accept an offer and return the chat opened with its maker.

    Repeating the call returns the same chat.
    """
    offer = offer_service.require_offer(db, offer_id, "accept_offer")
    ensure_owner_or_admin(
        principal, offer.gig_posted_by, operation="accept_offer", entity_id=offer_id
    )
    updated, chat = offer_service.update_offer_status(db, offer_id, "accepted", hub=hub)
    return AcceptOfferResponse(
        offer_id=updated.id,
        status=updated.status,
        chat=ChatResponse.model_validate(chat),
    )
