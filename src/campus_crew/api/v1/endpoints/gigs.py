"""Gig endpoints for the Campus Crew API."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from campus_crew.models import Gig, Offer
from campus_crew.schemas.gig import GigCreate, GigDeleteResponse, GigResponse, GigUpdate
from campus_crew.schemas.offer import OfferResponse
from campus_crew.services import gig_service
from campus_crew.services.offer_service import list_offers_for_gig

from ..dependencies import (
    CurrentProfileDep,
    HubDep,
    PrincipalDep,
    SessionDep,
    ensure_owner_or_admin,
)

router = APIRouter(prefix="/gigs", tags=["gigs"])


@router.post("", response_model=GigResponse, status_code=status.HTTP_201_CREATED)
async def create_gig(gig_data: GigCreate, current_profile: CurrentProfileDep, db: SessionDep) -> Gig:
    """Post a new gig for the caller's college."""
    return gig_service.create_gig(db, gig_data, current_profile)


@router.get("", response_model=list[GigResponse])
async def list_gigs(
    current_profile: CurrentProfileDep,
    db: SessionDep,
    college: str | None = None,
    q: str | None = None,
    limit: int = Query(20, ge=1, le=100),
) -> list[Gig]:
    """List open gigs of a college, newest first.

    Defaults to the caller's own college; ``q`` filters by a case-insensitive
    substring of title, description, category or poster name.
    """
    target_college = college or current_profile.college
    if not target_college:
        return []
    if q:
        return gig_service.search_gigs_by_college(db, target_college, q, limit)
    return gig_service.list_gigs_by_college(db, target_college, limit)


@router.get("/mine", response_model=list[GigResponse])
async def list_my_gigs(principal: PrincipalDep, db: SessionDep) -> list[Gig]:
    """List every gig the caller posted, in any status."""
    return gig_service.list_gigs_by_poster(db, principal.principal_id)


@router.get("/{gig_id}", response_model=GigResponse)
async def read_gig(gig_id: int, _: PrincipalDep, db: SessionDep) -> Gig:
    """Return a single gig."""
    return gig_service.require_gig(db, gig_id, "get_gig")


@router.patch("/{gig_id}", response_model=GigResponse)
async def update_gig(
    gig_id: int,
    patch: GigUpdate,
    principal: PrincipalDep,
    db: SessionDep,
) -> Gig:
    """Edit a gig; only its poster or an admin may do so."""
    gig = gig_service.require_gig(db, gig_id, "update_gig")
    ensure_owner_or_admin(principal, gig.posted_by, operation="update_gig", entity_id=gig_id)
    return gig_service.update_gig(db, gig_id, patch)


@router.delete("/{gig_id}", response_model=GigDeleteResponse)
async def delete_gig(
    gig_id: int,
    principal: PrincipalDep,
    db: SessionDep,
    hub: HubDep,
) -> GigDeleteResponse:
    """Delete a gig together with its offers and chats."""
    gig = gig_service.require_gig(db, gig_id, "delete_gig")
    ensure_owner_or_admin(principal, gig.posted_by, operation="delete_gig", entity_id=gig_id)
    offers, chats, messages = gig_service.delete_gig(db, gig_id, hub=hub)
    return GigDeleteResponse(
        deleted_offers=offers, deleted_chats=chats, deleted_messages=messages
    )


@router.get("/{gig_id}/offers", response_model=list[OfferResponse])
async def list_gig_offers(gig_id: int, principal: PrincipalDep, db: SessionDep) -> list[Offer]:
    """List offers on a gig; visible to the gig's poster and admins."""
    gig = gig_service.require_gig(db, gig_id, "list_offers_for_gig")
    ensure_owner_or_admin(
        principal, gig.posted_by, operation="list_offers_for_gig", entity_id=gig_id
    )
    return list_offers_for_gig(db, gig_id)
