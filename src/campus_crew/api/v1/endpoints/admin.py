"""Admin panel endpoints; every route requires an admin token."""

from __future__ import annotations

from fastapi import APIRouter

from campus_crew.models import Gig, Profile
from campus_crew.schemas.admin import UserDeleteResponse, UserStatsResponse
from campus_crew.schemas.gig import GigDeleteResponse, GigResponse
from campus_crew.schemas.profile import ProfileResponse
from campus_crew.services import admin_service, gig_service

from ..dependencies import AdminDep, HubDep, SessionDep

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[ProfileResponse])
async def list_users(_: AdminDep, db: SessionDep) -> list[Profile]:
    """Every registered student, newest first."""
    return admin_service.list_all_profiles(db)


@router.get("/gigs", response_model=list[GigResponse])
async def list_gigs(_: AdminDep, db: SessionDep) -> list[Gig]:
    """Every gig in any status, newest first."""
    return admin_service.list_all_gigs(db)


@router.get("/users/{principal_id}/stats", response_model=UserStatsResponse)
async def user_stats(principal_id: str, _: AdminDep, db: SessionDep) -> UserStatsResponse:
    """Gig and offer counts for one student."""
    return admin_service.get_user_stats(db, principal_id)


@router.delete("/users/{principal_id}", response_model=UserDeleteResponse)
async def delete_user(
    principal_id: str,
    _: AdminDep,
    db: SessionDep,
    hub: HubDep,
) -> UserDeleteResponse:
    """Delete a student with their gigs, offers, chats and messages."""
    return admin_service.delete_user(db, principal_id, hub=hub)


@router.delete("/gigs/{gig_id}", response_model=GigDeleteResponse)
async def delete_gig(gig_id: int, _: AdminDep, db: SessionDep, hub: HubDep) -> GigDeleteResponse:
    """Delete any gig with its offers and the chats created from them."""
    offers, chats, messages = gig_service.delete_gig(db, gig_id, hub=hub)
    return GigDeleteResponse(
        deleted_offers=offers, deleted_chats=chats, deleted_messages=messages
    )
