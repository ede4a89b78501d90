"""Student profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from campus_crew.models import Profile
from campus_crew.schemas.chat import MediaUpload
from campus_crew.schemas.profile import ProfileResponse, ProfileUpdate
from campus_crew.services.profile_service import (
    list_profiles_by_college,
    remove_profile_picture,
    require_profile,
    set_profile_picture,
    update_profile,
)

from ..dependencies import BlobStoreDep, CurrentProfileDep, PrincipalDep, SessionDep

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
async def read_my_profile(current_profile: CurrentProfileDep) -> Profile:
    """Return the signed-in student's profile."""
    return current_profile


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    update_data: ProfileUpdate,
    current_profile: CurrentProfileDep,
    db: SessionDep,
) -> Profile:
    """Update the signed-in student's profile."""
    return update_profile(db, current_profile.id, update_data)


@router.post("/me/picture", response_model=ProfileResponse)
async def upload_my_picture(
    upload: MediaUpload,
    current_profile: CurrentProfileDep,
    db: SessionDep,
    blob_store: BlobStoreDep,
) -> Profile:
    """Replace the signed-in student's profile picture with an uploaded image."""
    return set_profile_picture(db, blob_store, current_profile.id, upload)


@router.delete("/me/picture", response_model=ProfileResponse)
async def remove_my_picture(
    current_profile: CurrentProfileDep,
    db: SessionDep,
    blob_store: BlobStoreDep,
) -> Profile:
    """Remove the signed-in student's profile picture."""
    return remove_profile_picture(db, blob_store, current_profile.id)


@router.get("", response_model=list[ProfileResponse])
async def list_profiles(
    _: PrincipalDep,
    db: SessionDep,
    college: str = Query(..., min_length=1),
) -> list[Profile]:
    """List students of one college."""
    return list(list_profiles_by_college(db, college))


@router.get("/{principal_id}", response_model=ProfileResponse)
async def read_profile(principal_id: str, _: PrincipalDep, db: SessionDep) -> Profile:
    """Return another student's profile."""
    return require_profile(db, principal_id, "get_profile")
