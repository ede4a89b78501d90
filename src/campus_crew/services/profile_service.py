"""CRUD-style helpers for managing student profiles."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from campus_crew.core.settings import settings
from campus_crew.db.time import utcnow
from campus_crew.models import Profile
from campus_crew.schemas.chat import MediaUpload
from campus_crew.schemas.profile import ProfileUpdate

from .blob_store import BlobStore
from .errors import CampusCrewError, NotFoundError, ValidationFailed, store_call
from .media import store_media

__all__ = [
    "IdentityClaims",
    "sign_in",
    "get_profile",
    "require_profile",
    "update_profile",
    "set_profile_picture",
    "remove_profile_picture",
    "list_profiles_by_college",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityClaims:
    """Basic claims produced by an identity provider after sign-in."""

    principal_id: str
    auth_method: str
    email: str | None = None
    display_name: str | None = None
    picture: str | None = None
    phone: str | None = None


def _split_name(display_name: str | None) -> tuple[str, str]:
    if not display_name:
        return "", ""
    first, _, last = display_name.strip().partition(" ")
    return first, last.strip()


def sign_in(db: Session, claims: IdentityClaims) -> tuple[Profile, bool]:
    """Return the principal's profile, creating it on first sign-in.

    Returns:
        The profile and whether it was created by this call.
    """
    profile = get_profile(db, claims.principal_id)
    if profile is not None:
        return profile, False

    first_name, last_name = _split_name(claims.display_name)
    now = utcnow()
    profile = Profile(
        id=claims.principal_id,
        email=claims.email,
        first_name=first_name,
        last_name=last_name,
        phone=claims.phone or "",
        profile_picture=claims.picture,
        auth_method=claims.auth_method,
        created_at=now,
        updated_at=now,
    )
    with store_call(db, "sign_in", claims.principal_id):
        db.add(profile)
        db.commit()
        db.refresh(profile)
    logger.info("Created profile %s via %s", profile.id, claims.auth_method)
    return profile, True


def get_profile(db: Session, principal_id: str) -> Profile | None:
    """Return a single profile by principal id."""
    return db.query(Profile).filter(Profile.id == principal_id).first()


def require_profile(db: Session, principal_id: str, operation: str) -> Profile:
    """Return the profile or raise :class:`NotFoundError`."""
    profile = get_profile(db, principal_id)
    if profile is None:
        raise NotFoundError("Profile not found", operation=operation, entity_id=principal_id)
    return profile


def update_profile(db: Session, principal_id: str, update_data: ProfileUpdate) -> Profile:
    """Apply partial updates to an existing profile.

    Display names already copied onto gigs, offers and chats are snapshots and
    are not rewritten.
    """
    profile = require_profile(db, principal_id, "update_profile")
    for key, value in update_data.model_dump(exclude_unset=True).items():
        setattr(profile, key, value)
    profile.updated_at = utcnow()

    with store_call(db, "update_profile", principal_id):
        db.commit()
        db.refresh(profile)
    return profile


def set_profile_picture(
    db: Session, blob_store: BlobStore, principal_id: str, upload: MediaUpload
) -> Profile:
    """Store a new profile picture and drop the one it replaces.

    Raises:
        ValidationFailed: If the upload is not an image or is too large.
    """
    profile = require_profile(db, principal_id, "set_profile_picture")
    if not upload.content_type.startswith("image/"):
        raise ValidationFailed(
            "Please select an image file", operation="set_profile_picture", entity_id=principal_id
        )

    media = store_media(
        blob_store,
        upload,
        folder=f"profiles/{principal_id.replace(':', '_')}",
        max_bytes=settings.max_profile_picture_bytes,
    )
    previous = profile.profile_picture
    profile.profile_picture = media.url
    profile.updated_at = utcnow()
    try:
        with store_call(db, "set_profile_picture", principal_id):
            db.commit()
            db.refresh(profile)
    except CampusCrewError:
        logger.warning("Discarding stored picture %s after failed update", media.url)
        blob_store.delete(media.url)
        raise

    if previous:
        blob_store.delete(previous)
    logger.info("Updated profile picture of %s", principal_id)
    return profile


def remove_profile_picture(db: Session, blob_store: BlobStore, principal_id: str) -> Profile:
    """Clear the profile picture and delete its stored file."""
    profile = require_profile(db, principal_id, "remove_profile_picture")
    previous = profile.profile_picture
    if previous is None:
        return profile

    profile.profile_picture = None
    profile.updated_at = utcnow()
    with store_call(db, "remove_profile_picture", principal_id):
        db.commit()
        db.refresh(profile)
    blob_store.delete(previous)
    return profile


def list_profiles_by_college(db: Session, college: str) -> Sequence[Profile]:
    """Return profiles of one college, newest first."""
    return (
        db.query(Profile)
        .filter(Profile.college == college)
        .order_by(Profile.created_at.desc())
        .all()
    )
