"""System endpoints for the Campus Crew API."""

from __future__ import annotations

from fastapi import APIRouter

from campus_crew import __version__
from campus_crew.core.settings import settings
from campus_crew.models import GigCategory

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; clients use it to mirror the
    server-side validation rules.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": __version__,
        },
        "gigs": {
            "categories": [category.value for category in GigCategory],
            "default_list_limit": settings.gig_list_limit,
        },
        "media": {
            "max_image_bytes": settings.max_image_bytes,
            "max_profile_picture_bytes": settings.max_profile_picture_bytes,
            "max_media_bytes": settings.max_media_bytes,
            "max_video_seconds": settings.max_video_seconds,
        },
        "otp": {
            "length": settings.otp_length,
            "expiry_minutes": settings.otp_expiry_minutes,
            "max_attempts": settings.otp_max_attempts,
            "min_resend_seconds": settings.otp_min_resend_seconds,
        },
    }
