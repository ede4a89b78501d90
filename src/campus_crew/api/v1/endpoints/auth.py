"""Authentication endpoints for the Campus Crew API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from campus_crew.core.security import ROLE_ADMIN, create_access_token
from campus_crew.core.settings import settings
from campus_crew.schemas.auth import (
    AdminLoginRequest,
    OAuthSignInRequest,
    OtpSessionResponse,
    ResendOtpRequest,
    SendOtpRequest,
    TokenResponse,
    VerifyOtpRequest,
)
from campus_crew.services.admin_service import authenticate_admin
from campus_crew.services.identity import verify_identity_token
from campus_crew.services.profile_service import IdentityClaims, sign_in

from ..dependencies import AdminGuardDep, OtpServiceDep, SessionDep

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/otp/send", response_model=OtpSessionResponse)
def send_otp(request: SendOtpRequest, otp_service: OtpServiceDep) -> OtpSessionResponse:
    """Text a one-time code to the given phone number."""
    session = otp_service.send_otp(request.phone_number)
    return OtpSessionResponse(session_id=session.session_id, expires_in=otp_service.expires_in)


@router.post("/otp/resend", response_model=OtpSessionResponse)
def resend_otp(request: ResendOtpRequest, otp_service: OtpServiceDep) -> OtpSessionResponse:
    """Replace an OTP session with a fresh code, at most once a minute."""
    session = otp_service.resend_otp(request.session_id)
    return OtpSessionResponse(session_id=session.session_id, expires_in=otp_service.expires_in)


@router.post("/otp/verify", response_model=TokenResponse)
def verify_otp(
    request: VerifyOtpRequest,
    otp_service: OtpServiceDep,
    db: SessionDep,
) -> TokenResponse:
    """Exchange a correct code for an access token.

    The verified phone number becomes the principal ``phone:<e164>``; a
    profile is created on first sign-in.
    """
    result = otp_service.verify_otp(request.session_id, request.code)
    if not result.success or result.phone_number is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
        )

    claims = IdentityClaims(
        principal_id=f"phone:{result.phone_number}",
        auth_method="phone",
        phone=result.phone_number,
    )
    profile, is_new_user = sign_in(db, claims)
    return TokenResponse(
        access_token=create_access_token(profile.id),
        principal_id=profile.id,
        is_new_user=is_new_user,
    )


@router.post("/oauth", response_model=TokenResponse)
async def oauth_sign_in(request: OAuthSignInRequest, db: SessionDep) -> TokenResponse:
    """Exchange an identity-provider token for an access token."""
    claims = verify_identity_token(request.id_token)
    profile, is_new_user = sign_in(db, claims)
    return TokenResponse(
        access_token=create_access_token(profile.id),
        principal_id=profile.id,
        is_new_user=is_new_user,
    )


@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(request: AdminLoginRequest, guard: AdminGuardDep) -> TokenResponse:
    """Sign in to the admin panel."""
    authenticate_admin(request.username, request.password, guard)
    principal_id = f"admin:{settings.admin_username}"
    return TokenResponse(
        access_token=create_access_token(principal_id, role=ROLE_ADMIN),
        principal_id=principal_id,
    )
