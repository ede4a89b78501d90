"""Authentication Pydantic schemas."""

from pydantic import BaseModel, Field


class SendOtpRequest(BaseModel):
    """Request an OTP for a phone number."""

    phone_number: str = Field(..., min_length=1, max_length=32)


class ResendOtpRequest(BaseModel):
    """Request a fresh OTP for an existing session."""

    session_id: str


class OtpSessionResponse(BaseModel):
    """Session handle returned after an OTP was dispatched."""

    session_id: str
    expires_in: int = Field(..., description="Seconds until the code expires")


class VerifyOtpRequest(BaseModel):
    """Code entered by the user."""

    session_id: str
    code: str = Field(..., min_length=1, max_length=12, pattern=r"^[0-9]+$")


class OAuthSignInRequest(BaseModel):
    """Identity token obtained from the OAuth-style provider."""

    id_token: str


class TokenResponse(BaseModel):
    """Access token issued after a successful sign-in."""

    access_token: str
    token_type: str = "bearer"
    principal_id: str
    is_new_user: bool = False


class AdminLoginRequest(BaseModel):
    """Admin panel credentials."""

    username: str
    password: str
