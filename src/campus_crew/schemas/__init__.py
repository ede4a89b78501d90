"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .admin import UserDeleteResponse, UserStatsResponse
from .auth import (
    AdminLoginRequest,
    OAuthSignInRequest,
    OtpSessionResponse,
    ResendOtpRequest,
    SendOtpRequest,
    TokenResponse,
    VerifyOtpRequest,
)
from .chat import (
    AcceptOfferResponse,
    ChatDeleteResponse,
    ChatResponse,
    MarkReadResponse,
    MediaUpload,
    MessageCreate,
    MessageResponse,
    UnreadCountResponse,
)
from .gig import GigCreate, GigDeleteResponse, GigResponse, GigUpdate
from .global_chat import GlobalMediaUpload, GlobalMessageCreate, GlobalMessageResponse
from .offer import OfferCreate, OfferResponse, OfferStatusUpdate, OfferUpdate
from .profile import ProfileResponse, ProfileUpdate

__all__ = [
    "UserDeleteResponse", "UserStatsResponse",
    "AdminLoginRequest", "OAuthSignInRequest", "OtpSessionResponse",
    "ResendOtpRequest", "SendOtpRequest", "TokenResponse", "VerifyOtpRequest",
    "AcceptOfferResponse", "ChatDeleteResponse", "ChatResponse", "MarkReadResponse",
    "MediaUpload", "MessageCreate", "MessageResponse", "UnreadCountResponse",
    "GigCreate", "GigDeleteResponse", "GigResponse", "GigUpdate",
    "GlobalMediaUpload", "GlobalMessageCreate", "GlobalMessageResponse",
    "OfferCreate", "OfferResponse", "OfferStatusUpdate", "OfferUpdate",
    "ProfileResponse", "ProfileUpdate",
]
