"""Adapter for identity tokens issued by the OAuth-style sign-in provider."""

from __future__ import annotations

from jose import JWTError, jwt

from campus_crew.core.settings import settings

from .errors import AuthorizationError, CollaboratorUnavailableError
from .profile_service import IdentityClaims

IDENTITY_ALGORITHM = "HS256"


def verify_identity_token(token: str) -> IdentityClaims:
    """Decode a provider identity token and return its claims.

    The provider signs tokens with ``IDENTITY_TOKEN_SECRET``; the ``sub`` claim
    becomes the opaque principal id ``google:<sub>``.

    Raises:
        CollaboratorUnavailableError: If no provider secret is configured.
        AuthorizationError: If the token is invalid, expired or for another audience.
    """
    if not settings.identity_token_secret:
        raise CollaboratorUnavailableError(
            "Identity provider is not configured", operation="verify_identity_token"
        )

    options = {"verify_iss": settings.identity_token_issuer is not None}
    try:
        payload = jwt.decode(
            token,
            settings.identity_token_secret,
            algorithms=[IDENTITY_ALGORITHM],
            audience=settings.identity_token_audience,
            issuer=settings.identity_token_issuer,
            options=options,
        )
    except JWTError as err:
        raise AuthorizationError(
            "Identity token could not be verified", operation="verify_identity_token"
        ) from err

    subject = payload.get("sub")
    if not subject:
        raise AuthorizationError(
            "Identity token has no subject", operation="verify_identity_token"
        )

    return IdentityClaims(
        principal_id=f"google:{subject}",
        auth_method="google",
        email=payload.get("email"),
        display_name=payload.get("name"),
        picture=payload.get("picture"),
    )
