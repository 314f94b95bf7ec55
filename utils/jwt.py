import jwt
import logging
from typing import Optional

from config import Settings
from errors import AuthError, AuthFailure
from schemas import Identity

logger = logging.getLogger(__name__)

ALGORITHMS = ["HS256"]


def extract_bearer_token(auth_header: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header value

    Args:
        auth_header: Raw header value, None if the header was absent

    Returns:
        The token string

    Raises:
        AuthError: If the header is missing, not a Bearer header, or has no token
    """
    if not auth_header:
        raise AuthError(AuthFailure.MISSING_OR_MALFORMED, "Missing Authorization header.")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthError(
            AuthFailure.MISSING_OR_MALFORMED,
            "Invalid Authorization header format. Expected: Bearer <token>",
        )

    return parts[1]


def verify_jwt(token: str, settings: Settings, leeway: int = 0) -> Identity:
    """
    Verify JWT token and return the caller's identity

    Signature, issuer, audience and expiry are all checked; the token must
    also carry a non-empty email claim.

    Args:
        token: JWT token string
        settings: Provides the shared secret, issuer and audience
        leeway: Seconds of clock skew tolerated on expiry

    Returns:
        Identity built from the email and subject claims

    Raises:
        AuthError: If any check fails
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=ALGORITHMS,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            leeway=leeway,
            options={"require": ["exp", "iss", "aud"]},
        )
    except jwt.InvalidTokenError as exc:
        logger.warning("Token validation failed: %s", exc)
        raise AuthError(AuthFailure.INVALID_TOKEN) from exc

    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        logger.warning("Token does not contain an email claim")
        raise AuthError(AuthFailure.INVALID_TOKEN, "Token does not contain email.")

    subject = payload.get("sub")
    return Identity(email=email.strip(), subject=str(subject) if subject is not None else None)


def verify_bearer(auth_header: Optional[str], settings: Settings, leeway: int = 0) -> Identity:
    """Verify a full Authorization header value"""
    return verify_jwt(extract_bearer_token(auth_header), settings, leeway)
