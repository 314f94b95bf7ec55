from fastapi import Depends, Request

from config import Settings, get_settings
from schemas import Identity
from utils.jwt import verify_bearer


async def require_read_identity(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Identity:
    """
    Verify the bearer token for read routes (list, filter, get)

    Args:
        request: FastAPI request object
        settings: Application settings

    Returns:
        Verified caller identity

    Raises:
        AuthError: If token is missing, invalid, or expired
    """
    return verify_bearer(
        request.headers.get("Authorization"), settings, settings.jwt_read_leeway_seconds
    )


async def require_write_identity(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Identity:
    """
    Verify the bearer token for mutating routes (create, update, delete)

    Same checks as the read path, with the write leeway applied to expiry.
    """
    return verify_bearer(
        request.headers.get("Authorization"), settings, settings.jwt_write_leeway_seconds
    )
