"""API key authentication dependency."""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header

from app.api.dependencies import get_settings
from app.config import Settings
from app.utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def api_key_matches(provided: Optional[str], expected: str) -> bool:
    """Constant-time comparison; an unset secret never matches."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def verify_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    app_settings: Settings = Depends(get_settings),
) -> str:
    """
    Verify the shared secret from the X-API-Key header.

    Raises:
        AuthenticationError: If the key is missing or does not match
    """
    if not api_key_matches(x_api_key, app_settings.api_secret_key):
        logger.warning("Unauthorized API access attempt", extra={"has_api_key": bool(x_api_key)})
        raise AuthenticationError("Unauthorized")

    return x_api_key
