"""Per-caller rate limiting with slowapi."""

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from app.config import settings


def get_api_key_for_rate_limit(request: Request) -> str:
    """Bucket callers by API key, falling back to the client address."""
    return request.headers.get("X-API-Key") or get_remote_address(request)


limiter = Limiter(
    key_func=get_api_key_for_rate_limit,
    default_limits=[f"{settings.rate_limit_per_hour}/hour"],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


def get_rate_limit_exceeded_handler():
    return _rate_limit_exceeded_handler


def rate_limit_dependency(request: Request) -> None:
    """
    Apply the default limits to every route of a router.

    Raises:
        RateLimitExceeded: If the caller is over the limit
    """
    # slowapi only exposes the check through its middleware/decorator; call it directly.
    limiter._check_request_limit(request, endpoint_func=None)
