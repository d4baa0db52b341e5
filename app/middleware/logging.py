"""Request/response logging middleware."""

import logging
import time
from typing import Any, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.request_id import generate_request_id, set_request_id

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("api_key", "apikey", "password", "token", "secret", "auth", "imagedata")


def mask_sensitive_data(data: Any) -> Any:
    """Recursively mask sensitive fields, keeping an 8-character preview."""
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower().replace("-", "_")
            if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
                if isinstance(value, str) and len(value) > 8:
                    masked[key] = f"{value[:8]}..."
                else:
                    masked[key] = "***"
            else:
                masked[key] = mask_sensitive_data(value)
        return masked
    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]
    return data


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and responses with timing.

    Bodies are not read here; routes log their own (masked) parameters.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        request.state.request_id = request_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        params: Dict[str, Any] = {}
        if request.query_params:
            params["query"] = mask_sensitive_data(dict(request.query_params))

        logger.info(
            f"API Request: {method} {path}",
            extra={
                "method": method,
                "path": path,
                "params": params,
                "content_length": request.headers.get("content-length"),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent", "Unknown"),
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"API Error: {method} {path} - {str(e)}",
                extra={
                    "method": method,
                    "path": path,
                    "process_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        process_time = time.perf_counter() - start_time
        logger.info(
            f"API Response: {method} {path} - {response.status_code}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time_ms": round(process_time * 1000, 2),
            },
        )

        response.headers["X-Request-ID"] = request_id
        return response
