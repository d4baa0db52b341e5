"""FastAPI application entry point."""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.api.routes import health, images, recipes
from app.config import settings
from app.core.request_id import get_request_id
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import get_rate_limit_exceeded_handler, limiter
from app.middleware.security import SecurityHeadersMiddleware, setup_cors
from app.utils.exceptions import (
    AuthenticationError,
    ChefChoiceException,
    CompletionError,
    NotFoundError,
    PayloadTooLargeError,
    ScrapingError,
    StorageError,
    TokenVerificationUnavailable,
    ValidationError,
)
from app.utils.logging_config import setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Chef Choice Recipe Parser API",
    description="Recipe parsing and image storage gateway for the Chef Choice mobile app",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, get_rate_limit_exceeded_handler())

# Most specific classes first
_EXCEPTION_STATUS = (
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Payload too large"),
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Invalid request"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not found"),
    (CompletionError, status.HTTP_502_BAD_GATEWAY, "Recipe model error"),
    (ScrapingError, status.HTTP_502_BAD_GATEWAY, "Failed to fetch or parse recipe from URL"),
    (StorageError, status.HTTP_502_BAD_GATEWAY, "Storage error"),
    (TokenVerificationUnavailable, status.HTTP_502_BAD_GATEWAY, "Token verification unavailable"),
)


def _error_response(status_code: int, error: str, detail: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, "request_id": get_request_id()},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or a body that does not match the request schema."""
    logger.warning(
        f"Validation error: {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
    )
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", jsonable_encoder(exc.errors()))


@app.exception_handler(ChefChoiceException)
async def chef_choice_exception_handler(request: Request, exc: ChefChoiceException) -> JSONResponse:
    """Map domain exceptions to HTTP responses."""
    status_code, error_message = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
    for exc_type, code, message in _EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            status_code, error_message = code, message
            break

    if status_code >= 500:
        logger.error(f"Exception: {error_message}", extra={"exception": str(exc)}, exc_info=True)
    else:
        logger.info(f"Rejected request: {error_message}", extra={"exception": str(exc), "status_code": status_code})

    return _error_response(status_code, error_message, str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected exception on {request.url.path}: {str(exc)}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "An unexpected error occurred"
    )


# Add middleware (order matters!)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
setup_cors(app)

app.include_router(health.router)
app.include_router(recipes.router)
app.include_router(images.router)


@app.on_event("startup")
async def startup_event():
    logger.info("Chef Choice API starting up...")
    logger.info(f"Log level: {settings.log_level}")
    if not settings.api_secret_key:
        logger.warning("API_SECRET_KEY is not set; every protected endpoint will return 401")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Chef Choice API shutting down...")


@app.get("/")
async def root():
    """Basic health check used by the mobile app."""
    return {
        "status": "OK",
        "message": "Chef Choice Recipe Parser API",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
