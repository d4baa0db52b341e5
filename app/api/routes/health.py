"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.dependencies import get_settings
from app.config import Settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, str]:
    """Liveness check."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(app_settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Readiness check for Cloud Run.

    Reports which collaborators are configured; does not call them.
    """
    return {
        "status": "ready",
        "dependencies": {
            "api_key": bool(app_settings.api_secret_key),
            "gemini": bool(app_settings.gemini_api_key),
            "storage_bucket": bool(app_settings.firebase_storage_bucket),
        },
    }
