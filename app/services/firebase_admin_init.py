"""Firebase Admin SDK initialization."""

import logging
import os
from typing import Any, Dict

import firebase_admin
from firebase_admin import credentials

from app.config import Settings

logger = logging.getLogger(__name__)


def init_firebase(settings: Settings) -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options: Dict[str, Any] = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket

    # Service account key file when provided, application default credentials otherwise.
    cred_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    cred = credentials.Certificate(cred_path) if cred_path else None

    try:
        app = firebase_admin.initialize_app(cred, options or None)
    except Exception as e:
        logger.error(f"Firebase Admin SDK init failed: {e}")
        raise

    logger.info(
        "Firebase Admin SDK initialized",
        extra={"project_id": settings.firebase_project_id, "bucket": settings.firebase_storage_bucket},
    )
    return app
