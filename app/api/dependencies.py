"""Shared API dependencies.

Collaborators are built once per process and handed to routes through
``Depends``; tests swap them with ``app.dependency_overrides``.
"""

from functools import lru_cache

from firebase_admin import storage

from app.config import Settings, settings
from app.services.completion_service import CompletionService
from app.services.firebase_admin_init import init_firebase
from app.services.page_fetcher import PageFetcher
from app.services.recipe_parser import RecipeParser
from app.services.storage_service import StorageService
from app.services.token_verifier import TokenVerifier
from app.utils.exceptions import StorageError


def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=1)
def get_completion_service() -> CompletionService:
    return CompletionService(settings)


@lru_cache(maxsize=1)
def get_page_fetcher() -> PageFetcher:
    return PageFetcher(settings)


@lru_cache(maxsize=1)
def get_recipe_parser() -> RecipeParser:
    """Get recipe parser service instance."""
    return RecipeParser(settings, get_completion_service(), get_page_fetcher())


@lru_cache(maxsize=1)
def get_storage_service() -> StorageService:
    """Get storage service bound to the configured Firebase bucket."""
    try:
        bucket = storage.bucket(app=init_firebase(settings))
    except ValueError as e:
        # No bucket configured (FIREBASE_STORAGE_BUCKET unset)
        raise StorageError(f"Storage bucket unavailable: {str(e)}") from e
    return StorageService(bucket, make_public=settings.make_uploads_public)


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    return TokenVerifier(app=init_firebase(settings))
