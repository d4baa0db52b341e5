"""Pytest configuration and fixtures."""

import os

# Must be set before app.config is imported
os.environ["API_SECRET_KEY"] = "test-api-key-123"
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["FIREBASE_STORAGE_BUCKET"] = "test-bucket.appspot.com"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import (
    get_recipe_parser,
    get_settings,
    get_storage_service,
    get_token_verifier,
)
from app.config import settings
from app.main import app
from app.services.recipe_parser import RecipeParser
from app.services.storage_service import ObjectMetadata
from app.utils.exceptions import AuthenticationError, NotFoundError

API_KEY = "test-api-key-123"
VALID_TOKEN = "valid-firebase-token"
TOKEN_USER_ID = "firebase-user-1"


class FakeCompletionService:
    """Returns a canned completion and records every call."""

    def __init__(self, reply="{}"):
        self.reply = reply
        self.calls: List[Tuple[list, float]] = []

    async def complete(self, messages, temperature):
        self.calls.append((list(messages), temperature))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class FakePageFetcher:
    def __init__(self, text="Pancakes. 2 eggs, 1 cup flour. Mix and fry."):
        self.text = text
        self.urls: List[str] = []

    async def fetch_text(self, url):
        self.urls.append(url)
        if isinstance(self.text, Exception):
            raise self.text
        return self.text


class FakeStorage:
    """In-memory stand-in for the Firebase bucket wrapper."""

    bucket_name = "test-bucket.appspot.com"

    def __init__(self):
        self.objects: Dict[str, Tuple[bytes, str, Dict[str, str]]] = {}
        self.public: List[str] = []

    def upload(self, path, data, content_type, owner_id):
        self.objects[path] = (data, content_type, {"uploadedBy": owner_id})

    def exists(self, path):
        return path in self.objects

    def get_metadata(self, path):
        if path not in self.objects:
            raise NotFoundError("Image not found")
        data, content_type, _ = self.objects[path]
        return ObjectMetadata(content_type=content_type, size=len(data))

    def open_stream(self, path, chunk_size=256 * 1024):
        data = self.objects[path][0]
        for i in range(0, len(data), chunk_size):
            yield data[i : i + chunk_size]

    def public_url(self, path):
        self.public.append(path)
        return f"https://storage.googleapis.com/{self.bucket_name}/{path}"


class FakeTokenVerifier:
    def __init__(self):
        self.tokens: List[str] = []

    def verify(self, token):
        self.tokens.append(token)
        if token != VALID_TOKEN:
            raise AuthenticationError("Invalid auth token")
        return TOKEN_USER_ID


@pytest.fixture
def completion():
    return FakeCompletionService()


@pytest.fixture
def page_fetcher():
    return FakePageFetcher()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def token_verifier():
    return FakeTokenVerifier()


@pytest.fixture
def override_settings():
    """Swap settings for one test: ``override_settings(max_upload_bytes=10)``."""

    def _override(**changes):
        patched = settings.model_copy(update=changes)
        app.dependency_overrides[get_settings] = lambda: patched
        return patched

    return _override


@pytest.fixture
def client(completion, page_fetcher, storage, token_verifier):
    """Create test client with fake collaborators."""
    parser = RecipeParser(settings, completion, page_fetcher)
    app.dependency_overrides[get_recipe_parser] = lambda: parser
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_token_verifier] = lambda: token_verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-API-Key": API_KEY}


@pytest.fixture
def recipe_completion() -> str:
    """A well-formed completion wrapped in the kind of prose models add."""
    return (
        "Sure! Here is the recipe:\n"
        '{"title": "Pancakes", "ingredientsByProcessingStep": [{"name": "Batter", "items": '
        '[{"quantity": "2", "name": "eggs"}, {"quantity": "1 cup", "name": "flour"}]}], '
        '"steps": "Mix and fry.", "tags": ["breakfast"]}\n'
        "Enjoy your meal!"
    )
