"""Tests for service modules."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from firebase_admin import auth
from google.api_core import exceptions as google_exceptions
from starlette.requests import Request

from app.config import settings
from app.core.request_id import RequestIdFilter, request_id_var
from app.middleware.auth import api_key_matches
from app.middleware.logging import mask_sensitive_data
from app.middleware.rate_limit import get_api_key_for_rate_limit
from app.services.completion_service import ChatMessage, CompletionService
from app.services.page_fetcher import USER_AGENT, PageFetcher, html_to_text
from app.services.recipe_parser import SourceMode, build_messages
from app.services.storage_service import StorageService, build_upload_path
from app.services.token_verifier import TokenVerifier
from app.utils.exceptions import (
    AuthenticationError,
    CompletionError,
    NotFoundError,
    PayloadTooLargeError,
    ScrapingError,
    StorageError,
    ValidationError,
)
from app.utils.logging_config import CloudRunJSONFormatter
from app.utils.validators import (
    decode_base64_image,
    validate_recipe_text,
    validate_storage_path,
    validate_url,
)


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def test_validate_url_valid():
    """Test URL validation with valid URLs."""
    assert validate_url("https://example.com/recipe") == "https://example.com/recipe"
    assert validate_url("  http://example.com/recipe ") == "http://example.com/recipe"
    assert validate_url("https://10.example.com/recipe") == "https://10.example.com/recipe"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "ftp://example.com",
        "example.com/recipe",
        "http://localhost/recipe",
        "http://127.0.0.1:3001/",
        "http://10.0.0.5/",
        "http://192.168.1.1/",
        "http://172.20.0.1/",
        "http://169.254.169.254/latest/meta-data",
    ],
)
def test_validate_url_rejects(url):
    with pytest.raises(ValidationError):
        validate_url(url)


def test_validate_recipe_text():
    assert validate_recipe_text("2 eggs", 10) == "2 eggs"
    with pytest.raises(ValidationError):
        validate_recipe_text("   ", 10)
    with pytest.raises(ValidationError):
        validate_recipe_text("x" * 11, 10)


def test_validate_storage_path():
    assert validate_storage_path("recipes/u/a.png") == "recipes/u/a.png"
    for path in ("", "/etc/passwd", "recipes/../x"):
        with pytest.raises(ValidationError):
            validate_storage_path(path)


def test_decode_base64_image():
    assert decode_base64_image("aGVsbG8=", 100) == b"hello"
    assert decode_base64_image("data:image/jpeg;base64,aGVs\nbG8=", 100) == b"hello"
    with pytest.raises(PayloadTooLargeError):
        decode_base64_image("aGVsbG8=", 3)
    with pytest.raises(ValidationError):
        decode_base64_image("", 100)


def test_api_key_matches():
    assert api_key_matches("secret", "secret")
    assert not api_key_matches("Secret", "secret")
    assert not api_key_matches(None, "secret")
    assert not api_key_matches("", "")


# ---------------------------------------------------------------------------
# Page fetching
# ---------------------------------------------------------------------------

def test_html_to_text_strips_markup():
    html = """
    <html><head><style>body { color: red; }</style><script>var x = "{}";</script></head>
    <body><h1>Lemon   Cake</h1>
    <ul><li>2 lemons</li><li>200 g sugar</li></ul><noscript>enable js</noscript></body></html>
    """
    assert html_to_text(html, 1000) == "Lemon Cake 2 lemons 200 g sugar"


def test_html_to_text_truncates():
    assert html_to_text("<p>" + "a" * 50 + "</p>", 10) == "a" * 10


def test_page_fetcher_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers["user-agent"]
        return httpx.Response(200, html="<html><body><p>Stir well.</p></body></html>")

    fetcher = PageFetcher(settings, transport=httpx.MockTransport(handler))

    assert asyncio.run(fetcher.fetch_text("https://example.com/r")) == "Stir well."
    assert seen["user_agent"] == USER_AGENT


def test_page_fetcher_http_error():
    fetcher = PageFetcher(settings, transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    with pytest.raises(ScrapingError, match="HTTP 404: Not Found"):
        asyncio.run(fetcher.fetch_text("https://example.com/missing"))


def test_page_fetcher_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    fetcher = PageFetcher(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(ScrapingError, match="connection refused"):
        asyncio.run(fetcher.fetch_text("https://example.com/r"))


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

def test_build_messages_per_mode():
    for mode in SourceMode:
        system, user = build_messages("RECIPE TEXT", mode)
        assert system.role == "system"
        assert "ingredientsByProcessingStep" in system.content
        assert user.role == "user"
        assert user.content.endswith("RECIPE TEXT")


def test_completion_service_maps_roles():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text='{"title": "Soup"}')
    service = CompletionService(settings, client=client)

    text = asyncio.run(
        service.complete(
            [
                ChatMessage("system", "Be a recipe extractor."),
                ChatMessage("user", "Soup"),
                ChatMessage("assistant", "{}"),
                ChatMessage("user", "Again"),
            ],
            temperature=0.3,
        )
    )

    assert text == '{"title": "Soup"}'
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == settings.gemini_model
    assert [c.role for c in kwargs["contents"]] == ["user", "model", "user"]
    assert kwargs["contents"][0].parts[0].text == "Soup"
    assert kwargs["config"].system_instruction == "Be a recipe extractor."
    assert kwargs["config"].temperature == 0.3


def test_completion_service_empty_response():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text="", candidates=[])
    service = CompletionService(settings, client=client)

    with pytest.raises(CompletionError, match="empty response"):
        asyncio.run(service.complete([ChatMessage("user", "Soup")], temperature=0.3))


def test_completion_service_api_error():
    client = MagicMock()
    client.models.generate_content.side_effect = RuntimeError("quota exceeded")
    service = CompletionService(settings, client=client)

    with pytest.raises(CompletionError, match="quota exceeded"):
        asyncio.run(service.complete([ChatMessage("user", "Soup")], temperature=0.3))


def test_completion_service_requires_user_message():
    service = CompletionService(settings, client=MagicMock())

    with pytest.raises(CompletionError):
        asyncio.run(service.complete([ChatMessage("system", "Only rules")], temperature=0.3))


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def test_build_upload_path():
    now = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert build_upload_path("u1", "a.jpg", now=now) == f"recipes/u1/{int(now.timestamp() * 1000)}_a.jpg"
    assert build_upload_path("u1", "a.jpg", recipe_id="r7", now=now) == "recipes/u1/r7_a.jpg"


def make_storage():
    bucket = MagicMock()
    bucket.name = "test-bucket"
    blob = bucket.blob.return_value
    return StorageService(bucket), bucket, blob


def test_storage_upload_sets_owner_metadata():
    service, bucket, blob = make_storage()

    service.upload("recipes/u1/a.jpg", b"data", "image/jpeg", "u1")

    bucket.blob.assert_called_with("recipes/u1/a.jpg")
    assert blob.metadata["uploadedBy"] == "u1"
    assert "uploadedAt" in blob.metadata
    blob.upload_from_string.assert_called_once_with(b"data", content_type="image/jpeg")


def test_storage_metadata():
    service, bucket, _ = make_storage()
    bucket.get_blob.return_value = SimpleNamespace(content_type=None, size=12)

    metadata = service.get_metadata("recipes/u1/a.jpg")

    assert metadata.content_type == "image/jpeg"
    assert metadata.size == 12


def test_storage_metadata_missing():
    service, bucket, _ = make_storage()
    bucket.get_blob.return_value = None

    with pytest.raises(NotFoundError):
        service.get_metadata("recipes/u1/missing.jpg")


def test_storage_open_stream_yields_chunks():
    service, _, blob = make_storage()
    reader = MagicMock()
    reader.read.side_effect = [b"ab", b"cd", b""]
    blob.open.return_value.__enter__.return_value = reader

    assert list(service.open_stream("recipes/u1/a.jpg", chunk_size=2)) == [b"ab", b"cd"]
    blob.open.assert_called_once_with("rb", chunk_size=2)


def test_storage_public_url_makes_object_public():
    service, _, blob = make_storage()
    blob.public_url = "https://storage.googleapis.com/test-bucket/recipes/u1/a.jpg"

    assert service.public_url("recipes/u1/a.jpg") == blob.public_url
    blob.make_public.assert_called_once()


def test_storage_api_errors_are_wrapped():
    service, _, blob = make_storage()
    blob.exists.side_effect = google_exceptions.InternalServerError("backend down")

    with pytest.raises(StorageError, match="backend down"):
        service.exists("recipes/u1/a.jpg")


def test_storage_missing_bucket_is_a_storage_error():
    service, _, blob = make_storage()
    blob.upload_from_string.side_effect = google_exceptions.NotFound("bucket test-bucket does not exist")
    blob.make_public.side_effect = google_exceptions.NotFound("bucket test-bucket does not exist")

    with pytest.raises(StorageError, match="does not exist"):
        service.upload("recipes/u1/a.jpg", b"x", "image/jpeg", "u1")
    with pytest.raises(StorageError):
        service.public_url("recipes/u1/a.jpg")


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def test_token_verifier_returns_uid(monkeypatch):
    monkeypatch.setattr(auth, "verify_id_token", lambda token, app=None, check_revoked=False: {"uid": "u1"})
    assert TokenVerifier().verify("token") == "u1"


@pytest.mark.parametrize("error", [auth.InvalidIdTokenError("bad signature"), ValueError("malformed")])
def test_token_verifier_rejects(monkeypatch, error):
    def verify(token, app=None, check_revoked=False):
        raise error

    monkeypatch.setattr(auth, "verify_id_token", verify)

    with pytest.raises(AuthenticationError):
        TokenVerifier().verify("token")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def test_mask_sensitive_data():
    masked = mask_sensitive_data(
        {"authToken": "eyJhbGciOiJSUzI1NiJ9.payload", "x-api-key": "short", "nested": [{"imageData": "QUJD"}], "q": "soup"}
    )
    assert masked == {
        "authToken": "eyJhbGci...",
        "x-api-key": "***",
        "nested": [{"imageData": "***"}],
        "q": "soup",
    }


def test_json_formatter_includes_request_id_and_extra():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.route = "/parse-recipe"

    token = request_id_var.set("req-123")
    try:
        RequestIdFilter().filter(record)
    finally:
        request_id_var.reset(token)

    data = json.loads(CloudRunJSONFormatter().format(record))
    assert data["message"] == "hello world"
    assert data["severity"] == "INFO"
    assert data["request_id"] == "req-123"
    assert data["route"] == "/parse-recipe"


def test_rate_limit_key_prefers_api_key():
    def request(headers):
        return Request({"type": "http", "headers": headers, "client": ("203.0.113.7", 5000)})

    assert get_api_key_for_rate_limit(request([(b"x-api-key", b"key-1")])) == "key-1"
    assert get_api_key_for_rate_limit(request([])) == "203.0.113.7"
