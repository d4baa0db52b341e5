"""Input validation utilities."""

import base64
import binascii
import ipaddress
import re
from urllib.parse import urlparse

from app.utils.exceptions import PayloadTooLargeError, ValidationError

_DATA_URL_PREFIX = re.compile(r"^data:[\w/+.-]+;base64,", re.IGNORECASE)


def validate_url(url: str) -> str:
    """
    Validate and sanitize URL to prevent SSRF attacks.

    Args:
        url: URL to validate

    Returns:
        Validated URL string

    Raises:
        ValidationError: If URL is invalid or potentially dangerous
    """
    if not url or not isinstance(url, str):
        raise ValidationError("Invalid request: url is required")

    url = url.strip()

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {str(e)}") from e

    if parsed.scheme not in ("http", "https"):
        raise ValidationError("Invalid URL format: URL must use http or https protocol")

    hostname = parsed.hostname
    if not hostname:
        raise ValidationError("Invalid URL format: URL must have a valid hostname")

    blocked_hosts = {
        "localhost",
        "127.0.0.1",
        "0.0.0.0",
        "::1",
    }

    if hostname.lower() in blocked_hosts:
        raise ValidationError("URL cannot point to localhost or private IPs")

    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        address = None
    if address is not None and (address.is_private or address.is_loopback or address.is_link_local):
        raise ValidationError("URL cannot point to private IP ranges")

    return url


def validate_recipe_text(text: str, max_length: int) -> str:
    """
    Validate text submitted for recipe parsing.

    Raises:
        ValidationError: If text is missing, blank or longer than ``max_length``
    """
    if not text or not isinstance(text, str) or not text.strip():
        raise ValidationError("Invalid request: text is required")

    if len(text) > max_length:
        raise ValidationError(f"Text too long. Maximum {max_length} characters allowed.")

    return text


def validate_path_segment(value: str, field: str) -> str:
    """Reject values that would escape their slot in a storage path."""
    if not value or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing required field: {field}")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise ValidationError(f"Invalid {field}: must not contain path separators")
    return value


def validate_storage_path(path: str) -> str:
    """Validate an object path received from a client."""
    if not path or not isinstance(path, str) or not path.strip():
        raise ValidationError("Missing storagePath or authToken")
    if path.startswith("/") or ".." in path.split("/"):
        raise ValidationError("Invalid storagePath")
    return path


def decode_base64_image(image_data: str, max_bytes: int) -> bytes:
    """
    Decode a base64 image payload, with or without a ``data:`` URL prefix.

    Raises:
        ValidationError: If the payload is not valid base64 or decodes to nothing
        PayloadTooLargeError: If the decoded image exceeds ``max_bytes``
    """
    payload = _DATA_URL_PREFIX.sub("", image_data.strip())
    payload = "".join(payload.split())

    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid imageData: not valid base64 ({str(e)})") from e

    if not decoded:
        raise ValidationError("Invalid imageData: image is empty")

    if len(decoded) > max_bytes:
        raise PayloadTooLargeError(f"Image too large. Maximum {max_bytes} bytes allowed.")

    return decoded
