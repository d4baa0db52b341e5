"""Custom exception classes."""


class ChefChoiceException(Exception):
    """Base exception for the Chef Choice gateway."""

    pass


class AuthenticationError(ChefChoiceException):
    """Raised when the API key or an identity token is rejected."""

    pass


class ValidationError(ChefChoiceException):
    """Raised when input validation fails."""

    pass


class PayloadTooLargeError(ValidationError):
    """Raised when an uploaded payload exceeds the configured size."""

    pass


class NotFoundError(ChefChoiceException):
    """Raised when a storage object does not exist."""

    pass


class CompletionError(ChefChoiceException):
    """Raised when the completion (Gemini) API call fails."""

    pass


class ScrapingError(ChefChoiceException):
    """Raised when a recipe page cannot be fetched."""

    pass


class StorageError(ChefChoiceException):
    """Raised when a Cloud Storage call fails."""

    pass


class TokenVerificationUnavailable(ChefChoiceException):
    """Raised when identity tokens cannot be checked (e.g. certificate fetch failed)."""

    pass
