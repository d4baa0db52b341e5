"""Firebase ID token verification."""

import logging
from typing import Any, Optional

from firebase_admin import auth

from app.utils.exceptions import AuthenticationError, TokenVerificationUnavailable

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Resolves a Firebase ID token to the user's uid."""

    def __init__(self, app: Optional[Any] = None, check_revoked: bool = False) -> None:
        self._app = app
        self._check_revoked = check_revoked

    def verify(self, token: str) -> str:
        """
        Raises:
            AuthenticationError: If the token is malformed, invalid, expired or revoked
            TokenVerificationUnavailable: If Google's signing certificates cannot be fetched
        """
        try:
            decoded = auth.verify_id_token(token, app=self._app, check_revoked=self._check_revoked)
        except auth.CertificateFetchError as e:
            logger.error(f"Token certificate fetch failed: {str(e)}")
            raise TokenVerificationUnavailable(f"Token verification unavailable: {str(e)}") from e
        except auth.ExpiredIdTokenError as e:
            raise AuthenticationError("Auth token expired") from e
        except (auth.InvalidIdTokenError, ValueError) as e:
            logger.warning(f"Rejected auth token: {str(e)}")
            raise AuthenticationError("Invalid auth token") from e

        return decoded["uid"]
