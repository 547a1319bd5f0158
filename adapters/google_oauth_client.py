"""Google OAuth 2.0 refresh-token client."""
from __future__ import annotations

import logging
from typing import Optional

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from domain.models import AccessToken, ensure_utc
from ports.oauth_client import OAuthClient, OAuthInvalidCredentialsError, OAuthTransientError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class TimeoutRequest(Request):
    """google-auth transport that applies a fixed timeout to every call."""

    def __init__(self, timeout: float, session=None):
        super().__init__(session)
        self.timeout = timeout

    def __call__(self, url, method="GET", body=None, headers=None, timeout=None, **kwargs):
        return super().__call__(
            url,
            method=method,
            body=body,
            headers=headers,
            timeout=timeout or self.timeout,
            **kwargs,
        )


class GoogleOAuthClient(OAuthClient):
    """
    Redeems refresh tokens against Google's token endpoint.

    Only the refresh grant is supported; consent flows happen elsewhere.
    """

    def __init__(
        self,
        token_uri: str = GOOGLE_TOKEN_URI,
        timeout_seconds: float = 30,
        scopes: Optional[list[str]] = None,
    ):
        """
        Initialize Google OAuth client.

        Args:
            token_uri: OAuth token endpoint.
            timeout_seconds: Timeout for the token request.
            scopes: Scopes to request; None keeps the scopes of the original grant.
        """
        self.token_uri = token_uri
        self.timeout_seconds = timeout_seconds
        self.scopes = scopes

    def refresh(self, client_id: str, client_secret: str, refresh_token: str) -> AccessToken:
        credentials = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=self.token_uri,
            client_id=client_id,
            client_secret=client_secret,
            scopes=self.scopes,
        )

        try:
            credentials.refresh(TimeoutRequest(self.timeout_seconds))
        except RefreshError as e:
            if getattr(e, "retryable", False):
                logger.warning(f"Token endpoint temporarily unavailable: {e}")
                raise OAuthTransientError(str(e)) from e
            logger.error(f"Token refresh rejected: {e}")
            raise OAuthInvalidCredentialsError(str(e)) from e
        except TransportError as e:
            logger.warning(f"Token refresh transport error: {e}")
            raise OAuthTransientError(f"Transport error: {e}") from e

        if not credentials.token:
            raise OAuthTransientError("Token endpoint returned no access token")

        logger.debug(f"Access token refreshed, expires at {credentials.expiry}")
        return AccessToken(token=credentials.token, expires_at=ensure_utc(credentials.expiry))
