"""Interface for OAuth refresh-token redemption."""
from abc import ABC, abstractmethod

from domain.models import AccessToken


class OAuthClient(ABC):
    """
    Redeems long-lived refresh tokens for short-lived access tokens.

    Implementation examples: Google OAuth 2.0 token endpoint.
    """

    @abstractmethod
    def refresh(self, client_id: str, client_secret: str, refresh_token: str) -> AccessToken:
        """
        Exchange a refresh token for an access token.

        Args:
            client_id: OAuth client id of the account.
            client_secret: OAuth client secret of the account.
            refresh_token: Long-lived refresh token.

        Returns:
            AccessToken with its expiry.

        Raises:
            OAuthTransientError: Network failure, timeout or provider 5xx.
            OAuthInvalidCredentialsError: Provider rejected client or token.
        """
        pass


class OAuthClientError(Exception):
    """Base exception for OAuth client errors."""
    pass


class OAuthTransientError(OAuthClientError):
    """
    Temporary failure that may succeed on a later run.

    Examples: connection reset, timeout, token endpoint 5xx.
    """
    pass


class OAuthInvalidCredentialsError(OAuthClientError):
    """
    Permanent rejection of the stored credentials.

    Examples: invalid_client, invalid_grant, revoked refresh token.
    """
    pass
