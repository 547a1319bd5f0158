"""Access token resolution with a per-run cache."""
from __future__ import annotations

import logging
from typing import Dict, Optional

from domain.errors import AuthRefreshError, ConfigurationError, MissingCredentialsError
from domain.models import AccessToken, YoutubeAccount
from ports.account_store import AccountStore
from ports.oauth_client import OAuthClient, OAuthInvalidCredentialsError, OAuthTransientError

logger = logging.getLogger(__name__)

# Scoped to one autopilot invocation; created by the caller, never global.
TokenCache = Dict[int, AccessToken]


class CredentialResolver:
    """
    Turns an account id into a usable access token.

    Tokens live roughly an hour, so one refresh per account per run is
    enough; the cache passed in by the caller holds them for that run.
    """

    def __init__(self, account_store: AccountStore, oauth_client: OAuthClient):
        self.account_store = account_store
        self.oauth_client = oauth_client

    def resolve(self, account_id: Optional[int], cache: TokenCache) -> AccessToken:
        """
        Resolve an access token for an account.

        Args:
            account_id: Account referenced by the task (may be None).
            cache: Run-scoped token cache, keyed by account id.

        Returns:
            A valid access token.

        Raises:
            MissingCredentialsError: No account id, unknown account, or no refresh token.
            ConfigurationError: Provider rejected client id/secret/refresh token.
            AuthRefreshError: Transient failure while refreshing.
        """
        if account_id is None:
            raise MissingCredentialsError("Missing credentials: no YouTube account assigned")

        cached = cache.get(account_id)
        if cached is not None and not cached.expires_soon():
            logger.debug(f"Account {account_id}: using cached access token")
            return cached

        account = self.account_store.get(account_id)
        if account is None:
            raise MissingCredentialsError(
                f"Missing credentials: YouTube account {account_id} not found"
            )

        token = self._refresh(account)
        cache[account_id] = token
        return token

    def verify(self, account: YoutubeAccount) -> AccessToken:
        """
        Redeem an account's refresh token once, without caching.

        Used to check credentials right after they are registered.
        """
        return self._refresh(account)

    def _refresh(self, account: YoutubeAccount) -> AccessToken:
        if not account.refresh_token:
            raise MissingCredentialsError(
                f"Missing credentials: account '{account.label}' has no refresh token"
            )

        logger.info(f"Refreshing access token for account {account.id} ({account.label})")
        try:
            return self.oauth_client.refresh(
                account.client_id,
                account.client_secret,
                account.refresh_token,
            )
        except OAuthInvalidCredentialsError as e:
            logger.error(f"Account {account.id}: OAuth credentials rejected: {e}")
            raise ConfigurationError(
                f"OAuth credentials rejected for account '{account.label}': {e}"
            ) from e
        except OAuthTransientError as e:
            logger.warning(f"Account {account.id}: token refresh failed (retryable): {e}")
            raise AuthRefreshError(
                f"Token refresh failed for account '{account.label}': {e}"
            ) from e
