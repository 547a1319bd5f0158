"""Unit tests for GoogleOAuthClient."""
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from google.auth.exceptions import RefreshError, TransportError

from adapters.google_oauth_client import GoogleOAuthClient, TimeoutRequest
from ports.oauth_client import OAuthInvalidCredentialsError, OAuthTransientError


@pytest.fixture
def mock_credentials_cls():
    with patch("adapters.google_oauth_client.Credentials") as credentials_cls:
        yield credentials_cls


@pytest.mark.unit
class TestRefresh:

    def test_returns_access_token(self, mock_credentials_cls):
        credentials = mock_credentials_cls.return_value
        credentials.token = "ya29.token"
        credentials.expiry = datetime(2024, 5, 1, 13, 0)

        token = GoogleOAuthClient(token_uri="https://oauth.example.com/token", timeout_seconds=7).refresh(
            "client-id", "client-secret", "1//refresh"
        )

        assert token.token == "ya29.token"
        assert token.expires_at == datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)
        mock_credentials_cls.assert_called_once_with(
            token=None,
            refresh_token="1//refresh",
            token_uri="https://oauth.example.com/token",
            client_id="client-id",
            client_secret="client-secret",
            scopes=None,
        )
        request = credentials.refresh.call_args.args[0]
        assert isinstance(request, TimeoutRequest)
        assert request.timeout == 7

    def test_rejected_grant(self, mock_credentials_cls):
        mock_credentials_cls.return_value.refresh.side_effect = RefreshError("invalid_grant: Token has been revoked")

        with pytest.raises(OAuthInvalidCredentialsError):
            GoogleOAuthClient().refresh("id", "secret", "token")

    def test_retryable_refresh_error(self, mock_credentials_cls):
        mock_credentials_cls.return_value.refresh.side_effect = RefreshError("internal_failure", retryable=True)

        with pytest.raises(OAuthTransientError):
            GoogleOAuthClient().refresh("id", "secret", "token")

    def test_transport_error(self, mock_credentials_cls):
        mock_credentials_cls.return_value.refresh.side_effect = TransportError("connection reset")

        with pytest.raises(OAuthTransientError):
            GoogleOAuthClient().refresh("id", "secret", "token")

    def test_empty_token(self, mock_credentials_cls):
        mock_credentials_cls.return_value.token = None

        with pytest.raises(OAuthTransientError):
            GoogleOAuthClient().refresh("id", "secret", "token")


@pytest.mark.unit
def test_timeout_request_applies_timeout():
    session = Mock()
    request = TimeoutRequest(timeout=12, session=session)

    request("https://oauth.example.com/token", method="POST", body=b"x", headers={})

    assert session.request.call_args.kwargs["timeout"] == 12
