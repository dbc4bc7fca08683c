# ABOUTME: Shared fixtures for auth, service, and server tests
# ABOUTME: Provides temp credential/token files, a fake consent flow, and a fixed clock

import json
from unittest.mock import Mock, patch

import pytest
from google.oauth2.credentials import Credentials

from youtube_analytics_mcp.auth.credentials import CredentialResolver
from youtube_analytics_mcp.auth.session import AuthSessionManager, millis_to_expiry
from youtube_analytics_mcp.auth.token_store import PersistedToken, TokenStore

NOW = 1_700_000_000.0
NOW_MS = 1_700_000_000_000
HOUR_MS = 60 * 60 * 1000

CLIENT_ID = "client-123.apps.googleusercontent.com"
CLIENT_SECRET = "secret-456"


class FakeFlow:
    """Stands in for the browser consent flow."""

    def __init__(self, credentials=None, error=None):
        self.credentials = credentials
        self.error = error
        self.calls = []

    def run(self, client_secrets_path, scopes):
        self.calls.append((client_secrets_path, list(scopes)))
        if self.error:
            raise self.error
        return self.credentials


def build_credentials(token="AT1", refresh_token="RT1", expiry_ms=NOW_MS + HOUR_MS):
    return Credentials(
        token=token,
        refresh_token=refresh_token,
        token_uri="https://oauth2.googleapis.com/token",
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        expiry=millis_to_expiry(expiry_ms),
    )


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real home directory and env overrides."""
    monkeypatch.delenv("YOUTUBE_CREDENTIALS_PATH", raising=False)
    monkeypatch.delenv("YOUTUBE_TOKEN_PATH", raising=False)
    monkeypatch.delenv("YOUTUBE_CHANNEL_ID", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def client_secrets(tmp_path):
    """Installed-app OAuth client credentials file."""
    path = tmp_path / "override" / "credentials.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({
        "installed": {
            "client_id": CLIENT_ID,
            "client_secret": CLIENT_SECRET,
            "project_id": "yt-analytics",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }))
    return path


@pytest.fixture
def resolver(tmp_path, client_secrets):
    return CredentialResolver(
        override_path=client_secrets,
        user_path=tmp_path / "user" / "credentials.json",
        bundled_path=tmp_path / "bundled" / "credentials.json",
    )


@pytest.fixture
def missing_resolver(tmp_path):
    return CredentialResolver(
        override_path=tmp_path / "nowhere" / "credentials.json",
        user_path=tmp_path / "user" / "credentials.json",
        bundled_path=tmp_path / "bundled" / "credentials.json",
    )


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(tmp_path / "auth" / "token.json")


@pytest.fixture
def store_token(token_store):
    """Write a token record to the store; keyword overrides replace fields."""
    def _store(**overrides):
        fields = {
            "client_id": CLIENT_ID,
            "client_secret": CLIENT_SECRET,
            "refresh_token": "RT1",
            "access_token": "AT1",
            "expiry_date": NOW_MS + HOUR_MS,
        }
        fields.update(overrides)
        token = PersistedToken(**fields)
        token_store.ensure_directory()
        token_store.path.write_text(json.dumps(token.to_dict()))
        return token
    return _store


@pytest.fixture
def fake_flow():
    return FakeFlow(build_credentials(token="AT-new", refresh_token="RT-new"))


@pytest.fixture
def revoke_request():
    return Mock(return_value=Mock(status=200, data=b""))


@pytest.fixture
def manager(resolver, token_store, fake_flow, revoke_request):
    return AuthSessionManager(
        resolver=resolver,
        token_store=token_store,
        flow=fake_flow,
        request_factory=Mock(return_value=revoke_request),
        clock=lambda: NOW,
    )


@pytest.fixture
def refresh():
    """Patch the Google token refresh; it issues AT2 valid for one hour."""
    def _refresh(credentials, request):
        credentials.token = "AT2"
        credentials.expiry = millis_to_expiry(NOW_MS + HOUR_MS)

    with patch.object(Credentials, "refresh", autospec=True, side_effect=_refresh) as mock_refresh:
        yield mock_refresh
