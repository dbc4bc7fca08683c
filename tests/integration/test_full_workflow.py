# ABOUTME: Integration tests for the full OAuth token lifecycle
# ABOUTME: Tests first sign-in, restart, refresh, and revocation against a real token file

import json
import stat
from unittest.mock import Mock, patch

import pytest
from google.oauth2.credentials import Credentials

from youtube_analytics_mcp.auth.errors import CredentialsNotFound
from youtube_analytics_mcp.auth.session import REVOKE_URI, AuthSessionManager, millis_to_expiry

from conftest import HOUR_MS, NOW, FakeFlow, build_credentials


@pytest.mark.integration
class TestTokenLifecycle:
    """Sign in once, survive a restart, refresh, then revoke."""

    def test_sign_in_restart_refresh_revoke(self, resolver, token_store):
        now = [NOW]
        revoke_request = Mock(return_value=Mock(status=200, data=b""))

        def make_manager(flow):
            return AuthSessionManager(
                resolver=resolver,
                token_store=token_store,
                flow=flow,
                request_factory=Mock(return_value=revoke_request),
                clock=lambda: now[0],
            )

        def refresh(credentials, request):
            credentials.token = "AT-refreshed"
            credentials.expiry = millis_to_expiry(round(now[0] * 1000) + HOUR_MS)

        # First run: no token on disk, so the consent flow runs once
        first_flow = FakeFlow(build_credentials(token="AT-new", refresh_token="RT-new"))
        first = make_manager(first_flow)
        assert first.is_authenticated() is False

        client = first.get_client()

        assert client.token == "AT-new"
        assert len(first_flow.calls) == 1
        assert stat.S_IMODE(token_store.path.stat().st_mode) == 0o600
        assert json.loads(token_store.path.read_text())["refresh_token"] == "RT-new"

        # Restart: the stored token is reused without another consent
        restart_flow = FakeFlow(error=AssertionError("consent flow should not run"))
        second = make_manager(restart_flow)

        assert second.is_authenticated() is True
        assert second.get_client().token == "AT-new"
        assert restart_flow.calls == []

        # Two hours later the access token has expired and is refreshed
        now[0] = NOW + 2 * 60 * 60
        with patch.object(Credentials, "refresh", autospec=True, side_effect=refresh) as mock_refresh:
            refreshed = second.get_client()

        mock_refresh.assert_called_once()
        assert refreshed.token == "AT-refreshed"
        stored = json.loads(token_store.path.read_text())
        assert stored["access_token"] == "AT-refreshed"
        assert stored["expiry_date"] == round(now[0] * 1000) + HOUR_MS
        assert stored["refresh_token"] == "RT-new"

        # Revocation posts the current token and forgets it everywhere
        second.revoke()

        revoke_request.assert_called_once()
        assert revoke_request.call_args.kwargs["url"] == REVOKE_URI
        assert revoke_request.call_args.kwargs["body"] == "token=AT-refreshed"
        assert not token_store.exists()
        assert second.cached_client is None
        assert second.is_authenticated() is False
        assert restart_flow.calls == []

    def test_missing_credentials_file_blocks_sign_in(self, missing_resolver, token_store):
        flow = FakeFlow(build_credentials())
        manager = AuthSessionManager(resolver=missing_resolver, token_store=token_store, flow=flow)

        with pytest.raises(CredentialsNotFound):
            manager.get_client()

        assert flow.calls == []
        assert not token_store.exists()
