# ABOUTME: Tests for the interactive OAuth consent flow
# ABOUTME: Validates the installed-app flow is configured for offline access

from pathlib import Path
from unittest.mock import Mock, patch

from youtube_analytics_mcp.auth.flow import LocalServerFlow


def test_local_server_flow_runs_installed_app_flow():
    """Flow should request offline access so a refresh token is issued."""
    mock_creds = Mock()
    mock_flow = Mock()
    mock_flow.run_local_server.return_value = mock_creds
    scopes = ["https://www.googleapis.com/auth/youtube.readonly"]

    with patch(
        'youtube_analytics_mcp.auth.flow.InstalledAppFlow.from_client_secrets_file',
        return_value=mock_flow,
    ) as from_file:
        result = LocalServerFlow().run(Path("/tmp/credentials.json"), scopes)

    from_file.assert_called_once_with("/tmp/credentials.json", scopes)
    mock_flow.run_local_server.assert_called_once_with(
        port=0,
        open_browser=True,
        access_type="offline",
        prompt="consent",
    )
    assert result is mock_creds


def test_local_server_flow_custom_port():
    mock_flow = Mock()

    with patch(
        'youtube_analytics_mcp.auth.flow.InstalledAppFlow.from_client_secrets_file',
        return_value=mock_flow,
    ):
        LocalServerFlow(port=8765, open_browser=False).run(Path("creds.json"), ("a", "b"))

    kwargs = mock_flow.run_local_server.call_args.kwargs
    assert kwargs["port"] == 8765
    assert kwargs["open_browser"] is False
