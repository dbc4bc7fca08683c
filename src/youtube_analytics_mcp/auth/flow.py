# ABOUTME: Interactive OAuth consent flow used when no usable token exists
# ABOUTME: Runs the installed-app flow with a local redirect listener and browser

import logging
from pathlib import Path
from typing import Protocol, Sequence

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)


class InteractiveFlow(Protocol):
    """Obtains fresh user credentials for the given client config and scopes."""

    def run(self, client_secrets_path: Path, scopes: Sequence[str]) -> Credentials:
        ...


class LocalServerFlow:
    """Browser-based consent with a temporary localhost redirect listener."""

    def __init__(self, port: int = 0, open_browser: bool = True):
        """Initialize local server flow.

        Args:
            port: Port for the redirect listener (0 picks a free port)
            open_browser: Whether to launch the system browser automatically
        """
        self.port = port
        self.open_browser = open_browser

    def run(self, client_secrets_path: Path, scopes: Sequence[str]) -> Credentials:
        flow = InstalledAppFlow.from_client_secrets_file(
            str(client_secrets_path), list(scopes)
        )
        logger.info("Opening browser for YouTube authorization...")
        # offline + consent so Google always returns a refresh token
        return flow.run_local_server(
            port=self.port,
            open_browser=self.open_browser,
            access_type="offline",
            prompt="consent",
        )
