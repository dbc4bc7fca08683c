# ABOUTME: Locates and parses the OAuth client credentials file for Google APIs
# ABOUTME: Checks the env override, the per-user config dir, then the bundled file

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from youtube_analytics_mcp import config
from youtube_analytics_mcp.auth.errors import AuthenticationError, CredentialsNotFound

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class OAuthClientConfig:
    """OAuth client identity from a Google Cloud Console credentials file."""

    client_id: str
    client_secret: str
    redirect_uris: Tuple[str, ...] = field(default_factory=tuple)
    auth_uri: Optional[str] = None
    token_uri: str = DEFAULT_TOKEN_URI
    project_id: Optional[str] = None

    @property
    def redirect_uri(self) -> Optional[str]:
        return self.redirect_uris[0] if self.redirect_uris else None

    @classmethod
    def from_dict(cls, data: dict) -> "OAuthClientConfig":
        """Build from the parsed JSON of a credentials file.

        Accepts both the "web" and "installed" client types.

        Raises:
            AuthenticationError: If neither key is present or the client
                identity is incomplete
        """
        section = None
        if isinstance(data, dict):
            section = data.get("web") or data.get("installed")
        if not isinstance(section, dict):
            raise AuthenticationError(
                'Invalid credentials.json: must contain a "web" or "installed" key'
            )

        client_id = section.get("client_id")
        client_secret = section.get("client_secret")
        if not client_id or not client_secret:
            raise AuthenticationError(
                "Invalid credentials.json: client_id and client_secret are required"
            )

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uris=tuple(section.get("redirect_uris") or ()),
            auth_uri=section.get("auth_uri"),
            token_uri=section.get("token_uri") or DEFAULT_TOKEN_URI,
            project_id=section.get("project_id"),
        )


class CredentialResolver:
    """Finds the first existing OAuth client credentials file."""

    def __init__(
        self,
        override_path: Optional[Path] = None,
        user_path: Optional[Path] = None,
        bundled_path: Optional[Path] = None,
    ):
        """Initialize resolver.

        Args:
            override_path: Explicit path (defaults to YOUTUBE_CREDENTIALS_PATH)
            user_path: Per-user credentials file (defaults to ~/.youtube-analytics-mcp/)
            bundled_path: Fallback shipped with the package
        """
        self.override_path = override_path if override_path is not None else config.credentials_override()
        self.user_path = user_path or config.user_credentials_path()
        self.bundled_path = bundled_path or config.BUNDLED_CREDENTIALS_PATH

    def candidates(self) -> List[Path]:
        """Candidate paths in lookup order."""
        paths = []
        if self.override_path:
            paths.append(self.override_path)
        paths.append(self.user_path)
        paths.append(self.bundled_path)
        return paths

    def resolve(self) -> Path:
        """Return the first candidate that exists.

        Raises:
            CredentialsNotFound: If no candidate exists; the message lists
                every checked path
        """
        checked = self.candidates()
        for path in checked:
            if path.is_file():
                return path

        lines = []
        for i, path in enumerate(checked, start=1):
            suffix = " (bundled)" if path == self.bundled_path else ""
            lines.append(f"  {i}. {path}{suffix}")

        raise CredentialsNotFound(
            "No credentials found. Checked:\n"
            + "\n".join(lines)
            + "\n\nTo fix: place your Google OAuth credentials JSON at one of these paths, "
            f"or set the {config.CREDENTIALS_PATH_ENV} environment variable.",
            checked_paths=checked,
        )

    def load_config(self, path: Optional[Path] = None) -> OAuthClientConfig:
        """Read the OAuth client config from ``path`` or the resolved file."""
        path = path or self.resolve()
        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise AuthenticationError(f"Failed to read credentials from {path}: {e}") from e

        logger.debug(f"Loaded OAuth client config from {path}")
        return OAuthClientConfig.from_dict(data)
