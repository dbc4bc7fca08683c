# ABOUTME: Exception hierarchy for OAuth credential resolution and token lifecycle
# ABOUTME: Distinguishes missing credentials, missing tokens, and expired tokens

from pathlib import Path
from typing import Iterable, List


class AuthError(Exception):
    """Base class for all authentication failures."""


class CredentialsNotFound(AuthError):
    """No OAuth client credentials file exists at any candidate path."""

    def __init__(self, message: str, checked_paths: Iterable[Path] = ()):
        super().__init__(message)
        self.checked_paths: List[Path] = list(checked_paths)


class NoTokenError(AuthError):
    """No usable persisted token (missing, unreadable, or malformed)."""


class AuthenticationError(AuthError):
    """Interactive authentication or token persistence failed."""


class TokenExpiredError(AuthenticationError):
    """Access token could not be refreshed; re-authentication is required."""


class TokenUpdateFailed(AuthenticationError):
    """Refreshed access fields could not be written back to the token file."""
