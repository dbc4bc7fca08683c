# ABOUTME: OAuth session manager owning the single cached authenticated client
# ABOUTME: Reuses, reloads, refreshes, or re-authenticates credentials on demand

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from youtube_analytics_mcp.auth.credentials import CredentialResolver
from youtube_analytics_mcp.auth.errors import (
    AuthError,
    AuthenticationError,
    NoTokenError,
    TokenExpiredError,
)
from youtube_analytics_mcp.auth.flow import InteractiveFlow, LocalServerFlow
from youtube_analytics_mcp.auth.token_store import PersistedToken, TokenStore

logger = logging.getLogger(__name__)

REVOKE_URI = "https://oauth2.googleapis.com/revoke"

# Tokens expiring within this window are refreshed before use
REFRESH_MARGIN_MS = 5 * 60 * 1000

Strategy = Callable[[], Optional[Credentials]]


def expiry_to_millis(expiry: Optional[datetime]) -> Optional[int]:
    """Convert a google-auth expiry (naive UTC) to epoch milliseconds."""
    if expiry is None:
        return None
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return round(expiry.timestamp() * 1000)


def millis_to_expiry(expiry_date: Optional[int]) -> Optional[datetime]:
    """Convert epoch milliseconds to the naive UTC datetime google-auth expects."""
    if expiry_date is None:
        return None
    return datetime.fromtimestamp(expiry_date / 1000, tz=timezone.utc).replace(tzinfo=None)


class AuthSessionManager:
    """Hands out a valid OAuth client for YouTube API calls.

    The manager holds at most one cached ``Credentials`` instance. Each call
    to :meth:`get_client` tries, in order:

    1. the cached client, refreshed if it is about to expire
    2. a client rebuilt from the persisted token and the client config
    3. the interactive consent flow

    Failures of the first two are logged and fall through to the next step;
    only failures of the interactive flow reach the caller.
    """

    DEFAULT_SCOPES = [
        "https://www.googleapis.com/auth/youtube.readonly",
        "https://www.googleapis.com/auth/yt-analytics.readonly",
        "https://www.googleapis.com/auth/youtubepartner",
    ]

    def __init__(
        self,
        resolver: Optional[CredentialResolver] = None,
        token_store: Optional[TokenStore] = None,
        flow: Optional[InteractiveFlow] = None,
        scopes: Optional[List[str]] = None,
        request_factory: Callable[[], Request] = Request,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize session manager.

        Args:
            resolver: Locates the OAuth client credentials file
            token_store: Persists the token record
            flow: Interactive consent flow used when no usable token exists
            scopes: OAuth scopes to request
            request_factory: Builds the HTTP transport for refresh and revoke
            clock: Returns the current time in epoch seconds
        """
        self.resolver = resolver or CredentialResolver()
        self.token_store = token_store or TokenStore()
        self.flow = flow or LocalServerFlow()
        self.scopes = scopes or self.DEFAULT_SCOPES
        self._request_factory = request_factory
        self._clock = clock
        self._client: Optional[Credentials] = None

    @property
    def cached_client(self) -> Optional[Credentials]:
        return self._client

    def clear(self) -> None:
        """Drop the cached client."""
        self._client = None

    def get_client(self) -> Credentials:
        """Return a fresh client, re-authenticating interactively if needed.

        Raises:
            CredentialsNotFound: If no OAuth client credentials file exists
            AuthenticationError: If the interactive flow fails
        """
        client = self._first_available()
        if client is not None:
            return client

        logger.info("No valid token found, initiating authentication flow...")
        return self.authenticate()

    def authenticate(self) -> Credentials:
        """Run the interactive flow and persist the resulting token."""
        credentials_path = self.resolver.resolve()
        logger.info(f"Using credentials from: {credentials_path}")

        try:
            client_config = self.resolver.load_config(credentials_path)
            self.token_store.ensure_directory()
            client = self.flow.run(credentials_path, self.scopes)
        except AuthError:
            raise
        except Exception as e:
            raise AuthenticationError(f"Authentication failed: {e}") from e

        if client is None or not client.refresh_token:
            raise AuthenticationError("Authentication failed: no refresh token was returned")

        self.token_store.save(PersistedToken(
            client_id=client.client_id or client_config.client_id,
            client_secret=client.client_secret or client_config.client_secret,
            refresh_token=client.refresh_token,
            access_token=client.token,
            expiry_date=expiry_to_millis(client.expiry),
        ))
        self._client = client
        logger.info("Authentication successful! Tokens saved.")
        return client

    def ensure_fresh(self, client: Credentials) -> None:
        """Refresh ``client`` if it expires within the refresh margin.

        Raises:
            TokenExpiredError: If there is no refresh token or the refresh
                fails; the cached client is cleared either way
        """
        threshold = self._now_millis() + REFRESH_MARGIN_MS
        expiry_date = expiry_to_millis(client.expiry)
        if expiry_date is not None and expiry_date > threshold:
            return

        logger.info("Token expired or expiring soon, refreshing...")
        if not client.refresh_token:
            logger.error("No refresh token available")
            self._client = None
            raise TokenExpiredError("No refresh token available")

        try:
            client.refresh(self._request_factory())
            self.token_store.update_access_fields(client.token, expiry_to_millis(client.expiry))
        except (GoogleAuthError, AuthError) as e:
            logger.error(f"Token refresh failed: {e}")
            self._client = None
            raise TokenExpiredError("Token refresh failed - please re-authenticate") from e

        logger.info("Token refreshed successfully")

    def revoke(self) -> None:
        """Revoke the current token with Google and forget it locally.

        Raises:
            AuthenticationError: If no client can be obtained or Google
                rejects the revocation
        """
        client = self.get_client()
        try:
            self._revoke_remote(client)
        finally:
            self._client = None

        try:
            self.token_store.delete()
        except OSError as e:
            logger.warning(f"Failed to remove token file: {e}")
        else:
            logger.info("Token revoked and removed successfully")

    def is_authenticated(self) -> bool:
        """Whether a usable token is available without user interaction.

        Any failure while loading or refreshing reads as ``False``.
        """
        client = self._first_available()
        return bool(client is not None and client.token)

    def _strategies(self) -> Sequence[Tuple[str, Strategy]]:
        return (
            ("cached client", self._from_cache),
            ("stored token", self._from_store),
        )

    def _first_available(self) -> Optional[Credentials]:
        for name, strategy in self._strategies():
            try:
                client = strategy()
            except AuthError as e:
                logger.info(f"Could not use {name}: {e}")
                continue
            except Exception as e:
                logger.warning(f"Unexpected error using {name}, skipping it: {e}")
                self._client = None
                continue
            if client is not None:
                return client
        return None

    def _from_cache(self) -> Optional[Credentials]:
        client = self._client
        if client is None:
            return None

        try:
            self.ensure_fresh(client)
        except AuthError:
            logger.info("Cached auth client invalid, creating new one...")
            self._client = None
            raise
        return client

    def _from_store(self) -> Optional[Credentials]:
        token = self.token_store.load()
        client_config = self.resolver.load_config()

        try:
            expiry = millis_to_expiry(token.expiry_date)
        except (OverflowError, OSError, ValueError) as e:
            raise NoTokenError(f"Stored token has an unusable expiry_date: {e}") from e

        client = Credentials(
            token=token.access_token,
            refresh_token=token.refresh_token or None,
            token_uri=client_config.token_uri,
            client_id=client_config.client_id,
            client_secret=client_config.client_secret,
            scopes=self.scopes,
            expiry=expiry,
        )
        self.ensure_fresh(client)
        self._client = client
        return client

    def _revoke_remote(self, client: Credentials) -> None:
        token = client.token or client.refresh_token
        request = self._request_factory()
        try:
            response = request(
                url=REVOKE_URI,
                method="POST",
                body=urlencode({"token": token}),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except GoogleAuthError as e:
            raise AuthenticationError(f"Failed to revoke token: {e}") from e

        if response.status != 200:
            raise AuthenticationError(
                f"Failed to revoke token: HTTP {response.status} {response.data!r}"
            )

    def _now_millis(self) -> int:
        return round(self._clock() * 1000)
