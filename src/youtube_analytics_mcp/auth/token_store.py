# ABOUTME: Persists the OAuth refresh/access token record to a single JSON file
# ABOUTME: Writes with owner-only permissions and updates access fields in place

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from youtube_analytics_mcp import config
from youtube_analytics_mcp.auth.errors import (
    AuthenticationError,
    NoTokenError,
    TokenUpdateFailed,
)

logger = logging.getLogger(__name__)

TOKEN_TYPE = "authorized_user"
TOKEN_FILE_MODE = 0o600

# 9999-12-31T23:59:59.999Z, the last instant a datetime can hold
MAX_EXPIRY_DATE = 253_402_300_799_999


def _parse_expiry(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"expiry_date must be epoch milliseconds, got {value!r}")
    expiry = int(value)
    if not 0 <= expiry <= MAX_EXPIRY_DATE:
        raise ValueError(f"expiry_date out of range: {value!r}")
    return expiry


@dataclass
class PersistedToken:
    """Token record as stored on disk. ``expiry_date`` is epoch milliseconds."""

    client_id: str
    client_secret: str
    refresh_token: str
    access_token: Optional[str] = None
    expiry_date: Optional[int] = None
    type: str = TOKEN_TYPE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
        }
        if self.access_token:
            data["access_token"] = self.access_token
        if self.expiry_date is not None:
            data["expiry_date"] = self.expiry_date
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedToken":
        return cls(
            type=data.get("type", TOKEN_TYPE),
            client_id=data.get("client_id", ""),
            client_secret=data.get("client_secret", ""),
            refresh_token=data.get("refresh_token", ""),
            access_token=data.get("access_token"),
            expiry_date=_parse_expiry(data.get("expiry_date")),
        )


class TokenStore:
    """Reads and writes the persisted token file."""

    def __init__(self, path: Optional[Path] = None):
        """Initialize token store.

        Args:
            path: Token file location (defaults to YOUTUBE_TOKEN_PATH or
                ~/.youtube-analytics-mcp/token.json)
        """
        self.path = path or config.token_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def ensure_directory(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> PersistedToken:
        """Load the persisted token.

        Raises:
            NoTokenError: If the file is missing or malformed
        """
        record = self._read_record(NoTokenError)
        try:
            return PersistedToken.from_dict(record)
        except (TypeError, ValueError, OverflowError) as e:
            raise NoTokenError(f"Malformed token file {self.path}: {e}") from e

    def save(self, token: PersistedToken) -> None:
        """Write the full token record and restrict it to the owner.

        Raises:
            AuthenticationError: If the record has no refresh token or the
                file cannot be written
        """
        if not token.refresh_token:
            raise AuthenticationError("Refusing to save a token without a refresh_token")

        try:
            self.ensure_directory()
            self._write_record(token.to_dict())
        except OSError as e:
            raise AuthenticationError(f"Failed to save token: {e}") from e

        logger.info(f"Token saved to {self.path}")

    def update_access_fields(self, access_token: Optional[str], expiry_date: Optional[int]) -> None:
        """Replace only the access token and expiry of the stored record.

        Raises:
            TokenUpdateFailed: If the existing record cannot be read or rewritten
        """
        record = self._read_record(TokenUpdateFailed)

        for key, value in (("access_token", access_token), ("expiry_date", expiry_date)):
            if value is None:
                record.pop(key, None)
            else:
                record[key] = value

        try:
            self._write_record(record)
        except OSError as e:
            raise TokenUpdateFailed(f"Failed to update stored token: {e}") from e

    def delete(self) -> None:
        """Remove the token file. A missing file is not an error."""
        self.path.unlink(missing_ok=True)

    def _read_record(self, error_cls: type) -> Dict[str, Any]:
        try:
            record = json.loads(self.path.read_text())
        except FileNotFoundError as e:
            raise error_cls(f"No token file at {self.path}") from e
        except (OSError, ValueError) as e:
            raise error_cls(f"Failed to read token file {self.path}: {e}") from e

        if not isinstance(record, dict):
            raise error_cls(f"Token file {self.path} does not contain a JSON object")
        return record

    def _write_record(self, record: Dict[str, Any]) -> None:
        # Whole-file rewrite; the mode is reapplied in case the file was recreated
        self.path.write_text(json.dumps(record, indent=2))
        self.path.chmod(TOKEN_FILE_MODE)
