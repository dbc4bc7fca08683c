# ABOUTME: Environment-driven paths and settings for the YouTube Analytics MCP server
# ABOUTME: Resolves token, credentials, and channel overrides from environment variables

import os
from pathlib import Path
from typing import Optional

APP_DIR_NAME = ".youtube-analytics-mcp"

TOKEN_PATH_ENV = "YOUTUBE_TOKEN_PATH"
CREDENTIALS_PATH_ENV = "YOUTUBE_CREDENTIALS_PATH"
CHANNEL_ID_ENV = "YOUTUBE_CHANNEL_ID"
LOG_LEVEL_ENV = "YOUTUBE_MCP_LOG_LEVEL"

# Shipped inside the installed package, next to this module
BUNDLED_CREDENTIALS_PATH = Path(__file__).resolve().parent / "credentials.json"


def user_config_dir() -> Path:
    """Per-user configuration directory (~/.youtube-analytics-mcp)."""
    return Path.home() / APP_DIR_NAME


def token_path() -> Path:
    """Location of the persisted OAuth token."""
    override = os.getenv(TOKEN_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return user_config_dir() / "token.json"


def credentials_override() -> Optional[Path]:
    """Explicit OAuth client credentials file, if one is configured."""
    override = os.getenv(CREDENTIALS_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return None


def user_credentials_path() -> Path:
    return user_config_dir() / "credentials.json"


def channel_id() -> Optional[str]:
    """Channel to target instead of the account's default channel."""
    return os.getenv(CHANNEL_ID_ENV) or None


def log_level() -> str:
    return os.getenv(LOG_LEVEL_ENV, "INFO").upper()
