# ABOUTME: Tests for OAuth client credential resolution
# ABOUTME: Validates lookup order, missing-file reporting, and config parsing

import json

import pytest

from youtube_analytics_mcp.auth.credentials import CredentialResolver, OAuthClientConfig
from youtube_analytics_mcp.auth.errors import AuthenticationError, CredentialsNotFound


@pytest.fixture
def paths(tmp_path):
    return {
        "override": tmp_path / "override.json",
        "user": tmp_path / "user" / "credentials.json",
        "bundled": tmp_path / "bundled" / "credentials.json",
    }


def _touch(path, content='{"installed": {}}'):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _resolver(paths):
    return CredentialResolver(
        override_path=paths["override"],
        user_path=paths["user"],
        bundled_path=paths["bundled"],
    )


def test_override_path_wins_when_all_exist(paths):
    """The explicit override should be used before any other location."""
    for path in paths.values():
        _touch(path)

    assert _resolver(paths).resolve() == paths["override"]


def test_user_path_used_when_override_missing(paths):
    """The per-user config dir is checked second."""
    _touch(paths["user"])
    _touch(paths["bundled"])

    assert _resolver(paths).resolve() == paths["user"]


def test_bundled_path_is_last_resort(paths):
    """The bundled credentials file is used when nothing else exists."""
    _touch(paths["bundled"])

    assert _resolver(paths).resolve() == paths["bundled"]


def test_candidates_follow_lookup_order(paths):
    resolver = _resolver(paths)

    assert resolver.candidates() == [paths["override"], paths["user"], paths["bundled"]]


def test_override_comes_from_environment(monkeypatch, paths):
    """YOUTUBE_CREDENTIALS_PATH should populate the override candidate."""
    monkeypatch.setenv("YOUTUBE_CREDENTIALS_PATH", str(paths["override"]))
    resolver = CredentialResolver(user_path=paths["user"], bundled_path=paths["bundled"])

    assert resolver.candidates()[0] == paths["override"]


def test_override_skipped_when_environment_unset(paths):
    resolver = CredentialResolver(user_path=paths["user"], bundled_path=paths["bundled"])

    assert resolver.candidates() == [paths["user"], paths["bundled"]]


def test_default_user_path_is_in_home_config_dir(tmp_path):
    resolver = CredentialResolver()

    assert resolver.user_path == tmp_path / "home" / ".youtube-analytics-mcp" / "credentials.json"


def test_not_found_lists_every_checked_path(paths):
    """The failure message should enumerate all candidates and the env var."""
    with pytest.raises(CredentialsNotFound) as exc_info:
        _resolver(paths).resolve()

    message = str(exc_info.value)
    assert "No credentials found" in message
    assert f"1. {paths['override']}" in message
    assert f"2. {paths['user']}" in message
    assert f"3. {paths['bundled']} (bundled)" in message
    assert "YOUTUBE_CREDENTIALS_PATH" in message
    assert exc_info.value.checked_paths == [paths["override"], paths["user"], paths["bundled"]]


def test_directories_are_not_credentials(paths):
    """A directory at a candidate path should not count as a credentials file."""
    paths["override"].mkdir(parents=True)
    _touch(paths["user"])

    assert _resolver(paths).resolve() == paths["user"]


def test_load_config_installed_client(resolver, client_secrets):
    config = resolver.load_config()

    assert config.client_id == "client-123.apps.googleusercontent.com"
    assert config.client_secret == "secret-456"
    assert config.redirect_uri == "http://localhost"
    assert config.token_uri == "https://oauth2.googleapis.com/token"
    assert config.project_id == "yt-analytics"


def test_load_config_web_client(paths):
    _touch(paths["user"], json.dumps({
        "web": {
            "client_id": "web-id",
            "client_secret": "web-secret",
            "redirect_uris": ["https://example.com/callback", "http://localhost:3000"],
        }
    }))

    config = _resolver(paths).load_config()

    assert config.client_id == "web-id"
    assert config.redirect_uri == "https://example.com/callback"
    # Falls back to Google's token endpoint when the file omits it
    assert config.token_uri == "https://oauth2.googleapis.com/token"


def test_load_config_rejects_unknown_shape(paths):
    _touch(paths["user"], json.dumps({"service_account": {"client_id": "x"}}))

    with pytest.raises(AuthenticationError, match='"web" or "installed"'):
        _resolver(paths).load_config()


def test_load_config_rejects_malformed_json(paths):
    _touch(paths["user"], "{not json")

    with pytest.raises(AuthenticationError, match="Failed to read credentials"):
        _resolver(paths).load_config()


def test_config_requires_client_identity():
    with pytest.raises(AuthenticationError, match="client_id and client_secret"):
        OAuthClientConfig.from_dict({"installed": {"client_id": "only-id"}})


def test_config_without_redirect_uris():
    config = OAuthClientConfig.from_dict({"installed": {"client_id": "a", "client_secret": "b"}})

    assert config.redirect_uris == ()
    assert config.redirect_uri is None
