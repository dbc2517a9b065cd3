"""Tests for Spotify OAuth token handling."""

import base64
import hashlib
import json
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from library_shuffle.core.config import SpotifyConfig
from library_shuffle.domain.library.providers.spotify import auth
from library_shuffle.domain.library.providers.spotify.exceptions import (
    SpotifyAuthorizationFlowError,
)

AUTH_MODULE = "library_shuffle.domain.library.providers.spotify.auth"


@pytest.fixture(autouse=True)
def data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def spotify_config() -> SpotifyConfig:
    return SpotifyConfig(client_id="cid", client_secret="secret")


def token_response(status: int = 200, body: dict | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body or {}).encode()
    return response


def fresh_token(access: str = "access", minutes: int = 60) -> dict:
    return {
        "access_token": access,
        "refresh_token": "refresh",
        "expires_at": (datetime.now() + timedelta(minutes=minutes)).isoformat(),
    }


class TestTokenExpiry:
    """Tests for is_token_expired function."""

    def test_fresh_token(self) -> None:
        """A token valid for an hour is not expired."""
        assert not auth.is_token_expired(fresh_token())

    def test_within_buffer_counts_as_expired(self) -> None:
        """Tokens expiring within five minutes are refreshed early."""
        assert auth.is_token_expired(fresh_token(minutes=4))

    def test_missing_expiry(self) -> None:
        """No expires_at means expired."""
        assert auth.is_token_expired({"access_token": "x"})


class TestPkce:
    """Tests for PKCE helpers."""

    def test_challenge_matches_verifier(self) -> None:
        """The challenge is the unpadded base64url SHA-256 of the verifier."""
        pkce = auth._generate_pkce()
        digest = hashlib.sha256(pkce["code_verifier"].encode()).digest()
        expected = base64.urlsafe_b64encode(digest).decode().rstrip("=")
        assert pkce["code_challenge"] == expected

    def test_authorize_url(self, spotify_config: SpotifyConfig) -> None:
        """The authorize URL carries client, challenge, state and scopes."""
        url = auth.build_authorize_url(spotify_config, "challenge", "state123")
        params = parse_qs(urlparse(url).query)
        assert params["client_id"] == ["cid"]
        assert params["code_challenge"] == ["challenge"]
        assert params["code_challenge_method"] == ["S256"]
        assert params["state"] == ["state123"]
        assert set(params["scope"][0].split()) == set(auth.SPOTIFY_SCOPES)


class TestRefreshToken:
    """Tests for refresh_token function."""

    def test_refresh_preserves_refresh_token(self, spotify_config: SpotifyConfig) -> None:
        """Spotify may omit refresh_token; the old one is kept and saved."""
        with patch(f"{AUTH_MODULE}.requests.post") as post:
            post.return_value = token_response(body={"access_token": "new", "expires_in": 3600})
            new_token = auth.refresh_token(spotify_config, fresh_token(minutes=-1))

        assert new_token["access_token"] == "new"
        assert new_token["refresh_token"] == "refresh"
        assert not auth.is_token_expired(new_token)
        assert auth.load_user_tokens() == new_token
        assert post.call_args.kwargs["data"]["grant_type"] == "refresh_token"

    def test_refresh_rejected(self, spotify_config: SpotifyConfig) -> None:
        """A refused refresh raises a flow error."""
        with patch(f"{AUTH_MODULE}.requests.post") as post:
            post.return_value = token_response(400, {"error": "invalid_grant"})
            with pytest.raises(SpotifyAuthorizationFlowError):
                auth.refresh_token(spotify_config, fresh_token(minutes=-1))

    def test_missing_credentials(self) -> None:
        """Refresh without client credentials fails before any request."""
        with pytest.raises(SpotifyAuthorizationFlowError):
            auth.refresh_token(SpotifyConfig(), fresh_token())


class TestTokenManager:
    """Tests for TokenManager and get_token_manager."""

    def test_returns_valid_token(self, spotify_config: SpotifyConfig) -> None:
        """A fresh token is handed out as is."""
        manager = auth.TokenManager(spotify_config, fresh_token("abc"))
        assert manager.access_token() == "abc"

    def test_refreshes_expired_token(self, spotify_config: SpotifyConfig) -> None:
        """An expired token is refreshed on access."""
        manager = auth.TokenManager(spotify_config, fresh_token("old", minutes=-10))
        with patch(f"{AUTH_MODULE}.refresh_token", return_value=fresh_token("new")) as refresh:
            assert manager.access_token() == "new"
        refresh.assert_called_once()

    def test_uses_stored_tokens(self, spotify_config: SpotifyConfig) -> None:
        """Stored, valid tokens skip the browser login."""
        auth._save_user_tokens(fresh_token("stored"))
        with patch(f"{AUTH_MODULE}.authenticate") as authenticate:
            manager = auth.get_token_manager(spotify_config)
        authenticate.assert_not_called()
        assert manager.access_token() == "stored"

    def test_logs_in_without_stored_tokens(self, spotify_config: SpotifyConfig) -> None:
        """No stored tokens triggers the browser login."""
        with patch(f"{AUTH_MODULE}.authenticate", return_value=fresh_token("login")) as authenticate:
            manager = auth.get_token_manager(spotify_config)
        authenticate.assert_called_once_with(spotify_config)
        assert manager.access_token() == "login"

    def test_falls_back_to_login_when_refresh_fails(self, spotify_config: SpotifyConfig) -> None:
        """A failed refresh of stored tokens falls back to logging in."""
        auth._save_user_tokens(fresh_token("stale", minutes=-10))
        with (
            patch(f"{AUTH_MODULE}.refresh_token", side_effect=SpotifyAuthorizationFlowError("no")),
            patch(f"{AUTH_MODULE}.authenticate", return_value=fresh_token("login")) as authenticate,
        ):
            manager = auth.get_token_manager(spotify_config)
        authenticate.assert_called_once()
        assert manager.access_token() == "login"

    def test_authenticate_requires_credentials(self) -> None:
        """Login without client credentials fails with a helpful error."""
        with pytest.raises(SpotifyAuthorizationFlowError, match="credentials"):
            auth.authenticate(SpotifyConfig())

    def test_tokens_file_is_private(self, data_home: Path) -> None:
        """Saved tokens are readable by the owner only."""
        auth._save_user_tokens(fresh_token())
        tokens_file = data_home / "library-shuffle" / "spotify" / "user_tokens.json"
        assert tokens_file.stat().st_mode & 0o777 == 0o600


def test_callback_parsing() -> None:
    """Redirect URLs are parsed into code, state and error."""
    result: dict = {}
    auth._parse_callback("http://localhost:8888/callback?code=abc&state=xyz", result)
    assert result == {"code": "abc", "state": "xyz", "error": None, "received": True}
