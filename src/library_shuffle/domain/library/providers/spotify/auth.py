"""
Spotify OAuth 2.0 authentication and token management.

Handles PKCE flow, token refresh, and secure token storage.
"""

import base64
import hashlib
import json
import secrets
import threading
import webbrowser
from datetime import datetime, timedelta
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlencode, urlparse

import requests
from loguru import logger

from library_shuffle.core.config import SpotifyConfig, get_data_dir
from library_shuffle.core.output import log

from .exceptions import SpotifyAuthorizationFlowError

# Spotify OAuth URLs
AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"

# Read the library, read and rewrite playlists
SPOTIFY_SCOPES = [
    "user-library-read",
    "playlist-read-private",
    "playlist-modify-private",
    "playlist-modify-public",
]

CALLBACK_TIMEOUT_S = 120


def authenticate(config: SpotifyConfig) -> Dict[str, Any]:
    """Authenticate with Spotify using OAuth 2.0 + PKCE.

    Opens browser for user authorization, then exchanges code for token.
    Falls back to manual URL paste for headless systems.

    Args:
        config: Spotify client credentials and redirect URI

    Returns:
        Token data including an ISO-8601 expires_at

    Raises:
        SpotifyAuthorizationFlowError: If any step of the flow fails
    """
    if not config.client_id or not config.client_secret:
        raise SpotifyAuthorizationFlowError(
            "Spotify credentials not configured. Create an app at "
            "https://developer.spotify.com/dashboard and set client_id/client_secret "
            "in config.toml or SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET."
        )

    pkce = _generate_pkce()
    csrf_state = (
        base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("utf-8").rstrip("=")
    )

    auth_url = build_authorize_url(config, pkce["code_challenge"], csrf_state)
    auth_result = _wait_for_callback(config.redirect_uri, auth_url)

    if not auth_result["received"]:
        raise SpotifyAuthorizationFlowError(
            f"Authorization timeout - no response received in {CALLBACK_TIMEOUT_S}s"
        )
    if auth_result["error"]:
        raise SpotifyAuthorizationFlowError(f"Authorization error: {auth_result['error']}")
    if not auth_result["code"]:
        raise SpotifyAuthorizationFlowError("No authorization code received")
    if auth_result["state"] != csrf_state:
        logger.error(
            f"CSRF state mismatch: expected {csrf_state}, got {auth_result['state']}"
        )
        raise SpotifyAuthorizationFlowError("CSRF state mismatch, please try again")

    logger.debug("Exchanging authorization code for tokens")
    token_data = _request_token(
        config,
        {
            "grant_type": "authorization_code",
            "code": auth_result["code"],
            "redirect_uri": config.redirect_uri,
            "code_verifier": pkce["code_verifier"],
        },
    )

    _save_user_tokens(token_data)
    log("✓ Spotify authentication successful", level="info")
    return token_data


def build_authorize_url(config: SpotifyConfig, code_challenge: str, csrf_state: str) -> str:
    """Build the Spotify authorize URL for the PKCE flow."""
    auth_params = {
        "client_id": config.client_id,
        "response_type": "code",
        "redirect_uri": config.redirect_uri,
        "code_challenge_method": "S256",
        "code_challenge": code_challenge,
        "state": csrf_state,
        "scope": " ".join(SPOTIFY_SCOPES),
    }
    return AUTHORIZE_URL + "?" + urlencode(auth_params)


def _parse_callback(url: str, auth_result: Dict[str, Any]) -> None:
    params = parse_qs(urlparse(url).query)
    auth_result["code"] = params.get("code", [None])[0]
    auth_result["state"] = params.get("state", [None])[0]
    auth_result["error"] = params.get("error", [None])[0]
    auth_result["received"] = True


def _wait_for_callback(redirect_uri: str, auth_url: str) -> Dict[str, Any]:
    """Run a one-shot local callback server and collect the redirect params."""
    auth_result: Dict[str, Any] = {
        "code": None,
        "state": None,
        "error": None,
        "received": False,
    }

    class CallbackHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            _parse_callback(self.path, auth_result)

            self.send_response(200)
            self.send_header("Content-type", "text/html")
            self.end_headers()

            if auth_result["code"]:
                html = "<html><body><h1>Authentication successful</h1>"
                html += "<p>You can close this window.</p></body></html>"
            else:
                html = "<html><body><h1>Authentication failed</h1>"
                html += f"<p>Error: {auth_result['error'] or 'Unknown error'}</p></body></html>"
            self.wfile.write(html.encode())

        def log_message(self, format, *args):
            pass  # Suppress server logs

    server = None
    try:
        port = urlparse(redirect_uri).port or 8888
        server = HTTPServer(("localhost", port), CallbackHandler)
        server_thread = threading.Thread(target=server.handle_request)
        server_thread.daemon = True
        server_thread.start()

        log(f"🔐 Waiting for Spotify authorization on port {port}...", level="info")
        logger.debug(f"Authorization URL: {auth_url}")

        browser_opened = False
        try:
            browser_opened = webbrowser.open(auth_url)
        except webbrowser.Error as e:
            logger.debug(f"Failed to open browser: {e}")

        if not browser_opened:
            log(f"Please open this URL in your browser:\n{auth_url}", level="info")

        server_thread.join(timeout=CALLBACK_TIMEOUT_S)

    except OSError as e:
        # Could not start server (port in use, etc.)
        logger.warning(f"Callback server error: {e}")
        log(f"Open this URL in your browser:\n{auth_url}", level="info")
        log("Then paste the FULL redirect URL here.", level="info")
        try:
            callback_url = input("Paste the callback URL: ").strip()
        except (EOFError, KeyboardInterrupt):
            raise SpotifyAuthorizationFlowError("Authorization cancelled") from None
        if callback_url:
            _parse_callback(callback_url, auth_result)

    finally:
        if server:
            server.server_close()

    return auth_result


def _request_token(config: SpotifyConfig, data: Dict[str, str]) -> Dict[str, Any]:
    """POST to the token endpoint and stamp the result with expires_at."""
    # Spotify requires Basic auth for token exchange
    auth_header = base64.b64encode(
        f"{config.client_id}:{config.client_secret}".encode("utf-8")
    ).decode("utf-8")

    try:
        response = requests.post(
            TOKEN_URL,
            data=data,
            headers={"Authorization": f"Basic {auth_header}"},
            timeout=30,
        )
        response.raise_for_status()
    except requests.HTTPError as e:
        detail = e.response.text if e.response is not None else str(e)
        logger.error(f"Spotify token endpoint error: {detail}")
        raise SpotifyAuthorizationFlowError(f"Token request failed: {detail}") from e

    token_data = response.json()
    expires_in = token_data.get("expires_in", 3600)  # Default 1 hour
    token_data["expires_at"] = (datetime.now() + timedelta(seconds=expires_in)).isoformat()
    return token_data


def _generate_pkce() -> Dict[str, str]:
    """Generate PKCE code verifier and challenge."""
    code_verifier = (
        base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("utf-8").rstrip("=")
    )
    challenge_bytes = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    code_challenge = (
        base64.urlsafe_b64encode(challenge_bytes).decode("utf-8").rstrip("=")
    )

    return {"code_verifier": code_verifier, "code_challenge": code_challenge}


def _get_tokens_file() -> Path:
    """Get the file used for storing tokens."""
    tokens_dir = get_data_dir() / "spotify"
    tokens_dir.mkdir(parents=True, exist_ok=True)
    return tokens_dir / "user_tokens.json"


def load_user_tokens() -> Optional[Dict[str, Any]]:
    """Load user OAuth tokens from file."""
    tokens_file = _get_tokens_file()

    if not tokens_file.exists():
        return None

    try:
        with open(tokens_file) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load Spotify tokens from file: {e}")
        return None


def _save_user_tokens(token_data: Dict[str, Any]) -> None:
    """Save user OAuth tokens to file with secure permissions."""
    tokens_file = _get_tokens_file()

    with open(tokens_file, "w") as f:
        json.dump(token_data, f, indent=2)

    # Set file permissions to 0600 (owner read/write only)
    tokens_file.chmod(0o600)
    logger.debug(f"Saved Spotify tokens to {tokens_file}")


def is_token_expired(token_data: Dict[str, Any]) -> bool:
    """Check if token is expired (with 5-minute buffer)."""
    if "expires_at" not in token_data:
        return True

    expires_at = datetime.fromisoformat(token_data["expires_at"])
    buffer = timedelta(minutes=5)

    return datetime.now() >= (expires_at - buffer)


def refresh_token(config: SpotifyConfig, token_data: Dict[str, Any]) -> Dict[str, Any]:
    """Refresh expired OAuth token.

    Args:
        config: Spotify client credentials
        token_data: Current token data with refresh_token

    Returns:
        New token data (refresh_token preserved if Spotify omits it)

    Raises:
        SpotifyAuthorizationFlowError: If credentials are missing or Spotify refuses
    """
    refresh_token_value = token_data.get("refresh_token")
    if not config.client_id or not config.client_secret or not refresh_token_value:
        raise SpotifyAuthorizationFlowError(
            "Missing credentials or refresh token for Spotify token refresh"
        )

    new_token_data = _request_token(
        config,
        {"grant_type": "refresh_token", "refresh_token": refresh_token_value},
    )

    # Preserve refresh token if not included in response
    if "refresh_token" not in new_token_data:
        new_token_data["refresh_token"] = refresh_token_value

    _save_user_tokens(new_token_data)
    logger.info(f"Spotify token refreshed, expires: {new_token_data['expires_at']}")
    return new_token_data


class TokenManager:
    """Hands out a valid access token, refreshing it when it expires.

    A long run under heavy rate limiting can outlive a one-hour token, so the
    token is checked before every request rather than once at startup.
    """

    def __init__(self, config: SpotifyConfig, token_data: Dict[str, Any]):
        self.config = config
        self.token_data = token_data

    def access_token(self) -> str:
        if is_token_expired(self.token_data):
            logger.info("Spotify token expired, refreshing")
            self.token_data = refresh_token(self.config, self.token_data)
        return self.token_data["access_token"]


def get_token_manager(config: SpotifyConfig, force_login: bool = False) -> TokenManager:
    """Load stored tokens (refreshing or logging in as needed).

    Args:
        config: Spotify client credentials
        force_login: Ignore stored tokens and run the browser flow

    Raises:
        SpotifyAuthorizationFlowError: If no valid token can be obtained
    """
    token_data = None if force_login else load_user_tokens()

    if token_data is None:
        token_data = authenticate(config)
    elif is_token_expired(token_data):
        try:
            token_data = refresh_token(config, token_data)
        except SpotifyAuthorizationFlowError as e:
            logger.warning(f"Token refresh failed, logging in again: {e}")
            token_data = authenticate(config)

    return TokenManager(config, token_data)
