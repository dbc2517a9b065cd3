"""
Spotify provider for Library Shuffle.

Implements OAuth 2.0 + PKCE authentication and playlist access for Spotify.
"""

from loguru import logger

from library_shuffle.core.config import Config

from . import api, auth, paging
from .api import LibraryClient
from .exceptions import (
    RateLimitedError,
    SpotifyAPIError,
    SpotifyAuthenticationError,
    SpotifyAuthorizationFlowError,
    SpotifyError,
    SpotifyNotFoundError,
)


def init_client(config: Config, force_login: bool = False) -> LibraryClient:
    """Build an authenticated LibraryClient.

    Uses stored tokens when present (refreshing them if expired) and falls
    back to the browser login otherwise.

    Args:
        config: Application configuration
        force_login: Ignore stored tokens and log in again

    Returns:
        LibraryClient ready for use

    Raises:
        SpotifyAuthorizationFlowError: If no valid token can be obtained
    """
    logger.debug("Initializing Spotify client")
    tokens = auth.get_token_manager(config.spotify, force_login=force_login)
    return LibraryClient(tokens, batch_size=config.shuffle.batch_size)


__all__ = [
    "api",
    "auth",
    "paging",
    "init_client",
    "LibraryClient",
    "RateLimitedError",
    "SpotifyAPIError",
    "SpotifyAuthenticationError",
    "SpotifyAuthorizationFlowError",
    "SpotifyError",
    "SpotifyNotFoundError",
]
