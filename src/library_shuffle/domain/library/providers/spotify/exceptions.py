"""Spotify-specific exceptions for error handling."""

from typing import Optional


class SpotifyError(Exception):
    """Base exception for Spotify operations."""

    pass


class RateLimitedError(SpotifyError):
    """Raised when Spotify answers 429 Too Many Requests.

    retry_after is the Retry-After header in seconds, or None when absent.
    """

    def __init__(self, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(f"Rate limited (retry after {retry_after}s)")


class SpotifyAPIError(SpotifyError):
    """Raised for any non rate-limit error response from the Web API."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Spotify API error {status_code}: {message}")


class SpotifyAuthenticationError(SpotifyAPIError):
    """Raised when the access token is missing, invalid or expired (401)."""

    pass


class SpotifyNotFoundError(SpotifyAPIError):
    """Raised when the requested playlist or resource does not exist (404)."""

    pass


class SpotifyAuthorizationFlowError(SpotifyError):
    """Raised when the OAuth login or token refresh fails."""

    pass
