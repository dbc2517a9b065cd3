"""
Spotify API operations.

LibraryClient wraps the four Web API calls the shuffle needs. Every request
goes through call_api, so rate limiting is waited out transparently; all
other errors surface as typed SpotifyError subclasses.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import requests
from loguru import logger

from library_shuffle.core.config import MAX_BATCH_SIZE

from ...models import Page, Playlist, Track
from .exceptions import (
    RateLimitedError,
    SpotifyAPIError,
    SpotifyAuthenticationError,
    SpotifyNotFoundError,
)
from .paging import call_api, fetch_all

# Spotify API base URL
API_BASE = "https://api.spotify.com/v1"

PLAYLISTS_PAGE_LIMIT = 50
TRACKS_PAGE_LIMIT = 100

# Only what grouping needs
TRACK_FIELDS = "total,items(track(id,name,duration_ms,album(id,name)))"

DEFAULT_PLAYLIST_DESCRIPTION = "Automatically-generated shuffled playlist"


def _error_message(response: requests.Response) -> str:
    """Extract Spotify's error message, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message", "")
    if isinstance(error, str):
        return body.get("error_description", error)
    return response.text


def raise_for_status(response: requests.Response) -> None:
    """Map an error response onto the SpotifyError hierarchy.

    Raises:
        RateLimitedError: 429, with Retry-After seconds when present
        SpotifyAuthenticationError: 401
        SpotifyNotFoundError: 404
        SpotifyAPIError: any other 4xx/5xx
    """
    status = response.status_code
    if status < 400:
        return

    if status == 429:
        retry_after = response.headers.get("Retry-After")
        raise RateLimitedError(
            int(retry_after) if retry_after and retry_after.isdigit() else None
        )

    message = _error_message(response)
    if status == 401:
        raise SpotifyAuthenticationError(status, message)
    if status == 404:
        raise SpotifyNotFoundError(status, message)
    raise SpotifyAPIError(status, message)


def _normalize_playlist(item: Dict[str, Any]) -> Playlist:
    """Convert Spotify API playlist response to a Playlist."""
    return Playlist(
        id=item["id"],
        name=item.get("name", ""),
        owner_id=(item.get("owner") or {}).get("id"),
    )


def _normalize_track(track: Dict[str, Any]) -> Track:
    """Convert Spotify API track response to a Track."""
    album = track.get("album") or {}
    return Track(
        id=track.get("id"),
        album_id=album.get("id"),
        album_name=album.get("name") or "",
        duration_ms=int(track.get("duration_ms") or 0),
        name=track.get("name") or "",
    )


class LibraryClient:
    """Playlist access for the authenticated Spotify user.

    Args:
        tokens: Object with an access_token() method (see auth.TokenManager)
        session: requests session (one is created when omitted)
        batch_size: Track URIs per add-tracks request, at most 100
        sleep: Sleep used while rate limited
    """

    def __init__(
        self,
        tokens: Any,
        session: Optional[requests.Session] = None,
        batch_size: int = MAX_BATCH_SIZE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.tokens = tokens
        self.session = session or requests.Session()
        self.batch_size = batch_size
        self._sleep = sleep
        self._user_id: Optional[str] = None

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue a single request (no retry) and return the decoded body."""
        response = self.session.request(
            method,
            f"{API_BASE}{path}",
            params=params,
            json=json,
            headers={"Authorization": f"Bearer {self.tokens.access_token()}"},
            timeout=30,
        )
        raise_for_status(response)
        if not response.content:
            return {}
        return response.json()

    def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        return call_api(lambda: self._request(method, path, **kwargs), sleep=self._sleep)

    def current_user_id(self) -> str:
        """ID of the authenticated user (fetched once)."""
        if self._user_id is None:
            self._user_id = self._call("GET", "/me")["id"]
            logger.debug(f"Authenticated as Spotify user {self._user_id}")
        return self._user_id

    def _fetch_all(self, path: str, limit: int, **params: Any) -> List[Any]:
        def get_page(offset: int) -> Page:
            data = self._request(
                "GET", path, params={"limit": limit, "offset": offset, **params}
            )
            return Page(items=data.get("items", []), total=data.get("total", 0))

        return fetch_all(get_page, sleep=self._sleep)

    def list_owned_playlists(self) -> List[Playlist]:
        """All playlists owned by the current user, in library order."""
        user_id = self.current_user_id()
        items = self._fetch_all("/me/playlists", PLAYLISTS_PAGE_LIMIT)

        playlists = [_normalize_playlist(item) for item in items if item]
        owned = [p for p in playlists if p.owner_id == user_id]
        logger.debug(f"Fetched {len(playlists)} playlists, {len(owned)} owned")
        return owned

    def list_playlist_tracks(self, playlist_id: str) -> List[Track]:
        """All tracks of one playlist, in playlist order.

        Entries whose track is gone from the catalogue come back as null and
        are dropped. Local files are kept with id=None.
        """
        items = self._fetch_all(
            f"/playlists/{playlist_id}/tracks", TRACKS_PAGE_LIMIT, fields=TRACK_FIELDS
        )

        tracks = []
        for item in items:
            if not item or not item.get("track"):
                logger.debug(f"Skipping unavailable entry in playlist {playlist_id}")
                continue
            tracks.append(_normalize_track(item["track"]))

        logger.debug(f"Fetched {len(tracks)} tracks for playlist {playlist_id}")
        return tracks

    def create_playlist(self, name: str, description: Optional[str] = None) -> str:
        """Create a private, non-collaborative playlist and return its ID."""
        user_id = self.current_user_id()
        payload = {
            "name": name,
            "public": False,
            "collaborative": False,
            "description": description or DEFAULT_PLAYLIST_DESCRIPTION,
        }
        playlist_id = self._call("POST", f"/users/{user_id}/playlists", json=payload)["id"]
        logger.info(f"Created Spotify playlist: {name} ({playlist_id})")
        return playlist_id

    def replace_playlist_tracks(self, playlist_id: str, track_ids: List[str]) -> None:
        """Clear the playlist, then append track_ids in order, one batch per request."""
        self._call("PUT", f"/playlists/{playlist_id}/tracks", json={"uris": []})

        for start in range(0, len(track_ids), self.batch_size):
            chunk = track_ids[start:start + self.batch_size]
            uris = [f"spotify:track:{track_id}" for track_id in chunk]
            self._call("POST", f"/playlists/{playlist_id}/tracks", json={"uris": uris})

        logger.debug(f"Wrote {len(track_ids)} tracks to playlist {playlist_id}")
