"""Library domain - remote music library access.

This domain handles:
- Track, playlist and page models
- Provider clients for the remote library (Spotify)
"""

from .models import Page, Playlist, Track

__all__ = [
    "Page",
    "Playlist",
    "Track",
]
