"""
Music library domain models.

Contains data structures for tracks, playlists and result pages as returned
by the remote library.
"""

from typing import Generic, List, NamedTuple, Optional, TypeVar

T = TypeVar("T")


class Track(NamedTuple):
    """Represents a playlist track with the metadata grouping needs.

    Tracks without a catalogue ID (local files) carry id=None.
    """
    id: Optional[str]
    album_id: Optional[str]
    album_name: str = ""
    duration_ms: int = 0
    name: str = ""


class Playlist(NamedTuple):
    """Playlist summary. Tracks are fetched separately, never stored here."""
    id: str
    name: str
    owner_id: Optional[str] = None


class Page(NamedTuple, Generic[T]):
    """One page of a paged listing plus the collection's total size."""
    items: List[T]
    total: int
