"""Shuffle domain - grouping tracks and assembling the shuffle playlist.

This domain handles:
- Partitioning playlists into album / whole-mix groups
- Random, duration-bounded assembly of groups
- The end-to-end library shuffle workflow
"""

from .assembly import DEFAULT_GOAL_DURATION_S, assemble
from .exceptions import (
    EmptyTrackGroupError,
    MissingAlbumIdError,
    MissingTrackIdError,
    ShuffleError,
)
from .grouping import (
    MIN_ALBUM_DURATION_S,
    MIX_DURATION_RANGE_S,
    TrackGroup,
    partition_by_album,
    partition_groups,
)
from .orchestrator import (
    ShuffleResult,
    get_or_create_shuffle_playlist_id,
    load_groups,
    shuffle_library,
)

__all__ = [
    "DEFAULT_GOAL_DURATION_S",
    "assemble",
    "EmptyTrackGroupError",
    "MissingAlbumIdError",
    "MissingTrackIdError",
    "ShuffleError",
    "MIN_ALBUM_DURATION_S",
    "MIX_DURATION_RANGE_S",
    "TrackGroup",
    "partition_by_album",
    "partition_groups",
    "ShuffleResult",
    "get_or_create_shuffle_playlist_id",
    "load_groups",
    "shuffle_library",
]
