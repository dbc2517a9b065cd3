"""
Track grouping for the library shuffle.

Splits a playlist's tracks into shuffle units: one unit per album run, or the
whole playlist when its length suggests a continuous mix or live set.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from library_shuffle.domain.library.models import Track

from .exceptions import EmptyTrackGroupError, MissingAlbumIdError, MissingTrackIdError

# Album runs at or below this length are singles/intros, not albums
MIN_ALBUM_DURATION_S = 600

# Playlists strictly inside this range are kept whole (DJ mixes, live sets)
MIX_DURATION_RANGE_S = (45 * 60, 90 * 60)

MISSING_TRACK_ID_ABORT = "abort"
MISSING_TRACK_ID_SKIP = "skip"


@dataclass(frozen=True)
class TrackGroup:
    """A group of tracks shuffled as one unit.

    Usually an album, but can be any run of tracks that belongs together.
    Frozen so duration_ms can't drift from track_ids; build with from_tracks.
    """

    name: str
    track_ids: tuple[str, ...]
    duration_ms: int

    @classmethod
    def from_tracks(cls, tracks: Sequence[Track], name: Optional[str] = None) -> "TrackGroup":
        """Build a group from a non-empty run of tracks.

        Args:
            tracks: Member tracks in playlist order
            name: Group name (defaults to the first track's album name)

        Raises:
            EmptyTrackGroupError: If tracks is empty
            MissingTrackIdError: If any track has no Spotify ID
        """
        if not tracks:
            raise EmptyTrackGroupError("Cannot build a track group from no tracks")

        for track in tracks:
            if track.id is None:
                raise MissingTrackIdError(track.name)

        return cls(
            name=tracks[0].album_name if name is None else name,
            track_ids=tuple(track.id for track in tracks),
            duration_ms=total_duration_ms(tracks),
        )

    @property
    def duration_s(self) -> float:
        return self.duration_ms / 1000.0


def total_duration_ms(tracks: Sequence[Track]) -> int:
    return sum(track.duration_ms for track in tracks)


def drop_tracks_without_id(playlist_name: str, tracks: Sequence[Track]) -> list[Track]:
    """Remove tracks that have no Spotify ID, logging each one."""
    kept = []
    for track in tracks:
        if track.id is None:
            logger.warning(f"Skipping track without Spotify ID in {playlist_name!r}: {track.name!r}")
            continue
        kept.append(track)
    return kept


def partition_by_album(
    tracks: Sequence[Track], min_album_duration_s: int = MIN_ALBUM_DURATION_S
) -> list[TrackGroup]:
    """Split tracks into maximal contiguous runs sharing an album ID.

    Each run becomes a group named after its album. Runs whose total length
    is min_album_duration_s or less are dropped.

    Args:
        tracks: Tracks in playlist order
        min_album_duration_s: Shortest run (exclusive) kept as an album

    Returns:
        Groups in playlist order

    Raises:
        MissingAlbumIdError: If a track has no album ID
        MissingTrackIdError: If a kept run contains a track without an ID
    """
    groups = []
    start = 0

    while start < len(tracks):
        album_id = tracks[start].album_id
        if album_id is None:
            raise MissingAlbumIdError(tracks[start].name)

        end = start + 1
        while end < len(tracks) and tracks[end].album_id == album_id:
            end += 1

        group = TrackGroup.from_tracks(tracks[start:end])
        if group.duration_ms > min_album_duration_s * 1000:
            groups.append(group)
        else:
            logger.debug(f"Dropping short run {group.name!r} ({group.duration_s:.0f}s)")

        start = end

    return groups


def partition_groups(
    playlist_name: str,
    tracks: Sequence[Track],
    min_album_duration_s: int = MIN_ALBUM_DURATION_S,
    mix_duration_range_s: tuple[int, int] = MIX_DURATION_RANGE_S,
    missing_track_id: str = MISSING_TRACK_ID_ABORT,
) -> list[TrackGroup]:
    """Group one playlist's tracks into shuffle units.

    A playlist whose total length is strictly inside mix_duration_range_s is
    returned whole as a single group named after the playlist, since album
    metadata on mixes is often inconsistent. Anything else is split by album.

    Args:
        playlist_name: Name used for the whole-playlist group
        tracks: Tracks in playlist order
        min_album_duration_s: Passed to partition_by_album
        mix_duration_range_s: (low, high) seconds, both exclusive
        missing_track_id: "abort" raises on tracks without an ID, "skip" drops them

    Returns:
        Groups in playlist order (empty for an empty playlist)
    """
    if missing_track_id == MISSING_TRACK_ID_SKIP:
        tracks = drop_tracks_without_id(playlist_name, tracks)

    if not tracks:
        return []

    low_s, high_s = mix_duration_range_s
    duration_ms = total_duration_ms(tracks)

    if low_s * 1000 < duration_ms < high_s * 1000:
        logger.debug(f"Keeping {playlist_name!r} whole ({duration_ms / 60000:.1f} min)")
        return [TrackGroup.from_tracks(tracks, name=playlist_name)]

    return partition_by_album(tracks, min_album_duration_s=min_album_duration_s)
