"""
Library shuffle workflow.

Reads every owned playlist, groups its tracks, assembles a shuffled sequence
and writes it into the destination playlist. Runs strictly in that order;
nothing is kept between runs.
"""

import random
from typing import NamedTuple, Optional, Sequence

from loguru import logger

from library_shuffle.core.config import ShuffleConfig
from library_shuffle.core.output import log
from library_shuffle.domain.library.models import Playlist
from library_shuffle.domain.library.providers.spotify.api import LibraryClient

from .assembly import assemble
from .grouping import TrackGroup, partition_groups


class ShuffleResult(NamedTuple):
    """Outcome of one shuffle run."""
    playlist_id: str
    track_count: int
    group_count: int
    created: bool  # True if the destination playlist was created this run


def load_groups(
    client: LibraryClient, playlists: Sequence[Playlist], config: ShuffleConfig
) -> list[TrackGroup]:
    """Fetch and group the tracks of every playlist not on the denylist."""
    denylist = config.denylist()
    mix_range = (config.mix_duration_min_s, config.mix_duration_max_s)

    groups: list[TrackGroup] = []
    for playlist in playlists:
        if playlist.name in denylist:
            logger.debug(f"Skipping excluded playlist {playlist.name!r}")
            continue

        tracks = client.list_playlist_tracks(playlist.id)
        groups.extend(
            partition_groups(
                playlist.name,
                tracks,
                min_album_duration_s=config.min_album_duration_s,
                mix_duration_range_s=mix_range,
                missing_track_id=config.missing_track_id,
            )
        )

    return groups


def get_or_create_shuffle_playlist_id(
    client: LibraryClient, playlists: Sequence[Playlist], config: ShuffleConfig
) -> tuple[str, bool]:
    """Return (playlist_id, created) for the destination playlist.

    The first playlist named exactly config.playlist_name is reused;
    otherwise a new one is created.
    """
    for playlist in playlists:
        if playlist.name == config.playlist_name:
            log(f"Reusing existing playlist with ID={playlist.id}")
            return playlist.id, False

    playlist_id = client.create_playlist(config.playlist_name, config.playlist_description)
    return playlist_id, True


def shuffle_library(
    client: LibraryClient,
    config: ShuffleConfig,
    goal_duration_s: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> ShuffleResult:
    """Shuffle the user's whole library into the destination playlist.

    Args:
        client: Authenticated library client
        config: Shuffle settings
        goal_duration_s: Target playtime (defaults to config.default_goal_minutes)
        rng: Random source for the group shuffle

    Returns:
        ShuffleResult describing what was written

    Raises:
        SpotifyError: On any remote failure other than rate limiting
        ShuffleError: On unexpected track data (missing IDs)
    """
    if goal_duration_s is None:
        goal_duration_s = config.default_goal_minutes * 60

    playlists = client.list_owned_playlists()
    logger.info(f"Found {len(playlists)} owned playlists")

    groups = load_groups(client, playlists, config)
    logger.info(f"Collected {len(groups)} track groups")

    track_ids = assemble(groups, goal_duration_s=goal_duration_s, rng=rng)

    playlist_id, created = get_or_create_shuffle_playlist_id(client, playlists, config)
    client.replace_playlist_tracks(playlist_id, track_ids)

    return ShuffleResult(
        playlist_id=playlist_id,
        track_count=len(track_ids),
        group_count=len(groups),
        created=created,
    )
