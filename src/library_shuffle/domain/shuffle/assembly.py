"""
Shuffle assembly: turn track groups into one ordered list of track IDs.
"""

import random
from typing import Optional, Sequence

from library_shuffle.core.output import log

from .grouping import TrackGroup

DEFAULT_GOAL_DURATION_S = 1200 * 60


def assemble(
    groups: Sequence[TrackGroup],
    goal_duration_s: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> list[str]:
    """Shuffle groups and concatenate them until the goal duration is passed.

    The goal is a soft ceiling checked before each group: a group is added as
    long as the playtime accepted so far does not exceed the goal, so the
    output can overshoot by up to one group and the first group is always
    included. Groups are never split.

    Args:
        groups: Candidate groups (not modified)
        goal_duration_s: Target playtime in seconds (default 1200 minutes)
        rng: Random source for the shuffle (a fresh unseeded one if None)

    Returns:
        Track IDs, each accepted group's tracks in their original order
    """
    goal_ms = (DEFAULT_GOAL_DURATION_S if goal_duration_s is None else goal_duration_s) * 1000
    rng = rng or random.Random()

    shuffled = list(groups)
    rng.shuffle(shuffled)

    playlist_duration_ms = 0
    track_ids: list[str] = []
    for group in shuffled:
        if playlist_duration_ms > goal_ms:
            break

        log(f" + {group.name}")
        track_ids.extend(group.track_ids)
        playlist_duration_ms += group.duration_ms

    log(f"Play time: {playlist_duration_ms / 3_600_000:.2f} hours")
    return track_ids
