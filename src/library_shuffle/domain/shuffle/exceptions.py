"""Data-integrity exceptions raised while grouping tracks."""


class ShuffleError(Exception):
    """Base exception for shuffle grouping and assembly."""

    pass


class EmptyTrackGroupError(ShuffleError):
    """Raised when a track group would be built from no tracks."""

    pass


class MissingAlbumIdError(ShuffleError):
    """Raised when album partitioning meets a track without an album ID."""

    def __init__(self, track_name: str = ""):
        self.track_name = track_name
        super().__init__(f"Track has no album ID: {track_name!r}")


class MissingTrackIdError(ShuffleError):
    """Raised when a track without a Spotify ID is placed into a group.

    Local files have no catalogue ID; set missing_track_id = "skip" to drop
    them instead.
    """

    def __init__(self, track_name: str = ""):
        self.track_name = track_name
        super().__init__(f"Track has no Spotify ID: {track_name!r}")
