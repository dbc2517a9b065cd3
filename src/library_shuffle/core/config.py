"""
Configuration management for Library Shuffle
"""

import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

# Playlists that are auto-generated by Spotify or are the shuffle output itself
DEFAULT_EXCLUDED_PLAYLISTS = ["Discover Weekly", "Starred", "Liked from Radio", "Shuffle"]

MISSING_TRACK_ID_POLICIES = ("abort", "skip")

# Spotify accepts at most 100 URIs per add-tracks call
MAX_BATCH_SIZE = 100


@dataclass
class SpotifyConfig:
    """Configuration for Spotify API access."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8888/callback"


@dataclass
class ShuffleConfig:
    """Configuration for grouping and assembling the shuffle playlist."""

    playlist_name: str = "Shuffle"
    playlist_description: str = "Automatically-generated shuffled playlist"
    excluded_playlists: List[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_PLAYLISTS)
    )
    min_album_duration_s: int = 600  # Runs this short are singles/intros, not albums
    mix_duration_min_s: int = 45 * 60
    mix_duration_max_s: int = 90 * 60
    batch_size: int = MAX_BATCH_SIZE
    default_goal_minutes: int = 1200
    missing_track_id: str = "abort"  # 'abort' or 'skip'

    def validate(self) -> None:
        """Validate shuffle configuration values.

        Raises:
            ValueError: If configuration values are invalid or of the wrong type
        """
        for key in ("playlist_name", "playlist_description", "missing_track_id"):
            if not isinstance(getattr(self, key), str):
                raise ValueError(f"{key} must be a string, got {getattr(self, key)!r}")
        if not isinstance(self.excluded_playlists, list) or not all(
            isinstance(name, str) for name in self.excluded_playlists
        ):
            raise ValueError(
                f"excluded_playlists must be a list of strings, got {self.excluded_playlists!r}"
            )
        for key in (
            "min_album_duration_s",
            "mix_duration_min_s",
            "mix_duration_max_s",
            "batch_size",
            "default_goal_minutes",
        ):
            value = getattr(self, key)
            # bool is an int subclass; TOML true/false is never a count
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer, got {value!r}")

        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        if self.mix_duration_min_s >= self.mix_duration_max_s:
            raise ValueError(
                "mix_duration_min_s must be smaller than mix_duration_max_s "
                f"({self.mix_duration_min_s} >= {self.mix_duration_max_s})"
            )
        if self.min_album_duration_s < 0:
            raise ValueError("min_album_duration_s must not be negative")
        if self.default_goal_minutes <= 0:
            raise ValueError("default_goal_minutes must be positive")
        if self.missing_track_id not in MISSING_TRACK_ID_POLICIES:
            raise ValueError(
                f"Invalid missing_track_id policy: {self.missing_track_id!r}. "
                f"Valid policies are: {MISSING_TRACK_ID_POLICIES}"
            )

    def denylist(self) -> set:
        """Playlist names never read as shuffle sources.

        The destination playlist is always included so it can't feed back
        into itself.
        """
        return set(self.excluded_playlists) | {self.playlist_name}


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Optional rotating log file in addition to stderr
    console_output: bool = True  # Progress lines on stderr; false leaves only log_file


@dataclass
class Config:
    """Main configuration container."""

    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    shuffle: ShuffleConfig = field(default_factory=ShuffleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "library-shuffle"
    return Path.home() / ".config" / "library-shuffle"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/library-shuffle (or ~/.config/library-shuffle)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "library-shuffle"
    return Path.home() / ".local" / "share" / "library-shuffle"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Library Shuffle Configuration

[spotify]
# Create an app at https://developer.spotify.com/dashboard
# Credentials can also be set with SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET
client_id = ""
client_secret = ""
redirect_uri = "http://localhost:8888/callback"

[shuffle]
# Destination playlist (created if missing, never used as a source)
playlist_name = "Shuffle"

# Playlists never used as shuffle sources
excluded_playlists = ["Discover Weekly", "Starred", "Liked from Radio", "Shuffle"]

# Album runs this short or shorter (seconds) are dropped
min_album_duration_s = 600

# Whole playlists strictly inside this range (seconds) are kept as one unit
mix_duration_min_s = 2700
mix_duration_max_s = 5400

# Tracks per add-tracks request (Spotify maximum is 100)
batch_size = 100

# Target playtime of the shuffle playlist
default_goal_minutes = 1200

# What to do with tracks that have no Spotify ID (local files): "abort" or "skip"
missing_track_id = "abort"

[logging]
level = "INFO"
# log_file = "~/.local/share/library-shuffle/library-shuffle.log"
# Set to false to log only to log_file
console_output = true
"""


def load_config() -> Config:
    """Load configuration from file or return defaults.

    Environment variables override TOML values:
    - SPOTIFY_CLIENT_ID
    - SPOTIFY_CLIENT_SECRET

    Raises:
        ValueError: If the file contains invalid shuffle settings
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config = Config()
    config_path = get_config_path()

    if config_path.exists():
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = parse_config(toml_data)
    else:
        ensure_config_file()
        print(f"Created default configuration at: {config_path}", file=sys.stderr)

    spotify_client_id = os.environ.get("SPOTIFY_CLIENT_ID")
    spotify_client_secret = os.environ.get("SPOTIFY_CLIENT_SECRET")

    if spotify_client_id:
        config.spotify.client_id = spotify_client_id
    if spotify_client_secret:
        config.spotify.client_secret = spotify_client_secret

    return config


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, falling back to defaults per key."""
    config = Config()

    if "spotify" in toml_data:
        spotify_data = toml_data["spotify"]
        config.spotify = SpotifyConfig(
            client_id=spotify_data.get("client_id", config.spotify.client_id),
            client_secret=spotify_data.get(
                "client_secret", config.spotify.client_secret
            ),
            redirect_uri=spotify_data.get("redirect_uri", config.spotify.redirect_uri),
        )

    if "shuffle" in toml_data:
        shuffle_data = toml_data["shuffle"]
        defaults = config.shuffle
        config.shuffle = ShuffleConfig(
            playlist_name=shuffle_data.get("playlist_name", defaults.playlist_name),
            playlist_description=shuffle_data.get(
                "playlist_description", defaults.playlist_description
            ),
            excluded_playlists=shuffle_data.get(
                "excluded_playlists", defaults.excluded_playlists
            ),
            min_album_duration_s=shuffle_data.get(
                "min_album_duration_s", defaults.min_album_duration_s
            ),
            mix_duration_min_s=shuffle_data.get(
                "mix_duration_min_s", defaults.mix_duration_min_s
            ),
            mix_duration_max_s=shuffle_data.get(
                "mix_duration_max_s", defaults.mix_duration_max_s
            ),
            batch_size=shuffle_data.get("batch_size", defaults.batch_size),
            default_goal_minutes=shuffle_data.get(
                "default_goal_minutes", defaults.default_goal_minutes
            ),
            missing_track_id=shuffle_data.get(
                "missing_track_id", defaults.missing_track_id
            ),
        )
        config.shuffle.validate()

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        for key in ("level", "log_file"):
            if key in logging_data and not isinstance(logging_data[key], str):
                raise ValueError(f"{key} must be a string, got {logging_data[key]!r}")
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level),
            log_file=str(Path(log_file).expanduser()) if log_file else None,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )
        if not isinstance(config.logging.console_output, bool):
            raise ValueError(
                f"console_output must be true or false, got {config.logging.console_output!r}"
            )

    return config


def ensure_config_file() -> Path:
    """Write the default config file if none exists and return its path."""
    config_path = get_config_path()
    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
    return config_path
