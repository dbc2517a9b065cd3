"""Tests for configuration loading."""

from pathlib import Path

import pytest

from library_shuffle.core import config as config_module
from library_shuffle.core.config import (
    DEFAULT_EXCLUDED_PLAYLISTS,
    Config,
    ShuffleConfig,
    load_config,
    parse_config,
)


@pytest.fixture
def config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG dirs and cwd at a temp directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)
    monkeypatch.delenv("SPOTIFY_CLIENT_SECRET", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path / "config" / "library-shuffle"


class TestShuffleConfig:
    """Tests for ShuffleConfig defaults and validation."""

    def test_defaults(self) -> None:
        """Defaults keep the historical thresholds."""
        shuffle = ShuffleConfig()
        assert shuffle.playlist_name == "Shuffle"
        assert shuffle.min_album_duration_s == 600
        assert (shuffle.mix_duration_min_s, shuffle.mix_duration_max_s) == (2700, 5400)
        assert shuffle.batch_size == 100
        assert shuffle.default_goal_minutes == 1200
        assert shuffle.missing_track_id == "abort"
        shuffle.validate()

    def test_denylist_includes_destination(self) -> None:
        """The destination playlist is always excluded as a source."""
        shuffle = ShuffleConfig(playlist_name="Mixtape", excluded_playlists=["Starred"])
        assert shuffle.denylist() == {"Starred", "Mixtape"}

    def test_default_denylist(self) -> None:
        """The default denylist covers generated playlists and the destination."""
        assert ShuffleConfig().denylist() == set(DEFAULT_EXCLUDED_PLAYLISTS)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"batch_size": 0},
            {"batch_size": 101},
            {"mix_duration_min_s": 5400, "mix_duration_max_s": 2700},
            {"min_album_duration_s": -1},
            {"default_goal_minutes": 0},
            {"missing_track_id": "ignore"},
        ],
    )
    def test_invalid_values(self, overrides: dict) -> None:
        """Out-of-range knobs are rejected."""
        with pytest.raises(ValueError):
            ShuffleConfig(**overrides).validate()


class TestParseConfig:
    """Tests for parse_config function."""

    def test_empty_gives_defaults(self) -> None:
        """Missing sections fall back to defaults."""
        assert parse_config({}) == Config()

    def test_partial_sections(self) -> None:
        """Only the given keys override defaults."""
        config = parse_config(
            {
                "spotify": {"client_id": "abc"},
                "shuffle": {"batch_size": 50, "missing_track_id": "skip"},
                "logging": {"level": "DEBUG"},
            }
        )
        assert config.spotify.client_id == "abc"
        assert config.spotify.redirect_uri == "http://localhost:8888/callback"
        assert config.shuffle.batch_size == 50
        assert config.shuffle.missing_track_id == "skip"
        assert config.shuffle.min_album_duration_s == 600
        assert config.logging.level == "DEBUG"

    def test_invalid_shuffle_section_raises(self) -> None:
        """Invalid knobs in the file are reported."""
        with pytest.raises(ValueError):
            parse_config({"shuffle": {"batch_size": 500}})

    @pytest.mark.parametrize(
        "section, key, value",
        [
            ("shuffle", "batch_size", "50"),
            ("shuffle", "min_album_duration_s", 600.5),
            ("shuffle", "default_goal_minutes", True),
            ("shuffle", "playlist_name", 7),
            ("shuffle", "excluded_playlists", "Starred"),
            ("logging", "level", 10),
            ("logging", "console_output", "no"),
        ],
    )
    def test_wrongly_typed_value_names_key(self, section: str, key: str, value) -> None:
        """A value of the wrong TOML type is a ValueError naming the key."""
        with pytest.raises(ValueError, match=key):
            parse_config({section: {key: value}})

    def test_console_output(self) -> None:
        """console_output defaults on and can be switched off."""
        assert Config().logging.console_output is True
        config = parse_config({"logging": {"console_output": False}})
        assert config.logging.console_output is False


class TestLoadConfig:
    """Tests for load_config function."""

    def test_creates_default_file(self, config_home: Path) -> None:
        """A missing config file is written with defaults."""
        config = load_config()
        assert config == Config()
        assert (config_home / "config.toml").exists()

    def test_default_file_parses_to_defaults(self, config_home: Path) -> None:
        """The generated template round-trips to the default config."""
        load_config()
        assert load_config() == Config()

    def test_reads_cwd_config(self, config_home: Path, tmp_path: Path) -> None:
        """config.toml in the working directory wins."""
        (tmp_path / "config.toml").write_text('[shuffle]\nplaylist_name = "Mix"\n')
        assert load_config().shuffle.playlist_name == "Mix"

    def test_env_overrides_credentials(
        self, config_home: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """SPOTIFY_CLIENT_ID/SECRET override the file."""
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "env-id")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "env-secret")
        config = load_config()
        assert config.spotify.client_id == "env-id"
        assert config.spotify.client_secret == "env-secret"

    def test_data_dir_follows_xdg(self, config_home: Path, tmp_path: Path) -> None:
        """Data dir honours XDG_DATA_HOME."""
        assert config_module.get_data_dir() == tmp_path / "data" / "library-shuffle"
