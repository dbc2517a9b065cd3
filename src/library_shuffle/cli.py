"""
Library Shuffle CLI - Entry point

Shuffles the user's entire Spotify library into one playlist.
"""

import argparse
import random
import sys
from pathlib import Path
from typing import Optional

import requests
from loguru import logger

from library_shuffle.core.config import Config, load_config
from library_shuffle.core.console import safe_print
from library_shuffle.core.output import setup_loguru
from library_shuffle.domain.library.providers import spotify
from library_shuffle.domain.library.providers.spotify.exceptions import SpotifyError
from library_shuffle.domain.shuffle import ShuffleError, shuffle_library


def run_shuffle_library(
    config: Config, goal_minutes: Optional[float] = None, seed: Optional[int] = None
) -> int:
    """Run the shuffle and report the result.

    Args:
        config: Loaded configuration
        goal_minutes: Override for the target playtime
        seed: Seed for a reproducible group order

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    goal_duration_s = goal_minutes * 60 if goal_minutes is not None else None
    rng = random.Random(seed) if seed is not None else None

    try:
        client = spotify.init_client(config)
        result = shuffle_library(client, config.shuffle, goal_duration_s=goal_duration_s, rng=rng)
    except (SpotifyError, ShuffleError, requests.RequestException) as e:
        logger.opt(exception=e).debug("Shuffle failed")
        safe_print(f"Error: {e}", style="bold red")
        return 1

    action = "Created" if result.created else "Updated"
    safe_print(
        f"✓ {action} playlist {config.shuffle.playlist_name!r}: "
        f"{result.track_count} tracks from {result.group_count} groups",
        style="green",
    )
    return 0


def run_auth(config: Config) -> int:
    """Force a fresh Spotify login and store the tokens."""
    try:
        spotify.auth.get_token_manager(config.spotify, force_login=True)
    except (SpotifyError, requests.RequestException) as e:
        safe_print(f"Error: {e}", style="bold red")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="library-shuffle",
        description="Shuffle your entire Spotify library into one playlist",
    )
    parser.add_argument(
        "--log-level",
        help="Override the configured log level (DEBUG, INFO, WARNING, ERROR)",
    )

    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    shuffle_parser = subparsers.add_parser(
        "shuffle-library", help="Shuffle the user's entire library into a playlist"
    )
    shuffle_parser.add_argument(
        "--goal-minutes",
        type=float,
        help="Target playtime in minutes (default from config: 1200 minutes, i.e. 20 hours)",
    )
    shuffle_parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for a reproducible shuffle",
    )

    subparsers.add_parser("auth", help="Log in to Spotify again and store new tokens")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the library-shuffle command."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except (ValueError, OSError) as e:
        safe_print(f"Error loading configuration: {e}", style="bold red")
        sys.exit(1)

    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    setup_loguru(
        level=args.log_level or config.logging.level,
        log_file=log_file,
        console_output=config.logging.console_output,
    )

    if args.subcommand == "shuffle-library":
        sys.exit(run_shuffle_library(config, goal_minutes=args.goal_minutes, seed=args.seed))
    elif args.subcommand == "auth":
        sys.exit(run_auth(config))


if __name__ == "__main__":
    main()
