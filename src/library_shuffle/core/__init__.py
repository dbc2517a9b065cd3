"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Output and logging (Loguru)
- Console management (Rich)
"""

from .config import (
    Config,
    LoggingConfig,
    ShuffleConfig,
    SpotifyConfig,
    ensure_config_file,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)
from .console import get_console, safe_print
from .output import log, setup_loguru

__all__ = [
    "Config",
    "LoggingConfig",
    "ShuffleConfig",
    "SpotifyConfig",
    "ensure_config_file",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    "get_console",
    "safe_print",
    "log",
    "setup_loguru",
]
