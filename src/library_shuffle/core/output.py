"""
Unified output system using Loguru.
Progress lines go to stderr; an optional rotating file keeps the full trace.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_loguru(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
) -> None:
    """
    Configure loguru for stderr progress output and optional file logging.

    Args:
        level: Minimum level for stderr output (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to a rotating log file (always DEBUG)
        console_output: Write progress lines to stderr
    """
    # Remove default handler
    logger.remove()

    if console_output:
        logger.add(
            sys.stderr,
            level=level.upper(),
            format="<level>{message}</level>",
            colorize=None,
        )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention=5,  # Keep 5 backup files
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
            enqueue=False,
        )
        logger.debug(f"Loguru initialized: {log_file} (level={level})")


def log(message: str, level: str = "info") -> None:
    """
    Write a user-facing progress message.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    # depth=1 attributes the record to the caller, not this helper
    log_func = getattr(logger.opt(depth=1), level)
    log_func(message)
