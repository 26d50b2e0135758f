"""
Constants for the logging system.

Format strings, level names and ANSI sequences shared by the formatter and the
color manager.
"""

import logging


class LogConstants:
    """Constants for the logging system."""

    # Fixed tag that opens every supervisor diagnostic line
    TAG: str = "[respawn]"

    DEFAULT_FORMAT: str = TAG + " [%(asctime)s] [%(levelname).1s] %(message)s"

    LEVEL_NAMES: dict[str, int | bool] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
        "false": False,  # Special value to disable all logging
    }

    # ANSI escape sequences
    RESET: str = "\x1b[0m"

    # Gray level range used for the tag and metadata
    GRAY_BASE: int = 232
    GRAY_MAX_LEVELS: int = 24
