"""
Configuration for the logging system.

LogConfig is immutable so a logger's display settings cannot drift after the
handlers are built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable logger configuration.

    Attributes:
        level: Numeric log level, or False to disable logging entirely
        colors: Whether to emit ANSI colors
        micros: Whether to append microseconds to timestamps
    """

    level: int | bool = logging.INFO
    colors: bool = True
    micros: bool = False

    @staticmethod
    def _resolve_level(level: str | int | bool) -> int | bool:
        """Resolve level parameter to int or False."""
        from .constants import LogConstants
        from .exceptions import InvalidLogLevelError

        if isinstance(level, bool):
            return False if not level else logging.INFO
        elif isinstance(level, str):
            name = level.lower()
            if name.isnumeric():
                return int(name)
            elif name in LogConstants.LEVEL_NAMES:
                return LogConstants.LEVEL_NAMES[name]
            else:
                raise InvalidLogLevelError(level)
        return level

    @classmethod
    def from_params(
        cls,
        level: str | int | bool,
        colors: bool = True,
        micros: bool = False,
    ) -> LogConfig:
        """
        Create LogConfig from individual parameters.

        Args:
            level: Log level (string name, numeric value, or False to disable logging)
            colors: Whether to enable colored output
            micros: Whether to show microsecond precision

        Returns:
            LogConfig instance

        Raises:
            InvalidLogLevelError: If level is an unknown name
        """
        return cls(level=cls._resolve_level(level), colors=colors, micros=micros)
