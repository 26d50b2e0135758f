"""
Log formatters for the logging system.

Renders supervisor diagnostics as a single line:

    [respawn] [12:34:56,789] [I] process exited [code:1]

with structured extra fields appended as [key:value] pairs, and optional ANSI
colors keyed on the record level.
"""

import collections
import logging
import time
from typing import Any

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants


def _extra_items(record: logging.LogRecord) -> list[tuple[str, Any]]:
    """Return the record's structured fields in display order."""
    extra = getattr(record, "__respawn__extra", None)
    if not extra:
        return []

    keys = list(extra.keys())
    if not isinstance(extra, collections.OrderedDict):
        keys = sorted(keys)
    return [(key, extra[key]) for key in keys]


def _render_value(value: Any) -> str:
    """Render a field value; exceptions collapse to their class and message."""
    if isinstance(value, BaseException):
        return f"{value.__class__.__name__}: {value}"
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    return str(value)


class LogFormatter(logging.Formatter):
    """
    Formatter producing tagged, optionally colored, single-line diagnostics.

    The tag and timestamp are dimmed, the level letter and message take the
    level color, and extra fields follow in brackets.
    """

    def __init__(self, config: LogConfig) -> None:
        """
        Initialize the log formatter.

        Args:
            config: Logger configuration (colors, micros)
        """
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self._config = config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format the wall-clock time as HH:MM:SS,mmm, optionally with microseconds."""
        if datefmt is not None:
            return super().formatTime(record, datefmt)
        s = time.strftime("%H:%M:%S", self.converter(record.created))
        s += f",{int(record.msecs):03d}"
        if self._config.micros:
            micros = int((record.created % 1) * 1000000) % 1000
            s += f".{micros:03d}"
        return s

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record.

        Args:
            record: Log record to format

        Returns:
            Formatted log line, followed by the traceback when exc_info is set
        """
        message = record.getMessage()
        asctime = self.formatTime(record)
        level = record.levelname[:1]
        fields = [f"[{k}:{_render_value(v)}]" for k, v in _extra_items(record)]

        if self._config.colors:
            line = self._format_colored(record.levelno, asctime, level, message, fields)
        else:
            line = f"{LogConstants.TAG} [{asctime}] [{level}] {message}"
            if fields:
                line += " " + " ".join(fields)

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line

    def _format_colored(
        self, levelno: int, asctime: str, level: str, message: str, fields: list[str]
    ) -> str:
        """Format the line parts with ANSI colors."""
        gray = ColorManager.create_gray_level(12) + "m"
        col = ColorManager.get_color_for_level(levelno)
        bold = ColorManager.create_bold_color(col)
        reset = ColorManager.RESET

        line = f"{gray}{LogConstants.TAG} [{asctime}]{reset} "
        line += f"{col}m[{bold}{level}{reset}{col}m]{reset} {bold}{message}{reset}"
        if fields:
            line += " " + col + "m" + " ".join(fields) + reset
        return line
