"""
Logger class for the logging system.

Extends the standard logger with structured extra fields and handler sharing
between a root logger and its derived "view" loggers.
"""

import logging
from typing import Any

from .config import LogConfig


class Logger(logging.Logger):
    """
    Logger whose records carry structured extra fields.

    Extra fields are stored on the record under a private attribute instead of
    being merged into the record's __dict__, so keys such as "message" or
    "name" never collide with LogRecord attributes.
    """

    def __init__(
        self,
        name: str,
        config: LogConfig | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the logger.

        Args:
            name: Logger name
            config: Logger configuration (defaults to info level)
            extra: Pre-populated extra fields added to every record
        """
        if config is None:
            config = LogConfig.from_params("info")

        if config.level is False:
            super().__init__(name, logging.CRITICAL + 1)
        else:
            super().__init__(name, config.level)

        self._config = config
        self._extra = extra or {}
        self._root_logger: Logger | None = None  # Set for derived "view" loggers

    @property
    def config(self) -> LogConfig:
        """Get logger configuration."""
        return self._config

    def makeRecord(
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: dict[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        """Create log record and attach merged extra fields."""
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func=func, sinfo=sinfo
        )
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        # setattr avoids name mangling of the double-underscore prefix
        setattr(record, "__respawn__extra", merged)
        return record

    def callHandlers(self, record: logging.LogRecord) -> None:
        """
        Pass a record to all relevant handlers.

        Derived "view" loggers delegate to the root logger's handlers instead
        of holding their own.
        """
        if self._root_logger is not None:
            for handler in self._root_logger.handlers:
                if record.levelno >= handler.level:
                    handler.handle(record)
        else:
            super().callHandlers(record)
