"""
Factory for creating and configuring loggers.
"""

import logging
import sys
from typing import IO

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger

ROOT_NAME = "respawn"


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create_root(config: LogConfig, stream: IO[str] | None = None) -> Logger:
        """
        Create the supervisor's root logger.

        Args:
            config: Logger configuration
            stream: Output stream (defaults to stdout, shared with the child)

        Returns:
            Configured root logger

        Example:
            >>> lg = LoggerFactory.create_root(LogConfig.from_params("info"))
            >>> lg.info("watching", extra={"root": "/srv/app"})
            [respawn] [12:34:56,789] [I] watching [root:/srv/app]
        """
        lg = Logger(ROOT_NAME, config)
        level = logging.CRITICAL + 1 if config.level is False else config.level
        lg.setLevel(level)

        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a "view" logger that delegates to the root's handlers.

        Examples:
            >>> derived = LoggerFactory.derive(root, "process")
            >>> derived.name
            'respawn/process'
            >>> LoggerFactory.derive(root, ["watch", "files"]).name
            'respawn/watch/files'

        Args:
            parent: Parent logger instance
            tags: Single tag string OR list of tag strings to form hierarchy

        Returns:
            Derived logger sharing the parent's level and handlers
        """
        if isinstance(tags, str):
            tags = [tags]

        root = parent._root_logger if parent._root_logger else parent
        lg = Logger(parent.name + "/" + "/".join(tags), parent.config)
        lg.setLevel(parent.level)
        lg._root_logger = root
        lg.parent = parent
        lg.propagate = False
        return lg
