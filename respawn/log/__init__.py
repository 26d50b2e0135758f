"""
Logging for the supervisor.

Thin layer over the standard logging module that gives every supervisor
diagnostic the fixed "[respawn]" tag, optional ANSI colors and structured
[key:value] fields:

    lg = LoggerFactory.create_root(LogConfig.from_params("debug"))
    proc_lg = LoggerFactory.derive(lg, "process")
    proc_lg.info("process exited", extra={"code": 1})
"""

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants
from .exceptions import InvalidLogLevelError, LogError
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

__all__ = [
    "ColorManager",
    "InvalidLogLevelError",
    "LogConfig",
    "LogConstants",
    "LogError",
    "LogFormatter",
    "Logger",
    "LoggerFactory",
]
