from importlib.metadata import PackageNotFoundError, version

from .config import SupervisorConfig
from .exceptions import (
    ConfigError,
    InvalidTransitionError,
    RespawnError,
    SpawnError,
    TerminationError,
)
from .process import ChildProcess, TerminationController, spawn
from .supervisor import RestartReason, State, Supervisor
from .watch import FileWatcher, RestartDebouncer

# Version is read from package metadata (pyproject.toml)
try:
    __version__ = version("respawn")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.1.0-dev"

__all__ = [
    "__version__",
    # Core classes
    "ChildProcess",
    "FileWatcher",
    "RestartDebouncer",
    "RestartReason",
    "State",
    "Supervisor",
    "SupervisorConfig",
    "TerminationController",
    "spawn",
    # Exceptions
    "ConfigError",
    "InvalidTransitionError",
    "RespawnError",
    "SpawnError",
    "TerminationError",
]
