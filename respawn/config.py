"""
Supervisor configuration.

SupervisorConfig gathers every tunable of a supervision run into one immutable
object. Values come from three layers, highest precedence first:

1. Command-line flags (passed to from_params as keyword arguments)
2. Environment variables prefixed with RESPAWN_ (e.g. RESPAWN_DELAY=250)
3. Built-in defaults

Environment Variable Override Format:
    RESPAWN_<FIELD>=value

Examples:
    RESPAWN_DELAY=500
    RESPAWN_WATCH=**/*.py,**/*.toml
    RESPAWN_LOG_LEVEL=debug
    RESPAWN_COLORS=false
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ConfigError

ENV_PREFIX = "RESPAWN_"

DEFAULT_WATCH: tuple[str, ...] = ("**/*.py", "**/*.json", "**/*.env", "**/*.env.*")
DEFAULT_IGNORE: tuple[str, ...] = ("**/.venv/**", "**/__pycache__/**", "**/.git/**")
DEFAULT_DELAY_MS = 1000
DEFAULT_STOP_TIMEOUT = 10.0
DEFAULT_KILL_TIMEOUT = 5.0

# Environment suffix -> from_params keyword
_ENV_FIELDS: dict[str, str] = {
    "EXEC": "executable",
    "WATCH": "watch",
    "IGNORE": "ignore",
    "ROOT": "root",
    "DELAY": "delay_ms",
    "STOP_TIMEOUT": "stop_timeout",
    "KILL_TIMEOUT": "kill_timeout",
    "LOG_LEVEL": "log_level",
    "COLORS": "colors",
}


def convert_env_value(value: str) -> bool | int | float | str | list[Any] | None:
    """
    Convert environment variable string to appropriate type.

    Args:
        value: Environment variable value as string

    Returns:
        None for null/none/empty, bool for true/false, a list for
        comma-separated values, int/float for numbers, else the string
    """
    if value.lower() in ("null", "none", ""):
        return None

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    if "," in value:
        return [convert_env_value(v.strip()) for v in value.split(",") if v.strip()]

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    return value


def collect_env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Collect RESPAWN_* variables as from_params keyword arguments.

    Unknown RESPAWN_* names are ignored; null values are dropped so the
    default applies.
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = _ENV_FIELDS.get(key[len(ENV_PREFIX) :])
        if name is None:
            continue
        value = convert_env_value(raw)
        if value is not None:
            overrides[name] = value
    return overrides


def _as_globs(value: Any, name: str) -> tuple[str, ...]:
    """Normalize a glob option given as a string or a sequence of strings."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"{name} must be a glob or a list of globs", value=value)
    return tuple(str(v) for v in value)


def _as_float(value: Any, name: str) -> float:
    """Validate a non-negative number."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number", value=value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number", value=value) from None
    if number < 0:
        raise ConfigError(f"{name} must not be negative", value=value)
    return number


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{name} must be true or false", value=value)


@dataclass(frozen=True)
class SupervisorConfig:
    """
    Immutable configuration for one supervision run.

    Attributes:
        script: Path of the script run by the child
        executable: Interpreter used to run the script
        watch: Globs (relative to root) whose changes trigger a restart
        ignore: Globs excluded from watching
        root: Directory watched recursively
        delay_ms: Debounce quiet period before a file-change restart
        stop_timeout: Seconds to wait after the graceful signal
        kill_timeout: Seconds to wait after the forceful signal
        log_level: Supervisor log level name
        colors: Whether diagnostics use ANSI colors
    """

    script: str
    executable: str = field(default_factory=lambda: sys.executable)
    watch: tuple[str, ...] = DEFAULT_WATCH
    ignore: tuple[str, ...] = DEFAULT_IGNORE
    root: Path = field(default_factory=Path.cwd)
    delay_ms: int = DEFAULT_DELAY_MS
    stop_timeout: float = DEFAULT_STOP_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT
    log_level: str = "info"
    colors: bool = True

    @property
    def command(self) -> tuple[str, list[str]]:
        """The child command as (program, args)."""
        return self.executable, [self.script]

    @classmethod
    def from_params(
        cls,
        script: str,
        environ: Mapping[str, str] | None = None,
        **params: Any,
    ) -> SupervisorConfig:
        """
        Build a validated config from explicit parameters and the environment.

        Parameters given as None are treated as absent, so argparse defaults
        of None fall through to the environment and then to the defaults.

        Args:
            script: Path of the script to supervise
            environ: Environment mapping (defaults to os.environ)
            **params: Any SupervisorConfig field except script

        Returns:
            SupervisorConfig instance

        Raises:
            ConfigError: If a value is invalid or a parameter is unknown
        """
        unknown = set(params) - set(_ENV_FIELDS.values())
        if unknown:
            raise ConfigError("unknown config parameters", names=sorted(unknown))

        merged = collect_env_overrides(environ)
        merged.update({k: v for k, v in params.items() if v is not None})

        values: dict[str, Any] = {"script": script}
        if "executable" in merged:
            values["executable"] = str(merged["executable"])
        if "watch" in merged:
            values["watch"] = _as_globs(merged["watch"], "watch")
            if not values["watch"]:
                raise ConfigError("watch must name at least one glob")
        if "ignore" in merged:
            values["ignore"] = _as_globs(merged["ignore"], "ignore")
        if "root" in merged:
            values["root"] = Path(str(merged["root"])).expanduser().resolve()
        if "delay_ms" in merged:
            values["delay_ms"] = int(_as_float(merged["delay_ms"], "delay_ms"))
        if "stop_timeout" in merged:
            values["stop_timeout"] = _as_float(merged["stop_timeout"], "stop_timeout")
        if "kill_timeout" in merged:
            values["kill_timeout"] = _as_float(merged["kill_timeout"], "kill_timeout")
        if "log_level" in merged:
            values["log_level"] = str(merged["log_level"]).lower()
        if "colors" in merged:
            values["colors"] = _as_bool(merged["colors"], "colors")

        return cls(**values)
