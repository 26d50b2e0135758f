"""
Tests for SupervisorConfig and RESPAWN_* environment overrides.
"""

import dataclasses
import sys
from pathlib import Path

import pytest

from respawn.config import (
    DEFAULT_DELAY_MS,
    DEFAULT_IGNORE,
    DEFAULT_KILL_TIMEOUT,
    DEFAULT_STOP_TIMEOUT,
    DEFAULT_WATCH,
    SupervisorConfig,
    collect_env_overrides,
    convert_env_value,
)
from respawn.exceptions import ConfigError


@pytest.mark.unit
class TestConvertEnvValue:
    """Test environment value conversion."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("null", None),
            ("None", None),
            ("", None),
            ("true", True),
            ("FALSE", False),
            ("250", 250),
            ("1.5", 1.5),
            ("debug", "debug"),
            ("**/*.py,**/*.toml", ["**/*.py", "**/*.toml"]),
            ("a, ,b,", ["a", "b"]),
        ],
    )
    def test_conversion(self, raw, expected):
        """Test each supported value shape."""
        assert convert_env_value(raw) == expected


@pytest.mark.unit
class TestCollectEnvOverrides:
    """Test RESPAWN_* collection."""

    def test_maps_known_names(self):
        """Test known suffixes map to config fields."""
        environ = {
            "RESPAWN_DELAY": "250",
            "RESPAWN_EXEC": "python3.12",
            "RESPAWN_LOG_LEVEL": "debug",
        }
        assert collect_env_overrides(environ) == {
            "delay_ms": 250,
            "executable": "python3.12",
            "log_level": "debug",
        }

    def test_ignores_unknown_and_foreign_names(self):
        """Test unrelated variables are skipped."""
        environ = {"RESPAWN_BOGUS": "1", "DELAY": "5", "PATH": "/usr/bin"}
        assert collect_env_overrides(environ) == {}

    def test_null_values_dropped(self):
        """Test null values fall through to defaults."""
        assert collect_env_overrides({"RESPAWN_DELAY": "null"}) == {}


@pytest.mark.unit
class TestSupervisorConfigDefaults:
    """Test default values."""

    def test_defaults(self):
        """Test from_params with nothing set uses built-in defaults."""
        config = SupervisorConfig.from_params("app.py", environ={})

        assert config.script == "app.py"
        assert config.executable == sys.executable
        assert config.watch == DEFAULT_WATCH
        assert config.ignore == DEFAULT_IGNORE
        assert config.root == Path.cwd()
        assert config.delay_ms == DEFAULT_DELAY_MS == 1000
        assert config.stop_timeout == DEFAULT_STOP_TIMEOUT
        assert config.kill_timeout == DEFAULT_KILL_TIMEOUT
        assert config.log_level == "info"
        assert config.colors is True

    def test_command(self):
        """Test the child command is the interpreter plus the script."""
        config = SupervisorConfig.from_params(
            "app.py", environ={}, executable="/usr/bin/python3"
        )
        assert config.command == ("/usr/bin/python3", ["app.py"])

    def test_frozen(self):
        """Test config cannot be mutated after creation."""
        config = SupervisorConfig.from_params("app.py", environ={})
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.delay_ms = 5  # type: ignore[misc]


@pytest.mark.unit
class TestSupervisorConfigPrecedence:
    """Test CLI > environment > default precedence."""

    def test_env_overrides_default(self):
        """Test environment values replace defaults."""
        environ = {
            "RESPAWN_DELAY": "250",
            "RESPAWN_WATCH": "**/*.py,**/*.toml",
            "RESPAWN_COLORS": "false",
            "RESPAWN_LOG_LEVEL": "DEBUG",
        }
        config = SupervisorConfig.from_params("app.py", environ=environ)

        assert config.delay_ms == 250
        assert config.watch == ("**/*.py", "**/*.toml")
        assert config.colors is False
        assert config.log_level == "debug"

    def test_single_env_glob(self):
        """Test a single glob without commas becomes a one-element tuple."""
        config = SupervisorConfig.from_params(
            "app.py", environ={"RESPAWN_WATCH": "src/*.py"}
        )
        assert config.watch == ("src/*.py",)

    def test_param_overrides_env(self):
        """Test explicit parameters win over the environment."""
        config = SupervisorConfig.from_params(
            "app.py", environ={"RESPAWN_DELAY": "250"}, delay_ms=500
        )
        assert config.delay_ms == 500

    def test_none_params_fall_through(self):
        """Test None parameters do not mask environment values."""
        config = SupervisorConfig.from_params(
            "app.py", environ={"RESPAWN_DELAY": "250"}, delay_ms=None, watch=None
        )
        assert config.delay_ms == 250
        assert config.watch == DEFAULT_WATCH

    def test_root_resolved(self, tmp_path):
        """Test the watch root is made absolute."""
        config = SupervisorConfig.from_params("app.py", environ={}, root=str(tmp_path))
        assert config.root == tmp_path.resolve()

    def test_reads_os_environ_by_default(self, monkeypatch):
        """Test os.environ is consulted when no mapping is given."""
        monkeypatch.setenv("RESPAWN_STOP_TIMEOUT", "2.5")
        config = SupervisorConfig.from_params("app.py")
        assert config.stop_timeout == 2.5


@pytest.mark.unit
class TestSupervisorConfigValidation:
    """Test invalid values raise ConfigError."""

    def test_negative_delay(self):
        """Test a negative debounce delay is rejected."""
        with pytest.raises(ConfigError, match="delay_ms must not be negative"):
            SupervisorConfig.from_params("app.py", environ={}, delay_ms=-1)

    def test_non_numeric_env_delay(self):
        """Test a non-numeric environment delay is rejected."""
        with pytest.raises(ConfigError, match="delay_ms must be a number"):
            SupervisorConfig.from_params("app.py", environ={"RESPAWN_DELAY": "soon"})

    def test_bool_timeout(self):
        """Test booleans are not accepted as numbers."""
        with pytest.raises(ConfigError, match="stop_timeout must be a number"):
            SupervisorConfig.from_params(
                "app.py", environ={"RESPAWN_STOP_TIMEOUT": "true"}
            )

    def test_colors_not_bool(self):
        """Test colors must be true or false."""
        with pytest.raises(ConfigError, match="colors must be true or false"):
            SupervisorConfig.from_params("app.py", environ={"RESPAWN_COLORS": "yes"})

    def test_empty_watch(self):
        """Test at least one watch glob is required."""
        with pytest.raises(ConfigError, match="at least one glob"):
            SupervisorConfig.from_params("app.py", environ={}, watch=[])

    def test_unknown_parameter(self):
        """Test unknown keyword parameters are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            SupervisorConfig.from_params("app.py", environ={}, delay=5)
        assert exc_info.value.context["names"] == ["delay"]

    def test_zero_values_allowed(self):
        """Test zero delay and timeouts are valid."""
        config = SupervisorConfig.from_params(
            "app.py", environ={}, delay_ms=0, stop_timeout=0, kill_timeout=0
        )
        assert config.delay_ms == 0
        assert config.stop_timeout == 0.0
