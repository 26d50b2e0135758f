"""
Pytest configuration and shared fixtures.

This module provides central pytest configuration, custom markers,
and shared fixtures for the respawn test suite.
"""

import io
import os
import sys
import textwrap
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from respawn.log import LogConfig, Logger, LoggerFactory

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (threads, filesystem, real timers)"
    )
    config.addinivalue_line("markers", "e2e: End-to-end tests (real child processes)")
    config.addinivalue_line("markers", "slow: Tests that take >1 second to run")


def pytest_collection_modifyitems(config, items):
    """Add 'unit' marker to tests without other markers."""
    for item in items:
        if not any(
            mark.name in ["integration", "e2e"] for mark in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def log_stream() -> io.StringIO:
    """Stream receiving everything the test logger writes."""
    return io.StringIO()


@pytest.fixture
def lg(log_stream: io.StringIO) -> Generator[Logger, None, None]:
    """
    Debug-level, colorless root logger writing to log_stream.

    Yields:
        Logger: Root supervisor logger
    """
    logger = LoggerFactory.create_root(
        LogConfig.from_params("debug", colors=False), stream=log_stream
    )
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove RESPAWN_* overrides inherited from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("RESPAWN_"):
            monkeypatch.delenv(key)


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """
    Factory writing a dedented Python script into tmp_path.

    Returns:
        Callable taking (name, source) and returning the script path
    """

    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source))
        return path

    return _write


@pytest.fixture
def python() -> str:
    """Interpreter used for real child processes."""
    return sys.executable


