#!/usr/bin/env python3
"""
respawn - restart a script whenever its files change.

Usage:
    respawn app.py
    respawn --watch '**/*.py' --watch '**/*.toml' --delay 500 app.py
    RESPAWN_LOG_LEVEL=debug respawn app.py

While running, type `rs` and press enter to restart the script by hand.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from collections.abc import Sequence

import respawn
from respawn.config import (
    DEFAULT_DELAY_MS,
    DEFAULT_IGNORE,
    DEFAULT_KILL_TIMEOUT,
    DEFAULT_STOP_TIMEOUT,
    DEFAULT_WATCH,
    SupervisorConfig,
)
from respawn.exceptions import ConfigError
from respawn.log import LogConfig, LogConstants, LoggerFactory, LogError
from respawn.supervisor import Supervisor

EXIT_USAGE = 2

_EPILOG = """\
environment overrides:
  RESPAWN_EXEC, RESPAWN_WATCH, RESPAWN_IGNORE, RESPAWN_ROOT, RESPAWN_DELAY,
  RESPAWN_STOP_TIMEOUT, RESPAWN_KILL_TIMEOUT, RESPAWN_LOG_LEVEL, RESPAWN_COLORS
  (list values are comma-separated; command-line flags take precedence)

type `rs` and press enter to restart the script at any time.
"""


def version_string() -> str:
    """Version with the build commit appended when build info is available."""
    try:
        build_info = importlib.import_module("respawn._build_info")
    except ImportError:
        return f"respawn {respawn.__version__}"
    return f"respawn {respawn.__version__} ({build_info.COMMIT_SHORT})"


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="respawn",
        description="Run a script and restart it when watched files change.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("script", help="path of the script to supervise")
    parser.add_argument(
        "-x",
        "--exec",
        dest="executable",
        metavar="PROGRAM",
        help="interpreter that runs the script (default: the current python)",
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="append",
        metavar="GLOB",
        help=f"glob to watch, repeatable (default: {', '.join(DEFAULT_WATCH)})",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        metavar="GLOB",
        help=f"glob to ignore, repeatable (default: {', '.join(DEFAULT_IGNORE)})",
    )
    parser.add_argument(
        "--root",
        metavar="DIR",
        help="directory watched recursively (default: current directory)",
    )
    parser.add_argument(
        "-d",
        "--delay",
        dest="delay_ms",
        type=int,
        metavar="MS",
        help=f"quiet period before a file-change restart (default: {DEFAULT_DELAY_MS})",
    )
    parser.add_argument(
        "--stop-timeout",
        type=float,
        metavar="SECS",
        help=f"wait after SIGTERM before SIGKILL (default: {DEFAULT_STOP_TIMEOUT})",
    )
    parser.add_argument(
        "--kill-timeout",
        type=float,
        metavar="SECS",
        help=f"wait after SIGKILL before giving up (default: {DEFAULT_KILL_TIMEOUT})",
    )
    parser.add_argument(
        "--log-level",
        choices=[name for name in LogConstants.LEVEL_NAMES],
        help="supervisor log level (default: info)",
    )
    parser.add_argument(
        "--no-colors",
        dest="colors",
        action="store_const",
        const=False,
        help="disable colored diagnostics",
    )
    parser.add_argument("-v", "--version", action="version", version=version_string())
    return parser


def load_config(args: argparse.Namespace) -> SupervisorConfig:
    """Build the supervisor config from parsed arguments and the environment."""
    return SupervisorConfig.from_params(
        script=args.script,
        executable=args.executable,
        watch=args.watch,
        ignore=args.ignore,
        root=args.root,
        delay_ms=args.delay_ms,
        stop_timeout=args.stop_timeout,
        kill_timeout=args.kill_timeout,
        log_level=args.log_level,
        colors=args.colors,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the respawn CLI.

    Returns:
        Exit code; 2 for argument or configuration errors
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
        log_config = LogConfig.from_params(
            config.log_level, colors=config.colors and sys.stdout.isatty()
        )
    except (ConfigError, LogError) as e:
        print(f"respawn: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    lg = LoggerFactory.create_root(log_config)
    return Supervisor(config, lg).run()


if __name__ == "__main__":
    sys.exit(main())
