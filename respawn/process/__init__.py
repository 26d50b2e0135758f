"""
Child process lifecycle: spawning, exit tracking and tree termination.
"""

from .handle import ChildProcess, spawn
from .terminate import TerminationController, collect_tree, signal_tree

__all__ = [
    "ChildProcess",
    "TerminationController",
    "collect_tree",
    "signal_tree",
    "spawn",
]
