"""
Change detection: the watchdog file watcher and the restart debouncer.
"""

from .debounce import RestartDebouncer
from .files import FileWatcher, matches_any

__all__ = ["FileWatcher", "RestartDebouncer", "matches_any"]
