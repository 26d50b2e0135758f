"""
File watcher that reports changes under a directory tree.

Uses the watchdog library for efficient file system monitoring. The watcher
does not debounce on its own; every matching event is reported to the
on_change callback, which is normally RestartDebouncer.notify.
"""

from __future__ import annotations

import fnmatch
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..log import Logger


def matches_any(rel_path: str, globs: Iterable[str]) -> bool:
    """
    Check a slash-separated relative path against fnmatch-style globs.

    A leading "**/" also matches at the top level, so "**/*.py" matches both
    "app.py" and "pkg/mod.py".

    Args:
        rel_path: Path relative to the watch root, using "/" separators
        globs: Patterns to test

    Returns:
        True if any pattern matches
    """
    for pattern in globs:
        if fnmatch.fnmatchcase(rel_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatchcase(rel_path, pattern[3:]):
            return True
    return False


class FileWatcher:
    """
    Watches a directory tree and notifies a callback on matching changes.

    Files that already exist when watching starts produce no events; only
    later creations, modifications, deletions and moves are reported.

    Example:
        >>> watcher = FileWatcher(
        ...     lg, root=Path.cwd(), patterns=["**/*.py"], ignore=["**/.venv/**"],
        ...     on_change=debouncer.notify,
        ... )
        >>> watcher.start()
        >>> # edits to *.py files now call debouncer.notify()
        >>> watcher.stop()

    Note:
        Requires the watchdog package.
    """

    def __init__(
        self,
        lg: Logger,
        root: str | Path,
        patterns: Iterable[str],
        ignore: Iterable[str] = (),
        on_change: Callable[[], None] | None = None,
    ) -> None:
        """
        Initialize the watcher.

        Args:
            lg: Logger for watcher's own logging
            root: Directory watched recursively
            patterns: Globs (relative to root) that count as changes
            ignore: Globs excluded even when a pattern matches
            on_change: Called once per matching file system event
        """
        self._lg = lg
        self._root = Path(root).resolve()
        self._patterns = tuple(patterns)
        self._ignore = tuple(ignore)
        self._on_change = on_change
        self._observer: Any = None  # watchdog Observer
        self._lock = threading.RLock()
        self._running = False

    @property
    def root(self) -> Path:
        return self._root

    def is_relevant(self, path: str | Path) -> bool:
        """Check whether a changed path should trigger a restart."""
        try:
            rel = Path(path).resolve().relative_to(self._root).as_posix()
        except ValueError:
            return False  # Outside the watch root
        if matches_any(rel, self._ignore):
            return False
        return matches_any(rel, self._patterns)

    def _handle_event(self, event: Any) -> None:
        """Filter a watchdog event and report it if relevant."""
        if event.is_directory:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        if not any(self.is_relevant(p) for p in paths):
            return

        self._lg.debug("file changed", extra={"event": event.event_type, "path": paths[-1]})
        if self._on_change is not None:
            self._on_change()

    def _create_event_handler(self) -> Any:  # pragma: no cover
        """Create watchdog event handler forwarding to _handle_event."""
        from watchdog.events import FileSystemEventHandler

        watcher = self  # Closure reference

        class ChangeHandler(FileSystemEventHandler):  # type: ignore[misc]
            def on_any_event(self, event: Any) -> None:
                if event.event_type in ("created", "modified", "deleted", "moved"):
                    watcher._handle_event(event)

        return ChangeHandler()

    def start(self) -> None:
        """
        Start watching for file changes.

        Raises:
            ImportError: If watchdog is not installed
            OSError: If the root is missing or cannot be watched
        """
        try:
            from watchdog.observers import Observer
        except ImportError:
            raise ImportError(
                "watchdog is required for file watching. Install with: pip install watchdog"
            ) from None

        if not self._root.is_dir():
            raise NotADirectoryError(f"watch root is not a directory: {self._root}")

        with self._lock:
            if self._running:
                return
            observer = Observer()
            observer.schedule(
                self._create_event_handler(), str(self._root), recursive=True
            )
            observer.daemon = True
            observer.start()
            self._observer = observer
            self._running = True

        self._lg.debug(
            "watching for changes",
            extra={"root": str(self._root), "patterns": list(self._patterns)},
        )

    def stop(self) -> None:
        """Stop watching for file changes."""
        with self._lock:
            if self._observer is not None:
                self._observer.stop()
                self._observer.join(timeout=2.0)
                self._observer = None
            self._running = False

    def is_running(self) -> bool:
        """Check if watcher is active."""
        with self._lock:
            return self._running
