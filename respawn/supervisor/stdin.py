"""
Sharing the supervisor's stdin between the child and the reload command.

A single reader thread owns stdin. Each line is either the manual reload
command ("rs") or input for the child. While a child is attached, input is
forwarded to its stdin. When no child is attached, for instance after the
child exited on its own, the reader keeps consuming stdin so a later "rs"
is still seen.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from ..log import Logger
    from ..process import ChildProcess

RELOAD_COMMANDS = (b"rs\n", b"rs\r\n")


def is_reload_command(line: bytes) -> bool:
    """Check for a line that is exactly "rs" plus a line terminator."""
    return line in RELOAD_COMMANDS


class InputForwarder:
    """
    Reads stdin line by line, dispatching reload commands and child input.

    Example:
        >>> forwarder = InputForwarder(lg, sys.stdin.buffer, on_reload=request_reload)
        >>> forwarder.attach(child)
        >>> forwarder.start()
    """

    def __init__(
        self,
        lg: Logger,
        stream: IO[bytes],
        on_reload: Callable[[], None],
    ) -> None:
        """
        Initialize the forwarder.

        Args:
            lg: Logger for forwarding diagnostics
            stream: Binary input stream (the supervisor's stdin)
            on_reload: Called for every reload command line
        """
        self._lg = lg
        self._stream = stream
        self._on_reload = on_reload
        self._target: ChildProcess | None = None
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._eof = threading.Event()

    @property
    def target(self) -> ChildProcess | None:
        """The child currently receiving input, if any."""
        with self._lock:
            return self._target

    @property
    def at_eof(self) -> bool:
        return self._eof.is_set()

    def attach(self, child: ChildProcess) -> None:
        """
        Route subsequent input to a child's stdin.

        Once stdin has reached end of file, a newly attached child gets its
        stdin closed straight away instead.
        """
        with self._lock:
            if self._eof.is_set():
                self._target = None
                at_eof = True
            else:
                self._target = None if child.exited else child
                at_eof = False
        if at_eof:
            child.close_stdin()

    def detach(self) -> None:
        """Stop routing input to any child."""
        with self._lock:
            self._target = None

    def start(self) -> None:
        """Start the reader thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.run, name="respawn-stdin", daemon=True
        )
        self._thread.start()

    def run(self) -> None:
        """Read stdin until end of file."""
        for line in iter(self._stream.readline, b""):
            self.dispatch(line)
        self._on_eof()

    def dispatch(self, line: bytes) -> None:
        """Handle one line of input."""
        if is_reload_command(line):
            self._on_reload()
            return

        target = self.target
        if target is None:
            return

        try:
            target.write(line)
        except (OSError, ValueError):
            self._lg.debug(
                "child stdin closed, reading input directly",
                extra={"pid": target.pid},
            )
            with self._lock:
                if self._target is target:
                    self._target = None

    def _on_eof(self) -> None:
        """Propagate end of input to the attached child."""
        with self._lock:
            self._eof.set()
            target = self._target
            self._target = None
        self._lg.debug("stdin closed")
        if target is not None:
            target.close_stdin()
