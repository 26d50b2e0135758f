"""
Process handle for one supervised child.

A ChildProcess wraps a single spawned OS process. Its exited flag flips from
False to True exactly once, from one of two sources: an immediate spawn
failure, or the process's own termination observed by a background waiter
thread. Callers wait on that transition through an event, never by polling.
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
from collections.abc import Callable, Sequence
from typing import IO, TYPE_CHECKING

from ..exceptions import SpawnError

if TYPE_CHECKING:
    from ..log import Logger

ExitCallback = Callable[["ChildProcess"], None]


class ChildProcess:
    """
    Handle for one spawned child process.

    The child's stdout and stderr are inherited from the supervisor; its stdin
    is a pipe fed by the supervisor's input forwarder.

    Example:
        >>> child = spawn(sys.executable, ["app.py"], lg=lg)
        >>> child.wait(timeout=5.0)
        True
        >>> child.returncode
        0
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        lg: Logger | None = None,
        on_exit: ExitCallback | None = None,
    ) -> None:
        self.command = command
        self.args = list(args)
        self.pid: int | None = None
        self.returncode: int | None = None
        self.stop_requested = False
        self._lg = lg
        self._on_exit = on_exit
        self._popen: subprocess.Popen[bytes] | None = None
        self._exited = threading.Event()
        self._lock = threading.Lock()
        self._stdin_lock = threading.Lock()

    def __repr__(self) -> str:
        state = "exited" if self.exited else "running"
        return f"<ChildProcess pid={self.pid} {state}>"

    @property
    def exited(self) -> bool:
        """True once the process has terminated or failed to start."""
        return self._exited.is_set()

    @property
    def exit_signal(self) -> str | None:
        """Name of the signal that ended the process, if any."""
        if self.returncode is None or self.returncode >= 0:
            return None
        try:
            return signal.Signals(-self.returncode).name
        except ValueError:
            return f"signal {-self.returncode}"

    @property
    def display_name(self) -> str:
        """Short name of the supervised target for diagnostics."""
        return self.args[0] if self.args else self.command

    @property
    def stdin(self) -> IO[bytes] | None:
        return self._popen.stdin if self._popen is not None else None

    def start(self) -> ChildProcess:
        """
        Launch the process.

        A launch failure is absorbed: the handle is marked exited and an
        error diagnostic is emitted instead of raising.

        Returns:
            Self for chaining
        """
        try:
            self._popen = self._launch()
        except SpawnError as e:
            if self._lg:
                self._lg.error(
                    f"failed to start process {self.display_name}",
                    extra={"error": e.context.get("error", e.message)},
                )
            self._mark_exited(None)
            return self

        self.pid = self._popen.pid
        if self._lg:
            self._lg.debug(
                "started process",
                extra={"pid": self.pid, "cmd": " ".join([self.command, *self.args])},
            )
        waiter = threading.Thread(
            target=self._wait_for_exit, name=f"respawn-wait-{self.pid}", daemon=True
        )
        waiter.start()
        return self

    def _launch(self) -> subprocess.Popen[bytes]:
        """Start the OS process, translating OSError into SpawnError."""
        try:
            return subprocess.Popen(
                [self.command, *self.args],
                stdin=subprocess.PIPE,
                stdout=None,
                stderr=None,
                # Own process group so the whole tree can be signalled
                start_new_session=(os.name == "posix"),
            )
        except OSError as e:
            raise SpawnError(
                "failed to start process", command=self.command, error=e
            ) from e

    def _wait_for_exit(self) -> None:
        """Block until the process ends, then record the exit."""
        assert self._popen is not None
        returncode = self._popen.wait()
        self.close_stdin()
        self._mark_exited(returncode)

    def _mark_exited(self, returncode: int | None) -> None:
        """Flip the exited flag exactly once and notify listeners."""
        with self._lock:
            if self._exited.is_set():
                return
            self.returncode = returncode
            self._exited.set()

        if returncode is not None:
            self._log_exit()
        if self._on_exit is not None:
            self._on_exit(self)

    def _log_exit(self) -> None:
        if self._lg is None:
            return
        sig = self.exit_signal
        reason = f"signal {sig}" if sig else f"code {self.returncode}"
        extra = {"pid": self.pid}
        msg = f"process {self.display_name} exited with {reason}"
        if self.returncode == 0 or self.stop_requested:
            self._lg.info(msg, extra=extra)
        else:
            self._lg.warning(msg, extra=extra)

    def wait(self, timeout: float | None = None) -> bool:
        """
        Wait for the process to exit.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            True if the process has exited
        """
        return self._exited.wait(timeout)

    def write(self, data: bytes) -> None:
        """
        Forward bytes to the child's stdin.

        Raises:
            BrokenPipeError: If the child's stdin is closed
        """
        with self._stdin_lock:
            stream = self.stdin
            if stream is None or stream.closed:
                raise BrokenPipeError("child stdin is closed")
            stream.write(data)
            stream.flush()

    def close_stdin(self) -> None:
        """Close the child's stdin; safe to call more than once."""
        with self._stdin_lock:
            stream = self.stdin
            if stream is None or stream.closed:
                return
            try:
                stream.close()
            except OSError:
                pass  # Child already gone; the pipe is unusable either way


def spawn(
    command: str,
    args: Sequence[str],
    on_exit: ExitCallback | None = None,
    lg: Logger | None = None,
) -> ChildProcess:
    """
    Spawn a child process and return its handle.

    Never raises for launch failures; check ``handle.exited`` instead.

    Args:
        command: Program to execute
        args: Program arguments
        on_exit: Called with the handle once the process has exited
        lg: Logger for process diagnostics

    Returns:
        ChildProcess handle
    """
    return ChildProcess(command, args, lg=lg, on_exit=on_exit).start()
