"""
Termination of a child process and all of its descendants.

Stopping is graceful first: SIGTERM goes to the child and every descendant.
If that signal cannot be delivered the controller escalates to SIGKILL at
once. Confirmation comes from the handle's exit event, bounded by two
timeouts: one after the graceful signal, one after the forceful one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import psutil

from ..config import DEFAULT_KILL_TIMEOUT, DEFAULT_STOP_TIMEOUT
from ..exceptions import TerminationError

if TYPE_CHECKING:
    from ..log import Logger
    from .handle import ChildProcess


def collect_tree(pid: int) -> list[psutil.Process]:
    """
    Return the process and all of its recursive descendants, parent first.

    Raises:
        psutil.Error: If the process cannot be looked up
    """
    parent = psutil.Process(pid)
    return [parent, *parent.children(recursive=True)]


def signal_tree(pid: int, force: bool = False) -> int:
    """
    Send SIGTERM (or SIGKILL when force is set) to a whole process tree.

    Descendants that exit while being signalled are skipped; failing to reach
    the root process is an error.

    Args:
        pid: Root process of the tree
        force: Send the forceful kill instead of the graceful signal

    Returns:
        Number of processes signalled

    Raises:
        TerminationError: If the tree cannot be looked up or the root
            process cannot be signalled
    """
    try:
        tree = collect_tree(pid)
    except psutil.Error as e:
        raise TerminationError("process tree lookup failed", pid=pid, error=e) from e

    sent = 0
    for proc in tree:
        try:
            if force:
                proc.kill()
            else:
                proc.terminate()
            sent += 1
        except psutil.NoSuchProcess:
            if proc.pid == pid:
                raise TerminationError("process vanished", pid=pid) from None
        except psutil.Error as e:
            if proc.pid == pid:
                raise TerminationError("signal delivery failed", pid=pid, error=e) from e
    return sent


class TerminationController:
    """
    Drives graceful-then-forceful shutdown of a child's process tree.

    Example:
        >>> terminator = TerminationController(lg, stop_timeout=10.0)
        >>> terminator.stop(child)
        True
    """

    def __init__(
        self,
        lg: Logger,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
    ) -> None:
        """
        Initialize the controller.

        Args:
            lg: Logger for termination diagnostics
            stop_timeout: Seconds to wait for exit after the graceful signal
            kill_timeout: Seconds to wait for exit after the forceful signal
        """
        self._lg = lg
        self._stop_timeout = stop_timeout
        self._kill_timeout = kill_timeout

    def stop(self, handle: ChildProcess) -> bool:
        """
        Stop a child and its descendants, waiting for confirmation.

        Args:
            handle: The process to stop

        Returns:
            True once the handle has exited; False if it is still alive
            after both timeouts
        """
        if handle.exited:
            return True

        handle.stop_requested = True
        self._terminate(handle)

        if handle.wait(self._stop_timeout):
            return True

        self._lg.warning(
            "process did not exit after SIGTERM, sending SIGKILL",
            extra={"pid": handle.pid, "timeout": self._stop_timeout},
        )
        self.kill(handle)

        if handle.wait(self._kill_timeout):
            return True

        self._lg.error(
            "process tree did not exit after SIGKILL",
            extra={"pid": handle.pid, "timeout": self._kill_timeout},
        )
        return False

    def _terminate(self, handle: ChildProcess) -> None:
        """Send the graceful signal, escalating at once if it cannot be sent."""
        if handle.pid is None:
            return
        try:
            count = signal_tree(handle.pid)
            self._lg.debug("sent SIGTERM", extra={"pid": handle.pid, "procs": count})
        except TerminationError as e:
            self._lg.debug("SIGTERM failed, escalating", extra={"error": e})
            self.kill(handle)

    def kill(self, handle: ChildProcess | None) -> None:
        """
        Forcefully kill a child's process tree (best-effort).

        Delivery failures are ignored.
        """
        if handle is None or handle.exited or handle.pid is None:
            return
        handle.stop_requested = True
        try:
            count = signal_tree(handle.pid, force=True)
            self._lg.debug("sent SIGKILL", extra={"pid": handle.pid, "procs": count})
        except TerminationError as e:
            self._lg.debug("SIGKILL failed", extra={"error": e})
