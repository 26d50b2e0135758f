"""
The supervision loop.

One Supervisor owns the current child process and reacts to four kinds of
input: manual reload lines, debounced file changes, operator signals and the
child's own exit. Every source only posts an event to a queue. The loop
thread consumes the queue one event at a time, so restart and shutdown
sequences never interleave.

Usage:
    supervisor = Supervisor(config, lg)
    exit_code = supervisor.run()
"""

from __future__ import annotations

import queue
import signal
import sys
from dataclasses import dataclass
from enum import Enum
from types import FrameType
from typing import IO, TYPE_CHECKING, Any

from ..log import LoggerFactory
from ..process import ChildProcess, TerminationController, spawn
from ..watch import FileWatcher, RestartDebouncer
from .state import RestartReason, State, StateMachine
from .stdin import InputForwarder

if TYPE_CHECKING:
    from ..config import SupervisorConfig
    from ..log import Logger


# The child runs in its own session, so a terminal hangup only reaches us
SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGINT", "SIGHUP") if hasattr(signal, name)
)


class EventKind(Enum):
    RESTART = "restart"
    SHUTDOWN = "shutdown"
    EXITED = "exited"


@dataclass(frozen=True)
class SupervisorEvent:
    """Queue item posted by event sources and consumed by the loop."""

    kind: EventKind
    payload: Any = None


class Supervisor:
    """
    Supervises one child process, restarting it on change or on request.

    Args:
        config: Supervision settings
        lg: Root logger; component loggers are derived from it
        terminator: Termination controller (built from config if omitted)
        watcher: File watcher (built from config if omitted)
        stdin: Binary input stream shared with the child (default: stdin)
        handle_signals: Whether to install SIGINT/SIGTERM/SIGHUP handlers.
            Set to False when embedding the supervisor in a host that owns
            signal handling.
    """

    def __init__(
        self,
        config: SupervisorConfig,
        lg: Logger,
        terminator: TerminationController | None = None,
        watcher: FileWatcher | None = None,
        stdin: IO[bytes] | None = None,
        handle_signals: bool = True,
    ) -> None:
        self._config = config
        self._lg = lg
        self._proc_lg = LoggerFactory.derive(lg, "process")
        self._fsm = StateMachine()
        self._events: queue.SimpleQueue[SupervisorEvent] = queue.SimpleQueue()
        self._child: ChildProcess | None = None
        self._shutdown_signal: str | None = None
        self._exit_code = 0
        self._handle_signals = handle_signals
        self._original_handlers: dict[signal.Signals, Any] = {}

        self._terminator = terminator or TerminationController(
            self._proc_lg,
            stop_timeout=config.stop_timeout,
            kill_timeout=config.kill_timeout,
        )
        self._debouncer = RestartDebouncer(
            config.delay_ms,
            callback=lambda: self.request_restart(RestartReason.FILE_CHANGE),
        )
        self._watcher = watcher or FileWatcher(
            LoggerFactory.derive(lg, "watch"),
            root=config.root,
            patterns=config.watch,
            ignore=config.ignore,
            on_change=self._debouncer.notify,
        )
        self._forwarder = InputForwarder(
            LoggerFactory.derive(lg, "stdin"),
            stdin if stdin is not None else sys.stdin.buffer,
            on_reload=lambda: self.request_restart(RestartReason.MANUAL),
        )

    @property
    def state(self) -> State:
        return self._fsm.state

    @property
    def child(self) -> ChildProcess | None:
        """The current child handle (possibly already exited)."""
        return self._child

    @property
    def debouncer(self) -> RestartDebouncer:
        return self._debouncer

    @property
    def forwarder(self) -> InputForwarder:
        return self._forwarder

    @property
    def exit_code(self) -> int:
        return self._exit_code

    # -- event sources -----------------------------------------------------

    def request_restart(self, reason: RestartReason) -> None:
        """Ask the loop to restart the child. Safe from any thread."""
        self._events.put(SupervisorEvent(EventKind.RESTART, reason))

    def request_shutdown(self, signum: int) -> None:
        """
        Ask the loop to shut down because of a signal.

        A second request while a shutdown is already pending force-kills the
        current process tree instead of queueing another shutdown.
        """
        sig_name = signal.Signals(signum).name
        if self._shutdown_signal is not None:
            self._lg.warning(f"received {sig_name} again, killing process tree")
            self._terminator.kill(self._child)
            return
        self._shutdown_signal = sig_name
        self._exit_code = 128 + signum
        self._events.put(SupervisorEvent(EventKind.SHUTDOWN, sig_name))

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """Handle SIGTERM/SIGINT/SIGHUP by requesting shutdown."""
        self.request_shutdown(signum)

    def _on_child_exit(self, child: ChildProcess) -> None:
        self._events.put(SupervisorEvent(EventKind.EXITED, child))

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Spawn the first child and start every event source."""
        program, args = self._config.command
        self._lg.info(
            f"starting `{' '.join([program, *args])}`",
            extra={"delay_ms": self._config.delay_ms},
        )
        self._lg.info("to restart at any time, enter `rs`")

        self._spawn_child()
        self._start_watcher()
        if self._handle_signals:
            self._register_signal_handlers()
        self._forwarder.start()
        self._fsm.transition(State.RUNNING)

    def run(self) -> int:
        """
        Run until a termination signal has been handled.

        Returns:
            Process exit code: 128 + signal number after a signal, 1 if the
            final stop could not be confirmed
        """
        try:
            self.start()
            while self._fsm.state is not State.TERMINATED:
                self.step(timeout=1.0)
        finally:
            self._cleanup()
        return self._exit_code

    def step(self, timeout: float | None = None) -> bool:
        """
        Process at most one queued event.

        Args:
            timeout: Seconds to wait for an event, None to block

        Returns:
            True if an event was processed
        """
        try:
            event = self._events.get(timeout=timeout)
        except queue.Empty:
            return False
        self._dispatch(event)
        return True

    def _dispatch(self, event: SupervisorEvent) -> None:
        if self._fsm.state is State.TERMINATED:
            return
        if event.kind is EventKind.RESTART:
            self._restart(event.payload)
        elif event.kind is EventKind.SHUTDOWN:
            self._shutdown(event.payload)
        elif event.kind is EventKind.EXITED:
            self._handle_exit(event.payload)

    def _restart(self, reason: RestartReason) -> None:
        """Stop the current child, then spawn its replacement."""
        if self._shutdown_signal is not None or not self._fsm.can_transition(
            State.RESTARTING
        ):
            self._lg.debug(
                "ignoring restart request",
                extra={"reason": reason.value, "state": self._fsm.state.value},
            )
            return

        self._fsm.transition(State.RESTARTING)
        self._lg.info(f"{reason.value} detected, restarting process")
        self._forwarder.detach()

        if self._child is not None and not self._terminator.stop(self._child):
            self._lg.error(
                "previous process is still running, restart abandoned",
                extra={"pid": self._child.pid},
            )
            self._forwarder.attach(self._child)
            self._fsm.transition(State.RUNNING)
            return

        if self._shutdown_signal is not None:
            # Signal arrived while stopping; the queued shutdown takes over
            return

        self._spawn_child()
        self._fsm.transition(State.RUNNING)

    def _shutdown(self, sig_name: str) -> None:
        """Stop everything and terminate the loop."""
        self._lg.info(f"received {sig_name}, exiting")
        self._fsm.transition(State.SHUTTING_DOWN)
        self._debouncer.cancel()
        self._watcher.stop()
        self._forwarder.detach()

        if self._child is not None and not self._terminator.stop(self._child):
            self._exit_code = 1
        self._fsm.transition(State.TERMINATED)

    def _handle_exit(self, child: ChildProcess) -> None:
        """React to a child exit observed by its waiter."""
        if child is not self._child:
            return  # A replaced child finishing late
        self._forwarder.detach()
        if child.stop_requested or self._fsm.state is not State.RUNNING:
            return
        self._lg.info("waiting for a file change or `rs` before restarting")

    def _spawn_child(self) -> None:
        program, args = self._config.command
        self._child = spawn(
            program, args, on_exit=self._on_child_exit, lg=self._proc_lg
        )
        self._forwarder.attach(self._child)

    def _start_watcher(self) -> None:
        try:
            self._watcher.start()
        except OSError as e:
            self._lg.error(
                "cannot watch files, only `rs` restarts are available",
                extra={"root": str(self._config.root), "error": e},
            )
            return
        self._lg.info(
            "watching for changes",
            extra={"root": str(self._config.root), "watch": list(self._config.watch)},
        )

    def _register_signal_handlers(self) -> None:
        """Register shutdown handlers, keeping the originals."""
        for signum in SHUTDOWN_SIGNALS:
            self._original_handlers[signum] = signal.signal(
                signum, self._handle_signal
            )

    def _cleanup(self) -> None:
        if self._fsm.state is not State.TERMINATED:
            # Left the loop early; the child runs in its own session
            self._terminator.kill(self._child)
        self._debouncer.cancel()
        self._watcher.stop()
        for signum, handler in self._original_handlers.items():
            signal.signal(signum, handler)
        self._original_handlers.clear()
