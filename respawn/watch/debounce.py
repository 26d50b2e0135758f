"""
Trailing-edge debouncing of file-change notifications.
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any, Protocol

from ..config import DEFAULT_DELAY_MS


class Timer(Protocol):
    """The subset of threading.Timer the debouncer relies on."""

    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], Any]], Timer]


class RestartDebouncer:
    """
    Coalesces bursts of change notifications into one delayed callback.

    Each notify() cancels the pending timer and starts a new one, so a burst
    of N notifications fires the callback once, delay_ms after the last of
    them.

    Example:
        >>> debouncer = RestartDebouncer(1000, on_quiet)
        >>> debouncer.notify()  # t=0
        >>> debouncer.notify()  # t=200ms, replaces the first timer
        >>> # on_quiet() runs at t=1200ms
    """

    def __init__(
        self,
        delay_ms: int = DEFAULT_DELAY_MS,
        callback: Callable[[], None] | None = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            delay_ms: Quiet period in milliseconds
            callback: Called once the quiet period elapses
            timer_factory: Creates timers; threading.Timer outside tests
        """
        self._delay_ms = delay_ms
        self._callback = callback
        self._timer_factory = timer_factory
        self._timer: Timer | None = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        """Check if a restart is scheduled."""
        with self._lock:
            return self._timer is not None

    def notify(self) -> None:
        """Record a change and (re)start the quiet period."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

            # A late-firing superseded timer must not clear its replacement
            self._generation += 1
            timer = self._timer_factory(
                self._delay_ms / 1000.0,
                functools.partial(self._fire, self._generation),
            )
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        """Drop the pending timer, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._timer is None or generation != self._generation:
                return
            self._timer = None
        if self._callback is not None:
            self._callback()
