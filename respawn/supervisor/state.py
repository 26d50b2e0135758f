"""
Supervisor state machine.

The legal transitions are listed in one table so an illegal move, such as
starting a restart during shutdown, fails loudly instead of racing.
"""

from __future__ import annotations

from enum import Enum

from ..exceptions import InvalidTransitionError


class State(Enum):
    """Lifecycle states of the supervision loop."""

    STARTING = "starting"
    RUNNING = "running"
    RESTARTING = "restarting"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class RestartReason(Enum):
    """Why a restart was requested; the value is used in diagnostics."""

    MANUAL = "Manual reload"
    FILE_CHANGE = "File change"


TRANSITIONS: dict[State, frozenset[State]] = {
    State.STARTING: frozenset({State.RUNNING, State.SHUTTING_DOWN}),
    State.RUNNING: frozenset({State.RESTARTING, State.SHUTTING_DOWN}),
    State.RESTARTING: frozenset({State.RUNNING, State.SHUTTING_DOWN}),
    State.SHUTTING_DOWN: frozenset({State.TERMINATED}),
    State.TERMINATED: frozenset(),
}


class StateMachine:
    """
    Holds the current state and enforces TRANSITIONS.

    Example:
        >>> fsm = StateMachine()
        >>> fsm.transition(State.RUNNING)
        >>> fsm.can_transition(State.TERMINATED)
        False
    """

    def __init__(self, initial: State = State.STARTING) -> None:
        self._state = initial

    @property
    def state(self) -> State:
        return self._state

    def can_transition(self, target: State) -> bool:
        return target in TRANSITIONS[self._state]

    def transition(self, target: State) -> None:
        """
        Move to a new state.

        Raises:
            InvalidTransitionError: If target is not reachable from the
                current state
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(
                "illegal state transition",
                source=self._state.value,
                target=target.value,
            )
        self._state = target
