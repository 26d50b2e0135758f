"""
Supervision loop, its state machine and stdin sharing.
"""

from .loop import EventKind, Supervisor, SupervisorEvent
from .state import TRANSITIONS, RestartReason, State, StateMachine
from .stdin import InputForwarder, is_reload_command

__all__ = [
    "EventKind",
    "InputForwarder",
    "RestartReason",
    "State",
    "StateMachine",
    "Supervisor",
    "SupervisorEvent",
    "TRANSITIONS",
    "is_reload_command",
]
