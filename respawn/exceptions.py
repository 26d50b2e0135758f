"""
Unified exception hierarchy for the supervisor.

Every supervisor-specific error derives from RespawnError so callers can catch
them with a single except clause. Errors carry optional keyword context that
is rendered after the message.
"""

from typing import Any


class RespawnError(Exception):
    """
    Base exception for all supervisor errors.

    Example:
        try:
            config = SupervisorConfig.from_params(script="app.py", delay_ms=-1)
        except RespawnError as e:
            print(f"respawn: {e}")
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(RespawnError):
    """
    Configuration-related errors.

    Examples:
        - Negative debounce delay or timeout
        - Empty watch pattern list
        - Environment override with an unusable value
    """

    pass


class SpawnError(RespawnError):
    """
    Child process could not be launched.

    Raised internally when the OS refuses to start the command (not found,
    permission denied). The process handle converts it into an immediate
    exit so it never reaches the supervision loop.
    """

    pass


class TerminationError(RespawnError):
    """
    A termination signal could not be delivered to a process tree.

    The graceful path treats this as the cue to escalate to a forceful kill.
    """

    pass


class InvalidTransitionError(RespawnError):
    """Raised when the supervisor state machine is asked for an illegal transition."""

    pass
