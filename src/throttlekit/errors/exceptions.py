"""Custom exception hierarchy for throttlekit."""

from __future__ import annotations

from typing import Any


class ThrottleKitError(Exception):
    """Base exception for all throttlekit errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ThrottleKitError, ValueError):
    """Invalid configuration value — bad wait, concurrency, or config file entry."""

    def __init__(
        self,
        message: str = "",
        field: str | None = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidCallableError(ThrottleKitError, TypeError):
    """Something that had to be callable was not."""

    def __init__(self, message: str = "Expected a callable", received: Any = None) -> None:
        super().__init__(message)
        self.received = received


class InvalidTaskError(InvalidCallableError):
    """A queue task was not a callable returning an awaitable."""


class TaskClearedError(ThrottleKitError):
    """A pending task was dropped by ``AsyncQueue.clear()`` before it started."""


class CommandFailedError(ThrottleKitError):
    """A shell command run by ``throttlekit run`` exited non-zero."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(f"Command exited with status {returncode}: {command}")
        self.command = command
        self.returncode = returncode
