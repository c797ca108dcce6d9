"""Error handling — exception hierarchy for throttlekit."""

from throttlekit.errors.exceptions import (
    CommandFailedError,
    ConfigurationError,
    InvalidCallableError,
    InvalidTaskError,
    TaskClearedError,
    ThrottleKitError,
)

__all__ = [
    "CommandFailedError",
    "ThrottleKitError",
    "ConfigurationError",
    "InvalidCallableError",
    "InvalidTaskError",
    "TaskClearedError",
]
