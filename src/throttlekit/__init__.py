"""throttlekit — call-rate throttling and concurrency-limited async queues."""

from throttlekit.errors import (
    ConfigurationError,
    InvalidCallableError,
    InvalidTaskError,
    TaskClearedError,
    ThrottleKitError,
)
from throttlekit.queue import AsyncQueue
from throttlekit.throttle import Throttled, throttle, throttled
from throttlekit.types import QueueState, QueueStats, ThrottleStats

__version__ = "0.1.0"

__all__ = [
    "AsyncQueue",
    "ConfigurationError",
    "InvalidCallableError",
    "InvalidTaskError",
    "QueueState",
    "QueueStats",
    "TaskClearedError",
    "ThrottleKitError",
    "ThrottleStats",
    "Throttled",
    "throttle",
    "throttled",
]
