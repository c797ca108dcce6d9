"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Default queue settings
DEFAULT_CONCURRENCY = 4

# Default throttle settings (seconds)
DEFAULT_WAIT = 1.0
DEFAULT_LEADING = True
DEFAULT_TRAILING = True

# Shell used by `throttlekit run`
DEFAULT_SHELL = "/bin/sh"

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "concurrency": DEFAULT_CONCURRENCY,
        "wait": DEFAULT_WAIT,
        "leading": DEFAULT_LEADING,
        "trailing": DEFAULT_TRAILING,
        "shell": DEFAULT_SHELL,
        "log_level": DEFAULT_LOG_LEVEL,
    }
