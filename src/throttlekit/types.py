"""Shared Pydantic models for throttlekit."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

# ── Enums ──


class QueueState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# ── Stats models ──


class ThrottleStats(BaseModel):
    """Counters for a throttled callable."""

    calls: int = 0
    invocations: int = 0
    trailing_invocations: int = 0
    cancelled: int = 0
    failures: int = 0

    @property
    def suppressed(self) -> int:
        """Calls that never turned into an invocation of their own."""
        return max(self.calls - self.invocations, 0)


class QueueStats(BaseModel):
    """Snapshot of an AsyncQueue."""

    concurrency: int
    running: int = 0
    pending: int = 0
    completed: int = 0
    failed: int = 0
    cleared: int = 0
    paused: bool = False

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    @property
    def failure_rate(self) -> float:
        total = self.processed
        return self.failed / total if total > 0 else 0.0
