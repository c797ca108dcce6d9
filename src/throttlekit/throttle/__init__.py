"""Throttling — bound how often a callable runs."""

from throttlekit.throttle.throttler import Throttled, throttle, throttled

__all__ = ["Throttled", "throttle", "throttled"]
