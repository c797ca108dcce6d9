"""Concurrency — a FIFO queue that limits how many async tasks run at once."""

from throttlekit.queue.async_queue import AsyncQueue

__all__ = ["AsyncQueue"]
