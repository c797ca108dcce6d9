"""Leading/trailing throttle for sync and async callables."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import math
import numbers
import types
from collections.abc import Callable
from typing import Any

from throttlekit.errors.exceptions import ConfigurationError, InvalidCallableError
from throttlekit.types import ThrottleStats

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException], Any]


def validate_wait(wait: object) -> float:
    """Return ``wait`` as a float, or raise ConfigurationError."""
    if (
        isinstance(wait, bool)
        or not isinstance(wait, numbers.Real)
        or not math.isfinite(wait)
        or wait < 0
    ):
        raise ConfigurationError(
            f"Expected a non-negative number of seconds for wait, got {wait!r}",
            field="wait",
            value=wait,
        )
    return float(wait)


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class Throttled:
    """Callable wrapper invoking ``fn`` at most once per ``wait`` seconds.

    A window opens on the first call. With ``leading`` the call goes through
    immediately; every later call inside the window replaces the pending
    trailing arguments. When the window closes and ``trailing`` is set, the
    latest pending call fires and opens the next window.

    Windows are timed with ``loop.call_later`` on the running event loop, so
    calls must be made from inside a loop (except when ``wait`` is 0).
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        wait: float,
        *,
        leading: bool = True,
        trailing: bool = True,
        on_error: ErrorHandler | None = None,
    ) -> None:
        if not callable(fn):
            raise InvalidCallableError("Expected a function", received=fn)
        functools.update_wrapper(self, fn)

        self._fn = fn
        self._wait = validate_wait(wait)
        self._leading = leading
        self._trailing = trailing
        self.on_error = on_error

        self._timer: asyncio.TimerHandle | None = None
        self._pending_call: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._last_result: Any = None
        self._tasks: set[asyncio.Future[Any]] = set()
        self._stats = ThrottleStats()

        if not leading and not trailing:
            logger.warning(
                "Throttle for %s has both leading and trailing disabled; it will never fire",
                self._name,
            )

    @property
    def wait(self) -> float:
        return self._wait

    @property
    def leading(self) -> bool:
        return self._leading

    @property
    def trailing(self) -> bool:
        return self._trailing

    @property
    def pending(self) -> bool:
        """True when a trailing invocation is waiting for the window to close."""
        return self._trailing and self._pending_call is not None

    @property
    def stats(self) -> ThrottleStats:
        return self._stats.model_copy()

    def reset_stats(self) -> None:
        self._stats = ThrottleStats()

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self._stats.calls += 1

        if self._wait == 0:
            if self._leading or self._trailing:
                return self._invoke(args, kwargs)
            return self._last_result

        if self._timer is not None:
            self._hold(args, kwargs)
            return self._last_result

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._wait, self._on_window_end)

        if self._leading:
            return self._invoke(args, kwargs)

        self._hold(args, kwargs)
        return self._last_result

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        # Bound methods share one throttle across all instances.
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def cancel(self) -> None:
        """Drop any pending trailing call and close the current window."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending_call is not None:
            self._stats.cancelled += 1
            logger.debug("Cancelled pending trailing call to %s", self._name)
        self._pending_call = None

    def flush(self) -> Any:
        """Fire the pending trailing call now, if any, and close the window.

        Returns the latest result. Errors from ``fn`` propagate to the caller.
        """
        pending, self._pending_call = self._pending_call, None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if pending is None:
            return self._last_result

        self._stats.trailing_invocations += 1
        return self._invoke(*pending)

    def __repr__(self) -> str:
        return (
            f"<Throttled {self._name} wait={self._wait} "
            f"leading={self._leading} trailing={self._trailing}>"
        )

    # ── Internals ──

    @property
    def _name(self) -> str:
        return getattr(self._fn, "__qualname__", None) or repr(self._fn)

    def _hold(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        # Without a trailing edge the call can never fire, so nothing is kept
        if self._trailing:
            self._pending_call = (args, kwargs)

    def _invoke(
        self,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        route_errors: bool = False,
    ) -> Any:
        self._stats.invocations += 1
        try:
            result = self._fn(*args, **kwargs)
        except Exception:
            self._stats.failures += 1
            raise

        if inspect.isawaitable(result) and _loop_running():
            # A task can be awaited by every caller that gets it back in the window
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(functools.partial(self._on_task_done, route_errors))
            result = task

        self._last_result = result
        return result

    def _on_window_end(self) -> None:
        self._timer = None
        pending, self._pending_call = self._pending_call, None
        if pending is None:
            return

        # The trailing call starts the next window
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._wait, self._on_window_end)
        self._stats.trailing_invocations += 1

        try:
            self._invoke(*pending, route_errors=True)
        except Exception as exc:
            self._handle_error(exc)

    def _on_task_done(self, route_errors: bool, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        self._stats.failures += 1
        # Leading tasks belong to the caller, who sees the error on await
        if route_errors:
            self._handle_error(exc)

    def _handle_error(self, exc: BaseException) -> None:
        if self.on_error is None:
            logger.error("Trailing call to %s failed: %s", self._name, exc, exc_info=exc)
            return
        try:
            self.on_error(exc)
        except Exception:
            logger.exception("Error handler for %s raised", self._name)


def throttle(
    fn: Callable[..., Any],
    wait: float,
    *,
    leading: bool = True,
    trailing: bool = True,
    on_error: ErrorHandler | None = None,
) -> Throttled:
    """Wrap ``fn`` so it runs at most once per ``wait`` seconds."""
    return Throttled(fn, wait, leading=leading, trailing=trailing, on_error=on_error)


def throttled(
    wait: float,
    *,
    leading: bool = True,
    trailing: bool = True,
    on_error: ErrorHandler | None = None,
) -> Callable[[Callable[..., Any]], Throttled]:
    """Decorator form of :func:`throttle`."""

    def decorator(fn: Callable[..., Any]) -> Throttled:
        return Throttled(fn, wait, leading=leading, trailing=trailing, on_error=on_error)

    return decorator
