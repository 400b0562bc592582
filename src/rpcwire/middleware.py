"""
Middleware - observation hooks around every call.

A middleware is any object exposing some of:

- ``on_request(method, args)`` before the transport is called
- ``on_response(method, result)`` after a successful call
- ``on_error(method, error)`` when the transport raises

Hooks may be plain functions or coroutines. Each phase runs the hooks in
list order, awaiting one before starting the next. An exception raised by
a hook propagates to the caller and skips the remaining hooks of that
phase. Hook return values are ignored, so a hook can never change a
result once the transport produced it. Re-issuing failed calls is the job
of ``RetryTransport``, not of a middleware.

Example:
    client = RPC(
        http("https://my-do.example.com/rpc"),
        middleware=[logging_middleware(), timing_middleware(threshold=0.1)],
    )
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .retry import RetryOptions, calculate_delay, default_should_retry
from .types import Transport, close_transport, maybe_await

__all__ = [
    "Middleware",
    "MiddlewareTransport",
    "TimingMiddleware",
    "call_with_middleware",
    "logging_middleware",
    "retry_observer",
    "timing_middleware",
    "with_middleware",
]

logger = logging.getLogger(__name__)


@dataclass
class Middleware:
    """A set of optional hooks; any of them may be sync or async."""

    on_request: Optional[Callable[[str, tuple[Any, ...]], Any]] = None
    on_response: Optional[Callable[[str, Any], Any]] = None
    on_error: Optional[Callable[[str, BaseException], Any]] = None


async def _run_hooks(middleware: Sequence[Any], phase: str, *args: Any) -> None:
    for mw in middleware:
        hook = getattr(mw, phase, None)
        if hook is not None:
            await maybe_await(hook(*args))


async def call_with_middleware(
    middleware: Sequence[Any],
    transport: Transport,
    method: str,
    args: Sequence[Any],
) -> Any:
    """Run one call through ``transport`` surrounded by the hook phases."""
    frozen = tuple(args)
    if not middleware:
        return await transport.call(method, list(frozen))

    await _run_hooks(middleware, "on_request", method, frozen)
    try:
        result = await transport.call(method, list(frozen))
    except Exception as error:
        await _run_hooks(middleware, "on_error", method, error)
        raise
    await _run_hooks(middleware, "on_response", method, result)
    return result


class MiddlewareTransport:
    """Transport wrapper applying a middleware list to every call."""

    __slots__ = ("_transport", "_middleware")

    def __init__(self, transport: Transport, middleware: Sequence[Any]) -> None:
        self._transport = transport
        self._middleware = tuple(middleware)

    @property
    def middleware(self) -> tuple[Any, ...]:
        return self._middleware

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        return await call_with_middleware(self._middleware, self._transport, method, args)

    async def close(self) -> None:
        await close_transport(self._transport)

    def __repr__(self) -> str:
        return f"MiddlewareTransport({self._transport!r}, {len(self._middleware)} middleware)"


def with_middleware(transport: Transport, *middleware: Any) -> MiddlewareTransport:
    """Wrap ``transport`` so every call runs through ``middleware``."""
    return MiddlewareTransport(transport, middleware)


# ============================================================================
# Built-in middleware
# ============================================================================


def logging_middleware(
    logger: logging.Logger | None = None,
    *,
    level: int = logging.INFO,
    log_args: bool = True,
    log_result: bool = True,
) -> Middleware:
    """
    Log every call, result and failure.

    Args:
        logger: Logger to write to (default: ``rpcwire.middleware``)
        level: Level for request/response records; failures use ERROR
        log_args: Include call arguments
        log_result: Include results
    """
    log = logger or logging.getLogger(__name__)

    def on_request(method: str, args: tuple[Any, ...]) -> None:
        if log_args:
            log.log(level, "[RPC] Calling %s with args: %r", method, list(args))
        else:
            log.log(level, "[RPC] Calling %s", method)

    def on_response(method: str, result: Any) -> None:
        if log_result:
            log.log(level, "[RPC] %s returned: %r", method, result)
        else:
            log.log(level, "[RPC] %s completed", method)

    def on_error(method: str, error: BaseException) -> None:
        log.error("[RPC] %s failed: %s", method, error)

    return Middleware(on_request=on_request, on_response=on_response, on_error=on_error)


class TimingMiddleware:
    """
    Measure how long each call takes.

    Concurrent calls to the same method are paired with their start time
    first-in first-out. Start entries older than ``ttl`` seconds (calls
    that never finished) are dropped.
    """

    def __init__(
        self,
        *,
        threshold: float = 0.0,
        on_timing: Callable[[str, float], Any] | None = None,
        logger: logging.Logger | None = None,
        ttl: float = 60.0,
        cleanup_interval: float = 10.0,
    ) -> None:
        self.threshold = threshold
        self.on_timing = on_timing
        self.ttl = ttl
        self.cleanup_interval = cleanup_interval
        self._log = logger or logging.getLogger(__name__)
        self._starts: OrderedDict[int, tuple[str, float]] = OrderedDict()
        self._next_id = 0
        self._last_cleanup = time.perf_counter()

    @property
    def in_flight(self) -> int:
        return len(self._starts)

    def on_request(self, method: str, args: tuple[Any, ...]) -> None:
        self._cleanup()
        self._starts[self._next_id] = (method, time.perf_counter())
        self._next_id += 1

    def on_response(self, method: str, result: Any) -> Any:
        return self._finish(method, "took")

    def on_error(self, method: str, error: BaseException) -> Any:
        return self._finish(method, "failed after")

    def _finish(self, method: str, verb: str) -> Any:
        end = time.perf_counter()
        start = self._pop(method)
        if start is None:
            return None
        duration = end - start
        if duration >= self.threshold:
            self._log.info("[RPC Timing] %s %s %.2fms", method, verb, duration * 1000)
        if self.on_timing is not None:
            return self.on_timing(method, duration)
        return None

    def _pop(self, method: str) -> float | None:
        for key, (name, start) in self._starts.items():
            if name == method:
                del self._starts[key]
                return start
        return None

    def _cleanup(self) -> None:
        now = time.perf_counter()
        if now - self._last_cleanup < self.cleanup_interval:
            return
        self._last_cleanup = now
        stale = [key for key, (_, start) in self._starts.items() if now - start > self.ttl]
        for key in stale:
            del self._starts[key]


def timing_middleware(
    threshold: float = 0.0,
    on_timing: Callable[[str, float], Any] | None = None,
    logger: logging.Logger | None = None,
    **options: Any,
) -> TimingMiddleware:
    """
    Create a TimingMiddleware.

    Args:
        threshold: Only log calls taking at least this many seconds
        on_timing: Callback ``(method, seconds)`` for every finished call
        logger: Logger for timing records
    """
    return TimingMiddleware(threshold=threshold, on_timing=on_timing, logger=logger, **options)


def retry_observer(
    options: RetryOptions | None = None,
    on_retry: Callable[[str, BaseException, int, float], Any] | None = None,
) -> Middleware:
    """
    Report failures that a RetryTransport with ``options`` would retry.

    This middleware never re-issues a call. ``on_retry`` receives
    ``(method, error, attempt, delay)`` describing the retry that a
    RetryTransport would schedule next.
    """
    options = options or RetryOptions()
    should_retry = options.should_retry or default_should_retry
    callback = on_retry or options.on_retry

    async def on_error(method: str, error: BaseException) -> None:
        if options.max_attempts <= 1 or not should_retry(error, 1):
            return
        delay = calculate_delay(0, options)
        logger.debug("%s failed with retryable error: %s", method, error)
        if callback is not None:
            await maybe_await(callback(method, error, 1, delay))

    return Middleware(on_error=on_error)
