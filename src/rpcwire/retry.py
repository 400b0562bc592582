"""
Retry-capable transport decorator.

``RetryTransport`` wraps another transport and re-issues calls that fail
with a retryable error, sleeping an exponentially growing, jittered delay
between attempts. It is the only component that actually retries; the
``retry_observer`` middleware only reports.

Example:
    transport = with_retry(
        http("https://my-do.example.com/rpc"),
        RetryOptions(max_attempts=5, initial_delay=0.2),
    )
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .errors import ConnectionError, RpcError, RpcWireError
from .types import Transport, close_transport, maybe_await

__all__ = [
    "RETRYABLE_RPC_CODES",
    "RETRYABLE_MESSAGE_PATTERNS",
    "RetryContext",
    "RetryOptions",
    "RetryTransport",
    "calculate_delay",
    "default_should_retry",
    "with_retry",
]

logger = logging.getLogger(__name__)

RETRYABLE_RPC_CODES: frozenset[str] = frozenset(
    {
        "UNAVAILABLE",
        "DEADLINE_EXCEEDED",
        "RESOURCE_EXHAUSTED",
        "HTTP_502",
        "HTTP_503",
        "HTTP_504",
    }
)

RETRYABLE_MESSAGE_PATTERNS: tuple[str, ...] = (
    "network",
    "timeout",
    "econnrefused",
    "enotfound",
    "fetch",
    "socket",
    "502",
    "503",
    "504",
)

ShouldRetry = Callable[[BaseException, int], bool]
OnRetry = Callable[[str, BaseException, int, float], Any]


@dataclass
class RetryOptions:
    """
    Retry policy. Delays are in seconds.

    Attributes:
        max_attempts: Total attempts including the first one
        initial_delay: Delay before the first retry
        max_delay: Upper bound for any delay
        backoff_multiplier: Growth factor between retries
        jitter: Scale each delay by a random factor in [0.75, 1.25]
        should_retry: Predicate ``(error, attempt) -> bool``
        on_retry: Callback ``(method, error, attempt, delay)`` before sleeping
    """

    max_attempts: int = 3
    initial_delay: float = 0.1
    max_delay: float = 5.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    should_retry: Optional[ShouldRetry] = None
    on_retry: Optional[OnRetry] = None


@dataclass
class RetryContext:
    """Attempt bookkeeping for one logical call."""

    attempt: int = 0
    last_error: Optional[BaseException] = None


def default_should_retry(error: BaseException, attempt: int = 0) -> bool:
    """
    Decide whether ``error`` is worth another attempt.

    - ConnectionError: its ``retryable`` flag
    - RpcError: only transient codes (UNAVAILABLE, DEADLINE_EXCEEDED, ...)
    - authentication, rate limit and version errors: never
    - anything else: transport-level OS errors and timeouts, or a message
      that looks like a network failure
    """
    if isinstance(error, ConnectionError):
        return error.retryable
    if isinstance(error, RpcError):
        return error.code in RETRYABLE_RPC_CODES
    if isinstance(error, RpcWireError):
        return False
    if isinstance(error, (OSError, asyncio.TimeoutError)):
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in RETRYABLE_MESSAGE_PATTERNS)


def calculate_delay(attempt: int, options: RetryOptions) -> float:
    """Delay before retry number ``attempt`` (0-based)."""
    delay = min(
        options.initial_delay * options.backoff_multiplier ** attempt,
        options.max_delay,
    )
    if options.jitter:
        delay = min(delay * (0.75 + random.random() * 0.5), options.max_delay)
    return delay


class RetryTransport:
    """Transport decorator that retries failed calls with backoff."""

    __slots__ = ("_transport", "_options")

    def __init__(self, transport: Transport, options: RetryOptions | None = None) -> None:
        if options is not None and options.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._transport = transport
        self._options = options or RetryOptions()

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def options(self) -> RetryOptions:
        return self._options

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        options = self._options
        should_retry = options.should_retry or default_should_retry
        context = RetryContext()

        while True:
            try:
                return await self._transport.call(method, args)
            except Exception as error:
                context.attempt += 1
                context.last_error = error
                if context.attempt >= options.max_attempts or not should_retry(
                    error, context.attempt
                ):
                    raise

                delay = calculate_delay(context.attempt - 1, options)
                logger.debug(
                    "Retrying %s in %.3fs after attempt %d failed: %s",
                    method,
                    delay,
                    context.attempt,
                    error,
                )
                if options.on_retry is not None:
                    await maybe_await(options.on_retry(method, error, context.attempt, delay))
                await asyncio.sleep(delay)

    async def close(self) -> None:
        await close_transport(self._transport)

    def __repr__(self) -> str:
        return f"RetryTransport({self._transport!r}, max_attempts={self._options.max_attempts})"


def with_retry(
    transport: Transport, options: RetryOptions | None = None, **overrides: Any
) -> RetryTransport:
    """Wrap ``transport`` in a RetryTransport; keyword overrides update ``options``."""
    options = options or RetryOptions()
    if overrides:
        options = dataclasses.replace(options, **overrides)
    return RetryTransport(transport, options)
