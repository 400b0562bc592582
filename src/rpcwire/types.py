"""
Shared types for rpcwire transports.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol, Sequence, TypeVar, Union, runtime_checkable

__all__ = [
    "ConnectionState",
    "Transport",
    "TransportFactory",
    "TransportSource",
    "is_transport",
    "maybe_await",
    "close_transport",
]

T = TypeVar("T")


class ConnectionState(str, Enum):
    """Lifecycle of a persistent transport connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@runtime_checkable
class Transport(Protocol):
    """
    The minimal contract every transport implements.

    ``call`` sends one logical call and resolves to its result or raises a
    typed error. Transports that hold resources also expose an (async or
    sync) ``close()``; callers must treat it as optional.
    """

    async def call(self, method: str, args: Sequence[Any]) -> Any:
        ...


TransportFactory = Callable[[], Union[Transport, Awaitable[Transport]]]
TransportSource = Union[Transport, TransportFactory]


def is_transport(obj: Any) -> bool:
    """A transport is anything with a callable ``call`` attribute."""
    return callable(getattr(obj, "call", None))


async def maybe_await(value: Union[T, Awaitable[T]]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


async def close_transport(transport: Any) -> None:
    """Close a transport if it has a ``close()``; sync or async both work."""
    close = getattr(transport, "close", None)
    if close is None:
        return
    await maybe_await(close())
