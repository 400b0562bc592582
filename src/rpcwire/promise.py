"""
RpcPromise - deferred result of one remote call.

The call is dispatched the first time the promise is awaited. Awaiting it
again returns the same outcome without calling the transport again.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Generator, Generic, TypeVar

if TYPE_CHECKING:
    from .client import RpcClient

T = TypeVar("T")

__all__ = ["RpcPromise"]


class RpcPromise(Awaitable[T], Generic[T]):
    """
    Awaitable handle for a pending RPC call.

    Example:
        promise = client.users.get(1)   # nothing sent yet
        user = await promise            # one transport call
        same = await promise            # cached, no second call
    """

    __slots__ = ("_client", "_method", "_args", "_task")

    def __init__(
        self,
        client: RpcClient,
        method: str,
        args: tuple[Any, ...] = (),
    ) -> None:
        """
        Initialize an RpcPromise.

        Args:
            client: The RpcClient dispatching the call
            method: Dotted method path
            args: Positional arguments for the method
        """
        self._client = client
        self._method = method
        self._args = args
        self._task: asyncio.Future[T] | None = None

    @property
    def method(self) -> str:
        return self._method

    @property
    def args(self) -> tuple[Any, ...]:
        return self._args

    def done(self) -> bool:
        """True once the call has completed (successfully or not)."""
        return self._task is not None and self._task.done()

    def _ensure_dispatched(self) -> asyncio.Future[T]:
        if self._task is None:
            self._task = asyncio.ensure_future(
                self._client._invoke(self._method, self._args)
            )
        return self._task

    def __await__(self) -> Generator[Any, None, T]:
        return self._ensure_dispatched().__await__()

    def __repr__(self) -> str:
        if self._task is None:
            status = "pending"
        elif not self._task.done():
            status = "in flight"
        else:
            status = "resolved"
        return f"RpcPromise({self._method}, {status})"
