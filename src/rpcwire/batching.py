"""
Request-batching transport decorator.

``BatchingTransport`` collects the calls made within a short window and
sends them to the wrapped transport as one ``__batch`` call whose single
argument is a list of ``{"id", "method", "args"}`` requests. The transport
must answer with a list of ``{"id", "result"}`` / ``{"id", "error"}``
responses, which are fanned back out to their callers by id.

Example:
    transport = with_batching(http("https://my-do.example.com/rpc"), window=0.01)
    client = RPC(transport)

    # One HTTP request
    users, posts = await asyncio.gather(client.users.list(), client.posts.recent())
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .constants import InternalMethods
from .errors import ConnectionError, ErrorCode, RpcError
from .types import Transport, close_transport

__all__ = [
    "BatchingOptions",
    "BatchingTransport",
    "BatchedRequest",
    "with_batching",
]

logger = logging.getLogger(__name__)

OnBatch = Callable[[list[dict[str, Any]]], Any]


@dataclass
class BatchingOptions:
    """
    Batching policy.

    Attributes:
        window: Seconds to collect calls before sending a batch
        max_batch_size: Send immediately once this many calls are queued
        debounce: Restart the window on every new call instead of
            measuring it from the first one
        on_batch: Called with the request list just before it is sent
    """

    window: float = 0.01
    max_batch_size: int = 100
    debounce: bool = False
    on_batch: Optional[OnBatch] = None


@dataclass
class BatchedRequest:
    """A queued call waiting for its slot in a batch response."""

    id: int
    method: str
    args: list[Any]
    future: asyncio.Future[Any]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "method": self.method, "args": self.args}


class BatchingTransport:
    """Transport decorator grouping concurrent calls into batch requests."""

    def __init__(self, transport: Transport, options: BatchingOptions | None = None) -> None:
        options = options or BatchingOptions()
        if options.max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1")
        self._transport = transport
        self._options = options
        self._queue: list[BatchedRequest] = []
        self._timer: asyncio.TimerHandle | None = None
        self._next_id = 1
        self._flushes: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def options(self) -> BatchingOptions:
        return self._options

    @property
    def queued_count(self) -> int:
        return len(self._queue)

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        if self._closed:
            raise ConnectionError.closed("Transport is closed")

        loop = asyncio.get_running_loop()
        request = BatchedRequest(self._next_id, method, list(args), loop.create_future())
        self._next_id += 1
        self._queue.append(request)

        if len(self._queue) >= self._options.max_batch_size:
            self._flush_soon()
        elif self._timer is None or self._options.debounce:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = loop.call_later(self._options.window, self._flush_soon)

        return await request.future

    async def flush(self) -> None:
        """Send whatever is queued now and wait for every batch in flight."""
        self._flush_soon()
        if self._flushes:
            await asyncio.gather(*self._flushes)

    async def close(self) -> None:
        """Send queued calls, then close the wrapped transport."""
        if self._closed:
            return
        self._closed = True
        await self.flush()
        await close_transport(self._transport)

    def _flush_soon(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        batch, self._queue = self._queue, []
        # Callers cancelled while queued are left out
        batch = [request for request in batch if not request.future.done()]
        if not batch:
            return
        task = asyncio.ensure_future(self._send(batch))
        self._flushes.add(task)
        task.add_done_callback(self._flushes.discard)

    async def _send(self, batch: list[BatchedRequest]) -> None:
        payload = [request.to_dict() for request in batch]
        if self._options.on_batch is not None:
            try:
                self._options.on_batch(payload)
            except Exception:
                logger.exception("on_batch handler raised")

        logger.debug("Sending batch of %d calls", len(batch))
        try:
            responses = await self._transport.call(InternalMethods.BATCH, [payload])
        except Exception as error:
            logger.debug("Batch of %d calls failed: %s", len(batch), error)
            for request in batch:
                _settle(request.future, error=error)
            return

        if not isinstance(responses, list):
            error = RpcError(
                f"Expected a list of batch responses, got {type(responses).__name__}",
                ErrorCode.INVALID_RESPONSE,
            )
            for request in batch:
                _settle(request.future, error=error)
            return

        by_id: dict[Any, dict[str, Any]] = {}
        for response in responses:
            if isinstance(response, dict) and "id" in response:
                by_id[response["id"]] = response

        for request in batch:
            response = by_id.get(request.id)
            if response is None:
                _settle(
                    request.future,
                    error=RpcError(
                        f"No response received for request {request.id}",
                        ErrorCode.INVALID_RESPONSE,
                    ),
                )
            elif response.get("error") is not None:
                _settle(request.future, error=RpcError.from_payload(response["error"]))
            else:
                _settle(request.future, result=response.get("result"))

    def __repr__(self) -> str:
        return (
            f"BatchingTransport({self._transport!r}, window={self._options.window}, "
            f"max_batch_size={self._options.max_batch_size})"
        )


def _settle(
    future: asyncio.Future[Any], *, result: Any = None, error: BaseException | None = None
) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def with_batching(
    transport: Transport, options: BatchingOptions | None = None, **overrides: Any
) -> BatchingTransport:
    """Wrap ``transport`` in a BatchingTransport; keyword overrides update ``options``."""
    options = options or BatchingOptions()
    if overrides:
        options = dataclasses.replace(options, **overrides)
    return BatchingTransport(transport, options)
