"""
CompositeTransport - try several transports in order.

The first member to succeed answers the call. When every member fails, the
error raised by the last member is propagated; earlier errors are only
logged. Keeping a single error keeps retry predicates simple.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..types import Transport, close_transport

__all__ = ["CompositeTransport", "composite"]

logger = logging.getLogger(__name__)


class CompositeTransport:
    """
    Fallback chain over an ordered, immutable list of transports.

    Example:
        transport = composite(
            ws("wss://my-do.example.com/rpc"),
            http("https://my-do.example.com/rpc"),
        )
    """

    __slots__ = ("_transports", "close_errors")

    def __init__(self, *transports: Transport) -> None:
        if not transports:
            raise ValueError("CompositeTransport requires at least one transport")
        self._transports: tuple[Transport, ...] = tuple(transports)
        self.close_errors: list[BaseException] = []

    @property
    def transports(self) -> tuple[Transport, ...]:
        return self._transports

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        *fallbacks, last = self._transports
        for index, transport in enumerate(fallbacks):
            try:
                return await transport.call(method, args)
            except Exception as e:
                logger.debug(
                    "Composite member %d (%r) failed for %s: %s",
                    index,
                    transport,
                    method,
                    e,
                )
        # The last member's error, if any, is the one the caller sees
        return await last.call(method, args)

    async def close(self) -> None:
        """Close every member, even if some of them fail to close."""
        errors: list[BaseException] = []
        for transport in self._transports:
            try:
                await close_transport(transport)
            except Exception as e:
                logger.warning("Error closing composite member %r: %s", transport, e)
                errors.append(e)
        self.close_errors = errors

    def __repr__(self) -> str:
        return f"CompositeTransport({len(self._transports)} transports)"


def composite(*transports: Transport) -> CompositeTransport:
    """Create a fallback chain; see CompositeTransport."""
    return CompositeTransport(*transports)
