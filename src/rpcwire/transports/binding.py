"""
BindingTransport - dispatch calls to a local object in-process.

Useful for tests and for wiring a service object directly into a client
without any network in between.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from ..errors import ErrorCode, RpcError
from ..types import maybe_await

__all__ = ["BindingTransport", "binding"]

_MISSING = object()


def _lookup(target: Any, name: str) -> Any:
    if name.startswith("_"):
        return _MISSING
    if isinstance(target, Mapping):
        return target.get(name, _MISSING)
    return getattr(target, name, _MISSING)


class BindingTransport:
    """
    Transport that walks a dotted path over a local object.

    Example:
        class Users:
            async def get(self, user_id):
                return {"id": user_id}

        transport = BindingTransport({"users": Users()})
        await transport.call("users.get", [1])   # {"id": 1}
    """

    __slots__ = ("_target",)

    def __init__(self, target: Any) -> None:
        self._target = target

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        parts = method.split(".")
        target = self._target

        for part in parts[:-1]:
            target = _lookup(target, part)
            if target is _MISSING or target is None:
                raise RpcError(f"Unknown namespace: {part}", ErrorCode.UNKNOWN_NAMESPACE)

        fn = _lookup(target, parts[-1])
        if fn is _MISSING or not callable(fn):
            raise RpcError(f"Unknown method: {method}", ErrorCode.UNKNOWN_METHOD)

        return await maybe_await(fn(*args))

    def __repr__(self) -> str:
        return f"BindingTransport({type(self._target).__name__})"


def binding(target: Any) -> BindingTransport:
    """Create a transport bound to a local object."""
    return BindingTransport(target)
