"""
RpcProxy - call-path builder using __getattr__.

Attribute access accumulates a dotted path; calling the proxy turns the
path and arguments into exactly one RPC call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .promise import RpcPromise

if TYPE_CHECKING:
    from .client import RpcClient

__all__ = ["RpcProxy"]


class RpcProxy:
    """
    A dotted call path under construction.

    Example:
        users = client.users          # RpcProxy(users)
        get = users.get               # RpcProxy(users.get)
        result = await get(123)       # calls "users.get" with [123]

    Keyword arguments are sent as one trailing mapping:
        await client.users.find(role="admin")   # args [{"role": "admin"}]

    The proxy is not awaitable: ``await client.users`` is a
    TypeError rather than a silent remote call. Names starting with an
    underscore are never treated as path segments.
    """

    __slots__ = ("_client", "_path")

    def __init__(self, client: RpcClient, path: tuple[str, ...]) -> None:
        object.__setattr__(self, "_client", client)
        object.__setattr__(self, "_path", path)

    @property
    def path(self) -> str:
        return ".".join(self._path)

    def __getattr__(self, name: str) -> RpcProxy:
        """Extend the path by one segment; the receiver is left unchanged."""
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

        return RpcProxy(self._client, self._path + (name,))

    def __call__(self, *args: Any, **kwargs: Any) -> RpcPromise[Any]:
        """
        Build the call for the accumulated path.

        Nothing is sent until the returned promise is awaited. A call that
        is never awaited, such as a bare ``client.users.delete(1)``
        statement, never reaches the transport and produces no warning.
        Use ``asyncio.ensure_future(...)`` to fire and forget.

        Returns:
            An RpcPromise; the call is sent when it is awaited
        """
        if kwargs:
            args = args + (kwargs,)
        return RpcPromise(self._client, self.path, args)

    def __repr__(self) -> str:
        return f"RpcProxy({self.path})"

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"RpcProxy({self.path}) is read-only; call a remote method to change remote state"
        )
