"""
Convenience handles for SQL, key/value storage and document collections.

Each handle formats its arguments and forwards a single call to one of
the reserved ``__``-prefixed methods. They are obtained from the root
client (``client.sql(...)``, ``client.storage``, ``client.collection``).
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from .constants import InternalMethods
from .types import Transport

__all__ = [
    "RemoteCollection",
    "RemoteCollections",
    "RemoteStorage",
    "SqlQuery",
    "serialize_sql",
]

_MISSING: Any = object()


def serialize_sql(query: str, values: Sequence[Any]) -> dict[str, list[Any]]:
    """
    Split a ``?``-parameterised query into the tagged-template wire shape.

    Example::

        serialize_sql("SELECT * FROM users WHERE id = ? AND org = ?", [1, "acme"])
        # {"strings": ["SELECT * FROM users WHERE id = ", " AND org = ", ""],
        #  "values": [1, "acme"]}

    Raises:
        ValueError: if the number of placeholders and values differ.
    """
    strings = query.split("?")
    if len(strings) - 1 != len(values):
        raise ValueError(
            f"SQL query has {len(strings) - 1} placeholders but {len(values)} values were given"
        )
    return {"strings": strings, "values": list(values)}


class SqlQuery:
    """A prepared SQL query; nothing is sent until one of the methods is awaited."""

    __slots__ = ("_transport", "_query")

    def __init__(self, transport: Transport, query: dict[str, list[Any]]) -> None:
        self._transport = transport
        self._query = query

    @property
    def query(self) -> dict[str, list[Any]]:
        return self._query

    async def all(self) -> list[Any]:
        """All result rows."""
        result = await self._transport.call(InternalMethods.SQL, [self._query])
        if isinstance(result, Mapping):
            return list(result.get("results") or [])
        return list(result or [])

    async def first(self) -> Any:
        """First row, or None."""
        return await self._transport.call(InternalMethods.SQL_FIRST, [self._query])

    async def run(self) -> Any:
        """Execute a write; returns ``{"rowsWritten": n}``."""
        return await self._transport.call(InternalMethods.SQL_RUN, [self._query])

    async def raw(self) -> Any:
        """The full result envelope as returned by the server."""
        return await self._transport.call(InternalMethods.SQL, [self._query])

    def __repr__(self) -> str:
        return f"SqlQuery({'?'.join(self._query['strings'])!r})"


class RemoteStorage:
    """Key/value storage of the remote object."""

    __slots__ = ("_transport",)

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def get(self, key: str | Sequence[str]) -> Any:
        """Get one value, or a ``{key: value}`` dict when given a list of keys."""
        if isinstance(key, (list, tuple)):
            result = await self._transport.call(
                InternalMethods.STORAGE_GET_MULTIPLE, [list(key)]
            )
            return dict(result or {})
        return await self._transport.call(InternalMethods.STORAGE_GET, [key])

    async def put(self, key: str | Mapping[str, Any], value: Any = _MISSING) -> None:
        """Store one value, or every entry of a mapping."""
        if value is _MISSING:
            if not isinstance(key, Mapping):
                raise TypeError("put() needs a value unless given a mapping of entries")
            await self._transport.call(InternalMethods.STORAGE_PUT_MULTIPLE, [dict(key)])
            return
        await self._transport.call(InternalMethods.STORAGE_PUT, [key, value])

    async def delete(self, key: str | Sequence[str]) -> Any:
        """Delete one key (returns bool) or several (returns the count)."""
        if isinstance(key, (list, tuple)):
            return await self._transport.call(
                InternalMethods.STORAGE_DELETE_MULTIPLE, [list(key)]
            )
        return await self._transport.call(InternalMethods.STORAGE_DELETE, [key])

    async def list(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        result = await self._transport.call(
            InternalMethods.STORAGE_LIST, [dict(options) if options else None]
        )
        return dict(result or {})

    async def keys(self, prefix: str | None = None) -> list[str]:
        return list(await self._transport.call(InternalMethods.STORAGE_KEYS, [prefix]) or [])


class RemoteCollection:
    """A named document collection."""

    __slots__ = ("_transport", "_name")

    def __init__(self, transport: Transport, name: str) -> None:
        self._transport = transport
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def _call(self, method: str, *args: Any) -> Any:
        return await self._transport.call(method, [self._name, *args])

    async def get(self, id: str) -> Any:
        return await self._call(InternalMethods.COLLECTION_GET, id)

    async def put(self, id: str, doc: Any) -> None:
        await self._call(InternalMethods.COLLECTION_PUT, id, doc)

    async def delete(self, id: str) -> bool:
        return bool(await self._call(InternalMethods.COLLECTION_DELETE, id))

    async def has(self, id: str) -> bool:
        return bool(await self._call(InternalMethods.COLLECTION_HAS, id))

    async def find(
        self,
        filter: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        return list(
            await self._call(InternalMethods.COLLECTION_FIND, filter, options) or []
        )

    async def count(self, filter: Mapping[str, Any] | None = None) -> int:
        return int(await self._call(InternalMethods.COLLECTION_COUNT, filter) or 0)

    async def list(self, options: Mapping[str, Any] | None = None) -> list[Any]:
        return list(await self._call(InternalMethods.COLLECTION_LIST, options) or [])

    async def keys(self) -> list[str]:
        return list(await self._call(InternalMethods.COLLECTION_KEYS) or [])

    async def clear(self) -> int:
        return int(await self._call(InternalMethods.COLLECTION_CLEAR) or 0)

    def __repr__(self) -> str:
        return f"RemoteCollection({self._name!r})"


class RemoteCollections:
    """
    Entry point for collections: ``client.collection("users")``.

    Also lists collection names and per-collection stats.
    """

    __slots__ = ("_transport",)

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def __call__(self, name: str) -> RemoteCollection:
        return RemoteCollection(self._transport, name)

    async def names(self) -> list[str]:
        return list(await self._transport.call(InternalMethods.COLLECTION_NAMES, []) or [])

    async def stats(self) -> list[dict[str, Any]]:
        return list(await self._transport.call(InternalMethods.COLLECTION_STATS, []) or [])
