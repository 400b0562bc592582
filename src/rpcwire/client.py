"""
RpcClient - root handle turning attribute chains into transport calls.

The client is bound to one transport, or to a factory that produces one
(possibly asynchronously) on first use, and runs every call through the
configured middleware.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Sequence

from .accessors import RemoteCollections, RemoteStorage, SqlQuery, serialize_sql
from .config import get_config
from .constants import InternalMethods
from .errors import ConnectionError, TransportNotInitializedError
from .middleware import MiddlewareTransport, call_with_middleware
from .promise import RpcPromise
from .proxy import RpcProxy
from .transports import WebSocketOptions, WebSocketTransport, transport_for_url
from .transports.auth import AuthProvider
from .types import Transport, TransportSource, close_transport, is_transport, maybe_await

__all__ = [
    "RPC",
    "RpcClient",
    "connect",
    "get_default_client",
    "init_default_client",
    "set_default_client",
]

logger = logging.getLogger(__name__)


def _build_ws_url(service: str) -> str:
    """
    Build WebSocket URL from service name or URL.

    Args:
        service: Either a service name (e.g., "api.do") or full URL

    Returns:
        WebSocket URL for the service
    """
    if service.startswith("wss://") or service.startswith("ws://"):
        return service

    if service.startswith("https://"):
        base = service.replace("https://", "wss://", 1).rstrip("/")
        return base if base.endswith("/rpc") else f"{base}/rpc"

    if service.startswith("http://"):
        base = service.replace("http://", "ws://", 1).rstrip("/")
        return base if base.endswith("/rpc") else f"{base}/rpc"

    # Just a service name like "api.do"
    return f"wss://{service}/rpc"


class RpcClient:
    """
    Zero-schema RPC client.

    Any attribute that is not one of the reserved members below starts a
    call path:

        client = RPC(http("https://my-do.example.com/rpc"))
        user = await client.users.get(123)     # "users.get", [123]

    Reserved members: ``call``, ``close``, ``connect``, ``sql``,
    ``storage``, ``collection``, ``schema``, ``db_schema``, ``transport``
    and ``closed``. Use ``client.call("storage.get", ...)`` to reach a
    remote method whose name collides with one of them.

    The transport may be given as a factory (sync or async callable). It
    is invoked once, on the first call; concurrent first calls share the
    same resolution. If the factory raises, the next call tries again.
    """

    __slots__ = ("_transport", "_factory", "_factory_task", "_middleware", "_closed")

    def __init__(
        self,
        transport: TransportSource,
        *,
        middleware: Sequence[Any] | None = None,
    ) -> None:
        """
        Args:
            transport: A transport, or a factory returning one
            middleware: Hook objects run around every call, in order
        """
        self._transport: Transport | None = None
        self._factory: Any = None
        if is_transport(transport):
            self._transport = transport  # type: ignore[assignment]
        elif callable(transport):
            self._factory = transport
        else:
            raise TypeError(
                f"Expected a transport or a transport factory, got {type(transport).__name__}"
            )
        self._factory_task: asyncio.Future[Transport] | None = None
        self._middleware: tuple[Any, ...] = tuple(middleware or ())
        self._closed = False

    def __getattr__(self, name: str) -> RpcProxy:
        """
        Zero-schema method access.

        Args:
            name: First segment of the call path

        Returns:
            An RpcProxy rooted at ``name``
        """
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

        return RpcProxy(self, (name,))

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"RpcClient({self._transport or self._factory!r}, {state})"

    # ------------------------------------------------------------------
    # Transport resolution
    # ------------------------------------------------------------------

    @property
    def transport(self) -> Transport | None:
        """The bound transport, or None while a factory is unresolved."""
        return self._transport

    @property
    def closed(self) -> bool:
        return self._closed

    async def _get_transport(self) -> Transport:
        if self._closed:
            raise ConnectionError.closed("Client is closed")
        if self._transport is not None:
            return self._transport

        if self._factory_task is None:
            self._factory_task = asyncio.ensure_future(self._run_factory())
        task = self._factory_task
        try:
            # Shielded so one cancelled caller does not cancel it for the others
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and self._closed:
                raise ConnectionError.closed("Client is closed") from None
            raise

    async def _run_factory(self) -> Transport:
        try:
            transport = await maybe_await(self._factory())
            if not is_transport(transport):
                raise TypeError(
                    f"Transport factory returned {type(transport).__name__}, not a transport"
                )
        except BaseException:
            self._factory_task = None
            raise

        if self._closed:
            await close_transport(transport)
            raise ConnectionError.closed("Client is closed")

        logger.debug("Transport factory resolved to %r", transport)
        self._transport = transport
        return transport

    def _require_transport(self) -> Transport:
        if self._closed:
            raise ConnectionError.closed("Client is closed")
        if self._transport is None:
            raise TransportNotInitializedError()
        if self._middleware:
            return MiddlewareTransport(self._transport, self._middleware)
        return self._transport

    async def _invoke(self, method: str, args: tuple[Any, ...]) -> Any:
        transport = await self._get_transport()
        return await call_with_middleware(self._middleware, transport, method, args)

    # ------------------------------------------------------------------
    # Reserved members
    # ------------------------------------------------------------------

    def call(self, method: str, *args: Any) -> RpcPromise[Any]:
        """Call a method by its dotted name."""
        return RpcPromise(self, method, args)

    async def connect(self) -> RpcClient:
        """
        Resolve the transport now and open it if it supports ``connect()``.

        Returns:
            The client itself, for chaining
        """
        transport = await self._get_transport()
        opener = getattr(transport, "connect", None)
        if opener is not None:
            await maybe_await(opener())
        return self

    async def close(self) -> None:
        """Release the transport. Safe to call multiple times."""
        if self._closed:
            return
        self._closed = True

        if self._factory_task is not None and not self._factory_task.done():
            self._factory_task.cancel()
        self._factory_task = None

        if self._transport is not None:
            await close_transport(self._transport)

    async def __aenter__(self) -> RpcClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def sql(self, query: str, *values: Any) -> SqlQuery:
        """
        Prepare a SQL query against the remote database.

        Example:
            rows = await client.sql("SELECT * FROM users WHERE id = ?", 1).all()

        Raises:
            TransportNotInitializedError: if the transport comes from a
                factory that has not resolved yet.
        """
        return SqlQuery(self._require_transport(), serialize_sql(query, values))

    @property
    def storage(self) -> RemoteStorage:
        """Remote key/value storage."""
        return RemoteStorage(self._require_transport())

    @property
    def collection(self) -> RemoteCollections:
        """Remote document collections: ``client.collection("users")``."""
        return RemoteCollections(self._require_transport())

    async def schema(self) -> Any:
        """Describe the remote object's methods and namespaces."""
        return await self._invoke(InternalMethods.SCHEMA, ())

    async def db_schema(self) -> Any:
        """Describe the remote database tables."""
        return await self._invoke(InternalMethods.DB_SCHEMA, ())


# ============================================================================
# Constructors
# ============================================================================


def RPC(
    transport: TransportSource | str,
    *,
    middleware: Sequence[Any] | None = None,
    auth: AuthProvider = None,
    timeout: float | None = None,
) -> RpcClient:
    """
    Create a client.

    Args:
        transport: A transport, a transport factory, or an endpoint URL
            (ws(s):// for a WebSocketTransport, http(s):// for HTTP)
        middleware: Hook objects run around every call
        auth: Token or token provider, used when ``transport`` is a URL
        timeout: Per-call deadline in seconds, used when ``transport`` is a URL

    Example:
        client = RPC("https://my-do.example.com/rpc", auth="secret")
        await client.users.list()
    """
    if isinstance(transport, str):
        transport = transport_for_url(transport, auth, timeout=timeout)
    return RpcClient(transport, middleware=middleware)


async def connect(
    service: str,
    *,
    token: AuthProvider = None,
    timeout: float | None = None,
    middleware: Sequence[Any] | None = None,
    connector: Any = None,
    **options: Any,
) -> RpcClient:
    """
    Connect to a service over a persistent WebSocket.

    Args:
        service: Service name (e.g., "api.do") or full URL
        token: Token or provider sent as the first message
        timeout: Per-call deadline in seconds
        middleware: Hook objects run around every call
        **options: Further WebSocketOptions fields

    Returns:
        Connected RpcClient instance

    Example:
        client = await connect("api.do")
        client = await connect("wss://api.do/rpc", token="secret", timeout=60.0)
    """
    url = _build_ws_url(service)
    if timeout is not None:
        options["request_timeout"] = timeout
    transport = WebSocketTransport(
        url, WebSocketOptions(token=token, **options), connector=connector
    )
    try:
        await transport.connect()
    except BaseException:
        await transport.close()
        raise
    return RpcClient(transport, middleware=middleware)


# ============================================================================
# Default client
# ============================================================================

_default_client: RpcClient | None = None


def init_default_client(
    transport: TransportSource | str | None = None,
    *,
    middleware: Sequence[Any] | None = None,
) -> RpcClient:
    """
    Build and install the process-wide default client.

    Without an explicit transport, the URL, token and timeout come from
    ``get_config()`` (see ``configure()``).
    """
    global _default_client

    if transport is None:
        config = get_config()
        transport = transport_for_url(
            config.url,
            config.token,
            timeout=config.timeout,
            allow_insecure_auth=config.allow_insecure_auth,
        )
    _default_client = RPC(transport, middleware=middleware)
    return _default_client


def get_default_client() -> RpcClient:
    """
    Return the default client.

    Raises:
        RuntimeError: if init_default_client() / set_default_client() has
            not been called.
    """
    if _default_client is None:
        raise RuntimeError(
            "Default client is not initialized. Call init_default_client() first."
        )
    return _default_client


def set_default_client(client: RpcClient | None) -> None:
    """Install ``client`` as the default (None uninstalls it)."""
    global _default_client
    _default_client = client
