"""
rpcwire - transport-agnostic zero-schema RPC client.

This package turns attribute chains such as ``client.users.get(1)`` into
calls against a remote method dispatcher, over any of:
- HTTP request/response with per-call deadlines
- a persistent WebSocket multiplexing concurrent calls, with reconnect
  and heartbeat
- an in-process binding to a local object
- a composite fallback chain of the above

Example usage:
    from rpcwire import RPC, composite, http, ws, with_retry

    async def main():
        transport = with_retry(
            composite(
                ws("wss://my-do.example.com/rpc"),
                http("https://my-do.example.com/rpc"),
            )
        )
        client = RPC(transport)

        user = await client.users.get(123)
        rows = await client.sql("SELECT * FROM users WHERE id = ?", 123).all()

        await client.close()

    import asyncio
    asyncio.run(main())
"""

from __future__ import annotations

__version__ = "0.1.0"

from .batching import BatchingOptions, BatchingTransport, with_batching
from .client import (
    RPC,
    RpcClient,
    connect,
    get_default_client,
    init_default_client,
    set_default_client,
)
from .config import ClientConfig, configure, configure_from_env, get_config
from .constants import INTERNAL_METHOD_NAMES, PROTOCOL_VERSION, InternalMethods
from .errors import (
    AuthenticationError,
    ConnectionError,
    ErrorCode,
    ProtocolVersionError,
    RateLimitError,
    RpcError,
    RpcWireError,
    TransportNotInitializedError,
    is_error_code,
)
from .middleware import (
    Middleware,
    MiddlewareTransport,
    TimingMiddleware,
    logging_middleware,
    retry_observer,
    timing_middleware,
    with_middleware,
)
from .promise import RpcPromise
from .proxy import RpcProxy
from .retry import RetryContext, RetryOptions, RetryTransport, default_should_retry, with_retry
from .transports import (
    BindingTransport,
    CompositeTransport,
    HttpTransport,
    WebSocketOptions,
    WebSocketTransport,
    binding,
    composite,
    http,
    transport_for_url,
    ws,
)
from .types import ConnectionState, Transport, TransportFactory

__all__ = [
    # Main API
    "RPC",
    "RpcClient",
    "RpcPromise",
    "RpcProxy",
    "connect",
    "init_default_client",
    "get_default_client",
    "set_default_client",
    # Transports
    "Transport",
    "TransportFactory",
    "ConnectionState",
    "HttpTransport",
    "WebSocketTransport",
    "WebSocketOptions",
    "BindingTransport",
    "CompositeTransport",
    "http",
    "ws",
    "binding",
    "composite",
    "transport_for_url",
    # Retry, batching and middleware
    "RetryOptions",
    "RetryContext",
    "RetryTransport",
    "with_retry",
    "default_should_retry",
    "BatchingOptions",
    "BatchingTransport",
    "with_batching",
    "Middleware",
    "MiddlewareTransport",
    "TimingMiddleware",
    "with_middleware",
    "logging_middleware",
    "timing_middleware",
    "retry_observer",
    # Errors
    "ErrorCode",
    "RpcWireError",
    "ConnectionError",
    "RpcError",
    "ProtocolVersionError",
    "AuthenticationError",
    "RateLimitError",
    "TransportNotInitializedError",
    "is_error_code",
    # Configuration
    "ClientConfig",
    "configure",
    "configure_from_env",
    "get_config",
    # Constants
    "InternalMethods",
    "INTERNAL_METHOD_NAMES",
    "PROTOCOL_VERSION",
    # Version
    "__version__",
]
