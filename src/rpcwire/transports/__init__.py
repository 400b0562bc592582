"""
Concrete transports.

- HttpTransport: one call, one HTTP exchange, per-call deadline
- WebSocketTransport: persistent multiplexed connection with reconnect
- BindingTransport: in-process dispatch to a local object
- CompositeTransport: ordered fallback chain over other transports
"""

from __future__ import annotations

from typing import Any

from .auth import AuthProvider, check_insecure_auth, is_secure_url, resolve_token
from .binding import BindingTransport, binding
from .composite import CompositeTransport, composite
from .http import HttpTransport, http
from .websocket import (
    PendingRequest,
    ServerMessage,
    WebSocketOptions,
    WebSocketTransport,
    calculate_backoff,
    ws,
)

__all__ = [
    "AuthProvider",
    "BindingTransport",
    "CompositeTransport",
    "HttpTransport",
    "PendingRequest",
    "ServerMessage",
    "WebSocketOptions",
    "WebSocketTransport",
    "binding",
    "calculate_backoff",
    "check_insecure_auth",
    "composite",
    "http",
    "is_secure_url",
    "resolve_token",
    "transport_for_url",
    "ws",
]


def transport_for_url(
    url: str,
    auth: AuthProvider = None,
    *,
    timeout: float | None = None,
    allow_insecure_auth: bool = False,
) -> HttpTransport | WebSocketTransport:
    """
    Pick a transport from the URL scheme.

    ws:// and wss:// give a WebSocketTransport, http:// and https:// an
    HttpTransport.

    Raises:
        ValueError: for any other scheme.
    """
    scheme = url.split("://", 1)[0].lower() if "://" in url else ""
    if scheme in ("ws", "wss"):
        options: dict[str, Any] = {
            "token": auth,
            "allow_insecure_auth": allow_insecure_auth,
        }
        if timeout is not None:
            options["request_timeout"] = timeout
        return WebSocketTransport(url, WebSocketOptions(**options))
    if scheme in ("http", "https"):
        return HttpTransport(url, auth, timeout=timeout)
    raise ValueError(f"Unsupported URL scheme for {url!r}; expected ws(s):// or http(s)://")
