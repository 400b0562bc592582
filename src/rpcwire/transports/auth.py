"""
Credential helpers shared by the network transports.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import urlparse

from ..errors import ConnectionError
from ..types import maybe_await

__all__ = ["AuthProvider", "resolve_token", "is_secure_url", "check_insecure_auth"]

logger = logging.getLogger(__name__)

AuthProvider = Union[
    str,
    Callable[[], Union[Optional[str], Awaitable[Optional[str]]]],
    None,
]


async def resolve_token(auth: AuthProvider) -> str | None:
    """
    Resolve a token from a static string or a provider callable.

    Empty strings are treated as "no token".
    """
    if auth is None:
        return None
    if isinstance(auth, str):
        return auth or None
    token = await maybe_await(auth())
    return token or None


def is_secure_url(url: str) -> bool:
    """True for wss:// and https:// endpoints."""
    return urlparse(url).scheme.lower() in ("wss", "https")


def check_insecure_auth(url: str, token: str | None, allow_insecure: bool) -> None:
    """
    Refuse to send a token over an unencrypted connection.

    Raises:
        ConnectionError: INSECURE_CONNECTION when a token would go over
            ws:// or http:// and ``allow_insecure`` is not set.
    """
    if not token or is_secure_url(url):
        return
    if not allow_insecure:
        raise ConnectionError.insecure_connection()
    logger.warning(
        "Sending authentication token over insecure connection to %s "
        "(allow_insecure_auth is set)",
        url,
    )
