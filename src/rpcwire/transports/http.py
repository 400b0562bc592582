"""
HttpTransport - one call, one HTTP exchange.

Each call POSTs ``{"path": method, "args": [...]}`` to the endpoint and
returns the decoded JSON body. No connection state is shared between calls
beyond the pooled ``httpx.AsyncClient`` and the optional credential.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx

from ..errors import (
    AuthenticationError,
    ConnectionError,
    ErrorCode,
    RateLimitError,
    RpcError,
)
from .auth import AuthProvider, resolve_token

__all__ = ["HttpTransport", "http"]

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is not interpreted
        return None


class HttpTransport:
    """
    Request/response transport over HTTP.

    Example:
        transport = HttpTransport("https://my-do.example.com/rpc", "token", timeout=10.0)
        users = await transport.call("users.list", [])

        # Per-call deadline overrides the transport default
        report = await transport.call("reports.build", [2024], timeout=60.0)
    """

    def __init__(
        self,
        url: str,
        auth: AuthProvider = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Args:
            url: Endpoint receiving the POSTed call envelopes
            auth: Token string or provider callable (sync or async)
            timeout: Default per-call deadline in seconds (None disables it)
            client: Optional pre-configured httpx client; not closed by us
            headers: Extra headers sent with every request
        """
        self._url = url
        self._auth = auth
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._headers = dict(headers or {})
        self._closed = False

    @property
    def url(self) -> str:
        return self._url

    def _get_client(self) -> httpx.AsyncClient:
        if self._closed:
            raise ConnectionError.closed("Transport is closed")
        if self._client is None:
            # Deadlines are enforced per call, not by httpx
            self._client = httpx.AsyncClient(timeout=None)
        return self._client

    async def call(
        self,
        method: str,
        args: Sequence[Any] = (),
        *,
        timeout: float | None = _UNSET,
    ) -> Any:
        """
        Perform one exchange.

        Raises:
            ConnectionError: REQUEST_TIMEOUT when the deadline elapses,
                NETWORK_ERROR on transport failures.
            AuthenticationError: on HTTP 401.
            RateLimitError: on HTTP 429.
            RpcError: on any other failure status or an unparseable body.
        """
        deadline = self._timeout if timeout is _UNSET else timeout
        if deadline is None or deadline <= 0:
            return await self._exchange(method, args)

        try:
            return await asyncio.wait_for(self._exchange(method, args), deadline)
        except asyncio.TimeoutError:
            logger.debug("HTTP call %s exceeded deadline of %ss", method, deadline)
            raise ConnectionError.request_timeout(deadline) from None

    async def _exchange(self, method: str, args: Sequence[Any]) -> Any:
        client = self._get_client()
        headers = {"Content-Type": "application/json", **self._headers}
        token = await resolve_token(self._auth)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await client.post(
                self._url,
                json={"path": method, "args": list(args)},
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise ConnectionError(
                f"Request timeout: {e}", ErrorCode.REQUEST_TIMEOUT, retryable=True
            ) from e
        except httpx.RequestError as e:
            raise ConnectionError.network(str(e) or type(e).__name__) from e

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> Any:
        status = response.status_code

        if status == 401:
            raise AuthenticationError(self._error_message(response) or "Authentication failed")

        if status == 429:
            raise RateLimitError(
                self._error_message(response) or "Rate limit exceeded",
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
            )

        if status >= 400:
            payload = self._json_or_none(response)
            if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
                error = payload["error"]
                raise RpcError(
                    str(error.get("message") or f"HTTP {status}"),
                    error.get("code") or f"HTTP_{status}",
                    error.get("data"),
                )
            raise RpcError(
                f"HTTP {status}: {response.reason_phrase}".rstrip(": "),
                f"HTTP_{status}",
                payload,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RpcError(
                f"Invalid JSON response: {e}", ErrorCode.INVALID_RESPONSE
            ) from e

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _error_message(self, response: httpx.Response) -> str | None:
        payload = self._json_or_none(response)
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str):
                return error
        return None

    async def close(self) -> None:
        """Release the pooled HTTP client. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"HttpTransport({self._url!r})"


def http(
    url: str,
    auth: AuthProvider = None,
    *,
    timeout: float | None = None,
    **options: Any,
) -> HttpTransport:
    """Create an HTTP transport. Extra keyword options go to HttpTransport."""
    return HttpTransport(url, auth, timeout=timeout, **options)
