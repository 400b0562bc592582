"""
WebSocketTransport - many concurrent calls over one persistent connection.

Each call is tagged with a request id and written as
``{"id": 1, "method": "users.get", "args": [...]}``; responses
``{"id": 1, "result": ...}`` or ``{"id": 1, "error": {...}}`` are matched
back to their caller by id, in whatever order they arrive.

The transport owns:
- lazy connection on first call, with calls queued until the socket opens
- strict send order through a single writer task
- application-level heartbeat (``ping``/``pong``) to detect dead sockets
- reconnect with exponential backoff and jitter after unexpected closure
- optional first-message token authentication
- protocol version negotiation
- orderly close that fails every outstanding call

Calls that fail because the connection dropped are never replayed; the
caller decides whether re-issuing is safe.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import json
import logging
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Optional, Sequence, Union

from pydantic import BaseModel, PrivateAttr, ValidationError
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import (
    ConnectionClosed,
    InvalidStatus,
    InvalidURI,
    WebSocketException,
)

from ..constants import PROTOCOL_VERSION
from ..errors import ConnectionError, ErrorCode, ProtocolVersionError, RpcError
from ..types import ConnectionState
from .auth import AuthProvider, check_insecure_auth, resolve_token

__all__ = [
    "WebSocketOptions",
    "WebSocketTransport",
    "PendingRequest",
    "ServerMessage",
    "calculate_backoff",
    "ws",
]

logger = logging.getLogger(__name__)

_UNSET: Any = object()

# Close codes sent by the client
CLOSE_NORMAL = 1000
CLOSE_PROTOCOL_ERROR = 1002
CLOSE_HEARTBEAT_TIMEOUT = 4000
CLOSE_AUTH_FAILED = 4001

Connector = Callable[[str], Awaitable[Any]]


def _default_connector(url: str) -> Awaitable[Any]:
    # Liveness is handled by our own heartbeat, not websockets' keepalive
    return ws_connect(url, ping_interval=None, open_timeout=None)


# ============================================================================
# Options and wire models
# ============================================================================


@dataclass
class WebSocketOptions:
    """
    Tuning for WebSocketTransport. All durations are in seconds.

    Attributes:
        token: Token string or provider sent as the first message
        auto_reconnect: Reconnect after unexpected closure
        max_reconnect_attempts: Give up after this many attempts (None = never)
        reconnect_backoff: Delay before the first reconnect attempt
        max_reconnect_backoff: Upper bound for any reconnect delay
        backoff_multiplier: Growth factor between attempts
        reconnect_jitter: Fraction of the delay randomly shaved off (0 disables)
        heartbeat_interval: Seconds between pings (0 disables the heartbeat)
        heartbeat_timeout: Seconds to wait for a pong before dropping the socket
        connect_timeout: Bound on opening the socket and the auth handshake
        request_timeout: Default per-call deadline (None disables it)
        allow_insecure_auth: Permit sending the token over ws://
        version_mismatch: "warn", "error" or "ignore" on major version mismatch
    """

    token: AuthProvider = None
    auto_reconnect: bool = True
    max_reconnect_attempts: Optional[int] = None
    reconnect_backoff: float = 1.0
    max_reconnect_backoff: float = 30.0
    backoff_multiplier: float = 2.0
    reconnect_jitter: float = 0.2
    heartbeat_interval: float = 30.0
    heartbeat_timeout: float = 5.0
    connect_timeout: float = 10.0
    request_timeout: Optional[float] = 30.0
    allow_insecure_auth: bool = False
    version_mismatch: Literal["warn", "error", "ignore"] = "warn"

    on_connect: Optional[Callable[[], Any]] = None
    on_disconnect: Optional[Callable[[str, Optional[int]], Any]] = None
    on_reconnecting: Optional[Callable[[int, Optional[int]], Any]] = None
    on_error: Optional[Callable[[BaseException], Any]] = None
    on_message: Optional[Callable[[dict[str, Any]], Any]] = None


class ServerMessage(BaseModel):
    """Envelope of any message received from the server."""

    id: Union[int, str, None] = None
    type: Optional[str] = None
    result: Any = None
    error: Any = None
    version: Any = None
    success: Optional[bool] = None

    model_config = {"extra": "ignore"}

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @property
    def has_result(self) -> bool:
        # An explicit null result still counts as a result
        return "result" in self.model_fields_set

    @property
    def raw(self) -> dict[str, Any]:
        """The decoded JSON object as received."""
        return self._raw


@dataclass
class PendingRequest:
    """An outstanding call waiting for its correlated response."""

    id: int
    method: str
    future: asyncio.Future[Any]
    created_at: float = field(default_factory=time.monotonic)
    timer: Optional[asyncio.TimerHandle] = None

    def resolve(self, value: Any) -> None:
        self._cancel_timer()
        if not self.future.done():
            self.future.set_result(value)

    def reject(self, error: BaseException) -> None:
        self._cancel_timer()
        if not self.future.done():
            self.future.set_exception(error)

    def _cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


def calculate_backoff(
    attempt: int,
    base: float,
    multiplier: float,
    maximum: float,
    jitter: float = 0.0,
) -> float:
    """
    Delay before reconnect ``attempt`` (1-based).

    ``min(base * multiplier ** (attempt - 1), maximum)``, then scaled by a
    random factor in ``[1 - jitter, 1]`` so it never exceeds ``maximum``.
    """
    delay = min(base * multiplier ** max(attempt - 1, 0), maximum)
    if jitter > 0:
        delay *= 1.0 - jitter * random.random()
    return delay


# ============================================================================
# Transport
# ============================================================================


class WebSocketTransport:
    """
    Duplex transport multiplexing concurrent calls over one WebSocket.

    Example:
        transport = WebSocketTransport(
            "wss://my-do.example.com/rpc",
            WebSocketOptions(token="secret", heartbeat_interval=15.0),
        )
        a, b = await asyncio.gather(
            transport.call("users.get", [1]),
            transport.call("users.get", [2]),
        )
        await transport.close()
    """

    def __init__(
        self,
        url: str,
        options: WebSocketOptions | None = None,
        *,
        connector: Connector | None = None,
        **overrides: Any,
    ) -> None:
        """
        Args:
            url: ws:// or wss:// endpoint
            options: Transport tuning; keyword overrides are applied on top
            connector: Coroutine function opening the socket (for testing)
        """
        options = options or WebSocketOptions()
        if overrides:
            options = dataclasses.replace(options, **overrides)
        self._url = url
        self._options = options
        self._connector: Connector = connector or _default_connector

        self._state = ConnectionState.DISCONNECTED
        self._ws: Any = None
        self._next_id = 1
        self._pending: dict[int, PendingRequest] = {}
        self._outbox: deque[tuple[Optional[int], str]] = deque()
        self._outbox_ready = asyncio.Event()
        self._pong = asyncio.Event()

        self._connect_task: asyncio.Task[None] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Future[Any]] = set()
        self._open_waiters: list[asyncio.Future[None]] = []

        self._reconnect_attempts = 0
        self._server_version: str | None = None
        self._last_error: BaseException | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def options(self) -> WebSocketOptions:
        return self._options

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def server_version(self) -> str | None:
        return self._server_version

    @property
    def client_version(self) -> str:
        return PROTOCOL_VERSION

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    def __repr__(self) -> str:
        return f"WebSocketTransport({self._url!r}, state={self._state.value})"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        args: Sequence[Any] = (),
        *,
        timeout: float | None = _UNSET,
    ) -> Any:
        """
        Send one call and wait for its correlated response.

        Raises:
            ConnectionError: CONNECTION_CLOSED if the transport is closing or
                closed (nothing is written), REQUEST_TIMEOUT when the deadline
                elapses, CONNECTION_LOST / HEARTBEAT_TIMEOUT when the socket
                drops before the response arrives.
            RpcError: when the server answers with an error payload.
        """
        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            raise ConnectionError.closed("Transport is closed")

        request_id = self._next_id
        self._next_id += 1
        frame = json.dumps({"id": request_id, "method": method, "args": list(args)})

        loop = asyncio.get_running_loop()
        pending = PendingRequest(request_id, method, loop.create_future())
        deadline = self._options.request_timeout if timeout is _UNSET else timeout
        if deadline is not None and deadline > 0:
            pending.timer = loop.call_later(deadline, self._expire, request_id, deadline)
        self._pending[request_id] = pending

        self._outbox.append((request_id, frame))
        self._outbox_ready.set()
        self._ensure_connecting()

        try:
            return await pending.future
        finally:
            self._discard(request_id)

    async def connect(self) -> None:
        """
        Open the connection now instead of on the first call.

        Raises:
            ConnectionError: if the attempt fails or the transport is closed.
        """
        if self._state is ConnectionState.OPEN:
            return
        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            raise ConnectionError.closed("Transport is closed")

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._open_waiters.append(waiter)
        self._ensure_connecting()
        try:
            await waiter
        finally:
            if waiter in self._open_waiters:
                self._open_waiters.remove(waiter)

    async def close(self) -> None:
        """
        Close the connection and fail every outstanding call.

        Disables reconnection. Calling it again is a no-op.
        """
        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return

        was_open = self._state is ConnectionState.OPEN
        self._state = ConnectionState.CLOSING
        logger.debug("Closing %r", self)

        tasks = self._stop_tasks(include_connect=True)
        error = ConnectionError.closed()
        self._reject_all(error)
        self._notify_open_waiters(error)

        ws = self._ws
        self._ws = None
        if ws is not None:
            try:
                await ws.close(CLOSE_NORMAL, "Client disconnect")
            except (ConnectionClosed, OSError) as e:
                logger.debug("Socket already gone while closing: %s", e)

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._state = ConnectionState.CLOSED
        if was_open:
            self._emit("on_disconnect", "Client disconnect", CLOSE_NORMAL)

    async def __aenter__(self) -> WebSocketTransport:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def backoff_delay(self, attempt: int) -> float:
        """Reconnect delay for a 1-based attempt number."""
        opts = self._options
        return calculate_backoff(
            attempt,
            opts.reconnect_backoff,
            opts.backoff_multiplier,
            opts.max_reconnect_backoff,
            opts.reconnect_jitter,
        )

    # ------------------------------------------------------------------
    # Pending bookkeeping
    # ------------------------------------------------------------------

    def _discard(self, request_id: int) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None:
            pending._cancel_timer()

    def _expire(self, request_id: int, deadline: float) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None:
            logger.debug("Request %d (%s) timed out", request_id, pending.method)
            pending.reject(ConnectionError.request_timeout(deadline))

    def _reject_all(self, error: BaseException) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        self._outbox.clear()
        for request in pending:
            request.reject(error)

    def _notify_open_waiters(self, error: BaseException | None) -> None:
        waiters, self._open_waiters = self._open_waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def _ensure_connecting(self) -> None:
        if self._state is ConnectionState.DISCONNECTED and self._connect_task is None:
            self._connect_task = asyncio.create_task(self._connect_loop(0.0))

    async def _connect_loop(self, delay: float) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            if self._state is not ConnectionState.DISCONNECTED:
                return

            self._state = ConnectionState.CONNECTING
            logger.debug("Connecting to %s", self._url)
            try:
                ws = await self._open()
            except (ConnectionError, ProtocolVersionError) as e:
                self._connect_failed(e)
            except (OSError, WebSocketException, ValueError) as e:
                self._connect_failed(
                    ConnectionError(
                        f"Failed to connect: {e}", ErrorCode.CONNECTION_FAILED, retryable=True
                    )
                )
            else:
                self._connection_opened(ws)
        finally:
            if self._connect_task is asyncio.current_task():
                self._connect_task = None

    async def _open(self) -> Any:
        opts = self._options
        self._server_version = None
        token = await resolve_token(opts.token)
        # Refuse before any socket is opened
        check_insecure_auth(self._url, token, opts.allow_insecure_auth)

        try:
            ws = await asyncio.wait_for(self._connector(self._url), opts.connect_timeout)
        except asyncio.TimeoutError:
            raise ConnectionError.timeout(opts.connect_timeout) from None
        except InvalidStatus as e:
            status = e.response.status_code
            if status in (401, 403):
                raise ConnectionError.auth_failed(f"HTTP {status}") from e
            raise ConnectionError(
                f"Connection rejected: HTTP {status}", ErrorCode.CONNECTION_FAILED, retryable=True
            ) from e
        except InvalidURI as e:
            raise ConnectionError(
                f"Invalid URL: {e}", ErrorCode.CONNECTION_FAILED, retryable=False
            ) from e

        if token:
            try:
                await self._authenticate(ws, token)
            except BaseException:
                self._spawn(self._close_socket(ws, CLOSE_AUTH_FAILED, "Authentication failed"))
                raise
        return ws

    async def _authenticate(self, ws: Any, token: str) -> None:
        await ws.send(json.dumps({"type": "auth", "token": token}))
        try:
            raw = await asyncio.wait_for(ws.recv(), self._options.connect_timeout)
        except asyncio.TimeoutError:
            raise ConnectionError.timeout(self._options.connect_timeout) from None
        except ConnectionClosed as e:
            raise ConnectionError.auth_failed(f"connection closed during handshake ({e})") from e

        message = self._parse(raw)
        if message is None or message.type != "auth_result":
            raise ConnectionError.auth_failed("unexpected handshake response")
        if not message.success:
            reason = None
            if isinstance(message.error, dict):
                reason = message.error.get("message")
            raise ConnectionError.auth_failed(reason)
        if message.version is not None:
            error = self._check_version(str(message.version))
            if error is not None:
                raise error

    def _connection_opened(self, ws: Any) -> None:
        self._ws = ws
        self._state = ConnectionState.OPEN
        self._reconnect_attempts = 0
        self._last_error = None
        self._pong = asyncio.Event()
        logger.debug("Connected to %s", self._url)

        self._reader_task = asyncio.create_task(self._reader(ws))
        self._writer_task = asyncio.create_task(self._writer(ws))
        if self._options.heartbeat_interval > 0:
            self._heartbeat_task = asyncio.create_task(self._heartbeat(ws))
        self._outbox_ready.set()

        self._notify_open_waiters(None)
        self._emit("on_connect")

    def _connect_failed(self, error: BaseException) -> None:
        logger.debug("Connection attempt to %s failed: %s", self._url, error)
        self._last_error = error
        self._reject_all(error)
        self._emit_error(error)

        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return
        if isinstance(error, ProtocolVersionError):
            self._state = ConnectionState.CLOSED
            self._notify_open_waiters(error)
            return

        self._state = ConnectionState.DISCONNECTED
        # Explicit connect() callers always see the failed attempt
        self._notify_open_waiters(error)
        if self._options.auto_reconnect and getattr(error, "retryable", False):
            self._schedule_reconnect()

    def _connection_lost(
        self,
        ws: Any,
        error: BaseException,
        *,
        close_code: int | None = None,
        reason: str = "",
        remote_code: int | None = None,
        reconnect: bool = True,
    ) -> None:
        if ws is not self._ws or self._state is not ConnectionState.OPEN:
            return

        logger.debug("Connection to %s lost: %s", self._url, error)
        self._ws = None
        self._last_error = error
        self._stop_tasks(include_connect=False)
        self._reject_all(error)
        if close_code is not None:
            self._spawn(self._close_socket(ws, close_code, reason))

        self._state = ConnectionState.DISCONNECTED
        self._emit(
            "on_disconnect",
            reason or str(error),
            remote_code if remote_code is not None else close_code,
        )

        if not reconnect:
            self._state = ConnectionState.CLOSED
            return
        if self._options.auto_reconnect and getattr(error, "retryable", False):
            self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        limit = self._options.max_reconnect_attempts
        if limit is not None and self._reconnect_attempts >= limit:
            error = ConnectionError.reconnect_failed(self._reconnect_attempts)
            logger.debug("Giving up on %s: %s", self._url, error)
            self._last_error = error
            self._state = ConnectionState.CLOSED
            self._reject_all(error)
            self._emit_error(error)
            return

        self._reconnect_attempts += 1
        delay = self.backoff_delay(self._reconnect_attempts)
        logger.debug(
            "Reconnecting to %s in %.3fs (attempt %d)",
            self._url,
            delay,
            self._reconnect_attempts,
        )
        self._emit("on_reconnecting", self._reconnect_attempts, limit)
        self._connect_task = asyncio.create_task(self._connect_loop(delay))

    def _stop_tasks(self, *, include_connect: bool) -> list[asyncio.Task[Any]]:
        current = asyncio.current_task()
        tasks = [self._reader_task, self._writer_task, self._heartbeat_task]
        if include_connect:
            tasks.append(self._connect_task)
            self._connect_task = None
        self._reader_task = self._writer_task = self._heartbeat_task = None

        stopped = []
        for task in tasks:
            if task is not None and task is not current and not task.done():
                task.cancel()
                stopped.append(task)
        return stopped

    async def _close_socket(self, ws: Any, code: int, reason: str) -> None:
        try:
            await ws.close(code, reason)
        except (ConnectionClosed, OSError) as e:
            logger.debug("Error closing socket: %s", e)

    # ------------------------------------------------------------------
    # Connection tasks
    # ------------------------------------------------------------------

    async def _writer(self, ws: Any) -> None:
        try:
            while True:
                while self._outbox:
                    request_id, frame = self._outbox.popleft()
                    if request_id is not None and request_id not in self._pending:
                        # Already timed out or cancelled
                        continue
                    await ws.send(frame)
                self._outbox_ready.clear()
                await self._outbox_ready.wait()
        except (ConnectionClosed, OSError) as e:
            self._connection_lost(ws, ConnectionError.connection_lost(str(e)))

    async def _reader(self, ws: Any) -> None:
        try:
            async for raw in ws:
                self._handle_raw(ws, raw)
                if ws is not self._ws:
                    return
        except ConnectionClosed:
            pass
        except OSError as e:
            logger.debug("Socket read failed: %s", e)

        code = getattr(ws, "close_code", None)
        reason = getattr(ws, "close_reason", None) or ""
        self._connection_lost(
            ws,
            ConnectionError.connection_lost(reason or f"socket closed (code {code})"),
            reason=reason,
            remote_code=code,
        )

    async def _heartbeat(self, ws: Any) -> None:
        interval = self._options.heartbeat_interval
        timeout = self._options.heartbeat_timeout
        while True:
            await asyncio.sleep(interval)
            self._pong.clear()
            timestamp = int(time.time() * 1000)
            self._send_control({"type": "ping", "id": f"ping-{timestamp}", "timestamp": timestamp})
            try:
                await asyncio.wait_for(self._pong.wait(), timeout)
            except asyncio.TimeoutError:
                error = ConnectionError.heartbeat_timeout()
                self._emit_error(error)
                self._connection_lost(
                    ws,
                    error,
                    close_code=CLOSE_HEARTBEAT_TIMEOUT,
                    reason="Heartbeat timeout",
                )
                return

    def _send_control(self, message: dict[str, Any]) -> None:
        self._outbox.append((None, json.dumps(message)))
        self._outbox_ready.set()

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    def _parse(self, raw: Any) -> ServerMessage | None:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw)
        except ValueError as e:
            return self._reject_frame(f"Invalid JSON message: {e}")
        if not isinstance(data, dict):
            return self._reject_frame("Message is not a JSON object")
        try:
            message = ServerMessage.model_validate(data)
        except ValidationError as e:
            return self._reject_frame(f"Malformed message: {e}")
        message._raw = data
        return message

    def _reject_frame(self, reason: str) -> None:
        logger.warning("Ignoring message from %s: %s", self._url, reason)
        self._emit_error(RpcError(reason, ErrorCode.INVALID_RESPONSE))
        return None

    def _handle_raw(self, ws: Any, raw: Any) -> None:
        message = self._parse(raw)
        if message is None:
            return

        if message.version is not None and self._server_version is None:
            error = self._check_version(str(message.version))
            if error is not None:
                self._emit_error(error)
                self._connection_lost(
                    ws,
                    error,
                    close_code=CLOSE_PROTOCOL_ERROR,
                    reason="Protocol version mismatch",
                    reconnect=False,
                )
                return

        if message.type == "pong":
            self._pong.set()
            return
        if message.type == "ping":
            self._send_control({"type": "pong", "timestamp": int(time.time() * 1000)})
            return

        pending = self._lookup(message.id)
        if pending is not None:
            if message.error is not None:
                self._discard(pending.id)
                pending.reject(RpcError.from_payload(message.error))
                return
            if message.has_result:
                self._discard(pending.id)
                pending.resolve(message.result)
                return
            logger.debug("Ignoring message for %s without result or error", message.id)
            return

        if message.id is not None and (message.has_result or message.error is not None):
            logger.debug("Ignoring response for unknown request id %r", message.id)
        if self._options.on_message is not None:
            self._emit("on_message", message.raw)

    def _lookup(self, request_id: int | str | None) -> PendingRequest | None:
        if request_id is None:
            return None
        pending = self._pending.get(request_id)  # type: ignore[arg-type]
        if pending is None and isinstance(request_id, str) and request_id.isdigit():
            pending = self._pending.get(int(request_id))
        return pending

    def _check_version(self, server_version: str) -> ProtocolVersionError | None:
        self._server_version = server_version
        if ProtocolVersionError.are_compatible(PROTOCOL_VERSION, server_version):
            return None

        behavior = self._options.version_mismatch
        error = ProtocolVersionError(PROTOCOL_VERSION, server_version)
        if behavior == "error":
            return error
        if behavior == "warn":
            logger.warning("%s", error.message)
        return None

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _emit(self, name: str, *args: Any) -> None:
        handler = getattr(self._options, name)
        if handler is None:
            return
        try:
            result = handler(*args)
        except Exception:
            logger.exception("%s handler raised", name)
            return
        if inspect.isawaitable(result):
            self._spawn(result)

    def _emit_error(self, error: BaseException) -> None:
        logger.debug("Transport error on %s: %s", self._url, error)
        self._emit("on_error", error)

    def _spawn(self, awaitable: Awaitable[Any]) -> None:
        future = asyncio.ensure_future(awaitable)
        self._background.add(future)
        future.add_done_callback(self._background_done)

    def _background_done(self, future: asyncio.Future[Any]) -> None:
        self._background.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Background task failed", exc_info=future.exception())


def ws(url: str, options: WebSocketOptions | None = None, **overrides: Any) -> WebSocketTransport:
    """Create a WebSocket transport; keyword overrides update ``options``."""
    return WebSocketTransport(url, options, **overrides)
