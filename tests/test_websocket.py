"""
Unit tests for WebSocketTransport.

Tests cover:
- Queuing before open and send ordering
- Correlating responses by id in any order
- Close semantics and calls after close
- Request timeouts and caller cancellation
- Heartbeat, reconnect with backoff, and reconnect exhaustion
- Token authentication and the insecure-connection refusal
- Protocol version negotiation
"""

import asyncio
import logging
import pytest
from unittest.mock import MagicMock


class TestWebSocketCallCorrelation:
    """Tests for request ids and response matching."""

    @pytest.mark.asyncio
    async def test_calls_queued_before_open_are_sent_once_open(self, ws_transport, connector):
        """Test that N calls issued before open produce N frames with distinct ids."""
        from rpcwire import ConnectionState
        from tests.mock_server import eventually

        connector.gate = asyncio.Event()
        tasks = [asyncio.create_task(ws_transport.call("echo", [i])) for i in range(5)]

        await eventually(lambda: ws_transport.state is ConnectionState.CONNECTING)
        assert connector.sockets == []

        connector.gate.set()
        await eventually(lambda: connector.sockets and len(connector.latest.requests()) == 5)

        requests = connector.latest.requests()
        assert len({r["id"] for r in requests}) == 5
        # Written in call order
        assert [r["args"] for r in requests] == [[0], [1], [2], [3], [4]]

        for request in reversed(requests):
            connector.latest.respond(request["id"], request["args"][0] * 10)

        assert await asyncio.gather(*tasks) == [0, 10, 20, 30, 40]
        assert ws_transport.pending_count == 0

    @pytest.mark.asyncio
    async def test_responses_out_of_order_resolve_own_caller(self, ws_transport, connector):
        """Test that responding to B before A resolves B first with its own payload."""
        from tests.mock_server import eventually

        a = asyncio.create_task(ws_transport.call("a", []))
        b = asyncio.create_task(ws_transport.call("b", []))
        await eventually(lambda: connector.sockets and len(connector.latest.requests()) == 2)

        ws = connector.latest
        req_a, req_b = ws.requests()
        assert (req_a["id"], req_a["method"]) == (1, "a")
        assert (req_b["id"], req_b["method"]) == (2, "b")

        ws.respond(2, "B")
        assert await b == "B"
        assert not a.done()

        ws.respond(1, "A")
        assert await a == "A"

    @pytest.mark.asyncio
    async def test_request_frame_shape(self, ws_transport, connector):
        """Test that the wire frame is {id, method, args}."""
        from tests.mock_server import eventually

        task = asyncio.create_task(ws_transport.call("users.get", [1, {"full": True}]))
        await eventually(lambda: connector.sockets and connector.latest.requests())

        assert connector.latest.requests()[0] == {
            "id": 1,
            "method": "users.get",
            "args": [1, {"full": True}],
        }
        connector.latest.respond(1, None)
        assert await task is None

    @pytest.mark.asyncio
    async def test_error_payload_rejects_with_rpc_error(self, ws_transport, connector):
        """Test that an error response raises RpcError with code and data."""
        from rpcwire import RpcError
        from tests.mock_server import eventually

        task = asyncio.create_task(ws_transport.call("missing", []))
        await eventually(lambda: connector.sockets and connector.latest.requests())
        connector.latest.push(
            {"id": 1, "error": {"message": "no such method", "code": "METHOD_NOT_FOUND", "data": {"m": 1}}}
        )

        with pytest.raises(RpcError) as exc_info:
            await task
        assert exc_info.value.code == "METHOD_NOT_FOUND"
        assert exc_info.value.message == "no such method"
        assert exc_info.value.data == {"m": 1}

    @pytest.mark.asyncio
    async def test_message_without_result_or_error_is_ignored(self, ws_transport, connector):
        """Test that {id} alone leaves the request pending."""
        from tests.mock_server import eventually

        task = asyncio.create_task(ws_transport.call("slow", []))
        await eventually(lambda: connector.sockets and connector.latest.requests())

        connector.latest.push({"id": 1})
        await asyncio.sleep(0.01)
        assert not task.done()
        assert ws_transport.pending_count == 1

        connector.latest.push({"id": 1, "result": None})
        assert await task is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_reported_and_ignored(self, connector, ws_options):
        """Test that garbage frames reach on_error without breaking the connection."""
        from rpcwire import ErrorCode, RpcError, WebSocketTransport
        from tests.mock_server import eventually

        errors = []
        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, on_error=errors.append
        )
        try:
            task = asyncio.create_task(transport.call("ping", []))
            await eventually(lambda: connector.sockets and connector.latest.requests())

            connector.latest.push("not json")
            connector.latest.push("[1, 2, 3]")
            connector.latest.push({"id": {"nested": True}, "result": 1})
            connector.latest.respond(1, "pong")
            assert await task == "pong"
            assert transport.is_connected

            assert len(errors) == 3
            assert all(isinstance(e, RpcError) for e in errors)
            assert all(e.code == ErrorCode.INVALID_RESPONSE for e in errors)
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_unknown_id_goes_to_on_message(self, connector, ws_options):
        """Test that unmatched messages are forwarded to on_message."""
        from rpcwire import WebSocketTransport
        from tests.mock_server import eventually

        on_message = MagicMock()
        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, on_message=on_message
        )
        try:
            await transport.connect()
            connector.latest.push({"id": 99, "result": 1})
            connector.latest.push({"type": "event", "name": "tick"})
            await eventually(lambda: on_message.call_count == 2)
            assert on_message.call_args_list[0].args[0] == {"id": 99, "result": 1}
            assert on_message.call_args_list[1].args[0]["name"] == "tick"
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_string_id_in_response_matches(self, ws_transport, connector):
        """Test that a server echoing the id as a string still resolves the call."""
        from tests.mock_server import eventually

        task = asyncio.create_task(ws_transport.call("x", []))
        await eventually(lambda: connector.sockets and connector.latest.requests())
        connector.latest.push({"id": "1", "result": "ok"})
        assert await task == "ok"

    @pytest.mark.asyncio
    async def test_server_ping_is_answered(self, ws_transport, connector):
        """Test that a server ping gets a pong."""
        from tests.mock_server import eventually

        await ws_transport.connect()
        connector.latest.push({"type": "ping", "id": "ping-1"})
        await eventually(lambda: connector.latest.of_type("pong"))


class TestWebSocketClose:
    """Tests for close semantics."""

    @pytest.mark.asyncio
    async def test_call_after_close_never_writes(self, ws_transport, connector):
        """Test that calls on a closed transport reject without touching the wire."""
        from rpcwire import ConnectionError, ConnectionState, ErrorCode

        await ws_transport.connect()
        ws = connector.latest
        await ws_transport.close()

        with pytest.raises(ConnectionError) as exc_info:
            await ws_transport.call("x", [])
        assert exc_info.value.code == ErrorCode.CONNECTION_CLOSED
        assert ws.requests() == []
        assert connector.attempts == 1
        assert ws_transport.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_call_on_never_opened_closed_transport(self, ws_transport, connector):
        """Test that a transport closed before use never connects."""
        from rpcwire import ConnectionError

        await ws_transport.close()
        with pytest.raises(ConnectionError):
            await ws_transport.call("x", [])
        assert connector.attempts == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, ws_transport, connector):
        """Test that close() can be called repeatedly."""
        from rpcwire import ConnectionState

        await ws_transport.connect()
        for _ in range(3):
            await ws_transport.close()
        assert ws_transport.state is ConnectionState.CLOSED
        assert connector.latest.close_code == 1000

    @pytest.mark.asyncio
    async def test_close_rejects_pending_calls(self, ws_transport, connector):
        """Test that close() fails every outstanding call with a closed error."""
        from rpcwire import ConnectionError, ErrorCode
        from tests.mock_server import eventually

        tasks = [asyncio.create_task(ws_transport.call("slow", [i])) for i in range(3)]
        await eventually(lambda: connector.sockets and len(connector.latest.requests()) == 3)

        await ws_transport.close()

        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(r, ConnectionError) for r in results)
        assert all(r.code == ErrorCode.CONNECTION_CLOSED for r in results)
        assert ws_transport.pending_count == 0
        assert connector.latest.close_reason == "Client disconnect"

    @pytest.mark.asyncio
    async def test_close_during_connect(self, ws_transport, connector):
        """Test that closing while connecting rejects queued calls."""
        from rpcwire import ConnectionError, ConnectionState
        from tests.mock_server import eventually

        connector.gate = asyncio.Event()
        task = asyncio.create_task(ws_transport.call("x", []))
        await eventually(lambda: ws_transport.state is ConnectionState.CONNECTING)

        await ws_transport.close()
        with pytest.raises(ConnectionError):
            await task
        assert ws_transport.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_async_context_manager(self, connector, ws_options):
        """Test that the context manager connects and closes."""
        from rpcwire import ConnectionState, WebSocketTransport

        async with WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector
        ) as transport:
            assert transport.is_connected
        assert transport.state is ConnectionState.CLOSED


class TestWebSocketTimeouts:
    """Tests for per-request deadlines and cancellation."""

    @pytest.mark.asyncio
    async def test_request_timeout(self, connector, ws_options):
        """Test that an unanswered call fails with REQUEST_TIMEOUT."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport

        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, request_timeout=0.05
        )
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await transport.call("slow", [])
            assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT
            assert exc_info.value.retryable is True
            assert transport.pending_count == 0
            assert transport.is_connected
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_per_call_timeout_override(self, ws_transport):
        """Test that call(timeout=) overrides the default."""
        from rpcwire import ConnectionError, ErrorCode

        with pytest.raises(ConnectionError) as exc_info:
            await ws_transport.call("slow", [], timeout=0.02)
        assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT

    @pytest.mark.asyncio
    async def test_late_response_after_timeout_is_ignored(self, ws_transport, connector):
        """Test that a response arriving after the timeout is dropped."""
        from rpcwire import ConnectionError

        with pytest.raises(ConnectionError):
            await ws_transport.call("slow", [], timeout=0.02)

        connector.latest.respond(1, "late")
        await asyncio.sleep(0.01)
        assert ws_transport.pending_count == 0
        assert ws_transport.is_connected

    @pytest.mark.asyncio
    async def test_cancelled_caller_frees_pending_entry(self, ws_transport, connector):
        """Test that cancelling the awaiting task removes the pending request."""
        from tests.mock_server import eventually

        task = asyncio.create_task(ws_transport.call("slow", []))
        await eventually(lambda: ws_transport.pending_count == 1)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert ws_transport.pending_count == 0

    @pytest.mark.asyncio
    async def test_connect_timeout(self, connector, ws_options):
        """Test that a hanging connect fails with CONNECTION_TIMEOUT."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport

        connector.gate = asyncio.Event()
        transport = WebSocketTransport(
            "wss://example.test/rpc",
            ws_options,
            connector=connector,
            connect_timeout=0.02,
            auto_reconnect=False,
        )
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await transport.call("x", [])
            assert exc_info.value.code == ErrorCode.CONNECTION_TIMEOUT
        finally:
            await transport.close()


class TestWebSocketHeartbeat:
    """Tests for heartbeat liveness detection."""

    @pytest.mark.asyncio
    async def test_heartbeat_timeout_rejects_pending_and_reconnects(self, connector, ws_options):
        """Test that a missing pong drops the socket, fails calls and schedules a reconnect."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport
        from tests.mock_server import eventually

        errors = []
        transport = WebSocketTransport(
            "wss://example.test/rpc",
            ws_options,
            connector=connector,
            heartbeat_interval=0.02,
            heartbeat_timeout=0.02,
            on_error=errors.append,
        )
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await asyncio.wait_for(transport.call("slow", []), 1.0)
            assert exc_info.value.code == ErrorCode.HEARTBEAT_TIMEOUT

            first = connector.sockets[0]
            assert first.of_type("ping")
            assert first.of_type("ping")[0]["id"].startswith("ping-")
            await eventually(lambda: first.close_code == 4000)
            await eventually(lambda: connector.attempts >= 2)
            assert any(e.code == ErrorCode.HEARTBEAT_TIMEOUT for e in errors)
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_pong_keeps_connection_alive(self, ws_options):
        """Test that answered pings keep the same connection open."""
        from rpcwire import WebSocketTransport
        from tests.mock_server import MockConnector

        connector = MockConnector(auto_pong=True)
        transport = WebSocketTransport(
            "wss://example.test/rpc",
            ws_options,
            connector=connector,
            heartbeat_interval=0.01,
            heartbeat_timeout=0.05,
        )
        try:
            await transport.connect()
            await asyncio.sleep(0.1)
            assert transport.is_connected
            assert connector.attempts == 1
            assert len(connector.latest.of_type("ping")) >= 2
        finally:
            await transport.close()


class TestWebSocketReconnect:
    """Tests for reconnect-with-backoff."""

    @pytest.mark.asyncio
    async def test_abrupt_close_rejects_and_reconnects(self, connector, ws_options):
        """Test that a dropped socket fails pending calls and a fresh socket is opened."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport
        from tests.mock_server import eventually

        on_disconnect = MagicMock()
        on_reconnecting = MagicMock()
        transport = WebSocketTransport(
            "wss://example.test/rpc",
            ws_options,
            connector=connector,
            on_disconnect=on_disconnect,
            on_reconnecting=on_reconnecting,
        )
        try:
            task = asyncio.create_task(transport.call("slow", []))
            await eventually(lambda: connector.sockets and connector.latest.requests())
            first = connector.latest
            first.drop(1006)

            with pytest.raises(ConnectionError) as exc_info:
                await task
            assert exc_info.value.code == ErrorCode.CONNECTION_LOST

            await eventually(lambda: transport.is_connected and connector.attempts == 2)
            assert on_disconnect.call_args.args[1] == 1006
            on_reconnecting.assert_called_once_with(1, None)

            # New calls go to the new socket; the failed call is not replayed
            new = asyncio.create_task(transport.call("fresh", []))
            await eventually(lambda: connector.latest.requests())
            second = connector.latest
            assert second is not first
            assert [r["method"] for r in second.requests()] == ["fresh"]
            second.respond(second.requests()[0]["id"], 1)
            assert await new == 1
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_no_reconnect_when_disabled(self, connector, ws_options):
        """Test that auto_reconnect=False leaves the transport disconnected."""
        from rpcwire import ConnectionState, WebSocketTransport
        from tests.mock_server import eventually

        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, auto_reconnect=False
        )
        try:
            await transport.connect()
            connector.latest.drop()
            await eventually(lambda: transport.state is ConnectionState.DISCONNECTED)
            await asyncio.sleep(0.05)
            assert connector.attempts == 1

            # The next call connects lazily
            task = asyncio.create_task(transport.call("x", []))
            await eventually(lambda: connector.attempts == 2 and connector.latest.requests())
            connector.latest.respond(connector.latest.requests()[0]["id"], "ok")
            assert await task == "ok"
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_reconnect_exhaustion_closes_transport(self, connector, ws_options):
        """Test that running out of attempts reports RECONNECT_FAILED and closes."""
        from rpcwire import ConnectionError, ConnectionState, ErrorCode, WebSocketTransport
        from tests.mock_server import eventually

        errors = []
        on_reconnecting = MagicMock()
        transport = WebSocketTransport(
            "wss://example.test/rpc",
            ws_options,
            connector=connector,
            max_reconnect_attempts=2,
            on_error=errors.append,
            on_reconnecting=on_reconnecting,
        )
        try:
            await transport.connect()
            connector.failures = [OSError("refused"), OSError("refused")]
            connector.latest.drop()

            await eventually(lambda: transport.state is ConnectionState.CLOSED)
            assert connector.attempts == 3
            assert [c.args for c in on_reconnecting.call_args_list] == [(1, 2), (2, 2)]
            assert errors[-1].code == ErrorCode.RECONNECT_FAILED

            with pytest.raises(ConnectionError) as exc_info:
                await transport.call("x", [])
            assert exc_info.value.code == ErrorCode.CONNECTION_CLOSED
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_failed_connect_rejects_queued_calls(self, connector, ws_options):
        """Test that a failed attempt fails the calls waiting on it."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport

        connector.failures = [OSError("refused")]
        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, auto_reconnect=False
        )
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await transport.call("x", [])
            assert exc_info.value.code == ErrorCode.CONNECTION_FAILED
            assert exc_info.value.retryable is True
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_refused_connect_raises_while_reconnecting(self, connector, ws_options):
        """Test that connect() raises on a refused attempt even with unbounded reconnects."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport
        from tests.mock_server import eventually

        connector.failures = [OSError("Connection refused")]
        transport = WebSocketTransport("wss://example.test/rpc", ws_options, connector=connector)
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await asyncio.wait_for(transport.connect(), 1.0)
            assert exc_info.value.code == ErrorCode.CONNECTION_FAILED
            assert "Connection refused" in exc_info.value.message

            # The background reconnect still goes ahead
            await eventually(lambda: transport.is_connected)
            assert connector.attempts == 2
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_connect_helper_fails_against_refusing_server(self, connector):
        """Test that the top-level connect() surfaces the error and closes the transport."""
        import rpcwire
        from rpcwire import ConnectionError, ErrorCode

        connector.failures = [OSError("Connection refused")] * 100
        with pytest.raises(ConnectionError) as exc_info:
            await asyncio.wait_for(
                rpcwire.connect("api.do", connector=connector, heartbeat_interval=0), 1.0
            )
        assert exc_info.value.code == ErrorCode.CONNECTION_FAILED
        await asyncio.sleep(0.05)
        assert connector.attempts == 1

    def test_backoff_grows_and_is_bounded(self):
        """Test exponential growth capped at the maximum."""
        from rpcwire.transports import calculate_backoff

        assert calculate_backoff(1, 1.0, 2.0, 30.0) == 1.0
        assert calculate_backoff(2, 1.0, 2.0, 30.0) == 2.0
        assert calculate_backoff(3, 1.0, 2.0, 30.0) == 4.0
        assert calculate_backoff(10, 1.0, 2.0, 30.0) == 30.0

    def test_backoff_jitter_never_exceeds_maximum(self):
        """Test that jitter only shortens the delay."""
        from rpcwire.transports import calculate_backoff

        for _ in range(50):
            delay = calculate_backoff(10, 1.0, 2.0, 30.0, jitter=0.2)
            assert 24.0 <= delay <= 30.0


class TestWebSocketAuth:
    """Tests for first-message authentication."""

    @pytest.mark.asyncio
    async def test_token_sent_as_first_message(self, ws_options):
        """Test that the auth frame precedes any call frame."""
        from rpcwire import WebSocketTransport
        from tests.mock_server import MockConnector, eventually

        connector = MockConnector(
            on_connect=lambda ws: ws.push({"type": "auth_result", "success": True})
        )
        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, token="secret"
        )
        try:
            task = asyncio.create_task(transport.call("whoami", []))
            await eventually(lambda: connector.sockets and connector.latest.requests())
            ws = connector.latest
            assert ws.messages[0] == {"type": "auth", "token": "secret"}
            ws.respond(1, "me")
            assert await task == "me"
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_async_token_provider(self, ws_options):
        """Test that a coroutine token provider is awaited."""
        from rpcwire import WebSocketTransport
        from tests.mock_server import MockConnector

        async def provider():
            return "from-provider"

        connector = MockConnector(
            on_connect=lambda ws: ws.push({"type": "auth_result", "success": True})
        )
        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, token=provider
        )
        try:
            await transport.connect()
            assert connector.latest.messages[0]["token"] == "from-provider"
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_rejected_token_is_not_retried(self, ws_options):
        """Test that an auth rejection raises AUTH_FAILED and does not reconnect."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport
        from tests.mock_server import MockConnector

        connector = MockConnector(
            on_connect=lambda ws: ws.push(
                {"type": "auth_result", "success": False, "error": {"message": "bad token"}}
            )
        )
        transport = WebSocketTransport(
            "wss://example.test/rpc", ws_options, connector=connector, token="wrong"
        )
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await transport.call("x", [])
            assert exc_info.value.code == ErrorCode.AUTH_FAILED
            assert exc_info.value.retryable is False
            assert "bad token" in exc_info.value.message

            await asyncio.sleep(0.05)
            assert connector.attempts == 1
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_handshake_401_is_auth_failure(self, connector, ws_options):
        """Test that an HTTP 401 during the handshake maps to AUTH_FAILED."""
        from websockets.datastructures import Headers
        from websockets.exceptions import InvalidStatus
        from websockets.http11 import Response

        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport

        connector.failures = [InvalidStatus(Response(401, "Unauthorized", Headers(), b""))]
        transport = WebSocketTransport("wss://example.test/rpc", ws_options, connector=connector)
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await transport.connect()
            assert exc_info.value.code == ErrorCode.AUTH_FAILED
            await asyncio.sleep(0.05)
            assert connector.attempts == 1
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_insecure_url_refused_before_connecting(self, connector, ws_options):
        """Test that a token over ws:// is refused without opening a socket."""
        from rpcwire import ConnectionError, ErrorCode, WebSocketTransport

        transport = WebSocketTransport(
            "ws://example.test/rpc", ws_options, connector=connector, token="secret"
        )
        try:
            with pytest.raises(ConnectionError) as exc_info:
                await transport.call("x", [])
            assert exc_info.value.code == ErrorCode.INSECURE_CONNECTION
            assert exc_info.value.retryable is False
            assert connector.attempts == 0
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_insecure_url_allowed_with_opt_out(self, ws_options, caplog):
        """Test that allow_insecure_auth permits ws:// with a warning."""
        from rpcwire import WebSocketTransport
        from tests.mock_server import MockConnector

        connector = MockConnector(
            on_connect=lambda ws: ws.push({"type": "auth_result", "success": True})
        )
        transport = WebSocketTransport(
            "ws://localhost:8787/rpc",
            ws_options,
            connector=connector,
            token="dev",
            allow_insecure_auth=True,
        )
        try:
            with caplog.at_level(logging.WARNING, logger="rpcwire"):
                await transport.connect()
            assert transport.is_connected
            assert "insecure" in caplog.text
        finally:
            await transport.close()

    @pytest.mark.asyncio
    async def test_insecure_url_without_token_is_fine(self, connector, ws_options):
        """Test that ws:// without credentials connects normally."""
        from rpcwire import WebSocketTransport

        transport = WebSocketTransport("ws://localhost:8787/rpc", ws_options, connector=connector)
        try:
            await transport.connect()
            assert transport.is_connected
        finally:
            await transport.close()


class TestWebSocketVersion:
    """Tests for protocol version negotiation."""

    @pytest.mark.asyncio
    async def test_compatible_version_recorded(self, ws_transport, connector):
        """Test that a same-major server version is accepted."""
        from tests.mock_server import eventually

        await ws_transport.connect()
        connector.latest.push({"type": "hello", "version": "1.4.0"})
        await eventually(lambda: ws_transport.server_version == "1.4.0")
        assert ws_transport.client_version == "1.0.0"
        assert ws_transport.is_connected

    @pytest.mark.asyncio
    async def test_major_mismatch_warns_by_default(self, ws_transport, connector, caplog):
        """Test that the default behavior logs a warning and stays connected."""
        from tests.mock_server import eventually

        with caplog.at_level(logging.WARNING, logger="rpcwire"):
            await ws_transport.connect()
            connector.latest.push({"type": "hello", "version": "2.0.0"})
            await eventually(lambda: ws_transport.server_version == "2.0.0")
        assert ws_transport.is_connected
        assert "Protocol version mismatch" in caplog.text

    @pytest.mark.asyncio
    async def test_major_mismatch_error_closes(self, connector, ws_options):
        """Test that version_mismatch='error' fails pending calls and closes."""
        from rpcwire import ConnectionState, ProtocolVersionError, WebSocketTransport
        from tests.mock_server import eventually

        errors = []
        transport = WebSocketTransport(
            "wss://example.test/rpc",
            ws_options,
            connector=connector,
            version_mismatch="error",
            on_error=errors.append,
        )
        try:
            task = asyncio.create_task(transport.call("x", []))
            await eventually(lambda: connector.sockets and connector.latest.requests())
            connector.latest.push({"type": "hello", "version": "2.0.0"})

            with pytest.raises(ProtocolVersionError) as exc_info:
                await task
            assert exc_info.value.is_major_mismatch
            assert transport.state is ConnectionState.CLOSED
            assert isinstance(errors[0], ProtocolVersionError)
            await eventually(lambda: connector.latest.close_code == 1002)
        finally:
            await transport.close()
