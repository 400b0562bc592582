"""
Pytest configuration and fixtures for rpcwire tests.

This module provides fixtures for:
- Scripted transport doubles
- A fake WebSocket connector and transports wired to it
- Fast WebSocket options so reconnect/heartbeat tests finish quickly
"""

import pytest
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock, MagicMock


# ============================================================================
# Transport Fixtures
# ============================================================================

@pytest.fixture
def recording_transport():
    """Create a transport that records calls and returns None."""
    from tests.mock_server import RecordingTransport

    return RecordingTransport()


@pytest.fixture
def mock_transport():
    """Create a MagicMock transport with an AsyncMock call."""
    transport = MagicMock()
    transport.call = AsyncMock(return_value={"status": "ok"})
    transport.close = AsyncMock()
    return transport


# ============================================================================
# WebSocket Fixtures
# ============================================================================

@pytest.fixture
def connector():
    """Create a fake connector handing out MockWebSocket instances."""
    from tests.mock_server import MockConnector

    return MockConnector()


@pytest.fixture
def ws_options():
    """WebSocket options with heartbeat off and short reconnect delays."""
    from rpcwire import WebSocketOptions

    return WebSocketOptions(
        heartbeat_interval=0,
        request_timeout=None,
        reconnect_backoff=0.01,
        max_reconnect_backoff=0.05,
        reconnect_jitter=0,
        connect_timeout=1.0,
    )


@pytest.fixture
async def ws_transport(connector, ws_options) -> AsyncGenerator[Any, None]:
    """Create a WebSocketTransport bound to the fake connector."""
    from rpcwire import WebSocketTransport

    transport = WebSocketTransport("wss://example.test/rpc", ws_options, connector=connector)
    yield transport
    await transport.close()
