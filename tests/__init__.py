"""
Test package for rpcwire.

This package contains:
- test_proxy.py: Call-path proxy and promise tests
- test_client.py: Root client, factories and sub-handles
- test_websocket.py: Duplex transport tests
- test_http.py: HTTP transport tests
- test_binding.py: In-process binding tests
- test_composite.py: Fallback chain tests
- test_retry.py: Retry decorator tests
- test_batching.py: Request batching tests
- test_middleware.py: Middleware hook tests
- test_errors.py: Error taxonomy tests
- test_config.py: Configuration tests
- mock_server.py: Fake WebSocket server and transport doubles
- conftest.py: Pytest configuration and fixtures
"""
