"""
Error taxonomy for rpcwire.

Every failure surfaced by a transport, the call-path proxy or a decorator
is one of the classes below, each carrying a machine-readable ``code``.

Error Hierarchy:
- RpcWireError (base)
  - ConnectionError: connect/transport failures, each with a retryable flag
  - RpcError: errors returned by the remote method dispatcher
  - ProtocolVersionError: client/server protocol major version mismatch
  - AuthenticationError: credentials rejected by the server (HTTP 401)
  - RateLimitError: request throttled by the server (HTTP 429)
  - TransportNotInitializedError: sync access before an async factory resolved
"""

from __future__ import annotations

from enum import Enum
from typing import Any

__all__ = [
    "ErrorCode",
    "RETRYABLE_CONNECTION_CODES",
    "RpcWireError",
    "ConnectionError",
    "RpcError",
    "ProtocolVersionError",
    "AuthenticationError",
    "RateLimitError",
    "TransportNotInitializedError",
    "is_error_code",
]


# ============================================================================
# Error Codes
# ============================================================================


class ErrorCode(str, Enum):
    """
    Machine-readable error codes.

    Members compare equal to their string value, so ``error.code ==
    ErrorCode.REQUEST_TIMEOUT`` and ``error.code == "REQUEST_TIMEOUT"`` are
    equivalent.
    """

    # Connection-level failures
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    CONNECTION_LOST = "CONNECTION_LOST"
    CONNECTION_CLOSED = "CONNECTION_CLOSED"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    AUTH_FAILED = "AUTH_FAILED"
    RECONNECT_FAILED = "RECONNECT_FAILED"
    HEARTBEAT_TIMEOUT = "HEARTBEAT_TIMEOUT"
    INSECURE_CONNECTION = "INSECURE_CONNECTION"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"

    # Remote method failures
    RPC_ERROR = "RPC_ERROR"
    UNKNOWN_NAMESPACE = "UNKNOWN_NAMESPACE"
    UNKNOWN_METHOD = "UNKNOWN_METHOD"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    # Validation / protocol
    PROTOCOL_VERSION_MISMATCH = "PROTOCOL_VERSION_MISMATCH"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    TRANSPORT_NOT_INITIALIZED = "TRANSPORT_NOT_INITIALIZED"


RETRYABLE_CONNECTION_CODES: frozenset[str] = frozenset(
    {
        ErrorCode.CONNECTION_TIMEOUT.value,
        ErrorCode.CONNECTION_LOST.value,
        ErrorCode.CONNECTION_FAILED.value,
        ErrorCode.NETWORK_ERROR.value,
        ErrorCode.HEARTBEAT_TIMEOUT.value,
        ErrorCode.REQUEST_TIMEOUT.value,
    }
)


def _code_value(code: ErrorCode | str) -> str:
    return code.value if isinstance(code, ErrorCode) else str(code)


# ============================================================================
# Base Error Class
# ============================================================================


class RpcWireError(Exception):
    """
    Base error class for all rpcwire errors.

    Example:
        ```python
        try:
            await client.users.get(1)
        except RpcWireError as error:
            print(f"RPC failed [{error.code}]: {error.message}")
        ```

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    def __init__(self, message: str, code: ErrorCode | str) -> None:
        super().__init__(message)
        self.message = message
        self.code = _code_value(code)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={self.code!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the error."""
        return {
            "name": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
        }


# ============================================================================
# Specific Error Types
# ============================================================================


class ConnectionError(RpcWireError):
    """
    Error raised when a connection cannot be established, is lost, or a
    request could not complete at the transport level.

    The ``retryable`` flag drives the retry decorator's default predicate.
    Use the classmethod factories rather than constructing directly so the
    code and flag always agree.

    Example:
        ```python
        try:
            await transport.call("users.list", [])
        except ConnectionError as error:
            if error.retryable:
                ...
        ```
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.CONNECTION_FAILED,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, code)
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data

    @classmethod
    def timeout(cls, timeout: float) -> ConnectionError:
        return cls(
            f"Connection timeout after {timeout:g}s",
            ErrorCode.CONNECTION_TIMEOUT,
            retryable=True,
        )

    @classmethod
    def auth_failed(cls, reason: str | None = None) -> ConnectionError:
        message = f"Authentication failed: {reason}" if reason else "Authentication failed"
        return cls(message, ErrorCode.AUTH_FAILED, retryable=False)

    @classmethod
    def connection_lost(cls, reason: str | None = None) -> ConnectionError:
        message = f"Connection lost: {reason}" if reason else "Connection lost"
        return cls(message, ErrorCode.CONNECTION_LOST, retryable=True)

    @classmethod
    def reconnect_failed(cls, attempts: int) -> ConnectionError:
        return cls(
            f"Failed to reconnect after {attempts} attempts",
            ErrorCode.RECONNECT_FAILED,
            retryable=False,
        )

    @classmethod
    def heartbeat_timeout(cls) -> ConnectionError:
        return cls(
            "Connection heartbeat timeout - server not responding",
            ErrorCode.HEARTBEAT_TIMEOUT,
            retryable=True,
        )

    @classmethod
    def insecure_connection(cls) -> ConnectionError:
        return cls(
            "SECURITY ERROR: Refusing to send authentication token over insecure "
            "ws:// connection. Use wss:// for secure connections, or set "
            "allow_insecure_auth=True for local development only.",
            ErrorCode.INSECURE_CONNECTION,
            retryable=False,
        )

    @classmethod
    def request_timeout(cls, timeout: float) -> ConnectionError:
        return cls(
            f"Request timeout after {timeout:g}s",
            ErrorCode.REQUEST_TIMEOUT,
            retryable=True,
        )

    @classmethod
    def closed(cls, message: str = "Connection closed") -> ConnectionError:
        return cls(message, ErrorCode.CONNECTION_CLOSED, retryable=False)

    @classmethod
    def network(cls, reason: str) -> ConnectionError:
        return cls(f"Network error: {reason}", ErrorCode.NETWORK_ERROR, retryable=True)


class RpcError(RpcWireError):
    """
    Error returned by the remote method dispatcher.

    The code and data are opaque to the transport layer and are propagated
    as received.

    Attributes:
        data: Optional structured error data from the server.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode | str = ErrorCode.RPC_ERROR,
        data: Any = None,
    ) -> None:
        super().__init__(message, code)
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.data is not None:
            data["data"] = self.data
        return data

    @classmethod
    def from_payload(cls, payload: Any) -> RpcError:
        """Build an RpcError from a wire ``{message, code, data?}`` payload."""
        if isinstance(payload, dict):
            return cls(
                str(payload.get("message") or "Unknown error"),
                payload.get("code") or ErrorCode.RPC_ERROR,
                payload.get("data"),
            )
        return cls(str(payload) if payload is not None else "Unknown error")


def _major(version: str) -> str:
    return version.split(".", 1)[0]


class ProtocolVersionError(RpcWireError):
    """
    Error raised when the server speaks an incompatible protocol version.

    Versions are compatible when their major components match.
    """

    def __init__(self, client_version: str, server_version: str) -> None:
        self.client_version = client_version
        self.server_version = server_version
        self.is_major_mismatch = not self.are_compatible(client_version, server_version)
        if self.is_major_mismatch:
            message = (
                f"Protocol version mismatch: client v{client_version}, "
                f"server v{server_version}. Major version mismatch may cause "
                "compatibility issues."
            )
        else:
            message = (
                f"Protocol version difference: client v{client_version}, "
                f"server v{server_version}."
            )
        super().__init__(message, ErrorCode.PROTOCOL_VERSION_MISMATCH)

    @staticmethod
    def are_compatible(version1: str, version2: str) -> bool:
        return _major(version1) == _major(version2)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            client_version=self.client_version,
            server_version=self.server_version,
            is_major_mismatch=self.is_major_mismatch,
        )
        return data


class AuthenticationError(RpcWireError):
    """Credentials were rejected by the server (HTTP 401)."""

    status = 401

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, ErrorCode.AUTHENTICATION_ERROR)


class RateLimitError(RpcWireError):
    """
    Request was throttled by the server (HTTP 429).

    Attributes:
        retry_after: Seconds to wait before retrying, when the server says.
    """

    status = 429

    def __init__(
        self, message: str = "Rate limit exceeded", retry_after: float | None = None
    ) -> None:
        super().__init__(message, ErrorCode.RATE_LIMITED)
        self.retry_after = retry_after


class TransportNotInitializedError(RpcWireError):
    """A sync accessor was used before the async transport factory resolved."""

    def __init__(
        self,
        message: str = "Transport not initialized. Await any RPC call first.",
    ) -> None:
        super().__init__(message, ErrorCode.TRANSPORT_NOT_INITIALIZED)


# ============================================================================
# Error Utilities
# ============================================================================


def is_error_code(error: BaseException, code: ErrorCode | str) -> bool:
    """
    Check if an error is an RpcWireError with a specific code.

    Example:
        ```python
        try:
            await client.report.build()
        except Exception as error:
            if is_error_code(error, ErrorCode.REQUEST_TIMEOUT):
                ...
        ```
    """
    return isinstance(error, RpcWireError) and error.code == _code_value(code)
