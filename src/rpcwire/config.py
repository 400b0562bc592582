"""
Configuration management for rpcwire

This module provides global configuration for the default client.
Settings are seeded from the environment and can be overridden with
``configure()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

__all__ = ["ClientConfig", "configure", "get_config", "configure_from_env"]

DEFAULT_URL = "https://rpc.do"
DEFAULT_TIMEOUT = 30.0


@dataclass
class ClientConfig:
    """
    Settings used to build the default client.

    Attributes:
        url: Endpoint URL (http(s):// or ws(s)://)
        token: Bearer token attached to requests, if any
        timeout: Per-call deadline in seconds (None disables it)
        allow_insecure_auth: Permit sending the token over ws://
    """

    url: str = DEFAULT_URL
    token: str | None = None
    timeout: float | None = DEFAULT_TIMEOUT
    allow_insecure_auth: bool = False


def _get_env(key: str) -> str | None:
    """Get environment variable value."""
    return os.environ.get(key)


def _env_float(key: str, default: float | None) -> float | None:
    raw = _get_env(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from None


def _env_bool(key: str) -> bool:
    return (_get_env(key) or "").strip().lower() in ("1", "true", "yes", "on")


def _from_env() -> dict[str, object]:
    return {
        "url": _get_env("RPCWIRE_URL") or DEFAULT_URL,
        "token": _get_env("RPCWIRE_TOKEN"),
        "timeout": _env_float("RPCWIRE_TIMEOUT", DEFAULT_TIMEOUT),
        "allow_insecure_auth": _env_bool("RPCWIRE_ALLOW_INSECURE_AUTH"),
    }


# Global configuration, read from the environment on first use
_global_config: dict[str, object] | None = None


def _settings() -> dict[str, object]:
    global _global_config

    if _global_config is None:
        _global_config = _from_env()
    return _global_config


def configure(
    *,
    url: str | None = None,
    token: str | None = None,
    timeout: float | None = None,
    allow_insecure_auth: bool | None = None,
) -> None:
    """
    Configure the default client settings.

    Args:
        url: Endpoint URL (default: https://rpc.do)
        token: Bearer token attached to every call
        timeout: Per-call deadline in seconds
        allow_insecure_auth: Allow the token over unencrypted ws://

    Example::

        from rpcwire import configure

        configure(url="wss://my-do.example.com/rpc", token="secret")
    """
    settings = _settings()
    if url is not None:
        settings["url"] = url
    if token is not None:
        settings["token"] = token
    if timeout is not None:
        settings["timeout"] = timeout
    if allow_insecure_auth is not None:
        settings["allow_insecure_auth"] = allow_insecure_auth


def get_config() -> ClientConfig:
    """
    Get current configuration.

    Returns:
        A snapshot of the current settings; mutating it has no effect.

    Raises:
        ValueError: if RPCWIRE_TIMEOUT is set but is not a number
    """
    settings = _settings()
    return ClientConfig(
        url=str(settings["url"]),
        token=settings["token"],  # type: ignore[arg-type]
        timeout=settings["timeout"],  # type: ignore[arg-type]
        allow_insecure_auth=bool(settings["allow_insecure_auth"]),
    )


def configure_from_env() -> None:
    """Reset configuration from environment variables."""
    global _global_config
    _global_config = _from_env()
