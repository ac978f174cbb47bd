"""Configuration provider for the Homunculus host connection."""
import os
from dataclasses import dataclass, replace
from typing import Optional, Protocol

DEFAULT_BASE_URL = "http://localhost:3100"


@dataclass(frozen=True)
class HostConfig:
    """Host connection configuration."""
    base_url: str
    request_timeout: float
    connect_timeout: float


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_host_config(self) -> HostConfig:
        """Get host connection configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_host_config(self) -> HostConfig:
        """Get host connection configuration from environment variables."""
        return HostConfig(
            base_url=_strip_base_url(os.getenv("HOMUNCULUS_BASE_URL", DEFAULT_BASE_URL)),
            request_timeout=float(os.getenv("HOMUNCULUS_REQUEST_TIMEOUT", "30")),
            connect_timeout=float(os.getenv("HOMUNCULUS_CONNECT_TIMEOUT", "5")),
        )


# Written once at startup by configure(); every call only reads it.
_current: Optional[HostConfig] = None


def configure(
    base_url: Optional[str] = None,
    request_timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
    provider: Optional[ConfigProvider] = None,
) -> HostConfig:
    """
    Set the process-wide host configuration.

    Call this once at startup, before any request or stream is opened.
    Values that are not given keep whatever the provider (environment by
    default) supplies.

    Args:
        base_url: Base URL of the host HTTP server
        request_timeout: Timeout in seconds for non-streaming requests
        connect_timeout: Timeout in seconds for establishing a connection
        provider: Source of defaults, EnvConfigProvider when omitted

    Returns:
        The configuration now in effect
    """
    global _current

    config = (provider or EnvConfigProvider()).get_host_config()
    overrides = {}
    if base_url is not None:
        overrides["base_url"] = _strip_base_url(base_url)
    if request_timeout is not None:
        overrides["request_timeout"] = request_timeout
    if connect_timeout is not None:
        overrides["connect_timeout"] = connect_timeout

    _current = replace(config, **overrides)
    return _current


def current() -> HostConfig:
    """Return the configuration in effect, loading it from the environment on first use."""
    global _current

    if _current is None:
        _current = EnvConfigProvider().get_host_config()
    return _current


def reset() -> None:
    """Forget the configured values so the next current() reloads them."""
    global _current
    _current = None


def _strip_base_url(base_url: str) -> str:
    return base_url.rstrip("/")
