"""
Config Module - Black Box Interface

Purpose: Hold the process-wide host configuration
Interface: configure(), current(), reset()
Hidden: Environment variable names and defaults
"""

from .provider import (
    DEFAULT_BASE_URL,
    ConfigProvider,
    EnvConfigProvider,
    HostConfig,
    configure,
    current,
    reset,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ConfigProvider",
    "EnvConfigProvider",
    "HostConfig",
    "configure",
    "current",
    "reset",
]
