"""
Homunculus SDK - Streaming Communication Core

Python client for the Desktop Homunculus host process.

Architecture:
- Each module is self-contained with clear interfaces
- Modules communicate only through their public functions
- Configuration is process-wide and set once at startup

Modules:
- host: URL construction and JSON request/response calls
- streaming: NDJSON frame decoding over chunked responses
- signals: Server-Sent-Events pub/sub channels
- commands: Command execution over NDJSON streams
- vrm: Per-entity event feeds
"""

from .config import configure, current
from .modules.host.errors import (
    HomunculusApiError,
    HomunculusCancelledError,
    HomunculusError,
    HomunculusStreamError,
    HomunculusTransportError,
)

__version__ = "1.0.0"

__all__ = [
    "configure",
    "current",
    "HomunculusError",
    "HomunculusApiError",
    "HomunculusStreamError",
    "HomunculusCancelledError",
    "HomunculusTransportError",
]
