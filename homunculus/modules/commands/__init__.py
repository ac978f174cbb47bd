"""
Commands Module - Black Box Interface

Purpose: Run commands on the host and collect their output
Interface: stream(), execute()
Hidden: NDJSON wire format, field mapping, result aggregation
"""

from .commands import EXECUTE_PATH, build_request, execute, stream
from .models import CommandEvent, CommandResult, ExitEvent, StderrEvent, StdoutEvent

__all__ = [
    "EXECUTE_PATH",
    "CommandEvent",
    "CommandResult",
    "ExitEvent",
    "StderrEvent",
    "StdoutEvent",
    "build_request",
    "execute",
    "stream",
]
