"""
Signals Module - Black Box Interface

Purpose: Publish and subscribe to named signal channels on the host
Interface: stream(), send(), list_channels(), Subscription
Hidden: SSE parsing, listener threads, handler error isolation
"""

from .signals import SignalChannelInfo, list_channels, send, stream
from .subscription import MESSAGE_EVENT, Handler, Subscription

__all__ = [
    "Handler",
    "MESSAGE_EVENT",
    "SignalChannelInfo",
    "Subscription",
    "list_channels",
    "send",
    "stream",
]
