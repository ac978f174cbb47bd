"""
VRM Module - Black Box Interface

Purpose: Follow events of VRM entities loaded in the host
Interface: Vrm.events(), Vrm.stream_all_metadata(), Vrm.stream_all()
Hidden: Feed URLs and payload decoding
"""

from .events import VRM_EVENTS, Vrm, VrmEventSource, VrmMetadata

__all__ = ["VRM_EVENTS", "Vrm", "VrmEventSource", "VrmMetadata"]
