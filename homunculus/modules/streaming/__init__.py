"""
Streaming Module - Black Box Interface

Purpose: Turn chunked NDJSON response bodies into a sequence of JSON values
Interface: post_stream(), FrameDecoder, iter_frames()
Hidden: Partial-line buffering, incremental UTF-8 decoding, cancellation
"""

from .frames import FrameDecoder, iter_frames
from .ndjson import post_stream

__all__ = ["FrameDecoder", "iter_frames", "post_stream"]
