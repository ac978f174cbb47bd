"""Newline-delimited frame decoding for chunked response bodies."""

import codecs
from typing import Iterable, Iterator, List, Union

Chunk = Union[bytes, str]


class FrameDecoder:
    """
    Split an arbitrary chunk stream into trimmed, non-empty text lines.

    A line is only emitted once its trailing newline has been seen, or when
    flush() is called at end of stream. Bytes are decoded as UTF-8
    incrementally, so a multi-byte character split across two chunks is
    reassembled before splitting.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._buffer = ""

    def feed(self, chunk: Chunk) -> List[str]:
        """
        Append a chunk and return the frames it completed.

        Args:
            chunk: Raw bytes or already decoded text

        Returns:
            Complete frames in arrival order, possibly empty
        """
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)

        self._buffer += chunk
        lines = self._buffer.split("\n")
        # The last segment is either empty or an unterminated line
        self._buffer = lines.pop()
        return [frame for frame in (line.strip() for line in lines) if frame]

    def flush(self) -> List[str]:
        """Return the final frame left in the buffer, if any, and reset."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        frame = tail.strip()
        return [frame] if frame else []


def iter_frames(chunks: Iterable[Chunk]) -> Iterator[str]:
    """Lazily decode frames from an iterable of chunks."""
    decoder = FrameDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.flush()
