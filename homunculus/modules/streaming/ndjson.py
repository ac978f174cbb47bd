"""
NDJSON stream client.

POSTs a request whose chunked response carries one JSON value per line
and yields the parsed values as they arrive.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from homunculus.modules.host import (
    HomunculusStreamError,
    HomunculusTransportError,
    client_scope,
    raise_for_status,
)

from .frames import FrameDecoder

logger = logging.getLogger(__name__)

# Returned by _next_chunk when the cancellation token fired first
_CANCELLED = object()


async def post_stream(
    url: str,
    body: Any = None,
    cancel: Optional[asyncio.Event] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AsyncIterator[Any]:
    """
    POST a JSON body and yield each NDJSON value of the response.

    The body is read one chunk at a time, so nothing is pulled from the
    connection until the consumer asks for the next value. Closing the
    iterator early (aclose(), or leaving contextlib.aclosing()) closes the
    connection.

    Args:
        url: Absolute URL of the streaming endpoint
        body: JSON-serializable request body, an empty object when omitted
        cancel: Optional cancellation token; when set, the connection is
            closed and the iterator ends without raising
        client: Optional client to reuse

    Yields:
        The parsed JSON value of each line, in server order

    Raises:
        HomunculusApiError: Initial response status >= 400, before any value
        HomunculusStreamError: A line is not valid JSON
        HomunculusTransportError: The connection failed mid-stream
    """
    async with client_scope(client, streaming=True) as http:
        try:
            async with http.stream("POST", url, json={} if body is None else body) as response:
                await raise_for_status(response)

                decoder = FrameDecoder()
                chunks = response.aiter_bytes().__aiter__()
                while True:
                    chunk = await _next_chunk(chunks, cancel)
                    if chunk is _CANCELLED:
                        logger.debug(f"Stream from {url} cancelled by caller")
                        return
                    if chunk is None:
                        break
                    for frame in decoder.feed(chunk):
                        yield _parse(frame)

                for frame in decoder.flush():
                    yield _parse(frame)
        except httpx.TransportError as e:
            raise HomunculusTransportError(f"Stream from {url} failed: {e}") from e


def _parse(frame: str) -> Any:
    try:
        return json.loads(frame)
    except json.JSONDecodeError as e:
        raise HomunculusStreamError(frame, e) from e


async def _next_chunk(chunks: AsyncIterator[bytes], cancel: Optional[asyncio.Event]):
    """
    Wait for the next body chunk.

    Returns:
        The chunk, None at end of body, or _CANCELLED if the token fired first
    """
    if cancel is not None and cancel.is_set():
        return _CANCELLED

    if cancel is None:
        return await _read(chunks)

    reader = asyncio.ensure_future(_read(chunks))
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait([reader, waiter], return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        reader.cancel()
        raise
    finally:
        waiter.cancel()

    if not reader.done():
        reader.cancel()
        await asyncio.wait([reader])
        return _CANCELLED

    return reader.result()


async def _read(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None
