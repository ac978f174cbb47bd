"""
Low-level HTTP access to the Homunculus host.

Every other module builds its URLs with create_url() and sends
request/response calls through the helpers here, so error translation
and cancellation behave the same everywhere.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from homunculus.config import current

from .errors import (
    HomunculusApiError,
    HomunculusCancelledError,
    HomunculusTransportError,
)

logger = logging.getLogger(__name__)


def create_url(path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Build an absolute URL for a host endpoint.

    Args:
        path: Endpoint path relative to the configured base URL
        params: Optional query parameters, values are stringified

    Returns:
        Absolute URL string

    Example:
        create_url("entities", {"name": "VRM", "root": 123})
        # http://localhost:3100/entities?name=VRM&root=123
    """
    url = httpx.URL(f"{current().base_url}/{path.lstrip('/')}")
    if params:
        url = url.copy_merge_params({key: str(value) for key, value in params.items()})
    return str(url)


def default_timeout(streaming: bool = False) -> httpx.Timeout:
    """Timeouts for a new client; streaming bodies may stay idle indefinitely."""
    config = current()
    if streaming:
        return httpx.Timeout(None, connect=config.connect_timeout)
    return httpx.Timeout(config.request_timeout, connect=config.connect_timeout)


@asynccontextmanager
async def client_scope(
    client: Optional[httpx.AsyncClient] = None, streaming: bool = False
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a fresh one that is closed on exit."""
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(timeout=default_timeout(streaming)) as owned:
        yield owned


async def raise_for_status(response: httpx.Response) -> None:
    """Raise HomunculusApiError for any status >= 400."""
    if response.status_code >= 400:
        body = (await response.aread()).decode("utf-8", errors="replace")
        raise HomunculusApiError(response.status_code, str(response.request.url), body)


async def request(
    method: str,
    url: str,
    body: Any = None,
    cancel: Optional[asyncio.Event] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> httpx.Response:
    """
    Send one request to the host and return the successful response.

    Args:
        method: HTTP method
        url: Absolute URL, usually from create_url()
        body: JSON-serializable request body, None for no body
        cancel: Optional cancellation token; setting it aborts the request
        client: Optional client to reuse

    Returns:
        The response, body already read

    Raises:
        HomunculusApiError: The host answered with status >= 400
        HomunculusCancelledError: The cancellation token fired first
        HomunculusTransportError: The connection failed
    """
    async with client_scope(client) as http:
        kwargs = {} if body is None else {"json": body}
        try:
            response = await _until_cancelled(http.request(method, url, **kwargs), cancel)
        except httpx.TransportError as e:
            raise HomunculusTransportError(f"{method} {url} failed: {e}") from e

    await raise_for_status(response)
    return response


async def get(
    url: str, cancel: Optional[asyncio.Event] = None, client: Optional[httpx.AsyncClient] = None
) -> httpx.Response:
    """GET a host endpoint."""
    return await request("GET", url, cancel=cancel, client=client)


async def post(
    url: str, body: Any = None, cancel: Optional[asyncio.Event] = None, client: Optional[httpx.AsyncClient] = None
) -> httpx.Response:
    """POST a JSON body (an empty object when omitted)."""
    return await request("POST", url, {} if body is None else body, cancel=cancel, client=client)


async def put(
    url: str, body: Any = None, cancel: Optional[asyncio.Event] = None, client: Optional[httpx.AsyncClient] = None
) -> httpx.Response:
    """PUT a JSON body (an empty object when omitted)."""
    return await request("PUT", url, {} if body is None else body, cancel=cancel, client=client)


async def patch(
    url: str, body: Any = None, cancel: Optional[asyncio.Event] = None, client: Optional[httpx.AsyncClient] = None
) -> httpx.Response:
    """PATCH a JSON body (an empty object when omitted)."""
    return await request("PATCH", url, {} if body is None else body, cancel=cancel, client=client)


async def delete(
    url: str, cancel: Optional[asyncio.Event] = None, client: Optional[httpx.AsyncClient] = None
) -> httpx.Response:
    """DELETE a host resource."""
    return await request("DELETE", url, cancel=cancel, client=client)


async def _until_cancelled(coro, cancel: Optional[asyncio.Event]):
    """Await coro, aborting it if the cancellation token fires first."""
    if cancel is None:
        return await coro

    if cancel.is_set():
        coro.close()
        raise HomunculusCancelledError("Request cancelled before it was sent")

    task = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait([task, waiter], return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if not task.done():
        task.cancel()
        await asyncio.wait([task])
        logger.debug("In-flight request aborted by cancellation")
        raise HomunculusCancelledError("Request cancelled")

    return task.result()
