"""
Server-Sent Events subscription.

A Subscription owns one persistent SSE connection and one listener
thread. Each event's data is parsed as JSON and handed to the handlers
registered for that event name, strictly in arrival order.
"""

import asyncio
import inspect
import json
import logging
import socket
from threading import Event, Lock, Thread
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Mapping, Optional

import requests
import sseclient

from homunculus.config import current
from homunculus.modules.host import HomunculusApiError, HomunculusTransportError

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]

MESSAGE_EVENT = "message"


class Subscription:
    """
    Handle for one open SSE connection.

    Handlers may be plain callables or coroutine functions. Coroutines are
    scheduled on the event loop that was running when the subscription was
    opened, in arrival order; without a running loop they are run to
    completion on the listener thread. A failing handler is logged and
    never ends the subscription.

    The connection stays open until close() is called or the host drops
    it. There is no reconnection, and a forgotten handle keeps its
    connection open.
    """

    def __init__(
        self,
        url: str,
        handler: Optional[Handler] = None,
        event: str = MESSAGE_EVENT,
        name: Optional[str] = None,
        listeners: Optional[Mapping[str, Handler]] = None,
    ):
        """
        Open the connection and start listening.

        The initial request blocks until the host sends response headers,
        at most request_timeout seconds.

        Args:
            url: Absolute URL of the SSE endpoint
            handler: Optional handler registered for `event`
            event: Event name the handler listens to
            name: Label used in log messages, defaults to the URL
            listeners: Further handlers by event name, registered before
                the first event can arrive

        Raises:
            HomunculusApiError: The host answered with status >= 400
            HomunculusTransportError: The connection could not be opened
                or no headers arrived in time
        """
        self.url = url
        self.name = name or url
        self.error: Optional[HomunculusTransportError] = None

        self._listeners: Dict[str, List[Handler]] = {}
        self._lock = Lock()
        self._closed = Event()

        try:
            self._loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        if handler is not None:
            self.on(event, handler)
        for listener_event, listener in (listeners or {}).items():
            self.on(listener_event, listener)

        self._response = self._connect()
        self._thread = Thread(target=self._listen, name=f"homunculus-sse-{self.name}", daemon=True)
        self._thread.start()

    def on(self, event: str, handler: Handler) -> "Subscription":
        """
        Register a handler for a named event.

        Events received before registration are not replayed.

        Returns:
            self for chaining
        """
        with self._lock:
            self._listeners.setdefault(event, []).append(handler)
        return self

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """
        Release the connection. Safe to call more than once.

        Does not wait for a handler that is already running; use join()
        for that.
        """
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()

        # The listener holds the response's reader while blocked in a read,
        # so it has to be woken before the response can be closed
        sock = self._socket(self._response)
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                logger.debug(f"Socket shutdown for {self.name} failed: {e}")

        try:
            self._response.close()
        except Exception as e:
            # The woken listener may be tearing down the same reader
            logger.debug(f"Closing response for {self.name} raised: {e}")
        logger.info(f"Subscription {self.name} closed")

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the listener thread to finish.

        Returns:
            True if the listener has ended
        """
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connect(self) -> requests.Response:
        config = current()
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}

        try:
            response = requests.get(
                self.url,
                headers=headers,
                stream=True,
                timeout=(config.connect_timeout, config.request_timeout),
            )
        except requests.exceptions.RequestException as e:
            raise HomunculusTransportError(f"Failed to connect to {self.url}: {e}") from e

        if response.status_code >= 400:
            body = response.text
            response.close()
            raise HomunculusApiError(response.status_code, self.url, body)

        # The read timeout only bounds the wait for headers; a quiet
        # channel may stay idle indefinitely
        sock = self._socket(response)
        if sock is not None:
            sock.settimeout(None)

        logger.info(f"Subscription {self.name} established")
        return response

    @staticmethod
    def _socket(response: requests.Response) -> Optional[socket.socket]:
        connection = getattr(response.raw, "connection", None)
        return getattr(connection, "sock", None)

    def _chunks(self) -> Iterator[bytes]:
        # Chunked bodies are handed over chunk by chunk as they arrive. A
        # close-delimited body has no chunk boundaries, so read it byte by
        # byte or a short event would wait for more data.
        chunked = getattr(self._response.raw, "chunked", False)
        return self._response.iter_content(chunk_size=None if chunked else 1)

    def _listen(self) -> None:
        client = sseclient.SSEClient(self._chunks())

        try:
            for event in client.events():
                if self._closed.is_set():
                    break
                self._dispatch(event.event, event.data)
            else:
                if not self._closed.is_set():
                    logger.warning(f"Subscription {self.name} ended by host")
                    self.error = HomunculusTransportError(f"{self.url} was closed by the host")
        except Exception as e:
            # Reading a response closed by close() raises here as well
            if not self._closed.is_set():
                logger.error(f"Subscription {self.name} lost its connection: {e}")
                self.error = HomunculusTransportError(f"{self.url} connection lost: {e}")
        finally:
            self.close()

    def _dispatch(self, event: str, data: str) -> None:
        with self._lock:
            handlers = list(self._listeners.get(event, ()))
        if not handlers:
            logger.debug(f"No handler for {event} on {self.name}")
            return

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Error processing {event} on {self.name}: invalid JSON: {e}")
            return

        for handler in handlers:
            self._invoke(handler, payload)

    def _invoke(self, handler: Handler, payload: Any) -> None:
        if self._closed.is_set():
            return

        if inspect.iscoroutinefunction(handler) and self._loop_alive():
            asyncio.run_coroutine_threadsafe(self._call(handler, payload), self._loop)
            return

        try:
            result = handler(payload)
        except Exception as e:
            logger.exception(f"Error processing {self.name}: {e}")
            return

        if inspect.isawaitable(result):
            if self._loop_alive():
                asyncio.run_coroutine_threadsafe(self._wait(result), self._loop)
            else:
                asyncio.run(self._wait(result))

    async def _call(self, handler: Handler, payload: Any) -> None:
        # Scheduled before close() but not yet started
        if self._closed.is_set():
            return
        await self._wait(handler(payload))

    async def _wait(self, awaitable: Awaitable) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.exception(f"Error processing {self.name}: {e}")

    def _loop_alive(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()
