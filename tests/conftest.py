"""
Shared pytest fixtures for Homunculus SDK tests.

This module provides common fixtures including:
- HostMocker: Fake host for httpx calls with recorded requests
- FakeSSEResponse: Streaming requests.Response stand-in for SSE tests
- sse_server: Real local SSE endpoint for connection teardown tests
- Configuration reset between tests
"""

import json
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union
from unittest.mock import patch

import httpx
import pytest

from homunculus.config import configure, reset

TEST_BASE_URL = "http://homunculus.test"


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(autouse=True)
def host_config():
    """Point every test at a fixed base URL and forget it afterwards."""
    config = configure(base_url=TEST_BASE_URL + "/")
    yield config
    reset()


# =============================================================================
# httpx Host Mocking Infrastructure
# =============================================================================

def ndjson(*events: Dict[str, Any]) -> bytes:
    """Encode events as one JSON object per line."""
    return b"".join(json.dumps(event).encode("utf-8") + b"\n" for event in events)


async def byte_stream(chunks: Iterable[bytes]):
    """Async body stream yielding the given chunks in order."""
    for chunk in chunks:
        yield chunk


@dataclass
class RecordedRequest:
    """Record of a request made during testing."""
    method: str
    url: str
    body: Any = None


class HostMocker:
    """
    Fake Homunculus host for httpx.AsyncClient calls.

    Usage:
        async def test_something(host_mocker):
            host_mocker.register("GET", "/signals", httpx.Response(200, json=[]))
            async with host_mocker.client() as client:
                ...
            assert host_mocker.was_called_with("GET", "/signals")
    """

    def __init__(self):
        self._routes: Dict[tuple, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[RecordedRequest] = []

    def register(
        self,
        method: str,
        path: str,
        response: Union[httpx.Response, Callable[[httpx.Request], httpx.Response]],
    ) -> "HostMocker":
        """Register a response (or a factory) for a method and path."""
        factory = response if callable(response) else (lambda request: response)
        self._routes[(method.upper(), path)] = factory
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append(RecordedRequest(request.method, str(request.url), body))

        factory = self._routes.get((request.method, request.url.path))
        if factory is None:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        return factory(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))

    def was_called_with(self, method: str, path: str) -> bool:
        return any(r.method == method and httpx.URL(r.url).path == path for r in self.requests)


@pytest.fixture
def host_mocker():
    """Fixture that provides an empty HostMocker."""
    return HostMocker()


# =============================================================================
# SSE Mocking Infrastructure
# =============================================================================

def sse_message(data: Any, event: Optional[str] = None) -> bytes:
    """Encode one SSE event; dicts and lists are JSON encoded."""
    text = data if isinstance(data, str) else json.dumps(data)
    lines = [f"event: {event}"] if event else []
    lines.append(f"data: {text}")
    return ("\n".join(lines) + "\n\n").encode("utf-8")


class FakeSSEResponse:
    """
    Streaming requests.Response stand-in.

    Yields the given chunks, then either ends (hold_open=False) or blocks
    until close() is called, like a live SSE connection. When `start` is
    given, nothing is yielded until it is set.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        status_code: int = 200,
        text: str = "",
        hold_open: bool = False,
        start: Optional[threading.Event] = None,
    ):
        self._chunks = list(chunks)
        self.status_code = status_code
        self.text = text
        self.hold_open = hold_open
        self.start = start
        self.close_count = 0
        self.raw = None
        self._closed = threading.Event()

    def iter_content(self, chunk_size: Optional[int] = None) -> Iterator[bytes]:
        if self.start is not None:
            self.start.wait(timeout=5)
        for chunk in self._chunks:
            if self._closed.is_set():
                return
            yield chunk
        if self.hold_open:
            self._closed.wait(timeout=5)

    def close(self) -> None:
        self.close_count += 1
        self._closed.set()


@dataclass
class SSEMocker:
    """Patches requests.get for the subscription module and records calls."""
    responses: List[FakeSSEResponse] = field(default_factory=list)
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def add(self, response: FakeSSEResponse) -> FakeSSEResponse:
        self.responses.append(response)
        return response

    def get(self, url, **kwargs) -> FakeSSEResponse:
        self.calls.append({"url": url, **kwargs})
        return self.responses.pop(0)


@pytest.fixture
def sse_mocker():
    """
    Fixture that provides an SSEMocker with requests.get patched.

    Usage:
        def test_something(sse_mocker):
            sse_mocker.add(FakeSSEResponse([sse_message({"a": 1})]))
            sub = signals.stream("chan", handler)
    """
    mocker = SSEMocker()
    with patch("homunculus.modules.signals.subscription.requests.get", side_effect=mocker.get):
        yield mocker


class QuietSSEHandler(BaseHTTPRequestHandler):
    """
    SSE endpoint that sends one event, then goes quiet until released.

    /signals/chunked-*  chunked transfer encoding
    /signals/plain-*    close-delimited body, no length and no chunking
    /signals/mute-*     never sends response headers
    """

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        self.close_connection = True
        channel = self.path.rsplit("/", 1)[-1]

        if not channel.startswith("mute"):
            chunked = channel.startswith("chunked")
            data = sse_message({"n": 1})

            self.send_response(200)
            self.send_header("Content-Type", "text/event-stream")
            if chunked:
                self.send_header("Transfer-Encoding", "chunked")
                data = b"%x\r\n%s\r\n" % (len(data), data)
            else:
                self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(data)
            self.wfile.flush()

        self.server.release.wait(timeout=30)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def sse_server(monkeypatch):
    """
    Fixture that runs QuietSSEHandler on a local port.

    Yields the base URL to pass to configure().
    """
    monkeypatch.setenv("NO_PROXY", "127.0.0.1")
    server = ThreadingHTTPServer(("127.0.0.1", 0), QuietSSEHandler)
    server.release = threading.Event()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f"http://127.0.0.1:{server.server_address[1]}"

    server.release.set()
    server.shutdown()
    server.server_close()


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "sse_mock: Tests using a mocked SSE connection"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring a running host"
    )
