"""
Pytest configuration for raw_http_core tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

from typing import Any, Dict, List, Optional

import pytest

from raw_http_core.http_primitives import ParsedRequest, Response
from raw_http_core.network.mock import MockNetworkStream
from raw_http_core.streams import BodyReader, reader_from_memory


class FakeTransport:
    """Minimal stand-in for an asyncio transport, driven by the test."""

    def __init__(self) -> None:
        self.paused = False
        self.pause_calls = 0
        self.resume_calls = 0
        self.written: List[bytes] = []
        self.closed = False
        self.extra: Dict[str, Any] = {"peername": ("127.0.0.1", 54321)}

    def pause_reading(self) -> None:
        self.paused = True
        self.pause_calls += 1

    def resume_reading(self) -> None:
        self.paused = False
        self.resume_calls += 1

    def write(self, data: bytes) -> None:
        self.written.append(bytes(data))

    def is_closing(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        return self.extra.get(name, default)


class RecordingHandler:
    """Handler that records requests and echoes or greets like the default."""

    def __init__(self, read_body: bool = True) -> None:
        self.requests: List[ParsedRequest] = []
        self.bodies: List[bytes] = []
        self.read_body = read_body

    async def __call__(self, request: ParsedRequest, body: BodyReader) -> Response:
        self.requests.append(request)
        if self.read_body:
            self.bodies.append(await body.aread())
        return Response(
            status_code=200,
            headers=[b"X: y"],
            body=reader_from_memory(b"ok"),
        )


@pytest.fixture
def fake_transport():
    """Create a fake asyncio transport."""
    return FakeTransport()


@pytest.fixture
def mock_stream():
    """Create a mock network stream from a list of chunks."""
    def _create_stream(
        chunks: List[bytes], error: Optional[Exception] = None, fail_writes: bool = False
    ) -> MockNetworkStream:
        return MockNetworkStream(chunks, error=error, fail_writes=fail_writes)
    return _create_stream


@pytest.fixture
def recording_handler():
    """Create a handler that records what it receives."""
    return RecordingHandler()


@pytest.fixture
def simple_request():
    """A minimal complete GET request."""
    return b"GET / HTTP/1.1\r\nHost: a\r\n\r\n"


@pytest.fixture
def sample_headers():
    """Sample raw header lines for testing."""
    return [
        b"Host: 127.0.0.1:1234",
        b"Content-Type: application/json",
        b"Content-Length: 42",
        b"content-length: 7",
        b"User-Agent: raw_http_core/0.1.0",
    ]
