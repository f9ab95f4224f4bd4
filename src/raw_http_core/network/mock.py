"""
Mock network implementation for testing.

This module provides an in-memory NetworkStream that can be used for
unit testing the connection loop without real sockets.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import TransportError
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    Each queued chunk is returned by one ``read()``, mirroring how a
    real transport delivers data. Once the chunks are exhausted the
    stream reports end-of-stream, or raises ``error`` if one was given.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        error: Optional[Exception] = None,
        fail_writes: bool = False,
    ):
        """
        Initialize the mock stream.

        Args:
            chunks: Data chunks to be returned by successive reads.
            error: Optional error raised by reads after the chunks run out.
            fail_writes: If True, every write raises TransportError.
        """
        self._chunks: List[bytes] = [bytes(chunk) for chunk in chunks]
        self._error = error
        self._fail_writes = fail_writes
        self._closed = False
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []
        self.read_count = 0

    async def read(self) -> bytes:
        """
        Read the next queued chunk.

        Raises:
            TransportError: If the chunks are exhausted and an error was set.
        """
        self.read_count += 1

        if self._chunks:
            return self._chunks.pop(0)

        if self._error is not None:
            raise TransportError(str(self._error), cause=self._error)

        return b""

    async def write(self, data: bytes) -> None:
        """
        Record written data.

        Raises:
            ValueError: If data is empty.
            TransportError: If the stream is closed or set to fail writes.
        """
        if not data:
            raise ValueError("Cannot write empty data")

        if self._closed:
            raise TransportError("Connection is closed")

        if self._fail_writes:
            raise TransportError("Write failed")

        self._write_buffer.append(bytes(data))

    async def aclose(self) -> None:
        """Close the mock stream."""
        self._closed = True

    def get_extra_info(self, name: str, default: Any = None) -> Optional[Any]:
        return self._extra_info.get(name, default)

    @property
    def is_closed(self) -> bool:
        """Check if the mock stream is closed."""
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    @property
    def writes(self) -> List[bytes]:
        """Get the individual writes, in order."""
        return list(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        """Set extra information for the mock stream."""
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """Queue another chunk to be returned by a later read."""
        self._chunks.append(bytes(data))
