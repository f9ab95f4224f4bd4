"""
asyncio byte channel for raw_http_core.

ByteChannel is an asyncio Protocol that turns the transport's
push-based callbacks (data, end-of-stream, connection lost) into
sequential awaited reads. Reading from the transport is paused unless
a read is outstanding, so at most one received chunk is ever held
between two reads.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from ..exceptions import TransportError
from .stream import NetworkStream

logger = logging.getLogger(__name__)


class ByteChannel(asyncio.Protocol, NetworkStream):
    """
    Pull-based NetworkStream over an asyncio transport.

    The channel starts with reading paused. Each ``read()`` resumes the
    transport, waits for exactly one notification and pauses it again.
    Once the peer ends the stream or the transport fails, the channel
    stays in that terminal state and later reads resolve immediately.
    """

    def __init__(
        self, on_connect: Optional[Callable[["ByteChannel"], None]] = None
    ) -> None:
        """
        Initialize the channel.

        Args:
            on_connect: Optional callback invoked with the channel once
                the transport is attached.
        """
        self._on_connect = on_connect
        self._transport: Optional[asyncio.Transport] = None
        self._reader: Optional[asyncio.Future] = None
        self._backlog = bytearray()
        self._ended = False
        self._error: Optional[TransportError] = None
        self._closed = False
        self._write_paused = False
        self._drain_waiter: Optional[asyncio.Future] = None

    # asyncio.Protocol callbacks

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]
        transport.pause_reading()  # type: ignore[attr-defined]
        logger.debug(f"New connection from {self.get_extra_info('peername')}")

        if self._on_connect is not None:
            self._on_connect(self)

    def data_received(self, data: bytes) -> None:
        # pause delivery until the next read
        self._transport.pause_reading()

        reader = self._reader
        if reader is not None and not reader.done():
            self._reader = None
            reader.set_result(bytes(data))
        else:
            self._backlog.extend(data)

    def eof_received(self) -> bool:
        if not self._terminal:
            self._ended = True
            self._wake_reader(b"")
        # keep the write side open so a response can still be sent
        return True

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._closed = True

        if not self._terminal:
            if exc is not None:
                self._error = TransportError(str(exc), cause=exc)
                self._wake_reader(None)
            else:
                self._ended = True
                self._wake_reader(b"")

        waiter = self._drain_waiter
        if waiter is not None and not waiter.done():
            self._drain_waiter = None
            waiter.set_exception(TransportError("Connection lost", cause=exc))

        logger.debug(f"Connection lost: {exc!r}")

    def pause_writing(self) -> None:
        self._write_paused = True

    def resume_writing(self) -> None:
        self._write_paused = False

        waiter = self._drain_waiter
        if waiter is not None and not waiter.done():
            self._drain_waiter = None
            waiter.set_result(None)

    # NetworkStream interface

    async def read(self) -> bytes:
        """
        Read the next chunk delivered by the transport.

        Returns:
            The next chunk, or b"" at end-of-stream (and forever after).

        Raises:
            TransportError: If the transport failed.
            RuntimeError: If another read is outstanding or the channel
                was never connected.
        """
        if self._reader is not None:
            raise RuntimeError("read() called while another read is outstanding")

        if self._error is not None:
            raise self._error

        if self._backlog:
            data = bytes(self._backlog)
            self._backlog.clear()
            return data

        if self._ended:
            return b""

        if self._transport is None:
            raise RuntimeError("Channel is not connected")

        reader = asyncio.get_running_loop().create_future()
        self._reader = reader
        self._transport.resume_reading()

        try:
            return await reader
        finally:
            if self._reader is reader:
                # cancelled while waiting
                self._reader = None
                self._transport.pause_reading()

    async def write(self, data: bytes) -> None:
        """
        Write data and wait until the transport accepts more.

        Args:
            data: The data to write. Must not be empty.

        Raises:
            ValueError: If data is empty.
            TransportError: If the channel failed or is closed.
        """
        if not data:
            raise ValueError("Cannot write empty data")

        if self._error is not None:
            raise self._error

        if self._closed or self._transport is None or self._transport.is_closing():
            raise TransportError("Connection is closed")

        self._transport.write(data)

        if self._write_paused:
            waiter = asyncio.get_running_loop().create_future()
            self._drain_waiter = waiter
            await waiter

    async def aclose(self) -> None:
        """Close the transport; buffered writes are flushed first."""
        if not self._closed:
            self._closed = True
            if self._transport is not None:
                self._transport.close()

    def get_extra_info(self, name: str, default: Any = None) -> Optional[Any]:
        if self._transport is None:
            return default
        return self._transport.get_extra_info(name, default)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def at_eof(self) -> bool:
        """Whether the peer has ended the stream."""
        return self._ended

    # helpers

    @property
    def _terminal(self) -> bool:
        return self._ended or self._error is not None

    def _wake_reader(self, data: Optional[bytes]) -> None:
        reader = self._reader
        if reader is None or reader.done():
            return

        self._reader = None
        if data is None:
            reader.set_exception(self._error)
        else:
            reader.set_result(data)
