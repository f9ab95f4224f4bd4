"""
Body readers for raw_http_core.

A BodyReader produces the bytes of one message body, chunk by chunk.
It separates "how many bytes remain" from "where the bytes come from":
request bodies are drained from the connection buffer and channel,
generated response bodies come from memory. Reading is driven by the
consumer, so a body is only pulled off the network as it is needed.
"""

import logging
import re
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, List, NoReturn, Optional

from .buffer import GrowableBuffer
from .exceptions import ParseError, ProtocolError, UnsupportedFeatureError
from .http_primitives import ParsedRequest
from .network.stream import NetworkStream

logger = logging.getLogger(__name__)

# Methods whose requests never carry a body
NO_BODY_METHODS = frozenset({"GET", "HEAD"})

_content_length_re = re.compile(rb"[0-9]+")


class BodyKind(Enum):
    """How a body is framed and where its bytes come from."""
    FIXED_LENGTH = "fixed_length"  # Content-Length, read from the connection
    CHUNKED = "chunked"            # Transfer-Encoding: chunked
    UNBOUNDED = "unbounded"        # delimited by connection close
    MEMORY = "memory"              # generated in memory


class BodyReader:
    """
    Producer of body bytes.

    The producer is chosen once by the factory functions below and
    never changes. ``read()`` returns the next chunk, or b"" once the
    body is exhausted; reading past the end keeps returning b"".
    """

    def __init__(
        self,
        kind: BodyKind,
        length: int,
        produce: Callable[[], Awaitable[bytes]],
    ) -> None:
        """
        Initialize BodyReader.

        Args:
            kind: The body framing.
            length: Declared body length, -1 if unknown.
            produce: Coroutine function returning the next chunk.
        """
        self.kind = kind
        self.length = length
        self._produce = produce

    def __repr__(self) -> str:
        return f"<BodyReader kind={self.kind.value} length={self.length}>"

    async def read(self) -> bytes:
        """Read the next chunk, b"" at the end of the body."""
        return await self._produce()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        chunk = await self.read()
        if not chunk:
            raise StopAsyncIteration
        return chunk

    async def aread(self) -> bytes:
        """Read the rest of the body and return it as bytes."""
        chunks: List[bytes] = []
        async for chunk in self:
            chunks.append(chunk)
        return b"".join(chunks)

    async def drain(self) -> int:
        """
        Read and discard the rest of the body.

        Returns:
            Number of bytes discarded.
        """
        discarded = 0
        async for chunk in self:
            discarded += len(chunk)
        return discarded


def reader_from_memory(data: bytes) -> BodyReader:
    """
    Create a BodyReader for data that already fits in memory.

    The full data is returned by the first read and b"" after that.

    Args:
        data: The body bytes.

    Returns:
        BodyReader instance
    """
    done = False

    async def produce() -> bytes:
        nonlocal done
        if done:
            return b""
        done = True
        return data

    return BodyReader(BodyKind.MEMORY, len(data), produce)


def reader_from_conn_length(
    stream: NetworkStream, buf: GrowableBuffer, length: int
) -> BodyReader:
    """
    Create a BodyReader that reads exactly ``length`` bytes of a body.

    Bytes are drained from the connection buffer first, since it may
    already hold the start of the body. When the buffer is empty, one
    more chunk is read from the stream into the buffer; anything past
    the end of the body stays buffered for the next message.

    Args:
        stream: The connection's stream.
        buf: The connection's buffer of unconsumed bytes.
        length: Number of body bytes.

    Returns:
        BodyReader instance

    Raises:
        ValueError: If length is negative.
    """
    if length < 0:
        raise ValueError("length must be non-negative")

    remaining = length

    async def produce() -> bytes:
        nonlocal remaining
        if remaining == 0:
            return b""

        if len(buf) == 0:
            data = await stream.read()
            if not data:
                raise ProtocolError("Unexpected EOF from HTTP body.")
            buf.push(data)

        consume = min(len(buf), remaining)
        remaining -= consume
        return buf.take(consume)

    return BodyReader(BodyKind.FIXED_LENGTH, length, produce)


def reader_for_chunked() -> NoReturn:
    """Chunked transfer-encoding is not implemented."""
    raise UnsupportedFeatureError("Chunked transfer-encoding is not implemented.")


def reader_for_unbounded() -> NoReturn:
    """Bodies delimited by connection close are not implemented."""
    raise UnsupportedFeatureError("Bodies without a length are not implemented.")


def parse_content_length(value: bytes) -> int:
    """
    Parse a Content-Length field value.

    Raises:
        ParseError: If the value is not a non-negative decimal integer.
    """
    if not _content_length_re.fullmatch(value):
        raise ParseError("Bad Content-Length.")
    return int(value)


def is_chunked(request: ParsedRequest) -> bool:
    """Check if the request uses chunked transfer encoding."""
    value = request.get_header("Transfer-Encoding")
    return value is not None and value.lower() == b"chunked"


def reader_from_request(
    stream: NetworkStream, buf: GrowableBuffer, request: ParsedRequest
) -> BodyReader:
    """
    Create the BodyReader matching a parsed request.

    Args:
        stream: The connection's stream.
        buf: The connection's buffer of unconsumed bytes.
        request: The parsed request header.

    Returns:
        A fixed-length BodyReader.

    Raises:
        ParseError: On a malformed Content-Length, or a body on a
            method that does not allow one.
        UnsupportedFeatureError: For chunked or close-delimited bodies.
    """
    body_length: Optional[int] = None
    content_length = request.get_header("Content-Length")
    if content_length is not None:
        body_length = parse_content_length(content_length)

    chunked = is_chunked(request)
    body_allowed = request.method not in NO_BODY_METHODS

    if not body_allowed:
        if (body_length is not None and body_length > 0) or chunked:
            raise ParseError("HTTP body not allowed.")
        body_length = 0

    if body_length is not None:
        return reader_from_conn_length(stream, buf, body_length)

    if chunked:
        reader_for_chunked()

    logger.debug(f"{request.method} request without a length; cannot read body")
    reader_for_unbounded()
