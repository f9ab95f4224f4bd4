"""
HTTP/1.1 server connection implementation for raw_http_core.

This module implements the HTTP11ServerConnection class that serves
request/response cycles over a single NetworkStream, with keep-alive
and pipelining support.
"""

import inspect
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .buffer import GrowableBuffer
from .encoder import encode_response, set_content_length
from .exceptions import HTTPCoreError, HTTPError, ProtocolError
from .framing import extract_header_block
from .http_primitives import ParsedRequest, Response
from .network.stream import NetworkStream
from .parser import parse_request
from .streams import BodyReader, reader_from_memory, reader_from_request

logger = logging.getLogger(__name__)

Handler = Callable[
    [ParsedRequest, BodyReader], Union[Response, Awaitable[Response]]
]


class ConnectionState(Enum):
    """States of a server-side HTTP/1.1 connection."""
    AWAITING_HEADER = "awaiting_header"  # Waiting for a complete header block
    DISPATCHING = "dispatching"          # Handler is producing a response
    WRITING = "writing"                  # Response is being written
    CLOSED = "closed"                    # Connection closed


class HTTP11ServerConnection:
    """
    Server side of one HTTP/1.1 connection.

    The connection owns its stream and a GrowableBuffer of bytes read
    but not consumed yet. Each cycle extracts one header block, builds
    the request body reader, calls the handler, writes the response and
    drains whatever the handler left of the request body, so the buffer
    is positioned at the next pipelined request.
    """

    # Default configuration
    DEFAULT_MAX_HEADER_LEN = 1824 * 8  # 14592 bytes

    def __init__(
        self,
        stream: NetworkStream,
        handler: Handler,
        max_header_len: Optional[int] = None,
    ):
        """
        Initialize the server connection.

        Args:
            stream: The NetworkStream of the accepted connection
            handler: Application handler, called as handler(request, body)
            max_header_len: Maximum size of a request header block in bytes
        """
        self._stream = stream
        self._handler = handler
        self._buffer = GrowableBuffer()
        self._state = ConnectionState.AWAITING_HEADER
        self._response_started = False

        # Configuration
        self._max_header_len = max_header_len or self.DEFAULT_MAX_HEADER_LEN

        # Metrics
        self._request_count = 0
        self._bytes_sent = 0
        self._bytes_received = 0
        self._errors_count = 0
        self._opened_at = time.time()

        logger.debug("HTTP/1.1 server connection initialized")

    async def run(self) -> None:
        """
        Serve the connection until it ends, then close it.

        This is the connection's error boundary: an HTTPError is
        answered with a best-effort error response, any other error is
        logged. The stream is closed in every case.
        """
        try:
            await self.serve()
        except HTTPError as e:
            self._errors_count += 1
            logger.warning(f"HTTP error {e.status_code}: {e.message}")
            await self._send_error_response(e)
        except HTTPCoreError as e:
            self._errors_count += 1
            logger.error(f"Connection failed: {e}")
        except Exception:
            self._errors_count += 1
            logger.exception("Unhandled error while serving connection")
        finally:
            await self.close()

    async def serve(self) -> None:
        """
        Run request/response cycles until the peer is done.

        Raises:
            HTTPError: On framing, parsing or body framing errors
            TransportError: If the stream fails
        """
        while True:
            self._state = ConnectionState.AWAITING_HEADER
            self._response_started = False
            request = await self._receive_request()
            if request is None:
                logger.debug("Peer closed the connection")
                return

            self._request_count += 1

            self._state = ConnectionState.DISPATCHING
            body = reader_from_request(self._stream, self._buffer, request)
            response = await self._dispatch(request, body)

            self._state = ConnectionState.WRITING
            await self._write_response(response)

            logger.debug(
                f"Request {self._request_count}: {request.method} "
                f"{request.uri!r} -> {response.status_code}"
            )

            if not request.keep_alive:
                logger.debug("Closing connection: keep-alive not in effect")
                return

            # the next request starts after this one's body
            await body.drain()

    async def _receive_request(self) -> Optional[ParsedRequest]:
        """
        Read until one complete header block is buffered, then parse it.

        Returns:
            The parsed request, or None if the peer closed the
            connection between requests.
        """
        while True:
            block = extract_header_block(self._buffer, self._max_header_len)
            if block is not None:
                return parse_request(block)

            data = await self._stream.read()
            if not data:
                if len(self._buffer) == 0:
                    return None
                raise ProtocolError("Unexpected EOF.")

            self._bytes_received += len(data)
            self._buffer.push(data)

    async def _dispatch(self, request: ParsedRequest, body: BodyReader) -> Response:
        result = self._handler(request, body)
        if inspect.isawaitable(result):
            result = await result

        if not isinstance(result, Response):
            raise TypeError(f"Handler returned {type(result).__name__}, not Response")
        return result

    async def _write_response(self, response: Response) -> None:
        """
        Write the response header, then stream the body.

        Args:
            response: The response to send
        """
        set_content_length(response)

        self._response_started = True
        await self._send(encode_response(response))

        async for chunk in response.body:
            await self._send(chunk)

    async def _send(self, data: bytes) -> None:
        await self._stream.write(data)
        self._bytes_sent += len(data)

    async def _send_error_response(self, error: HTTPError) -> None:
        """
        Try to report an error to the peer; failures are only logged.

        Nothing is sent if part of a response already went out, since
        the peer could not tell the two apart.
        """
        if self._response_started or self._stream.is_closed:
            return

        response = Response(
            status_code=error.status_code,
            body=reader_from_memory((error.message + "\n").encode("utf-8")),
        )
        try:
            await self._write_response(response)
        except Exception as e:
            logger.debug(f"Could not send error response: {e}")

    async def close(self) -> None:
        """
        Close the connection and cleanup resources.
        """
        if self._state != ConnectionState.CLOSED:
            self._state = ConnectionState.CLOSED
            await self._stream.aclose()

        logger.debug(f"Connection closed after {self._request_count} requests")

    @property
    def state(self) -> ConnectionState:
        """Current state of the connection."""
        return self._state

    @property
    def is_closed(self) -> bool:
        """Check if connection is closed."""
        return self._state == ConnectionState.CLOSED

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get connection metrics.

        Returns:
            Dictionary with connection metrics
        """
        return {
            "request_count": self._request_count,
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "errors_count": self._errors_count,
            "state": self._state.value,
            "uptime": time.time() - self._opened_at,
        }


async def handle_connection(
    stream: NetworkStream,
    handler: Handler,
    max_header_len: Optional[int] = None,
) -> HTTP11ServerConnection:
    """
    Serve one accepted connection to completion.

    Args:
        stream: The accepted connection's stream
        handler: Application handler
        max_header_len: Optional header size limit

    Returns:
        The finished connection, for inspecting its metrics
    """
    connection = HTTP11ServerConnection(stream, handler, max_header_len)
    await connection.run()
    return connection
