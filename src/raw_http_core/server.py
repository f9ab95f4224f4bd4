"""
Listening server for raw_http_core.

HTTPServer binds a listening socket with a ByteChannel protocol
factory and runs one HTTP11ServerConnection task per accepted
connection. Binding is retried after a fixed delay while the address
is in use.
"""

import asyncio
import errno
import logging
from typing import Optional, Set

from .handlers import default_handler
from .http11 import Handler, HTTP11ServerConnection
from .network.channel import ByteChannel

logger = logging.getLogger(__name__)


class HTTPServer:
    """
    asyncio HTTP/1.1 server.

    Connections are independent: each owns its channel and buffer and
    runs in its own task.
    """

    # Default configuration
    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_PORT = 1234
    DEFAULT_BIND_RETRY_DELAY = 1.0  # seconds

    def __init__(
        self,
        handler: Optional[Handler] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        max_header_len: Optional[int] = None,
        bind_retry_delay: Optional[float] = None,
        max_bind_attempts: Optional[int] = None,
    ):
        """
        Initialize the server.

        Args:
            handler: Application handler (defaults to the hello/echo handler)
            host: Address to listen on
            port: Port to listen on, 0 picks a free port
            max_header_len: Maximum request header block size in bytes
            bind_retry_delay: Delay between bind attempts while the
                address is in use
            max_bind_attempts: Give up after this many attempts; None
                retries forever
        """
        self._handler = handler or default_handler
        self._host = host or self.DEFAULT_HOST
        self._port = self.DEFAULT_PORT if port is None else port
        self._max_header_len = max_header_len
        self._bind_retry_delay = (
            self.DEFAULT_BIND_RETRY_DELAY if bind_retry_delay is None else bind_retry_delay
        )
        self._max_bind_attempts = max_bind_attempts

        self._server: Optional[asyncio.AbstractServer] = None
        self._tasks: Set["asyncio.Task[None]"] = set()

    async def start(self) -> None:
        """
        Bind the listening socket and start accepting connections.

        Raises:
            OSError: If binding fails for a reason other than the
                address being in use, or the attempts run out.
        """
        loop = asyncio.get_running_loop()
        attempt = 0

        while True:
            attempt += 1
            try:
                self._server = await loop.create_server(
                    self._create_channel, self._host, self._port
                )
                break
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    raise
                if (
                    self._max_bind_attempts is not None
                    and attempt >= self._max_bind_attempts
                ):
                    raise
                logger.warning(
                    f"Address in use, retrying in {self._bind_retry_delay}s..."
                )
                await asyncio.sleep(self._bind_retry_delay)

        logger.info(f"Listening on {self._host}:{self.port}")

    async def serve_forever(self) -> None:
        """Start the server if needed and accept connections until cancelled."""
        if self._server is None:
            await self.start()
        assert self._server is not None
        await self._server.serve_forever()

    async def aclose(self) -> None:
        """Stop listening and cancel in-flight connections."""
        server, self._server = self._server, None
        if server is not None:
            server.close()

        # wait_closed() also waits for open connections on newer Pythons
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        if server is not None:
            await server.wait_closed()

        logger.info("Server closed")

    async def __aenter__(self) -> "HTTPServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def port(self) -> int:
        """The bound port, useful when listening on port 0."""
        if self._server is None or not self._server.sockets:
            return self._port
        return self._server.sockets[0].getsockname()[1]

    @property
    def active_connections(self) -> int:
        """Number of connections currently being served."""
        return len(self._tasks)

    def _create_channel(self) -> ByteChannel:
        return ByteChannel(on_connect=self._on_connect)

    def _on_connect(self, channel: ByteChannel) -> None:
        connection = HTTP11ServerConnection(
            channel, self._handler, self._max_header_len
        )
        task = asyncio.get_running_loop().create_task(connection.run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
