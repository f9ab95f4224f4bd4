"""
Integration tests for HTTPServer over real sockets.

Responses are parsed with h11, an independent HTTP/1.1
implementation, to check the server's wire format.
"""

import asyncio
import errno
import socket
from typing import List, Tuple

import pytest

h11 = pytest.importorskip("h11")

from raw_http_core.handlers import default_handler
from raw_http_core.http_primitives import Response
from raw_http_core.server import HTTPServer
from raw_http_core.streams import reader_from_memory

READ_TIMEOUT = 5.0


def parse_responses(raw: bytes, count: int) -> List[Tuple["h11.Response", bytes]]:
    """Parse ``count`` consecutive responses out of raw bytes with h11."""
    results = []
    for _ in range(count):
        conn = h11.Connection(h11.CLIENT)
        # h11 only accepts a response after it has seen a request
        conn.send(h11.Request(method="GET", target="/", headers=[("Host", "test")]))
        conn.send(h11.EndOfMessage())
        conn.receive_data(raw)

        response = None
        body = b""
        while True:
            event = conn.next_event()
            if isinstance(event, h11.Response):
                response = event
            elif isinstance(event, h11.Data):
                body += event.data
            elif isinstance(event, h11.EndOfMessage):
                break
            elif event is h11.NEED_DATA:
                raise AssertionError(f"Incomplete response in {raw!r}")

        raw = conn.trailing_data[0]
        results.append((response, body))

    assert raw == b"", f"Unexpected trailing data {raw!r}"
    return results


async def read_until(reader: asyncio.StreamReader, marker: bytes, count: int) -> bytes:
    data = b""
    while data.count(marker) < count:
        chunk = await asyncio.wait_for(reader.read(65536), READ_TIMEOUT)
        if not chunk:
            break
        data += chunk
    return data


async def read_to_eof(reader: asyncio.StreamReader) -> bytes:
    return await asyncio.wait_for(reader.read(), READ_TIMEOUT)


class TestHTTPServer:
    """Test the server end to end."""

    @pytest.mark.asyncio
    async def test_get(self) -> None:
        async with HTTPServer(port=0) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(b"GET / HTTP/1.1\r\nHost: a\r\n\r\n")
            await writer.drain()

            data = await read_until(reader, b"hello world.\n", 1)
            [(response, body)] = parse_responses(data, 1)

            assert response.status_code == 200
            assert response.http_version == b"1.1"
            assert (b"server", b"raw_http_core") in response.headers
            assert (b"content-length", b"13") in response.headers
            assert body == b"hello world.\n"

            writer.close()

    @pytest.mark.asyncio
    async def test_pipelined_keep_alive(self) -> None:
        """Test two pipelined requests answered on one open connection."""
        async with HTTPServer(port=0) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(
                b"GET / HTTP/1.1\r\nHost: a\r\n\r\n"
                b"POST /echo HTTP/1.1\r\nHost: a\r\nContent-Length: 5\r\n\r\nhello"
            )
            await writer.drain()

            data = await read_until(reader, b"HTTP/1.1 200 OK", 2)
            # the second body may still be in flight
            while not data.endswith(b"hello"):
                data += await asyncio.wait_for(reader.read(65536), READ_TIMEOUT)

            (first, first_body), (second, second_body) = parse_responses(data, 2)
            assert first_body == b"hello world.\n"
            assert second_body == b"hello"
            assert server.active_connections == 1

            # the connection is still usable
            writer.write(b"GET /again HTTP/1.1\r\n\r\n")
            await writer.drain()
            data = await read_until(reader, b"hello world.\n", 1)
            assert parse_responses(data, 1)[0][1] == b"hello world.\n"

            writer.close()

    @pytest.mark.asyncio
    async def test_http10_closes(self) -> None:
        async with HTTPServer(port=0) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(b"GET / HTTP/1.0\r\n\r\nGET / HTTP/1.1\r\n\r\n")
            await writer.drain()

            data = await read_to_eof(reader)
            [(response, body)] = parse_responses(data, 1)
            assert body == b"hello world.\n"

            writer.close()

    @pytest.mark.asyncio
    async def test_client_half_close(self) -> None:
        """Test that a request followed by a write shutdown is still answered."""
        async with HTTPServer(port=0) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(b"GET / HTTP/1.1\r\n\r\n")
            writer.write_eof()

            data = await read_to_eof(reader)
            assert parse_responses(data, 1)[0][1] == b"hello world.\n"

            writer.close()

    @pytest.mark.asyncio
    async def test_bad_request(self) -> None:
        async with HTTPServer(port=0) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(b"NOT HTTP\r\n\r\n")
            await writer.drain()

            data = await read_to_eof(reader)
            [(response, body)] = parse_responses(data, 1)
            assert response.status_code == 400
            assert body == b"Bad request line.\n"

            writer.close()

    @pytest.mark.asyncio
    async def test_header_too_large(self) -> None:
        async with HTTPServer(port=0, max_header_len=256) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(b"GET / HTTP/1.1\r\nX: " + b"a" * 400)
            await writer.drain()

            data = await read_to_eof(reader)
            [(response, body)] = parse_responses(data, 1)
            assert response.status_code == 413
            assert body == b"Header is too large.\n"

            writer.close()

    @pytest.mark.asyncio
    async def test_large_echo(self) -> None:
        """Test a body far larger than a single read."""
        payload = bytes(range(256)) * 4096  # 1 MiB
        async with HTTPServer(port=0) as server:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)

            async def send() -> None:
                writer.write(
                    b"POST /echo HTTP/1.1\r\nContent-Length: "
                    + str(len(payload)).encode()
                    + b"\r\n\r\n"
                )
                for i in range(0, len(payload), 65536):
                    writer.write(payload[i:i + 65536])
                    await writer.drain()

            # the echo streams back while the body is still arriving
            sender = asyncio.ensure_future(send())
            data = b""
            while not data.endswith(payload):
                chunk = await asyncio.wait_for(reader.read(65536), READ_TIMEOUT)
                assert chunk
                data += chunk
            await sender

            [(response, body)] = parse_responses(data, 1)
            assert body == payload

            writer.close()

    @pytest.mark.asyncio
    async def test_concurrent_connections(self) -> None:
        """Test independent connections served at the same time."""
        async def handler(request, body):
            payload = await body.aread()
            return Response(status_code=200, body=reader_from_memory(payload[::-1]))

        async def client(port: int, text: bytes) -> bytes:
            reader, writer = await asyncio.open_connection("127.0.0.1", port)
            writer.write(
                b"POST / HTTP/1.0\r\nContent-Length: "
                + str(len(text)).encode()
                + b"\r\n\r\n"
                + text
            )
            await writer.drain()
            data = await read_to_eof(reader)
            writer.close()
            return parse_responses(data, 1)[0][1]

        async with HTTPServer(handler, port=0) as server:
            texts = [f"message-{i}".encode() for i in range(10)]
            results = await asyncio.gather(*(client(server.port, t) for t in texts))

        assert results == [t[::-1] for t in texts]

    @pytest.mark.asyncio
    async def test_close_with_idle_connection(self) -> None:
        """Test that closing the server ends idle keep-alive connections."""
        server = HTTPServer(default_handler, port=0)
        await server.start()
        reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
        writer.write(b"GET / HTTP/1.1\r\n\r\n")
        await writer.drain()
        await read_until(reader, b"hello world.\n", 1)

        await asyncio.wait_for(server.aclose(), READ_TIMEOUT)
        assert server.active_connections == 0
        assert await read_to_eof(reader) == b""
        writer.close()


class TestBindRetry:
    """Test bind retry while the address is in use."""

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]
        try:
            server = HTTPServer(
                port=port, bind_retry_delay=0.01, max_bind_attempts=3
            )
            with pytest.raises(OSError) as exc_info:
                await server.start()
            assert exc_info.value.errno == errno.EADDRINUSE
        finally:
            blocker.close()

    @pytest.mark.asyncio
    async def test_binds_once_address_is_free(self) -> None:
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]

        server = HTTPServer(port=port, bind_retry_delay=0.05)
        start = asyncio.ensure_future(server.start())
        await asyncio.sleep(0.12)
        assert not start.done()

        blocker.close()
        await asyncio.wait_for(start, READ_TIMEOUT)
        assert server.port == port
        await server.aclose()
