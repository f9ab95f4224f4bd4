"""
Basic HTTP/1.1 server example using raw_http_core.

Runs the default handler on 127.0.0.1:1234, or a custom handler
with --upper. Try it with:

    curl http://127.0.0.1:1234/
    curl --data 'hello' http://127.0.0.1:1234/echo
"""

import argparse
import asyncio
import logging

from raw_http_core import HTTPServer, Response, reader_from_memory

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def upper_handler(request, body):
    """Respond with the request body in upper case."""
    data = await body.aread()
    logger.info(f"{request.method} {request.uri!r}: {len(data)} body bytes")
    return Response(
        status_code=200,
        headers=[b"Content-Type: text/plain"],
        body=reader_from_memory(data.upper() or b"send me a body\n"),
    )


async def main():
    parser = argparse.ArgumentParser(description="raw_http_core example server")
    parser.add_argument("--host", default=HTTPServer.DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=HTTPServer.DEFAULT_PORT)
    parser.add_argument("--upper", action="store_true", help="use the upper-case handler")
    args = parser.parse_args()

    handler = upper_handler if args.upper else None
    server = HTTPServer(handler, host=args.host, port=args.port)
    try:
        await server.serve_forever()
    finally:
        await server.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped")
