"""
Default application handler for raw_http_core.
"""

from .http_primitives import ParsedRequest, Response
from .streams import BodyReader, reader_from_memory

SERVER_NAME = b"raw_http_core"


async def default_handler(request: ParsedRequest, body: BodyReader) -> Response:
    """
    Answer ``/echo`` with the request body, anything else with a greeting.

    The echo response reuses the request's BodyReader, so the body is
    streamed straight from the connection back to the peer.
    """
    if request.uri == b"/echo":
        response_body = body
    else:
        response_body = reader_from_memory(b"hello world.\n")

    return Response(
        status_code=200,
        headers=[b"Server: " + SERVER_NAME],
        body=response_body,
    )
