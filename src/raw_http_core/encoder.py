"""
Response encoding for raw_http_core.

Serializes a response status line and header fields into wire bytes.
The body is not included; it is streamed separately from the
response's BodyReader.
"""

from http import HTTPStatus

from .exceptions import ProtocolError, UnsupportedFeatureError
from .http_primitives import Response

# HTTP version implemented by the server
HTTP_VERSION = "HTTP/1.1"

CRLF = b"\r\n"


def status_line(status_code: int, version: str = HTTP_VERSION) -> bytes:
    """
    Build a status line such as ``HTTP/1.1 200 OK``.

    Codes without a standard reason phrase get an empty one.
    """
    try:
        reason = HTTPStatus(status_code).phrase
    except ValueError:
        reason = ""
    return f"{version} {status_code} {reason}".encode("ascii")


def set_content_length(response: Response) -> None:
    """
    Append the Content-Length field computed from the response body.

    Args:
        response: The response to update in place.

    Raises:
        ProtocolError: If the response already has a Content-Length.
        UnsupportedFeatureError: If the body length is unknown.
    """
    if response.has_header("Content-Length"):
        raise ProtocolError("Content-Length is already set.", status_code=500)

    if response.body.length < 0:
        raise UnsupportedFeatureError("Chunked response bodies are not implemented.")

    response.add_header("Content-Length", str(response.body.length))


def encode_response(response: Response, version: str = HTTP_VERSION) -> bytes:
    """
    Encode a response header into a byte string.

    Every header line is CRLF-terminated and the blank line ending the
    header block is always appended, whatever the header list holds.

    Args:
        response: The response to encode.
        version: Protocol version for the status line.

    Returns:
        The header block bytes.
    """
    parts = [status_line(response.status_code, version), CRLF]
    for header_field in response.headers:
        parts.append(header_field)
        parts.append(CRLF)
    parts.append(CRLF)
    return b"".join(parts)
