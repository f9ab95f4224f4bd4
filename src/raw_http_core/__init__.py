"""
raw_http_core - minimal HTTP/1.1 server framing over raw byte streams

Turns an asyncio byte stream into sequential reads, reassembles
partial and pipelined requests in a growable buffer, parses request
headers, frames bodies by Content-Length and serves keep-alive
request/response cycles.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .buffer import GrowableBuffer
from .encoder import HTTP_VERSION, encode_response, set_content_length
from .exceptions import (
    HTTPCoreError,
    TransportError,
    HTTPError,
    FramingError,
    ParseError,
    UnsupportedFeatureError,
    ProtocolError,
)
from .framing import extract_header_block, split_lines
from .handlers import default_handler
from .http11 import HTTP11ServerConnection, ConnectionState, handle_connection
from .http_primitives import ParsedRequest, Response, get_field
from .network import ByteChannel, MockNetworkStream, NetworkStream
from .parser import parse_request
from .server import HTTPServer
from .streams import (
    BodyKind,
    BodyReader,
    reader_from_conn_length,
    reader_from_memory,
    reader_from_request,
)

__all__ = [
    "GrowableBuffer",
    "HTTP_VERSION",
    "encode_response",
    "set_content_length",
    "HTTPCoreError",
    "TransportError",
    "HTTPError",
    "FramingError",
    "ParseError",
    "UnsupportedFeatureError",
    "ProtocolError",
    "extract_header_block",
    "split_lines",
    "default_handler",
    "HTTP11ServerConnection",
    "ConnectionState",
    "handle_connection",
    "ParsedRequest",
    "Response",
    "get_field",
    "ByteChannel",
    "MockNetworkStream",
    "NetworkStream",
    "parse_request",
    "HTTPServer",
    "BodyKind",
    "BodyReader",
    "reader_from_conn_length",
    "reader_from_memory",
    "reader_from_request",
]
