"""
HTTP request header parsing for raw_http_core.

Turns a raw header block, as extracted by the framing layer, into a
ParsedRequest. Field names and values are validated against the
RFC 7230 grammar; any invalid field rejects the whole message.
"""

import logging
import re
from typing import List, Tuple

from .exceptions import ParseError, ProtocolError
from .framing import split_lines
from .http_primitives import ParsedRequest, split_field

logger = logging.getLogger(__name__)

# RFC 7230 section 3.2.6: token = 1*tchar
_token_re = re.compile(rb"[-!#$%&'*+.^_`|~0-9A-Za-z]+")
# HTAB, SP, VCHAR and obs-text; CR, LF and other controls are rejected
_field_value_re = re.compile(rb"[\t\x20-\x7e\x80-\xff]*")
_http_version_re = re.compile(rb"HTTP/[0-9]\.[0-9]")


def parse_request_line(line: bytes) -> Tuple[str, bytes, str]:
    """
    Parse the start line of a request.

    Example start line: ``GET /some-resource HTTP/1.1``

    Args:
        line: The first line of the header block.

    Returns:
        Tuple of (method, uri, version). The URI is left undecoded.

    Raises:
        ParseError: If the line is not three single-space separated
            tokens, or the method or version token is malformed.
    """
    tokens = line.split(b" ")
    if len(tokens) != 3 or not all(tokens):
        raise ParseError("Bad request line.")

    method, uri, version = tokens
    if not _token_re.fullmatch(method) or not _http_version_re.fullmatch(version):
        raise ParseError("Bad request line.")

    return method.decode("ascii"), uri, version.decode("ascii")


def is_valid_field_name(name: bytes) -> bool:
    """Check a field name against the HTTP token grammar."""
    return _token_re.fullmatch(name) is not None


def is_valid_field_value(value: bytes) -> bool:
    """Check a field value for forbidden control characters."""
    return _field_value_re.fullmatch(value) is not None


def parse_header_field(line: bytes) -> Tuple[bytes, bytes]:
    """
    Split and validate a single ``name: value`` header line.

    Args:
        line: One raw header line, without its line ending.

    Returns:
        Tuple of (name, value) with surrounding whitespace removed.

    Raises:
        ParseError: If the line has no colon, or the name or value
            is invalid.
    """
    if b":" not in line:
        raise ParseError("Bad field.")

    name, value = split_field(line)
    if not is_valid_field_name(name) or not is_valid_field_value(value):
        raise ParseError("Bad field.")

    return name, value


def parse_request(data: bytes) -> ParsedRequest:
    """
    Parse an HTTP request header block.

    Args:
        data: The header block, ending with its blank-line terminator.

    Returns:
        The parsed request. Header fields are kept as raw lines.

    Raises:
        ParseError: If the request line or a header field is malformed.
        ProtocolError: If the block does not end with a blank line.
    """
    lines = split_lines(data)
    if len(lines) < 2 or lines[-1]:
        raise ProtocolError("Missing header terminator.")

    method, uri, version = parse_request_line(lines[0])

    headers: List[bytes] = []
    for line in lines[1:-1]:
        parse_header_field(line)
        headers.append(bytes(line))

    logger.debug(f"Parsed request: {method} {uri!r} {version} ({len(headers)} fields)")
    return ParsedRequest(
        method=method,
        uri=bytes(uri),
        version=version,
        headers=tuple(headers),
    )
