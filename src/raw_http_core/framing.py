"""
HTTP message framing for raw_http_core.

Detects where a header block ends inside a GrowableBuffer and splits
header bytes into lines. Line splitting is deliberately lenient and
accepts CRLF, bare CR or bare LF line endings.
"""

import logging
from typing import List, Optional, Tuple

from .buffer import GrowableBuffer
from .exceptions import FramingError

logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"


def find_delimiter(data: bytes, start: int = 0) -> Tuple[int, int]:
    """
    Find the next line delimiter at or after ``start``.

    A CRLF pair wins when it is the earliest delimiter; otherwise the
    earliest bare CR or bare LF is taken.

    Args:
        data: The bytes to scan.
        start: Offset to start scanning from.

    Returns:
        Tuple of (index, delimiter length), or (-1, 0) if none is found.
    """
    cr = data.find(b"\r", start)
    lf = data.find(b"\n", start)

    if cr < 0 and lf < 0:
        return -1, 0
    if lf < 0 or (0 <= cr < lf):
        if data[cr + 1:cr + 2] == b"\n":
            return cr, 2
        return cr, 1
    return lf, 1


def split_lines(data: bytes) -> List[bytes]:
    """
    Split header bytes into lines.

    An empty chunk after the last delimiter is dropped, so a block
    ending in a blank line yields an empty final entry for that blank
    line and nothing after it.

    Args:
        data: Raw header block bytes.

    Returns:
        The lines, without their delimiters.
    """
    lines: List[bytes] = []
    start = 0

    while True:
        index, width = find_delimiter(data, start)
        if index < 0:
            chunk = data[start:]
            if chunk:
                lines.append(chunk)
            break

        lines.append(data[start:index])
        start = index + width

    return lines


def extract_header_block(
    buf: GrowableBuffer, max_header_len: int
) -> Optional[bytes]:
    """
    Remove one complete header block from the front of the buffer.

    Bytes after the terminator stay buffered; they are either the body
    prefix or the next pipelined message.

    Args:
        buf: Buffer holding unconsumed connection bytes.
        max_header_len: Largest header block accepted, in bytes.

    Returns:
        The header block including its blank-line terminator, or None
        if more data is needed.

    Raises:
        FramingError: If the header block is, or is going to be,
            larger than ``max_header_len``.
    """
    index = buf.find(HEADER_TERMINATOR)
    if index < 0:
        if len(buf) >= max_header_len:
            logger.warning(
                f"No header terminator within {len(buf)} buffered bytes "
                f"(limit {max_header_len})"
            )
            raise FramingError("Header is too large.")
        return None

    end = index + len(HEADER_TERMINATOR)
    if end > max_header_len:
        logger.warning(f"Header block of {end} bytes exceeds limit {max_header_len}")
        raise FramingError("Header is too large.")

    return buf.take(end)
