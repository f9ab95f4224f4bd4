"""
HTTP primitives for raw_http_core.

This module defines the core data structures for parsed requests and
generated responses. Header fields are kept as raw ``name: value``
byte lines because field values are not guaranteed to be valid text.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple, Union

from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from .streams import BodyReader  # Forward reference


# Type aliases for better readability
HeaderField: TypeAlias = bytes
Headers: TypeAlias = List[HeaderField]
StatusCode: TypeAlias = int

_WHITESPACE = b" \t"


def split_field(header_field: bytes) -> Tuple[bytes, bytes]:
    """
    Split a raw header line at its first colon.

    Args:
        header_field: A line such as ``b"Host: 127.0.0.1:1234"``.

    Returns:
        Tuple of (name, value), both with surrounding whitespace removed.
        A line without a colon yields an empty value.
    """
    name, _, value = header_field.partition(b":")
    return name.strip(_WHITESPACE), value.strip(_WHITESPACE)


def get_field(headers: Sequence[bytes], name: Union[str, bytes]) -> Optional[bytes]:
    """
    Look up a field value by name (case-insensitive).

    The list is scanned linearly and the first matching field wins;
    duplicate fields are never merged.

    Args:
        headers: Raw header lines.
        name: The field name to look for.

    Returns:
        The field value, or None if no field has that name.
    """
    if isinstance(name, str):
        name = name.encode("latin-1")

    name_lower = name.lower()
    for header_field in headers:
        field_name, field_value = split_field(header_field)
        if field_name.lower() == name_lower:
            return field_value

    return None


@dataclass(frozen=True)
class ParsedRequest:
    """
    Immutable representation of a parsed request header.

    ``uri`` and ``headers`` stay as bytes; ``method`` and ``version``
    are validated ASCII tokens and are stored as strings.
    """

    method: str
    uri: bytes
    version: str
    headers: Tuple[HeaderField, ...] = ()

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """Get a header value by name (case-insensitive, first match)."""
        return get_field(self.headers, name)

    @property
    def keep_alive(self) -> bool:
        """Whether the connection may be reused after this request."""
        if self.version == "HTTP/1.0":
            return False

        connection = self.get_header("Connection")
        return connection is None or connection.lower() != b"close"


@dataclass
class Response:
    """
    HTTP response produced by an application handler.

    The header list is extended once by the connection, which appends
    the Content-Length derived from ``body.length`` before encoding.
    """

    status_code: StatusCode
    body: "BodyReader"
    headers: Headers = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate response data after initialization."""
        if not isinstance(self.status_code, int):
            raise ValueError("status_code must be int")

        if not 100 <= self.status_code <= 999:
            raise ValueError("status_code must be a three-digit number")

        if not isinstance(self.headers, list):
            raise ValueError("headers must be a list")

        for header_field in self.headers:
            if not isinstance(header_field, bytes):
                raise ValueError("header fields must be bytes")

    def add_header(self, name: Union[str, bytes], value: Union[str, bytes]) -> None:
        """Append a ``name: value`` field to the response."""
        if isinstance(name, str):
            name = name.encode("latin-1")
        if isinstance(value, str):
            value = value.encode("latin-1")

        self.headers.append(name + b": " + value)

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """Get a header value by name (case-insensitive, first match)."""
        return get_field(self.headers, name)

    def has_header(self, name: Union[str, bytes]) -> bool:
        """Check if a header exists (case-insensitive)."""
        return self.get_header(name) is not None
