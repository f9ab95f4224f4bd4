"""
Custom exceptions for raw_http_core.

This module defines the exception hierarchy used throughout
the library. Errors that carry an HTTP status code derive from
HTTPError and are turned into an error response by the connection
loop before the connection is closed.
"""

from typing import Optional


class HTTPCoreError(Exception):
    """Base exception for all raw_http_core errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class TransportError(HTTPCoreError):
    """Raised when the underlying byte stream fails to read or write."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Transport error: {message}", cause)


class HTTPError(HTTPCoreError):
    """
    An error that should be reported to the peer as an HTTP response.

    The message is sent verbatim as the response body, so it is kept
    free of any prefix.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, cause)
        if status_code is not None:
            self.status_code = status_code


class FramingError(HTTPError):
    """Raised when a header block exceeds the configured size limit."""

    status_code = 413


class ParseError(HTTPError):
    """Raised for a malformed request line or header field."""

    status_code = 400


class UnsupportedFeatureError(HTTPError):
    """Raised for body framings this server does not implement."""

    status_code = 501


class ProtocolError(HTTPError):
    """Raised when the peer or a handler violates HTTP message framing."""

    status_code = 400
