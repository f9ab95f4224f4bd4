"""
Network components for raw_http_core.

This module provides the byte stream abstractions the HTTP layer
reads from and writes to.
"""

from .stream import NetworkStream
from .channel import ByteChannel
from .mock import MockNetworkStream

__all__ = [
    "NetworkStream",
    "ByteChannel",
    "MockNetworkStream",
]
