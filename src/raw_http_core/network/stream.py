"""
Network stream interface for raw_http_core.

This module defines the NetworkStream interface that all byte stream
implementations must follow, so the connection loop can run over a
real socket or an in-memory stream alike.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for pull-based byte streams with async I/O operations.

    Reads are strictly sequential: a caller must not start a read
    while another one is outstanding.
    """

    @abstractmethod
    async def read(self) -> bytes:
        """
        Read the next available chunk from the stream.

        Returns:
            The next chunk, or an empty bytes object once the peer has
            ended the stream. Every read after end-of-stream is empty.

        Raises:
            TransportError: If the stream reported an error.
            RuntimeError: If another read is already outstanding.
        """
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the stream.

        Returns once the data has been accepted by the transport.

        Args:
            data: The data to write. Must not be empty.

        Raises:
            TransportError: If the stream is closed or failed.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Close the stream and cleanup resources."""
        pass

    @abstractmethod
    def get_extra_info(self, name: str, default: Any = None) -> Optional[Any]:
        """
        Get extra information about the stream.

        Args:
            name: The name of the information to retrieve. Common values include:
                 - "peername": The remote endpoint address
                 - "sockname": The local endpoint address
                 - "socket": The underlying socket object
            default: Value returned when the information is not available.

        Returns:
            The requested information or ``default``.
        """
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """Check if the stream is closed."""
        pass
