"""
Growable byte buffer for raw_http_core.

Bytes read from the network are appended at the tail and consumed
from the head once a complete message (or a piece of a body) has
been extracted. The buffer keeps unconsumed bytes across reads, which
is what makes partial and pipelined messages work.
"""

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


class GrowableBuffer:
    """
    Append-at-the-tail, consume-from-the-head byte region.

    Capacity grows by doubling, starting from ``MIN_CAPACITY``. There
    is no head pointer: ``pop`` moves the remaining bytes to offset 0.
    """

    MIN_CAPACITY = 32

    def __init__(self) -> None:
        self._data = bytearray()
        self._length = 0

    def __len__(self) -> int:
        return self._length

    def __bytes__(self) -> bytes:
        return bytes(self._data[:self._length])

    def __repr__(self) -> str:
        return f"<GrowableBuffer length={self._length} capacity={self.capacity}>"

    @property
    def capacity(self) -> int:
        """Number of bytes the buffer can hold without growing."""
        return len(self._data)

    def _grow(self, required: int) -> None:
        capacity = max(len(self._data), self.MIN_CAPACITY)
        while capacity < required:
            capacity *= 2

        grown = bytearray(capacity)
        grown[:self._length] = self._data[:self._length]
        self._data = grown

    def push(self, data: BytesLike) -> None:
        """
        Append data to the tail of the buffer.

        Args:
            data: The bytes to append. Empty input is a no-op.
        """
        new_length = self._length + len(data)
        if len(self._data) < new_length:
            self._grow(new_length)

        self._data[self._length:new_length] = data
        self._length = new_length

    def pop(self, length: int) -> None:
        """
        Remove bytes from the front of the buffer.

        Args:
            length: Number of bytes to remove.

        Raises:
            ValueError: If more bytes are requested than are buffered.
        """
        if length < 0 or length > self._length:
            raise ValueError(
                f"Cannot pop {length} bytes from a buffer holding {self._length}"
            )

        remaining = self._length - length
        self._data[:remaining] = self._data[length:self._length]
        self._length = remaining

    def peek(self) -> memoryview:
        """
        Return a read-only view of the buffered bytes.

        The view is only valid until the next ``push`` or ``pop``.
        """
        return memoryview(self._data).toreadonly()[:self._length]

    def find(self, sub: bytes, start: int = 0) -> int:
        """Return the offset of ``sub`` in the buffered bytes, or -1."""
        return self._data.find(sub, start, self._length)

    def take(self, length: int) -> bytes:
        """Copy out and remove the first ``length`` bytes."""
        if length > self._length:
            raise ValueError(
                f"Cannot take {length} bytes from a buffer holding {self._length}"
            )
        data = bytes(self._data[:length])
        self.pop(length)
        return data
