"""DynBuf: growable byte buffer with a capacity ceiling.

Appends never grow the buffer implicitly: an append that does not fit
returns ``False`` and leaves the buffer untouched. Callers ``grow()`` and
retry. This is what lets the writer roll back to a saved length.
"""

from __future__ import annotations

import errno
import logging
import os
import sys

logger = logging.getLogger(__name__)


class DynBuf:
    """Byte buffer of ``length`` used bytes out of ``capacity``."""

    def __init__(self, initial_capacity: int = 1024,
                 max_capacity: int = sys.maxsize) -> None:
        if (initial_capacity <= 0 or max_capacity <= 0
                or initial_capacity > max_capacity):
            raise ValueError(
                f"invalid capacities: initial={initial_capacity} "
                f"max={max_capacity}")
        self._data: bytearray | None = bytearray(initial_capacity)
        self.length = 0
        self.capacity = initial_capacity
        self.max_capacity = max_capacity
        self.unmanaged = False

    @classmethod
    def unmanaged_buffer(cls, data: bytearray) -> DynBuf:
        """Wrap a caller-owned buffer. It can never grow."""
        buf = cls.__new__(cls)
        buf._data = data
        buf.length = 0
        buf.capacity = len(data)
        buf.max_capacity = len(data)
        buf.unmanaged = True
        return buf

    # -- Inspection -----------------------------------------------------

    @property
    def data(self) -> bytearray:
        if self._data is None:
            raise ValueError("DynBuf used after fini()")
        return self._data

    def value(self) -> bytes:
        """The bytes written so far."""
        return bytes(self.data[:self.length])

    def full(self) -> bool:
        return self.length >= self.capacity

    # -- Mutation -------------------------------------------------------

    def clear(self) -> None:
        self.length = 0

    def append(self, data: bytes) -> bool:
        """Append ``data`` if it fits within the current capacity."""
        end = self.length + len(data)
        if end > self.capacity:
            return False
        self.data[self.length:end] = data
        self.length = end
        return True

    def append_char(self, c: str | int) -> bool:
        if isinstance(c, str):
            c = ord(c)
        return self.append(bytes((c,)))

    def maybe_append_char(self, condition: bool, c: str | int) -> bool:
        """Append ``c`` only when ``condition`` holds. True if nothing to do."""
        if not condition:
            return True
        return self.append_char(c)

    def grow(self) -> bool:
        """Double the capacity, capped at ``max_capacity``."""
        new_capacity = self.max_capacity
        if self.capacity <= self.max_capacity >> 1:
            new_capacity = self.capacity << 1
        if new_capacity == self.capacity:
            return False
        try:
            self.data.extend(bytes(new_capacity - self.capacity))
        except MemoryError:
            logger.error("Failed to grow buffer from %d to %d bytes",
                         self.capacity, new_capacity)
            return False
        logger.debug("Grew buffer from %d to %d bytes",
                     self.capacity, new_capacity)
        self.capacity = new_capacity
        return True

    def read_fd(self, fd: int) -> int:
        """Read from ``fd`` until EOF or until it would block.

        Returns 0 on EOF, 1 if the descriptor would block, -1 on error or
        when the buffer cannot grow any further.
        """
        while True:
            if self.full() and not self.grow():
                return -1
            try:
                chunk = os.read(fd, self.capacity - self.length)
            except BlockingIOError:
                return 1
            except OSError as exc:
                if exc.errno in (errno.EAGAIN, errno.EWOULDBLOCK):
                    return 1
                logger.error("Failed read(%d, %d): %s",
                             fd, self.capacity - self.length, exc)
                return -1
            if not chunk:
                return 0
            self.append(chunk)

    def fini(self) -> None:
        self._data = None
        self.capacity = 0
        self.length = 0
        self.unmanaged = False

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return f"DynBuf(length={self.length}, capacity={self.capacity})"
