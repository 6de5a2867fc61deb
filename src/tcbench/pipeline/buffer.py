"""Fixed-capacity input buffer for compressed samples."""

from __future__ import annotations

from tcbench.errors import BufferCapacityExceededError


class InputBuffer:
    """Contiguous byte region holding one track's compressed samples.

    Samples are appended back to back. Appending past the capacity raises
    BufferCapacityExceededError and leaves the buffer unchanged.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._data = bytearray(capacity)
        self._used = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self._used

    def __len__(self) -> int:
        return self._used

    def append(self, data: bytes | bytearray | memoryview) -> int:
        """Copy data into the buffer.

        Args:
            data: Sample bytes.

        Returns:
            Offset of the copied bytes within the buffer.

        Raises:
            BufferCapacityExceededError: If data does not fit.
        """
        size = len(data)
        if size > self.remaining:
            raise BufferCapacityExceededError(self.capacity, self._used, size)
        offset = self._used
        self._data[offset : offset + size] = data
        self._used += size
        return offset

    def view(self) -> memoryview:
        """Return a read-only view of the filled part of the buffer."""
        return memoryview(self._data)[: self._used].toreadonly()
