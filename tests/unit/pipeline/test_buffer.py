"""Unit tests for the fixed-capacity input buffer."""

import pytest

from tcbench.errors import BufferCapacityExceededError
from tcbench.pipeline.buffer import InputBuffer


class TestInputBuffer:
    """Tests for InputBuffer."""

    def test_append_returns_offsets(self) -> None:
        buf = InputBuffer(16)
        assert buf.append(b"abc") == 0
        assert buf.append(b"defg") == 3
        assert len(buf) == 7
        assert buf.remaining == 9
        assert bytes(buf.view()) == b"abcdefg"

    def test_exact_fill_accepted(self) -> None:
        buf = InputBuffer(4)
        buf.append(b"ab")
        buf.append(b"cd")
        assert buf.remaining == 0

    def test_overflow_leaves_buffer_unchanged(self) -> None:
        """A sample that does not fit is rejected as a whole."""
        buf = InputBuffer(4)
        buf.append(b"abc")

        with pytest.raises(BufferCapacityExceededError) as exc_info:
            buf.append(b"de")

        assert exc_info.value.capacity == 4
        assert exc_info.value.used == 3
        assert exc_info.value.requested == 2
        assert bytes(buf.view()) == b"abc"

    def test_view_is_read_only(self) -> None:
        buf = InputBuffer(4)
        buf.append(b"ab")
        view = buf.view()
        with pytest.raises(TypeError):
            view[0] = 0

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity: int) -> None:
        with pytest.raises(ValueError, match="capacity"):
            InputBuffer(capacity)
