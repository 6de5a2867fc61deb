"""Extractor interface for container demuxing."""

from typing import BinaryIO, Protocol

from tcbench.domain import FormatDescriptor, FrameSample, MediaTrack


class Extractor(Protocol):
    """Protocol for container demuxer adapters.

    One instance serves one session: init_extractor() once, then for each
    track setup_track_format() followed by a get_frame_sample() /
    get_frame_buf() pull loop, and finally de_init_extractor().
    """

    def init_extractor(self, file: BinaryIO, file_size: int) -> int:
        """Open the container.

        Args:
            file: Binary file object positioned at the start of the container.
            file_size: Size of the file in bytes.

        Returns:
            Number of tracks, or 0 if the container cannot be parsed.
        """
        ...

    def setup_track_format(self, track_index: int) -> int:
        """Select a track for sample retrieval.

        Returns:
            0 on success, -1 if the index is invalid or the track's format
            cannot be resolved.
        """
        ...

    def get_frame_sample(self) -> FrameSample | None:
        """Advance to the next access unit of the selected track.

        Returns:
            The sample's metadata. None, or a zero-size sample, signals
            end-of-stream.
        """
        ...

    def get_frame_buf(self) -> bytes:
        """Return the bytes of the most recently fetched sample.

        Only the latest sample is retained; callers copy it before
        calling get_frame_sample() again.
        """
        ...

    def get_format(self) -> FormatDescriptor:
        """Return the selected track's format."""
        ...

    def get_clip_duration(self) -> int:
        """Return the selected track's duration in microseconds."""
        ...

    @property
    def selected_track(self) -> MediaTrack | None:
        """The track chosen by setup_track_format(), if any."""
        ...

    def de_init_extractor(self) -> None:
        """Release the container session."""
        ...
