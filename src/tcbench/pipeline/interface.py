"""Decoder and encoder interfaces.

Codec adapters report outcomes as CodecStatus values instead of raising;
the harness decides what a non-OK status means for the running case.
"""

from enum import IntEnum
from typing import BinaryIO, Protocol

from tcbench.domain import (
    EncoderParameters,
    FormatDescriptor,
    FrameSample,
    StatisticsRecord,
)
from tcbench.extractor import Extractor


class CodecStatus(IntEnum):
    """Outcome of a decode or encode call."""

    OK = 0
    INVALID_STATE = 1
    UNKNOWN_CODEC = 2
    NO_DEFAULT_ENCODER = 3
    CONFIGURE_FAILED = 4
    CODEC_ERROR = 5
    IO_ERROR = 6

    @property
    def label(self) -> str:
        return self.name.lower()


class RecordSink(Protocol):
    """Anything statistics records can be appended to."""

    def append(self, record: StatisticsRecord) -> None: ...


class Decoder(Protocol):
    """Protocol for decode pipelines.

    A decoder owns the extractor whose samples it consumes.
    """

    decode_time_ns: int

    def get_extractor(self) -> Extractor:
        """Return the extractor owned by this decoder."""
        ...

    def setup_decoder(self) -> None:
        """Allocate a fresh decode session."""
        ...

    def decode(
        self,
        input_buffer: bytes | bytearray | memoryview,
        frame_info: list[FrameSample],
        codec_name: str,
        async_mode: bool,
        output: BinaryIO,
    ) -> CodecStatus:
        """Decode every sample of the selected track into raw media.

        Args:
            input_buffer: Compressed samples, laid out back to back.
            frame_info: Sample metadata in extraction order; offsets index
                into input_buffer.
            codec_name: Decoder to use; empty selects the track's codec.
            async_mode: Run submission and retrieval on separate threads.
            output: Writable file receiving raw units in produced order.

        Returns:
            CodecStatus.OK, or the reason decoding failed.
        """
        ...

    def get_format(self) -> FormatDescriptor | None:
        """Return the negotiated raw output format, valid after decode."""
        ...

    def de_init_codec(self) -> None:
        """Release the codec session. Safe in any state."""
        ...

    def reset_decoder(self) -> None:
        """Return the decoder to its pre-setup state. Safe in any state."""
        ...


class Encoder(Protocol):
    """Protocol for encode pipelines."""

    def setup_encoder(self) -> None:
        """Allocate a fresh encode session and statistics collector."""
        ...

    def encode(
        self,
        codec_name: str,
        raw_stream: BinaryIO,
        input_size: int,
        async_mode: bool,
        params: EncoderParameters,
        mime: str,
    ) -> CodecStatus:
        """Encode raw media read from raw_stream.

        Args:
            codec_name: Encoder to use; empty selects the default for mime.
            raw_stream: Readable file holding decoder output.
            input_size: Number of bytes to consume from raw_stream.
            async_mode: Run submission and retrieval on separate threads.
            params: Encoder configuration.
            mime: MIME type of the source track.

        Returns:
            CodecStatus.OK, or the reason encoding failed.
        """
        ...

    def dump_statistics(
        self,
        input_label: str,
        clip_duration_us: int,
        codec_name: str,
        mode_label: str,
        sink: RecordSink,
        *,
        decode_time_ns: int | None = None,
        track_index: int = 0,
    ) -> None:
        """Append one statistics record for the last encode to sink."""
        ...

    def de_init_codec(self) -> None:
        """Release the codec session. Safe in any state."""
        ...

    def reset_encoder(self) -> None:
        """Clear session state and statistics. Safe in any state."""
        ...
