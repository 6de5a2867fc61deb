"""PyAV decode pipeline.

Decodes the compressed samples of the extractor's selected track into raw
media: packed signed 16-bit PCM for audio, planar yuv420p for video.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from fractions import Fraction
from typing import BinaryIO

import av
from av.error import FFmpegError

from tcbench.config.models import DEFAULT_ASYNC_QUEUE_DEPTH
from tcbench.core.codecs import MIME_AUDIO_RAW, MIME_VIDEO_RAW
from tcbench.domain import (
    KEY_CHANNEL_COUNT,
    KEY_CHANNEL_LAYOUT,
    KEY_COLOR_FORMAT,
    KEY_HEIGHT,
    KEY_MIME,
    KEY_PCM_ENCODING,
    KEY_SAMPLE_RATE,
    KEY_WIDTH,
    FormatDescriptor,
    FrameSample,
    MediaKind,
    MediaTrack,
)
from tcbench.extractor import Extractor, PyAVExtractor
from tcbench.pipeline.interface import CodecStatus
from tcbench.pipeline.worker import run_pipelined

logger = logging.getLogger(__name__)

RAW_AUDIO_FORMAT = "s16"
RAW_VIDEO_FORMAT = "yuv420p"

_US_TIME_BASE = Fraction(1, 1_000_000)


# FFmpeg default layout per channel count (av_channel_layout_default)
_DEFAULT_LAYOUTS = {
    1: "mono",
    2: "stereo",
    3: "2.1",
    4: "4.0",
    5: "5.0",
    6: "5.1",
    7: "6.1",
    8: "7.1",
}


def layout_for_channels(channels: int | None) -> str | None:
    """Return FFmpeg's default layout name for a channel count, if any."""
    if channels is None:
        return None
    return _DEFAULT_LAYOUTS.get(channels)


class PyAVDecoder:
    """Decoder backed by PyAV (FFmpeg libavcodec).

    Owns its extractor. The codec session is created inside decode() from
    the selected track, and released by de_init_codec().
    """

    def __init__(
        self,
        extractor: Extractor | None = None,
        *,
        queue_depth: int = DEFAULT_ASYNC_QUEUE_DEPTH,
    ) -> None:
        self._extractor: Extractor = extractor or PyAVExtractor()
        self._queue_depth = queue_depth
        self._ctx: av.CodecContext | None = None
        self._resampler: av.AudioResampler | None = None
        self._kind = MediaKind.OTHER
        self._format: FormatDescriptor | None = None
        self._session_open = False
        self.decode_time_ns = 0
        self.frame_count = 0

    def get_extractor(self) -> Extractor:
        return self._extractor

    def setup_decoder(self) -> None:
        self.de_init_codec()
        self._format = None
        self.decode_time_ns = 0
        self.frame_count = 0
        self._session_open = True

    def get_format(self) -> FormatDescriptor | None:
        return self._format

    def decode(
        self,
        input_buffer: bytes | bytearray | memoryview,
        frame_info: list[FrameSample],
        codec_name: str,
        async_mode: bool,
        output: BinaryIO,
    ) -> CodecStatus:
        """Decode the selected track's samples and write raw units to output.

        Args:
            input_buffer: Compressed samples, back to back.
            frame_info: Sample metadata in extraction order.
            codec_name: Decoder name; empty selects the track's own codec.
            async_mode: Use the feeder/worker/retrieval thread layout.
            output: Writable file for raw media.

        Returns:
            CodecStatus.OK on success, otherwise the failure reason.
        """
        try:
            return self._decode(input_buffer, frame_info, codec_name, async_mode, output)
        except Exception:
            logger.exception("Decoder failed unexpectedly")
            return CodecStatus.CODEC_ERROR

    def _decode(
        self,
        input_buffer: bytes | bytearray | memoryview,
        frame_info: list[FrameSample],
        codec_name: str,
        async_mode: bool,
        output: BinaryIO,
    ) -> CodecStatus:
        if not self._session_open:
            logger.error("decode() called without setup_decoder()")
            return CodecStatus.INVALID_STATE

        track = self._extractor.selected_track
        if track is None:
            logger.error("decode() called with no track selected")
            return CodecStatus.INVALID_STATE

        status = self._open_codec(track, codec_name)
        if status is not CodecStatus.OK:
            return status

        packets = self._packets(input_buffer, frame_info)
        start = time.perf_counter_ns()
        try:
            if async_mode:
                run_pipelined(
                    packets,
                    self._decode_packet,
                    self._flush,
                    output.write,
                    depth=self._queue_depth,
                    name="decoder",
                )
            else:
                for packet in packets:
                    for chunk in self._decode_packet(packet):
                        output.write(chunk)
                for chunk in self._flush():
                    output.write(chunk)
        except (FFmpegError, ValueError) as e:
            logger.error("Decoding failed: %s", e)
            return CodecStatus.CODEC_ERROR
        except OSError as e:
            logger.error("Cannot write decoded output: %s", e)
            return CodecStatus.IO_ERROR
        finally:
            self.decode_time_ns = time.perf_counter_ns() - start

        if self._format is None:
            logger.error("Decoder produced no output")
            return CodecStatus.CODEC_ERROR

        logger.debug(
            "Decoded %d frame(s) in %.2f ms",
            self.frame_count,
            self.decode_time_ns / 1e6,
        )
        return CodecStatus.OK

    def _open_codec(self, track: MediaTrack, codec_name: str) -> CodecStatus:
        name = codec_name or track.codec_name
        if not name:
            logger.error("Track %d has no codec to decode with", track.index)
            return CodecStatus.UNKNOWN_CODEC

        try:
            ctx = av.CodecContext.create(name, "r")
        except (FFmpegError, ValueError) as e:
            logger.error("Unknown decoder %r: %s", name, e)
            return CodecStatus.UNKNOWN_CODEC

        self._kind = track.kind
        fmt = track.format
        try:
            if track.extradata:
                ctx.extradata = track.extradata
            if self._kind is MediaKind.AUDIO:
                sample_rate = fmt.get_int(KEY_SAMPLE_RATE)
                layout = fmt.get_str(KEY_CHANNEL_LAYOUT) or layout_for_channels(
                    fmt.get_int(KEY_CHANNEL_COUNT)
                )
                if sample_rate:
                    ctx.sample_rate = sample_rate
                if layout is not None:
                    ctx.layout = layout
            elif self._kind is MediaKind.VIDEO:
                width = fmt.get_int(KEY_WIDTH)
                height = fmt.get_int(KEY_HEIGHT)
                if width and height:
                    ctx.width = width
                    ctx.height = height
            ctx.open()
        except (FFmpegError, ValueError, TypeError) as e:
            logger.error("Cannot open decoder %r: %s", name, e)
            return CodecStatus.CONFIGURE_FAILED

        logger.debug("Opened decoder %s for %s", ctx.name, track.mime)
        self._ctx = ctx
        return CodecStatus.OK

    @staticmethod
    def _packets(
        input_buffer: bytes | bytearray | memoryview,
        frame_info: list[FrameSample],
    ) -> Iterator[av.Packet]:
        view = memoryview(input_buffer)
        for sample in frame_info:
            if sample.is_end_of_stream:
                break
            packet = av.Packet(bytes(view[sample.offset : sample.offset + sample.size]))
            packet.pts = sample.presentation_time_us
            packet.dts = sample.presentation_time_us
            packet.time_base = _US_TIME_BASE
            yield packet

    def _decode_packet(self, packet: av.Packet) -> list[bytes]:
        assert self._ctx is not None
        chunks: list[bytes] = []
        for frame in self._ctx.decode(packet):
            chunks.extend(self._convert(frame))
        return chunks

    def _flush(self) -> list[bytes]:
        assert self._ctx is not None
        chunks: list[bytes] = []
        for frame in self._ctx.decode(None):
            chunks.extend(self._convert(frame))
        if self._resampler is not None:
            for frame in self._resampler.resample(None):
                chunks.append(frame.to_ndarray().tobytes())
        return chunks

    def _convert(self, frame: av.AudioFrame | av.VideoFrame) -> list[bytes]:
        self.frame_count += 1
        if isinstance(frame, av.AudioFrame):
            return self._convert_audio(frame)
        return [self._convert_video(frame)]

    def _convert_audio(self, frame: av.AudioFrame) -> list[bytes]:
        if self._resampler is None:
            channels = len(frame.layout.channels)
            self._resampler = av.AudioResampler(
                format=RAW_AUDIO_FORMAT,
                layout=frame.layout.name,
                rate=frame.sample_rate,
            )
            self._format = FormatDescriptor(
                {
                    KEY_MIME: MIME_AUDIO_RAW,
                    KEY_SAMPLE_RATE: frame.sample_rate,
                    KEY_CHANNEL_COUNT: channels,
                    KEY_CHANNEL_LAYOUT: frame.layout.name,
                    KEY_PCM_ENCODING: RAW_AUDIO_FORMAT,
                }
            )
        # Packed s16 comes back as a single (1, samples * channels) plane
        return [
            out.to_ndarray().tobytes() for out in self._resampler.resample(frame)
        ]

    def _convert_video(self, frame: av.VideoFrame) -> bytes:
        if self._format is None:
            self._format = FormatDescriptor(
                {
                    KEY_MIME: MIME_VIDEO_RAW,
                    KEY_WIDTH: frame.width,
                    KEY_HEIGHT: frame.height,
                    KEY_COLOR_FORMAT: RAW_VIDEO_FORMAT,
                }
            )
        if frame.format.name != RAW_VIDEO_FORMAT:
            frame = frame.reformat(format=RAW_VIDEO_FORMAT)
        return frame.to_ndarray().tobytes()

    def de_init_codec(self) -> None:
        self._ctx = None
        self._resampler = None

    def reset_decoder(self) -> None:
        self.de_init_codec()
        self._format = None
        self._kind = MediaKind.OTHER
        self.frame_count = 0
        self._session_open = False
