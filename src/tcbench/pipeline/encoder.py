"""PyAV encode pipeline.

Reads raw media written by the decoder in frame-sized chunks, encodes it
with a named or default encoder, and keeps per-frame timing statistics.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from datetime import datetime, timezone
from fractions import Fraction
from pathlib import Path
from typing import BinaryIO

import av
import numpy as np
from av.error import FFmpegError

from tcbench.config.models import DEFAULT_ASYNC_QUEUE_DEPTH
from tcbench.core.codecs import default_encoder_for_mime, detect_encoder_type
from tcbench.domain import EncoderParameters, MediaKind, StatisticsRecord
from tcbench.pipeline.decoder import (
    RAW_AUDIO_FORMAT,
    RAW_VIDEO_FORMAT,
    layout_for_channels,
)
from tcbench.pipeline.interface import CodecStatus, RecordSink
from tcbench.pipeline.metrics import FrameTimeAggregator
from tcbench.pipeline.params import DEFAULT_FRAME_RATE
from tcbench.pipeline.worker import run_pipelined

logger = logging.getLogger(__name__)

# Fallback when an encoder accepts any number of samples per frame
DEFAULT_AUDIO_FRAME_SIZE = 1024

# Encoders exposing the stream level as a private "level" option
LEVEL_OPTION_ENCODERS = frozenset({"libx264"})

_BYTES_PER_SAMPLE = 2


class PyAVEncoder:
    """Encoder backed by PyAV (FFmpeg libavcodec).

    Args:
        output_path: File receiving the encoded elementary stream. When None
            the encoded bytes are only counted.
        queue_depth: In-flight frames per queue in async mode.
    """

    def __init__(
        self,
        *,
        output_path: Path | None = None,
        queue_depth: int = DEFAULT_ASYNC_QUEUE_DEPTH,
    ) -> None:
        self._output_path = output_path
        self._queue_depth = queue_depth
        self._ctx: av.CodecContext | None = None
        self._resampler: av.AudioResampler | None = None
        self._stats = FrameTimeAggregator()
        self._status: CodecStatus | None = None
        self._encoder_name = ""
        self._raw_layout = ""
        self._next_pts = 0
        self._session_open = False

    @property
    def encoder_name(self) -> str:
        """Name of the encoder used by the last encode() call."""
        return self._encoder_name

    @property
    def stats(self) -> FrameTimeAggregator:
        return self._stats

    def setup_encoder(self) -> None:
        self.de_init_codec()
        self._stats = FrameTimeAggregator()
        self._status = None
        self._encoder_name = ""
        self._next_pts = 0
        self._session_open = True

    def encode(
        self,
        codec_name: str,
        raw_stream: BinaryIO,
        input_size: int,
        async_mode: bool,
        params: EncoderParameters,
        mime: str,
    ) -> CodecStatus:
        """Encode input_size bytes of raw media from raw_stream.

        Args:
            codec_name: Encoder name; empty selects the default for mime.
            raw_stream: Decoder output, positioned at its start.
            input_size: Bytes to consume.
            async_mode: Use the feeder/worker/retrieval thread layout.
            params: Derived encoder configuration.
            mime: MIME type of the source track.

        Returns:
            CodecStatus.OK on success, otherwise the failure reason.
        """
        try:
            self._status = self._encode(
                codec_name, raw_stream, input_size, async_mode, params, mime
            )
        except Exception:
            logger.exception("Encoder failed unexpectedly")
            self._status = CodecStatus.CODEC_ERROR
        return self._status

    def _encode(
        self,
        codec_name: str,
        raw_stream: BinaryIO,
        input_size: int,
        async_mode: bool,
        params: EncoderParameters,
        mime: str,
    ) -> CodecStatus:
        if not self._session_open:
            logger.error("encode() called without setup_encoder()")
            return CodecStatus.INVALID_STATE

        name = codec_name or default_encoder_for_mime(mime)
        if not name:
            logger.error("No default encoder for %s", mime)
            return CodecStatus.NO_DEFAULT_ENCODER
        self._encoder_name = name

        kind = MediaKind.from_mime(mime)
        status = self._open_codec(name, kind, params)
        if status is not CodecStatus.OK:
            return status

        frames = self._frames(raw_stream, input_size, kind, params)
        try:
            with self._open_output() as output:
                consume = output.write if output is not None else _discard
                if async_mode:
                    run_pipelined(
                        frames,
                        self._encode_frame,
                        self._flush,
                        consume,
                        depth=self._queue_depth,
                        name="encoder",
                    )
                else:
                    for frame in frames:
                        for data in self._encode_frame(frame):
                            consume(data)
                    for data in self._flush():
                        consume(data)
        except (FFmpegError, ValueError) as e:
            logger.error("Encoding with %s failed: %s", name, e)
            return CodecStatus.CODEC_ERROR
        except (EOFError, OSError) as e:
            logger.error("Encoder I/O failed: %s", e)
            return CodecStatus.IO_ERROR

        logger.debug(
            "Encoded %d frame(s) with %s into %d bytes",
            self._stats.frame_count,
            name,
            self._stats.total_size_bytes,
        )
        return CodecStatus.OK

    def _open_output(self) -> contextlib.AbstractContextManager[BinaryIO | None]:
        if self._output_path is None:
            return contextlib.nullcontext()
        return self._output_path.open("wb")

    def _open_codec(
        self, name: str, kind: MediaKind, params: EncoderParameters
    ) -> CodecStatus:
        start = time.perf_counter_ns()
        try:
            ctx = av.CodecContext.create(name, "w")
        except (FFmpegError, ValueError) as e:
            logger.error("Unknown encoder %r: %s", name, e)
            return CodecStatus.UNKNOWN_CODEC

        if ctx.type != kind.value:
            logger.error(
                "Encoder %s produces %s but the track is %s",
                name,
                ctx.type,
                kind.value,
            )
            return CodecStatus.CONFIGURE_FAILED

        try:
            ctx.bit_rate = params.bitrate
            if kind is MediaKind.VIDEO:
                self._configure_video(ctx, name, params)
            else:
                self._configure_audio(ctx, params)
            ctx.open()
        except (FFmpegError, ValueError, TypeError) as e:
            logger.error("Cannot configure encoder %s: %s", name, e)
            return CodecStatus.CONFIGURE_FAILED

        if kind is MediaKind.AUDIO:
            self._resampler = av.AudioResampler(
                format=ctx.format.name,
                layout=ctx.layout.name,
                rate=ctx.sample_rate,
            )
        self._ctx = ctx
        self._stats.setup_time_ns = time.perf_counter_ns() - start
        logger.debug("Opened encoder %s at %d bps", name, params.bitrate)
        return CodecStatus.OK

    def _configure_video(
        self, ctx: av.CodecContext, name: str, params: EncoderParameters
    ) -> None:
        if not params.width or not params.height:
            raise ValueError("video encoder needs width and height")
        rate = params.frame_rate or DEFAULT_FRAME_RATE
        ctx.width = params.width
        ctx.height = params.height
        ctx.pix_fmt = params.color_format or RAW_VIDEO_FORMAT
        ctx.framerate = Fraction(rate, 1)
        ctx.time_base = Fraction(1, rate)

        if isinstance(params.profile, str):
            try:
                ctx.profile = params.profile
            except (AttributeError, ValueError, TypeError, FFmpegError) as e:
                logger.warning(
                    "Encoder %s does not accept profile %r: %s",
                    name,
                    params.profile,
                    e,
                )
        if params.level is not None and name in LEVEL_OPTION_ENCODERS:
            ctx.options = {"level": str(params.level)}

    def _configure_audio(self, ctx: av.CodecContext, params: EncoderParameters) -> None:
        if not params.sample_rate or not params.channel_count:
            raise ValueError("audio encoder needs sample rate and channel count")
        formats = ctx.codec.audio_formats
        ctx.sample_rate = params.sample_rate
        layout = params.channel_layout or layout_for_channels(params.channel_count)
        if layout is None:
            raise ValueError(f"no channel layout for {params.channel_count} channels")
        ctx.layout = layout
        self._raw_layout = layout
        ctx.format = formats[0].name if formats else RAW_AUDIO_FORMAT
        ctx.time_base = Fraction(1, params.sample_rate)

    def _frames(
        self,
        raw_stream: BinaryIO,
        input_size: int,
        kind: MediaKind,
        params: EncoderParameters,
    ) -> Iterator[av.AudioFrame | av.VideoFrame]:
        """Read raw_stream in frame-sized chunks and yield encoder frames."""
        assert self._ctx is not None
        if kind is MediaKind.VIDEO:
            assert params.width and params.height
            chunk_size = params.width * params.height * 3 // 2
        else:
            assert params.channel_count
            frame_size = self._ctx.frame_size or DEFAULT_AUDIO_FRAME_SIZE
            chunk_size = frame_size * params.channel_count * _BYTES_PER_SAMPLE

        remaining = input_size
        while remaining > 0:
            chunk = raw_stream.read(min(chunk_size, remaining))
            if not chunk:
                raise EOFError(f"Raw stream ended {remaining} bytes early")
            remaining -= len(chunk)
            if kind is MediaKind.VIDEO:
                if len(chunk) < chunk_size:
                    logger.debug("Dropping %d trailing bytes", len(chunk))
                    break
                yield self._video_frame(chunk, params.width, params.height)
            else:
                yield from self._audio_frames(chunk, params.channel_count)

        if self._resampler is not None:
            yield from self._resampler.resample(None)

    def _video_frame(self, chunk: bytes, width: int, height: int) -> av.VideoFrame:
        assert self._ctx is not None
        planes = np.frombuffer(chunk, dtype=np.uint8).reshape(height * 3 // 2, width)
        frame = av.VideoFrame.from_ndarray(planes, format=RAW_VIDEO_FORMAT)
        if self._ctx.pix_fmt != RAW_VIDEO_FORMAT:
            frame = frame.reformat(format=self._ctx.pix_fmt)
        frame.pts = self._next_pts
        frame.time_base = self._ctx.time_base
        self._next_pts += 1
        return frame

    def _audio_frames(self, chunk: bytes, channels: int) -> list[av.AudioFrame]:
        assert self._ctx is not None and self._resampler is not None
        samples = len(chunk) // (channels * _BYTES_PER_SAMPLE)
        if samples == 0:
            return []
        pcm = np.frombuffer(
            chunk[: samples * channels * _BYTES_PER_SAMPLE], dtype=np.int16
        ).reshape(1, -1)
        frame = av.AudioFrame.from_ndarray(
            pcm, format=RAW_AUDIO_FORMAT, layout=self._raw_layout
        )
        frame.sample_rate = self._ctx.sample_rate
        frame.pts = self._next_pts
        frame.time_base = Fraction(1, self._ctx.sample_rate)
        self._next_pts += samples
        return self._resampler.resample(frame)

    def _encode_frame(self, frame: av.AudioFrame | av.VideoFrame) -> list[bytes]:
        assert self._ctx is not None
        start = time.perf_counter_ns()
        packets = self._ctx.encode(frame)
        elapsed = time.perf_counter_ns() - start
        data = [bytes(packet) for packet in packets]
        self._stats.add_frame(elapsed, sum(len(d) for d in data))
        return data

    def _flush(self) -> list[bytes]:
        assert self._ctx is not None
        start = time.perf_counter_ns()
        packets = self._ctx.encode(None)
        elapsed = time.perf_counter_ns() - start
        data = [bytes(packet) for packet in packets]
        self._stats.add_flush(elapsed, sum(len(d) for d in data))
        return data

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
        """Append one statistics record describing the last encode.

        Args:
            input_label: Input file name as given by the case.
            clip_duration_us: Track duration in microseconds.
            codec_name: Requested encoder; empty records the default used.
            mode_label: "sync" or "async".
            sink: Destination for the record.
            decode_time_ns: Decode wall-clock time, when measured.
            track_index: Index of the encoded track.
        """
        summary = self._stats.summarize(clip_duration_us)
        status = self._status or CodecStatus.INVALID_STATE
        name = codec_name or self._encoder_name
        record = StatisticsRecord(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            input_file=input_label,
            operation="encode",
            codec_name=name,
            codec_type=detect_encoder_type(name),
            mode=mode_label,
            track_index=track_index,
            status=status.label,
            setup_time_ns=self._stats.setup_time_ns,
            destroy_time_ns=self._stats.destroy_time_ns,
            decode_time_ns=decode_time_ns,
            encode_time_ns=summary.total_time_ns,
            min_frame_time_ns=summary.min_frame_time_ns,
            max_frame_time_ns=summary.max_frame_time_ns,
            avg_frame_time_ns=summary.avg_frame_time_ns,
            time_per_sec_content_ns=summary.time_per_sec_content_ns,
            bytes_per_sec=summary.bytes_per_sec,
            frames_per_sec=summary.frames_per_sec,
            frame_count=summary.frame_count,
            total_size_bytes=summary.total_size_bytes,
            clip_duration_us=clip_duration_us,
        )
        sink.append(record)

    def de_init_codec(self) -> None:
        if self._ctx is not None:
            start = time.perf_counter_ns()
            # Dropping the last reference frees the libavcodec context
            self._ctx = None
            self._stats.destroy_time_ns = time.perf_counter_ns() - start
        self._resampler = None

    def reset_encoder(self) -> None:
        self.de_init_codec()
        self._stats.reset()
        self._status = None
        self._next_pts = 0
        self._session_open = False


def _discard(data: bytes) -> None:
    pass
