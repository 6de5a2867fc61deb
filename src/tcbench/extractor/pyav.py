"""PyAV-based implementation of the Extractor protocol."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from fractions import Fraction
from typing import BinaryIO

import av
from av.error import FFmpegError

from tcbench.core.codecs import mime_for_codec
from tcbench.domain import (
    KEY_BIT_RATE,
    KEY_CHANNEL_COUNT,
    KEY_CHANNEL_LAYOUT,
    KEY_DURATION,
    KEY_FRAME_RATE,
    KEY_HEIGHT,
    KEY_LEVEL,
    KEY_MIME,
    KEY_PROFILE,
    KEY_SAMPLE_RATE,
    KEY_WIDTH,
    FormatDescriptor,
    FrameSample,
    MediaTrack,
    SampleFlags,
)

logger = logging.getLogger(__name__)

_MEDIA_STREAM_TYPES = frozenset({"audio", "video"})
_MICROSECONDS = 1_000_000


def _to_us(value: int | None, time_base: Fraction | None) -> int | None:
    if value is None or time_base is None:
        return None
    return int(value * time_base * _MICROSECONDS)


def _positive(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


class PyAVExtractor:
    """Container demuxer backed by PyAV (FFmpeg libavformat).

    Only audio and video streams are exposed as tracks; track indexes are
    positions in that filtered list. Each track is demuxed from the start of
    the file, so tracks can be processed one after another.
    """

    def __init__(self) -> None:
        self._file: BinaryIO | None = None
        self._container: av.container.InputContainer | None = None
        self._tracks: list[MediaTrack] = []
        self._stream_indexes: list[int] = []
        self._selected: MediaTrack | None = None
        self._packets: Iterator[av.Packet] | None = None
        self._demux_started = False
        self._frame_buf = b""
        self._last_pts_us = 0

    @property
    def tracks(self) -> list[MediaTrack]:
        return list(self._tracks)

    @property
    def selected_track(self) -> MediaTrack | None:
        return self._selected

    def init_extractor(self, file: BinaryIO, file_size: int) -> int:
        if self._container is not None:
            raise RuntimeError("init_extractor() called twice on the same session")
        if file_size <= 0:
            logger.warning("Refusing to open empty input (size=%d)", file_size)
            return 0

        self._file = file
        try:
            self._container = av.open(file, mode="r")
        except (FFmpegError, OSError, ValueError) as e:
            logger.warning("Cannot parse container: %s", e)
            self._file = None
            return 0

        self._tracks = []
        self._stream_indexes = []
        for stream in self._container.streams:
            if stream.type not in _MEDIA_STREAM_TYPES:
                logger.debug(
                    "Skipping %s stream %d", stream.type, stream.index
                )
                continue
            self._stream_indexes.append(stream.index)
            self._tracks.append(self._describe_stream(len(self._tracks), stream))

        logger.debug(
            "Opened container %s: %d media track(s), %d bytes",
            self._container.format.name,
            len(self._tracks),
            file_size,
        )
        return len(self._tracks)

    def _describe_stream(self, index: int, stream: av.stream.Stream) -> MediaTrack:
        ctx = stream.codec_context
        mime = mime_for_codec(ctx.name, stream.type)

        duration_us = _to_us(stream.duration, stream.time_base)
        if duration_us is None and self._container is not None:
            # Container duration is already in AV_TIME_BASE (microseconds)
            duration_us = self._container.duration

        values: dict[str, int | str | None] = {
            KEY_MIME: mime,
            KEY_DURATION: duration_us,
            KEY_BIT_RATE: _positive(getattr(ctx, "bit_rate", None)),
        }
        if stream.type == "video":
            rate = stream.average_rate or stream.guessed_rate
            values[KEY_WIDTH] = _positive(ctx.width)
            values[KEY_HEIGHT] = _positive(ctx.height)
            values[KEY_FRAME_RATE] = round(rate) if rate else None
            values[KEY_PROFILE] = ctx.profile or None
            values[KEY_LEVEL] = _positive(getattr(ctx, "level", None))
        else:
            layout = getattr(ctx, "layout", None)
            channels = len(layout.channels) if layout is not None else None
            values[KEY_SAMPLE_RATE] = _positive(ctx.sample_rate)
            values[KEY_CHANNEL_COUNT] = _positive(channels)
            values[KEY_CHANNEL_LAYOUT] = layout.name if layout is not None else None

        return MediaTrack(
            index=index,
            mime=mime,
            format=FormatDescriptor(values),
            codec_name=ctx.name,
            extradata=bytes(ctx.extradata) if ctx.extradata else None,
            time_base=stream.time_base,
        )

    def setup_track_format(self, track_index: int) -> int:
        if self._container is None:
            logger.error("setup_track_format() before init_extractor()")
            return -1
        if not 0 <= track_index < len(self._tracks):
            logger.error(
                "Invalid track index %d (have %d)", track_index, len(self._tracks)
            )
            return -1

        track = self._tracks[track_index]
        if not track.codec_name:
            logger.error("Track %d has no resolvable codec", track_index)
            return -1

        if self._demux_started and not self._rewind():
            return -1

        stream = self._container.streams[self._stream_indexes[track_index]]
        self._selected = track
        self._packets = iter(self._container.demux(stream))
        self._demux_started = True
        self._frame_buf = b""
        self._last_pts_us = 0
        return 0

    def _rewind(self) -> bool:
        """Reopen the container so the next track is demuxed from the start."""
        assert self._container is not None and self._file is not None
        self._container.close()
        try:
            self._file.seek(0)
            self._container = av.open(self._file, mode="r")
        except (FFmpegError, OSError, ValueError) as e:
            logger.error("Cannot reopen container for next track: %s", e)
            self._container = None
            return False
        return True

    def get_frame_sample(self) -> FrameSample | None:
        if self._packets is None:
            return None

        for packet in self._packets:
            # The demuxer ends every stream with an empty flush packet
            if packet.size == 0:
                break
            pts = packet.pts if packet.pts is not None else packet.dts
            pts_us = _to_us(pts, packet.time_base)
            if pts_us is None:
                pts_us = self._last_pts_us
            self._last_pts_us = pts_us

            self._frame_buf = bytes(packet)
            flags = SampleFlags.KEY_FRAME if packet.is_keyframe else SampleFlags.NONE
            return FrameSample(
                size=len(self._frame_buf),
                presentation_time_us=pts_us,
                flags=flags,
            )

        self._packets = None
        self._frame_buf = b""
        return FrameSample(
            size=0,
            presentation_time_us=self._last_pts_us,
            flags=SampleFlags.END_OF_STREAM,
        )

    def get_frame_buf(self) -> bytes:
        return self._frame_buf

    def get_format(self) -> FormatDescriptor:
        if self._selected is None:
            return FormatDescriptor()
        return self._selected.format

    def get_clip_duration(self) -> int:
        if self._selected is None:
            return 0
        return self._selected.format.get_int(KEY_DURATION) or 0

    def de_init_extractor(self) -> None:
        if self._container is not None:
            self._container.close()
        self._container = None
        self._file = None
        self._tracks = []
        self._stream_indexes = []
        self._selected = None
        self._packets = None
        self._demux_started = False
        self._frame_buf = b""
