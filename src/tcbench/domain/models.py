"""Domain models for the transcode benchmark.

These models describe demuxed tracks, compressed samples, derived encoder
configuration and the statistics rows written per benchmark run. They are
independent of the media library used to implement the collaborators.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, fields
from fractions import Fraction
from typing import Any

from .enums import MediaKind, SampleFlags

# Well-known FormatDescriptor keys
KEY_MIME = "mime"
KEY_WIDTH = "width"
KEY_HEIGHT = "height"
KEY_FRAME_RATE = "frame-rate"
KEY_BIT_RATE = "bitrate"
KEY_SAMPLE_RATE = "sample-rate"
KEY_CHANNEL_COUNT = "channel-count"
KEY_COLOR_FORMAT = "color-format"
KEY_PROFILE = "profile"
KEY_LEVEL = "level"
KEY_DURATION = "durationUs"
KEY_PCM_ENCODING = "pcm-encoding"
KEY_CHANNEL_LAYOUT = "channel-layout"

FormatValue = int | str


class FormatDescriptor(Mapping[str, FormatValue]):
    """Immutable key/value description of a track's encoding parameters.

    Only the keys relevant to the media kind are populated. Typed accessors
    return None when a key is absent or holds a value of the wrong type.
    """

    __slots__ = ("_values",)

    def __init__(
        self, values: Mapping[str, FormatValue | None] | None = None, **kwargs: Any
    ) -> None:
        merged = dict(values or {})
        merged.update(kwargs)
        # None means "not reported"; keep it out so presence checks stay honest
        self._values: dict[str, FormatValue] = {
            k: v for k, v in merged.items() if v is not None
        }

    def __getitem__(self, key: str) -> FormatValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"FormatDescriptor({self._values!r})"

    def get_int(self, key: str) -> int | None:
        """Return an integer value, or None if absent or not an integer."""
        value = self._values.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def get_str(self, key: str) -> str | None:
        """Return a string value, or None if absent or not a string."""
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    @property
    def mime(self) -> str | None:
        return self.get_str(KEY_MIME)

    def to_dict(self) -> dict[str, FormatValue]:
        return dict(self._values)


@dataclass(frozen=True)
class MediaTrack:
    """One demuxed elementary stream.

    Created by the extractor when a container is opened; read-only afterwards.
    """

    index: int
    mime: str
    format: FormatDescriptor
    codec_name: str | None = None
    """Library codec name used to rebuild a decode session (e.g. "h264")."""
    extradata: bytes | None = None
    """Out-of-band codec configuration (avcC, esds, OpusHead...)."""
    time_base: Fraction | None = None

    @property
    def kind(self) -> MediaKind:
        return MediaKind.from_mime(self.mime)


@dataclass(frozen=True)
class FrameSample:
    """One compressed access unit, in extraction order."""

    size: int
    presentation_time_us: int
    flags: SampleFlags = SampleFlags.NONE
    offset: int = 0
    """Offset of the sample's bytes in the aggregated input buffer."""

    @property
    def is_end_of_stream(self) -> bool:
        return self.size == 0 or bool(self.flags & SampleFlags.END_OF_STREAM)


@dataclass(frozen=True)
class EncoderParameters:
    """Encoder configuration derived for one track.

    Video fields are populated for video tracks and audio fields for audio
    tracks; the rest stay None.
    """

    bitrate: int
    frame_rate: int | None = None
    width: int | None = None
    height: int | None = None
    color_format: str | None = None
    profile: str | int | None = None
    level: int | None = None
    sample_rate: int | None = None
    channel_count: int | None = None
    channel_layout: str | None = None
    """FFmpeg layout name (e.g. "5.1(side)"); derived from the count when None."""


@dataclass(frozen=True)
class StatisticsRecord:
    """One statistics row describing an encode run.

    Column order of the statistics file follows the field order.
    """

    timestamp: str
    input_file: str
    operation: str
    codec_name: str
    codec_type: str
    mode: str
    track_index: int
    status: str
    setup_time_ns: int
    destroy_time_ns: int
    decode_time_ns: int | None
    encode_time_ns: int
    min_frame_time_ns: int | None
    max_frame_time_ns: int | None
    avg_frame_time_ns: int | None
    time_per_sec_content_ns: int | None
    bytes_per_sec: int | None
    frames_per_sec: float | None
    frame_count: int
    total_size_bytes: int
    clip_duration_us: int

    @classmethod
    def columns(cls) -> list[str]:
        """Return the column names in file order."""
        return [f.name for f in fields(cls)]

    def as_row(self) -> list[Any]:
        """Return the field values in column order; None becomes ''."""
        return [
            "" if getattr(self, name) is None else getattr(self, name)
            for name in self.columns()
        ]
