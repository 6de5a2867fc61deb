"""Domain models and enums for the transcode benchmark.

Usage:
    from tcbench.domain import FormatDescriptor, MediaTrack, FrameSample
    from tcbench.domain import EncoderParameters, StatisticsRecord, MediaKind
"""

from .enums import MediaKind, SampleFlags
from .models import (
    KEY_BIT_RATE,
    KEY_CHANNEL_COUNT,
    KEY_CHANNEL_LAYOUT,
    KEY_COLOR_FORMAT,
    KEY_DURATION,
    KEY_FRAME_RATE,
    KEY_HEIGHT,
    KEY_LEVEL,
    KEY_MIME,
    KEY_PCM_ENCODING,
    KEY_PROFILE,
    KEY_SAMPLE_RATE,
    KEY_WIDTH,
    EncoderParameters,
    FormatDescriptor,
    FrameSample,
    MediaTrack,
    StatisticsRecord,
)

__all__ = [
    # Models
    "EncoderParameters",
    "FormatDescriptor",
    "FrameSample",
    "MediaTrack",
    "StatisticsRecord",
    # Enums
    "MediaKind",
    "SampleFlags",
    # Format keys
    "KEY_BIT_RATE",
    "KEY_CHANNEL_COUNT",
    "KEY_CHANNEL_LAYOUT",
    "KEY_COLOR_FORMAT",
    "KEY_DURATION",
    "KEY_FRAME_RATE",
    "KEY_HEIGHT",
    "KEY_LEVEL",
    "KEY_MIME",
    "KEY_PCM_ENCODING",
    "KEY_PROFILE",
    "KEY_SAMPLE_RATE",
    "KEY_WIDTH",
]
