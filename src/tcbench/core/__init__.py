"""Core utilities package.

Pure helpers with no media-library dependency: codec tables and
console formatting.
"""

from tcbench.core.codecs import (
    CODEC_TO_MIME,
    DEFAULT_ENCODERS,
    MIME_AUDIO_RAW,
    MIME_VIDEO_RAW,
    default_encoder_for_mime,
    detect_encoder_type,
    mime_for_codec,
)
from tcbench.core.formatting import format_duration_ns, format_file_size

__all__ = [
    "CODEC_TO_MIME",
    "DEFAULT_ENCODERS",
    "MIME_AUDIO_RAW",
    "MIME_VIDEO_RAW",
    "default_encoder_for_mime",
    "detect_encoder_type",
    "format_duration_ns",
    "format_file_size",
    "mime_for_codec",
]
