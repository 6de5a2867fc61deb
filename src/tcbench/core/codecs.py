"""Centralized codec registry.

Single source of truth for codec knowledge in the benchmark:
- Library codec name <-> MIME type mapping
- Default encoder per MIME type (used when a case names no codec)
- Hardware/software encoder classification
"""

from __future__ import annotations

# =============================================================================
# MIME Types
# =============================================================================
# MIME strings follow the naming used by the reference benchmark suites.

MIME_AUDIO_RAW = "audio/raw"
MIME_VIDEO_RAW = "video/raw"

CODEC_TO_MIME: dict[str, str] = {
    # Audio
    "aac": "audio/mp4a-latm",
    "aac_latm": "audio/mp4a-latm",
    "amr_nb": "audio/3gpp",
    "amrnb": "audio/3gpp",
    "amr_wb": "audio/amr-wb",
    "amrwb": "audio/amr-wb",
    "flac": "audio/flac",
    "opus": "audio/opus",
    "vorbis": "audio/vorbis",
    "mp3": "audio/mpeg",
    "mp3float": "audio/mpeg",
    "pcm_s16le": MIME_AUDIO_RAW,
    # Video
    "h264": "video/avc",
    "hevc": "video/hevc",
    "vp8": "video/x-vnd.on2.vp8",
    "vp9": "video/x-vnd.on2.vp9",
    "mpeg4": "video/mp4v-es",
    "h263": "video/3gpp",
    "av1": "video/av01",
    "mpeg2video": "video/mpeg2",
    "rawvideo": MIME_VIDEO_RAW,
}

# Default encoder for each MIME type, by library encoder name
DEFAULT_ENCODERS: dict[str, str] = {
    "audio/mp4a-latm": "aac",
    "audio/3gpp": "libopencore_amrnb",
    "audio/amr-wb": "libvo_amrwbenc",
    "audio/flac": "flac",
    "audio/opus": "libopus",
    "audio/vorbis": "libvorbis",
    "audio/mpeg": "libmp3lame",
    "video/avc": "libx264",
    "video/hevc": "libx265",
    "video/x-vnd.on2.vp8": "libvpx",
    "video/x-vnd.on2.vp9": "libvpx-vp9",
    "video/mp4v-es": "mpeg4",
    "video/3gpp": "h263",
    "video/av01": "libaom-av1",
    "video/mpeg2": "mpeg2video",
}


def mime_for_codec(codec_name: str | None, media_type: str) -> str:
    """Map a library codec name to a MIME type.

    Unknown codecs map to ``<media_type>/<codec_name>`` so the media kind
    can still be derived from the prefix.

    Args:
        codec_name: Library codec name (e.g., "h264", "opus").
        media_type: Stream type reported by the demuxer ("audio", "video"...).

    Returns:
        MIME type string.
    """
    name = (codec_name or "unknown").casefold()
    return CODEC_TO_MIME.get(name, f"{media_type}/{name}")


def default_encoder_for_mime(mime: str | None) -> str | None:
    """Return the default encoder name for a MIME type, or None."""
    if not mime:
        return None
    return DEFAULT_ENCODERS.get(mime.casefold())


# =============================================================================
# Encoder Classification
# =============================================================================

HARDWARE_ENCODER_PATTERNS = (
    "_nvenc",  # NVIDIA NVENC
    "_vaapi",  # VA-API (Intel/AMD on Linux)
    "_qsv",  # Intel Quick Sync
    "_amf",  # AMD AMF
    "_videotoolbox",  # Apple VideoToolbox
    "_mediacodec",  # Android MediaCodec
    "_v4l2m2m",  # V4L2 memory-to-memory
)

SOFTWARE_ENCODERS = frozenset(
    {
        "libx264",
        "libx265",
        "libvpx",
        "libvpx-vp9",
        "libaom-av1",
        "libsvtav1",
        "librav1e",
        "mpeg4",
        "h263",
        "mpeg2video",
        "aac",
        "flac",
        "libopus",
        "libvorbis",
        "libmp3lame",
        "libopencore_amrnb",
        "libvo_amrwbenc",
    }
)


def detect_encoder_type(encoder_name: str | None) -> str:
    """Classify an encoder as hardware or software by its name.

    Args:
        encoder_name: Library encoder name.

    Returns:
        'hardware' if a hardware pattern matches, 'software' for known
        library encoders, 'unknown' otherwise.
    """
    if not encoder_name:
        return "unknown"
    name = encoder_name.casefold()
    if any(pattern in name for pattern in HARDWARE_ENCODER_PATTERNS):
        return "hardware"
    if name in SOFTWARE_ENCODERS:
        return "software"
    return "unknown"
