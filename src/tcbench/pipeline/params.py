"""Encoder parameter derivation.

Maps a source track's format and the decoder's output format to the
configuration the encoder is opened with.
"""

from __future__ import annotations

import logging

from tcbench.domain import (
    KEY_BIT_RATE,
    KEY_CHANNEL_COUNT,
    KEY_CHANNEL_LAYOUT,
    KEY_COLOR_FORMAT,
    KEY_FRAME_RATE,
    KEY_HEIGHT,
    KEY_LEVEL,
    KEY_PROFILE,
    KEY_SAMPLE_RATE,
    KEY_WIDTH,
    EncoderParameters,
    FormatDescriptor,
    MediaKind,
)
from tcbench.errors import MissingFormatFieldError

logger = logging.getLogger(__name__)

VIDEO_DEFAULT_BITRATE = 8_000_000
VIDEO_LEGACY_BITRATE = 600_000
AUDIO_BITRATE = 128_000
DEFAULT_FRAME_RATE = 25

# Low-resolution codecs whose sources get the smaller fallback bitrate
LEGACY_VIDEO_MIMES = frozenset({"video/3gpp", "video/mp4v-es"})


def _required_int(fmt: FormatDescriptor, key: str, mime: str) -> int:
    value = fmt.get_int(key)
    if value is None:
        raise MissingFormatFieldError(mime, key)
    return value


def _positive_int(fmt: FormatDescriptor, key: str) -> int | None:
    value = fmt.get_int(key)
    if value is None or value <= 0:
        return None
    return value


def derive_encoder_parameters(
    mime: str,
    source_format: FormatDescriptor,
    decoder_format: FormatDescriptor | None = None,
) -> EncoderParameters:
    """Derive encoder parameters for one track.

    Video tracks take dimensions from the source. When the source lacks a
    usable frame rate or bitrate, both fall back together: 25 fps and
    600 kbps for H.263/MPEG-4 Part 2, 8 Mbps otherwise. Audio tracks take
    sample rate and channel count from the source and always encode at
    128 kbps.

    Args:
        mime: MIME type of the source track.
        source_format: Format reported by the extractor.
        decoder_format: Raw format negotiated by the decoder, if any.

    Returns:
        EncoderParameters for the track.

    Raises:
        MissingFormatFieldError: If a mandatory field is absent, or the MIME
            is neither audio nor video.
    """
    kind = MediaKind.from_mime(mime)

    if kind is MediaKind.VIDEO:
        width = _required_int(source_format, KEY_WIDTH, mime)
        height = _required_int(source_format, KEY_HEIGHT, mime)

        frame_rate = _positive_int(source_format, KEY_FRAME_RATE)
        bitrate = _positive_int(source_format, KEY_BIT_RATE)
        if frame_rate is None or bitrate is None:
            frame_rate = DEFAULT_FRAME_RATE
            bitrate = (
                VIDEO_LEGACY_BITRATE
                if mime in LEGACY_VIDEO_MIMES
                else VIDEO_DEFAULT_BITRATE
            )
            logger.debug(
                "Source lacks frame rate or bitrate, using %d fps at %d bps",
                frame_rate,
                bitrate,
            )

        color_format = (
            decoder_format.get_str(KEY_COLOR_FORMAT) if decoder_format else None
        )
        profile = source_format.get(KEY_PROFILE)

        return EncoderParameters(
            bitrate=bitrate,
            frame_rate=frame_rate,
            width=width,
            height=height,
            color_format=color_format,
            profile=profile,
            level=source_format.get_int(KEY_LEVEL),
        )

    if kind is MediaKind.AUDIO:
        # The encoder reads PCM in the layout the decoder produced
        layout = (
            decoder_format.get_str(KEY_CHANNEL_LAYOUT) if decoder_format else None
        ) or source_format.get_str(KEY_CHANNEL_LAYOUT)
        return EncoderParameters(
            bitrate=AUDIO_BITRATE,
            sample_rate=_required_int(source_format, KEY_SAMPLE_RATE, mime),
            channel_count=_required_int(source_format, KEY_CHANNEL_COUNT, mime),
            channel_layout=layout,
        )

    raise MissingFormatFieldError(mime, "mime")
