"""Domain enums for the transcode benchmark."""

from enum import Enum, IntFlag


class MediaKind(Enum):
    """Kind of elementary stream, derived from its MIME type."""

    AUDIO = "audio"
    VIDEO = "video"
    OTHER = "other"

    @classmethod
    def from_mime(cls, mime: str | None) -> "MediaKind":
        """Classify a MIME string such as ``video/avc`` or ``audio/opus``."""
        if mime:
            prefix = mime.split("/", 1)[0].casefold()
            if prefix == "audio":
                return cls.AUDIO
            if prefix == "video":
                return cls.VIDEO
        return cls.OTHER


class SampleFlags(IntFlag):
    """Per-sample flags, numerically compatible with MediaCodec buffer flags."""

    NONE = 0
    KEY_FRAME = 1
    CODEC_CONFIG = 2
    END_OF_STREAM = 4
