"""Exception hierarchy for the transcode benchmark.

Collaborators (extractor, decoder, encoder) report status codes; these
exceptions are raised by the harness and the pure helpers around it.
"""

from __future__ import annotations

from enum import Enum


class BenchmarkError(Exception):
    """Base exception for all benchmark errors."""


class ConfigError(BenchmarkError):
    """Raised when harness-level configuration is invalid.

    This is fatal to the whole run: no case executes.

    Attributes:
        errors: Individual validation messages.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


class CaseFileError(BenchmarkError):
    """Raised when a benchmark case file cannot be loaded or validated."""


class BufferCapacityExceededError(BenchmarkError):
    """Raised when a sample does not fit in the fixed-capacity input buffer.

    Attributes:
        capacity: Buffer capacity in bytes.
        used: Bytes already stored.
        requested: Size of the sample that did not fit.
    """

    def __init__(self, capacity: int, used: int, requested: int) -> None:
        self.capacity = capacity
        self.used = used
        self.requested = requested
        super().__init__(
            f"Input buffer too small: {used} + {requested} bytes "
            f"exceeds capacity of {capacity} bytes"
        )


class MissingFormatFieldError(BenchmarkError):
    """Raised when a mandatory track format field is absent.

    Attributes:
        mime: MIME type of the track.
        field: Name of the missing format key.
    """

    def __init__(self, mime: str | None, field: str) -> None:
        self.mime = mime
        self.field = field
        super().__init__(f"Track format for {mime or 'unknown mime'} lacks '{field}'")


class FailureKind(Enum):
    """Why a benchmark case failed."""

    FILE_OPEN = "file_open"
    EXTRACTOR_INIT = "extractor_init"
    TRACK_FORMAT = "track_format"
    BUFFER_OVERFLOW = "buffer_overflow"
    DECODE = "decode"
    MISSING_FORMAT_FIELD = "missing_format_field"
    ENCODE = "encode"
    UNEXPECTED = "unexpected"


class CaseFailure(BenchmarkError):
    """Fatal-to-case condition.

    Raised inside the harness to abort the current case; the harness turns
    it into a failed CaseResult and moves on to the next case.

    Attributes:
        kind: Failure category.
        message: Human-readable description.
    """

    def __init__(self, kind: FailureKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")
