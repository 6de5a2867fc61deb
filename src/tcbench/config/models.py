"""Configuration data models.

This module defines dataclasses for benchmark configuration options.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_STATS_FILE = Path("Encoder.csv")
DEFAULT_DECODE_OUTPUT = Path(tempfile.gettempdir()) / "decode.out"
DEFAULT_INPUT_BUFFER_CAPACITY = 16 * 1024 * 1024
DEFAULT_ASYNC_QUEUE_DEPTH = 8

VALID_LOG_LEVELS = frozenset({"debug", "info", "warning", "error"})
VALID_LOG_FORMATS = frozenset({"text", "json"})


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.level.lower() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"level must be one of {sorted(VALID_LOG_LEVELS)}, got {self.level}"
            )
        if self.format.lower() not in VALID_LOG_FORMATS:
            raise ValueError(
                f"format must be one of {sorted(VALID_LOG_FORMATS)}, got {self.format}"
            )


@dataclass
class BenchConfig:
    """Process-wide benchmark configuration.

    Passed explicitly into the harness; there is no module-level config state.
    """

    resource_dir: Path | None = None
    """Directory the case input file names are resolved against."""

    stats_file: Path = DEFAULT_STATS_FILE
    """CSV statistics output, written once per run."""

    decode_output: Path = DEFAULT_DECODE_OUTPUT
    """Fixed hand-off file between decoder and encoder."""

    encoded_output: Path | None = None
    """Optional file receiving the encoded elementary stream."""

    input_buffer_capacity: int = DEFAULT_INPUT_BUFFER_CAPACITY
    """Capacity of the per-track compressed input buffer, in bytes."""

    async_queue_depth: int = DEFAULT_ASYNC_QUEUE_DEPTH
    """Number of in-flight buffers between stages in async mode."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def resolve_input(self, name: str) -> Path:
        """Resolve a case input file name against the resource directory."""
        path = Path(name)
        if path.is_absolute() or self.resource_dir is None:
            return path
        return self.resource_dir / path
