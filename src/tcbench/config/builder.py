"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building BenchConfig by composing
configuration sources (file, environment, CLI) with explicit precedence.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from tcbench.config.env import EnvReader
from tcbench.config.models import BenchConfig, LoggingConfig


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    resource_dir: Path | None = None
    stats_file: Path | None = None
    decode_output: Path | None = None
    encoded_output: Path | None = None
    input_buffer_capacity: int | None = None
    async_queue_depth: int | None = None

    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


_LOGGING_PREFIX = "logging_"


class ConfigBuilder:
    """Merge ConfigSources into a BenchConfig.

    Sources are applied lowest precedence first; a non-None value in a
    later source replaces whatever an earlier one set. The name of the
    source that set each key is kept for diagnostics.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config), "file")
        builder.apply(source_from_env(reader), "env")
        builder.apply(cli_source, "cli")
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._origin: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Layer a source over the values collected so far."""
        for key, value in asdict(source).items():
            if value is None:
                continue
            self._values[key] = value
            self._origin[key] = source_name

    def source_of(self, key: str) -> str:
        """Return which source set a key ("default" if none did)."""
        return self._origin.get(key, "default")

    def build(self) -> BenchConfig:
        """Build the final BenchConfig, filling gaps with defaults.

        Raises:
            ValueError: If the logging values are invalid.
        """
        logging_values = {
            key[len(_LOGGING_PREFIX) :]: value
            for key, value in self._values.items()
            if key.startswith(_LOGGING_PREFIX)
        }
        bench_values = {
            key: value
            for key, value in self._values.items()
            if not key.startswith(_LOGGING_PREFIX)
        }
        return BenchConfig(logging=LoggingConfig(**logging_values), **bench_values)


def _path_or_none(value: Any) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed TOML config file.

    Args:
        file_config: Parsed configuration dictionary.

    Returns:
        ConfigSource with values from the config file.
    """
    bench = file_config.get("benchmark", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        resource_dir=_path_or_none(bench.get("resource_dir")),
        stats_file=_path_or_none(bench.get("stats_file")),
        decode_output=_path_or_none(bench.get("decode_output")),
        encoded_output=_path_or_none(bench.get("encoded_output")),
        input_buffer_capacity=bench.get("input_buffer_capacity"),
        async_queue_depth=bench.get("async_queue_depth"),
        logging_level=logging_conf.get("level"),
        logging_file=_path_or_none(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    Args:
        reader: EnvReader instance for reading environment variables.

    Returns:
        ConfigSource with values from environment variables.
    """
    return ConfigSource(
        resource_dir=reader.get_path("TCB_RES_DIR"),
        stats_file=reader.get_path("TCB_STATS_FILE"),
        decode_output=reader.get_path("TCB_DECODE_OUTPUT"),
        encoded_output=reader.get_path("TCB_ENCODED_OUTPUT"),
        input_buffer_capacity=reader.get_int("TCB_INPUT_BUFFER_SIZE"),
        async_queue_depth=reader.get_int("TCB_ASYNC_QUEUE_DEPTH"),
        logging_level=reader.get_str("TCB_LOG_LEVEL"),
        logging_file=reader.get_path("TCB_LOG_FILE"),
        logging_format=reader.get_str("TCB_LOG_FORMAT"),
    )
