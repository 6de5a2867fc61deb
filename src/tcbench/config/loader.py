"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (TCB_*)
3. Config file (~/.tcbench/config.toml)
4. Default values

Environment variables:
- TCB_CONFIG_PATH: Path to config file (overrides default location)
- TCB_RES_DIR: Directory holding the reference media files
- TCB_STATS_FILE: Statistics CSV output path
- TCB_DECODE_OUTPUT: Decoded-output hand-off file
- TCB_ENCODED_OUTPUT: Optional encoded elementary stream output
- TCB_INPUT_BUFFER_SIZE: Input buffer capacity in bytes
- TCB_ASYNC_QUEUE_DEPTH: In-flight buffers per stage in async mode
- TCB_LOG_LEVEL / TCB_LOG_FILE / TCB_LOG_FORMAT: Logging overrides
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from tcbench.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from tcbench.config.env import EnvReader
from tcbench.config.models import BenchConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".tcbench"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


def get_default_config_path(reader: EnvReader | None = None) -> Path:
    """Get the config file path: TCB_CONFIG_PATH, else ~/.tcbench/config.toml."""
    return (reader or EnvReader()).get_path("TCB_CONFIG_PATH") or DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Args:
        path: Path to config file. If None, uses the default location.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.

    Raises:
        tomllib.TOMLDecodeError: If the file exists but is not valid TOML.
    """
    if path is None:
        path = get_default_config_path()
    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}
    with open(path, "rb") as f:
        data = tomllib.load(f)
    logger.debug("Loaded config from %s", path)
    return data


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    resource_dir: Path | None = None,
    stats_file: Path | None = None,
    decode_output: Path | None = None,
    encoded_output: Path | None = None,
    input_buffer_capacity: int | None = None,
    log_level: str | None = None,
    log_file: Path | None = None,
    log_format: str | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
) -> BenchConfig:
    """Get benchmark configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides TCB_CONFIG_PATH).
        resource_dir: CLI override for the resource directory.
        stats_file: CLI override for the statistics file.
        decode_output: CLI override for the decoded-output file.
        encoded_output: CLI override for the encoded output file.
        input_buffer_capacity: CLI override for the input buffer capacity.
        log_level: CLI override for the log level.
        log_file: CLI override for the log file.
        log_format: CLI override for the log format.
        env_reader: Optional EnvReader for testing (uses os.environ if None).

    Returns:
        BenchConfig with merged configuration.

    Raises:
        tomllib.TOMLDecodeError: If the config file cannot be parsed.
        ValueError: If a logging value is invalid.
    """
    reader = env_reader or EnvReader()

    file_config = load_config_file(config_path or get_default_config_path(reader))

    cli_source = ConfigSource(
        resource_dir=resource_dir,
        stats_file=stats_file,
        decode_output=decode_output,
        encoded_output=encoded_output,
        input_buffer_capacity=input_buffer_capacity,
        logging_level=log_level,
        logging_file=log_file,
        logging_format=log_format,
    )

    # Build with precedence: file < env < cli
    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    builder.apply(cli_source, source_name="cli")
    config = builder.build()
    for key in ("resource_dir", "stats_file", "decode_output"):
        logger.debug(
            "Using %s=%s (from %s)", key, getattr(config, key), builder.source_of(key)
        )
    return config


def validate_config(config: BenchConfig) -> list[str]:
    """Validate harness-level configuration.

    Any error returned here is fatal to the run: no case may execute.

    Args:
        config: The configuration to validate.

    Returns:
        List of error strings. Empty list means configuration is valid.
    """
    errors: list[str] = []

    if config.resource_dir is None:
        errors.append("Resource directory is not set (use --res-dir or TCB_RES_DIR)")
    elif not config.resource_dir.is_dir():
        errors.append(f"Resource directory does not exist: {config.resource_dir}")

    if config.input_buffer_capacity <= 0:
        errors.append(
            f"Input buffer capacity must be positive, got {config.input_buffer_capacity}"
        )
    if config.async_queue_depth <= 0:
        errors.append(
            f"Async queue depth must be positive, got {config.async_queue_depth}"
        )

    for label, path in (
        ("Statistics file", config.stats_file),
        ("Decode output", config.decode_output),
        ("Encoded output", config.encoded_output),
    ):
        if path is None:
            continue
        parent = path.parent
        if not parent.is_dir():
            errors.append(f"{label} directory does not exist: {parent}")

    return errors
