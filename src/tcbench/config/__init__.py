"""Configuration management for the transcode benchmark.

Configuration is layered with explicit precedence:
1. CLI flags (highest priority)
2. Environment variables (TCB_*)
3. Config file (~/.tcbench/config.toml)
4. Default values (lowest priority)
"""

from tcbench.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from tcbench.config.env import EnvReader
from tcbench.config.loader import (
    get_config,
    get_default_config_path,
    load_config_file,
    validate_config,
)
from tcbench.config.models import BenchConfig, LoggingConfig

__all__ = [
    # Models
    "BenchConfig",
    "LoggingConfig",
    # Loader
    "get_config",
    "get_default_config_path",
    "load_config_file",
    "validate_config",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
]
