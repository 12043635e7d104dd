"""Configuration system for ezbackup.

This module provides TOML-based configuration loading, validation,
and schema definitions for backup runs.
"""

from .loader import (
    ConfigError,
    find_config_file,
    generate_example_config,
    load_config,
    resolve_config,
)
from .schema import Config, DirectoryConfig

__all__ = [
    "Config",
    "DirectoryConfig",
    "load_config",
    "resolve_config",
    "find_config_file",
    "generate_example_config",
    "ConfigError",
]
