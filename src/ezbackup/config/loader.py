"""TOML configuration loading and validation.

Handles config file discovery, parsing, defaulting and validation with
helpful error messages.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from .schema import (
    DEFAULT_BACKUP_HOST,
    DEFAULT_COPIES,
    DEFAULT_DEST_DIR,
    DEFAULT_EXCLUDE_FILE,
    DEFAULT_MACHINE_ID_FILE,
    Config,
    DirectoryConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "ezbackup" / "ezbackup.toml",
    Path("/etc/ezbackup/ezbackup.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _get_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def _get_str(data: dict[str, Any], key: str, default: str | None) -> str | None:
    value = data.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string, got {value!r}")
    return value


def _get_str_list(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key, [])
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings, got {value!r}")
    return tuple(value)


def _parse_directory(data: Any) -> DirectoryConfig:
    """Parse one [[dirs]] entry (or a bare path string)."""
    if isinstance(data, str):
        return DirectoryConfig(path=data)
    if not isinstance(data, dict):
        raise ConfigError(f"Directory entry must be a table or string, got {data!r}")
    if "path" not in data:
        raise ConfigError("Directory missing required 'path' field")

    return DirectoryConfig(
        path=_get_str(data, "path", None),
        chunked=_get_bool(data, "chunked", False),
        excludes=_get_str_list(data, "excludes"),
    )


def resolve_config(data: dict[str, Any]) -> Config:
    """Build a fully defaulted Config from raw parsed values.

    Raises:
        ConfigError: If a value has the wrong type or is out of range
    """
    copies = data.get("copies", DEFAULT_COPIES)
    if isinstance(copies, bool) or not isinstance(copies, int) or copies < 1:
        raise ConfigError(f"'copies' must be a positive integer, got {copies!r}")

    dirs = data.get("dirs", [])
    if not isinstance(dirs, list):
        raise ConfigError("'dirs' must be an array of tables")

    return Config(
        copies=copies,
        backup_host=_get_str(data, "backup_host", DEFAULT_BACKUP_HOST),
        dest_dir=_get_str(data, "dest_dir", DEFAULT_DEST_DIR).rstrip("/") or "/",
        backup_user=_get_str(data, "backup_user", None) or None,
        dirs=tuple(_parse_directory(d) for d in dirs),
        ssh_opts=_get_str_list(data, "ssh_opts"),
        rsync_opts=_get_str_list(data, "rsync_opts"),
        append_machine_id=_get_bool(data, "append_machine_id", False),
        use_sudo=_get_bool(data, "use_sudo", False),
        ignore_vanished_files=_get_bool(data, "ignore_vanished_files", False),
        exclude_file=_get_str(data, "exclude_file", DEFAULT_EXCLUDE_FILE),
        machine_id_file=_get_str(data, "machine_id_file", DEFAULT_MACHINE_ID_FILE),
        local=_get_bool(data, "local", False),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    if not config.dirs:
        warnings.append("No directories configured")

    for directory in config.dirs:
        if not os.path.isabs(directory.path):
            warnings.append(
                f"Directory '{directory.path}' is relative; backups will refuse to run"
            )

    # Check for duplicate directories
    paths = [d.path for d in config.dirs]
    if len(paths) != len(set(paths)):
        warnings.append("Duplicate directory paths detected")

    if config.local and config.backup_host != DEFAULT_BACKUP_HOST:
        warnings.append(
            f"Local mode enabled, backup_host '{config.backup_host}' will be ignored"
        )

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    config = resolve_config(data)

    # Validate and collect warnings
    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# ezbackup configuration

# Number of snapshots to keep on the backup host
copies = 30

# Where the backups go. Snapshots are stored below
# <dest_dir>/<short hostname>/YYYY-MM-DD_HH:MM:SS
backup_host = "backup.example.com"
# backup_user = "backup"
dest_dir = "/backups"

# Append the machine id to the host directory name
# (the id is created in machine_id_file if missing)
append_machine_id = false
# machine_id_file = "/etc/machine-id"

# Delete expired snapshots with sudo on the backup host
use_sudo = false

# Do not fail when files disappear while rsync is running
ignore_vanished_files = false

# exclude_file = "/etc/ezbackup/ezbackup_exclude.rsync"
# ssh_opts = ["-p", "2222"]
# rsync_opts = ["--bwlimit=10000"]

[[dirs]]
path = "/etc"

# Large trees can be transferred one subdirectory at a time
[[dirs]]
path = "/home"
chunked = true
excludes = ["*.iso", ".cache/"]
"""
