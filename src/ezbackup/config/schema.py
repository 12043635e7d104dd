"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
Instances are frozen; a loaded configuration is never modified.
"""

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_COPIES = 30
DEFAULT_BACKUP_HOST = "localhost"
DEFAULT_DEST_DIR = "/backups"
DEFAULT_EXCLUDE_FILE = "/etc/ezbackup/ezbackup_exclude.rsync"
DEFAULT_MACHINE_ID_FILE = "/etc/machine-id"


@dataclass(frozen=True)
class DirectoryConfig:
    """A source directory to back up.

    Attributes:
        path: Absolute local path of the directory
        chunked: Transfer each immediate subdirectory as its own rsync run
        excludes: Extra rsync exclude patterns for this directory only
    """

    path: str
    chunked: bool = False
    excludes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Config:
    """Root configuration object.

    Attributes:
        copies: Number of snapshots to keep on the destination
        backup_host: Host receiving the backups
        dest_dir: Root directory on the backup host
        backup_user: Login on the backup host (None for the invoking user)
        dirs: Source directories, in backup order
        ssh_opts: Extra arguments passed to ssh
        rsync_opts: Extra arguments passed to rsync
        append_machine_id: Suffix the host directory with the machine id
        use_sudo: Run snapshot deletion through sudo on the backup host
        ignore_vanished_files: Treat rsync's "vanished files" status as success
        exclude_file: Shared rsync exclude file applied to every directory
        machine_id_file: Where the persistent machine id is stored
        local: Write to dest_dir on this machine instead of over ssh
    """

    copies: int = DEFAULT_COPIES
    backup_host: str = DEFAULT_BACKUP_HOST
    dest_dir: str = DEFAULT_DEST_DIR
    backup_user: Optional[str] = None
    dirs: tuple[DirectoryConfig, ...] = field(default_factory=tuple)
    ssh_opts: tuple[str, ...] = ()
    rsync_opts: tuple[str, ...] = ()
    append_machine_id: bool = False
    use_sudo: bool = False
    ignore_vanished_files: bool = False
    exclude_file: str = DEFAULT_EXCLUDE_FILE
    machine_id_file: str = DEFAULT_MACHINE_ID_FILE
    local: bool = False
