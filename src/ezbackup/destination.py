# pyright: standard

"""ezbackup: ezbackup/destination.py
Locations on the backup host.

Every machine writes below ``<dest_dir>/<host id>``, where the host id is the
short hostname, optionally followed by ``-<machine id>``.
"""

import socket
import uuid
from dataclasses import dataclass
from pathlib import Path

from filelock import FileLock

from .__logger__ import logger
from .__util__ import AbortError

TMP_DIR_NAME = ".tmp"


@dataclass(frozen=True)
class DestinationPaths:
    """Paths below the destination root of this machine."""

    root: str

    @property
    def tmp(self) -> str:
        """The working snapshot of the run in progress."""
        return f"{self.root}/{TMP_DIR_NAME}"

    def snapshot_dir(self, snapshot) -> str:
        return f"{self.root}/{snapshot.name}"

    def in_tmp(self, path) -> str:
        """Where the absolute local ``path`` lands inside the working snapshot."""
        return f"{self.tmp}{path}"

    def in_snapshot(self, snapshot, path) -> str:
        """Where the absolute local ``path`` lives inside ``snapshot``."""
        return f"{self.snapshot_dir(snapshot)}{path}"


def get_short_hostname() -> str:
    """Return the local hostname without its domain part."""
    return socket.gethostname().split(".", 1)[0]


def _read_machine_id(path):
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None


def get_machine_id(path) -> str:
    """Return the persistent machine id, creating it on first use.

    An existing id is only read, so the file may live in a directory we
    cannot write to. Creation is done under a file lock so that concurrent
    first runs agree on one id.
    """
    path = Path(path)
    machine_id = _read_machine_id(path)
    if machine_id is None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(f"{path}.lock"):
            machine_id = _read_machine_id(path)
            if machine_id is None:
                machine_id = str(uuid.uuid4())
                logger.info("Creating machine id %s in %s", machine_id, path)
                path.write_text(f"{machine_id}\n", encoding="utf-8")

    if not machine_id:
        raise AbortError(f"Machine id file is empty: {path}")
    return machine_id


def get_host_id(config, hostname=None) -> str:
    """Return the name of this machine's directory on the backup host."""
    host_id = hostname or get_short_hostname()
    if config.append_machine_id:
        host_id = f"{host_id}-{get_machine_id(config.machine_id_file)}"
    return host_id


def resolve_destination(config, hostname=None) -> DestinationPaths:
    """Return the destination paths for this machine."""
    root = f"{config.dest_dir.rstrip('/')}/{get_host_id(config, hostname)}"
    logger.debug("Destination root: %s", root)
    return DestinationPaths(root)
