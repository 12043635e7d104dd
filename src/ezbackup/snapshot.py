# pyright: standard

"""ezbackup: ezbackup/snapshot.py
Snapshot names and destination listing.

A snapshot is a directory named ``YYYY-MM-DD_HH:MM:SS`` (local time) directly
below the destination root. The listing of the destination root is the only
record of which snapshots exist.
"""

import re
from dataclasses import dataclass
from datetime import datetime

from .__logger__ import logger
from .commands import ListDir

TIMESTAMP_FORMAT = "%Y-%m-%d_%H:%M:%S"
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}_\d{2}:\d{2}:\d{2}$")


@dataclass(frozen=True, order=True)
class Snapshot:
    """One completed backup generation, ordered by its timestamp."""

    time_obj: datetime

    @classmethod
    def from_name(cls, name):
        """Parse a snapshot directory name.

        Raises:
            ValueError: If ``name`` is not a valid snapshot timestamp
        """
        if not TIMESTAMP_PATTERN.match(name):
            raise ValueError(f"Not a snapshot name: {name!r}")
        return cls(datetime.strptime(name, TIMESTAMP_FORMAT))

    @classmethod
    def now(cls, clock=datetime.now):
        """Snapshot for the current local time, truncated to the second."""
        return cls(clock().replace(microsecond=0))

    @property
    def name(self) -> str:
        return self.time_obj.strftime(TIMESTAMP_FORMAT)

    def __str__(self) -> str:
        return self.name


def is_snapshot_name(name) -> bool:
    """Return True if ``name`` has the exact snapshot timestamp format."""
    return bool(TIMESTAMP_PATTERN.match(name))


def parse_snapshots(names):
    """Return the snapshots among ``names``, sorted oldest first."""
    snapshots = []
    for name in names:
        name = name.strip()
        if not is_snapshot_name(name):
            continue
        try:
            snapshots.append(Snapshot.from_name(name))
        except ValueError as e:
            logger.warning("Could not parse date from: %r (%s)", name, e)
    snapshots.sort()
    return snapshots


def list_snapshots(endpoint, dest_root):
    """List the snapshots in ``dest_root`` on ``endpoint``, oldest first."""
    logger.debug("Listing snapshots in: %s", dest_root)
    entries = endpoint.execute(ListDir(dest_root))
    snapshots = parse_snapshots(entries)
    logger.debug("Found %d snapshot(s) in %s", len(snapshots), dest_root)
    return snapshots
