"""List command: Show snapshots on the backup host."""

import argparse
import json
import logging

from rich.console import Console
from rich.table import Table

from .. import __util__
from ..core.operations import BackupJob
from .common import load_configuration, setup_logging

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    setup_logging(args)

    config = load_configuration(args)
    if config is None:
        return 1

    try:
        job = BackupJob(config, local=getattr(args, "local", None))
        snapshots = job.list_snapshots()
    except (__util__.AbortError, OSError) as e:
        logger.error("Could not list snapshots: %s", e)
        return 1

    if getattr(args, "json", False):
        payload = {
            "destination": job.paths.root,
            "copies": config.copies,
            "snapshots": [
                {"name": s.name, "path": job.paths.snapshot_dir(s)}
                for s in snapshots
            ],
        }
        print(json.dumps(payload, indent=2))
        return 0

    table = Table(title=f"Snapshots in {job.paths.root}")
    table.add_column("#", justify="right")
    table.add_column("Snapshot")
    table.add_column("Path")
    for i, snapshot in enumerate(snapshots, 1):
        table.add_row(str(i), snapshot.name, job.paths.snapshot_dir(snapshot))
    Console().print(table)
    print(f"{len(snapshots)} snapshot(s), keeping {config.copies}")

    return 0
