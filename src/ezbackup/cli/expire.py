"""Expire command: Apply the retention count."""

import argparse
import logging
import time

from .. import __util__
from ..core.operations import BackupJob
from .common import load_configuration, setup_logging

logger = logging.getLogger(__name__)


def execute_expire(args: argparse.Namespace) -> int:
    """Execute the expire command.

    Deletes the oldest snapshots until no more than ``copies`` remain.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    setup_logging(args)

    config = load_configuration(args)
    if config is None:
        return 1

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - showing what would be deleted")

    logger.info(__util__.log_heading(f"Expiring snapshots at {time.ctime()}"))
    logger.info("Retention: copies=%d", config.copies)

    try:
        job = BackupJob(config, local=getattr(args, "local", None), dry_run=dry_run)
        expired = job.expire()
    except (__util__.AbortError, OSError) as e:
        logger.error("Expire failed: %s", e)
        return 1

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    if dry_run:
        logger.info("Dry run: would delete %d snapshot(s)", len(expired))
    else:
        logger.info("Deleted %d snapshot(s)", len(expired))

    return 0
