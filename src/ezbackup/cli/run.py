"""Run command: Back up all configured directories."""

import argparse
import logging
import time

from .. import __util__
from ..config import ConfigError
from ..core.operations import BackupJob
from .common import load_configuration, setup_logging

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    setup_logging(args)

    config = load_configuration(args)
    if config is None:
        return 1

    if not config.dirs:
        logger.error("No directories configured")
        return 1

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - showing what would be done")

    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))

    try:
        job = BackupJob(
            config,
            local=getattr(args, "local", None),
            dry_run=dry_run,
            exclude_file=getattr(args, "exclude_file", None),
        )
        snapshot = job.backup()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except (__util__.AbortError, OSError) as e:
        logger.error("Backup failed: %s", e)
        return 1

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    if dry_run:
        logger.info("Dry run: %d transfer(s) checked", len(job.transfers))
    else:
        logger.info(
            "Created snapshot %s with %d transfer(s)", snapshot, len(job.transfers)
        )

    return 0
