"""Shared CLI utilities and argument parsers."""

import argparse
import logging
import os

from ..__logger__ import create_logger
from ..config import ConfigError, find_config_file, load_config

logger = logging.getLogger(__name__)


def create_global_parser() -> argparse.ArgumentParser:
    """Create a parser with global options that can be used as a parent."""
    parser = argparse.ArgumentParser(add_help=False)
    add_verbosity_args(parser)
    return parser


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )
    group.add_argument(
        "--syslog",
        action="store_true",
        help="Also log to syslog (facility local7)",
    )


def add_dry_run_arg(parser: argparse.ArgumentParser, help_text: str) -> None:
    """Add the --dry-run flag to a parser."""
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help=help_text,
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    The VERBOSE environment variable enables debug output like --debug.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False) or os.environ.get("VERBOSE"):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def setup_logging(args: argparse.Namespace) -> None:
    """Configure logging from parsed arguments."""
    create_logger(get_log_level(args), use_syslog=getattr(args, "syslog", False))


def load_configuration(args: argparse.Namespace):
    """Find and load the configuration named by the arguments.

    Returns:
        The Config, or None when no usable configuration was found (the
        reason has been reported already)
    """
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: ezbackup config init")
            return None

        logger.info("Loading configuration from: %s", config_path)
        config, warnings = load_config(config_path)

        for warning in warnings:
            logger.warning("Config: %s", warning)

    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    return config
