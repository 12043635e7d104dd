"""CLI dispatcher.

This module builds the subcommand parser and routes parsed arguments to
the command implementations.
"""

import argparse
import sys
from typing import Callable

from .common import add_dry_run_arg, add_verbosity_args


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="ezbackup",
        description="Simple rotating backups based on rsync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Back up all configured directories",
        description="Transfer all directories into a new snapshot, then expire old ones",
    )
    add_dry_run_arg(run_parser, "Show what would be done without making changes")
    run_parser.add_argument(
        "--exclude-file",
        metavar="FILE",
        help="rsync exclude file (overrides config)",
    )
    run_parser.add_argument(
        "--local",
        action="store_true",
        default=None,
        help="Write to dest_dir on this machine instead of over ssh",
    )

    # expire command
    expire_parser = subparsers.add_parser(
        "expire",
        help="Delete snapshots beyond the configured number of copies",
        description="Remove the oldest snapshots until only 'copies' remain",
    )
    add_dry_run_arg(expire_parser, "Show what would be deleted without making changes")
    expire_parser.add_argument(
        "--local",
        action="store_true",
        default=None,
        help="Expire snapshots in dest_dir on this machine",
    )

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="Show snapshots on the backup host",
        description="List all snapshots of this machine, oldest first",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    list_parser.add_argument(
        "--local",
        action="store_true",
        default=None,
        help="List snapshots in dest_dir on this machine",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"ezbackup {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    # Route to appropriate command handler
    handlers: dict[str, Callable] = {
        "run": cmd_run,
        "expire": cmd_expire,
        "list": cmd_list,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_expire(args: argparse.Namespace) -> int:
    """Execute expire command."""
    from .expire import execute_expire

    return execute_expire(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    from .list_cmd import execute_list

    return execute_list(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ezbackup CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
