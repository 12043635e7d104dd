"""Command line interface for ezbackup."""

from .dispatcher import create_subcommand_parser, main, run_subcommand

__all__ = ["create_subcommand_parser", "main", "run_subcommand"]
