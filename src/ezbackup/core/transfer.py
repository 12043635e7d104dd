# pyright: standard

"""ezbackup: ezbackup/core/transfer.py
Transfer backend built on rsync.

Builds one rsync command line per planned transfer unit and runs it locally;
rsync itself reaches the backup host through the endpoint's remote shell.
"""

import shlex
from dataclasses import dataclass
from functools import cached_property
from typing import Optional

from .. import __util__
from ..__logger__ import logger
from .planning import TransferUnit, plan_transfers, read_exclude_rules

# rsync exit status for "some files vanished before they could be transferred"
RSYNC_VANISHED_FILES = 24

RECURSIVE_FLAGS = ("--archive", "--compress")
NON_RECURSIVE_FLAGS = ("--archive", "--no-recursive", "--dirs", "--compress")


@dataclass(frozen=True)
class TransferCommand:
    """A planned transfer unit together with its rsync command line."""

    unit: TransferUnit
    argv: tuple[str, ...]

    @property
    def link_dests(self) -> list[str]:
        """All link-dest paths present on the command line."""
        found = []
        args = list(self.argv)
        for i, arg in enumerate(args):
            if arg == "--link-dest" and i + 1 < len(args):
                found.append(args[i + 1])
            elif arg.startswith("--link-dest="):
                found.append(arg.split("=", 1)[1])
        return found

    def __str__(self) -> str:
        return shlex.join(self.argv)


class RsyncBackend:
    """Plan and run rsync transfers into the working snapshot."""

    def __init__(
        self,
        config,
        endpoint,
        paths,
        *,
        exclude_file: Optional[str] = None,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.endpoint = endpoint
        self.paths = paths
        self.exclude_file = exclude_file
        self.dry_run = dry_run

    @cached_property
    def shared_rules(self) -> tuple[str, ...]:
        """Filter rules of the shared exclude file, read once."""
        if not self.exclude_file:
            return ()
        return read_exclude_rules(self.exclude_file)

    def plan(self, directory, prior) -> list[TransferCommand]:
        """Return the rsync commands backing up ``directory``."""
        units = plan_transfers(directory, prior, self.paths, self.shared_rules)
        return [self.build_command(unit) for unit in units]

    def build_command(self, unit: TransferUnit) -> TransferCommand:
        """Build the rsync command line for one transfer unit.

        Raises:
            PlannerError: If the command would carry more than one link-dest
        """
        cmd = ["rsync"]
        if self.dry_run:
            cmd.append("--dry-run")
        cmd += RECURSIVE_FLAGS if unit.recursive else NON_RECURSIVE_FLAGS
        cmd += self.endpoint.rsync_shell_args()
        if self.exclude_file and unit.use_exclude_file:
            cmd += ["--exclude-from", self.exclude_file]
        for rule in unit.filters:
            cmd += ["--filter", rule]
        for pattern in unit.excludes:
            cmd += ["--exclude", pattern]
        cmd += self.config.rsync_opts
        if unit.link_dest is not None:
            cmd += ["--link-dest", unit.link_dest]
        cmd += [
            f"{unit.source.rstrip('/')}/",
            self.endpoint.rsync_destination(unit.destination),
        ]

        command = TransferCommand(unit=unit, argv=tuple(cmd))
        if len(command.link_dests) > 1:
            raise __util__.PlannerError(
                f"too many link-dest arguments: {command}"
            )
        return command

    def run(self, command: TransferCommand) -> None:
        """Run one rsync command, failing on any unexpected exit status."""
        ok_codes = (0,)
        if self.config.ignore_vanished_files:
            ok_codes = (0, RSYNC_VANISHED_FILES)
        logger.debug("Executing: %s", command)
        __util__.exec_subprocess(
            list(command.argv), ok_codes=ok_codes, capture_output=False
        )
