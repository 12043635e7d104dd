# pyright: standard

"""ezbackup: ezbackup/core/operations.py
Backup and expiry of snapshots on the backup host.

A backup run goes through these states, strictly in order:

    INIT -> ENSURE_ROOT -> LIST_PRIOR -> STAMP -> ENSURE_TMP -> TRANSFER
         -> PROMOTE -> EXPIRE -> DONE

Any error aborts the run where it happened. Nothing is rolled back: the
working snapshot ``<root>/.tmp`` stays behind and the next run merges into it.
Runs must not overlap; nothing here locks the destination.
"""

import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from .. import __util__
from ..__logger__ import logger
from ..commands import Delete, DirExists, MakeDir, Rename
from ..config import ConfigError
from ..config.schema import DEFAULT_EXCLUDE_FILE
from ..destination import resolve_destination
from ..endpoint import choose_endpoint
from ..snapshot import Snapshot, list_snapshots
from .planning import TransferBackend
from .transfer import RsyncBackend


class BackupState(Enum):
    INIT = "init"
    ENSURE_ROOT = "ensure_root"
    LIST_PRIOR = "list_prior"
    STAMP = "stamp"
    ENSURE_TMP = "ensure_tmp"
    TRANSFER = "transfer"
    PROMOTE = "promote"
    EXPIRE = "expire"
    DONE = "done"


class BackupJob:
    """Back up the configured directories into a new snapshot.

    Args:
        config: Loaded configuration
        endpoint: Endpoint for destination-side commands (chosen from the
            configuration when omitted)
        backend: Transfer backend (rsync when omitted)
        dry_run: Log destination changes instead of making them and pass
            ``--dry-run`` to rsync
        exclude_file: Overrides the configured shared exclude file
        hostname: Overrides the local short hostname
        local: Overrides the configured local mode when no endpoint is given
        clock: Returns the current local time
    """

    def __init__(
        self,
        config,
        endpoint=None,
        backend: Optional[TransferBackend] = None,
        *,
        dry_run=False,
        exclude_file=None,
        hostname=None,
        local=None,
        clock=datetime.now,
    ) -> None:
        self.config = config
        self.dry_run = dry_run
        self.paths = resolve_destination(config, hostname)
        self.endpoint = endpoint or choose_endpoint(
            config, local=local, path=self.paths.root
        )
        self.clock = clock
        self.state = BackupState.INIT
        self.snapshot = None
        self.transfers = []
        self._backend = backend
        self._exclude_file = exclude_file

    def _enter(self, state) -> None:
        logger.debug("Backup state: %s -> %s", self.state.name, state.name)
        self.state = state

    def get_directories(self):
        """Return the configured directories, refusing relative paths.

        Raises:
            ConfigError: If any configured directory is not absolute
        """
        directories = []
        for directory in self.config.dirs:
            if not os.path.isabs(directory.path):
                raise ConfigError(
                    f"Relative directories are not supported: {directory.path}"
                )
            directories.append(directory)
        return directories

    def resolve_exclude_file(self):
        """Return the shared exclude file to pass to rsync, or None.

        Only the built-in default may be missing; it is then skipped.

        Raises:
            ConfigError: If an explicitly chosen exclude file does not exist
        """
        exclude_file = self._exclude_file or self.config.exclude_file
        if not exclude_file:
            return None
        if not Path(exclude_file).is_file():
            if not self._exclude_file and exclude_file == DEFAULT_EXCLUDE_FILE:
                logger.debug("No exclude file at %s", exclude_file)
                return None
            raise ConfigError(f"Exclude file not found: {exclude_file}")
        return exclude_file

    def list_snapshots(self):
        """List the snapshots currently on the backup host, oldest first."""
        return list_snapshots(self.endpoint, self.paths.root)

    def backup(self) -> Snapshot:
        """Run a complete backup and return the new snapshot.

        Snapshots are ordered by name only. A run made while the clock is
        behind the newest snapshot (after a DST fall-back or a clock
        correction) still links against that newest snapshot, but its own
        snapshot sorts before it and is the first one to expire.

        Raises:
            ConfigError: On invalid configured directories or a missing
                exclude file
            AbortError: If any command fails or the snapshot name is taken
        """
        self.state = BackupState.INIT
        self.transfers = []
        directories = self.get_directories()
        backend = self._backend or RsyncBackend(
            self.config,
            self.endpoint,
            self.paths,
            exclude_file=self.resolve_exclude_file(),
            dry_run=self.dry_run,
        )
        if self.dry_run:
            logger.info("Dry run mode - no changes will be made on %r", self.endpoint)

        self._enter(BackupState.ENSURE_ROOT)
        self.endpoint.execute(MakeDir(self.paths.root), dry_run=self.dry_run)

        self._enter(BackupState.LIST_PRIOR)
        prior_snapshots = self.list_snapshots()
        prior = prior_snapshots[-1] if prior_snapshots else None

        self._enter(BackupState.STAMP)
        self.snapshot = Snapshot.now(self.clock)
        if self.snapshot in prior_snapshots:
            raise __util__.AbortError(f"Snapshot {self.snapshot} already exists")
        if prior is not None and self.snapshot < prior:
            logger.warning(
                "Clock is behind the newest snapshot %s, %s will sort before it",
                prior,
                self.snapshot,
            )
        logger.info("Snapshot: %s", self.snapshot)

        self._enter(BackupState.ENSURE_TMP)
        if self.endpoint.execute(DirExists(self.paths.tmp)):
            logger.warning(
                "Working snapshot %s left over from an earlier run, reusing it",
                self.paths.tmp,
            )
        self.endpoint.execute(MakeDir(self.paths.tmp), dry_run=self.dry_run)

        self._enter(BackupState.TRANSFER)
        for directory in directories:
            self._transfer_directory(directory, prior, backend)

        self._enter(BackupState.PROMOTE)
        self.endpoint.execute(
            Rename(self.paths.tmp, self.paths.snapshot_dir(self.snapshot)),
            dry_run=self.dry_run,
        )
        logger.info("Promoted %s to %s", self.paths.tmp, self.snapshot)

        self._enter(BackupState.EXPIRE)
        self.expire()

        self._enter(BackupState.DONE)
        return self.snapshot

    def _transfer_directory(self, directory, prior, backend) -> None:
        if not os.path.isdir(directory.path):
            logger.info("%s does not exist, skipping", directory.path)
            return

        if prior is None:
            logger.info("Backing up %s (full)", directory.path)
        else:
            logger.info("Backing up %s (incremental from %s)", directory.path, prior)

        commands = backend.plan(directory, prior)
        if not commands:
            return
        self.endpoint.execute(
            MakeDir(commands[0].unit.destination), dry_run=self.dry_run
        )
        for command in commands:
            backend.run(command)
            self.transfers.append(command)

    def expire(self):
        """Delete the oldest snapshots beyond the configured number of copies.

        Returns:
            The expired snapshots, oldest first
        """
        snapshots = self.list_snapshots()
        excess = len(snapshots) - self.config.copies
        if excess <= 0:
            logger.debug(
                "No snapshots to expire (copies=%d, found=%d)",
                self.config.copies,
                len(snapshots),
            )
            return []

        expired = snapshots[:excess]
        for snapshot in expired:
            logger.info("Expiring snapshot %s", snapshot)
            self.endpoint.execute(
                Delete(self.paths.snapshot_dir(snapshot), sudo=self.config.use_sudo),
                dry_run=self.dry_run,
            )
        return expired
