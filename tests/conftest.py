"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta

import pytest

from ezbackup.commands import Delete, DirExists, ListDir, MakeDir, Rename
from ezbackup.config import Config, DirectoryConfig
from ezbackup.core.operations import BackupJob
from ezbackup.core.transfer import RsyncBackend
from ezbackup.destination import DestinationPaths
from ezbackup.endpoint import Endpoint

DEST_DIR = "/backups"
HOSTNAME = "testhost"
DEST_ROOT = f"{DEST_DIR}/{HOSTNAME}"


class FakeEndpoint(Endpoint):
    """Endpoint that keeps the destination directory tree in memory."""

    def __init__(self):
        super().__init__(config={"path": DEST_DIR})
        self.dirs = set()
        self.executed = []

    def make_dirs(self, path):
        parts = path.strip("/").split("/")
        for i in range(1, len(parts) + 1):
            self.dirs.add("/" + "/".join(parts[:i]))

    def children(self, path):
        prefix = path.rstrip("/") + "/"
        return sorted(
            d[len(prefix):] for d in self.dirs
            if d.startswith(prefix) and "/" not in d[len(prefix):]
        )

    def execute(self, command, dry_run=False):
        self.executed.append((command, dry_run))
        if dry_run:
            return []
        if isinstance(command, MakeDir):
            self.make_dirs(command.path)
        elif isinstance(command, ListDir):
            return self.children(command.path)
        elif isinstance(command, DirExists):
            return [command.path] if command.path in self.dirs else []
        elif isinstance(command, Rename):
            moved = {d for d in self.dirs if d == command.source or d.startswith(command.source + "/")}
            self.dirs -= moved
            self.dirs |= {command.target + d[len(command.source):] for d in moved}
        elif isinstance(command, Delete):
            self.dirs = {d for d in self.dirs if d != command.path and not d.startswith(command.path + "/")}
        else:
            raise AssertionError(f"Unexpected command: {command!r}")
        return []

    def mutations(self):
        """Commands that changed (or would have changed) the destination for real."""
        return [c for c, dry_run in self.executed if c.mutating and not dry_run]


class RecordingBackend(RsyncBackend):
    """rsync backend that records commands instead of running rsync."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.ran = []

    def run(self, command):
        self.ran.append(command)
        if not self.dry_run:
            self.endpoint.make_dirs(command.unit.destination)


class StepClock:
    """Clock returning a new time, one step later, on every call."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0), step=timedelta(hours=1)):
        self.current = start
        self.step = step

    def __call__(self):
        now = self.current
        self.current += self.step
        return now


@pytest.fixture
def fake_endpoint():
    """An in-memory destination."""
    return FakeEndpoint()


@pytest.fixture
def clock():
    """A clock advancing one hour per call."""
    return StepClock()


@pytest.fixture
def source_tree(tmp_path):
    """Create local source directories.

    Layout::

        src/etc/hosts
        src/home/alice/notes.txt
        src/home/bob/
        src/home/README
    """
    src = tmp_path / "src"
    (src / "etc").mkdir(parents=True)
    (src / "etc" / "hosts").write_text("127.0.0.1 localhost\n")
    (src / "home" / "alice").mkdir(parents=True)
    (src / "home" / "alice" / "notes.txt").write_text("notes\n")
    (src / "home" / "bob").mkdir()
    (src / "home" / "README").write_text("homes\n")
    return src


@pytest.fixture
def make_config(source_tree):
    """Factory for configs backing up the source tree to the fake destination."""

    def _make(dirs=None, **kwargs):
        if dirs is None:
            dirs = (
                DirectoryConfig(path=str(source_tree / "etc")),
                DirectoryConfig(path=str(source_tree / "home"), chunked=True),
            )
        kwargs.setdefault("dest_dir", DEST_DIR)
        kwargs.setdefault("exclude_file", "")
        kwargs.setdefault("local", True)
        return Config(dirs=tuple(dirs), **kwargs)

    return _make


@pytest.fixture
def make_job(fake_endpoint, clock):
    """Factory for backup jobs on the fake destination with a recording backend."""

    def _make(config, dry_run=False):
        backend = RecordingBackend(
            config,
            fake_endpoint,
            DestinationPaths(DEST_ROOT),
            dry_run=dry_run,
        )
        job = BackupJob(
            config,
            fake_endpoint,
            backend,
            dry_run=dry_run,
            hostname=HOSTNAME,
            clock=clock,
        )
        return job, backend

    return _make


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
copies = 5
backup_host = "nas.example.com"
backup_user = "backup"
dest_dir = "/srv/backups/"
append_machine_id = true
machine_id_file = "/var/lib/ezbackup/machine-id"
use_sudo = true
ignore_vanished_files = true
exclude_file = "/etc/ezbackup/excludes"
ssh_opts = ["-p", "2222"]
rsync_opts = ["--bwlimit=5000"]

[[dirs]]
path = "/etc"

[[dirs]]
path = "/home"
chunked = true
excludes = ["*.iso", ".cache/"]
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[[dirs]]
path = "/etc"
"""


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "ezbackup.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path
