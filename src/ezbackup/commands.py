"""ezbackup: ezbackup/commands.py
Destination-side operations as structured values.

Endpoints turn these into shell text with ``to_shell()`` right before they
are sent, so everything above the endpoint works with plain data.
"""

from dataclasses import dataclass
from shlex import quote


@dataclass(frozen=True)
class MakeDir:
    """Create a directory and its parents (``mkdir -p``)."""

    path: str
    mutating = True

    def to_shell(self) -> str:
        return f"mkdir -p {quote(self.path)}"


@dataclass(frozen=True)
class ListDir:
    """List the immediate entries of a directory, one per line.

    A missing directory lists as empty.
    """

    path: str
    mutating = False

    def to_shell(self) -> str:
        path = quote(self.path)
        return f"[ ! -d {path} ] || ls -1 {path}"


@dataclass(frozen=True)
class DirExists:
    """Print the path if it is an existing directory."""

    path: str
    mutating = False

    def to_shell(self) -> str:
        path = quote(self.path)
        return f"[ ! -d {path} ] || echo {path}"


@dataclass(frozen=True)
class Rename:
    """Move ``source`` to ``target``."""

    source: str
    target: str
    mutating = True

    def to_shell(self) -> str:
        return f"mv {quote(self.source)} {quote(self.target)}"


@dataclass(frozen=True)
class Delete:
    """Remove a directory tree, optionally through sudo."""

    path: str
    sudo: bool = False
    mutating = True

    def to_shell(self) -> str:
        cmd = f"rm -rf {quote(self.path)}"
        return f"sudo {cmd}" if self.sudo else cmd
