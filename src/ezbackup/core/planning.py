"""Transfer planning: which rsync runs back up one directory.

A directory is sent in full when there is no earlier snapshot, otherwise
unchanged files are hard linked from the most recent snapshot with
``--link-dest``. Chunked directories are split into one non-recursive run for
the directory itself and one recursive run per immediate subdirectory.

Splitting must not change what ends up in the snapshot. Subdirectories the
exclude rules drop at the top level get no run of their own, and the rules of
every child run are rewritten for the child as its transfer root.
"""

import fnmatch
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from ..__logger__ import logger
from ..config import DirectoryConfig
from ..destination import DestinationPaths
from ..snapshot import Snapshot


@dataclass(frozen=True)
class TransferUnit:
    """One rsync run: the contents of ``source`` into ``destination``.

    ``filters`` are rsync filter rules (``- pattern`` or ``+ pattern``).
    Child runs of a chunked directory carry all their rules there and do not
    read the shared exclude file.
    """

    source: str
    destination: str
    link_dest: Optional[str] = None
    recursive: bool = True
    excludes: tuple[str, ...] = ()
    filters: tuple[str, ...] = ()
    use_exclude_file: bool = True

    @property
    def incremental(self) -> bool:
        return self.link_dest is not None


class TransferBackend(Protocol):
    """Something that can turn a directory into transfer commands and run them."""

    def plan(self, directory: DirectoryConfig, prior: Optional[Snapshot]) -> list:
        ...

    def run(self, command) -> None:
        ...


def read_exclude_rules(path) -> tuple[str, ...]:
    """Read an rsync exclude file as filter rules, in file order.

    Blank lines and comments (``#`` or ``;``) are skipped. Lines starting with
    ``+ `` or ``- `` keep their action, any other line is an exclude.
    """
    rules = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line.strip() or line[0] in "#;":
                continue
            if not line.startswith(("+ ", "- ")):
                line = f"- {line}"
            rules.append(line)
    return tuple(rules)


def _matches_top_level(pattern: str, name: str) -> bool:
    """Whether ``pattern`` matches the immediate subdirectory ``name``."""
    pattern = pattern.rstrip("/")
    if pattern.endswith("/***"):
        pattern = pattern[:-4]
    pattern = pattern.lstrip("/")
    if not pattern or "/" in pattern:
        return False
    return fnmatch.fnmatchcase(name, pattern)


def is_excluded_child(rules, name: str) -> bool:
    """Apply ``rules`` to a top-level subdirectory, first match wins."""
    for rule in rules:
        if _matches_top_level(rule[2:], name):
            return rule.startswith("-")
    return False


def rebase_rule(rule: str, name: str) -> list[str]:
    """Rewrite one filter rule for a run rooted at the subdirectory ``name``.

    Anchored rules below ``name`` lose their first component, anchored rules
    for other subdirectories are dropped. Unanchored rules with a slash also
    get an anchored copy for matches starting at ``name`` itself.
    """
    action, pattern = rule[:2], rule[2:]
    if pattern.startswith("/"):
        first, sep, rest = pattern[1:].partition("/")
        if first == "**":
            return [rule]
        if sep and rest and fnmatch.fnmatchcase(name, first):
            return [f"{action}/{rest}"]
        return []

    first, sep, rest = pattern.partition("/")
    if sep and rest and first != "**" and fnmatch.fnmatchcase(name, first):
        return [rule, f"{action}/{rest}"]
    return [rule]


def list_subdirectories(path: str) -> list[str]:
    """Names of the immediate subdirectories of ``path``, sorted.

    Symlinks to directories are not followed; they are copied as links by the
    non-recursive run of the parent.
    """
    with os.scandir(path) as entries:
        return sorted(e.name for e in entries if e.is_dir(follow_symlinks=False))


def plan_transfers(
    directory: DirectoryConfig,
    prior: Optional[Snapshot],
    paths: DestinationPaths,
    shared_rules: tuple[str, ...] = (),
) -> list[TransferUnit]:
    """Plan the transfer units that back up ``directory``.

    Args:
        directory: The source directory, with an absolute path
        prior: Most recent existing snapshot, or None for a full backup
        paths: Destination paths of this machine
        shared_rules: Filter rules of the shared exclude file

    Returns:
        Transfer units in execution order
    """
    suffix = directory.path.rstrip("/")
    source = suffix or "/"
    destination = paths.in_tmp(suffix)
    link_dest = paths.in_snapshot(prior, suffix) if prior is not None else None

    if not directory.chunked:
        return [
            TransferUnit(
                source=source,
                destination=destination,
                link_dest=link_dest,
                recursive=True,
                excludes=directory.excludes,
            )
        ]

    units = [
        TransferUnit(
            source=source,
            destination=destination,
            link_dest=link_dest,
            recursive=False,
            excludes=directory.excludes,
        )
    ]
    # Same order as on the rsync command line: exclude file, then --exclude.
    rules = (*shared_rules, *(f"- {p}" for p in directory.excludes))
    for name in list_subdirectories(source):
        if is_excluded_child(rules, name):
            logger.debug("Excluded, not transferring %s/%s", suffix, name)
            continue
        units.append(
            TransferUnit(
                source=f"{suffix}/{name}",
                destination=f"{destination}/{name}",
                link_dest=f"{link_dest}/{name}" if link_dest is not None else None,
                recursive=True,
                filters=tuple(r for rule in rules for r in rebase_rule(rule, name)),
                use_exclude_file=False,
            )
        )
    return units
