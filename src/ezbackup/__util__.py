# pyright: standard

"""ezbackup: ezbackup/__util__.py
Common errors and helpers shared by endpoints, transfers and the CLI.
"""

import shlex
import subprocess

from .__logger__ import logger


class AbortError(Exception):
    """Fatal condition that stops the whole backup run."""


class RemoteCommandError(AbortError):
    """A destination-side or transfer command exited with a failing status."""

    def __init__(self, command, returncode=None, stderr=""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr or ""
        super().__init__(str(self))

    def __str__(self) -> str:
        cmd = shlex.join(self.command)
        if self.returncode is None:
            msg = f"Could not execute command: {cmd}"
        else:
            msg = f"Command exited with status {self.returncode}: {cmd}"
        if self.stderr.strip():
            msg += f"\n{self.stderr.strip()}"
        return msg


class PlannerError(AbortError):
    """Transfer planning produced an inconsistent command."""


def log_heading(caption):
    """Formatted heading for logging output sections."""
    return f"{f'--[ {caption} ]':-<50}"


def exec_subprocess(command, ok_codes=(0,), capture_output=True):
    """Run ``command`` and return its stdout split into lines.

    Any exit status outside ``ok_codes`` raises RemoteCommandError. With
    ``capture_output`` disabled the child writes straight to our stdout and
    stderr, and an empty list is returned.
    """
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.error("Unable to run %s: %s", command[0], e)
        raise RemoteCommandError(command, None, str(e)) from e

    if result.returncode not in ok_codes:
        raise RemoteCommandError(command, result.returncode, result.stderr)
    if result.returncode != 0:
        logger.warning(
            "Command exited with tolerated status %d: %s",
            result.returncode,
            shlex.join(command),
        )

    if not capture_output or not result.stdout:
        return []
    return result.stdout.splitlines()
