# pyright: standard

"""ezbackup: SSH Endpoint for running commands on the backup host.

Every destination-side command is sent as a single shell string to
``ssh [ssh_opts] <user>@<host>``. rsync is pointed at the same login with
``-e "ssh [ssh_opts]"`` and ``<user>@<host>:<path>`` destinations.
"""

import getpass
import os
import shlex
from typing import Any, Dict, List, Optional

try:
    import pwd

    _pwd = pwd
    _pwd_available = True
except ImportError:
    _pwd = None
    _pwd_available = False

from ezbackup.__logger__ import logger

from .common import Endpoint


def resolve_username(username: Optional[str] = None) -> str:
    """Return the login to use on the backup host.

    Precedence:
    1. Explicitly configured username
    2. The invoking user, as reported by getpass
    3. The password database entry of the current uid
    4. USER/USERNAME environment variables
    """
    if username:
        logger.debug("Using explicitly configured username: %s", username)
        return username

    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError) as e:
        logger.debug("getpass.getuser() failed: %s", e)

    if _pwd_available and _pwd is not None:
        try:
            return _pwd.getpwuid(os.getuid()).pw_name
        except KeyError as e:
            logger.debug("No passwd entry for uid %d: %s", os.getuid(), e)

    username = os.environ.get("USER") or os.environ.get("USERNAME")
    if not username:
        raise OSError("Unable to determine the invoking user's name")
    return username


class SSHEndpoint(Endpoint):
    """SSH-based endpoint for remote operations."""

    def __init__(
        self,
        hostname: str,
        config: Optional[Dict[str, Any]] = None,
        *,
        username: Optional[str] = None,
        ssh_opts: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the SSH endpoint.

        Args:
            hostname: Remote hostname
            config: Configuration dictionary
            username: Login on the remote host (defaults to the invoking user)
            ssh_opts: Extra arguments placed before the login on the ssh command line
            **kwargs: Additional keyword arguments passed to parent class
        """
        super().__init__(config=config, **kwargs)

        self.hostname: str = hostname
        self.config["username"] = resolve_username(
            username or self.config.get("username")
        )
        self.config["ssh_opts"] = list(ssh_opts or self.config.get("ssh_opts", []))

        logger.debug("SSH hostname: %s", self.hostname)
        logger.debug("SSH username: %s", self.config["username"])
        logger.debug("SSH opts: %s", self.config["ssh_opts"])

    def __repr__(self) -> str:
        return f"(SSH) {self.login}:{self.config['path']}"

    @property
    def login(self) -> str:
        return f"{self.config['username']}@{self.hostname}"

    def _ssh_base_cmd(self) -> List[str]:
        return ["ssh", *self.config["ssh_opts"], self.login]

    def _build_command(self, shell_cmd):
        return [*self._ssh_base_cmd(), shell_cmd]

    def rsync_destination(self, path) -> str:
        return f"{self.login}:{path}"

    def rsync_shell_args(self) -> List[str]:
        return ["-e", shlex.join(["ssh", *self.config["ssh_opts"]])]
