# pyright: standard

"""ezbackup: ezbackup/endpoint/common.py
Common functionality among endpoints.
"""

import shlex

from ezbackup import __util__
from ezbackup.__logger__ import logger


class Endpoint:
    """Generic structure of a command endpoint.

    An endpoint runs destination-side shell commands and knows how rsync
    has to address paths on the destination.
    """

    def __init__(self, config=None, **kwargs) -> None:
        """
        Initialize the Endpoint with a configuration dictionary.

        Args:
            config (dict): Configuration dictionary containing endpoint settings.
            kwargs: Additional keyword arguments stored in the configuration.
        """
        config = config or {}
        self.config = {}
        self.config["path"] = config.get("path", "/")

        for key, value in kwargs.items():
            self.config[key] = value

    def __repr__(self) -> str:
        return f"{self.config['path']}"

    def execute(self, command, dry_run=False):
        """Run a destination-side command and return its output lines.

        ``command`` is a command intent from ``ezbackup.commands`` or a raw
        shell string. With ``dry_run`` the command is only logged.

        Raises:
            RemoteCommandError: If the command exits with a nonzero status
        """
        shell_cmd = command.to_shell() if hasattr(command, "to_shell") else command
        full_cmd = self._build_command(shell_cmd)
        logger.debug("Executing on %r: %s", self, shlex.join(full_cmd))
        if dry_run:
            logger.info("Dry run, not executing: %s", shell_cmd)
            return []
        return __util__.exec_subprocess(full_cmd)

    def rsync_destination(self, path) -> str:
        """Return ``path`` in the form rsync expects as its destination."""
        return path

    def rsync_shell_args(self) -> list:
        """Return the rsync arguments selecting the remote shell, if any."""
        return []

    # The following method must be implemented by endpoints.

    def _build_command(self, shell_cmd):
        """Return the argument list that runs ``shell_cmd`` on the destination."""
        raise NotImplementedError
