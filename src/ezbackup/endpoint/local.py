# pyright: standard

"""ezbackup: ezbackup/endpoint/local.py
Create commands with local endpoints.
"""

from .common import Endpoint


class LocalEndpoint(Endpoint):
    """Run destination commands on this machine.

    Used for local backups and self tests, where the destination root is a
    path on the local filesystem.
    """

    def _build_command(self, shell_cmd):
        return ["sh", "-c", shell_cmd]
