# pyright: standard

"""ezbackup: ezbackup/endpoint/__init__.py."""

from ..__logger__ import logger

from .common import Endpoint
from .local import LocalEndpoint
from .ssh import SSHEndpoint, resolve_username


def choose_endpoint(config, local=None, path=None):
    """
    Chooses a suitable endpoint for the configured backup host.

    Args:
        config (Config): The loaded configuration.
        local (bool): Force (True) or forbid (False) local mode. ``None``
            follows ``config.local``.
        path (str): Destination root, only used for display.

    Returns:
        Endpoint: An instance of the appropriate `Endpoint` subclass.
    """
    if local is None:
        local = config.local
    common_config = {"path": path or config.dest_dir}

    if local:
        logger.debug("Creating local endpoint for %s", common_config["path"])
        return LocalEndpoint(config=common_config)

    logger.debug("Creating SSH endpoint for host %s", config.backup_host)
    return SSHEndpoint(
        config.backup_host,
        config=common_config,
        username=config.backup_user,
        ssh_opts=list(config.ssh_opts),
    )


__all__ = [
    "Endpoint",
    "LocalEndpoint",
    "SSHEndpoint",
    "choose_endpoint",
    "resolve_username",
]
