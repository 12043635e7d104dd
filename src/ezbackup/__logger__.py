# pyright: standard

"""ezbackup: ezbackup/__logger__.py
A common logger for displaying on a rich console, optionally mirrored to syslog.
"""

import logging
import logging.handlers
import os

from rich.console import Console
from rich.logging import RichHandler

SYSLOG_ADDRESS = "/dev/log"
SYSLOG_IDENT = "ezbackup"

# Initialize basic console and handler
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
logger = logging.getLogger("ezbackup")


def create_syslog_handler(address=SYSLOG_ADDRESS):
    """Create a syslog handler on the LOCAL7 facility, or None if unavailable."""
    if isinstance(address, str) and not os.path.exists(address):
        return None
    try:
        handler = logging.handlers.SysLogHandler(
            address=address,
            facility=logging.handlers.SysLogHandler.LOG_LOCAL7,
        )
    except OSError:
        return None
    handler.ident = f"{SYSLOG_IDENT}[{os.getpid()}]: "
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def create_logger(level="INFO", use_syslog=False) -> None:
    """Helper function to setup logging for the command line tools."""
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = Console(stderr=True)
    rich_handler = RichHandler(console=cons, show_path=False)

    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level)
    logger.addHandler(rich_handler)

    if use_syslog:
        syslog_handler = create_syslog_handler()
        if syslog_handler is None:
            logger.warning("Syslog socket %s not available", SYSLOG_ADDRESS)
        else:
            logger.addHandler(syslog_handler)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=[rich_handler],
        force=True,
    )
