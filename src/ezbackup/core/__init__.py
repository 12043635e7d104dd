"""Core backup operations for ezbackup.

Transfer planning, the rsync transfer backend and the backup run itself.
"""

from .operations import BackupJob, BackupState
from .planning import TransferBackend, TransferUnit, plan_transfers
from .transfer import RsyncBackend, TransferCommand

__all__ = [
    "BackupJob",
    "BackupState",
    "TransferBackend",
    "TransferUnit",
    "plan_transfers",
    "RsyncBackend",
    "TransferCommand",
]
