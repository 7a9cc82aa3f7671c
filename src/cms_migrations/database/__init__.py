"""Database access: connection management, ledger and snapshots."""

from .connection import DatabaseManager
from .ledger import Ledger, LedgerEntry
from .models import LEDGER_TABLE, AppliedMigration, Base
from .snapshots import SnapshotManager

__all__ = [
    "AppliedMigration",
    "Base",
    "DatabaseManager",
    "LEDGER_TABLE",
    "Ledger",
    "LedgerEntry",
    "SnapshotManager",
]
