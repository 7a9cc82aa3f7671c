"""cms-migrations: timestamped, reversible migrations for a CMS database."""

__version__ = "0.1.0"

from .core.discovery import DirectoryUnitStorage, UnitRegistry
from .core.exceptions import (
    DuplicateEntryError,
    InvalidNameError,
    LedgerInconsistencyError,
    LedgerUnavailableError,
    LoadError,
    MigrationError,
    MigrationExecutionError,
    NotFoundError,
    StorageUnavailableError,
)
from .core.migrator import Migrator
from .core.runner import Runner
from .core.unit import (
    FieldMigration,
    MigrationContext,
    MigrationUnit,
    ModuleMigration,
    TemplateMigration,
)
from .database.ledger import Ledger
from .schema.models import FieldDef, PageRecord, TemplateDef

__all__ = [
    "DirectoryUnitStorage",
    "DuplicateEntryError",
    "FieldDef",
    "FieldMigration",
    "InvalidNameError",
    "Ledger",
    "LedgerInconsistencyError",
    "LedgerUnavailableError",
    "LoadError",
    "MigrationContext",
    "MigrationError",
    "MigrationExecutionError",
    "MigrationUnit",
    "Migrator",
    "ModuleMigration",
    "NotFoundError",
    "PageRecord",
    "Runner",
    "StorageUnavailableError",
    "TemplateDef",
    "TemplateMigration",
    "UnitRegistry",
    "__version__",
]
