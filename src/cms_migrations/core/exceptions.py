"""Exceptions raised by the migration engine and its helpers."""

from enum import Enum
from typing import Any

from ..utils.logging import MigrationsException


class Phase(str, Enum):
    """Phase of a migration run an error belongs to."""

    CHECK = "check"
    LOAD = "load"
    EXECUTE = "execute"
    RECORD = "record"


class MigrationError(MigrationsException):
    """Base class for errors tied to one migration identifier."""

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        phase: Phase | None = None,
        context: dict[str, Any] | None = None,
    ):
        context = dict(context or {})
        if identifier is not None:
            context["identifier"] = identifier
        if phase is not None:
            context["phase"] = phase.value
        super().__init__(message, context)
        self.identifier = identifier
        self.phase = phase

    def __str__(self) -> str:
        if self.identifier and self.phase:
            return f"[{self.identifier}] {self.phase.value}: {self.message}"
        if self.identifier:
            return f"[{self.identifier}] {self.message}"
        return self.message


class InvalidNameError(MigrationError):
    """Identifier or unit name does not match the naming grammar."""

    pass


class DuplicateEntryError(MigrationError):
    """Identifier is already present (ledger or unit registry)."""

    pass


class NotFoundError(MigrationError):
    """Identifier is not marked as applied in the ledger."""

    pass


class StorageUnavailableError(MigrationError):
    """Migration unit storage cannot be created or read."""

    pass


class LoadError(MigrationError):
    """Unit logic is missing, malformed or cannot be instantiated."""

    pass


class MigrationExecutionError(MigrationError):
    """The forward or reverse operation of a unit raised.

    The original exception is kept as ``__cause__`` and as ``cause``.
    """

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        phase: Phase | None = Phase.EXECUTE,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, identifier, phase, context)
        self.cause = cause


class LedgerInconsistencyError(MigrationError):
    """The unit operation succeeded but the ledger update failed.

    Requires manual inspection: the ledger no longer matches the live state.
    """

    pass


class LedgerUnavailableError(MigrationError):
    """The ledger could not be read, so the unit was not run."""

    pass


class ScaffoldError(MigrationsException):
    """A new migration unit file could not be created."""

    pass


class SchemaError(MigrationsException):
    """Invalid input to a schema-editing helper."""

    pass


class SnapshotError(MigrationsException):
    """A database snapshot could not be made or restored."""

    pass
