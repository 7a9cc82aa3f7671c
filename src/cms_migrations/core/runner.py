"""Applies or reverts one migration unit and updates the ledger."""

from ..database.ledger import Ledger
from ..utils.logging import DatabaseError
from .discovery import UnitSource
from .exceptions import (
    DuplicateEntryError,
    LedgerInconsistencyError,
    LedgerUnavailableError,
    LoadError,
    MigrationExecutionError,
    NotFoundError,
    Phase,
)
from .logging_utils import log_migration_event, runner_logger
from .naming import validate_identifier
from .unit import MigrationContext


class Runner:
    """Runs exactly one unit per call.

    The ledger is written strictly after the unit's operation returns. If the
    operation raises, the ledger is left alone; if the ledger write fails
    after a successful operation, LedgerInconsistencyError is raised and the
    database needs a manual look.
    """

    def __init__(
        self,
        ledger: Ledger,
        source: UnitSource,
        context: MigrationContext | None = None,
    ) -> None:
        self.ledger = ledger
        self.source = source
        self.context = context or MigrationContext()

    def _is_applied(self, identifier: str) -> bool:
        try:
            return self.ledger.is_applied(identifier)
        except DatabaseError as e:
            raise LedgerUnavailableError(
                f"Could not read the ledger: {e.message}", identifier, Phase.CHECK
            ) from e

    def _load(self, identifier: str):
        factory = self.source.load(identifier)
        try:
            unit = factory(self.context)
        except Exception as e:
            raise LoadError(
                f"Could not instantiate migration: {e}", identifier, Phase.LOAD
            ) from e

        if not (
            callable(getattr(unit, "update", None))
            and callable(getattr(unit, "downgrade", None))
        ):
            raise LoadError(
                "Migration does not provide update() and downgrade()",
                identifier,
                Phase.LOAD,
            )
        return unit

    def apply(self, identifier: str) -> None:
        """Run the unit's ``update()`` and record it as applied.

        Raises:
            InvalidNameError: Malformed identifier.
            DuplicateEntryError: Already applied; nothing is run.
            LedgerUnavailableError: The ledger could not be read; nothing is run.
            LoadError: Unit missing or broken; ledger unchanged.
            MigrationExecutionError: ``update()`` raised; ledger unchanged.
            LedgerInconsistencyError: ``update()`` ran but recording failed.
        """
        validate_identifier(identifier)
        if self._is_applied(identifier):
            raise DuplicateEntryError(
                "Migration is already applied", identifier, Phase.CHECK
            )

        unit = self._load(identifier)
        runner_logger.debug("Running update()", migration_id=identifier)
        try:
            unit.update()
        except Exception as e:
            log_migration_event(identifier, "apply", "error", {"error": str(e)})
            raise MigrationExecutionError(
                f"update() failed: {e}", identifier, cause=e
            ) from e

        try:
            self.ledger.record_applied(identifier)
        except Exception as e:
            log_migration_event(identifier, "apply", "error", {"error": str(e)})
            raise LedgerInconsistencyError(
                "update() completed but the ledger could not record it; "
                f"check the database and fix the ledger by hand ({e})",
                identifier,
                Phase.RECORD,
            ) from e

        log_migration_event(identifier, "apply")

    def revert(self, identifier: str) -> None:
        """Run the unit's ``downgrade()`` and remove it from the ledger.

        Raises:
            InvalidNameError: Malformed identifier.
            NotFoundError: Not applied; ``downgrade()`` is not run.
            LedgerUnavailableError: The ledger could not be read; nothing is run.
            LoadError: Unit missing or broken; ledger unchanged.
            MigrationExecutionError: ``downgrade()`` raised; ledger unchanged.
            LedgerInconsistencyError: ``downgrade()`` ran but the ledger
                entry could not be removed.
        """
        validate_identifier(identifier)
        if not self._is_applied(identifier):
            raise NotFoundError(
                "Migration is not applied, nothing to roll back",
                identifier,
                Phase.CHECK,
            )

        unit = self._load(identifier)
        runner_logger.debug("Running downgrade()", migration_id=identifier)
        try:
            unit.downgrade()
        except Exception as e:
            log_migration_event(identifier, "revert", "error", {"error": str(e)})
            raise MigrationExecutionError(
                f"downgrade() failed: {e}", identifier, cause=e
            ) from e

        try:
            self.ledger.record_reverted(identifier)
        except Exception as e:
            log_migration_event(identifier, "revert", "error", {"error": str(e)})
            raise LedgerInconsistencyError(
                "downgrade() completed but the ledger entry could not be removed; "
                f"check the database and fix the ledger by hand ({e})",
                identifier,
                Phase.RECORD,
            ) from e

        log_migration_event(identifier, "revert")
