"""Migration management facade: discovery, planning, batch runs and status."""

from datetime import datetime
from pathlib import Path
from typing import Any

from ..config.loader import MigrationsConfig
from ..database.connection import DatabaseManager
from ..database.ledger import Ledger
from ..database.snapshots import SnapshotManager
from ..schema.backend import ContentSchema
from ..utils.logging import LogContext, MigrationsException, audit_log
from .discovery import DirectoryUnitStorage, UnitLocation, UnitSource, describe
from .exceptions import LoadError, ScaffoldError
from .logging_utils import migration_logger
from .planner import (
    compute_applied,
    compute_latest_contiguous_pending,
    compute_pending,
    find_orphans,
)
from .runner import Runner
from .scaffold import create_unit_file
from .unit import MigrationContext


class Migrator:
    """Manages migration units against one ledger.

    Batch runs call the runner once per identifier and stop at the first
    failure; units applied before the failure stay applied.
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
        self.runner = Runner(ledger, source, self.context)

    @classmethod
    def from_config(
        cls,
        config: MigrationsConfig,
        schema: ContentSchema | None = None,
        db: DatabaseManager | None = None,
    ) -> "Migrator":
        """Wire a migrator from configuration.

        Args:
            config: Loaded configuration.
            schema: Content schema backend of the surrounding CMS, if any.
            db: Existing database manager; one is created from
                ``config.database_url`` otherwise.
        """
        db = db or DatabaseManager(database_url=config.database_url)
        snapshots = None
        if db.is_sqlite:
            snapshots = SnapshotManager(db.engine, config.snapshot_path)

        context = MigrationContext(engine=db.engine, schema=schema, snapshots=snapshots)
        return cls(Ledger(db), DirectoryUnitStorage(config.migrations_path), context)

    def close(self) -> None:
        """Release database connections held by the ledger."""
        self.ledger.db.close()

    def units(self) -> list[UnitLocation]:
        return self.source.list_units()

    def identifiers(self) -> list[str]:
        return [unit.identifier for unit in self.units()]

    def pending(self) -> list[str]:
        """All unapplied units, oldest first."""
        return compute_pending(self.identifiers(), self.ledger.list_applied())

    def latest_pending(self) -> list[str]:
        """Unapplied units newer than the newest applied one."""
        return compute_latest_contiguous_pending(
            self.identifiers(), self.ledger.list_applied()
        )

    def is_applied(self, identifier: str) -> bool:
        return self.ledger.is_applied(identifier)

    def migrate(self, identifier: str) -> None:
        self.runner.apply(identifier)

    def rollback(self, identifier: str) -> None:
        self.runner.revert(identifier)

    def _run_batch(self, identifiers: list[str]) -> list[str]:
        completed: list[str] = []
        for identifier in identifiers:
            try:
                self.runner.apply(identifier)
            except MigrationsException as e:
                e.context["completed"] = list(completed)
                migration_logger.error(
                    f"Stopping after {len(completed)} of {len(identifiers)} migrations",
                    failed=identifier,
                )
                raise
            completed.append(identifier)
        return completed

    @audit_log("migrate_all", LogContext.MIGRATION)
    def migrate_all(self) -> list[str]:
        """Apply every pending unit in order.

        Returns:
            Identifiers applied.
        """
        return self._run_batch(self.pending())

    @audit_log("migrate_latest", LogContext.MIGRATION)
    def migrate_latest(self) -> list[str]:
        """Apply the pending units newer than the newest applied one.

        Returns:
            Identifiers applied.
        """
        return self._run_batch(self.latest_pending())

    def create(
        self, description: str = "", kind: str = "default", now: datetime | None = None
    ) -> Path:
        """Create a new unit file in the unit directory."""
        if not isinstance(self.source, DirectoryUnitStorage):
            raise ScaffoldError("The configured unit source does not store files")
        return create_unit_file(self.source.path, description, kind, now)

    def _describe_row(self, identifier: str) -> dict[str, Any]:
        try:
            info = describe(self.source, identifier)
        except LoadError as e:
            migration_logger.warning(
                f"Cannot read migration {identifier}: {e.message}",
                migration_id=identifier,
            )
            return {"description": None, "kind": "unknown", "error": e.message}
        return {"description": info.description, "kind": info.kind}

    def status(self) -> dict[str, Any]:
        """Applied and pending units with their descriptions."""
        units = self.units()
        identifiers = [unit.identifier for unit in units]
        entries = {entry.identifier: entry for entry in self.ledger.entries()}

        applied = compute_applied(identifiers, entries)
        pending = compute_pending(identifiers, entries)

        rows = []
        for unit in units:
            entry = entries.get(unit.identifier)
            row: dict[str, Any] = {
                "identifier": unit.identifier,
                "location": unit.location,
                "applied": entry is not None,
                "applied_at": entry.applied_at.isoformat() if entry else None,
            }
            row.update(self._describe_row(unit.identifier))
            rows.append(row)

        return {
            "latest_applied": applied[-1] if applied else None,
            "applied_count": len(applied),
            "pending_count": len(pending),
            "latest_pending": compute_latest_contiguous_pending(identifiers, entries),
            "migrations": rows,
            "orphaned": find_orphans(identifiers, entries),
        }
