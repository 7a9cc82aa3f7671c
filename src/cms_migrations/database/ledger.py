"""Persistent record of applied migration units."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.exceptions import DuplicateEntryError, NotFoundError, Phase
from ..core.logging_utils import log_ledger_operation
from ..utils.logging import DatabaseError
from .connection import DatabaseManager
from .models import AppliedMigration


@dataclass(frozen=True)
class LedgerEntry:
    """An identifier marked as applied, with the time it was recorded."""

    identifier: str
    applied_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "identifier": self.identifier,
            "applied_at": self.applied_at.isoformat(),
        }


class Ledger:
    """The set of applied migration identifiers.

    Backed by the ``migrations`` table, whose unique constraint on the
    identifier is what turns a double application into an error. Every
    mutation is committed before the method returns.
    """

    def __init__(self, db: DatabaseManager, auto_install: bool = True) -> None:
        """Initialize the ledger.

        Args:
            db: Database manager owning the engine.
            auto_install: Create the ledger table if it does not exist yet.
        """
        self.db = db
        if auto_install:
            self.install()

    def install(self) -> None:
        """Create the ledger table if it does not exist."""
        try:
            AppliedMigration.__table__.create(self.db.engine, checkfirst=True)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create ledger table: {e}") from e
        log_ledger_operation("install")

    def uninstall(self) -> None:
        """Drop the ledger table, forgetting every applied migration."""
        try:
            AppliedMigration.__table__.drop(self.db.engine, checkfirst=True)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to drop ledger table: {e}") from e
        log_ledger_operation("uninstall")

    def record_applied(self, identifier: str) -> None:
        """Mark an identifier as applied.

        Raises:
            DuplicateEntryError: If the identifier is already recorded.
        """
        try:
            with self.db.get_session() as session:
                session.add(AppliedMigration(identifier=identifier))
                session.flush()
        except IntegrityError as e:
            raise DuplicateEntryError(
                "Migration is already recorded as applied",
                identifier=identifier,
                phase=Phase.RECORD,
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to record migration {identifier}: {e}",
                context={"identifier": identifier},
            ) from e

        log_ledger_operation("insert", identifier)

    def record_reverted(self, identifier: str) -> None:
        """Remove an identifier from the applied set.

        Raises:
            NotFoundError: If the identifier is not recorded.
        """
        try:
            with self.db.get_session() as session:
                result = session.execute(
                    delete(AppliedMigration).where(
                        AppliedMigration.identifier == identifier
                    )
                )
                if result.rowcount == 0:
                    raise NotFoundError(
                        "Migration is not recorded as applied",
                        identifier=identifier,
                        phase=Phase.RECORD,
                    )
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to remove migration {identifier}: {e}",
                context={"identifier": identifier},
            ) from e

        log_ledger_operation("delete", identifier)

    def list_applied(self) -> set[str]:
        """Snapshot of all applied identifiers."""
        try:
            with self.db.get_session() as session:
                applied = set(
                    session.scalars(select(AppliedMigration.identifier)).all()
                )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to read the ledger: {e}") from e

        log_ledger_operation("select", record_count=len(applied))
        return applied

    def is_applied(self, identifier: str) -> bool:
        try:
            with self.db.get_session() as session:
                found = session.scalar(
                    select(AppliedMigration.id).where(
                        AppliedMigration.identifier == identifier
                    )
                )
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to look up migration {identifier}: {e}",
                context={"identifier": identifier},
            ) from e
        return found is not None

    def entries(self) -> list[LedgerEntry]:
        """All ledger entries ordered by identifier."""
        try:
            with self.db.get_session() as session:
                rows = session.scalars(
                    select(AppliedMigration).order_by(AppliedMigration.identifier)
                ).all()
                return [LedgerEntry(row.identifier, row.applied_at) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to read the ledger: {e}") from e
