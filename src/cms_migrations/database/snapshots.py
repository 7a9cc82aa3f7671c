"""Named SQL dump snapshots of the CMS database.

Migration units take a snapshot in ``update()`` and restore it in
``downgrade()`` when a change is easier to undo wholesale than step by step.
The ledger table is left out of every dump so that restoring a snapshot never
rewrites which migrations are applied.

Restoring does not drop tables created after the snapshot was taken; remove
anything your migration added before restoring.
"""

import os
import sqlite3
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path

from sqlalchemy.engine import Engine

from ..core.exceptions import SnapshotError
from ..utils.logging import LogContext, get_logger, log_performance
from .models import LEDGER_TABLE

logger = get_logger(__name__, LogContext.SNAPSHOT)

SNAPSHOT_SUFFIX = ".sql"


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SnapshotManager:
    """Creates and restores ``<name>.sql`` dumps in a snapshot directory."""

    def __init__(
        self,
        engine: Engine,
        directory: Path | str,
        exclude_tables: Iterable[str] = (LEDGER_TABLE,),
    ) -> None:
        self.engine = engine
        self.directory = Path(directory).expanduser()
        self.exclude_tables = frozenset(exclude_tables)

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise SnapshotError(f"Invalid snapshot name '{name}'")
        return self.directory / f"{name}{SNAPSHOT_SUFFIX}"

    def list_snapshots(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{SNAPSHOT_SUFFIX}"))

    def _require_sqlite(self) -> None:
        if self.engine.dialect.name != "sqlite":
            raise SnapshotError(
                f"Snapshots are not supported for the {self.engine.dialect.name} dialect"
            )

    @log_performance(LogContext.SNAPSHOT)
    def make_snapshot(
        self, name: str, description: str = "Made as part of migration script."
    ) -> Path:
        """Dump the database to ``<name>.sql``.

        Raises:
            SnapshotError: If the snapshot already exists or cannot be written.
        """
        path = self.path_for(name)
        if path.exists():
            raise SnapshotError(
                f"DB backup file {path} already exists - please use it or delete it."
            )
        self._require_sqlite()

        header = [
            f"-- Snapshot: {name}",
            f"-- Description: {description}",
            f"-- Created: {datetime.now().isoformat()}",
        ]
        try:
            statements = list(self._dump())
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(path, "x") as f:
                f.write("\n".join(header + statements) + "\n")
        except (OSError, sqlite3.Error) as e:
            raise SnapshotError(f"Could not backup DB: {e}") from e

        logger.info(f"Created DB snapshot '{path.name}'", snapshot=name)
        return path

    @log_performance(LogContext.SNAPSHOT)
    def restore_snapshot(self, name: str) -> None:
        """Replay ``<name>.sql`` against the database.

        Raises:
            SnapshotError: If the snapshot is missing, unreadable or fails to apply.
        """
        path = self.path_for(name)
        if not path.exists():
            raise SnapshotError(f"DB backup file {path} not found - can't downgrade.")
        if not os.access(path, os.R_OK):
            raise SnapshotError(
                f"DB backup file {path} cannot be read - please change permissions "
                "and try again."
            )
        self._require_sqlite()

        script = path.read_text()
        raw = self.engine.raw_connection()
        try:
            raw.driver_connection.executescript(script)
        except sqlite3.Error as e:
            raw.rollback()
            raise SnapshotError(f"Could not restore DB: {e}") from e
        finally:
            raw.close()

        logger.info(f"Restored DB snapshot '{path.name}'", snapshot=name)

    def _dump(self) -> Iterator[str]:
        raw = self.engine.raw_connection()
        try:
            cursor = raw.cursor()
            cursor.execute(
                "SELECT name, type, tbl_name, sql FROM sqlite_master "
                "WHERE sql IS NOT NULL AND name NOT LIKE 'sqlite_%' "
                "ORDER BY CASE type WHEN 'table' THEN 0 ELSE 1 END, name"
            )
            objects = [
                row for row in cursor.fetchall() if row[2] not in self.exclude_tables
            ]

            yield "PRAGMA foreign_keys=OFF;"
            yield "BEGIN TRANSACTION;"
            for name, kind, _table, sql in objects:
                quoted = _quote_identifier(name)
                yield f"DROP {kind.upper()} IF EXISTS {quoted};"
                yield f"{sql};"
                if kind != "table":
                    continue

                cursor.execute(f"PRAGMA table_info({quoted})")
                columns = [row[1] for row in cursor.fetchall()]
                values = " || ',' || ".join(
                    f"quote({_quote_identifier(column)})" for column in columns
                )
                literal_name = quoted.replace("'", "''")
                cursor.execute(
                    f"SELECT 'INSERT INTO {literal_name} VALUES(' || {values} || ')' "
                    f"FROM {quoted}"
                )
                for (statement,) in cursor.fetchall():
                    yield f"{statement};"
            yield "COMMIT;"
            yield "PRAGMA foreign_keys=ON;"
        finally:
            raw.close()
