"""SQLAlchemy database models for cms-migrations."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

LEDGER_TABLE = "migrations"


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class AppliedMigration(Base):
    """A migration unit whose forward operation is currently live."""

    __tablename__ = LEDGER_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    identifier: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    def __repr__(self) -> str:
        return (
            f"<AppliedMigration(identifier='{self.identifier}', "
            f"applied_at='{self.applied_at}')>"
        )
