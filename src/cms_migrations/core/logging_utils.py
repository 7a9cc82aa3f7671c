"""
Logging utilities for the migration engine components.

This module provides specialized logging functions for:
- Migration lifecycle events (apply, revert, batch runs)
- Ledger writes
"""

from typing import Any

from ..utils.logging import LogContext, get_logger

# Core component loggers
migration_logger = get_logger(__name__ + ".migration", LogContext.MIGRATION)
ledger_logger = get_logger(__name__ + ".ledger", LogContext.LEDGER)
discovery_logger = get_logger(__name__ + ".discovery", LogContext.DISCOVERY)
runner_logger = get_logger(__name__ + ".runner", LogContext.RUNNER)


def log_migration_event(
    identifier: str,
    action: str,
    status: str = "success",
    details: dict[str, Any] | None = None,
) -> None:
    """Log a migration lifecycle event."""
    logger = get_logger(__name__ + ".migration", LogContext.MIGRATION)
    logger.set_migration_id(identifier)

    if status == "success":
        logger.info(f"Migration {action} completed", action=action, details=details or {})
    elif status == "error":
        logger.error(f"Migration {action} failed", action=action, details=details or {})
    else:
        logger.info(
            f"Migration {action} in progress",
            action=action,
            status=status,
            details=details or {},
        )


def log_ledger_operation(
    operation: str,
    identifier: str | None = None,
    record_count: int | None = None,
) -> None:
    """Log a ledger read or write."""
    ledger_logger.debug(
        f"Ledger {operation}",
        operation=operation,
        identifier=identifier,
        record_count=record_count,
    )
