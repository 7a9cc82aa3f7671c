"""Migration management commands."""

from collections.abc import Callable
from typing import Any

import click

from ..core.discovery import describe
from ..core.naming import UNIT_NAME_PREFIX, unit_name_to_identifier
from ..core.scaffold import available_kinds
from ..utils.logging import MigrationsException
from .utils import (
    error_handler,
    format_output,
    get_config,
    get_migrator,
    output_table,
    quiet_echo,
    success_message,
    wants_json,
)


def _to_identifier(value: str) -> str:
    """Accept either an identifier or a unit class name."""
    if value.startswith(UNIT_NAME_PREFIX):
        return unit_name_to_identifier(value)
    return value


def _print_status(data: dict[str, Any]) -> None:
    rows = [
        [
            row["identifier"],
            "yes" if row["applied"] else "no",
            row["kind"],
            row["description"] if row["description"] is not None else f"! {row['error']}",
        ]
        for row in data["migrations"]
    ]
    if not rows:
        click.echo("No migrations found.")
    else:
        output_table(["Identifier", "Applied", "Kind", "Description"], rows)

    click.echo(
        f"\n{data['applied_count']} applied, {data['pending_count']} pending"
        f" (latest applied: {data['latest_applied'] or 'none'})"
    )
    for identifier in data["orphaned"]:
        click.echo(
            click.style(
                f"Warning: {identifier} is recorded as applied but has no file",
                fg="yellow",
            )
        )


@click.group()
def migrations() -> None:
    """Create, apply and roll back migrations."""
    pass


@migrations.command()
@click.pass_context
@error_handler
def status(ctx: click.Context) -> None:
    """Show every migration and whether it is applied."""
    format_output(ctx, get_migrator(ctx).status(), _print_status)


@migrations.command()
@click.option(
    "--latest",
    is_flag=True,
    help="Only the migrations newer than the newest applied one",
)
@click.pass_context
@error_handler
def pending(ctx: click.Context, latest: bool) -> None:
    """List migrations that are not applied."""
    migrator = get_migrator(ctx)
    identifiers = migrator.latest_pending() if latest else migrator.pending()

    if wants_json(ctx):
        format_output(ctx, {"pending": identifiers})
    elif not identifiers:
        quiet_echo(ctx, "No pending migrations.")
    else:
        for identifier in identifiers:
            click.echo(identifier)


@migrations.command()
@click.argument("description", required=False, default="")
@click.option(
    "--kind",
    "-k",
    type=click.Choice(available_kinds()),
    help="Template to create the migration from",
)
@click.pass_context
@error_handler
def new(ctx: click.Context, description: str, kind: str | None) -> None:
    """Create a new migration file named after the current time."""
    kind = kind or get_config(ctx).default_kind
    path = get_migrator(ctx).create(description, kind)

    if wants_json(ctx):
        format_output(ctx, {"path": str(path), "kind": kind})
    else:
        success_message(f"Created {path}")


@migrations.command()
@click.argument("identifier")
@click.pass_context
@error_handler
def migrate(ctx: click.Context, identifier: str) -> None:
    """Apply one migration (identifier or class name)."""
    identifier = _to_identifier(identifier)
    get_migrator(ctx).migrate(identifier)
    success_message(f"Migrated {identifier}")


@migrations.command()
@click.argument("identifier")
@click.pass_context
@error_handler
def rollback(ctx: click.Context, identifier: str) -> None:
    """Roll back one migration (identifier or class name)."""
    identifier = _to_identifier(identifier)
    get_migrator(ctx).rollback(identifier)
    success_message(f"Rolled back {identifier}")


def _report_applied(ctx: click.Context, applied: list[str]) -> None:
    if wants_json(ctx):
        format_output(ctx, {"applied": applied})
    else:
        for identifier in applied:
            success_message(f"Migrated {identifier}")


def _run_batch(ctx: click.Context, batch: Callable[[], list[str]]) -> None:
    try:
        applied = batch()
    except MigrationsException as e:
        completed = e.context.get("completed", [])
        if completed:
            _report_applied(ctx, completed)
        raise

    if not applied and not wants_json(ctx):
        quiet_echo(ctx, "No pending migrations to apply.")
    else:
        _report_applied(ctx, applied)


@migrations.command(name="all")
@click.pass_context
@error_handler
def migrate_all(ctx: click.Context) -> None:
    """Apply every pending migration, oldest first, stopping at the first failure."""
    _run_batch(ctx, get_migrator(ctx).migrate_all)


@migrations.command()
@click.pass_context
@error_handler
def latest(ctx: click.Context) -> None:
    """Apply the migrations newer than the newest applied one."""
    _run_batch(ctx, get_migrator(ctx).migrate_latest)


@migrations.command()
@click.argument("identifier")
@click.pass_context
@error_handler
def show(ctx: click.Context, identifier: str) -> None:
    """Show description, kind and state of one migration."""
    identifier = _to_identifier(identifier)
    migrator = get_migrator(ctx)
    info = describe(migrator.source, identifier)

    format_output(
        ctx,
        {
            "identifier": info.identifier,
            "description": info.description,
            "kind": info.kind,
            "applied": migrator.is_applied(identifier),
        },
    )


@migrations.command()
@click.pass_context
@error_handler
def install(ctx: click.Context) -> None:
    """Create the ledger table."""
    get_migrator(ctx).ledger.install()
    success_message("Ledger table installed")


@migrations.command()
@click.confirmation_option(prompt="This forgets which migrations are applied. Continue?")
@click.pass_context
@error_handler
def uninstall(ctx: click.Context) -> None:
    """Drop the ledger table."""
    get_migrator(ctx).ledger.uninstall()
    success_message("Ledger table dropped")
