"""Database snapshot commands."""

import click

from ..core.exceptions import SnapshotError
from .utils import (
    error_handler,
    format_output,
    get_migrator,
    quiet_echo,
    success_message,
    wants_json,
)


def _snapshot_manager(ctx: click.Context):
    manager = get_migrator(ctx).context.snapshots
    if manager is None:
        raise SnapshotError("Snapshots are only available for SQLite databases")
    return manager


@click.group()
def snapshots() -> None:
    """Make and restore database snapshots."""
    pass


@snapshots.command()
@click.argument("name")
@click.option("--description", "-d", default="Made from the command line.")
@click.pass_context
@error_handler
def make(ctx: click.Context, name: str, description: str) -> None:
    """Dump the database to a named snapshot."""
    path = _snapshot_manager(ctx).make_snapshot(name, description)
    success_message(f"Created DB snapshot {path}")


@snapshots.command()
@click.argument("name")
@click.pass_context
@error_handler
def restore(ctx: click.Context, name: str) -> None:
    """Restore a named snapshot."""
    _snapshot_manager(ctx).restore_snapshot(name)
    success_message(f"Restored DB snapshot '{name}'")


@snapshots.command(name="list")
@click.pass_context
@error_handler
def list_snapshots(ctx: click.Context) -> None:
    """List available snapshots."""
    names = _snapshot_manager(ctx).list_snapshots()
    if wants_json(ctx):
        format_output(ctx, {"snapshots": names})
    elif not names:
        quiet_echo(ctx, "No snapshots found.")
    else:
        for name in names:
            click.echo(name)
