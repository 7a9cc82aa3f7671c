"""Main CLI entry point for cms-migrations."""

import click

from .. import __version__
from .config import config
from .migrations import migrations
from .snapshots import snapshots


@click.group()
@click.version_option(version=__version__, prog_name="cms-migrations")
@click.option("--config", "-c", help="Configuration file path")
@click.option("--profile", "-p", help="Configuration profile to use")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
# Configuration override flags
@click.option("--migrations-path", help="Override migrations_path setting")
@click.option("--database-url", help="Override database_url setting")
@click.option("--snapshot-path", help="Override snapshot_path setting")
@click.option("--log-level", help="Override log_level setting")
@click.pass_context
def main(
    ctx: click.Context,
    config: str | None,
    profile: str | None,
    verbose: bool,
    quiet: bool,
    json: bool,
    migrations_path: str | None,
    database_url: str | None,
    snapshot_path: str | None,
    log_level: str | None,
) -> None:
    """CMS Migrations - timestamped, reversible changes to a CMS database.

    Use command groups to organize functionality:
    - migrations: Create, apply and roll back migrations
    - snapshots: Make and restore database snapshots
    - config: Manage configuration settings
    """
    if verbose and quiet:
        raise click.UsageError("Cannot use both --verbose and --quiet options")

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["profile"] = profile
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["json"] = json

    overrides = {
        "migrations_path": migrations_path,
        "database_url": database_url,
        "snapshot_path": snapshot_path,
        "log_level": log_level,
    }
    ctx.obj["cli_overrides"] = {k: v for k, v in overrides.items() if v is not None}


main.add_command(migrations)
main.add_command(snapshots)
main.add_command(config)


if __name__ == "__main__":
    main()
