"""CLI utilities for output formatting and common functionality."""

import json
import sys
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

import click

from ..config.loader import MigrationsConfig, load_config
from ..core.exceptions import MigrationError
from ..core.migrator import Migrator
from ..utils.logging import MigrationsException, setup_logging


def error_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator turning errors into a red message and a non-zero exit code."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except MigrationError as e:
            handle_error(str(e))
        except MigrationsException as e:
            handle_error(e.message)
        except (click.ClickException, click.exceptions.Exit):
            raise
        except Exception as e:
            click.echo(click.style(f"Unexpected error: {e}", fg="red"), err=True)
            sys.exit(1)

    return wrapper


def success_message(message: str) -> None:
    """Display a success message."""
    click.echo(click.style(f"✓ {message}", fg="green"))


def output_json(data: Any) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=2, default=str))


def output_table(headers: list[str], rows: list[list[str]]) -> None:
    """Output data as a formatted table."""
    if not rows:
        click.echo("No data to display")
        return

    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < len(col_widths):
                col_widths[i] = max(col_widths[i], len(str(cell)))

    header_row = " | ".join(
        h.ljust(w) for h, w in zip(headers, col_widths, strict=False)
    )
    click.echo(header_row)
    click.echo("-" * len(header_row))

    for row in rows:
        formatted_row = " | ".join(
            str(cell).ljust(w) for cell, w in zip(row, col_widths, strict=False)
        )
        click.echo(formatted_row)


def handle_error(message: str, exit_code: int = 1) -> None:
    """Handle errors with consistent formatting."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(exit_code)


def verbose_echo(ctx: click.Context, message: str) -> None:
    """Echo message only if verbose mode is enabled."""
    if ctx.obj and ctx.obj.get("verbose"):
        click.echo(click.style(f"[VERBOSE] {message}", fg="blue"), err=True)


def quiet_echo(ctx: click.Context, message: str) -> None:
    """Echo message only if not in quiet mode."""
    if not (ctx.obj and ctx.obj.get("quiet")):
        click.echo(message)


def wants_json(ctx: click.Context) -> bool:
    """True for --json, otherwise when the configured output format is json."""
    if ctx.obj and ctx.obj.get("json"):
        return True
    return get_config(ctx).default_output_format == "json"


def format_output(
    ctx: click.Context, data: dict[str, Any], human_format_func: Any = None
) -> None:
    """Format output based on context (JSON or human-readable)."""
    if wants_json(ctx):
        output_json(data)
    elif human_format_func:
        human_format_func(data)
    else:
        for key, value in data.items():
            click.echo(f"{key}: {value}")


def get_config(ctx: click.Context) -> MigrationsConfig:
    """Load configuration using the global CLI options."""
    obj = ctx.obj or {}
    return load_config(obj.get("config"), obj.get("profile"), obj.get("cli_overrides"))


def get_migrator(ctx: click.Context) -> Migrator:
    """Build the migrator for the current invocation and configure logging."""
    obj = ctx.ensure_object(dict)
    if "migrator" not in obj:
        config = get_config(ctx)
        setup_logging(
            log_level="DEBUG" if obj.get("verbose") else config.log_level,
            log_file=Path(config.log_file).expanduser() if config.log_file else None,
            enable_structured=config.structured_logging,
            enable_console=bool(obj.get("verbose")),
        )
        verbose_echo(ctx, f"Migrations directory: {config.migrations_path}")
        obj["migrator"] = Migrator.from_config(config)
        ctx.find_root().call_on_close(obj["migrator"].close)
    return obj["migrator"]
