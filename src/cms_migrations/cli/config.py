"""Configuration management commands."""

from typing import Any, get_args

import click

from ..config.loader import (
    CONFIG_SEARCH_PATHS,
    ENV_MAPPINGS,
    MigrationsConfig,
    find_config_file,
    load_config_file,
    save_config,
)
from .utils import error_handler, format_output, get_config, handle_error, quiet_echo


@click.group()
def config() -> None:
    """Manage configuration settings."""
    pass


@config.command()
@click.pass_context
@error_handler
def show(ctx: click.Context) -> None:
    """Show current configuration."""
    format_output(ctx, {"configuration": get_config(ctx).model_dump()})


@config.command()
@click.argument("key")
@click.pass_context
@error_handler
def get(ctx: click.Context, key: str) -> None:
    """Get a configuration value."""
    config_obj = get_config(ctx)
    if key not in MigrationsConfig.model_fields:
        handle_error(f"Unknown configuration key: {key}")
    format_output(ctx, {key: getattr(config_obj, key)})


def _convert(key: str, value: str) -> Any:
    annotation = MigrationsConfig.model_fields[key].annotation
    types = get_args(annotation) or (annotation,)
    if bool in types:
        return value.lower() in ("true", "1", "yes", "on")
    if type(None) in types and value.lower() in ("", "none", "null"):
        return None
    return value


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
@error_handler
def set_value(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value and save it."""
    if key not in MigrationsConfig.model_fields:
        handle_error(f"Unknown configuration key: {key}")

    config_dict = get_config(ctx).model_dump()
    config_dict[key] = _convert(key, value)
    config_obj = MigrationsConfig(**config_dict)

    config_path = ctx.obj.get("config") if ctx.obj else None
    saved_path = save_config(config_obj, config_path)

    quiet_echo(ctx, f"Configuration updated: {key}={config_dict[key]}")
    quiet_echo(ctx, f"Saved to: {saved_path}")


@config.command()
@click.pass_context
@error_handler
def validate(ctx: click.Context) -> None:
    """Validate current configuration."""
    get_config(ctx)
    quiet_echo(ctx, "Configuration is valid")


@config.command()
@click.option("--path", help="Custom path for config file")
@click.pass_context
@error_handler
def init(ctx: click.Context, path: str | None) -> None:
    """Initialize configuration file with defaults."""
    saved_path = save_config(MigrationsConfig(), path)
    quiet_echo(ctx, f"Configuration initialized at: {saved_path}")


@config.command()
@click.pass_context
@error_handler
def profiles(ctx: click.Context) -> None:
    """List available configuration profiles."""
    config_path = ctx.obj.get("config") if ctx.obj else None
    config_file = find_config_file(config_path)

    if not config_file:
        quiet_echo(ctx, "No configuration file found. Use 'config init' to create one.")
        return

    profiles_data = load_config_file(config_file).get("profiles") or {}
    if not profiles_data:
        quiet_echo(ctx, "No profiles defined in configuration file.")
        return

    format_output(ctx, {"profiles": list(profiles_data.keys())})


@config.command()
def locations() -> None:
    """Show configuration file search locations."""
    click.echo("Configuration file search locations (in order):")
    for i, location in enumerate(CONFIG_SEARCH_PATHS, 1):
        click.echo(f"  {i}. {location}")

    click.echo("\nEnvironment variables:")
    for var in ENV_MAPPINGS:
        click.echo(f"  {var}")
