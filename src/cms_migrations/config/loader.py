"""Configuration loading and management."""

import os
import warnings
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from ..utils.logging import ConfigurationError

# Suppress Pydantic serialization warnings globally for config operations
warnings.filterwarnings("ignore", message=".*Pydantic serializer warnings.*")

ENV_PREFIX = "CMS_MIGRATIONS_"

CONFIG_SEARCH_PATHS = [
    "./cms-migrations.yaml",
    "./cms-migrations.yml",
    "~/.config/cms-migrations/config.yaml",
    "~/.cms-migrations.yaml",
]


class MigrationsConfig(BaseModel):
    """Configuration model for cms-migrations."""

    # Storage
    migrations_path: str = Field(
        default="site/migrations", description="Directory holding migration files"
    )
    database_url: str | None = Field(
        default=None, description="SQLAlchemy URL of the CMS database"
    )
    snapshot_path: str = Field(
        default="site/assets/backups/database",
        description="Directory for database snapshots",
    )

    # Scaffolding
    default_kind: str = Field(
        default="default", description="Template used by 'migrations new'"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str | None = Field(default=None, description="Log file path")
    structured_logging: bool = Field(
        default=False, description="Emit JSON log records"
    )

    # Output formatting
    default_output_format: Literal["human", "json"] = Field(
        default="human", description="Output format when --json is not given"
    )


def find_config_file(custom_path: str | None = None) -> Path | None:
    """Find configuration file in standard locations."""
    if custom_path:
        path = Path(custom_path).expanduser()
        if path.exists():
            return path
        raise ConfigurationError(f"Config file not found: {custom_path}")

    for location in CONFIG_SEARCH_PATHS:
        path = Path(location).expanduser()
        if path.exists():
            return path

    return None


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    try:
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {config_path}: {e}") from e


ENV_MAPPINGS = {
    f"{ENV_PREFIX}MIGRATIONS_PATH": "migrations_path",
    f"{ENV_PREFIX}DATABASE_URL": "database_url",
    f"{ENV_PREFIX}SNAPSHOT_PATH": "snapshot_path",
    f"{ENV_PREFIX}DEFAULT_KIND": "default_kind",
    f"{ENV_PREFIX}LOG_LEVEL": "log_level",
    f"{ENV_PREFIX}LOG_FILE": "log_file",
    f"{ENV_PREFIX}STRUCTURED_LOGGING": "structured_logging",
    f"{ENV_PREFIX}DEFAULT_OUTPUT_FORMAT": "default_output_format",
}


def load_env_vars() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    for env_var, config_key in ENV_MAPPINGS.items():
        if env_var in os.environ:
            env_value = os.environ[env_var]
            if config_key == "structured_logging":
                config[config_key] = env_value.lower() in ("true", "1", "yes", "on")
            else:
                config[config_key] = env_value

    return config


def load_config(
    config_path: str | None = None,
    profile: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> MigrationsConfig:
    """Load configuration from file and environment variables.

    Precedence order (highest to lowest):
    1. CLI flag overrides
    2. Environment variables
    3. Configuration file (with profile support)
    4. Default values
    """
    config_data: dict[str, Any] = {}

    config_file = find_config_file(config_path)
    if config_file:
        file_data = load_config_file(config_file)
        config_data.update({k: v for k, v in file_data.items() if k != "profiles"})

        if profile:
            profiles = file_data.get("profiles") or {}
            if profile not in profiles:
                raise ConfigurationError(
                    f"Unknown configuration profile: {profile}",
                    context={"config_file": str(config_file)},
                )
            config_data.update(profiles[profile] or {})

    config_data.update(load_env_vars())

    if cli_overrides:
        config_data.update(cli_overrides)

    try:
        return MigrationsConfig(**config_data)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def save_config(config: MigrationsConfig, config_path: str | None = None) -> Path:
    """Save configuration to file."""
    if config_path:
        path = Path(config_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
    else:
        config_dir = Path.home() / ".config" / "cms-migrations"
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / "config.yaml"

    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message=".*Pydantic serializer warnings.*")
        config_dict = config.model_dump()
    with open(path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=True)

    return path
