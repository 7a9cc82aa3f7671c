"""Configuration management module."""

from .loader import MigrationsConfig, find_config_file, load_config, save_config

__all__ = ["MigrationsConfig", "load_config", "save_config", "find_config_file"]
