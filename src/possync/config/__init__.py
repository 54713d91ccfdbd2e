"""Application configuration helpers."""

from __future__ import annotations

from .conflicts import ConflictConfig, get_conflict_config
from .env import int_env_var
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "ConflictConfig",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_conflict_config",
    "get_database_config",
    "get_storage_config",
    "int_env_var",
]
