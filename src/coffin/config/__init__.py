"""Application configuration helpers."""

from __future__ import annotations

from coffin.common.logging import configure_logging
from coffin.domain.cascade import CascadeConfig

from .cascade import (
    CASCADE_SETTINGS_ENV,
    CascadeSettings,
    cascade_settings_from_env,
    load_cascade_settings,
    underscore,
)
from .env import require_env_var, require_env_vars
from .errors import (
    ConfigurationError,
    MissingConfigurationError,
    UnknownFlagFieldError,
    UnsupportedFlagTypeError,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CASCADE_SETTINGS_ENV",
    "CascadeConfig",
    "CascadeSettings",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "UnknownFlagFieldError",
    "UnsupportedFlagTypeError",
    "cascade_settings_from_env",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "load_cascade_settings",
    "require_env_var",
    "require_env_vars",
    "underscore",
]
