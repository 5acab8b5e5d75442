"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class UnknownFlagFieldError(ConfigurationError):
    """Raised when the deletion flag does not name a column of the table."""


class UnsupportedFlagTypeError(ConfigurationError):
    """Raised when the deletion flag column is neither boolean nor timestamp typed."""
