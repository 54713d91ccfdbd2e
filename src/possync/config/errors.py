"""Errors raised while reading possync settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable.

    ``source`` names the environment variable or file the value came from.
    """

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class MissingConfigurationError(ConfigurationError):
    """A required setting or file does not exist."""
