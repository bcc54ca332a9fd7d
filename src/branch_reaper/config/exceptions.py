"""Exceptions raised while loading branch-reaper settings."""


class ConfigurationError(Exception):
    """Base exception for configuration errors."""


class MissingConfigurationError(ConfigurationError):
    """A required setting was not provided or is empty."""


class InvalidConfigurationError(ConfigurationError):
    """A setting was provided but cannot be used."""
