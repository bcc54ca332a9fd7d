"""Configuration management for branch-reaper."""

from branch_reaper.config.exceptions import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from branch_reaper.config.models import BranchReaperConfig

__all__ = [
    "BranchReaperConfig",
    "ConfigurationError",
    "InvalidConfigurationError",
    "MissingConfigurationError",
]
