"""Repository host integration for branch-reaper."""

from branch_reaper.host.base import RepositoryClient
from branch_reaper.host.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    RepositoryError,
    TransportError,
)

__all__ = [
    "NotFoundError",
    "PermissionDeniedError",
    "RepositoryClient",
    "RepositoryError",
    "TransportError",
]
