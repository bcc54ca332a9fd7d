"""Repository host exceptions.

Raised by any ``RepositoryClient`` implementation. The sweep treats all of
them as per-branch failures.
"""


class RepositoryError(Exception):
    """Base exception for repository host errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize repository error.

        Args:
            message: Error message
            status_code: HTTP status code if available
        """
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RepositoryError):
    """The branch, issue or repository does not exist."""


class PermissionDeniedError(RepositoryError):
    """The token is missing, invalid, or lacks the required scope."""


class TransportError(RepositoryError):
    """The request failed for any other reason."""
