"""Abstract interface to the repository host.

The lifecycle engine and the sweep only talk to the host through this
interface, so tests can substitute a mock and other hosts could be added.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from branch_reaper.lifecycle.exceptions import AmbiguousTrackingIssueError
from branch_reaper.models import Branch, TrackingIssue


class RepositoryClient(ABC):
    """Abstract base class for repository host clients."""

    @abstractmethod
    async def list_stale_branches(self, before: datetime) -> list[Branch]:
        """List branches whose last commit is strictly before ``before``.

        Args:
            before: Branch cutoff

        Returns:
            Candidate branches across all configured repositories

        Raises:
            RepositoryError: If the branches cannot be listed
        """

    @abstractmethod
    async def find_tracking_issues(self, branch: Branch) -> list[TrackingIssue]:
        """Find open tracking issues for a branch.

        Args:
            branch: Branch to look up

        Returns:
            All matching open issues (normally zero or one)

        Raises:
            RepositoryError: If the issues cannot be searched
        """

    async def find_tracking_issue(self, branch: Branch) -> TrackingIssue | None:
        """Find the open tracking issue for a branch.

        Args:
            branch: Branch to look up

        Returns:
            The tracking issue, or None if there is none

        Raises:
            AmbiguousTrackingIssueError: If more than one open issue tracks the branch
            RepositoryError: If the issues cannot be searched
        """
        issues = await self.find_tracking_issues(branch)
        if len(issues) > 1:
            raise AmbiguousTrackingIssueError(branch, issues)
        return issues[0] if issues else None

    @abstractmethod
    async def delete_branch(self, branch: Branch) -> None:
        """Delete a branch.

        Args:
            branch: Branch to delete

        Raises:
            NotFoundError: Branch does not exist
            PermissionDeniedError: Token cannot delete the branch
            TransportError: Request failed
        """

    @abstractmethod
    async def close_issue(self, issue_number: int, repository_id: str) -> None:
        """Close a tracking issue as completed.

        Args:
            issue_number: Issue to close
            repository_id: Repository slug the issue belongs to

        Raises:
            NotFoundError: Issue does not exist
            PermissionDeniedError: Token cannot close the issue
            TransportError: Request failed
        """

    @abstractmethod
    async def create_tracking_issue(self, branch: Branch, cutoff: datetime) -> TrackingIssue:
        """Open a tracking issue announcing the branch's deletion.

        Args:
            branch: Stale branch
            cutoff: Date after which the branch will be deleted

        Returns:
            The created issue

        Raises:
            RepositoryError: If the issue cannot be created
        """

    @abstractmethod
    async def list_open_tracking_issues(self) -> list[TrackingIssue]:
        """List every open tracking issue across configured repositories.

        Returns:
            Open tracking issues

        Raises:
            RepositoryError: If the issues cannot be listed
        """

    @abstractmethod
    async def branch_exists(self, repository_id: str, branch_name: str) -> bool:
        """Check if a branch still exists.

        Args:
            repository_id: Repository slug
            branch_name: Branch name

        Returns:
            True if the branch exists

        Raises:
            RepositoryError: If the lookup fails for a reason other than absence
        """
