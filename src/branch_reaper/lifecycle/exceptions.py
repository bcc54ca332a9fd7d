"""Lifecycle exceptions."""

from collections.abc import Sequence

from branch_reaper.models import Branch, TrackingIssue


class LifecycleError(Exception):
    """Base exception for branch lifecycle errors."""


class AmbiguousTrackingIssueError(LifecycleError):
    """More than one open tracking issue references the same branch."""

    def __init__(self, branch: Branch, issues: Sequence[TrackingIssue]) -> None:
        """Initialize ambiguity error.

        Args:
            branch: Branch with more than one tracking issue
            issues: All matching open issues
        """
        self.branch = branch
        self.issue_numbers = [issue.number for issue in issues]
        numbers = ", ".join(f"#{n}" for n in self.issue_numbers)
        super().__init__(f"Multiple open tracking issues for {branch.display_name}: {numbers}")
