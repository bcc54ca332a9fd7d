"""Per-branch decision logic for the stale branch lifecycle.

A branch moves through these states within one pass::

    Fresh -> Candidate -> IssuePending -> Eligible -> Deleted
               |              |
               |              +-> GracePeriodActive (skip)
               +-> IssueMissing (no-op, or create an issue)

The engine is pure: it never talks to the host and takes "now" explicitly.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from branch_reaper.lifecycle.exceptions import AmbiguousTrackingIssueError
from branch_reaper.models import Branch, Cutoffs, TrackingIssue

logger = logging.getLogger(__name__)

GRACE_PERIOD_ACTIVE = "grace period not elapsed"


class DecisionKind(str, Enum):
    """Terminal action for a branch in one pass."""

    LEAVE_ALONE = "leave_alone"
    NO_ISSUE_FOUND = "no_issue_found"
    CREATE_ISSUE = "create_issue"
    SKIP = "skip"
    DELETE = "delete"


class Step(str, Enum):
    """A host mutation performed for a DELETE decision."""

    DELETE_BRANCH = "delete_branch"
    CLOSE_ISSUE = "close_issue"


class Decision(BaseModel):
    """What should happen to one branch."""

    model_config = ConfigDict(frozen=True)

    kind: DecisionKind
    branch: Branch
    issue: TrackingIssue | None = None
    reason: str | None = None
    deletion_due: datetime | None = None

    @property
    def steps(self) -> tuple[Step, ...]:
        """Get the ordered host mutations for this decision.

        A later step must not run if an earlier one failed.

        Returns:
            Steps in execution order
        """
        if self.kind is DecisionKind.DELETE:
            return (Step.DELETE_BRANCH, Step.CLOSE_ISSUE)
        return ()


class BranchLifecycleEngine:
    """Decides what to do with each branch."""

    def __init__(self, create_missing_issues: bool = False) -> None:
        """Initialize the engine.

        Args:
            create_missing_issues: Open a tracking issue for candidates that have
                none, instead of leaving them unmanaged
        """
        self.create_missing_issues = create_missing_issues

    def is_candidate(self, branch: Branch, cutoffs: Cutoffs) -> bool:
        """Check if a branch is stale enough to be considered for deletion.

        Args:
            branch: Branch to check
            cutoffs: Cutoffs for the pass

        Returns:
            True if the last commit is strictly before the branch cutoff
        """
        return branch.last_commit_at < cutoffs.branch_cutoff

    def grace_period_elapsed(self, issue: TrackingIssue, cutoffs: Cutoffs, now: datetime) -> bool:
        """Check if an issue has been open long enough.

        Args:
            issue: Tracking issue
            cutoffs: Cutoffs for the pass
            now: Current time

        Returns:
            True if ``now`` is strictly after the issue's cutoff
        """
        return now > cutoffs.issue_cutoff(issue)

    def decide(
        self,
        branch: Branch,
        issues: Sequence[TrackingIssue],
        cutoffs: Cutoffs,
        now: datetime,
    ) -> Decision:
        """Decide what to do with a branch.

        Args:
            branch: Branch to evaluate
            issues: Result of the tracking issue lookup
            cutoffs: Cutoffs for the pass
            now: Current time

        Returns:
            The decision for this pass

        Raises:
            AmbiguousTrackingIssueError: If more than one issue tracks the branch
        """
        if not self.is_candidate(branch, cutoffs):
            logger.debug(f"{branch.display_name} is not stale, leaving it alone")
            return Decision(kind=DecisionKind.LEAVE_ALONE, branch=branch)

        if len(issues) > 1:
            raise AmbiguousTrackingIssueError(branch, issues)

        if not issues:
            if self.create_missing_issues:
                return Decision(kind=DecisionKind.CREATE_ISSUE, branch=branch, deletion_due=cutoffs.deletion_date)
            return Decision(kind=DecisionKind.NO_ISSUE_FOUND, branch=branch)

        issue = issues[0]
        deletion_due = cutoffs.issue_cutoff(issue)

        if not self.grace_period_elapsed(issue, cutoffs, now):
            logger.debug(f"{branch.display_name}: issue #{issue.number} is due on {deletion_due.isoformat()}")
            return Decision(
                kind=DecisionKind.SKIP,
                branch=branch,
                issue=issue,
                reason=GRACE_PERIOD_ACTIVE,
                deletion_due=deletion_due,
            )

        return Decision(kind=DecisionKind.DELETE, branch=branch, issue=issue, deletion_due=deletion_due)
