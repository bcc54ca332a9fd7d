"""Top-level models for branch-reaper."""

from datetime import datetime
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from branch_reaper.duration import Direction, Duration


class Branch(BaseModel):
    """A branch that may be considered for deletion."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Branch name, unique within the repository")
    repository_id: str = Field(description="Repository slug (owner/name)")
    last_commit_at: datetime = Field(description="Timestamp of the branch's last commit")
    protected: bool = Field(default=False, description="Whether the host protects this branch")

    @property
    def display_name(self) -> str:
        """Get the branch name qualified with its repository.

        Returns:
            ``owner/name:branch``
        """
        return f"{self.repository_id}:{self.name}"


class TrackingIssue(BaseModel):
    """An open issue recording the pending deletion of one branch."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(description="Issue number, unique within the repository")
    title: str
    url: str
    created_at: datetime
    branch_name: str = Field(description="Name of the branch this issue tracks")
    repository_id: str = Field(description="Repository slug (owner/name)")


class Cutoffs(BaseModel):
    """Pass-scoped points in time derived from the configured ages."""

    model_config = ConfigDict(frozen=True)

    branch_cutoff: datetime = Field(description="Branches last committed before this are candidates")
    issue_age: Duration = Field(description="Grace period between opening an issue and deleting the branch")
    deletion_date: datetime = Field(description="Deletion date announced in newly created issues")

    @classmethod
    def from_durations(cls, branch_age: Duration, issue_age: Duration, now: datetime) -> Self:
        """Resolve the configured ages against ``now``.

        Args:
            branch_age: How long a branch must be idle to become stale
            issue_age: Grace period between opening an issue and deleting the branch
            now: Start of the pass

        Returns:
            Cutoffs for the pass
        """
        return cls(
            branch_cutoff=branch_age.resolve(Direction.PAST, now),
            issue_age=issue_age,
            deletion_date=issue_age.resolve(Direction.FUTURE, now),
        )

    def issue_cutoff(self, issue: TrackingIssue) -> datetime:
        """Get the instant after which the issue's branch may be deleted.

        Args:
            issue: Open tracking issue

        Returns:
            ``issue.created_at`` plus the grace period
        """
        return self.issue_age.resolve(Direction.FUTURE, issue.created_at)


class OutcomeKind(str, Enum):
    """What happened to a branch during a pass."""

    DELETED = "deleted"
    SKIPPED = "skipped"
    NO_ISSUE_FOUND = "no_issue_found"
    ISSUE_CREATED = "issue_created"
    ISSUE_CLOSED = "issue_closed"
    LEFT_ALONE = "left_alone"

    @property
    def display_name(self) -> str:
        """Get human-readable display name.

        Returns:
            Display name for the outcome
        """
        return self.value.replace("_", " ")


class ActionOutcome(BaseModel):
    """Result of processing one branch in one pass.

    ``branch`` is None only for orphaned issues closed during reconciliation,
    whose branch no longer exists.
    """

    kind: OutcomeKind
    branch: Branch | None = None
    issue: TrackingIssue | None = None
    reason: str | None = Field(default=None, description="Why the branch was skipped, or what is left to do")
    dry_run: bool = Field(default=False, description="True if no mutation was performed")

    @property
    def subject(self) -> str:
        """Get the qualified name of the branch this outcome is about.

        Returns:
            ``owner/name:branch``
        """
        if self.branch is not None:
            return self.branch.display_name
        if self.issue is not None:
            return f"{self.issue.repository_id}:{self.issue.branch_name}"
        return "<unknown>"

    @classmethod
    def skipped(cls, branch: Branch | None, reason: str, issue: TrackingIssue | None = None) -> Self:
        """Build a skipped outcome.

        Args:
            branch: Branch that was skipped
            reason: Why it was skipped
            issue: Tracking issue, if one was found

        Returns:
            Skipped outcome
        """
        return cls(kind=OutcomeKind.SKIPPED, branch=branch, issue=issue, reason=reason)


class PassSummary(BaseModel):
    """Summary of one pass over all candidate branches."""

    started_at: datetime
    outcomes: list[ActionOutcome] = Field(default_factory=list)
    completed: bool = False

    def count(self, kind: OutcomeKind) -> int:
        """Count outcomes of a kind.

        Args:
            kind: Outcome kind to count

        Returns:
            Number of outcomes of that kind
        """
        return sum(1 for outcome in self.outcomes if outcome.kind == kind)

    @property
    def deleted(self) -> int:
        """Number of branches deleted."""
        return self.count(OutcomeKind.DELETED)

    @property
    def skipped(self) -> int:
        """Number of branches skipped."""
        return self.count(OutcomeKind.SKIPPED)

    @property
    def has_skips(self) -> bool:
        """Check if any branch was skipped.

        Returns:
            True if any branch was skipped
        """
        return self.skipped > 0
