"""Stale branch lifecycle decisions."""

from branch_reaper.lifecycle.engine import (
    GRACE_PERIOD_ACTIVE,
    BranchLifecycleEngine,
    Decision,
    DecisionKind,
    Step,
)
from branch_reaper.lifecycle.exceptions import AmbiguousTrackingIssueError, LifecycleError

__all__ = [
    "GRACE_PERIOD_ACTIVE",
    "AmbiguousTrackingIssueError",
    "BranchLifecycleEngine",
    "Decision",
    "DecisionKind",
    "LifecycleError",
    "Step",
]
