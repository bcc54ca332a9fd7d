"""Runs one pass of the stale branch lifecycle over all candidate branches."""

import asyncio
import logging
from datetime import datetime

from branch_reaper.host.base import RepositoryClient
from branch_reaper.host.exceptions import RepositoryError
from branch_reaper.lifecycle import (
    AmbiguousTrackingIssueError,
    BranchLifecycleEngine,
    Decision,
    DecisionKind,
    Step,
)
from branch_reaper.models import ActionOutcome, Branch, Cutoffs, OutcomeKind, PassSummary, TrackingIssue
from branch_reaper.sweep.observers import CompositeObserver, PassObserver

logger = logging.getLogger(__name__)


class RunCoordinator:
    """Orchestrates one pass.

    Coordinates:
    - Listing candidate branches
    - Tracking issue lookup and lifecycle decision per branch
    - Branch deletion followed by issue closure
    - Closing tracking issues left open by an interrupted pass
    """

    def __init__(
        self,
        client: RepositoryClient,
        engine: BranchLifecycleEngine,
        observers: list[PassObserver] | None = None,
        concurrency: int = 1,
        dry_run: bool = False,
        reconcile_orphans: bool = True,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Repository host client
            engine: Lifecycle decision engine
            observers: Receivers of pass events
            concurrency: Maximum branches processed at the same time
            dry_run: Decide but never mutate the host
            reconcile_orphans: Close open tracking issues whose branch is gone
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self.client = client
        self.engine = engine
        self.observer = CompositeObserver(observers)
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.reconcile_orphans = reconcile_orphans

    async def run_pass(self, cutoffs: Cutoffs, now: datetime) -> PassSummary:
        """Run one pass.

        Per-branch host errors are reported as skipped outcomes and never
        abort the pass. Failing to list the candidates, and any unexpected
        error, propagates.

        Args:
            cutoffs: Cutoffs resolved for this pass
            now: Current time

        Returns:
            Summary with one outcome per branch
        """
        summary = PassSummary(started_at=now)
        self.observer.pass_started(cutoffs, now)

        candidates = await self.client.list_stale_branches(cutoffs.branch_cutoff)
        logger.debug(f"Found {len(candidates)} branches that are flagged for deletion")

        summary.outcomes.extend(await self._process_all(candidates, cutoffs, now))

        if self.reconcile_orphans:
            remaining = {
                (outcome.branch.repository_id, outcome.branch.name)
                for outcome in summary.outcomes
                if outcome.branch is not None and (outcome.kind != OutcomeKind.DELETED or outcome.dry_run)
            }
            summary.outcomes.extend(await self.reconcile(remaining))

        summary.completed = True
        self.observer.pass_finished(summary)
        return summary

    async def _process_all(self, branches: list[Branch], cutoffs: Cutoffs, now: datetime) -> list[ActionOutcome]:
        """Process branches sequentially or with bounded concurrency.

        Args:
            branches: Branches to process
            cutoffs: Cutoffs for the pass
            now: Current time

        Returns:
            Outcomes in the same order as ``branches``
        """
        if self.concurrency == 1:
            return [await self.process_branch(branch, cutoffs, now) for branch in branches]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(branch: Branch) -> ActionOutcome:
            async with semaphore:
                return await self.process_branch(branch, cutoffs, now)

        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(bounded(branch)) for branch in branches]
        except ExceptionGroup as eg:
            # Surface the first unexpected error the same way the sequential path does
            raise eg.exceptions[0] from eg

        return [task.result() for task in tasks]

    async def process_branch(self, branch: Branch, cutoffs: Cutoffs, now: datetime) -> ActionOutcome:
        """Look up, decide and act on one branch.

        Args:
            branch: Branch to process
            cutoffs: Cutoffs for the pass
            now: Current time

        Returns:
            The branch's outcome
        """
        logger.debug(f"Processing flagged branch: {branch.display_name}")

        try:
            decision = await self._decide(branch, cutoffs, now)
            outcome = await self._execute(decision)
        except AmbiguousTrackingIssueError as e:
            outcome = ActionOutcome.skipped(branch, str(e))
        except RepositoryError as e:
            outcome = ActionOutcome.skipped(branch, f"{type(e).__name__}: {e}")

        self.observer.branch_processed(outcome)
        return outcome

    async def _decide(self, branch: Branch, cutoffs: Cutoffs, now: datetime) -> Decision:
        """Run the engine, looking up tracking issues only for candidates.

        Args:
            branch: Branch to evaluate
            cutoffs: Cutoffs for the pass
            now: Current time

        Returns:
            The engine's decision
        """
        if not self.engine.is_candidate(branch, cutoffs):
            return self.engine.decide(branch, [], cutoffs, now)

        issues = await self.client.find_tracking_issues(branch)
        for issue in issues:
            logger.debug(f"Found deletion issue: {issue.title}; {issue.url}")

        return self.engine.decide(branch, issues, cutoffs, now)

    async def _execute(self, decision: Decision) -> ActionOutcome:
        """Carry out a decision against the host.

        Args:
            decision: Decision from the engine

        Returns:
            The branch's outcome

        Raises:
            RepositoryError: If the first mutation fails
        """
        branch = decision.branch

        if decision.kind is DecisionKind.LEAVE_ALONE:
            return ActionOutcome(kind=OutcomeKind.LEFT_ALONE, branch=branch)

        if decision.kind is DecisionKind.NO_ISSUE_FOUND:
            return ActionOutcome(kind=OutcomeKind.NO_ISSUE_FOUND, branch=branch)

        if decision.kind is DecisionKind.SKIP:
            return ActionOutcome.skipped(branch, decision.reason or "skipped", issue=decision.issue)

        if decision.kind is DecisionKind.CREATE_ISSUE:
            if self.dry_run:
                return ActionOutcome(kind=OutcomeKind.ISSUE_CREATED, branch=branch, dry_run=True)
            if decision.deletion_due is None:
                raise RuntimeError(f"CREATE_ISSUE decision without a deletion date for {branch.display_name}")
            issue = await self.client.create_tracking_issue(branch, decision.deletion_due)
            return ActionOutcome(kind=OutcomeKind.ISSUE_CREATED, branch=branch, issue=issue)

        issue = decision.issue
        if issue is None:
            raise RuntimeError(f"DELETE decision without a tracking issue for {branch.display_name}")

        if self.dry_run:
            return ActionOutcome(kind=OutcomeKind.DELETED, branch=branch, issue=issue, dry_run=True)

        return await self._run_steps(decision.steps, branch, issue)

    async def _run_steps(self, steps: tuple[Step, ...], branch: Branch, issue: TrackingIssue) -> ActionOutcome:
        """Run the deletion steps in order.

        A failed branch deletion propagates, so the issue is never closed for
        a branch that still exists. A failed issue closure after a successful
        deletion is reported on the DELETED outcome and healed by the next
        pass's reconciliation.

        Args:
            steps: Ordered steps
            branch: Branch to delete
            issue: Its tracking issue

        Returns:
            DELETED outcome
        """
        reason: str | None = None

        for step in steps:
            if step is Step.DELETE_BRANCH:
                await self.client.delete_branch(branch)
            elif step is Step.CLOSE_ISSUE:
                try:
                    await self.client.close_issue(issue.number, issue.repository_id)
                except RepositoryError as e:
                    reason = f"tracking issue #{issue.number} left open: {e}"

        return ActionOutcome(kind=OutcomeKind.DELETED, branch=branch, issue=issue, reason=reason)

    async def reconcile(self, existing: set[tuple[str, str]]) -> list[ActionOutcome]:
        """Close open tracking issues whose branch no longer exists.

        Heals the "branch deleted, issue still open" state left behind by an
        interrupted pass or a failed issue closure.

        Args:
            existing: (repository, branch) pairs known to still exist

        Returns:
            One outcome per orphaned issue
        """
        try:
            issues = await self.client.list_open_tracking_issues()
        except RepositoryError as e:
            logger.warning(f"Could not list tracking issues for reconciliation: {e}")
            return []

        outcomes: list[ActionOutcome] = []
        for issue in issues:
            if (issue.repository_id, issue.branch_name) in existing:
                continue

            try:
                if await self.client.branch_exists(issue.repository_id, issue.branch_name):
                    continue
                if not self.dry_run:
                    await self.client.close_issue(issue.number, issue.repository_id)
                outcome = ActionOutcome(kind=OutcomeKind.ISSUE_CLOSED, issue=issue, dry_run=self.dry_run)
            except RepositoryError as e:
                outcome = ActionOutcome.skipped(None, f"{type(e).__name__}: {e}", issue=issue)

            self.observer.branch_processed(outcome)
            outcomes.append(outcome)

        return outcomes
