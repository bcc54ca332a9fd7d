"""Observers notified as a pass progresses.

The coordinator never prints or logs outcomes itself; it hands them to
observers. The CLI wires ``LoggingObserver`` and ``OutcomeCounter``, tests
can capture outcomes with their own observer.
"""

import logging
import time
from collections import Counter
from datetime import datetime

from branch_reaper.models import ActionOutcome, Cutoffs, OutcomeKind, PassSummary

logger = logging.getLogger(__name__)


class PassObserver:
    """Receives pass events. Every hook is a no-op by default."""

    def pass_started(self, cutoffs: Cutoffs, now: datetime) -> None:
        """Called once before any branch is processed."""

    def branch_processed(self, outcome: ActionOutcome) -> None:
        """Called once per outcome, as soon as it is known."""

    def pass_finished(self, summary: PassSummary) -> None:
        """Called once after the last outcome, only if the pass completed."""


class CompositeObserver(PassObserver):
    """Fans events out to several observers in order."""

    def __init__(self, observers: list[PassObserver] | None = None) -> None:
        self.observers = list(observers or [])

    def pass_started(self, cutoffs: Cutoffs, now: datetime) -> None:
        for observer in self.observers:
            observer.pass_started(cutoffs, now)

    def branch_processed(self, outcome: ActionOutcome) -> None:
        for observer in self.observers:
            observer.branch_processed(outcome)

    def pass_finished(self, summary: PassSummary) -> None:
        for observer in self.observers:
            observer.pass_finished(summary)


class LoggingObserver(PassObserver):
    """Logs every outcome once, at a level matching its severity."""

    def pass_started(self, cutoffs: Cutoffs, now: datetime) -> None:
        logger.info(
            f"Starting pass at {now.isoformat()}: branches idle since before "
            f"{cutoffs.branch_cutoff.isoformat()} are stale, grace period is {cutoffs.issue_age}"
        )

    def branch_processed(self, outcome: ActionOutcome) -> None:
        prefix = "[dry-run] " if outcome.dry_run else ""
        issue = f" (issue #{outcome.issue.number})" if outcome.issue else ""

        if outcome.kind == OutcomeKind.SKIPPED:
            logger.warning(f"{prefix}Skipped {outcome.subject}{issue}: {outcome.reason}")
        elif outcome.kind == OutcomeKind.DELETED:
            logger.info(f"{prefix}Deleted stale branch {outcome.subject}{issue}")
            if outcome.reason:
                logger.warning(f"{outcome.subject}: {outcome.reason}")
        elif outcome.kind == OutcomeKind.ISSUE_CREATED:
            logger.info(f"{prefix}Opened tracking issue for {outcome.subject}{issue}")
        elif outcome.kind == OutcomeKind.ISSUE_CLOSED:
            logger.info(f"{prefix}Closed orphaned tracking issue for {outcome.subject}{issue}")
        elif outcome.kind == OutcomeKind.NO_ISSUE_FOUND:
            logger.info(f"No tracking issue found for stale branch {outcome.subject}")
        else:
            logger.debug(f"Left {outcome.subject} alone")

    def pass_finished(self, summary: PassSummary) -> None:
        logger.info(
            f"Pass completed: {len(summary.outcomes)} outcomes, "
            f"{summary.deleted} deleted, {summary.skipped} skipped"
        )


class OutcomeCounter(PassObserver):
    """Counts outcomes per kind and times each pass."""

    def __init__(self) -> None:
        self.counts: Counter[OutcomeKind] = Counter()
        self.passes_completed = 0
        self.last_duration: float | None = None
        self._started: float | None = None

    def pass_started(self, cutoffs: Cutoffs, now: datetime) -> None:
        self._started = time.monotonic()

    def branch_processed(self, outcome: ActionOutcome) -> None:
        self.counts[outcome.kind] += 1

    def pass_finished(self, summary: PassSummary) -> None:
        self.passes_completed += 1
        if self._started is not None:
            self.last_duration = time.monotonic() - self._started
            self._started = None
