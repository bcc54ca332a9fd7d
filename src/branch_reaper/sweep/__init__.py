"""Pass orchestration and reporting."""

from branch_reaper.sweep.coordinator import RunCoordinator
from branch_reaper.sweep.observers import (
    CompositeObserver,
    LoggingObserver,
    OutcomeCounter,
    PassObserver,
)

__all__ = [
    "CompositeObserver",
    "LoggingObserver",
    "OutcomeCounter",
    "PassObserver",
    "RunCoordinator",
]
