"""branch-reaper: stale branch cleanup for GitHub repositories."""

__version__ = "0.1.0"
