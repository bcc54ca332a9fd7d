"""GitHub implementation of the repository host."""

from branch_reaper.host.github.client import GitHubClient
from branch_reaper.host.github.templates import issue_body, issue_title, parse_branch_name

__all__ = [
    "GitHubClient",
    "issue_body",
    "issue_title",
    "parse_branch_name",
]
