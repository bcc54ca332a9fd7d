"""Title and body templates for tracking issues.

The title is the link between an issue and its branch, so
``parse_branch_name`` must stay the inverse of ``issue_title``.
"""

from datetime import datetime

from branch_reaper.models import Branch

TITLE_PREFIX = "Stale branch: "


def issue_title(branch_name: str) -> str:
    """Return the tracking issue title for a branch."""
    return f"{TITLE_PREFIX}{branch_name}"


def parse_branch_name(title: str) -> str | None:
    """Return the branch a tracking issue title refers to, or None."""
    if not title.startswith(TITLE_PREFIX):
        return None
    name = title[len(TITLE_PREFIX) :].strip()
    return name or None


def issue_body(branch: Branch, cutoff: datetime) -> str:
    """Return the body of a new tracking issue.

    The body tells readers when the branch went stale and when it will be
    deleted, and how to keep it.
    """
    return (
        f"The branch `{branch.name}` has had no commits since "
        f"{branch.last_commit_at:%Y-%m-%d} and has been flagged as stale.\n\n"
        f"It will be deleted after **{cutoff:%Y-%m-%d %H:%M} UTC** unless new commits are pushed "
        "to it before then.\n\n"
        "To keep the branch, push a commit and close this issue. "
        "This issue is closed automatically when the branch is deleted.\n"
    )
