"""Models for GitHub REST API responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CommitRef(BaseModel):
    """Commit pointer embedded in a branch listing."""

    model_config = {"extra": "ignore"}

    sha: str


class GitHubBranch(BaseModel):
    """Entry of ``GET /repos/{owner}/{repo}/branches``."""

    model_config = {"extra": "ignore"}

    name: str
    commit: CommitRef
    protected: bool = False


class CommitSignature(BaseModel):
    """Author or committer of a commit."""

    model_config = {"extra": "ignore"}

    name: str | None = None
    date: datetime


class CommitDetails(BaseModel):
    """Git data of a commit."""

    model_config = {"extra": "ignore"}

    committer: CommitSignature
    author: CommitSignature | None = None


class GitHubCommit(BaseModel):
    """Response of ``GET /repos/{owner}/{repo}/commits/{ref}``."""

    model_config = {"extra": "ignore"}

    sha: str
    commit: CommitDetails

    @property
    def committed_at(self) -> datetime:
        """Get the committer date.

        Returns:
            When the commit was last applied (rebases update this)
        """
        return self.commit.committer.date


class GitHubRepository(BaseModel):
    """Response of ``GET /repos/{owner}/{repo}``."""

    model_config = {"extra": "ignore"}

    full_name: str
    default_branch: str


class GitHubIssue(BaseModel):
    """Entry of ``GET /repos/{owner}/{repo}/issues``."""

    model_config = {"extra": "ignore"}

    number: int
    title: str
    html_url: str
    state: str = "open"
    created_at: datetime
    labels: list[dict[str, Any]] = Field(default_factory=list)
    pull_request: dict[str, Any] | None = Field(
        default=None,
        description="Present when the entry is a pull request",
    )

    @property
    def is_pull_request(self) -> bool:
        """Check if the entry is a pull request rather than an issue.

        Returns:
            True for pull requests
        """
        return self.pull_request is not None
