"""GitHub REST API client."""

import asyncio
import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from branch_reaper.config import BranchReaperConfig
from branch_reaper.host.base import RepositoryClient
from branch_reaper.host.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    TransportError,
)
from branch_reaper.host.github.models import (
    GitHubBranch,
    GitHubCommit,
    GitHubIssue,
    GitHubRepository,
)
from branch_reaper.host.github.templates import issue_body, issue_title, parse_branch_name
from branch_reaper.models import Branch, TrackingIssue

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class GitHubClient(RepositoryClient):
    """Client for the GitHub REST API, scoped to the configured repositories."""

    def __init__(self, config: BranchReaperConfig) -> None:
        """Initialize the GitHub client.

        Args:
            config: Application configuration
        """
        self.config = config
        self.base_url = config.github_api_url
        self.repositories = list(config.github_repositories)
        self.label = config.tracking_issue_label
        self._client: httpx.AsyncClient | None = None
        # Open tracking issues per repository, kept for one pass
        self._issue_cache: dict[str, list[TrackingIssue]] = {}
        self._issue_lock = asyncio.Lock()

    def _get_headers(self) -> dict[str, str]:
        """Get headers sent with every request.

        Returns:
            Authorization and API version headers
        """
        return {
            "Authorization": f"Bearer {self.config.github_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry.

        Returns:
            Self
        """
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._get_headers(),
            timeout=self.config.request_timeout,
        )
        self._issue_cache.clear()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit.

        Args:
            exc_type: Exception type
            exc_val: Exception value
            exc_tb: Exception traceback
        """
        if self._client:
            await self._client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an HTTP request to the GitHub API.

        Args:
            method: HTTP method
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for httpx

        Returns:
            Decoded JSON response, or an empty dict for empty responses

        Raises:
            PermissionDeniedError: Authentication or authorization failed
            NotFoundError: Resource does not exist
            TransportError: Request failed for any other reason
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        try:
            response = await self._client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error: {e}") from e

        if response.status_code in (401, 403):
            raise PermissionDeniedError(
                f"Permission denied for {method} {endpoint}: {response.text}",
                status_code=response.status_code,
            )

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {method} {endpoint}", status_code=404)

        if response.status_code >= 400:
            raise TransportError(
                f"API request failed: {response.text}",
                status_code=response.status_code,
            )

        # 204 No Content for ref deletion
        if response.status_code == 204 or not response.content:
            return {}

        return response.json()

    async def _paginate(self, endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Fetch every page of a list endpoint.

        Args:
            endpoint: API endpoint returning a JSON array
            params: Extra query parameters

        Returns:
            Items from all pages
        """
        items: list[dict[str, Any]] = []
        page = 1

        while True:
            page_params = {**(params or {}), "per_page": PAGE_SIZE, "page": page}
            data = await self._request("GET", endpoint, params=page_params)
            items.extend(data)

            logger.debug(f"Fetched {len(data)} items from {endpoint} page {page}")

            if len(data) < PAGE_SIZE:
                break

            page += 1

        return items

    async def get_default_branch(self, repository_id: str) -> str:
        """Get the default branch of a repository.

        Args:
            repository_id: Repository slug

        Returns:
            Default branch name
        """
        data = await self._request("GET", f"/repos/{repository_id}")
        return GitHubRepository(**data).default_branch

    async def get_commit_date(self, repository_id: str, sha: str) -> datetime:
        """Get the committer date of a commit.

        Args:
            repository_id: Repository slug
            sha: Commit SHA

        Returns:
            Committer date
        """
        data = await self._request("GET", f"/repos/{repository_id}/commits/{sha}")
        return GitHubCommit(**data).committed_at

    async def list_branches(self, repository_id: str) -> list[Branch]:
        """List every branch of a repository with its last commit date.

        Protected branches and the default branch are left out when
        ``exclude_protected_branches`` is set.

        Args:
            repository_id: Repository slug

        Returns:
            Branches of the repository
        """
        excluded: set[str] = set()
        if self.config.exclude_protected_branches:
            excluded.add(await self.get_default_branch(repository_id))

        branches: list[Branch] = []
        for raw in await self._paginate(f"/repos/{repository_id}/branches"):
            gh_branch = GitHubBranch(**raw)

            if self.config.exclude_protected_branches and (gh_branch.protected or gh_branch.name in excluded):
                logger.debug(f"Ignoring protected branch {repository_id}:{gh_branch.name}")
                continue

            branches.append(
                Branch(
                    name=gh_branch.name,
                    repository_id=repository_id,
                    last_commit_at=await self.get_commit_date(repository_id, gh_branch.commit.sha),
                    protected=gh_branch.protected,
                )
            )

        return branches

    async def list_stale_branches(self, before: datetime) -> list[Branch]:
        stale: list[Branch] = []
        for repository_id in self.repositories:
            branches = await self.list_branches(repository_id)
            repo_stale = [branch for branch in branches if branch.last_commit_at < before]
            logger.debug(f"{repository_id}: {len(repo_stale)} of {len(branches)} branches are stale")
            stale.extend(repo_stale)
        return stale

    async def _list_tracking_issues(self, repository_id: str) -> list[TrackingIssue]:
        """List open tracking issues of one repository.

        Args:
            repository_id: Repository slug

        Returns:
            Open issues with the tracking label and a tracking title
        """
        params = {"state": "open", "labels": self.label}
        issues: list[TrackingIssue] = []

        for raw in await self._paginate(f"/repos/{repository_id}/issues", params=params):
            gh_issue = GitHubIssue(**raw)
            if gh_issue.is_pull_request:
                continue

            branch_name = parse_branch_name(gh_issue.title)
            if branch_name is None:
                logger.debug(f"Ignoring labelled issue #{gh_issue.number} with unrecognized title")
                continue

            issues.append(
                TrackingIssue(
                    number=gh_issue.number,
                    title=gh_issue.title,
                    url=gh_issue.html_url,
                    created_at=gh_issue.created_at,
                    branch_name=branch_name,
                    repository_id=repository_id,
                )
            )

        return issues

    async def _cached_tracking_issues(self, repository_id: str) -> list[TrackingIssue]:
        """Get open tracking issues of one repository, fetching them once per pass.

        Args:
            repository_id: Repository slug

        Returns:
            Cached open tracking issues
        """
        async with self._issue_lock:
            if repository_id not in self._issue_cache:
                self._issue_cache[repository_id] = await self._list_tracking_issues(repository_id)
            return self._issue_cache[repository_id]

    async def find_tracking_issues(self, branch: Branch) -> list[TrackingIssue]:
        issues = await self._cached_tracking_issues(branch.repository_id)
        return [issue for issue in issues if issue.branch_name == branch.name]

    async def list_open_tracking_issues(self) -> list[TrackingIssue]:
        issues: list[TrackingIssue] = []
        for repository_id in self.repositories:
            repo_issues = await self._list_tracking_issues(repository_id)
            self._issue_cache[repository_id] = repo_issues
            issues.extend(repo_issues)
        return issues

    async def delete_branch(self, branch: Branch) -> None:
        ref = quote(branch.name, safe="/")
        try:
            await self._request("DELETE", f"/repos/{branch.repository_id}/git/refs/heads/{ref}")
        except TransportError as e:
            # GitHub answers 422 "Reference does not exist" for missing refs
            if e.status_code == 422:
                raise NotFoundError(f"Branch not found: {branch.display_name}", status_code=422) from e
            raise

        logger.debug(f"Deleted ref heads/{branch.name} in {branch.repository_id}")

    async def close_issue(self, issue_number: int, repository_id: str) -> None:
        payload = {"state": "closed", "state_reason": "completed"}
        await self._request("PATCH", f"/repos/{repository_id}/issues/{issue_number}", json=payload)
        if repository_id in self._issue_cache:
            self._issue_cache[repository_id] = [
                issue for issue in self._issue_cache[repository_id] if issue.number != issue_number
            ]
        logger.debug(f"Closed issue #{issue_number} in {repository_id}")

    async def create_tracking_issue(self, branch: Branch, cutoff: datetime) -> TrackingIssue:
        payload = {
            "title": issue_title(branch.name),
            "body": issue_body(branch, cutoff),
            "labels": [self.label],
        }
        data = await self._request("POST", f"/repos/{branch.repository_id}/issues", json=payload)
        gh_issue = GitHubIssue(**data)

        issue = TrackingIssue(
            number=gh_issue.number,
            title=gh_issue.title,
            url=gh_issue.html_url,
            created_at=gh_issue.created_at,
            branch_name=branch.name,
            repository_id=branch.repository_id,
        )
        if branch.repository_id in self._issue_cache:
            self._issue_cache[branch.repository_id].append(issue)
        return issue

    async def branch_exists(self, repository_id: str, branch_name: str) -> bool:
        try:
            await self._request("GET", f"/repos/{repository_id}/branches/{quote(branch_name, safe='/')}")
        except NotFoundError:
            return False
        return True
