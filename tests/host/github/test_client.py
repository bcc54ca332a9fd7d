"""Tests for GitHub client."""

import json
from datetime import datetime, timezone

import httpx
import pytest
import respx

from branch_reaper.config import BranchReaperConfig
from branch_reaper.host import NotFoundError, PermissionDeniedError, TransportError
from branch_reaper.host.github import GitHubClient
from branch_reaper.models import Branch

API = "https://api.github.com"
REPO = f"{API}/repos/acme/widgets"


@pytest.fixture
def config() -> BranchReaperConfig:
    """Create test configuration."""
    return BranchReaperConfig(
        github_token="test-token",
        github_api_url=API,
        github_repositories="acme/widgets",
    )


@pytest.fixture
def branch() -> Branch:
    """Create a stale branch."""
    return Branch(
        name="feature/x",
        repository_id="acme/widgets",
        last_commit_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def branch_json(name: str, sha: str, protected: bool = False) -> dict:
    return {"name": name, "commit": {"sha": sha, "url": f"{REPO}/commits/{sha}"}, "protected": protected}


def commit_json(sha: str, date: str) -> dict:
    return {
        "sha": sha,
        "commit": {
            "author": {"name": "Dev", "email": "dev@example.com", "date": date},
            "committer": {"name": "Dev", "email": "dev@example.com", "date": date},
            "message": "wip",
        },
    }


def issue_json(number: int, title: str, created_at: str = "2024-06-01T00:00:00Z", **extra: object) -> dict:
    return {
        "number": number,
        "title": title,
        "html_url": f"https://github.com/acme/widgets/issues/{number}",
        "state": "open",
        "created_at": created_at,
        "labels": [{"name": "stale-branch"}],
        **extra,
    }


class TestGitHubClient:
    """Tests for GitHubClient transport."""

    def test_init(self, config: BranchReaperConfig) -> None:
        """Test client initialization."""
        client = GitHubClient(config)

        assert client.base_url == API
        assert client.repositories == ["acme/widgets"]
        assert client.label == "stale-branch"
        assert client._client is None

    def test_headers(self, config: BranchReaperConfig) -> None:
        """Test authentication and API version headers."""
        headers = GitHubClient(config)._get_headers()

        assert headers["Authorization"] == "Bearer test-token"
        assert headers["Accept"] == "application/vnd.github+json"
        assert headers["X-GitHub-Api-Version"] == "2022-11-28"

    @pytest.mark.asyncio
    async def test_context_manager(self, config: BranchReaperConfig) -> None:
        """Test async context manager."""
        client = GitHubClient(config)

        async with client:
            assert isinstance(client._client, httpx.AsyncClient)

    @pytest.mark.asyncio
    async def test_request_without_context_manager(self, config: BranchReaperConfig) -> None:
        """Test that request fails without context manager."""
        with pytest.raises(RuntimeError, match="Client not initialized"):
            await GitHubClient(config)._request("GET", "/repos/acme/widgets")

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_token(self, config: BranchReaperConfig) -> None:
        """Test that requests carry the bearer token."""
        route = respx.get(REPO).mock(
            return_value=httpx.Response(200, json={"full_name": "acme/widgets", "default_branch": "main"})
        )

        async with GitHubClient(config) as client:
            assert await client.get_default_branch("acme/widgets") == "main"

        assert route.calls.last.request.headers["Authorization"] == "Bearer test-token"

    @pytest.mark.parametrize("status", [401, 403])
    @pytest.mark.asyncio
    @respx.mock
    async def test_permission_denied(self, config: BranchReaperConfig, status: int) -> None:
        """Test that auth failures map to PermissionDeniedError."""
        respx.get(REPO).mock(return_value=httpx.Response(status, text="Bad credentials"))

        async with GitHubClient(config) as client:
            with pytest.raises(PermissionDeniedError) as exc_info:
                await client._request("GET", "/repos/acme/widgets")

        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    @respx.mock
    async def test_not_found(self, config: BranchReaperConfig) -> None:
        """Test that 404 maps to NotFoundError."""
        respx.get(REPO).mock(return_value=httpx.Response(404, text="Not Found"))

        async with GitHubClient(config) as client:
            with pytest.raises(NotFoundError):
                await client._request("GET", "/repos/acme/widgets")

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error(self, config: BranchReaperConfig) -> None:
        """Test that other failures map to TransportError."""
        respx.get(REPO).mock(return_value=httpx.Response(500, text="Internal Server Error"))

        async with GitHubClient(config) as client:
            with pytest.raises(TransportError) as exc_info:
                await client._request("GET", "/repos/acme/widgets")

        assert exc_info.value.status_code == 500
        assert "API request failed" in str(exc_info.value)

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_error(self, config: BranchReaperConfig) -> None:
        """Test that connection failures map to TransportError."""
        respx.get(REPO).mock(side_effect=httpx.ConnectError)

        async with GitHubClient(config) as client:
            with pytest.raises(TransportError, match="HTTP error"):
                await client._request("GET", "/repos/acme/widgets")

    @pytest.mark.asyncio
    @respx.mock
    async def test_paginate(self, config: BranchReaperConfig) -> None:
        """Test that pages are fetched until a short page."""
        first = [branch_json(f"b{i}", f"sha{i}") for i in range(100)]
        second = [branch_json("last", "shalast")]
        route = respx.get(f"{REPO}/branches").mock(
            side_effect=[httpx.Response(200, json=first), httpx.Response(200, json=second)]
        )

        async with GitHubClient(config) as client:
            items = await client._paginate("/repos/acme/widgets/branches")

        assert len(items) == 101
        assert route.call_count == 2
        assert route.calls[0].request.url.params["page"] == "1"
        assert route.calls[1].request.url.params["page"] == "2"
        assert route.calls[1].request.url.params["per_page"] == "100"


class TestBranches:
    """Tests for branch listing and deletion."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_stale_branches(self, config: BranchReaperConfig) -> None:
        """Test that only branches older than the cutoff are returned."""
        respx.get(REPO).mock(
            return_value=httpx.Response(200, json={"full_name": "acme/widgets", "default_branch": "main"})
        )
        respx.get(f"{REPO}/branches").mock(
            return_value=httpx.Response(
                200,
                json=[
                    branch_json("main", "aaa"),
                    branch_json("release", "bbb", protected=True),
                    branch_json("feature/old", "ccc"),
                    branch_json("feature/new", "ddd"),
                ],
            )
        )
        respx.get(f"{REPO}/commits/ccc").mock(
            return_value=httpx.Response(200, json=commit_json("ccc", "2024-01-01T00:00:00Z"))
        )
        respx.get(f"{REPO}/commits/ddd").mock(
            return_value=httpx.Response(200, json=commit_json("ddd", "2024-06-01T00:00:00Z"))
        )

        async with GitHubClient(config) as client:
            stale = await client.list_stale_branches(datetime(2024, 3, 1, tzinfo=timezone.utc))

        assert [b.name for b in stale] == ["feature/old"]
        assert stale[0].repository_id == "acme/widgets"
        assert stale[0].last_commit_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_stale_branches_excludes_exact_cutoff(self, config: BranchReaperConfig) -> None:
        """Test that a commit exactly at the cutoff is not stale."""
        respx.get(REPO).mock(
            return_value=httpx.Response(200, json={"full_name": "acme/widgets", "default_branch": "main"})
        )
        respx.get(f"{REPO}/branches").mock(
            return_value=httpx.Response(
                200,
                json=[branch_json("feature/edge", "eee"), branch_json("feature/before", "fff")],
            )
        )
        respx.get(f"{REPO}/commits/eee").mock(
            return_value=httpx.Response(200, json=commit_json("eee", "2024-03-01T00:00:00Z"))
        )
        respx.get(f"{REPO}/commits/fff").mock(
            return_value=httpx.Response(200, json=commit_json("fff", "2024-02-29T23:59:59Z"))
        )

        async with GitHubClient(config) as client:
            stale = await client.list_stale_branches(datetime(2024, 3, 1, tzinfo=timezone.utc))

        assert [b.name for b in stale] == ["feature/before"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_includes_protected_when_not_excluded(self) -> None:
        """Test that protected branches are listed when exclusion is off."""
        config = BranchReaperConfig(
            github_token="test-token",
            github_api_url=API,
            github_repositories="acme/widgets",
            exclude_protected_branches=False,
        )
        respx.get(f"{REPO}/branches").mock(
            return_value=httpx.Response(200, json=[branch_json("release", "bbb", protected=True)])
        )
        respx.get(f"{REPO}/commits/bbb").mock(
            return_value=httpx.Response(200, json=commit_json("bbb", "2023-01-01T00:00:00Z"))
        )

        async with GitHubClient(config) as client:
            branches = await client.list_branches("acme/widgets")

        assert len(branches) == 1
        assert branches[0].protected is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete_branch(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test deleting a branch ref."""
        route = respx.delete(f"{REPO}/git/refs/heads/feature/x").mock(return_value=httpx.Response(204))

        async with GitHubClient(config) as client:
            await client.delete_branch(branch)

        assert route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete_missing_branch(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test that GitHub's 422 for a missing ref maps to NotFoundError."""
        respx.delete(f"{REPO}/git/refs/heads/feature/x").mock(
            return_value=httpx.Response(422, json={"message": "Reference does not exist"})
        )

        async with GitHubClient(config) as client:
            with pytest.raises(NotFoundError, match="Branch not found"):
                await client.delete_branch(branch)

    @pytest.mark.asyncio
    @respx.mock
    async def test_branch_exists(self, config: BranchReaperConfig) -> None:
        """Test checking for a branch."""
        respx.get(f"{REPO}/branches/alive").mock(return_value=httpx.Response(200, json=branch_json("alive", "a")))
        respx.get(f"{REPO}/branches/gone").mock(return_value=httpx.Response(404, json={"message": "Not Found"}))

        async with GitHubClient(config) as client:
            assert await client.branch_exists("acme/widgets", "alive") is True
            assert await client.branch_exists("acme/widgets", "gone") is False


class TestTrackingIssues:
    """Tests for tracking issue operations."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_tracking_issues(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test that issues are matched to the branch by title."""
        route = respx.get(f"{REPO}/issues").mock(
            return_value=httpx.Response(
                200,
                json=[
                    issue_json(1, "Stale branch: feature/x"),
                    issue_json(2, "Stale branch: feature/y"),
                    issue_json(3, "Unrelated labelled issue"),
                    issue_json(4, "Stale branch: feature/x", pull_request={"url": "..."}),
                ],
            )
        )

        async with GitHubClient(config) as client:
            issues = await client.find_tracking_issues(branch)

        assert [issue.number for issue in issues] == [1]
        assert issues[0].branch_name == "feature/x"
        assert issues[0].created_at == datetime(2024, 6, 1, tzinfo=timezone.utc)
        params = route.calls.last.request.url.params
        assert params["state"] == "open"
        assert params["labels"] == "stale-branch"

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_tracking_issue_single(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test the single issue lookup."""
        respx.get(f"{REPO}/issues").mock(
            return_value=httpx.Response(200, json=[issue_json(1, "Stale branch: feature/x")])
        )

        async with GitHubClient(config) as client:
            issue = await client.find_tracking_issue(branch)

        assert issue is not None
        assert issue.number == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_issues_fetched_once_per_repository(self, config: BranchReaperConfig) -> None:
        """Test that lookups for several branches share one issue listing."""
        route = respx.get(f"{REPO}/issues").mock(
            return_value=httpx.Response(
                200,
                json=[issue_json(1, "Stale branch: a"), issue_json(2, "Stale branch: b")],
            )
        )
        first = Branch(name="a", repository_id="acme/widgets", last_commit_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        second = Branch(name="b", repository_id="acme/widgets", last_commit_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

        async with GitHubClient(config) as client:
            assert [i.number for i in await client.find_tracking_issues(first)] == [1]
            assert [i.number for i in await client.find_tracking_issues(second)] == [2]

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_cache_follows_close_and_create(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test that closed issues leave the cache and created issues join it."""
        respx.get(f"{REPO}/issues").mock(
            return_value=httpx.Response(200, json=[issue_json(1, "Stale branch: feature/x")])
        )
        respx.patch(f"{REPO}/issues/1").mock(return_value=httpx.Response(200, json={}))
        respx.post(f"{REPO}/issues").mock(
            return_value=httpx.Response(201, json=issue_json(9, "Stale branch: feature/x"))
        )

        async with GitHubClient(config) as client:
            assert len(await client.find_tracking_issues(branch)) == 1

            await client.close_issue(1, "acme/widgets")
            assert await client.find_tracking_issues(branch) == []

            await client.create_tracking_issue(branch, datetime(2024, 6, 22, tzinfo=timezone.utc))
            assert [i.number for i in await client.find_tracking_issues(branch)] == [9]

    @pytest.mark.asyncio
    @respx.mock
    async def test_cache_cleared_between_passes(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test that a new session fetches issues again."""
        route = respx.get(f"{REPO}/issues").mock(return_value=httpx.Response(200, json=[]))
        client = GitHubClient(config)

        async with client:
            await client.find_tracking_issues(branch)
        async with client:
            await client.find_tracking_issues(branch)

        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_open_tracking_issues(self, config: BranchReaperConfig) -> None:
        """Test listing every tracking issue."""
        respx.get(f"{REPO}/issues").mock(
            return_value=httpx.Response(
                200,
                json=[issue_json(1, "Stale branch: a"), issue_json(2, "Stale branch: b")],
            )
        )

        async with GitHubClient(config) as client:
            issues = await client.list_open_tracking_issues()

        assert [(i.repository_id, i.branch_name) for i in issues] == [("acme/widgets", "a"), ("acme/widgets", "b")]

    @pytest.mark.asyncio
    @respx.mock
    async def test_close_issue(self, config: BranchReaperConfig) -> None:
        """Test closing an issue as completed."""
        route = respx.patch(f"{REPO}/issues/42").mock(
            return_value=httpx.Response(200, json=issue_json(42, "Stale branch: feature/x", state="closed"))
        )

        async with GitHubClient(config) as client:
            await client.close_issue(42, "acme/widgets")

        assert json.loads(route.calls.last.request.content) == {"state": "closed", "state_reason": "completed"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_close_issue_forbidden(self, config: BranchReaperConfig) -> None:
        """Test that a forbidden close raises PermissionDeniedError."""
        respx.patch(f"{REPO}/issues/42").mock(return_value=httpx.Response(403, text="Forbidden"))

        async with GitHubClient(config) as client:
            with pytest.raises(PermissionDeniedError):
                await client.close_issue(42, "acme/widgets")

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_tracking_issue(self, config: BranchReaperConfig, branch: Branch) -> None:
        """Test opening a labelled tracking issue."""
        route = respx.post(f"{REPO}/issues").mock(
            return_value=httpx.Response(
                201,
                json=issue_json(7, "Stale branch: feature/x", created_at="2024-06-15T12:00:00Z"),
            )
        )

        async with GitHubClient(config) as client:
            issue = await client.create_tracking_issue(branch, datetime(2024, 6, 22, 12, 0, tzinfo=timezone.utc))

        payload = json.loads(route.calls.last.request.content)
        assert payload["title"] == "Stale branch: feature/x"
        assert payload["labels"] == ["stale-branch"]
        assert "2024-06-22 12:00 UTC" in payload["body"]
        assert issue.number == 7
        assert issue.branch_name == "feature/x"
        assert issue.repository_id == "acme/widgets"
