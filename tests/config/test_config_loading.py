"""Tests for configuration loading from files."""

from pathlib import Path

import pytest

from branch_reaper.config import BranchReaperConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove GitHub variables that may be set in the test environment."""
    for name in ("GITHUB_TOKEN", "GITHUB_REPOSITORIES", "GITHUB_API_URL", "STALE_BRANCH_AGE"):
        monkeypatch.delenv(name, raising=False)


class TestConfigLoading:
    """Tests for loading configuration from .env files."""

    def test_load_from_env_branchreaper(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading config from .env.branchreaper file."""
        monkeypatch.chdir(tmp_path)

        env_file = tmp_path / ".env.branchreaper"
        env_file.write_text(
            """
GITHUB_TOKEN=reaper-token
GITHUB_REPOSITORIES=acme/widgets
STALE_BRANCH_AGE=2 months
STALE_BRANCH_ISSUE_AGE=14 days
CREATE_MISSING_ISSUES=true
"""
        )

        config = BranchReaperConfig()

        assert config.github_token == "reaper-token"
        assert config.github_repositories == ["acme/widgets"]
        assert config.stale_branch_age == "2 months"
        assert config.stale_branch_issue_age == "14 days"
        assert config.create_missing_issues is True

    def test_load_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading config from .env file."""
        monkeypatch.chdir(tmp_path)

        env_file = tmp_path / ".env"
        env_file.write_text(
            """
GITHUB_TOKEN=env-token
GITHUB_REPOSITORIES=acme/widgets
"""
        )

        config = BranchReaperConfig()

        assert config.github_token == "env-token"
        assert config.github_repositories == ["acme/widgets"]

    def test_load_from_environment_variables(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading config from environment variables."""
        monkeypatch.chdir(tmp_path)

        monkeypatch.setenv("GITHUB_TOKEN", "envvar-token")
        monkeypatch.setenv("GITHUB_REPOSITORIES", "acme/widgets,acme/gadgets")

        config = BranchReaperConfig()

        assert config.github_token == "envvar-token"
        assert config.github_repositories == ["acme/widgets", "acme/gadgets"]

    def test_environment_variables_override_files(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables override .env files."""
        monkeypatch.chdir(tmp_path)

        env_file = tmp_path / ".env.branchreaper"
        env_file.write_text(
            """
GITHUB_TOKEN=file-token
GITHUB_REPOSITORIES=acme/file
STALE_BRANCH_AGE=1 year
"""
        )

        monkeypatch.setenv("GITHUB_TOKEN", "envvar-token")
        monkeypatch.setenv("GITHUB_REPOSITORIES", "acme/envvar")

        config = BranchReaperConfig()

        assert config.github_token == "envvar-token"
        assert config.github_repositories == ["acme/envvar"]
        # This should still come from file
        assert config.stale_branch_age == "1 year"

    def test_case_insensitive_env_vars(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variable names are case insensitive."""
        monkeypatch.chdir(tmp_path)

        monkeypatch.setenv("github_token", "token")
        monkeypatch.setenv("GitHub_Repositories", "acme/widgets")

        config = BranchReaperConfig()

        assert config.github_token == "token"
        assert config.github_repositories == ["acme/widgets"]
