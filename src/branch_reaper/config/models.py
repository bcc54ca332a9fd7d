"""Configuration models."""

import re
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from branch_reaper.config.exceptions import InvalidConfigurationError, MissingConfigurationError
from branch_reaper.duration import Duration, MalformedDurationError, parse_duration

ENV_FILES = [".env.branchreaper", ".env"]

_REPOSITORY_SLUG = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


class BranchReaperConfig(BaseSettings):
    """Configuration for branch-reaper."""

    # GitHub settings
    github_token: str = Field(description="GitHub token with contents and issues write access")
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (override for GitHub Enterprise)",
    )
    github_repositories: Annotated[list[str], NoDecode] = Field(
        description="Comma-separated repositories to sweep (owner/name)",
    )

    # Lifecycle settings
    stale_branch_age: str = Field(
        default="3 months",
        description="How long a branch must go without commits to be flagged",
    )
    stale_branch_issue_age: str = Field(
        default="7 days",
        description="How long a tracking issue stays open before the branch is deleted",
    )
    create_missing_issues: bool = Field(
        default=False,
        description="Open a tracking issue for flagged branches that have none",
    )
    reconcile_orphaned_issues: bool = Field(
        default=True,
        description="Close tracking issues whose branch no longer exists",
    )
    exclude_protected_branches: bool = Field(
        default=True,
        description="Never flag protected branches or the default branch",
    )
    tracking_issue_label: str = Field(
        default="stale-branch",
        description="Label that marks tracking issues",
    )

    # Transport settings
    concurrency: int = Field(default=1, ge=1, description="Branches processed at the same time")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(
        env_file=ENV_FILES,
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(
        self,
        _env_file: str | Path | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize configuration.

        Args:
            _env_file: Optional path to custom env file (use env_file for public API)
            **kwargs: Additional configuration values

        Raises:
            InvalidConfigurationError: If the env file is specified but does not exist
        """
        env_file = kwargs.pop("env_file", _env_file)

        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.exists():
                raise InvalidConfigurationError(f"Environment file not found: {env_file}")
            kwargs["_custom_env_file"] = env_path

        super().__init__(**kwargs)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use a custom env file in place of the default ones when given.

        Args:
            settings_cls: The settings class being instantiated
            init_settings: Settings from __init__ arguments
            env_settings: Settings from environment variables
            dotenv_settings: Settings from .env files
            file_secret_settings: Settings from secret files

        Returns:
            Tuple of settings sources in priority order
        """
        # init_kwargs exists at runtime but may not be in type stubs
        init_kwargs = init_settings.init_kwargs  # type: ignore[attr-defined]
        custom_env_path = init_kwargs.get("_custom_env_file")

        if custom_env_path is not None:
            custom_dotenv = DotEnvSettingsSource(
                settings_cls,
                env_file=custom_env_path,
                env_file_encoding="utf-8",
            )
            return (init_settings, custom_dotenv, env_settings, file_secret_settings)

        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @field_validator("github_token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Reject blank tokens.

        Args:
            v: Token value

        Returns:
            Token without surrounding whitespace

        Raises:
            MissingConfigurationError: If the token is blank
        """
        token = v.strip()
        if not token:
            raise MissingConfigurationError("GITHUB_TOKEN must not be empty")
        return token

    @field_validator("github_api_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URL doesn't have trailing slash.

        Args:
            v: URL value

        Returns:
            Normalized URL without trailing slash
        """
        return v.rstrip("/")

    @field_validator("github_repositories", mode="before")
    @classmethod
    def parse_repositories(cls, v: str | list[str]) -> list[str]:
        """Parse repositories from a comma-separated string or a list.

        Args:
            v: Raw repositories value

        Returns:
            List of ``owner/name`` slugs

        Raises:
            MissingConfigurationError: If no repository is given
            InvalidConfigurationError: If a slug is not ``owner/name``
        """
        items = v.split(",") if isinstance(v, str) else list(v)
        repositories = [item.strip() for item in items if item and item.strip()]

        if not repositories:
            raise MissingConfigurationError("GITHUB_REPOSITORIES must list at least one repository")

        for slug in repositories:
            if not _REPOSITORY_SLUG.match(slug):
                raise InvalidConfigurationError(f"Invalid repository: {slug!r}. Expected 'owner/name'")

        return repositories

    @field_validator("stale_branch_age", "stale_branch_issue_age")
    @classmethod
    def validate_duration(cls, v: str) -> str:
        """Ensure ages are valid ``<value> <unit>`` durations.

        Args:
            v: Duration string

        Returns:
            The unchanged duration string

        Raises:
            InvalidConfigurationError: If the duration is malformed
        """
        try:
            parse_duration(v)
        except MalformedDurationError as e:
            raise InvalidConfigurationError(str(e)) from e
        return v

    @property
    def branch_age(self) -> Duration:
        """Get the stale branch age as a duration.

        Returns:
            Parsed ``stale_branch_age``
        """
        return parse_duration(self.stale_branch_age)

    @property
    def issue_age(self) -> Duration:
        """Get the tracking issue grace period as a duration.

        Returns:
            Parsed ``stale_branch_issue_age``
        """
        return parse_duration(self.stale_branch_issue_age)

    @property
    def masked_token(self) -> str:
        """Get the token with all but the last four characters hidden.

        Returns:
            Masked token for display
        """
        return f"{'*' * max(len(self.github_token) - 4, 0)}{self.github_token[-4:]}"

    @staticmethod
    def find_env_file() -> Path | None:
        """Find the environment file being used.

        Checks for .env.branchreaper and .env in current directory in that order.

        Returns:
            Path to the env file if found, None otherwise
        """
        for env_file in ENV_FILES:
            path = Path(env_file)
            if path.exists():
                return path.absolute()
        return None
