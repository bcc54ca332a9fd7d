"""Command-line interface for branch-reaper."""

import asyncio
import logging
import sys
from datetime import datetime, timezone

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from branch_reaper import __version__
from branch_reaper.config import BranchReaperConfig, ConfigurationError
from branch_reaper.duration import Direction
from branch_reaper.host.github import GitHubClient
from branch_reaper.lifecycle import BranchLifecycleEngine
from branch_reaper.models import Branch, Cutoffs, OutcomeKind, PassSummary
from branch_reaper.sweep import LoggingObserver, OutcomeCounter, RunCoordinator

app = typer.Typer(
    name="branch-reaper",
    help="Flag stale GitHub branches with tracking issues and delete them after a grace period",
    add_completion=False,
)
console = Console()

# Help text constants
VERBOSE_OUTPUT_HELP = "Verbose output"
ENV_FILE_HELP = "Path to custom environment file (default: .env.branchreaper or .env)"

_OUTCOME_STYLES = {
    OutcomeKind.DELETED: "green",
    OutcomeKind.ISSUE_CLOSED: "green",
    OutcomeKind.ISSUE_CREATED: "cyan",
    OutcomeKind.SKIPPED: "yellow",
    OutcomeKind.NO_ISSUE_FOUND: "dim",
    OutcomeKind.LEFT_ALONE: "dim",
}


def setup_logging(verbose: bool) -> None:
    """Setup logging configuration.

    Args:
        verbose: If True, enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    # Request logs drown out the per-branch outcomes
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def load_config(env_file: str | None) -> BranchReaperConfig:
    """Load configuration, exiting with a message if it is invalid.

    Args:
        env_file: Optional custom env file

    Returns:
        Loaded configuration
    """
    try:
        return BranchReaperConfig(env_file=env_file)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)
    except ValidationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)


def _display_summary(summary: PassSummary, counter: OutcomeCounter) -> None:
    """Display pass results.

    Args:
        summary: Summary of the pass
        counter: Outcome counter attached to the pass
    """
    if summary.outcomes:
        table = Table(title="Stale branches")
        table.add_column("Branch")
        table.add_column("Outcome")
        table.add_column("Issue")
        table.add_column("Details")

        for outcome in summary.outcomes:
            style = _OUTCOME_STYLES[outcome.kind]
            label = outcome.kind.display_name + (" (dry-run)" if outcome.dry_run else "")
            issue = f"#{outcome.issue.number}" if outcome.issue else ""
            table.add_row(outcome.subject, f"[{style}]{label}[/{style}]", issue, outcome.reason or "")

        console.print(table)

    console.print("\n[bold]Summary:[/bold]")
    for kind in OutcomeKind:
        if counter.counts[kind]:
            console.print(f"  {kind.display_name.capitalize()}: {counter.counts[kind]}")
    if counter.last_duration is not None:
        console.print(f"  [dim]Completed in {counter.last_duration:.1f}s[/dim]")
    if summary.has_skips:
        console.print(f"\n[yellow]{summary.skipped} branches were skipped and will be retried next run[/yellow]")


async def _run_pass(config: BranchReaperConfig, dry_run: bool, counter: OutcomeCounter) -> PassSummary:
    """Run one pass against GitHub.

    Args:
        config: Configuration object
        dry_run: Decide without mutating anything
        counter: Outcome counter to attach

    Returns:
        Summary of the pass
    """
    now = datetime.now(timezone.utc)
    cutoffs = Cutoffs.from_durations(config.branch_age, config.issue_age, now)

    async with GitHubClient(config) as client:
        coordinator = RunCoordinator(
            client,
            BranchLifecycleEngine(create_missing_issues=config.create_missing_issues),
            observers=[LoggingObserver(), counter],
            concurrency=config.concurrency,
            dry_run=dry_run,
            reconcile_orphans=config.reconcile_orphaned_issues,
        )
        return await coordinator.run_pass(cutoffs, now)


@app.command()
def run(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would happen without deleting branches or touching issues",
    ),
    create_issues: bool | None = typer.Option(
        None,
        "--create-issues/--no-create-issues",
        help="Open tracking issues for flagged branches that have none (overrides config)",
    ),
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        help=ENV_FILE_HELP,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help=VERBOSE_OUTPUT_HELP,
    ),
) -> None:
    """Run one pass: flag, track and delete stale branches."""
    setup_logging(verbose)
    config = load_config(env_file)

    if create_issues is not None:
        config.create_missing_issues = create_issues

    console.print("\n[bold cyan]Stale Branch Sweep[/bold cyan]")
    console.print(f"  Repositories: {', '.join(config.github_repositories)}")
    console.print(f"  Stale after: {config.branch_age}")
    console.print(f"  Grace period: {config.issue_age}")
    if dry_run:
        console.print("  [yellow]Dry-run mode: no changes will be made[/yellow]")
    console.print()

    counter = OutcomeCounter()
    try:
        summary = asyncio.run(_run_pass(config, dry_run, counter))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        console.print("[red]An error occurred, check logs for more information.[/red]")
        sys.exit(1)

    _display_summary(summary, counter)
    console.print("\n[green]✨ Sweep completed successfully![/green]")


async def _list_stale(config: BranchReaperConfig) -> list[Branch]:
    now = datetime.now(timezone.utc)
    async with GitHubClient(config) as client:
        return await client.list_stale_branches(config.branch_age.resolve(Direction.PAST, now))


@app.command(name="list")
def list_stale(
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        help=ENV_FILE_HELP,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help=VERBOSE_OUTPUT_HELP,
    ),
) -> None:
    """List stale branches without acting on them."""
    setup_logging(verbose)
    config = load_config(env_file)

    try:
        branches = asyncio.run(_list_stale(config))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)

    console.print(f"[bold]Found {len(branches)} stale branches[/bold] (no commits in {config.branch_age})\n")
    for branch in sorted(branches, key=lambda b: b.last_commit_at):
        console.print(f"  {branch.display_name}  [dim]last commit {branch.last_commit_at:%Y-%m-%d}[/dim]")


@app.command()
def config(
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        help=ENV_FILE_HELP,
    ),
) -> None:
    """Show current configuration."""
    cfg = load_config(env_file)
    env_path = BranchReaperConfig.find_env_file()

    console.print("[bold]Current Configuration:[/bold]\n")
    console.print(f"  Env file: {env_file or env_path or 'none'}")
    console.print(f"  GitHub API: {cfg.github_api_url}")
    console.print(f"  Token: {cfg.masked_token}")
    console.print(f"  Repositories: {', '.join(cfg.github_repositories)}")
    console.print("\n[bold]Lifecycle:[/bold]")
    console.print(f"  Stale branch age: {cfg.branch_age}")
    console.print(f"  Issue grace period: {cfg.issue_age}")
    console.print(f"  Tracking label: {cfg.tracking_issue_label}")
    console.print(f"  Create missing issues: {cfg.create_missing_issues}")
    console.print(f"  Reconcile orphaned issues: {cfg.reconcile_orphaned_issues}")
    console.print(f"  Exclude protected branches: {cfg.exclude_protected_branches}")
    console.print(f"  Concurrency: {cfg.concurrency}")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"branch-reaper version {__version__}")


if __name__ == "__main__":
    app()
