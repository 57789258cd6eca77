import asyncio
from collections.abc import Callable
from functools import wraps
from logging import getLogger
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from .conf.policy import PolicyConfig, load_policy_config, resolve_config, split_list_option
from .services.classifier import classify_pull_requests
from .services.dispatcher import DispatchMode, dispatch
from .services.formatter import format_batch_result, format_check_report, format_stale_list, show_progress
from .services.github.auth import GitHubClient
from .services.github.models import BatchResult
from .services.github.pullrequests import GitHubPullRequestProvider
from .services.stale import close_pull_requests, find_stale_pull_requests, parse_duration
from .settings import settings

app = typer.Typer(
    help="Manage Dependabot pull requests: approve, recreate, check and close them across repositories, "
    "honouring deny lists for packages and organizations."
)
logger = getLogger(__name__)
console = Console()

REPOSITORIES_HELP = "Repositories in owner/repo form (default: every repository in the config file)"
CONFIG_HELP = "Config file (default: ~/.dependabot-bouncer/config.yaml)"
TOKEN_HELP = "GitHub token (overrides env vars, config file and gh CLI)"
DENY_PACKAGES_HELP = "Package rule to deny; repeat or separate with commas. Appended to the config file lists"
DENY_ORGS_HELP = "Organization to deny; repeat or separate with commas. Appended to the config file lists"


def syncify(f: Callable[..., Any]) -> Callable[..., Any]:
    """This simple decorator converts an async function into a sync function,
    allowing it to work with Typer.
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@app.command(help=f"Display the current installed version of {settings.project_name}.")
def version() -> None:
    from . import __version__

    typer.echo(f"{settings.project_name} - {__version__}")


@app.command(help="Approve passing Dependabot pull requests and enable auto-merge.")
@syncify
async def approve(
    repositories: list[str] | None = typer.Argument(None, help=REPOSITORIES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    token: str | None = typer.Option(None, "--token", help=TOKEN_HELP),
    deny_packages: list[str] | None = typer.Option(None, "--deny-packages", help=DENY_PACKAGES_HELP),
    deny_orgs: list[str] | None = typer.Option(None, "--deny-orgs", help=DENY_ORGS_HELP),
) -> None:
    """Approve passing Dependabot pull requests and enable auto-merge."""
    await _run_command(DispatchMode.APPROVE, repositories, config, token, deny_packages, deny_orgs)


@app.command(help="Ask Dependabot to recreate every open pull request, including failing ones.")
@syncify
async def recreate(
    repositories: list[str] | None = typer.Argument(None, help=REPOSITORIES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    token: str | None = typer.Option(None, "--token", help=TOKEN_HELP),
    deny_packages: list[str] | None = typer.Option(None, "--deny-packages", help=DENY_PACKAGES_HELP),
    deny_orgs: list[str] | None = typer.Option(None, "--deny-orgs", help=DENY_ORGS_HELP),
) -> None:
    """Ask Dependabot to recreate every open pull request, including failing ones."""
    await _run_command(DispatchMode.RECREATE, repositories, config, token, deny_packages, deny_orgs)


@app.command(help="List open Dependabot pull requests with their CI and deny-list status.")
@syncify
async def check(
    repositories: list[str] | None = typer.Argument(None, help=REPOSITORIES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    token: str | None = typer.Option(None, "--token", help=TOKEN_HELP),
    deny_packages: list[str] | None = typer.Option(None, "--deny-packages", help=DENY_PACKAGES_HELP),
    deny_orgs: list[str] | None = typer.Option(None, "--deny-orgs", help=DENY_ORGS_HELP),
    show_urls: bool = typer.Option(False, "--show-urls", help="Display PR URLs in output"),
) -> None:
    """List open Dependabot pull requests with their CI and deny-list status."""
    await _run_command(DispatchMode.CHECK, repositories, config, token, deny_packages, deny_orgs, show_urls)


@app.command(help="Close old pull requests carrying a label (e.g. --older-than 720h or 30d).")
@syncify
async def close(
    repository: str = typer.Argument(..., help="Repository in owner/repo form"),
    older_than: str | None = typer.Option(
        None,
        "--older-than",
        help="Close PRs older than this duration: 720h, 30d, 2w or combinations such as 1d12h",
    ),
    label: str = typer.Option("dependencies", "--label", help="Label to filter PRs by"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show PRs that would be closed without closing them"),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    token: str | None = typer.Option(None, "--token", help=TOKEN_HELP),
) -> None:
    """Close old pull requests carrying a label."""
    failed = False
    try:
        if not older_than:
            raise ValueError("--older-than is required (e.g. 720h for 30 days, 4320h for 6 months)")
        max_age = parse_duration(older_than)
        owner, repo = parse_repository(repository)
        policy_config = _load_config(config)

        github_client = await GitHubClient(
            token_override=token, config_token=policy_config.github_token
        ).get_authenticated_client()

        async with github_client:
            provider = GitHubPullRequestProvider(github_client)
            with show_progress(f"Listing open pull requests in {owner}/{repo}..."):
                records = await provider.list_open_pull_requests(owner, repo)

            stale = find_stale_pull_requests(records, label, max_age)
            format_stale_list(stale, label, older_than)

            if stale and dry_run:
                console.print("Dry run mode - no PRs were closed")
            elif stale:
                console.print(f"Closing {len(stale)} PR(s)...")
                batch = await close_pull_requests(provider, owner, repo, stale)
                format_batch_result(batch)
                failed = not batch.ok

    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error while closing pull requests")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if failed:
        raise typer.Exit(1)


async def _run_command(
    mode: DispatchMode,
    repositories: list[str] | None,
    config: Path | None,
    token: str | None,
    deny_packages: list[str] | None,
    deny_orgs: list[str] | None,
    show_urls: bool = False,
) -> None:
    """Run a triage mode and translate failures into exit codes."""
    try:
        batches = await run_triage(mode, repositories, config, token, deny_packages, deny_orgs, show_urls)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error during {mode.value}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if any(not batch.ok for batch in batches):
        raise typer.Exit(1)


async def run_triage(
    mode: DispatchMode,
    repositories: list[str] | None,
    config: Path | None,
    token: str | None,
    deny_packages: list[str] | None,
    deny_orgs: list[str] | None,
    show_urls: bool = False,
) -> list[BatchResult]:
    """Classify and act on bot pull requests in each repository, one repository at a time.

    Input is validated before the first API call. A repository that cannot be listed is
    reported and the remaining repositories are still processed.

    Raises:
        ValueError: On invalid input, configuration or missing token
    """
    policy_config = _load_config(config)
    repo_names = repositories or policy_config.configured_repositories()
    if not repo_names:
        raise ValueError(
            "No repositories specified. Use command-line arguments or configure repositories in the config file"
        )
    targets = [parse_repository(name) for name in repo_names]
    extra_packages = split_list_option(deny_packages)
    extra_orgs = split_list_option(deny_orgs)

    github_client = await GitHubClient(
        token_override=token, config_token=policy_config.github_token
    ).get_authenticated_client()

    batches: list[BatchResult] = []
    async with github_client:
        provider = GitHubPullRequestProvider(github_client)

        for owner, repo in targets:
            repo_key = f"{owner}/{repo}"
            resolved = resolve_config(policy_config, repo_key, extra_packages, extra_orgs)
            if resolved.denied_packages:
                logger.info(f"Denying packages for {repo_key}: {list(resolved.denied_packages)}")
            if resolved.denied_orgs:
                logger.info(f"Denying organizations for {repo_key}: {list(resolved.denied_orgs)}")
            if resolved.ignored_prs:
                logger.info(f"Ignoring PRs for {repo_key}: {sorted(resolved.ignored_prs)}")

            try:
                with show_progress(f"Listing Dependabot pull requests in {repo_key}..."):
                    records = await provider.list_open_automation_prs(owner, repo)
            except Exception as e:
                logger.error(f"Failed to list pull requests for {repo_key}: {e}")
                batch = BatchResult(repository=repo_key, mode=mode.value, error=f"Failed to list pull requests: {e}")
                format_batch_result(batch)
                batches.append(batch)
                continue

            classified = classify_pull_requests(
                records,
                resolved,
                skip_failing=mode == DispatchMode.APPROVE,
                bot_login=settings.bot_login,
            )

            if mode == DispatchMode.CHECK:
                format_check_report(repo_key, classified, show_urls=show_urls)
                batches.append(await dispatch(provider, owner, repo, classified, mode))
                continue

            batch = await dispatch(provider, owner, repo, classified, mode)
            format_batch_result(batch)
            batches.append(batch)

    return batches


def parse_repository(value: str) -> tuple[str, str]:
    """Split an owner/repo string.

    Raises:
        ValueError: If the value is not exactly two non-empty parts
    """
    parts = value.strip().split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ValueError(f"Invalid repository format: {value} (expected owner/repo)")
    return parts[0].strip(), parts[1].strip()


def _load_config(config: Path | None) -> PolicyConfig:
    """Load the config file given on the command line (must exist) or the default one (optional)."""
    if config is not None:
        return load_policy_config(config, required=True)
    return load_policy_config(settings.config_file)


if __name__ == "__main__":
    app()
