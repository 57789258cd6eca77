from datetime import datetime, timezone

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .github.models import BatchResult, CIState, ClassifiedPR, PullRequestRecord
from .stale import format_age


def format_check_report(
    repository: str,
    classified: list[ClassifiedPR],
    show_urls: bool = False,
) -> None:
    """Display open bot pull requests for one repository, including denied ones.

    Args:
        repository: Repository in owner/repo form
        classified: Classifier output (not filtered by CI state)
        show_urls: Whether to display PR URLs (default: False)
    """
    console = Console()

    if not classified:
        console.print(f"🔍 [bold]{repository}[/bold]  [dim](no open Dependabot PRs)[/dim]")
        console.print()
        return

    table = Table(title=f"🔍 {repository}", show_header=True, header_style="bold magenta")
    table.add_column("PR #", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Package", style="white")
    table.add_column("Status", style="white", no_wrap=True)

    if show_urls:
        table.add_column("URL", style="dim")

    for pr in classified:
        if pr.skipped:
            status = f"[red]🚫 SKIPPED[/red] ({pr.skip_reason})"
        else:
            status = _format_ci_badge(pr.ci_state)

        row = [str(pr.number), pr.title, pr.identity.package_name or "-", status]
        if show_urls:
            row.append(pr.record.url)
        table.add_row(*row)

    console.print(table)

    skipped = sum(1 for pr in classified if pr.skipped)
    console.print(f"[bold]Total:[/bold] {len(classified)} pull requests ({skipped} skipped)\n")


def format_batch_result(batch: BatchResult) -> None:
    """Display the outcome of an approve, recreate or close run for one repository."""
    console = Console()

    if batch.error:
        console.print(
            Panel(f"[red]{batch.error}[/red]", title=f"{batch.repository} ({batch.mode})", border_style="red")
        )
        return

    if not batch.results:
        console.print(f"[yellow]{batch.repository}:[/yellow] no pull requests to process")
        return

    lines = [
        f"[bold]Actions:[/bold] {len(batch.results)}",
        f"  [green]{batch.succeeded} succeeded[/green]",
        f"  [red]{batch.failed} failed[/red]" if batch.failed else "  0 failed",
    ]
    if batch.failed_prs:
        lines.append("")
        lines.append("[bold]Failed PRs:[/bold] " + ", ".join(f"#{number}" for number in batch.failed_prs))

    border = "green" if batch.ok else "red"
    console.print(Panel("\n".join(lines), title=f"{batch.repository} ({batch.mode})", border_style=border))


def format_stale_list(
    records: list[PullRequestRecord],
    label: str,
    older_than: str,
    now: datetime | None = None,
) -> None:
    """Display pull requests selected for closing."""
    console = Console()

    if not records:
        console.print(f"No PRs found with label '{label}' older than {older_than}")
        return

    if now is None:
        now = datetime.now(timezone.utc)

    table = Table(
        title=f"{len(records)} PR(s) with label '{label}' older than {older_than}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("PR #", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Created", style="dim", no_wrap=True)
    table.add_column("Age", style="yellow", no_wrap=True)
    table.add_column("URL", style="dim")

    for record in records:
        created = record.created_at.strftime("%Y-%m-%d") if record.created_at else "-"
        age = format_age(now - record.created_at) if record.created_at else "-"
        table.add_row(str(record.number), record.title, created, age, record.url)

    console.print(table)


def _format_ci_badge(ci_state: CIState) -> str:
    """Format a CI state with an icon and color for Rich display."""
    badges = {
        CIState.SUCCESS: "[green]✅ success[/green]",
        CIState.FAILURE: "[red]❌ failure[/red]",
        CIState.PENDING: "[yellow]⏳ pending[/yellow]",
    }
    return badges.get(ci_state, ci_state.value)


def show_progress(message: str) -> Progress:
    """Create and return a progress spinner.

    Args:
        message: Message to display with spinner

    Returns:
        Progress context manager
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    )
    progress.add_task(description=message, total=None)
    return progress
