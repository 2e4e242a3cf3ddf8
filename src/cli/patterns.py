"""Pattern review commands: list, approve, reject, archive."""

import typer

from learnloop.engine import ReviewResult
from learnloop.errors import LearnloopError
from learnloop.patterns.models import PatternStatus

from .common import get_engine
from .console import console, create_table, print_error, print_panel, print_success, print_table

app = typer.Typer(
    name="patterns",
    help="Review detected patterns",
    no_args_is_help=True,
)

STATUS_STYLES = {
    PatternStatus.PENDING: "[yellow]pending[/yellow]",
    PatternStatus.APPROVED: "[green]approved[/green]",
    PatternStatus.REJECTED: "[red]rejected[/red]",
    PatternStatus.ARCHIVED: "[dim]archived[/dim]",
}


@app.command(name="list")
def list_patterns(
    ctx: typer.Context,
    status: PatternStatus | None = typer.Option(
        None,
        "--status",
        "-s",
        help="Filter by status",
        case_sensitive=False,
    ),
) -> None:
    """List indexed patterns."""
    engine = get_engine(ctx)
    index = engine.store.load()

    patterns = [
        (pid, entry)
        for pid, entry in index.patterns.items()
        if status is None or entry.status == status
    ]
    if not patterns:
        console.print("[dim]No patterns found.[/dim]")
        return

    table = create_table("Patterns")
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Domain", style="magenta")
    table.add_column("Members", justify="right")
    table.add_column("Tags", style="green")
    for pid, entry in patterns:
        table.add_row(
            pid,
            STATUS_STYLES[entry.status],
            entry.domain,
            str(len(entry.member_ids)),
            ", ".join(entry.primary_tags),
        )
    print_table(table)


def _report(result: ReviewResult, verb: str) -> None:
    print_success(f"{verb} {result.pattern_id}")
    if result.destination:
        console.print(f"  [dim]rule appended to[/dim] {result.destination}")
    print_panel("Commit", result.commit["message"], style="dim")
    console.print(f"[dim]Stage: {' '.join(result.commit['files'])}[/dim]")


@app.command()
def approve(
    ctx: typer.Context,
    pattern_id: str = typer.Argument(..., help="Pattern to approve"),
) -> None:
    """Approve a pending pattern and apply its rule."""
    engine = get_engine(ctx)
    try:
        result = engine.approve(pattern_id)
    except LearnloopError as e:
        print_error(str(e))
        raise typer.Exit(1)
    _report(result, "Approved")


@app.command()
def reject(
    ctx: typer.Context,
    pattern_id: str = typer.Argument(..., help="Pattern to reject"),
    reason: str | None = typer.Option(None, "--reason", "-r", help="Why it was rejected"),
) -> None:
    """Reject a pending pattern. It will not be proposed again."""
    engine = get_engine(ctx)
    try:
        result = engine.reject(pattern_id, reason=reason)
    except LearnloopError as e:
        print_error(str(e))
        raise typer.Exit(1)
    _report(result, "Rejected")


@app.command()
def archive(
    ctx: typer.Context,
    pattern_id: str = typer.Argument(..., help="Pattern to archive"),
) -> None:
    """Archive a pending or approved pattern."""
    engine = get_engine(ctx)
    try:
        result = engine.archive(pattern_id)
    except LearnloopError as e:
        print_error(str(e))
        raise typer.Exit(1)
    _report(result, "Archived")
