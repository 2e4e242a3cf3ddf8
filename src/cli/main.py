"""learnloop CLI entry point."""

from pathlib import Path

import typer

from learnloop.engine import MiningOutcome, MiningResult
from learnloop.errors import LearnloopError

from . import __version__
from .changelog import app as changelog_app
from .common import get_engine
from .console import (
    console,
    create_table,
    print_error,
    print_success,
    print_table,
    print_warning,
)
from .patterns import app as patterns_app

app = typer.Typer(
    name="learnloop",
    help="learnloop - Mine captured learnings for recurring patterns",
    no_args_is_help=True,
)

OUTCOME_STYLES = {
    MiningOutcome.NO_PATTERN: "dim",
    MiningOutcome.LOW_RELEVANCE: "dim",
    MiningOutcome.REJECTED: "red",
    MiningOutcome.ALREADY_REVIEWED: "blue",
    MiningOutcome.PROPOSED: "yellow",
    MiningOutcome.APPLIED: "green",
    MiningOutcome.FAILED: "bold red",
}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"learnloop version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: $LEARNLOOP_CONFIG_PATH or <root>/learnloop.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """learnloop - Mine captured learnings for recurring patterns."""
    ctx.obj = {
        "config_path": str(config_path) if config_path else None,
        "verbose": verbose,
    }


def _print_result(result: MiningResult) -> None:
    style = OUTCOME_STYLES[result.outcome]
    line = f"[{style}]{result.outcome.value}[/{style}] {result.record_id}"
    if result.pattern_id:
        line += f" -> {result.pattern_id}"
    if result.path:
        line += f" ({result.path})"
    if result.error:
        line += f": {result.error}"
    console.print(line)


@app.command()
def scan(ctx: typer.Context) -> None:
    """List every learning record in the corpus."""
    engine = get_engine(ctx)
    records = engine.scanner.scan()

    if not records:
        console.print(f"[dim]No learning records under {engine.paths.learnings}[/dim]")
        return

    table = create_table("Learning Records")
    table.add_column("ID", style="cyan")
    table.add_column("Date")
    table.add_column("Domain", style="magenta")
    table.add_column("Confidence")
    table.add_column("Tags", style="green")
    for record in records:
        table.add_row(
            record.id,
            record.date or "-",
            record.domain,
            record.confidence.value,
            ", ".join(record.tags),
        )
    print_table(table)

    summary = engine.scanner.get_scan_summary(records)
    by_domain = " | ".join(f"{d}: {n}" for d, n in summary["by_domain"].items())
    console.print(f"\n[dim]Total: {summary['total']} | {by_domain}[/dim]")


@app.command()
def detect(
    ctx: typer.Context,
    record_file: Path = typer.Argument(..., help="Newly captured learning file"),
) -> None:
    """Check whether a new learning completes a pattern."""
    if not record_file.is_file():
        print_error(f"File not found: {record_file}")
        raise typer.Exit(1)

    engine = get_engine(ctx)
    try:
        result = engine.process_file(record_file)
    except LearnloopError as e:
        print_error(str(e))
        raise typer.Exit(1)

    _print_result(result)
    if result.outcome == MiningOutcome.FAILED:
        raise typer.Exit(1)


@app.command()
def mine(ctx: typer.Context) -> None:
    """Re-run detection with every record in the corpus."""
    engine = get_engine(ctx)
    results = engine.mine_all()

    for result in results:
        if result.outcome != MiningOutcome.NO_PATTERN:
            _print_result(result)

    counts: dict[str, int] = {}
    for result in results:
        counts[result.outcome.value] = counts.get(result.outcome.value, 0) + 1
    console.print(
        f"\n[dim]Records: {len(results)} | "
        + " | ".join(f"{k}: {v}" for k, v in sorted(counts.items()))
        + "[/dim]"
    )

    failed = counts.get(MiningOutcome.FAILED.value, 0)
    if failed:
        print_warning(f"{failed} record(s) failed, see log for details")
        raise typer.Exit(1)


@app.command()
def investigate(
    ctx: typer.Context,
    report: Path = typer.Argument(..., help="Investigation report (YAML)"),
) -> None:
    """Apply the patterns and learnings from an investigation report."""
    engine = get_engine(ctx)
    result = engine.process_investigation(report)
    if result is None:
        print_error(f"Could not load investigation report: {report}")
        raise typer.Exit(1)

    for path in result.written:
        console.print(f"  [dim]wrote[/dim] {path}")
    for mining in result.mining:
        if mining.outcome != MiningOutcome.NO_PATTERN:
            _print_result(mining)

    print_success(f"{result.repo}: {result.summary}")

    if result.failures:
        for failure in result.failures:
            print_error(failure)
        raise typer.Exit(1)


app.add_typer(patterns_app, name="patterns")
app.add_typer(changelog_app, name="changelog")


if __name__ == "__main__":
    app()
