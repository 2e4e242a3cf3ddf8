"""Changelog commands."""

import typer

from learnloop.changelog import init_changelog

from .common import get_engine
from .console import print_info, print_success

app = typer.Typer(
    name="changelog",
    help="Manage the audit changelog",
    no_args_is_help=True,
)


@app.command(name="init")
def init(ctx: typer.Context) -> None:
    """Create the changelog with its entries anchor if it does not exist."""
    engine = get_engine(ctx)
    path = engine.paths.changelog
    if init_changelog(path):
        print_success(f"Created {path}")
    else:
        print_info(f"Changelog already exists: {path}")
