"""Shared helpers for CLI commands: logging setup and engine construction."""

import logging

import typer

from learnloop.config import load_config
from learnloop.engine import PatternEngine
from learnloop.errors import ConfigurationError

from .console import print_error

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging once for the CLI process."""
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, force=True)


def get_engine(ctx: typer.Context) -> PatternEngine:
    """Build the engine from the options given to the top-level command."""
    options = ctx.obj or {}
    try:
        config = load_config(options.get("config_path"))
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)

    setup_logging(
        config.get("logging", {}).get("level", "INFO"),
        verbose=options.get("verbose", False),
    )
    return PatternEngine.from_config(config)
