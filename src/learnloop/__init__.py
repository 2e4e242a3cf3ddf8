"""learnloop - Pattern mining for captured learnings

Mines a corpus of learning records for recurring patterns, compiles them
into rules or review proposals, and keeps an audit changelog of every
decision.

Architecture:
- Markdown record files are the input corpus (read-only)
- JSON pattern index holds lifecycle state across runs
- Autonomy policy decides auto-apply versus human review
- Markdown changelog records every compiler decision

Usage:
    from learnloop import PatternEngine, load_config

    engine = PatternEngine.from_config(load_config())

    # After a new learning is captured
    result = engine.process_file(Path("learning/coding/2026-01-15_retry.md"))
    if result.outcome == "proposed":
        print(f"Proposal waiting: {result.path}")

    # Review
    engine.approve("coding-error-handling")
    engine.reject("process-standups", reason="Too team specific")
"""

from .config import load_config
from .engine import MiningOutcome, PatternEngine
from .errors import (
    ChangelogError,
    ConfigurationError,
    InvalidTransitionError,
    LearnloopError,
    PatternNotFoundError,
)

__all__ = [
    "ChangelogError",
    "ConfigurationError",
    "InvalidTransitionError",
    "LearnloopError",
    "MiningOutcome",
    "PatternEngine",
    "PatternNotFoundError",
    "load_config",
]

__version__ = "0.1.0"
