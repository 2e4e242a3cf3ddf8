"""Shared pytest fixtures for learnloop tests.

Every test that touches the filesystem gets its own memory root under
tmp_path with LEARNLOOP_HOME pointing at it.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from learnloop.changelog import init_changelog
from learnloop.config import LearnloopPaths, get_paths, load_config
from learnloop.engine import PatternEngine

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def memory_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an empty memory root and point LEARNLOOP_HOME at it."""
    root = tmp_path / "memory"
    root.mkdir()
    monkeypatch.setenv("LEARNLOOP_HOME", str(root))
    monkeypatch.delenv("LEARNLOOP_CONFIG_PATH", raising=False)
    return root


@pytest.fixture
def paths(memory_root: Path) -> LearnloopPaths:
    """Resolved locations inside the temporary memory root."""
    return get_paths(load_config())


@pytest.fixture
def changelog(paths: LearnloopPaths) -> Path:
    """A seeded changelog with the entries anchor."""
    init_changelog(paths.changelog)
    return paths.changelog


@pytest.fixture
def engine(paths: LearnloopPaths) -> PatternEngine:
    return PatternEngine(paths)


# =============================================================================
# Record Fixtures
# =============================================================================


def format_record(
    domain: str | None = "coding",
    tags: list[str] | None = None,
    date: str | None = "2026-01-15",
    confidence: str | None = "HIGH",
    body: str = "Observed after a completed task.",
) -> str:
    """Render a record file with a metadata header."""
    lines = ["---"]
    if domain is not None:
        lines.append(f"domain: {domain}")
    if date is not None:
        lines.append(f"date: {date}")
    if confidence is not None:
        lines.append(f"confidence: {confidence}")
    if tags is not None:
        if tags:
            lines.append("tags:")
            lines.extend(f"  - {tag}" for tag in tags)
        else:
            lines.append("tags: []")
    lines.extend(["---", "", body, ""])
    return "\n".join(lines)


@pytest.fixture
def write_record(paths: LearnloopPaths) -> Callable[..., Path]:
    """Factory writing a record file into the learnings directory.

    Usage:
        path = write_record("2026-01-15_retry", domain="coding", tags=["retry"])
    """

    def _write(name: str, subdir: str | None = None, **fields) -> Path:
        directory = paths.learnings / subdir if subdir else paths.learnings
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.md"
        path.write_text(format_record(**fields), encoding="utf-8")
        return path

    return _write
