"""
Changelog - Audit trail of every compiler decision.

The changelog is a markdown file with a fixed ``## Entries`` anchor. Under
it, date headers run newest first and each date holds action sections::

    ## Entries
    <!-- newest first -->

    ## 2026-01-15

    ### Added
    - **Coding Error Handling** (approved)
      - Source: 3 learnings from 2026-01-10 to 2026-01-15
      - Location: core/rules/coding.md

A new entry goes directly under its action header, so the latest entry of a
day is listed first.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import date as date_type
from enum import Enum
from pathlib import Path

from .compiler.rules import RuleProposal
from .errors import ChangelogError
from .fileio import atomic_write, locked

logger = logging.getLogger(__name__)

ENTRIES_ANCHOR = "## Entries"
DEFAULT_REASON = "User preference"

CHANGELOG_TEMPLATE = """# Changelog

Audit trail of rules added, rejected, modified and archived by learnloop.

{anchor}
<!-- Entries are inserted automatically below this line, newest first -->
"""


class ChangelogAction(str, Enum):
    ADDED = "added"
    REJECTED = "rejected"
    MODIFIED = "modified"
    ARCHIVED = "archived"

    @property
    def section(self) -> str:
        return f"### {self.value.capitalize()}"


@dataclass
class ChangelogEntry:
    """One compiler decision. Which optional fields apply depends on ``action``."""

    action: ChangelogAction
    rule_name: str
    pattern_id: str
    date: str = field(default_factory=lambda: date_type.today().isoformat())
    source_count: int = 0  # added, archived
    date_range: str | None = None  # added
    location: str | None = None  # added
    commit: str | None = None  # added, modified
    reason: str | None = None  # rejected
    change: str | None = None  # modified
    member_ids: list[str] = field(default_factory=list)  # archived


def get_date_header(date: str) -> str:
    return f"## {date}"


def format_changelog_entry(entry: ChangelogEntry) -> str:
    """Markdown bullet block for one entry."""
    if entry.action == ChangelogAction.ADDED:
        source = f"  - Source: {entry.source_count} learnings"
        if entry.date_range:
            source += f" from {entry.date_range}"
        lines = [
            f"- **{entry.rule_name}** (approved)",
            source,
            f"  - Location: {entry.location or 'unknown'}",
        ]
        if entry.commit:
            lines.append(f"  - Commit: {entry.commit}")
        return "\n".join(lines)

    if entry.action == ChangelogAction.REJECTED:
        return "\n".join(
            [
                f"- **{entry.rule_name}** (rejected)",
                f"  - Reason: {entry.reason or DEFAULT_REASON}",
                "  - Pattern archived, won't re-propose",
            ]
        )

    if entry.action == ChangelogAction.MODIFIED:
        lines = [
            f"- **{entry.rule_name}** (updated)",
            f"  - Change: {entry.change or 'No description'}",
        ]
        if entry.commit:
            lines.append(f"  - Commit: {entry.commit}")
        return "\n".join(lines)

    return "\n".join(
        [
            f"- **{entry.source_count} learnings** archived after rule compilation",
            f"  - Rule: {entry.rule_name}",
            f"  - Original learnings: {', '.join(entry.member_ids) or 'none'}",
        ]
    )


def init_changelog(path: Path) -> bool:
    """
    Seed a changelog containing the entries anchor.

    Returns:
        True if the file was created, False if it already existed
    """
    path = Path(path)
    if path.exists():
        return False
    atomic_write(path, CHANGELOG_TEMPLATE.format(anchor=ENTRIES_ANCHOR))
    logger.info(f"Changelog created: {path}")
    return True


def _find_anchor(lines: list[str]) -> int:
    try:
        return next(i for i, line in enumerate(lines) if line.strip() == ENTRIES_ANCHOR)
    except StopIteration:
        raise ChangelogError(
            f'Could not find "{ENTRIES_ANCHOR}" section in changelog'
        ) from None


def check_changelog(path: Path) -> None:
    """
    Make sure an entry could be added to the changelog at ``path``.

    Raises:
        ChangelogError: If the file or its ``## Entries`` anchor is missing
    """
    path = Path(path)
    if not path.exists():
        raise ChangelogError(
            f"Changelog file not found: {path} (run 'learnloop changelog init')"
        )
    try:
        lines = path.read_text(encoding="utf-8").split("\n")
    except OSError as e:
        raise ChangelogError(f"Cannot read changelog {path}: {e}") from e
    _find_anchor(lines)


def _insert_entry(lines: list[str], entry: ChangelogEntry) -> list[str]:
    entries_index = _find_anchor(lines)

    insert_index = entries_index + 1
    while insert_index < len(lines) and lines[insert_index].strip().startswith("<!--"):
        insert_index += 1
    while insert_index < len(lines) and lines[insert_index].strip() == "":
        insert_index += 1

    date_header = get_date_header(entry.date)
    section = entry.action.section
    content = format_changelog_entry(entry)

    date_index = next(
        (
            i
            for i in range(insert_index, len(lines))
            if lines[i].strip() == date_header
        ),
        None,
    )

    if date_index is None:
        return (
            lines[:insert_index]
            + ["", date_header, "", section, content]
            + lines[insert_index:]
        )

    for i in range(date_index + 1, len(lines)):
        line = lines[i].strip()
        if line.startswith("## ") and line != date_header:
            break
        if line == section:
            return lines[: i + 1] + [content] + lines[i + 1 :]

    return lines[: date_index + 2] + [section, content] + lines[date_index + 2 :]


def add_changelog_entry(path: Path, entry: ChangelogEntry) -> None:
    """
    Insert an entry under today's date and its action section.

    Args:
        path: Changelog file, already seeded with the entries anchor
        entry: Entry to record

    Raises:
        ChangelogError: If the file or its ``## Entries`` anchor is missing
    """
    path = Path(path)
    if not path.exists():
        raise ChangelogError(f"Changelog file not found: {path}")

    with locked(path):
        lines = path.read_text(encoding="utf-8").split("\n")
        atomic_write(path, "\n".join(_insert_entry(lines, entry)))

    logger.info(f"Changelog: {entry.action.value} {entry.rule_name}")


# =============================================================================
# Commit helpers
# =============================================================================


def generate_commit_message(
    proposal: RuleProposal, action: str, reason: str | None = None
) -> str:
    """
    Commit message for approving or rejecting a rule proposal.

    Args:
        proposal: The reviewed proposal
        action: "approve" or "reject"
        reason: Rejection reason

    Raises:
        ValueError: For any other action
    """
    count = len(proposal.source_records)
    if action == "approve":
        return "\n".join(
            [
                f"self-improve: approve {proposal.title}",
                "",
                f"Pattern: {proposal.pattern_id}",
                f"Source learnings: {count}",
                f"Route: {proposal.destination}",
                "",
                f"Rule compiled from {count} learnings and added to {proposal.destination}.",
            ]
        )
    if action == "reject":
        return "\n".join(
            [
                f"self-improve: reject {proposal.title}",
                "",
                f"Pattern: {proposal.pattern_id}",
                f"Reason: {reason or DEFAULT_REASON}",
                "Status: Archived, won't re-propose",
                "",
                "Pattern rejected and marked in index to prevent re-proposal.",
            ]
        )
    raise ValueError(f"Unknown commit action: {action}")


def prepare_changelog_commit(
    entry: ChangelogEntry,
    changelog_file: str = "CHANGELOG.md",
    index_file: str = "patterns/index.json",
) -> dict:
    """
    Message and files to stage for committing a changelog entry.

    Returns:
        Dictionary with ``message`` (str) and ``files`` (list of paths)
    """
    verb = {
        ChangelogAction.ADDED: "approve",
        ChangelogAction.REJECTED: "reject",
    }.get(entry.action, entry.action.value)

    message = [f"self-improve: {verb} {entry.rule_name}", "", f"Pattern: {entry.pattern_id}"]
    if entry.action == ChangelogAction.ADDED:
        message.append(f"Source learnings: {entry.source_count}")
        message.append(f"Route: {entry.location or 'unknown'}")
    elif entry.action == ChangelogAction.REJECTED:
        message.append(f"Reason: {entry.reason or DEFAULT_REASON}")
        message.append("Status: Archived, won't re-propose")
    elif entry.action == ChangelogAction.MODIFIED:
        message.append(f"Change: {entry.change or 'Updated'}")

    files = [changelog_file]
    if entry.action == ChangelogAction.ADDED and entry.location:
        files.append(entry.location)
    files.append(index_file)

    return {"message": "\n".join(message), "files": files}


def get_git_short_hash(cwd: Path | None = None) -> str:
    """Short hash of HEAD, or "unknown" when git is unavailable."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=5,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Could not get git hash: {e}")
        return "unknown"
    return result.stdout.strip() or "unknown"
