"""Unit tests for the changelog and commit helpers."""

import subprocess
from pathlib import Path

import pytest

from learnloop.changelog import (
    ChangelogAction,
    ChangelogEntry,
    add_changelog_entry,
    check_changelog,
    format_changelog_entry,
    generate_commit_message,
    get_date_header,
    get_git_short_hash,
    init_changelog,
    prepare_changelog_commit,
)
from learnloop.compiler.rules import RuleProposal
from learnloop.errors import ChangelogError

TODAY = "2026-01-15"


def added(name: str, date: str = TODAY) -> ChangelogEntry:
    return ChangelogEntry(
        action=ChangelogAction.ADDED,
        rule_name=name,
        pattern_id=name.lower().replace(" ", "-"),
        date=date,
        source_count=3,
        date_range="2026-01-10 to 2026-01-15",
        location="core/rules/coding.md",
    )


@pytest.fixture
def changelog_file(tmp_path: Path) -> Path:
    path = tmp_path / "CHANGELOG.md"
    init_changelog(path)
    return path


class TestFormatChangelogEntry:
    """Tests for format_changelog_entry."""

    def test_added(self):
        assert format_changelog_entry(added("Retry Rule")) == (
            "- **Retry Rule** (approved)\n"
            "  - Source: 3 learnings from 2026-01-10 to 2026-01-15\n"
            "  - Location: core/rules/coding.md"
        )

    def test_added_with_commit(self):
        entry = added("Retry Rule")
        entry.commit = "abc1234"
        assert format_changelog_entry(entry).endswith("\n  - Commit: abc1234")

    def test_rejected_default_reason(self):
        entry = ChangelogEntry(ChangelogAction.REJECTED, "Noise", "coding-noise", TODAY)
        assert format_changelog_entry(entry) == (
            "- **Noise** (rejected)\n"
            "  - Reason: User preference\n"
            "  - Pattern archived, won't re-propose"
        )

    def test_modified(self):
        entry = ChangelogEntry(
            ChangelogAction.MODIFIED, "Retry Rule", "coding-retry", TODAY, change="Reworded"
        )
        assert format_changelog_entry(entry) == (
            "- **Retry Rule** (updated)\n  - Change: Reworded"
        )

    def test_archived(self):
        entry = ChangelogEntry(
            ChangelogAction.ARCHIVED,
            "Retry Rule",
            "coding-retry",
            TODAY,
            source_count=2,
            member_ids=["a", "b"],
        )
        assert format_changelog_entry(entry) == (
            "- **2 learnings** archived after rule compilation\n"
            "  - Rule: Retry Rule\n"
            "  - Original learnings: a, b"
        )

    def test_date_header(self):
        assert get_date_header(TODAY) == "## 2026-01-15"


class TestAddChangelogEntry:
    """Tests for add_changelog_entry."""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ChangelogError):
            add_changelog_entry(tmp_path / "CHANGELOG.md", added("X"))

    def test_missing_anchor_raises(self, tmp_path):
        path = tmp_path / "CHANGELOG.md"
        path.write_text("# Changelog\n")

        with pytest.raises(ChangelogError):
            add_changelog_entry(path, added("X"))

        assert path.read_text() == "# Changelog\n"

    def test_first_entry_creates_date_and_section(self, changelog_file):
        add_changelog_entry(changelog_file, added("First"))

        text = changelog_file.read_text()
        assert "\n## 2026-01-15\n\n### Added\n- **First** (approved)" in text

    def test_same_day_entries_newest_first(self, changelog_file):
        """Two additions on one day share one date header and one section."""
        add_changelog_entry(changelog_file, added("First"))
        add_changelog_entry(changelog_file, added("Second"))

        text = changelog_file.read_text()
        assert text.count("## 2026-01-15") == 1
        assert text.count("### Added") == 1
        assert text.index("**Second**") < text.index("**First**")

    def test_new_section_under_existing_date(self, changelog_file):
        add_changelog_entry(changelog_file, added("First"))
        add_changelog_entry(
            changelog_file,
            ChangelogEntry(ChangelogAction.REJECTED, "Noise", "coding-noise", TODAY),
        )

        lines = changelog_file.read_text().split("\n")
        date_index = lines.index("## 2026-01-15")
        assert lines[date_index + 2] == "### Rejected"
        assert lines.count("### Added") == 1

    def test_newer_date_above_older(self, changelog_file):
        add_changelog_entry(changelog_file, added("Old", date="2026-01-14"))
        add_changelog_entry(changelog_file, added("New", date="2026-01-15"))

        text = changelog_file.read_text()
        assert text.index("## 2026-01-15") < text.index("## 2026-01-14")

    def test_section_search_stops_at_next_date(self, changelog_file):
        """An Added section under an older date is not reused."""
        add_changelog_entry(changelog_file, added("Old", date="2026-01-14"))
        add_changelog_entry(
            changelog_file,
            ChangelogEntry(ChangelogAction.REJECTED, "Noise", "x", "2026-01-15"),
        )
        add_changelog_entry(changelog_file, added("New", date="2026-01-15"))

        text = changelog_file.read_text()
        assert text.count("### Added") == 2
        assert text.index("**New**") < text.index("## 2026-01-14")


class TestInitChangelog:
    def test_does_not_overwrite(self, changelog_file):
        add_changelog_entry(changelog_file, added("Keep"))

        assert init_changelog(changelog_file) is False
        assert "**Keep**" in changelog_file.read_text()


class TestCheckChangelog:
    """Tests for check_changelog."""

    def test_seeded_changelog_passes(self, changelog_file):
        check_changelog(changelog_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ChangelogError, match="changelog init"):
            check_changelog(tmp_path / "CHANGELOG.md")

    def test_missing_anchor(self, tmp_path):
        path = tmp_path / "CHANGELOG.md"
        path.write_text("# Changelog\n\nno anchor here\n")

        with pytest.raises(ChangelogError, match="Entries"):
            check_changelog(path)

        assert path.read_text() == "# Changelog\n\nno anchor here\n"


class TestCommitHelpers:
    """Tests for commit message generation."""

    def make_proposal(self) -> RuleProposal:
        return RuleProposal(
            pattern_id="coding-retry",
            title="Coding Retry",
            domain="coding",
            destination="core/rules/coding.md",
            content="## Coding Retry",
            source_records=["a", "b", "c"],
        )

    def test_approve_message(self):
        message = generate_commit_message(self.make_proposal(), "approve")

        assert message.split("\n")[0] == "self-improve: approve Coding Retry"
        assert "Pattern: coding-retry" in message
        assert "Source learnings: 3" in message
        assert "Route: core/rules/coding.md" in message

    def test_reject_message(self):
        message = generate_commit_message(self.make_proposal(), "reject", reason="Noise")

        assert message.startswith("self-improve: reject Coding Retry")
        assert "Reason: Noise" in message
        assert "Status: Archived, won't re-propose" in message

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            generate_commit_message(self.make_proposal(), "merge")

    def test_prepare_added(self):
        commit = prepare_changelog_commit(added("Retry Rule"))

        assert commit["message"].startswith("self-improve: approve Retry Rule")
        assert commit["files"] == [
            "CHANGELOG.md",
            "core/rules/coding.md",
            "patterns/index.json",
        ]

    def test_prepare_rejected(self):
        entry = ChangelogEntry(ChangelogAction.REJECTED, "Noise", "coding-noise", TODAY)

        commit = prepare_changelog_commit(entry)

        assert commit["message"].startswith("self-improve: reject Noise")
        assert commit["files"] == ["CHANGELOG.md", "patterns/index.json"]

    def test_prepare_archived(self):
        entry = ChangelogEntry(ChangelogAction.ARCHIVED, "Old", "coding-old", TODAY)

        assert prepare_changelog_commit(entry)["message"].startswith("self-improve: archived Old")

    def test_git_hash_unknown_on_failure(self, monkeypatch):
        def fail(*args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(subprocess, "run", fail)

        assert get_git_short_hash() == "unknown"

    def test_git_hash_outside_repo(self, tmp_path):
        """A directory that is not a repository yields unknown."""
        assert get_git_short_hash(tmp_path) == "unknown"
