"""Tests for the learnloop command line interface."""

import pytest
import yaml
from typer.testing import CliRunner

from cli.main import app
from learnloop import __version__
from learnloop.patterns.index import PatternIndexStore
from learnloop.patterns.models import PatternStatus

runner = CliRunner()

RETRY_TAGS = ["retry", "io"]


@pytest.fixture
def retry_records(write_record):
    return [
        write_record(f"2026-01-{day}_retry", domain="coding", tags=RETRY_TAGS, date=f"2026-01-{day}")
        for day in ("10", "12", "15")
    ]


@pytest.fixture
def pending_pattern(paths, retry_records):
    """coding-retry detected and awaiting review."""
    result = runner.invoke(app, ["detect", str(retry_records[-1])])
    assert result.exit_code == 0
    return "coding-retry"


def status_of(paths, pattern_id):
    return PatternIndexStore(paths.index_file).get(pattern_id).status


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"learnloop version {__version__}" in result.output


class TestScan:
    def test_empty(self, memory_root):
        result = runner.invoke(app, ["scan"])

        assert result.exit_code == 0
        assert "No learning records" in result.output

    def test_lists_records(self, retry_records):
        result = runner.invoke(app, ["scan"])

        assert result.exit_code == 0
        assert "2026-01-10_retry" in result.output
        assert "Total: 3 | coding: 3" in result.output


class TestDetect:
    def test_pattern_proposed(self, paths, retry_records):
        result = runner.invoke(app, ["detect", str(retry_records[-1])])

        assert result.exit_code == 0
        assert "proposed" in result.output
        assert "coding-retry" in result.output
        assert (paths.pending / "coding-retry.md").exists()

    def test_missing_file(self, memory_root):
        result = runner.invoke(app, ["detect", str(memory_root / "nope.md")])

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_auto_apply_without_changelog(self, write_record):
        paths = [
            write_record(f"n{i}", domain="coding", tags=["naming-convention", "python"])
            for i in range(3)
        ]

        result = runner.invoke(app, ["detect", str(paths[-1])])

        assert result.exit_code == 1
        assert "Changelog file not found" in result.output


class TestMine:
    def test_mine(self, paths, retry_records):
        result = runner.invoke(app, ["mine"])

        assert result.exit_code == 0
        assert "Records: 3 | proposed: 3" in result.output

    def test_failures_exit_nonzero(self, write_record):
        for i in range(3):
            write_record(f"n{i}", domain="coding", tags=["naming-convention", "python"])

        result = runner.invoke(app, ["mine"])

        assert result.exit_code == 1
        assert "3 record(s) failed" in result.output


class TestChangelogInit:
    def test_init(self, paths):
        result = runner.invoke(app, ["changelog", "init"])

        assert result.exit_code == 0
        assert paths.changelog.exists()
        assert "## Entries" in paths.changelog.read_text()

    def test_init_existing(self, changelog):
        result = runner.invoke(app, ["changelog", "init"])

        assert result.exit_code == 0
        assert "already exists" in result.output


class TestPatternCommands:
    """Tests for the patterns sub-commands."""

    def test_list_empty(self, memory_root):
        result = runner.invoke(app, ["patterns", "list"])

        assert result.exit_code == 0
        assert "No patterns found" in result.output

    def test_list_filtered(self, pending_pattern):
        pending = runner.invoke(app, ["patterns", "list", "--status", "pending"])
        approved = runner.invoke(app, ["patterns", "list", "--status", "approved"])

        assert "coding-retry" in pending.output
        assert "No patterns found" in approved.output

    def test_approve(self, paths, changelog, pending_pattern):
        result = runner.invoke(app, ["patterns", "approve", pending_pattern])

        assert result.exit_code == 0
        assert "Approved coding-retry" in result.output
        assert "self-improve: approve Coding Retry" in result.output
        assert status_of(paths, pending_pattern) == PatternStatus.APPROVED

    def test_reject_with_reason(self, paths, changelog, pending_pattern):
        result = runner.invoke(
            app, ["patterns", "reject", pending_pattern, "--reason", "Too noisy"]
        )

        assert result.exit_code == 0
        assert status_of(paths, pending_pattern) == PatternStatus.REJECTED
        assert "Reason: Too noisy" in changelog.read_text()

    def test_archive(self, paths, changelog, pending_pattern):
        result = runner.invoke(app, ["patterns", "archive", pending_pattern])

        assert result.exit_code == 0
        assert status_of(paths, pending_pattern) == PatternStatus.ARCHIVED

    def test_unknown_pattern(self, changelog):
        result = runner.invoke(app, ["patterns", "approve", "coding-nothing"])

        assert result.exit_code == 1
        assert "coding-nothing" in result.output

    def test_approve_without_changelog(self, paths, pending_pattern):
        result = runner.invoke(app, ["patterns", "approve", pending_pattern])

        assert result.exit_code == 1
        assert status_of(paths, pending_pattern) == PatternStatus.PENDING


class TestInvestigate:
    def test_report(self, paths, changelog, tmp_path):
        report = tmp_path / "owner_repo.yaml"
        report.write_text(
            yaml.safe_dump(
                {
                    "investigation": {"repo": "owner/repo", "url": "https://github.com/owner/repo"},
                    "metadata": {"language": "Python"},
                    "insights": {
                        "patterns": [
                            {"name": "Plugin Loader", "description": "Loads plugin modules"}
                        ],
                        "potential_learnings": ["Plugins keep the core small"],
                    },
                }
            )
        )

        result = runner.invoke(app, ["investigate", str(report)])

        assert result.exit_code == 0
        assert "owner/repo: Auto-applied: 1 pattern" in result.output
        assert (paths.approved / "plugin-loader_owner_repo.md").exists()

    def test_unloadable_report(self, memory_root):
        result = runner.invoke(app, ["investigate", str(memory_root / "missing.yaml")])

        assert result.exit_code == 1
        assert "Could not load investigation report" in result.output


class TestConfigOption:
    def test_invalid_config_file(self, memory_root):
        config = memory_root / "bad.yaml"
        config.write_text("detection: [unclosed\n")

        result = runner.invoke(app, ["--config", str(config), "scan"])

        assert result.exit_code == 1
        assert "Invalid YAML" in result.output
