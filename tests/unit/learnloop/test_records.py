"""Unit tests for record header parsing and corpus scanning."""

from pathlib import Path

from learnloop.records.models import Confidence, ParseStatus
from learnloop.records.parser import dedupe_tags, parse_record_header
from learnloop.records.scanner import RecordScanner


class TestParseRecordHeader:
    """Tests for parse_record_header."""

    def test_full_header_parses_ok(self):
        """Every field present gives status OK."""
        content = (
            "---\n"
            "domain: coding\n"
            "date: 2026-01-15\n"
            "confidence: high\n"
            "tags:\n"
            "  - error-handling\n"
            "  - retry\n"
            "---\n"
            "\nBody text\n"
        )
        header = parse_record_header(content)

        assert header.status == ParseStatus.OK
        assert header.domain == "coding"
        assert header.date == "2026-01-15"
        assert header.confidence == Confidence.HIGH
        assert header.tags == ["error-handling", "retry"]
        assert header.warnings == []

    def test_inline_bracket_tags(self):
        """Inline tags in brackets are split on commas."""
        content = "---\ndomain: git\ndate: 2026-01-15\nconfidence: LOW\ntags: [rebase, 'merge']\n---\n"
        header = parse_record_header(content)

        assert header.tags == ["rebase", "merge"]
        assert header.ok

    def test_inline_plain_tags(self):
        """Inline tags without brackets are accepted."""
        content = "---\ndomain: git\ndate: 2026-01-15\nconfidence: LOW\ntags: rebase, merge\n---\n"
        assert parse_record_header(content).tags == ["rebase", "merge"]

    def test_empty_tag_list(self):
        """tags: [] is an explicit empty list, not a missing field."""
        content = "---\ndomain: git\ndate: 2026-01-15\nconfidence: LOW\ntags: []\n---\n"
        header = parse_record_header(content)

        assert header.tags == []
        assert header.status == ParseStatus.OK

    def test_no_header_defaults(self):
        """A file with no header falls back to defaults without raising."""
        header = parse_record_header("Just some text\n")

        assert header.status == ParseStatus.DEFAULTED
        assert header.domain is None
        assert header.tags == []
        assert header.confidence == Confidence.MEDIUM

    def test_unknown_confidence_defaults_to_medium(self):
        """Unrecognised confidence values become MEDIUM with a warning."""
        content = "---\ndomain: coding\ndate: 2026-01-15\nconfidence: certain\ntags: [a]\n---\n"
        header = parse_record_header(content)

        assert header.confidence == Confidence.MEDIUM
        assert header.status == ParseStatus.DEFAULTED
        assert any("confidence" in w for w in header.warnings)

    def test_malformed_date_is_dropped(self):
        """A date that is not YYYY-MM-DD is left unset."""
        content = "---\ndomain: coding\ndate: last tuesday\nconfidence: HIGH\ntags: [a]\n---\n"
        header = parse_record_header(content)

        assert header.date is None
        assert header.status == ParseStatus.DEFAULTED

    def test_datetime_is_truncated_to_date(self):
        """Timestamps keep only their date part."""
        content = "---\ndomain: coding\ndate: 2026-01-15T10:30:00Z\nconfidence: HIGH\ntags: [a]\n---\n"
        assert parse_record_header(content).date == "2026-01-15"

    def test_windows_line_endings(self):
        """CRLF files parse like LF files."""
        content = "---\r\ndomain: coding\r\ndate: 2026-01-15\r\nconfidence: HIGH\r\ntags: [a, b]\r\n---\r\n"
        header = parse_record_header(content)

        assert header.domain == "coding"
        assert header.tags == ["a", "b"]

    def test_duplicate_tags_removed(self):
        """Tags differing only by case are kept once."""
        content = "---\ndomain: coding\ndate: 2026-01-15\nconfidence: HIGH\ntags: [Retry, retry, io]\n---\n"
        assert parse_record_header(content).tags == ["Retry", "io"]


class TestDedupeTags:
    """Tests for dedupe_tags."""

    def test_keeps_first_spelling(self):
        assert dedupe_tags(["API", "api", "Api"]) == ["API"]

    def test_drops_empty(self):
        assert dedupe_tags(["", "a", ""]) == ["a"]


class TestRecordScanner:
    """Tests for RecordScanner."""

    def test_missing_root_returns_empty(self, tmp_path: Path):
        """Scanning a directory that does not exist yields no records."""
        assert RecordScanner(tmp_path / "nope").scan() == []

    def test_scan_reads_records(self, write_record, paths):
        """Records are returned with parsed metadata."""
        write_record("2026-01-15_retry", domain="coding", tags=["retry", "io"])

        records = RecordScanner(paths.learnings).scan()

        assert len(records) == 1
        record = records[0]
        assert record.id == "2026-01-15_retry"
        assert record.domain == "coding"
        assert record.tags == ("retry", "io")
        assert record.filepath.endswith("2026-01-15_retry.md")

    def test_skips_archived_hidden_and_index(self, write_record, paths):
        """Archived and hidden directories and index.md are not records."""
        write_record("keep", tags=["a"])
        write_record("old", subdir="archived", tags=["a"])
        write_record("secret", subdir=".drafts", tags=["a"])
        (paths.learnings / "index.md").write_text("# Index\n")

        ids = [r.id for r in RecordScanner(paths.learnings).scan()]

        assert ids == ["keep"]

    def test_date_from_filename(self, write_record, paths):
        """Missing date falls back to the filename prefix."""
        write_record("2026-02-03_note", date=None, tags=["a"])

        record = RecordScanner(paths.learnings).scan()[0]

        assert record.date == "2026-02-03"

    def test_domain_from_parent_directory(self, write_record, paths):
        """Missing domain falls back to the parent directory name."""
        write_record("note", subdir="security", domain=None, tags=["a"])

        record = RecordScanner(paths.learnings).scan()[0]

        assert record.domain == "security"

    def test_domain_at_root_is_general(self, write_record, paths):
        """A record directly under the root without a domain is general."""
        write_record("note", domain=None, tags=["a"])

        record = RecordScanner(paths.learnings).scan()[0]

        assert record.domain == "general"

    def test_unreadable_file_is_skipped(self, write_record, paths):
        """A file that is not valid UTF-8 is skipped, the rest still scan."""
        write_record("good", tags=["a"])
        (paths.learnings / "bad.md").write_bytes(b"\xff\xfe\x00garbage")

        ids = [r.id for r in RecordScanner(paths.learnings).scan()]

        assert ids == ["good"]

    def test_scan_summary(self, write_record, paths):
        """Summary counts records per domain and untagged records."""
        write_record("a", domain="coding", tags=["x"])
        write_record("b", domain="coding", tags=[])
        write_record("c", domain="git", tags=["y"])
        scanner = RecordScanner(paths.learnings)

        summary = scanner.get_scan_summary(scanner.scan())

        assert summary["total"] == 3
        assert summary["by_domain"] == {"coding": 2, "git": 1}
        assert summary["untagged"] == 1
