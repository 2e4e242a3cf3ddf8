"""
Record Scanner - Learning corpus enumeration.

Walks a learnings directory, parses each record's metadata header and
returns Record objects. A single unreadable file is logged and skipped;
the scan as a whole never fails.
"""

import logging
import re
from pathlib import Path

from .models import DEFAULT_DOMAIN, Record, RecordHeader
from .parser import parse_record_header

logger = logging.getLogger(__name__)

FILENAME_DATE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})")


class RecordScanner:
    """Scanner for a directory tree of markdown learning records."""

    # Directories never descended into
    SKIP_DIRS = {"archived"}

    # Reserved file at any level that is not a record
    INDEX_FILENAME = "index.md"

    RECORD_SUFFIX = ".md"

    def __init__(self, root: Path):
        """
        Initialize scanner for a learnings directory.

        Args:
            root: Path to the learnings root directory
        """
        self.root = Path(root)

    def scan(self) -> list[Record]:
        """
        Scan the whole tree.

        Returns:
            Records in deterministic (sorted path) order; empty if root is missing
        """
        if not self.root.is_dir():
            logger.debug(f"Learnings directory does not exist: {self.root}")
            return []

        records = []
        for path in self._iter_record_files():
            record = self.scan_file(path)
            if record is not None:
                records.append(record)
        return records

    def _iter_record_files(self):
        for path in sorted(self.root.rglob(f"*{self.RECORD_SUFFIX}")):
            relative_dirs = path.relative_to(self.root).parts[:-1]
            if any(
                part.startswith(".") or part in self.SKIP_DIRS for part in relative_dirs
            ):
                continue
            if path.name == self.INDEX_FILENAME or path.name.startswith("."):
                continue
            if path.is_file():
                yield path

    def scan_file(self, path: Path) -> Record | None:
        """
        Read one record file.

        Args:
            path: Path to the record file

        Returns:
            Record, or None when the file cannot be read
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read learning file {path}: {e}")
            return None

        header = parse_record_header(content)
        if not header.ok:
            logger.debug(f"{path.name}: defaults applied ({', '.join(header.warnings)})")

        return self.build_record(path, header)

    def build_record(self, path: Path, header: RecordHeader) -> Record:
        """Combine a parsed header with filename and directory fallbacks."""
        date = header.date
        if not date:
            filename_date = FILENAME_DATE_PATTERN.match(path.name)
            date = filename_date.group(1) if filename_date else ""

        domain = header.domain
        if not domain:
            parent = path.parent
            domain = DEFAULT_DOMAIN if self._is_root(parent) else parent.name

        return Record(
            id=path.stem,
            date=date,
            domain=domain,
            tags=tuple(header.tags),
            confidence=header.confidence,
            filepath=str(path),
        )

    def _is_root(self, directory: Path) -> bool:
        try:
            return directory.resolve() == self.root.resolve()
        except OSError:
            return directory == self.root

    def get_scan_summary(self, records: list[Record]) -> dict:
        """
        Summarise scan results.

        Returns:
            Dictionary with total and per-domain counts
        """
        by_domain: dict[str, int] = {}
        for record in records:
            by_domain[record.domain] = by_domain.get(record.domain, 0) + 1

        return {
            "total": len(records),
            "by_domain": dict(sorted(by_domain.items())),
            "untagged": sum(1 for r in records if not r.tags),
        }
