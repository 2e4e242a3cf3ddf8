"""
Record Models - Data classes for learning records.
"""

from dataclasses import dataclass, field
from enum import Enum


class Confidence(str, Enum):
    """Confidence the capturing process attached to a record."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ParseStatus(str, Enum):
    """Outcome of parsing a record header."""

    OK = "ok"  # Every field present and well-formed
    DEFAULTED = "defaulted"  # One or more fields fell back to a default


DEFAULT_DOMAIN = "general"
DEFAULT_CONFIDENCE = Confidence.MEDIUM


@dataclass(frozen=True)
class Record:
    """A captured learning or observation. Read-only to the engine."""

    id: str  # filename without extension
    date: str  # YYYY-MM-DD, "" when unknown
    domain: str = DEFAULT_DOMAIN
    tags: tuple[str, ...] = ()
    confidence: Confidence = DEFAULT_CONFIDENCE
    filepath: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "domain": self.domain,
            "tags": list(self.tags),
            "confidence": self.confidence.value,
            "filepath": self.filepath,
        }


@dataclass
class RecordHeader:
    """
    Parsed metadata header of a record file.

    ``status`` is OK when every field was read as written, DEFAULTED when a
    field was missing or malformed and a default was substituted. Absent
    fields are None so the scanner can apply its own fallbacks (filename
    date, parent directory domain).
    """

    status: ParseStatus
    domain: str | None = None
    date: str | None = None
    confidence: Confidence = DEFAULT_CONFIDENCE
    tags: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == ParseStatus.OK
