"""
Pattern Models - Data classes for detected and extracted patterns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..records.models import Record


def utc_now() -> str:
    """ISO-8601 timestamp used for every persisted time field."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PatternStatus(str, Enum):
    """Lifecycle status of an indexed pattern."""

    PENDING = "pending"  # Detected, awaiting review
    APPROVED = "approved"  # Compiled into a rule or note
    REJECTED = "rejected"  # Never re-proposed
    ARCHIVED = "archived"  # Retired after compilation


# Allowed status changes. Anything not listed is refused.
ALLOWED_TRANSITIONS: dict[PatternStatus, frozenset[PatternStatus]] = {
    PatternStatus.PENDING: frozenset(
        {PatternStatus.APPROVED, PatternStatus.REJECTED, PatternStatus.ARCHIVED}
    ),
    PatternStatus.APPROVED: frozenset({PatternStatus.ARCHIVED}),
    PatternStatus.REJECTED: frozenset(),
    PatternStatus.ARCHIVED: frozenset(),
}


def can_transition(current: PatternStatus, requested: PatternStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


class PatternType(str, Enum):
    """What kind of practice a pattern describes."""

    WORKFLOW = "workflow"
    ARCHITECTURAL = "architectural"
    INTEGRATION = "integration"
    CODE = "code"


class Relevance(str, Enum):
    """How useful a pattern is to the automation system."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class PatternCandidate:
    """Transient result of a successful detection pass."""

    pattern_id: str
    members: list[Record]
    match_score: int
    detected_at: str = field(default_factory=utc_now)

    @property
    def domain(self) -> str:
        return self.members[0].domain if self.members else ""

    @property
    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    def most_common_tags(self, limit: int | None = None, min_count: int = 1) -> list[str]:
        """
        Tags across members ordered by frequency, ties in first-seen order.

        Counting is case-insensitive; the first spelling seen is reported.
        """
        counts: dict[str, int] = {}
        spelling: dict[str, str] = {}
        for member in self.members:
            for tag in member.tags:
                key = tag.lower()
                spelling.setdefault(key, tag)
                counts[key] = counts.get(key, 0) + 1

        ordered = sorted(counts, key=lambda k: -counts[k])
        tags = [spelling[k] for k in ordered if counts[k] >= min_count]
        return tags[:limit] if limit is not None else tags

    def date_range(self) -> tuple[str, str] | None:
        dates = sorted(m.date for m in self.members if m.date)
        if not dates:
            return None
        return dates[0], dates[-1]


@dataclass
class PatternIndexEntry:
    """Persisted lifecycle record of one pattern."""

    domain: str
    primary_tags: list[str] = field(default_factory=list)
    member_ids: list[str] = field(default_factory=list)
    detected_at: str = field(default_factory=utc_now)
    status: PatternStatus = PatternStatus.PENDING
    reviewed_at: str | None = None
    rejection_reason: str | None = None
    updated_at: str | None = None
    # Set for patterns extracted from investigations
    source: str | None = None
    type: PatternType | None = None
    description: str | None = None

    @property
    def is_rejected(self) -> bool:
        return self.status == PatternStatus.REJECTED

    def to_dict(self) -> dict:
        """Convert to the JSON shape stored in the index file."""
        data = {
            "domain": self.domain,
            "primaryTags": list(self.primary_tags),
            "memberIds": list(self.member_ids),
            "detectedAt": self.detected_at,
            "status": self.status.value,
        }
        optional = {
            "reviewedAt": self.reviewed_at,
            "rejectionReason": self.rejection_reason,
            "updatedAt": self.updated_at,
            "source": self.source,
            "type": self.type.value if self.type else None,
            "description": self.description,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PatternIndexEntry":
        """Create from a stored entry. Older files used ``learningIds``."""
        member_ids = data.get("memberIds", data.get("learningIds")) or []
        try:
            status = PatternStatus(data.get("status") or PatternStatus.PENDING.value)
        except ValueError:
            status = PatternStatus.PENDING
        try:
            pattern_type = PatternType(data["type"]) if data.get("type") else None
        except ValueError:
            pattern_type = None

        return cls(
            domain=data.get("domain") or "",
            primary_tags=list(data.get("primaryTags") or []),
            member_ids=list(dict.fromkeys(member_ids)),
            detected_at=data.get("detectedAt") or utc_now(),
            status=status,
            reviewed_at=data.get("reviewedAt"),
            rejection_reason=data.get("rejectionReason"),
            updated_at=data.get("updatedAt"),
            source=data.get("source"),
            type=pattern_type,
            description=data.get("description"),
        )


@dataclass
class PatternIndex:
    """All indexed patterns plus the time of the last write."""

    patterns: dict[str, PatternIndexEntry] = field(default_factory=dict)
    last_updated: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "patterns": {pid: e.to_dict() for pid, e in self.patterns.items()},
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PatternIndex":
        raw_patterns = data.get("patterns") or {}
        return cls(
            patterns={
                pid: PatternIndexEntry.from_dict(entry)
                for pid, entry in raw_patterns.items()
                if isinstance(entry, dict)
            },
            last_updated=data.get("lastUpdated") or utc_now(),
        )


@dataclass
class ExtractedPattern:
    """A classified pattern, ready for autonomy decisions and compilation."""

    id: str
    name: str
    type: PatternType
    description: str
    source: str  # originating repository or record id
    relevance: Relevance
    existing_alternative: str | None = None
    tags: list[str] = field(default_factory=list)
    extracted_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "source": self.source,
            "relevance": self.relevance.value,
            "existingAlternative": self.existing_alternative,
            "tags": list(self.tags),
            "extractedAt": self.extracted_at,
        }
