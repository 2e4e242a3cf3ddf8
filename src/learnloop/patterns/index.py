"""
Pattern Index - Persistent lifecycle state for every known pattern.

The index is one JSON document::

    {
      "patterns": {
        "coding-error-handling": {
          "domain": "coding",
          "primaryTags": ["error-handling", "retry"],
          "memberIds": ["2026-01-10_retry", ...],
          "detectedAt": "2026-01-12T09:00:00Z",
          "status": "pending"
        }
      },
      "lastUpdated": "2026-01-12T09:00:00Z"
    }

Every read-modify-write cycle holds the index lock and replaces the file
atomically. Rejected entries are never modified again.
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path

from ..errors import InvalidTransitionError, PatternNotFoundError
from ..fileio import atomic_write, locked
from .models import (
    ExtractedPattern,
    PatternCandidate,
    PatternIndex,
    PatternIndexEntry,
    PatternStatus,
    can_transition,
    utc_now,
)

logger = logging.getLogger(__name__)

PRIMARY_TAG_LIMIT = 5
DESCRIPTION_LIMIT = 100


class IndexUpdate(str, Enum):
    """What an automatic index update did."""

    CREATED = "created"
    MERGED = "merged"
    SKIPPED_REJECTED = "skipped_rejected"
    SKIPPED_CLOSED = "skipped_closed"  # archived, not reopened automatically


def truncate_description(description: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(description) <= limit:
        return description
    return description[: limit - 3] + "..."


class PatternIndexStore:
    """Load, mutate and save the pattern index file."""

    def __init__(self, path: Path):
        """
        Args:
            path: Location of index.json
        """
        self.path = Path(path)

    def load(self) -> PatternIndex:
        """
        Read the index. Never raises.

        Returns:
            The stored index, or an empty one if the file is missing or corrupt
        """
        if not self.path.exists():
            return PatternIndex()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Pattern index unreadable, starting empty: {self.path}: {e}")
            return PatternIndex()

        if not isinstance(data, dict):
            logger.warning(f"Pattern index is not an object, starting empty: {self.path}")
            return PatternIndex()

        return PatternIndex.from_dict(data)

    def save(self, index: PatternIndex) -> None:
        """Overwrite the whole index file."""
        index.last_updated = utc_now()
        atomic_write(self.path, json.dumps(index.to_dict(), indent=2) + "\n")

    @contextmanager
    def transaction(self) -> Iterator[PatternIndex]:
        """
        Locked load-mutate-save cycle.

        The index is saved only if the block completes without raising.
        """
        with locked(self.path):
            index = self.load()
            yield index
            self.save(index)

    # =========================================================================
    # Automatic updates
    # =========================================================================

    def update(self, candidate: PatternCandidate) -> tuple[IndexUpdate, PatternIndexEntry]:
        """
        Merge a detected candidate into the index.

        New patterns are created as pending with the most common member tags
        as primary tags. Existing patterns gain any new member ids and a fresh
        detection time. Rejected patterns are returned untouched.

        Args:
            candidate: Result of detect_pattern()

        Returns:
            Tuple of (what happened, the entry as it now stands)
        """
        with self.transaction() as index:
            entry = index.patterns.get(candidate.pattern_id)

            if entry is not None and entry.is_rejected:
                logger.info(f"Pattern {candidate.pattern_id} was rejected, not re-proposing")
                return IndexUpdate.SKIPPED_REJECTED, entry

            if entry is not None:
                entry.member_ids = list(
                    dict.fromkeys(entry.member_ids + candidate.member_ids)
                )
                entry.detected_at = candidate.detected_at
                logger.debug(
                    f"Pattern {candidate.pattern_id} now has {len(entry.member_ids)} members"
                )
                return IndexUpdate.MERGED, entry

            entry = PatternIndexEntry(
                domain=candidate.domain,
                primary_tags=candidate.most_common_tags(limit=PRIMARY_TAG_LIMIT),
                member_ids=list(dict.fromkeys(candidate.member_ids)),
                detected_at=candidate.detected_at,
                status=PatternStatus.PENDING,
            )
            index.patterns[candidate.pattern_id] = entry
            logger.info(f"Indexed new pattern {candidate.pattern_id} (pending)")
            return IndexUpdate.CREATED, entry

    def record_extracted(
        self, pattern: ExtractedPattern, status: PatternStatus
    ) -> tuple[IndexUpdate, PatternIndexEntry]:
        """
        Record an investigation pattern as approved (auto-applied) or pending.

        Rejected and archived entries are left as they are. A pending entry
        may be promoted to approved; an approved one is never demoted.
        """
        with self.transaction() as index:
            entry = index.patterns.get(pattern.id)

            if entry is not None and entry.is_rejected:
                return IndexUpdate.SKIPPED_REJECTED, entry
            if entry is not None and entry.status == PatternStatus.ARCHIVED:
                return IndexUpdate.SKIPPED_CLOSED, entry

            now = utc_now()
            if entry is None:
                entry = PatternIndexEntry(
                    domain=pattern.type.value,
                    primary_tags=pattern.tags[:PRIMARY_TAG_LIMIT],
                    member_ids=[pattern.source],
                    detected_at=pattern.extracted_at,
                    status=status,
                )
                index.patterns[pattern.id] = entry
                outcome = IndexUpdate.CREATED
            else:
                if status == PatternStatus.APPROVED:
                    entry.status = PatternStatus.APPROVED
                entry.member_ids = list(dict.fromkeys(entry.member_ids + [pattern.source]))
                outcome = IndexUpdate.MERGED

            entry.source = pattern.source
            entry.type = pattern.type
            entry.description = truncate_description(pattern.description)
            entry.updated_at = now
            if entry.status == PatternStatus.APPROVED and entry.reviewed_at is None:
                entry.reviewed_at = now
            return outcome, entry

    # =========================================================================
    # Explicit review
    # =========================================================================

    def transition(
        self,
        pattern_id: str,
        requested: PatternStatus,
        reason: str | None = None,
    ) -> PatternIndexEntry:
        """
        Move a pattern to a new status on an explicit review command.

        Args:
            pattern_id: Pattern to change
            requested: Target status
            reason: Rejection reason (stored for rejected patterns)

        Returns:
            The updated entry

        Raises:
            PatternNotFoundError: If the id is not indexed
            InvalidTransitionError: If the lifecycle forbids the change
        """
        with self.transaction() as index:
            entry = index.patterns.get(pattern_id)
            if entry is None:
                raise PatternNotFoundError(pattern_id)
            if not can_transition(entry.status, requested):
                raise InvalidTransitionError(
                    pattern_id, entry.status.value, requested.value
                )

            now = utc_now()
            entry.status = requested
            entry.reviewed_at = now
            entry.updated_at = now
            if requested == PatternStatus.REJECTED:
                entry.rejection_reason = reason
            logger.info(f"Pattern {pattern_id} -> {requested.value}")
            return entry

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, pattern_id: str) -> PatternIndexEntry | None:
        return self.load().patterns.get(pattern_id)

    def is_pattern_pending(self, pattern_id: str) -> bool:
        entry = self.get(pattern_id)
        return entry is not None and entry.status == PatternStatus.PENDING

    def get_patterns_by_status(self, status: PatternStatus) -> list[str]:
        """Ids of every pattern with ``status``, in index order."""
        return [
            pid for pid, entry in self.load().patterns.items() if entry.status == status
        ]
