"""
Pattern Detector - Finds clusters of similar records.

A pattern exists when a new record shares its domain with at least
``threshold - 1`` earlier records, each of which shares at least
``tag_overlap_required`` tags with it. Matching is deterministic tag
overlap; no similarity model is involved.
"""

import logging
import re
from collections.abc import Iterable

from ..records.models import Record
from .models import PatternCandidate

logger = logging.getLogger(__name__)

THRESHOLD = 3
TAG_OVERLAP_REQUIRED = 2
DEFAULT_TAG_COMPONENT = "general"


def count_tag_overlap(tags_a: Iterable[str], tags_b: Iterable[str]) -> int:
    """Number of tags two records share, compared case-insensitively."""
    return len({t.lower() for t in tags_a} & {t.lower() for t in tags_b})


def slugify_tag(tag: str) -> str:
    return re.sub(r"\s+", "-", tag.strip().lower())


def build_pattern_id(domain: str, candidate: PatternCandidate) -> str:
    """``{domain}-{most frequent member tag}``, ties going to the first seen."""
    top_tags = candidate.most_common_tags(limit=1)
    tag_component = slugify_tag(top_tags[0]) if top_tags else DEFAULT_TAG_COMPONENT
    return f"{domain.lower()}-{tag_component}"


def detect_pattern(
    record: Record,
    corpus: list[Record],
    threshold: int = THRESHOLD,
    tag_overlap_required: int = TAG_OVERLAP_REQUIRED,
) -> PatternCandidate | None:
    """
    Decide whether a new record completes a pattern.

    Args:
        record: The newly captured record
        corpus: Every known record; may include ``record`` itself
        threshold: Records needed to form a pattern
        tag_overlap_required: Shared tags needed for a record to count

    Returns:
        PatternCandidate with ``threshold`` members (the new record first),
        or None when no pattern exists
    """
    needed = threshold - 1
    domain = record.domain.lower()

    same_domain = [
        r for r in corpus if r.domain.lower() == domain and r.id != record.id
    ]
    if len(same_domain) < needed:
        logger.debug(
            f"{record.id}: {len(same_domain)} same-domain records, need {needed}"
        )
        return None

    scored = []
    for other in same_domain:
        overlap = count_tag_overlap(record.tags, other.tags)
        if overlap >= tag_overlap_required:
            scored.append((overlap, other))

    if len(scored) < needed:
        logger.debug(
            f"{record.id}: {len(scored)} records with {tag_overlap_required}+ "
            f"shared tags, need {needed}"
        )
        return None

    # sorted() is stable, so equal overlaps keep corpus order
    top = sorted(scored, key=lambda pair: -pair[0])[:needed]

    candidate = PatternCandidate(
        pattern_id="",
        members=[record] + [other for _, other in top],
        match_score=sum(overlap for overlap, _ in top),
    )
    candidate.pattern_id = build_pattern_id(record.domain, candidate)

    logger.info(
        f"Pattern {candidate.pattern_id} detected from {len(candidate.members)} "
        f"records (score {candidate.match_score})"
    )
    return candidate
