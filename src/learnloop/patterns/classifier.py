"""
Relevance Classifier - Keyword heuristics for pattern type and relevance.

Both classifications are ordered rule lists evaluated first-match-wins:
workflow is tested before architectural before integration, and HIGH
relevance keywords before MEDIUM ones.
"""

import re
from collections.abc import Callable, Sequence

from .models import ExtractedPattern, PatternCandidate, PatternType, Relevance

Rule = tuple[Callable[[str], bool], object]


def _contains_any(*keywords: str) -> Callable[[str], bool]:
    def predicate(text: str) -> bool:
        return any(keyword in text for keyword in keywords)

    return predicate


TYPE_RULES: list[Rule] = [
    (
        _contains_any("workflow", "process", "pipeline", "orchestrat", "sequence"),
        PatternType.WORKFLOW,
    ),
    (
        _contains_any("architecture", "structure", "design", "pattern", "layer"),
        PatternType.ARCHITECTURAL,
    ),
    (
        _contains_any("integration", "connect", "api", "interface", "bridge"),
        PatternType.INTEGRATION,
    ),
]

HIGH_RELEVANCE_KEYWORDS = (
    "agent",
    "subagent",
    "sub-agent",
    "context",
    "memory",
    "learning",
    "skill",
    "protocol",
    "workflow",
    "delegation",
    "orchestration",
    "autonomous",
)

MEDIUM_RELEVANCE_KEYWORDS = (
    "automation",
    "pattern",
    "structure",
    "organization",
    "cli",
    "tool",
    "pipeline",
    "template",
    "modular",
    "plugin",
)

RELEVANCE_RULES: list[Rule] = [
    (_contains_any(*HIGH_RELEVANCE_KEYWORDS), Relevance.HIGH),
    (_contains_any(*MEDIUM_RELEVANCE_KEYWORDS), Relevance.MEDIUM),
]

# Strict: more than half of the candidate's words must match
ALTERNATIVE_OVERLAP_RATIO = 0.5
MIN_WORD_LENGTH = 3


def _first_match(rules: Sequence[Rule], text: str, default):
    for predicate, result in rules:
        if predicate(text):
            return result
    return default


def infer_pattern_type(description: str) -> PatternType:
    """Classify a description as workflow, architectural, integration or code."""
    return _first_match(TYPE_RULES, description.lower(), PatternType.CODE)


def assess_relevance(name: str, description: str) -> Relevance:
    """Relevance tier of a pattern judged from its name and description."""
    text = f"{name} {description}".lower()
    return _first_match(RELEVANCE_RULES, text, Relevance.LOW)


def name_words(name: str) -> list[str]:
    """Words of a pattern name longer than two characters."""
    cleaned = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    return [w for w in re.split(r"[\s-]+", cleaned) if len(w) >= MIN_WORD_LENGTH]


def _id_words(pattern_id: str) -> list[str]:
    cleaned = re.sub(r"[^a-z0-9\s\-_]", " ", pattern_id.lower())
    return [w for w in re.split(r"[\s\-_]+", cleaned) if len(w) >= MIN_WORD_LENGTH]


def find_existing_alternative(name: str, existing_ids: Sequence[str]) -> str | None:
    """
    Find an already indexed pattern that looks equivalent to ``name``.

    Args:
        name: Name of the new pattern
        existing_ids: Known pattern ids, in index order

    Returns:
        The first id sharing more than half of the name's words, else None
    """
    words = name_words(name)
    if not words:
        return None

    for existing in existing_ids:
        existing_words = set(_id_words(existing))
        overlap = sum(1 for w in words if w in existing_words)
        if overlap / len(words) > ALTERNATIVE_OVERLAP_RATIO:
            return existing

    return None


def title_from_id(pattern_id: str) -> str:
    """``coding-error-handling`` -> ``Coding Error Handling``."""
    return " ".join(w[:1].upper() + w[1:] for w in pattern_id.split("-"))


def classify_candidate(
    candidate: PatternCandidate, existing_ids: Sequence[str] = ()
) -> ExtractedPattern:
    """
    Classify a detected learning pattern.

    The shared tags stand in for the description a human investigator would
    have written, so the same keyword rules apply to both record sources.
    """
    tags = candidate.most_common_tags()
    name = title_from_id(candidate.pattern_id)
    description = (
        f"{len(candidate.members)} {candidate.domain} learnings sharing "
        f"{', '.join(tags) if tags else 'no tags'}"
    )
    others = [pid for pid in existing_ids if pid != candidate.pattern_id]

    return ExtractedPattern(
        id=candidate.pattern_id,
        name=name,
        type=infer_pattern_type(" ".join(tags)),
        description=description,
        source=candidate.members[0].id,
        relevance=assess_relevance(name, " ".join(tags)),
        existing_alternative=find_existing_alternative(name, others),
        tags=tags,
        extracted_at=candidate.detected_at,
    )
