"""
Pattern extraction from investigation reports.

The investigator names patterns while studying a repository; this module
turns those names into classified ExtractedPattern objects. Relevance is
assessed first so low-relevance patterns are dropped before anything else
is computed.
"""

import logging
import re
from collections.abc import Sequence

from ..records.reports import InvestigationReport, RawPattern
from .classifier import (
    assess_relevance,
    find_existing_alternative,
    infer_pattern_type,
    name_words,
)
from .models import ExtractedPattern, Relevance, utc_now

logger = logging.getLogger(__name__)


def generate_pattern_id(name: str, repo: str) -> str:
    """
    Stable id for a pattern found in a repository.

    >>> generate_pattern_id("Process Save Summarize", "owner/repo")
    'process-save-summarize_owner_repo'
    """
    normalized_name = re.sub(r"\s+", "-", name.lower().strip())
    normalized_name = re.sub(r"[^a-z0-9-]", "", normalized_name)
    normalized_repo = re.sub(r"[^a-zA-Z0-9_-]", "", repo.replace("/", "_", 1))
    return f"{normalized_name}_{normalized_repo}"


def build_pattern_tags(report: InvestigationReport, pattern: RawPattern) -> list[str]:
    """Language, first three topics, inferred type and name words, de-duplicated."""
    tags: list[str] = []
    if report.language:
        tags.append(report.language.lower())
    tags.extend(topic.lower() for topic in report.topics[:3])
    tags.append(infer_pattern_type(pattern.description).value)
    tags.extend(name_words(pattern.name))
    return list(dict.fromkeys(tags))


def extract_patterns(
    report: InvestigationReport,
    report_path: str,
    existing_ids: Sequence[str] = (),
) -> list[ExtractedPattern]:
    """
    Classify every pattern named in a report.

    Args:
        report: Parsed investigation report
        report_path: Where the report lives, for logging
        existing_ids: Pattern ids already in the index

    Returns:
        High and medium relevance patterns, in report order
    """
    now = utc_now()
    extracted = []

    for raw in report.patterns:
        relevance = assess_relevance(raw.name, raw.description)
        if relevance == Relevance.LOW:
            logger.debug(f"Dropping low-relevance pattern '{raw.name}' from {report_path}")
            continue

        extracted.append(
            ExtractedPattern(
                id=generate_pattern_id(raw.name, report.repo),
                name=raw.name,
                type=infer_pattern_type(raw.description),
                description=raw.description,
                source=report.repo,
                relevance=relevance,
                existing_alternative=find_existing_alternative(raw.name, existing_ids),
                tags=build_pattern_tags(report, raw),
                extracted_at=now,
            )
        )

    logger.info(
        f"Extracted {len(extracted)} of {len(report.patterns)} patterns from {report_path}"
    )
    return extracted
