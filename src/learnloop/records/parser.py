"""
Record header parsing.

A record file opens with a ``---`` delimited header::

    ---
    domain: coding
    date: 2026-01-15
    confidence: high
    tags:
      - error-handling
      - retry
    ---

``tags`` may also be written inline (``tags: [a, b]`` or ``tags: a, b``).
Parsing never raises: anything missing or malformed falls back to a default
and is reported in ``RecordHeader.warnings``.
"""

import re

from .models import Confidence, DEFAULT_CONFIDENCE, ParseStatus, RecordHeader

HEADER_PATTERN = re.compile(r"^---[ \t]*\n(.*?)\n---", re.DOTALL)

FIELD_PATTERNS = {
    "domain": re.compile(r"^domain:[ \t]*(.+)$", re.MULTILINE),
    "date": re.compile(r"^date:[ \t]*(.+)$", re.MULTILINE),
    "confidence": re.compile(r"^confidence:[ \t]*(.+)$", re.MULTILINE),
    "tags_block": re.compile(r"^tags:[ \t]*\n((?:[ \t]+-[ \t]*.+\n?)+)", re.MULTILINE),
    "tags_inline": re.compile(r"^tags:[ \t]*\[?([^\]\n]+)\]?[ \t]*$", re.MULTILINE),
}

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _clean(value: str) -> str:
    """Strip whitespace and one layer of matching quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1].strip()
    return value


def dedupe_tags(tags: list[str]) -> list[str]:
    """Drop empty and case-insensitive duplicate tags, keeping first spelling."""
    seen: set[str] = set()
    result = []
    for tag in tags:
        key = tag.lower()
        if tag and key not in seen:
            seen.add(key)
            result.append(tag)
    return result


def _parse_tags(header: str) -> list[str] | None:
    block = FIELD_PATTERNS["tags_block"].search(header)
    if block:
        items = re.findall(r"^[ \t]+-[ \t]*(.+)$", block.group(1), re.MULTILINE)
        return dedupe_tags([_clean(item) for item in items])

    if re.search(r"^tags:[ \t]*\[[ \t]*\][ \t]*$", header, re.MULTILINE):
        return []

    inline = FIELD_PATTERNS["tags_inline"].search(header)
    if inline:
        return dedupe_tags([_clean(t) for t in inline.group(1).split(",")])

    return None


def parse_record_header(content: str) -> RecordHeader:
    """
    Extract metadata from a record's leading header block.

    Args:
        content: Full text of the record file

    Returns:
        RecordHeader; status DEFAULTED whenever a fallback was used
    """
    content = content.replace("\r\n", "\n")
    match = HEADER_PATTERN.match(content)
    if not match:
        return RecordHeader(
            status=ParseStatus.DEFAULTED,
            warnings=["no metadata header"],
        )

    header = match.group(1)
    result = RecordHeader(status=ParseStatus.OK)

    domain_match = FIELD_PATTERNS["domain"].search(header)
    if domain_match and _clean(domain_match.group(1)):
        result.domain = _clean(domain_match.group(1))
    else:
        result.warnings.append("missing domain")

    date_match = FIELD_PATTERNS["date"].search(header)
    if date_match and DATE_PATTERN.match(_clean(date_match.group(1))):
        result.date = _clean(date_match.group(1))[:10]
    elif date_match:
        result.warnings.append(f"malformed date: {date_match.group(1).strip()}")
    else:
        result.warnings.append("missing date")

    confidence_match = FIELD_PATTERNS["confidence"].search(header)
    if confidence_match:
        raw = _clean(confidence_match.group(1)).upper()
        try:
            result.confidence = Confidence(raw)
        except ValueError:
            result.confidence = DEFAULT_CONFIDENCE
            result.warnings.append(f"unknown confidence: {raw}")
    else:
        result.warnings.append("missing confidence")

    tags = _parse_tags(header)
    if tags is None:
        result.warnings.append("missing tags")
    else:
        result.tags = tags

    if result.warnings:
        result.status = ParseStatus.DEFAULTED
    return result
