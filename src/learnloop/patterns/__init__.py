"""Pattern detection, classification, extraction and the pattern index."""

from .detector import count_tag_overlap, detect_pattern
from .index import PatternIndexStore
from .models import PatternCandidate, PatternIndexEntry, PatternStatus

__all__ = [
    "PatternCandidate",
    "PatternIndexEntry",
    "PatternIndexStore",
    "PatternStatus",
    "count_tag_overlap",
    "detect_pattern",
]
