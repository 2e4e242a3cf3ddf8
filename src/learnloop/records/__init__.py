"""Learning records: header parsing, corpus scanning, investigation reports."""

from .models import Confidence, Record, RecordHeader
from .parser import parse_record_header
from .scanner import RecordScanner

__all__ = [
    "Confidence",
    "Record",
    "RecordHeader",
    "RecordScanner",
    "parse_record_header",
]
