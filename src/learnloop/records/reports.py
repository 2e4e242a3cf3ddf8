"""
Investigation reports and the learnings derived from them.

An investigation report is a YAML document written after a repository has
been studied::

    investigation:
      repo: owner/repo
      url: https://github.com/owner/repo
      date: 2026-01-29T10:30:00Z
      mode: quick_scan
    metadata:
      description: ...
      language: TypeScript
      topics: [ai, agents]
      stars: 500
    insights:
      patterns:
        - name: Process-Save-Summarize
          description: Sub-agent workflow that processes data ...
      notable: [...]
      potential_learnings: [...]

Learnings extracted from a report are written as ordinary record files so
the Record Scanner picks them up alongside locally captured learnings.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

INVESTIGATION_DOMAIN = "investigation"
TITLE_LIMIT = 60


@dataclass
class RawPattern:
    """A pattern as named by the investigator, before classification."""

    name: str
    description: str


@dataclass
class InvestigationReport:
    """The parts of an investigation report the engine consumes."""

    repo: str
    url: str = ""
    date: str = ""
    mode: str = "quick_scan"
    description: str | None = None
    language: str | None = None
    topics: list[str] = field(default_factory=list)
    stars: int = 0
    patterns: list[RawPattern] = field(default_factory=list)
    notable: list[str] = field(default_factory=list)
    potential_learnings: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InvestigationReport":
        """Build a report from parsed YAML, defaulting any missing section."""
        investigation = data.get("investigation") or {}
        metadata = data.get("metadata") or {}
        insights = data.get("insights") or {}

        patterns = []
        for raw in insights.get("patterns") or []:
            if isinstance(raw, dict) and raw.get("name"):
                patterns.append(
                    RawPattern(
                        name=str(raw["name"]),
                        description=str(raw.get("description") or ""),
                    )
                )

        try:
            stars = int(metadata.get("stars") or 0)
        except (TypeError, ValueError):
            stars = 0

        return cls(
            repo=str(investigation.get("repo") or ""),
            url=str(investigation.get("url") or ""),
            date=str(investigation.get("date") or ""),
            mode=str(investigation.get("mode") or "quick_scan"),
            description=metadata.get("description"),
            language=metadata.get("language"),
            topics=[str(t) for t in metadata.get("topics") or []],
            stars=stars,
            patterns=patterns,
            notable=[str(n) for n in insights.get("notable") or []],
            potential_learnings=[
                str(p) for p in insights.get("potential_learnings") or []
            ],
        )


def load_report(path: Path) -> InvestigationReport | None:
    """
    Load an investigation report.

    Args:
        path: Path to the YAML report

    Returns:
        InvestigationReport, or None if the file is unreadable, is not valid
        YAML, or names no repository
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load investigation report {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Investigation report is not a mapping: {path}")
        return None

    report = InvestigationReport.from_dict(data)
    if not report.repo:
        logger.warning(f"Investigation report names no repository: {path}")
        return None
    return report


@dataclass
class InvestigationLearning:
    """A learning extracted from an investigation, ready to be written as a record."""

    title: str
    repo: str
    url: str
    report_path: str
    insight: str
    why_it_matters: str
    tags: list[str] = field(default_factory=list)


def _truncate(text: str, limit: int = TITLE_LIMIT) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _why_it_matters(report: InvestigationReport, learning: str) -> str:
    stars = f" ({report.stars} stars)" if report.stars > 100 else ""
    parts = [f"Discovered in {report.repo}{stars}."]

    if report.language:
        parts.append(f"Built with {report.language}.")

    lowered = learning.lower()
    for pattern in report.patterns:
        first_word = pattern.name.lower().split(" ")[0]
        if first_word and first_word in lowered:
            parts.append(f"Related pattern: {pattern.description}")
            break

    return " ".join(parts)


def extract_learnings(
    report: InvestigationReport, report_path: str
) -> list[InvestigationLearning]:
    """
    Turn a report's potential learnings and notable observations into learnings.

    Notable observations are only kept when they mention "uses" or "pattern".

    Args:
        report: Parsed investigation report
        report_path: Where the report lives, for attribution

    Returns:
        List of InvestigationLearning
    """
    learnings = []

    for potential in report.potential_learnings:
        tags = []
        if report.language:
            tags.append(report.language.lower())
        tags.extend(report.topics[:5])
        tags.extend(
            re.sub(r"\s+", "-", p.name.lower()) for p in report.patterns[:3]
        )

        learnings.append(
            InvestigationLearning(
                title=f"Investigation: {_truncate(potential)}",
                repo=report.repo,
                url=report.url,
                report_path=report_path,
                insight=potential,
                why_it_matters=_why_it_matters(report, potential),
                tags=_unique(tags),
            )
        )

    for notable in report.notable:
        lowered = notable.lower()
        if "uses" not in lowered and "pattern" not in lowered:
            continue

        tags = [report.language.lower()] if report.language else []
        learnings.append(
            InvestigationLearning(
                title=f"Notable: {_truncate(notable)}",
                repo=report.repo,
                url=report.url,
                report_path=report_path,
                insight=notable,
                why_it_matters=(
                    f"Observed in {report.repo} ({report.stars} stars). "
                    "May indicate common practice or interesting approach."
                ),
                tags=_unique(tags),
            )
        )

    return learnings


def format_learning_record(learning: InvestigationLearning, date: str) -> str:
    """Render a learning as a record file with a metadata header."""
    lines = [
        "---",
        f"domain: {INVESTIGATION_DOMAIN}",
        f"date: {date}",
        "confidence: MEDIUM",
    ]
    if learning.tags:
        lines.append("tags:")
        lines.extend(f"  - {tag}" for tag in learning.tags)
    else:
        lines.append("tags: []")
    lines.extend(
        [
            f"source: {learning.repo}",
            "---",
            "",
            "# Investigation Learning",
            "",
            f"**Title:** {learning.title}",
            f"**Source:** [{learning.repo}]({learning.url})",
            "",
            "## Insight",
            "",
            learning.insight,
            "",
            "## Why It Matters",
            "",
            learning.why_it_matters,
            "",
            "---",
            "",
            f"*Auto-extracted from investigation: {learning.report_path}*",
            "",
        ]
    )
    return "\n".join(lines)


def save_learnings(
    learnings: list[InvestigationLearning],
    learnings_dir: Path,
    now: datetime | None = None,
) -> list[Path]:
    """
    Write learnings under ``<learnings_dir>/<domain>/<YYYY-MM>/``.

    Files are named ``{date}_investigation_{owner_repo}.md``; when several
    learnings come from one call each gets a ``_N`` suffix.

    Returns:
        Paths written. A learning whose write fails is logged and skipped.
    """
    now = now or datetime.now()
    date = now.strftime("%Y-%m-%d")
    target_dir = Path(learnings_dir) / INVESTIGATION_DOMAIN / now.strftime("%Y-%m")

    paths = []
    for i, learning in enumerate(learnings, start=1):
        repo_name = re.sub(r"[^a-zA-Z0-9_-]", "", learning.repo.replace("/", "_", 1))
        suffix = f"_{i}" if len(learnings) > 1 else ""
        path = target_dir / f"{date}_investigation_{repo_name}{suffix}.md"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(format_learning_record(learning, date), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write learning {path}: {e}")
            continue
        paths.append(path)

    return paths
