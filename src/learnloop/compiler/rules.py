"""
Rule compilation from detected learning patterns.

A detected pattern becomes a RuleProposal: a markdown rule section routed to
a destination file by domain. Auto-apply proposals are appended to their
destination directly; everything else is written to the pending directory
as a proposal document for review.

The rule body is structure only. The Do/Avoid bullets are placeholders for
whoever reviews or synthesises the final wording.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..fileio import atomic_write, locked
from ..patterns.classifier import title_from_id
from ..patterns.models import PatternCandidate, utc_now
from ..records.models import DEFAULT_DOMAIN
from .policy import can_auto_apply
from .routing import route_destination

logger = logging.getLogger(__name__)

COMMON_TAG_LIMIT = 3
COMMON_TAG_MIN_COUNT = 2


@dataclass
class RuleProposal:
    """A compiled rule waiting to be applied or reviewed."""

    pattern_id: str
    title: str
    domain: str
    destination: str  # relative to the destinations root
    content: str
    source_records: list[str] = field(default_factory=list)
    generated_at: str = field(default_factory=utc_now)
    auto_apply: bool = False

    def to_dict(self) -> dict:
        return {
            "patternId": self.pattern_id,
            "title": self.title,
            "domain": self.domain,
            "destination": self.destination,
            "content": self.content,
            "sourceRecords": list(self.source_records),
            "generatedAt": self.generated_at,
            "autoApply": self.auto_apply,
        }


def format_date_range(candidate: PatternCandidate) -> str:
    dates = sorted(m.date for m in candidate.members if m.date)
    if len(dates) > 1:
        return f"{dates[0]} to {dates[-1]}"
    return dates[0] if dates else "unknown"


def format_rule_proposal(candidate: PatternCandidate, domain: str | None = None) -> str:
    """
    Render the markdown rule section for a pattern.

    Args:
        candidate: Detected pattern with its member records
        domain: Used in the summary line when no tag is shared by two members

    Returns:
        Markdown starting with ``## {Title}``
    """
    common_tags = [
        tag.lower()
        for tag in candidate.most_common_tags(
            limit=COMMON_TAG_LIMIT, min_count=COMMON_TAG_MIN_COUNT
        )
    ]
    topic = ", ".join(common_tags) or domain or candidate.domain or "this topic"
    count = len(candidate.members)

    return "\n".join(
        [
            f"## {title_from_id(candidate.pattern_id)}",
            "",
            f"A pattern detected from {count} similar learnings about {topic}.",
            "",
            "**Do:**",
            "- [Action derived from learning patterns]",
            "- [Another action from patterns]",
            "",
            "**Avoid:**",
            "- [Anti-pattern identified from learnings]",
            "",
            "---",
            f"*Compiled from {count} learnings ({format_date_range(candidate)})*",
        ]
    )


def compile_rule(candidate: PatternCandidate, domain: str | None = None) -> RuleProposal:
    """
    Compile a detected pattern into a RuleProposal.

    Routing and the autonomy decision both look at every tag carried by
    every member.
    """
    domain = candidate.domain or domain or DEFAULT_DOMAIN
    all_tags = [tag for member in candidate.members for tag in member.tags]

    return RuleProposal(
        pattern_id=candidate.pattern_id,
        title=title_from_id(candidate.pattern_id),
        domain=domain,
        destination=route_destination(domain, all_tags),
        content=format_rule_proposal(candidate, domain),
        source_records=candidate.member_ids,
        auto_apply=can_auto_apply(all_tags),
    )


def generate_proposal_file(proposal: RuleProposal) -> str:
    """Full proposal document for the pending directory."""
    sources = "\n".join(f"- {record_id}" for record_id in proposal.source_records)
    return (
        f"# Rule Proposal: {proposal.title}\n"
        "\n"
        f"**Pattern ID:** {proposal.pattern_id}\n"
        f"**Domain:** {proposal.domain}\n"
        f"**Destination:** {proposal.destination}\n"
        f"**Auto-apply:** {'yes' if proposal.auto_apply else 'no'}\n"
        f"**Generated:** {proposal.generated_at}\n"
        "\n"
        "## Proposed Rule\n"
        "\n"
        f"{proposal.content}\n"
        "\n"
        "## Source Learnings\n"
        "\n"
        f"{sources}\n"
        "\n"
        "---\n"
        "**Actions:** Approve | Reject | Edit\n"
    )


def proposal_path(pending_dir: Path, pattern_id: str) -> Path:
    return Path(pending_dir) / f"{pattern_id}.md"


def write_proposal(proposal: RuleProposal, pending_dir: Path) -> Path:
    """
    Write a proposal to ``{pending_dir}/{pattern_id}.md``.

    Creates the pending directory if needed. Returns the written path.
    """
    path = proposal_path(pending_dir, proposal.pattern_id)
    atomic_write(path, generate_proposal_file(proposal))
    logger.info(f"Proposal written: {path}")
    return path


def append_rule_to_destination(proposal: RuleProposal, destinations_root: Path) -> Path:
    """
    Append the rule section to its destination file.

    Destination files are only ever appended to. Parent directories are
    created as needed.

    Returns:
        Absolute path of the destination file
    """
    path = Path(destinations_root) / proposal.destination
    path.parent.mkdir(parents=True, exist_ok=True)

    with locked(path):
        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        separator = "" if not existing else ("\n" if existing.endswith("\n") else "\n\n")
        atomic_write(path, f"{existing}{separator}{proposal.content}\n")

    logger.info(f"Rule '{proposal.title}' appended to {path}")
    return path
