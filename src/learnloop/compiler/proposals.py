"""
Pattern notes and review proposals for investigation patterns.

Pattern notes are the auto-applied outcome: a markdown file in the approved
directory plus an ``approved`` index entry. Skill proposals and rule
modifications wait in the pending directory as ``{kind}_{pattern_id}.md``.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..fileio import atomic_write
from ..patterns.index import PatternIndexStore
from ..patterns.models import ExtractedPattern, PatternStatus, utc_now

logger = logging.getLogger(__name__)

SKILLS_DIR = "skills"


class ProposalKind(str, Enum):
    SKILL = "skill"
    RULE = "rule"


def slugify_name(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


# =============================================================================
# Pattern notes (auto-applied)
# =============================================================================


def format_pattern_note(pattern: ExtractedPattern, report_path: str = "") -> str:
    lines = [
        f"# {pattern.name}",
        "",
        f"**Type:** {pattern.type.value}",
        f"**Relevance:** {pattern.relevance.value}",
        f"**Extracted:** {pattern.extracted_at}",
        "",
        "## Source",
        "",
        f"- **Repository:** {pattern.source}",
    ]
    if report_path:
        lines.append(f"- **Investigation:** `{report_path}`")
    lines.extend(["", "## Description", "", pattern.description, ""])

    if pattern.existing_alternative:
        lines.extend(
            [
                "## Existing Alternative",
                "",
                f"Similar functionality already indexed: {pattern.existing_alternative}",
                "",
            ]
        )

    lines.extend(
        [
            "## Tags",
            "",
            ", ".join(pattern.tags),
            "",
            "---",
            "",
            f"*Pattern ID: {pattern.id}*",
            "",
        ]
    )
    return "\n".join(lines)


def save_pattern_note(
    pattern: ExtractedPattern,
    approved_dir: Path,
    store: PatternIndexStore,
    report_path: str = "",
) -> Path | None:
    """
    Write a pattern note and mark the pattern approved in the index.

    Returns:
        Path of the note, or None if the index holds the pattern as rejected
        or archived (nothing is written in that case)
    """
    entry = store.get(pattern.id)
    if entry is not None and entry.status in (
        PatternStatus.REJECTED,
        PatternStatus.ARCHIVED,
    ):
        logger.info(f"Pattern {pattern.id} is {entry.status.value}, note not written")
        return None

    path = Path(approved_dir) / f"{pattern.id}.md"
    atomic_write(path, format_pattern_note(pattern, report_path))
    store.record_extracted(pattern, PatternStatus.APPROVED)
    logger.info(f"Pattern note saved: {path}")
    return path


# =============================================================================
# Review proposals
# =============================================================================


@dataclass
class SkillProposal:
    """A new skill suggested by a high-relevance workflow or integration pattern."""

    pattern: ExtractedPattern
    proposed_name: str
    proposed_location: str
    description: str
    status: PatternStatus = PatternStatus.PENDING


@dataclass
class RuleModification:
    """A change to an existing rule file suggested by a pattern."""

    pattern: ExtractedPattern
    target_file: str
    change_type: str  # "add" or "modify"
    proposed_content: str
    status: PatternStatus = PatternStatus.PENDING


def create_skill_proposal(pattern: ExtractedPattern) -> SkillProposal:
    name = slugify_name(pattern.name)
    return SkillProposal(
        pattern=pattern,
        proposed_name=name,
        proposed_location=f"{SKILLS_DIR}/{name}/SKILL.md",
        description=pattern.description,
    )


def generate_skill_skeleton(proposal: SkillProposal, report_path: str = "") -> str:
    """SKILL.md skeleton for a proposed skill."""
    lines = [
        f"# {proposal.proposed_name}",
        "",
        "**Status:** Proposed",
        f"**Source:** {proposal.pattern.source}",
        "",
        "## Purpose",
        "",
        proposal.description,
        "",
        "## Invocation",
        "",
        f"`{proposal.proposed_name}`",
        "",
        "## Workflow",
        "",
        "[To be defined upon approval]",
        "",
        "## Context Required",
        "",
        "[To be defined upon approval]",
        "",
        "---",
        f"*Proposed from investigation: {report_path or proposal.pattern.source}*",
        "",
    ]
    return "\n".join(lines)


def create_rule_modification(
    pattern: ExtractedPattern, target_file: str
) -> RuleModification:
    content = "\n".join(
        [
            f"## {pattern.name}",
            "",
            f"**Source:** {pattern.source}",
            "",
            pattern.description,
            "",
            "### When to Use",
            "",
            f"Apply this pattern when working with {pattern.type.value} scenarios.",
            "",
            f"*Tags: {', '.join(pattern.tags)}*",
            "",
        ]
    )
    return RuleModification(
        pattern=pattern,
        target_file=target_file,
        change_type="add",
        proposed_content=content,
    )


def format_proposal_markdown(
    proposal: SkillProposal | RuleModification, report_path: str = ""
) -> str:
    """Human-readable review document for either kind of proposal."""
    pattern = proposal.pattern

    if isinstance(proposal, SkillProposal):
        heading = f"# Proposal: {proposal.proposed_name}"
        kind = ProposalKind.SKILL
        change = [
            f"Create new skill at: `{proposal.proposed_location}`",
            "",
            "### Skill Skeleton",
            "",
            "```markdown",
            generate_skill_skeleton(proposal, report_path),
            "```",
        ]
    else:
        heading = "# Proposal: Rule Modification"
        kind = ProposalKind.RULE
        change = [
            f"Target file: `{proposal.target_file}`",
            f"Change type: {proposal.change_type}",
            "",
            "### Proposed Content",
            "",
            "```markdown",
            proposal.proposed_content,
            "```",
        ]

    lines = [
        heading,
        "",
        f"**Type:** {kind.value}",
        f"**Status:** {proposal.status.value}",
        f"**Created:** {utc_now()}",
        "",
        "## Source",
        "",
        f"Pattern: {pattern.name}",
        f"Repo: {pattern.source}",
        "",
        "## Proposed Change",
        "",
        *change,
        "",
        "## To Approve",
        "",
        f"Run `learnloop patterns approve {pattern.id}` or review and apply manually.",
        "",
    ]
    return "\n".join(lines)


def save_proposal(
    proposal: SkillProposal | RuleModification,
    pending_dir: Path,
    report_path: str = "",
) -> Path:
    """Write a review proposal to ``{pending_dir}/{kind}_{pattern_id}.md``."""
    kind = ProposalKind.SKILL if isinstance(proposal, SkillProposal) else ProposalKind.RULE
    path = Path(pending_dir) / f"{kind.value}_{proposal.pattern.id}.md"
    atomic_write(path, format_proposal_markdown(proposal, report_path))
    logger.info(f"{kind.value.capitalize()} proposal saved: {path}")
    return path
