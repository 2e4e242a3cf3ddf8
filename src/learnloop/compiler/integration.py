"""
Integration categorisation for investigation patterns.

Sorts extracted patterns into what can be applied now (tags, learnings,
pattern notes) and what waits for review (skill proposals, rule
modifications), following AUTONOMY_MAP and the tag deny-list.
"""

from dataclasses import dataclass, field

from ..patterns.models import ExtractedPattern, PatternType, Relevance
from .policy import AUTONOMY_MAP, AutonomyDecision, IntegrationType, is_denied
from .proposals import (
    RuleModification,
    SkillProposal,
    create_rule_modification,
    create_skill_proposal,
)
from .routing import route_destination

SKILL_TYPES = (PatternType.WORKFLOW, PatternType.INTEGRATION)


@dataclass
class AutoApplied:
    tags: list[str] = field(default_factory=list)
    learnings: list[str] = field(default_factory=list)
    pattern_notes: list[ExtractedPattern] = field(default_factory=list)


@dataclass
class PendingReview:
    skill_proposals: list[SkillProposal] = field(default_factory=list)
    rule_modifications: list[RuleModification] = field(default_factory=list)


@dataclass
class IntegrationOutput:
    auto_applied: AutoApplied = field(default_factory=AutoApplied)
    pending_review: PendingReview = field(default_factory=PendingReview)


def is_skill_candidate(pattern: ExtractedPattern) -> bool:
    """High-relevance workflow and integration patterns become skills."""
    return pattern.type in SKILL_TYPES and pattern.relevance == Relevance.HIGH


def integration_type_for(pattern: ExtractedPattern) -> IntegrationType:
    if is_skill_candidate(pattern):
        return IntegrationType.SKILL_PROPOSAL
    if is_denied(pattern.tags):
        return IntegrationType.RULE_MODIFICATION
    return IntegrationType.PATTERN_NOTE


def categorize_integrations(patterns: list[ExtractedPattern]) -> IntegrationOutput:
    """
    Split patterns into auto-applied and pending-review integrations.

    Args:
        patterns: Output of extract_patterns()

    Returns:
        IntegrationOutput; ``auto_applied.tags`` holds every distinct tag
    """
    output = IntegrationOutput()
    tags: list[str] = []

    for pattern in patterns:
        tags.extend(pattern.tags)
        kind = integration_type_for(pattern)

        if AUTONOMY_MAP[kind] == AutonomyDecision.AUTO_APPLY:
            output.auto_applied.pattern_notes.append(pattern)
        elif kind == IntegrationType.SKILL_PROPOSAL:
            output.pending_review.skill_proposals.append(create_skill_proposal(pattern))
        else:
            target = route_destination(pattern.type.value, pattern.tags)
            output.pending_review.rule_modifications.append(
                create_rule_modification(pattern, target)
            )

    output.auto_applied.tags = list(dict.fromkeys(tags))
    return output


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def format_integration_summary(output: IntegrationOutput) -> str:
    """
    One-line summary, e.g.
    ``Auto-applied: 3 patterns, 5 tags | Pending review: 1 skill proposal``.
    """
    auto = output.auto_applied
    pending = output.pending_review

    auto_items = [
        _plural(count, noun)
        for count, noun in (
            (len(auto.pattern_notes), "pattern"),
            (len(auto.tags), "tag"),
            (len(auto.learnings), "learning"),
        )
        if count
    ]
    pending_items = [
        _plural(count, noun)
        for count, noun in (
            (len(pending.skill_proposals), "skill proposal"),
            (len(pending.rule_modifications), "rule modification"),
        )
        if count
    ]

    parts = []
    if auto_items:
        parts.append(f"Auto-applied: {', '.join(auto_items)}")
    if pending_items:
        parts.append(f"Pending review: {', '.join(pending_items)}")

    return " | ".join(parts) if parts else "No integrations to apply"
