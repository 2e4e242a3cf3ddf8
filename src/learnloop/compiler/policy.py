"""
Autonomy Policy Engine - Decides what may change without human review.

Tags on the deny-list always force review, even when an allow-list tag is
also present. Only when no deny-list tag matches can an allow-list tag
permit auto-apply. A pattern matching neither list requires review.
"""

from collections.abc import Iterable
from enum import Enum


class AutonomyDecision(str, Enum):
    AUTO_APPLY = "auto-apply"
    REQUIRES_REVIEW = "requires-review"


class IntegrationType(str, Enum):
    """Kinds of change an investigation can lead to."""

    TAG = "tag"
    LEARNING = "learning"
    PATTERN_NOTE = "pattern_note"
    SKILL_PROPOSAL = "skill_proposal"
    AGENT_PROPOSAL = "agent_proposal"
    RULE_MODIFICATION = "rule_modification"
    WORKFLOW_CHANGE = "workflow_change"


# Low-risk, mechanical rules
AUTO_APPLY_ALLOWLIST = frozenset(
    {
        "naming-convention",
        "code-formatting",
        "comment-style",
        "import-order",
        "file-naming",
    }
)

# Rules that change how the system behaves
REQUIRE_APPROVAL_TAGS = frozenset(
    {
        "behavioral",
        "process",
        "communication",
        "decision",
        "strategy",
        "workflow",
    }
)

# Metadata and memory additions apply automatically; structural changes wait.
AUTONOMY_MAP: dict[IntegrationType, AutonomyDecision] = {
    IntegrationType.TAG: AutonomyDecision.AUTO_APPLY,
    IntegrationType.LEARNING: AutonomyDecision.AUTO_APPLY,
    IntegrationType.PATTERN_NOTE: AutonomyDecision.AUTO_APPLY,
    IntegrationType.SKILL_PROPOSAL: AutonomyDecision.REQUIRES_REVIEW,
    IntegrationType.AGENT_PROPOSAL: AutonomyDecision.REQUIRES_REVIEW,
    IntegrationType.RULE_MODIFICATION: AutonomyDecision.REQUIRES_REVIEW,
    IntegrationType.WORKFLOW_CHANGE: AutonomyDecision.REQUIRES_REVIEW,
}


def decide_autonomy(tags: Iterable[str]) -> AutonomyDecision:
    """
    Decide whether a pattern with these tags may be applied automatically.

    Args:
        tags: Every tag carried by the pattern's members

    Returns:
        AUTO_APPLY only if no tag is deny-listed and at least one is allow-listed
    """
    normalized = {tag.lower() for tag in tags}

    if normalized & REQUIRE_APPROVAL_TAGS:
        return AutonomyDecision.REQUIRES_REVIEW
    if normalized & AUTO_APPLY_ALLOWLIST:
        return AutonomyDecision.AUTO_APPLY
    return AutonomyDecision.REQUIRES_REVIEW


def can_auto_apply(tags: Iterable[str]) -> bool:
    return decide_autonomy(tags) == AutonomyDecision.AUTO_APPLY


def is_denied(tags: Iterable[str]) -> bool:
    """True when any tag is on the deny-list."""
    return bool({tag.lower() for tag in tags} & REQUIRE_APPROVAL_TAGS)


def integration_autonomy(kind: IntegrationType) -> AutonomyDecision:
    return AUTONOMY_MAP[kind]
