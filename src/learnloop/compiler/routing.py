"""
Destination routing for compiled rules.

Destinations are paths relative to the configured destinations root.
"""

from collections.abc import Iterable

GENERAL_DESTINATION = "core/context/strategies/general.md"

DOMAIN_DESTINATIONS: dict[str, str] = {
    # Coding domains -> rules
    "coding": "core/rules/coding.md",
    "git": "core/rules/git.md",
    "api": "core/rules/api.md",
    "testing": "core/rules/testing.md",
    "frontend": "core/rules/frontend.md",
    "security": "core/rules/security.md",
    "technical": "core/rules/technical.md",
    # Non-coding domains -> context
    "communications": "core/context/voice/style-rules.md",
    "scheduling": "core/context/preferences/scheduling.md",
    "finance": "core/context/preferences/finance.md",
    "learning": "core/context/preferences/learning.md",
    # General and process -> strategies
    "general": GENERAL_DESTINATION,
    "process": GENERAL_DESTINATION,
}


def route_destination(domain: str, tags: Iterable[str] = ()) -> str:
    """
    Pick the destination file for a rule.

    The domain is looked up first, then each tag in order. Anything
    unmatched goes to the general strategies file, so the result is
    never empty.
    """
    destination = DOMAIN_DESTINATIONS.get((domain or "").lower())
    if destination:
        return destination

    for tag in tags:
        destination = DOMAIN_DESTINATIONS.get(tag.lower())
        if destination:
            return destination

    return GENERAL_DESTINATION
