from .policy import AutonomyDecision, can_auto_apply, decide_autonomy
from .routing import route_destination
from .rules import RuleProposal, compile_rule

__all__ = [
    "AutonomyDecision",
    "RuleProposal",
    "can_auto_apply",
    "compile_rule",
    "decide_autonomy",
    "route_destination",
]
