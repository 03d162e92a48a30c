"""nucleoprofile Rules — declarative landmark rules and index finding."""

from nucleoprofile.rules.index_finder import ProfileIndexFinder
from nucleoprofile.rules.rule import PRESETS, Rule, RuleSet, RuleSetCollection, RuleType

__all__ = [
    "PRESETS",
    "ProfileIndexFinder",
    "Rule",
    "RuleSet",
    "RuleSetCollection",
    "RuleType",
]
