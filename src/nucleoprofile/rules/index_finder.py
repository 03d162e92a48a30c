"""ProfileIndexFinder — evaluate rules against profiles."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence, Union

import numpy as np

from nucleoprofile.core.exceptions import AmbiguousMatchError, NoMatchError
from nucleoprofile.core.models import ProfileType
from nucleoprofile.core.profile import BooleanMask, Profile
from nucleoprofile.rules.rule import Rule, RuleSet, RuleType

logger = logging.getLogger(__name__)

ProfileSource = Union[Profile, Mapping[ProfileType, Profile]]
RuleSource = Union[Rule, RuleSet, Sequence[RuleSet]]


class ProfileIndexFinder:
    """Resolve rules and rule sets to indexes of a profile.

    Rules inside a rule set are applied in order. Each rule sees the indexes
    still allowed by the rules before it, so ``IS_MINIMUM`` after
    ``INDEX_LESS_THAN(20)`` finds the minimum among the first 20 indexes.
    Rule sets combine by logical AND.
    """

    def get_matching_indexes(
        self,
        profile: ProfileSource,
        rules: RuleSource,
        limits: BooleanMask | None = None,
    ) -> BooleanMask:
        """Boolean mask of indexes satisfying ``rules``.

        Args:
            profile: A single profile, or one profile per type when the rule
                sets refer to different profile types. All profiles must
                share the same length and starting point.
            rules: A rule, a rule set, or a list of rule sets.
            limits: Optional mask of indexes allowed before any rule applies.
        """
        if isinstance(rules, Rule):
            target = _pick(profile, None)
            start = _initial_limits(target, limits)
            return _evaluate(target, rules, start)
        if isinstance(rules, RuleSet):
            rules = [rules]

        mask: BooleanMask | None = None
        for rule_set in rules:
            target = _pick(profile, rule_set.profile_type)
            current = _initial_limits(target, limits)
            for rule in rule_set.rules:
                current = _evaluate(target, rule, current)
            mask = current if mask is None else mask & current
            logger.debug("%s matched %d indexes", rule_set, int(current.sum()))
        if mask is None:
            raise ValueError("No rule sets given")
        return mask

    def count_matches(self, profile: ProfileSource, rules: RuleSource) -> int:
        return int(self.get_matching_indexes(profile, rules).sum())

    def identify_index(self, profile: ProfileSource, rules: RuleSource) -> int:
        """The single index satisfying ``rules``.

        Raises:
            NoMatchError: If no index matches.
            AmbiguousMatchError: If more than one index matches.
        """
        mask = self.get_matching_indexes(profile, rules)
        label = _describe(rules)
        matches = np.flatnonzero(mask)
        if matches.size == 0:
            raise NoMatchError(label)
        if matches.size > 1:
            raise AmbiguousMatchError(int(matches.size), label)
        return int(matches[0])


def _pick(profile: ProfileSource, profile_type: ProfileType | None) -> Profile:
    if isinstance(profile, Profile):
        return profile
    if profile_type is None:
        raise ValueError("A single rule needs a single profile")
    if profile_type not in profile:
        raise KeyError(f"No {profile_type.value} profile supplied for rule evaluation")
    return profile[profile_type]


def _initial_limits(profile: Profile, limits: BooleanMask | None) -> np.ndarray:
    if limits is None:
        return np.ones(len(profile), dtype=bool)
    return profile.as_mask(limits).copy()


def _describe(rules: RuleSource) -> str:
    if isinstance(rules, (Rule, RuleSet)):
        return str(rules)
    return "; ".join(str(r) for r in rules)


def _evaluate(profile: Profile, rule: Rule, limits: np.ndarray) -> np.ndarray:
    """Apply one rule within ``limits`` and return the narrowed mask."""
    mask = _apply(profile, rule, limits)
    if rule.negate:
        return limits & ~mask
    return mask


def _apply(profile: Profile, rule: Rule, limits: np.ndarray) -> np.ndarray:
    n = len(profile)
    values = profile.values
    index = np.arange(n)
    kind = rule.type

    if kind is RuleType.INVERT:
        return ~limits

    if kind in (RuleType.IS_MINIMUM, RuleType.IS_MAXIMUM):
        mask = np.zeros(n, dtype=bool)
        if limits.any():
            pick = profile.index_of_min if kind is RuleType.IS_MINIMUM else profile.index_of_max
            mask[pick(limits)] = True
        return mask

    if kind in (RuleType.FIRST_TRUE, RuleType.LAST_TRUE):
        mask = np.zeros(n, dtype=bool)
        hits = np.flatnonzero(limits)
        if hits.size:
            mask[hits[0] if kind is RuleType.FIRST_TRUE else hits[-1]] = True
        return mask

    if kind is RuleType.IS_LOCAL_MINIMUM:
        mask = profile.local_minima(rule.window)
    elif kind is RuleType.IS_LOCAL_MAXIMUM:
        mask = profile.local_maxima(rule.window)
    elif kind is RuleType.VALUE_LESS_THAN:
        mask = values < rule.values[0]
    elif kind is RuleType.VALUE_MORE_THAN:
        mask = values > rule.values[0]
    elif kind is RuleType.INDEX_LESS_THAN:
        mask = index < rule.values[0]
    elif kind is RuleType.INDEX_MORE_THAN:
        mask = index > rule.values[0]
    elif kind is RuleType.IS_CONSTANT_REGION:
        value, tolerance, min_points = rule.values
        start, end = profile.get_consistent_region_bounds(value, tolerance, int(min_points))
        mask = np.zeros(n, dtype=bool)
        if start >= 0:
            mask[start:end + 1] = True
    elif kind is RuleType.IS_ZERO_INDEX:
        mask = index == 0
    elif kind in (RuleType.INDEX_IS_WITHIN_FRACTION_OF, RuleType.INDEX_IS_OUTSIDE_FRACTION_OF):
        centre = rule.values[0] * n
        distance = np.abs(index - centre) % n
        mask = np.minimum(distance, n - distance) <= rule.values[1] * n
        if kind is RuleType.INDEX_IS_OUTSIDE_FRACTION_OF:
            mask = ~mask
    else:
        raise ValueError(f"Unsupported rule type {kind}")
    return mask & limits
