"""Declarative rules that locate landmark indexes in a profile."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from nucleoprofile.core.models import ORIENTATION_POINT, REFERENCE_POINT, Landmark, ProfileType

# Window used by the local extremum rules when none is given.
DEFAULT_EXTREMUM_WINDOW = 5


class RuleType(Enum):
    """Every predicate a rule can apply to a profile."""

    IS_MINIMUM = "is_minimum"
    IS_MAXIMUM = "is_maximum"
    IS_LOCAL_MINIMUM = "is_local_minimum"
    IS_LOCAL_MAXIMUM = "is_local_maximum"
    VALUE_LESS_THAN = "value_less_than"
    VALUE_MORE_THAN = "value_more_than"
    INDEX_LESS_THAN = "index_less_than"
    INDEX_MORE_THAN = "index_more_than"
    IS_CONSTANT_REGION = "is_constant_region"
    FIRST_TRUE = "first_true"
    LAST_TRUE = "last_true"
    INVERT = "invert"
    IS_ZERO_INDEX = "is_zero_index"
    INDEX_IS_WITHIN_FRACTION_OF = "index_is_within_fraction_of"
    INDEX_IS_OUTSIDE_FRACTION_OF = "index_is_outside_fraction_of"


# (minimum, maximum) number of values each rule type takes.
_ARITY: dict[RuleType, tuple[int, int]] = {
    RuleType.IS_MINIMUM: (0, 0),
    RuleType.IS_MAXIMUM: (0, 0),
    RuleType.IS_LOCAL_MINIMUM: (0, 1),
    RuleType.IS_LOCAL_MAXIMUM: (0, 1),
    RuleType.VALUE_LESS_THAN: (1, 1),
    RuleType.VALUE_MORE_THAN: (1, 1),
    RuleType.INDEX_LESS_THAN: (1, 1),
    RuleType.INDEX_MORE_THAN: (1, 1),
    RuleType.IS_CONSTANT_REGION: (3, 3),
    RuleType.FIRST_TRUE: (0, 0),
    RuleType.LAST_TRUE: (0, 0),
    RuleType.INVERT: (0, 0),
    RuleType.IS_ZERO_INDEX: (0, 0),
    RuleType.INDEX_IS_WITHIN_FRACTION_OF: (2, 2),
    RuleType.INDEX_IS_OUTSIDE_FRACTION_OF: (2, 2),
}

TIE_BREAKERS = frozenset({RuleType.FIRST_TRUE, RuleType.LAST_TRUE})


@dataclass(frozen=True)
class Rule:
    """A single predicate over profile indexes.

    Attributes:
        type: Which predicate to apply.
        values: Parameters of the predicate. ``IS_LOCAL_MINIMUM`` and
            ``IS_LOCAL_MAXIMUM`` take an optional window,
            ``IS_CONSTANT_REGION`` takes (value, tolerance, min_points) and
            ``INDEX_IS_WITHIN_FRACTION_OF`` and ``INDEX_IS_OUTSIDE_FRACTION_OF``
            take (index_fraction, fraction).
        negate: Keep the allowed indexes the predicate does not select.
    """

    type: RuleType
    values: tuple[float, ...] = ()
    negate: bool = False

    def __post_init__(self) -> None:
        """Validate parameters."""
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))
        low, high = _ARITY[self.type]
        if not low <= len(self.values) <= high:
            expected = str(low) if low == high else f"{low}-{high}"
            raise ValueError(
                f"{self.type.name} takes {expected} values, got {len(self.values)}"
            )
        if self.type in (RuleType.IS_LOCAL_MINIMUM, RuleType.IS_LOCAL_MAXIMUM):
            if self.values and self.values[0] < 1:
                raise ValueError(f"window must be >= 1, got {self.values[0]}")
        if self.type is RuleType.IS_CONSTANT_REGION and self.values[2] < 1:
            raise ValueError(f"min_points must be >= 1, got {self.values[2]}")

    @property
    def window(self) -> int:
        """Window of a local extremum rule."""
        return int(self.values[0]) if self.values else DEFAULT_EXTREMUM_WINDOW

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "values": list(self.values), "negate": self.negate}

    def __str__(self) -> str:
        prefix = "NOT " if self.negate else ""
        if not self.values:
            return prefix + self.type.name
        args = ", ".join(f"{v:g}" for v in self.values)
        return f"{prefix}{self.type.name}({args})"


@dataclass(frozen=True)
class RuleSet:
    """Rules applied in order to one profile type; the matches are ANDed.

    Attributes:
        profile_type: Profile the rules are evaluated against.
        rules: Rules in application order.
        name: Display name used in error messages.
    """

    profile_type: ProfileType
    rules: tuple[Rule, ...]
    name: str = ""

    def __post_init__(self) -> None:
        """Validate parameters."""
        object.__setattr__(self, "rules", tuple(self.rules))
        if not self.rules:
            raise ValueError("a rule set needs at least one rule")

    def has_tie_break(self) -> bool:
        return any(r.type in TIE_BREAKERS for r in self.rules)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "profile_type": self.profile_type.value,
            "rules": [r.to_dict() for r in self.rules],
        }

    def __str__(self) -> str:
        label = self.name or self.profile_type.value
        return f"{label}: " + " & ".join(str(r) for r in self.rules)


@dataclass
class RuleSetCollection:
    """Rule sets for every landmark of one kind of shape.

    A landmark may have several rule sets, each on its own profile type;
    an index must satisfy all of them.
    """

    name: str
    rule_sets: dict[Landmark, list[RuleSet]] = field(default_factory=dict)

    def add_rule_set(self, landmark: Landmark, rule_set: RuleSet) -> None:
        self.rule_sets.setdefault(landmark, []).append(rule_set)

    def get_rule_sets(self, landmark: Landmark) -> list[RuleSet]:
        """Rule sets for a landmark, or an empty list if it has none."""
        return list(self.rule_sets.get(landmark, []))

    def landmarks(self) -> list[Landmark]:
        return list(self.rule_sets)

    def __contains__(self, landmark: Landmark) -> bool:
        return landmark in self.rule_sets

    def __len__(self) -> int:
        return len(self.rule_sets)

    @classmethod
    def round(cls) -> RuleSetCollection:
        """Round nuclei: the reference point is at the longest radius."""
        rsc = cls("Round")
        rsc.add_rule_set(
            REFERENCE_POINT,
            RuleSet(ProfileType.RADIUS, (Rule(RuleType.IS_MAXIMUM),), name="longest axis"),
        )
        return rsc

    @classmethod
    def pointed(cls) -> RuleSetCollection:
        """Pointed nuclei: the reference point is the sharpest tip.

        The orientation point is the sharpest point on the opposite half.
        """
        rsc = cls("Pointed")
        rsc.add_rule_set(
            REFERENCE_POINT,
            RuleSet(ProfileType.ANGLE, (Rule(RuleType.IS_MINIMUM),), name="tip"),
        )
        rsc.add_rule_set(
            ORIENTATION_POINT,
            RuleSet(
                ProfileType.ANGLE,
                (
                    Rule(RuleType.INDEX_IS_WITHIN_FRACTION_OF, (0.5, 0.25)),
                    Rule(RuleType.IS_MINIMUM),
                ),
                name="opposite tip",
            ),
        )
        return rsc


PRESETS: dict[str, Callable[[], RuleSetCollection]] = {
    "round": RuleSetCollection.round,
    "pointed": RuleSetCollection.pointed,
}

