"""Exception classes for the nucleoprofile core module."""


class NucleoProfileError(Exception):
    """Base exception for all profile and segmentation errors."""


class InvalidSegmentsError(NucleoProfileError):
    """Raised when a set of segments cannot describe a closed profile."""

    def __init__(self, reason: str | None = None) -> None:
        msg = f"Invalid segments: {reason}" if reason else "Invalid segments"
        super().__init__(msg)
        self.reason = reason


class DimensionMismatchError(NucleoProfileError):
    """Raised when combining profiles of different lengths."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Profile lengths differ: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class IndexFinderError(NucleoProfileError):
    """Base exception for rule-based landmark resolution."""


class NoMatchError(IndexFinderError):
    """Raised when a rule set matches no index in a profile."""

    def __init__(self, rule_set: str | None = None) -> None:
        msg = f"No index matches rule set {rule_set}" if rule_set else "No index matches"
        super().__init__(msg)
        self.rule_set = rule_set


class AmbiguousMatchError(IndexFinderError):
    """Raised when a rule set matches more than one index and has no tie-break."""

    def __init__(self, count: int, rule_set: str | None = None) -> None:
        target = f" rule set {rule_set}" if rule_set else ""
        super().__init__(
            f"{count} indexes match{target}; add FIRST_TRUE or LAST_TRUE to pick one"
        )
        self.count = count
        self.rule_set = rule_set


class ProfileOffsetError(NucleoProfileError):
    """Raised when a landmark cannot be placed on a cell via offsetting."""

    def __init__(self, cell: str | None = None, reason: str | None = None) -> None:
        msg = f"Cannot offset cell {cell}" if cell else "Cannot offset cell"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.cell = cell
        self.reason = reason


class MissingProfileError(NucleoProfileError):
    """Raised when a cell has not been profiled for the requested type."""

    def __init__(self, cell: str | None = None, profile_type: str | None = None) -> None:
        if cell and profile_type:
            msg = f"Cell {cell} has no {profile_type} profile"
        elif profile_type:
            msg = f"No {profile_type} profile"
        else:
            msg = "Profile not found"
        super().__init__(msg)
        self.cell = cell
        self.profile_type = profile_type


class MissingLandmarkError(NucleoProfileError):
    """Raised when referencing a landmark that has not been assigned."""

    def __init__(self, landmark: str | None = None) -> None:
        msg = f"Landmark not assigned: {landmark}" if landmark else "Landmark not assigned"
        super().__init__(msg)
        self.landmark = landmark


class SegmentationError(NucleoProfileError):
    """Raised when a dataset-level run cannot start."""

    def __init__(self, reason: str | None = None) -> None:
        msg = f"Segmentation failed: {reason}" if reason else "Segmentation failed"
        super().__init__(msg)
        self.reason = reason
