"""nucleoprofile Core — profiles, segments, cells and population statistics."""

from nucleoprofile.core.collection import ProfileCollection
from nucleoprofile.core.exceptions import (
    AmbiguousMatchError,
    DimensionMismatchError,
    IndexFinderError,
    InvalidSegmentsError,
    MissingLandmarkError,
    MissingProfileError,
    NoMatchError,
    NucleoProfileError,
    ProfileOffsetError,
    SegmentationError,
)
from nucleoprofile.core.models import (
    BOTTOM_VERTICAL,
    ORIENTATION_POINT,
    REFERENCE_POINT,
    TOP_VERTICAL,
    Cell,
    Landmark,
    ProfileType,
    Stat,
)
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import MIN_SEGMENT_LENGTH, Segment, SegmentedProfile

__all__ = [
    "AmbiguousMatchError",
    "BOTTOM_VERTICAL",
    "Cell",
    "DimensionMismatchError",
    "IndexFinderError",
    "InvalidSegmentsError",
    "Landmark",
    "MIN_SEGMENT_LENGTH",
    "MissingLandmarkError",
    "MissingProfileError",
    "NoMatchError",
    "NucleoProfileError",
    "ORIENTATION_POINT",
    "Profile",
    "ProfileCollection",
    "ProfileOffsetError",
    "ProfileType",
    "REFERENCE_POINT",
    "Segment",
    "SegmentationError",
    "SegmentedProfile",
    "Stat",
    "TOP_VERTICAL",
]
