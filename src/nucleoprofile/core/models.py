"""Data models for cells, landmarks and profile types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

import numpy as np

from nucleoprofile.core.exceptions import (
    DimensionMismatchError,
    MissingLandmarkError,
    MissingProfileError,
)
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment, SegmentedProfile


class ProfileType(Enum):
    """Kinds of profile measured around an outline."""

    ANGLE = "angle"  # interior angle in degrees, 180 on a straight edge
    RADIUS = "radius"  # distance from the outline centroid


class Stat(Enum):
    """Per-point population statistics. Values are percentiles."""

    LOWER_QUARTILE = 25.0
    MEDIAN = 50.0
    UPPER_QUARTILE = 75.0


@dataclass(frozen=True)
class Landmark:
    """A named boundary point resolved to an index on each cell."""

    name: str

    def __str__(self) -> str:
        return self.name


REFERENCE_POINT = Landmark("reference point")
ORIENTATION_POINT = Landmark("orientation point")
TOP_VERTICAL = Landmark("top vertical")
BOTTOM_VERTICAL = Landmark("bottom vertical")


class Cell:
    """One traced outline with its profiles, landmarks and segments.

    Profiles and segments are stored against the raw outline index 0.
    ``get_profile`` rotates them so that the requested landmark sits at
    index 0, and ``set_profile`` rotates back before storing.

    Args:
        outline: Array of shape (N, 2) with ordered (x, y) border points.
        name: Display name. Defaults to the start of the id.
        id: Stable identifier. Generated when omitted.

    Raises:
        ValueError: If the outline has fewer than 3 points.
    """

    def __init__(
        self,
        outline: np.ndarray,
        name: str | None = None,
        id: uuid.UUID | None = None,
    ) -> None:
        points = np.array(outline, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(f"outline must have shape (N, 2), got {points.shape}")
        if len(points) < 3:
            raise ValueError(f"outline needs at least 3 points, got {len(points)}")
        points.setflags(write=False)
        self.id = id if id is not None else uuid.uuid4()
        self.name = name or str(self.id)[:8]
        self._outline = points
        self._landmarks: dict[Landmark, int] = {}
        self._profiles: dict[ProfileType, Profile] = {}
        self._segments: list[Segment] | None = None
        # True until segments have been fitted against the current profiles.
        self.stale = True

    @property
    def outline(self) -> np.ndarray:
        return self._outline

    @property
    def border_length(self) -> int:
        return len(self._outline)

    # ------------------------------------------------------------------
    # Landmarks
    # ------------------------------------------------------------------

    @property
    def landmarks(self) -> dict[Landmark, int]:
        return dict(self._landmarks)

    def has_landmark(self, landmark: Landmark) -> bool:
        return landmark in self._landmarks

    def get_border_index(self, landmark: Landmark) -> int:
        """Raw outline index of a landmark.

        Raises:
            MissingLandmarkError: If the landmark has not been assigned.
        """
        if landmark not in self._landmarks:
            raise MissingLandmarkError(landmark.name)
        return self._landmarks[landmark]

    def set_landmark(self, landmark: Landmark, index: int) -> None:
        self._landmarks[landmark] = index % self.border_length

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def has_profile(self, profile_type: ProfileType) -> bool:
        return profile_type in self._profiles

    def profile_types(self) -> list[ProfileType]:
        return list(self._profiles)

    def set_raw_profile(self, profile_type: ProfileType, profile: Profile) -> None:
        """Store a profile measured from outline index 0.

        Raises:
            DimensionMismatchError: If the profile length differs from the outline.
        """
        if len(profile) != self.border_length:
            raise DimensionMismatchError(self.border_length, len(profile))
        self._profiles[profile_type] = Profile(profile.values)
        self.stale = True

    def get_raw_profile(self, profile_type: ProfileType) -> Profile:
        if profile_type not in self._profiles:
            raise MissingProfileError(self.name, profile_type.value)
        return self._profiles[profile_type]

    def get_profile(
        self, profile_type: ProfileType, landmark: Landmark = REFERENCE_POINT
    ) -> SegmentedProfile:
        """Segmented profile starting at ``landmark``.

        Raises:
            MissingProfileError: If the profile type has not been measured.
            MissingLandmarkError: If the landmark has not been assigned.
        """
        raw = SegmentedProfile(self.get_raw_profile(profile_type), self._segments)
        return raw.offset(self.get_border_index(landmark))

    def set_profile(
        self,
        profile_type: ProfileType,
        landmark: Landmark,
        profile: Profile,
    ) -> None:
        """Store a profile that starts at ``landmark``.

        A ``SegmentedProfile`` also replaces the cell's segments and clears
        the stale flag. A plain ``Profile`` keeps the current segments.
        """
        if len(profile) != self.border_length:
            raise DimensionMismatchError(self.border_length, len(profile))
        index = self.get_border_index(landmark)
        if isinstance(profile, SegmentedProfile):
            raw = profile.offset(-index)
            self._profiles[profile_type] = Profile(raw.values)
            self._segments = raw.segments
            self.stale = False
        else:
            self._profiles[profile_type] = profile.offset(-index)

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------

    @property
    def segments(self) -> list[Segment]:
        """Segments against raw index 0; empty if never segmented."""
        return [s.clone() for s in self._segments] if self._segments else []

    def has_segments(self) -> bool:
        return bool(self._segments)

    def clear_segments(self) -> None:
        self._segments = None
        self.stale = True

    def __repr__(self) -> str:
        return f"Cell({self.name!r}, points={self.border_length})"
