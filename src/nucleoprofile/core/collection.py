"""ProfileCollection — population statistics and the segment template."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from nucleoprofile.core.exceptions import (
    InvalidSegmentsError,
    MissingLandmarkError,
    MissingProfileError,
)
from nucleoprofile.core.models import REFERENCE_POINT, Landmark, ProfileType, Stat
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment, SegmentedProfile

logger = logging.getLogger(__name__)


class ProfileCollection:
    """Population-level view of a dataset's profiles.

    Holds, per profile type, an aggregate of every cell's profile
    resampled to a common length and aligned at the reference point. Each
    cell keeps its native length; the common length is used here only.
    The collection also stores the template segments and the index of
    each landmark within the aggregate.
    """

    def __init__(self) -> None:
        self._aggregates: dict[ProfileType, np.ndarray] = {}
        self._length: int | None = None
        self._landmarks: dict[Landmark, int] = {REFERENCE_POINT: 0}
        self._segments: list[Segment] | None = None

    @property
    def length(self) -> int:
        """Common sample count of the aggregate.

        Raises:
            MissingProfileError: If no aggregate has been created.
        """
        if self._length is None:
            raise MissingProfileError(profile_type="aggregate")
        return self._length

    def has_aggregate(self, profile_type: ProfileType | None = None) -> bool:
        if profile_type is None:
            return bool(self._aggregates)
        return profile_type in self._aggregates

    def create_aggregate(
        self,
        profiles: dict[ProfileType, Sequence[Profile]],
        length: int | None = None,
    ) -> None:
        """Build the aggregate from reference-point aligned profiles.

        Args:
            profiles: Per profile type, one profile per cell starting at the
                reference point.
            length: Common sample count. Defaults to the median native length.

        Raises:
            ValueError: If no profiles are given.
        """
        lengths = [len(p) for group in profiles.values() for p in group]
        if not lengths:
            raise ValueError("Cannot aggregate an empty population")
        if length is None:
            length = int(round(float(np.median(lengths))))
        if self._segments is not None and self._length not in (None, length):
            scaled = SegmentedProfile(np.zeros(self._length), self._segments)
            self._segments = scaled.interpolate(length).segments
        if self._length not in (None, length):
            for lm, idx in self._landmarks.items():
                self._landmarks[lm] = int(round(idx * length / self._length)) % length
        self._length = length
        self._aggregates = {
            profile_type: np.vstack([Profile.interpolate(p, length).values for p in group])
            for profile_type, group in profiles.items()
            if group
        }
        logger.info(
            "Aggregated %d profile types over %d cells at length %d",
            len(self._aggregates), max(len(g) for g in profiles.values()), length,
        )

    def _aggregate(self, profile_type: ProfileType) -> np.ndarray:
        if profile_type not in self._aggregates:
            raise MissingProfileError("collection", profile_type.value)
        return self._aggregates[profile_type]

    def get_profile(
        self,
        profile_type: ProfileType,
        landmark: Landmark = REFERENCE_POINT,
        stat: Stat = Stat.MEDIAN,
    ) -> Profile:
        """Per-point statistic of the population, starting at ``landmark``."""
        values = np.percentile(self._aggregate(profile_type), stat.value, axis=0)
        return Profile(values).offset(self.get_landmark_index(landmark))

    def get_segmented_profile(
        self,
        profile_type: ProfileType,
        landmark: Landmark = REFERENCE_POINT,
        stat: Stat = Stat.MEDIAN,
    ) -> SegmentedProfile:
        """Population statistic carrying the template segments."""
        median = self.get_profile(profile_type, REFERENCE_POINT, stat)
        templated = SegmentedProfile(median, self._segments)
        return templated.offset(self.get_landmark_index(landmark))

    # ------------------------------------------------------------------
    # Landmarks
    # ------------------------------------------------------------------

    @property
    def landmarks(self) -> dict[Landmark, int]:
        return dict(self._landmarks)

    def has_landmark(self, landmark: Landmark) -> bool:
        return landmark in self._landmarks

    def get_landmark_index(self, landmark: Landmark) -> int:
        """Index of a landmark in the aggregate, relative to the reference point."""
        if landmark not in self._landmarks:
            raise MissingLandmarkError(landmark.name)
        return self._landmarks[landmark]

    def set_landmark_index(self, landmark: Landmark, index: int) -> None:
        if landmark == REFERENCE_POINT and index % self.length != 0:
            raise ValueError("The reference point is always index 0 of the aggregate")
        self._landmarks[landmark] = index % self.length

    # ------------------------------------------------------------------
    # Template segments
    # ------------------------------------------------------------------

    def add_segments(self, segments: Sequence[Segment]) -> None:
        """Store the template segments, indexed from the reference point.

        Raises:
            InvalidSegmentsError: If the segments do not cover the aggregate.
        """
        checked = SegmentedProfile(np.zeros(self.length), segments)
        self._segments = checked.segments
        logger.info("Stored %d template segments", len(self._segments))

    def has_segments(self) -> bool:
        return self._segments is not None

    def get_segments(self, landmark: Landmark = REFERENCE_POINT) -> list[Segment]:
        """Copies of the template segments, offset to start at ``landmark``."""
        if self._segments is None:
            raise InvalidSegmentsError("the collection has no template segments")
        shift = self.get_landmark_index(landmark)
        return [s.shifted(shift) for s in self._segments]

    def segment_ids(self) -> list:
        return [s.id for s in self._segments] if self._segments else []

    def copy_template_from(self, other: ProfileCollection) -> None:
        """Take segments and landmark positions from another collection."""
        if other._segments is None:
            raise InvalidSegmentsError("the source collection has no template segments")
        source = SegmentedProfile(np.zeros(other.length), other._segments)
        self._segments = source.interpolate(self.length).segments
        for lm, idx in other.landmarks.items():
            self._landmarks[lm] = int(round(idx * self.length / other.length)) % self.length

    # ------------------------------------------------------------------

    def to_frame(self, profile_type: ProfileType) -> pd.DataFrame:
        """Median and quartiles per aggregate position as a DataFrame."""
        agg = self._aggregate(profile_type)
        frame = pd.DataFrame({
            "position": np.arange(agg.shape[1]),
            "lower_quartile": np.percentile(agg, Stat.LOWER_QUARTILE.value, axis=0),
            "median": np.percentile(agg, Stat.MEDIAN.value, axis=0),
            "upper_quartile": np.percentile(agg, Stat.UPPER_QUARTILE.value, axis=0),
        })
        if self._segments is not None:
            template = SegmentedProfile(np.zeros(agg.shape[1]), self._segments)
            frame["segment"] = [
                template.get_segment_containing(i).name for i in range(agg.shape[1])
            ]
        return frame
