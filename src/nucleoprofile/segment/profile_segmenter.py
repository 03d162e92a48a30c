"""ProfileSegmenter — derive template segments from a representative profile."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import MIN_SEGMENT_LENGTH, Segment, SegmentedProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmenterParams:
    """Parameters for breakpoint detection.

    Attributes:
        smooth_window: Half-width of the moving average applied first.
        extrema_window: Neighbours checked on each side for local extrema.
        delta_window: Half-width used for first and second differences.
        min_rate_of_change: Fraction of the second-difference range a
            breakpoint must exceed to count as distinct from its surroundings.
        min_segment_length: Shortest segment the segmenter will create.
        max_segments: Upper bound on segments; the weakest breakpoints are
            dropped until the count fits.
        angle_threshold: If set, maxima must lie above and minima below it
            (180 for angle profiles separates convex from concave points).
    """

    smooth_window: int = 2
    extrema_window: int = 5
    delta_window: int = 2
    min_rate_of_change: float = 0.02
    min_segment_length: int = 10
    max_segments: int = 12
    angle_threshold: float | None = None

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.smooth_window < 0:
            raise ValueError(f"smooth_window must be >= 0, got {self.smooth_window}")
        if self.extrema_window < 1:
            raise ValueError(f"extrema_window must be >= 1, got {self.extrema_window}")
        if self.delta_window < 1:
            raise ValueError(f"delta_window must be >= 1, got {self.delta_window}")
        if not (0 <= self.min_rate_of_change <= 1):
            raise ValueError(
                f"min_rate_of_change must be between 0 and 1, got {self.min_rate_of_change}"
            )
        if self.min_segment_length < MIN_SEGMENT_LENGTH:
            raise ValueError(
                f"min_segment_length must be >= {MIN_SEGMENT_LENGTH}, "
                f"got {self.min_segment_length}"
            )
        if self.max_segments < 1:
            raise ValueError(f"max_segments must be >= 1, got {self.max_segments}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "smooth_window": self.smooth_window,
            "extrema_window": self.extrema_window,
            "delta_window": self.delta_window,
            "min_rate_of_change": self.min_rate_of_change,
            "min_segment_length": self.min_segment_length,
            "max_segments": self.max_segments,
            "angle_threshold": self.angle_threshold,
        }


class ProfileSegmenter:
    """Split a profile into segments at its strongest inflection points.

    Index 0 is treated as the reference point and always starts a segment.
    Candidate breakpoints are local minima and maxima of the smoothed
    profile whose second difference stands out from the rest of the
    profile. Candidates closer together than ``min_segment_length`` are
    merged (the stronger survives), and no breakpoint may sit within
    ``min_segment_length`` of index 0 on either side. The output is a pure
    function of the input values; only the segment ids are new each call.

    Args:
        params: Detection parameters. Defaults to ``SegmenterParams()``.
    """

    def __init__(self, params: SegmenterParams | None = None) -> None:
        self.params = params or SegmenterParams()

    def breakpoint_strengths(self, profile: Profile) -> np.ndarray:
        """Strength of every index as a breakpoint; 0 where it cannot be one."""
        p = self.params
        smoothed = profile.smooth(p.smooth_window)
        inflections = (
            smoothed.local_maxima(p.extrema_window, p.angle_threshold)
            | smoothed.local_minima(p.extrema_window, p.angle_threshold)
        )
        second = (
            smoothed.calculate_deltas(p.delta_window)
            .smooth(p.smooth_window)
            .calculate_deltas(p.delta_window)
        )
        magnitude = np.abs(second.values)
        variation = second.max() - second.min()
        if variation <= 0:
            return np.zeros(len(profile))
        distinct = magnitude > variation * p.min_rate_of_change
        return np.where(inflections & distinct, magnitude, 0.0)

    def find_breakpoints(self, profile: Profile) -> list[int]:
        """Sorted segment start indexes after index 0."""
        p = self.params
        n = len(profile)
        min_len = p.min_segment_length
        if n < 2 * min_len:
            return []
        strength = self.breakpoint_strengths(profile)

        breaks: list[int] = []
        for index in np.flatnonzero(strength):
            index = int(index)
            if index < min_len or index > n - min_len:
                continue
            previous = breaks[-1] if breaks else 0
            if index - previous >= min_len:
                breaks.append(index)
                continue
            if not breaks:
                continue
            # Too close to the previous breakpoint: keep the stronger one.
            before = breaks[-2] if len(breaks) > 1 else 0
            if strength[index] > strength[previous] and index - before >= min_len:
                logger.debug("Merged breakpoint %d into %d", previous, index)
                breaks[-1] = index

        while breaks and len(breaks) + 1 > p.max_segments:
            weakest = min(breaks, key=lambda i: (strength[i], i))
            logger.debug("Dropped weak breakpoint %d", weakest)
            breaks.remove(weakest)
        return breaks

    def segment(self, profile: Profile) -> list[Segment]:
        """Segments covering the profile, the first starting at index 0.

        A profile with no usable breakpoint gets a single segment covering
        the whole circle.
        """
        n = len(profile)
        breaks = self.find_breakpoints(profile)
        if not breaks:
            logger.info("No breakpoints found in profile of length %d", n)
            return [Segment(0, 0, n, name="Seg_0")]
        starts = [0] + breaks
        m = len(starts)
        segments = [
            Segment(starts[k], starts[(k + 1) % m], n, name=f"Seg_{k}")
            for k in range(m)
        ]
        logger.info("Segmented profile of length %d into %d segments", n, m)
        return segments

    def segment_profile(self, profile: Profile) -> SegmentedProfile:
        return SegmentedProfile(profile, self.segment(profile))
