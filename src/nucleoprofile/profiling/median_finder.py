"""RepresentativeMedianFinder — choose a real profile that represents a population."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from nucleoprofile.core.profile import Profile

logger = logging.getLogger(__name__)


class RepresentativeMedianFinder:
    """Pick the population member closest to all the others.

    A pointwise average of differently shaped, differently sized profiles
    is not itself a plausible shape. Instead every candidate is resampled
    to a common length and scored by its summed squared difference to every
    other candidate; the lowest score wins and the original, unresampled
    profile is returned.

    Args:
        profiles: Candidate profiles, all starting at the same landmark.
        sample_length: Common length used for scoring. Defaults to the
            longest candidate.

    Raises:
        ValueError: If ``profiles`` is empty.
    """

    def __init__(self, profiles: Sequence[Profile], sample_length: int | None = None) -> None:
        if not profiles:
            raise ValueError("Cannot find the median of an empty population")
        self._profiles = list(profiles)
        self._length = sample_length or max(len(p) for p in self._profiles)

    def scores(self) -> np.ndarray:
        """Total squared deviation of each candidate from all others."""
        stack = np.vstack([Profile.interpolate(p, self._length).values for p in self._profiles])
        # Row i holds the distance from candidate i to every candidate, summed
        # per pair so distances[i, j] == distances[j, i] exactly.
        distances = np.vstack([np.sum((stack - row) ** 2, axis=1) for row in stack])
        return distances.sum(axis=1)

    def find_median_index(self) -> int:
        """Position of the representative profile; ties go to the earliest."""
        if len(self._profiles) == 1:
            return 0
        index = int(np.argmin(self.scores()))
        logger.debug("Representative profile is candidate %d of %d", index, len(self._profiles))
        return index

    def find_median(self) -> Profile:
        """The representative profile itself, at its native length."""
        return self._profiles[self.find_median_index()]
