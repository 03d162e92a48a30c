"""Shared fixtures for profiling tests."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.models import REFERENCE_POINT, Cell, ProfileType
from nucleoprofile.core.profile import Profile
from nucleoprofile.dataset import Dataset
from nucleoprofile.segment import IterativeSegmentFitter, ProfileSegmenter


def lobes(n: int) -> Profile:
    x = np.arange(n) * (2.0 * np.pi / n)
    return Profile(180.0 + 40.0 * np.sin(4.0 * x))


def circle(n: int, radius: float = 10.0) -> np.ndarray:
    theta = np.arange(n) * (2.0 * np.pi / n)
    return np.column_stack([radius * np.cos(theta), radius * np.sin(theta)])


@pytest.fixture
def lobed_dataset() -> Dataset:
    """Three cells with hand-set lobed angle profiles, segmented and fitted.

    Cell i has border length n and its reference point at raw index rp, for
    (n, rp) in (160, 0), (200, 7), (180, 33). The aggregate length is 160.
    """
    dataset = Dataset("lobed")
    for i, (n, rp) in enumerate([(160, 0), (200, 7), (180, 33)]):
        cell = Cell(circle(n), name=f"cell_{i}")
        cell.set_raw_profile(ProfileType.ANGLE, lobes(n).offset(-rp))
        cell.set_landmark(REFERENCE_POINT, rp)
        dataset.add_cell(cell)

    collection = dataset.collection
    collection.create_aggregate(
        {ProfileType.ANGLE: [c.get_profile(ProfileType.ANGLE) for c in dataset.cells]},
        length=160,
    )
    collection.add_segments(ProfileSegmenter().segment(collection.get_profile(ProfileType.ANGLE)))
    fitter = IterativeSegmentFitter(collection.get_segmented_profile(ProfileType.ANGLE))
    for cell in dataset.cells:
        fitted = fitter.fit(cell.get_profile(ProfileType.ANGLE, REFERENCE_POINT))
        cell.set_profile(ProfileType.ANGLE, REFERENCE_POINT, fitted)
    return dataset
