"""Shared fixtures for validator tests."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.models import REFERENCE_POINT, Cell, ProfileType
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment, SegmentedProfile
from nucleoprofile.dataset import Dataset

LENGTH = 40


def _circle(n: int = LENGTH) -> np.ndarray:
    theta = np.linspace(0, 2 * np.pi, n, endpoint=False)
    return np.column_stack([10 * np.cos(theta), 10 * np.sin(theta)])


@pytest.fixture
def template_segments() -> list[Segment]:
    """Four equal segments over a 40-point profile."""
    return [
        Segment(start, (start + 10) % LENGTH, LENGTH, name=f"Seg_{i}")
        for i, start in enumerate(range(0, LENGTH, 10))
    ]


@pytest.fixture
def make_cell():
    """Factory: a cell with an angle profile, a reference point and optional segments."""

    def factory(name: str, rp: int = 0, segments: list[Segment] | None = None) -> Cell:
        cell = Cell(_circle(), name=name)
        values = 180 + 20 * np.sin(np.linspace(0, 4 * np.pi, LENGTH, endpoint=False))
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.roll(values, rp)))
        cell.set_landmark(REFERENCE_POINT, rp)
        if segments is not None:
            profile = cell.get_profile(ProfileType.ANGLE, REFERENCE_POINT)
            cell.set_profile(
                ProfileType.ANGLE, REFERENCE_POINT, SegmentedProfile(profile, segments),
            )
        return cell

    return factory


@pytest.fixture
def valid_dataset(make_cell, template_segments) -> Dataset:
    """Three cells fitted with the template, reference points at different offsets."""
    dataset = Dataset("checked")
    for i, rp in enumerate((0, 7, 33)):
        dataset.add_cell(make_cell(f"cell_{i}", rp, template_segments))
    profiles = [c.get_profile(ProfileType.ANGLE, REFERENCE_POINT) for c in dataset.cells]
    dataset.collection.create_aggregate({ProfileType.ANGLE: profiles}, length=LENGTH)
    dataset.collection.add_segments(template_segments)
    return dataset
