"""Shared fixtures for segmentation tests."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import SegmentedProfile
from nucleoprofile.segment import ProfileSegmenter


def lobes(n: int = 160) -> Profile:
    """Angle-like profile with four lobes: maxima at n/16 + k*n/4, minima between."""
    x = np.arange(n) * (2.0 * np.pi / n)
    return Profile(180.0 + 40.0 * np.sin(4.0 * x))


@pytest.fixture
def lobed_profile() -> Profile:
    return lobes()


@pytest.fixture
def template(lobed_profile: Profile) -> SegmentedProfile:
    """The lobed profile segmented with default parameters."""
    return ProfileSegmenter().segment_profile(lobed_profile)


@pytest.fixture
def make_lobes():
    """Factory for lobed profiles of any length."""
    return lobes
