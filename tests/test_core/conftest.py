"""Shared fixtures for core module tests."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment, SegmentedProfile


@pytest.fixture
def ramp() -> Profile:
    """Profile 0, 1, ..., 9."""
    return Profile(np.arange(10, dtype=float))


@pytest.fixture
def wave() -> Profile:
    """Two-lobed sine wave of 60 points with distinct values."""
    x = np.linspace(0.0, 2.0 * np.pi, 60, endpoint=False)
    return Profile(np.sin(2.0 * x) + 0.3 * np.cos(x))


@pytest.fixture
def four_segments() -> list[Segment]:
    """Four segments over 40 indexes: [0,10) [10,20) [20,30) [30,0)."""
    return [
        Segment(0, 10, 40, name="Seg_0"),
        Segment(10, 20, 40, name="Seg_1"),
        Segment(20, 30, 40, name="Seg_2"),
        Segment(30, 0, 40, name="Seg_3"),
    ]


@pytest.fixture
def segmented(four_segments: list[Segment]) -> SegmentedProfile:
    """40-point ramp divided into four equal segments."""
    return SegmentedProfile(np.arange(40, dtype=float), four_segments)
