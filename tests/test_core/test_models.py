"""Tests for Cell, Landmark and the profile enums."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.exceptions import (
    DimensionMismatchError,
    MissingLandmarkError,
    MissingProfileError,
)
from nucleoprofile.core.models import (
    ORIENTATION_POINT,
    REFERENCE_POINT,
    Cell,
    Landmark,
    ProfileType,
    Stat,
)
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment, SegmentedProfile


def square_cell(n: int = 10) -> Cell:
    theta = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
    return Cell(np.column_stack([np.cos(theta), np.sin(theta)]), name="c1")


class TestLandmark:
    def test_frozen_and_hashable(self) -> None:
        assert Landmark("reference point") == REFERENCE_POINT
        assert len({REFERENCE_POINT, Landmark("reference point")}) == 1
        with pytest.raises(AttributeError):
            REFERENCE_POINT.name = "x"  # type: ignore[misc]

    def test_str(self) -> None:
        assert str(ORIENTATION_POINT) == "orientation point"

    def test_stat_values_are_percentiles(self) -> None:
        assert Stat.MEDIAN.value == 50.0
        assert Stat.LOWER_QUARTILE.value < Stat.UPPER_QUARTILE.value


class TestCellConstruction:
    def test_outline_shape(self) -> None:
        with pytest.raises(ValueError, match="shape"):
            Cell(np.zeros((5, 3)))

    def test_too_few_points(self) -> None:
        with pytest.raises(ValueError, match="at least 3"):
            Cell(np.zeros((2, 2)))

    def test_default_name(self) -> None:
        cell = Cell(np.zeros((4, 2)))
        assert cell.name == str(cell.id)[:8]

    def test_outline_read_only(self) -> None:
        cell = square_cell()
        assert cell.border_length == 10
        with pytest.raises(ValueError):
            cell.outline[0, 0] = 3.0


class TestCellLandmarks:
    def test_set_landmark_wraps(self) -> None:
        cell = square_cell()
        cell.set_landmark(REFERENCE_POINT, 12)
        assert cell.get_border_index(REFERENCE_POINT) == 2
        assert cell.has_landmark(REFERENCE_POINT)

    def test_missing_landmark(self) -> None:
        with pytest.raises(MissingLandmarkError):
            square_cell().get_border_index(ORIENTATION_POINT)


class TestCellProfiles:
    def test_length_must_match(self) -> None:
        with pytest.raises(DimensionMismatchError):
            square_cell().set_raw_profile(ProfileType.ANGLE, Profile(np.zeros(9)))

    def test_missing_profile(self) -> None:
        with pytest.raises(MissingProfileError):
            square_cell().get_raw_profile(ProfileType.RADIUS)

    def test_profile_from_landmark(self) -> None:
        cell = square_cell()
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.arange(10, dtype=float)))
        cell.set_landmark(REFERENCE_POINT, 3)
        profile = cell.get_profile(ProfileType.ANGLE, REFERENCE_POINT)
        assert isinstance(profile, SegmentedProfile)
        assert list(profile)[:3] == [3, 4, 5]
        assert cell.profile_types() == [ProfileType.ANGLE]

    def test_set_segmented_profile_stores_raw_segments(self) -> None:
        cell = square_cell()
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.arange(10, dtype=float)))
        cell.set_landmark(REFERENCE_POINT, 3)
        profile = cell.get_profile(ProfileType.ANGLE, REFERENCE_POINT)
        fitted = SegmentedProfile(profile, [Segment(0, 5, 10), Segment(5, 0, 10)])
        assert cell.stale

        cell.set_profile(ProfileType.ANGLE, REFERENCE_POINT, fitted)

        assert not cell.stale
        assert sorted(s.start for s in cell.segments) == [3, 8]
        again = cell.get_profile(ProfileType.ANGLE, REFERENCE_POINT)
        assert again.segments_equal(fitted)

    def test_plain_profile_keeps_segments(self) -> None:
        cell = square_cell()
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.zeros(10)))
        cell.set_landmark(REFERENCE_POINT, 0)
        fitted = SegmentedProfile(np.zeros(10), [Segment(0, 5, 10), Segment(5, 0, 10)])
        cell.set_profile(ProfileType.ANGLE, REFERENCE_POINT, fitted)

        cell.set_profile(ProfileType.ANGLE, REFERENCE_POINT, Profile(np.ones(10)))

        assert cell.has_segments()
        assert cell.get_raw_profile(ProfileType.ANGLE).max() == 1.0

    def test_remeasuring_marks_stale(self) -> None:
        cell = square_cell()
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.zeros(10)))
        cell.set_landmark(REFERENCE_POINT, 0)
        cell.set_profile(
            ProfileType.ANGLE, REFERENCE_POINT,
            SegmentedProfile(np.zeros(10), [Segment(0, 5, 10), Segment(5, 0, 10)]),
        )
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.ones(10)))
        assert cell.stale
        assert cell.has_segments()

    def test_clear_segments(self) -> None:
        cell = square_cell()
        cell.set_raw_profile(ProfileType.ANGLE, Profile(np.zeros(10)))
        cell.set_landmark(REFERENCE_POINT, 0)
        cell.set_profile(
            ProfileType.ANGLE, REFERENCE_POINT,
            SegmentedProfile(np.zeros(10), [Segment(0, 5, 10), Segment(5, 0, 10)]),
        )
        cell.clear_segments()
        assert not cell.has_segments()
        assert cell.segments == []
        assert cell.stale
