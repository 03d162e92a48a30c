"""Tests for ProfileCollection."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.collection import ProfileCollection
from nucleoprofile.core.exceptions import (
    InvalidSegmentsError,
    MissingLandmarkError,
    MissingProfileError,
)
from nucleoprofile.core.models import ORIENTATION_POINT, REFERENCE_POINT, ProfileType, Stat
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment


@pytest.fixture
def collection() -> ProfileCollection:
    """Collection of three constant angle profiles 1, 2, 3 of length 20."""
    c = ProfileCollection()
    c.create_aggregate({ProfileType.ANGLE: [Profile(np.full(20, v)) for v in (1.0, 2.0, 3.0)]})
    return c


class TestAggregate:
    def test_length_before_aggregate(self) -> None:
        with pytest.raises(MissingProfileError):
            ProfileCollection().length

    def test_default_length_is_median(self) -> None:
        c = ProfileCollection()
        c.create_aggregate({ProfileType.ANGLE: [Profile(np.zeros(n)) for n in (10, 12, 30)]})
        assert c.length == 12
        assert c.has_aggregate(ProfileType.ANGLE)
        assert not c.has_aggregate(ProfileType.RADIUS)

    def test_empty_population(self) -> None:
        with pytest.raises(ValueError, match="empty population"):
            ProfileCollection().create_aggregate({ProfileType.ANGLE: []})

    def test_statistics(self, collection: ProfileCollection) -> None:
        median = collection.get_profile(ProfileType.ANGLE, REFERENCE_POINT, Stat.MEDIAN)
        lower = collection.get_profile(ProfileType.ANGLE, REFERENCE_POINT, Stat.LOWER_QUARTILE)
        upper = collection.get_profile(ProfileType.ANGLE, REFERENCE_POINT, Stat.UPPER_QUARTILE)
        assert median.get(0) == pytest.approx(2.0)
        assert lower.get(5) == pytest.approx(1.5)
        assert upper.get(19) == pytest.approx(2.5)

    def test_identical_population_median(self) -> None:
        x = np.linspace(0.0, 2.0 * np.pi, 50, endpoint=False)
        shape = Profile(np.sin(x) * 30.0 + 180.0)
        c = ProfileCollection()
        c.create_aggregate({ProfileType.ANGLE: [shape] * 6})
        assert c.get_profile(ProfileType.ANGLE).almost_equal(shape, 1e-4)

    def test_missing_type(self, collection: ProfileCollection) -> None:
        with pytest.raises(MissingProfileError):
            collection.get_profile(ProfileType.RADIUS)

    def test_to_frame(self, collection: ProfileCollection) -> None:
        frame = collection.to_frame(ProfileType.ANGLE)
        assert list(frame.columns) == ["position", "lower_quartile", "median", "upper_quartile"]
        assert len(frame) == 20
        collection.add_segments([Segment(0, 10, 20, name="A"), Segment(10, 0, 20, name="B")])
        frame = collection.to_frame(ProfileType.ANGLE)
        assert frame["segment"].tolist() == ["A"] * 10 + ["B"] * 10


class TestLandmarks:
    def test_reference_point_is_zero(self, collection: ProfileCollection) -> None:
        assert collection.get_landmark_index(REFERENCE_POINT) == 0
        with pytest.raises(ValueError):
            collection.set_landmark_index(REFERENCE_POINT, 4)

    def test_set_and_get(self, collection: ProfileCollection) -> None:
        collection.set_landmark_index(ORIENTATION_POINT, 25)
        assert collection.get_landmark_index(ORIENTATION_POINT) == 5
        assert collection.has_landmark(ORIENTATION_POINT)

    def test_missing(self, collection: ProfileCollection) -> None:
        with pytest.raises(MissingLandmarkError):
            collection.get_landmark_index(ORIENTATION_POINT)

    def test_profile_from_landmark(self) -> None:
        c = ProfileCollection()
        c.create_aggregate({ProfileType.ANGLE: [Profile(np.arange(20, dtype=float))]})
        c.set_landmark_index(ORIENTATION_POINT, 7)
        assert c.get_profile(ProfileType.ANGLE, ORIENTATION_POINT).get(0) == 7


class TestTemplate:
    def test_add_and_get_segments(self, collection: ProfileCollection) -> None:
        collection.add_segments([Segment(0, 8, 20), Segment(8, 0, 20)])
        assert collection.has_segments()
        assert len(collection.segment_ids()) == 2
        collection.set_landmark_index(ORIENTATION_POINT, 8)
        moved = collection.get_segments(ORIENTATION_POINT)
        assert sorted(s.start for s in moved) == [0, 12]

    def test_invalid_segments(self, collection: ProfileCollection) -> None:
        with pytest.raises(InvalidSegmentsError):
            collection.add_segments([Segment(0, 8, 20)])
        assert not collection.has_segments()

    def test_get_segments_without_template(self, collection: ProfileCollection) -> None:
        with pytest.raises(InvalidSegmentsError):
            collection.get_segments()

    def test_segmented_profile(self, collection: ProfileCollection) -> None:
        collection.add_segments([Segment(0, 8, 20), Segment(8, 0, 20)])
        templated = collection.get_segmented_profile(ProfileType.ANGLE)
        assert templated.segment_ids() == collection.segment_ids()
        assert templated.get(0) == pytest.approx(2.0)

    def test_rescale_on_new_length(self, collection: ProfileCollection) -> None:
        collection.add_segments([Segment(0, 8, 20), Segment(8, 0, 20)])
        collection.set_landmark_index(ORIENTATION_POINT, 10)
        collection.create_aggregate(
            {ProfileType.ANGLE: [Profile(np.zeros(40))]}, length=40,
        )
        assert collection.length == 40
        assert sorted(s.start for s in collection.get_segments()) == [0, 16]
        assert collection.get_landmark_index(ORIENTATION_POINT) == 20

    def test_copy_template(self, collection: ProfileCollection) -> None:
        source = ProfileCollection()
        source.create_aggregate({ProfileType.ANGLE: [Profile(np.zeros(40))]})
        source.add_segments([Segment(0, 16, 40), Segment(16, 0, 40)])
        source.set_landmark_index(ORIENTATION_POINT, 20)

        collection.copy_template_from(source)

        assert collection.segment_ids() == source.segment_ids()
        assert sorted(s.start for s in collection.get_segments()) == [0, 8]
        assert collection.get_landmark_index(ORIENTATION_POINT) == 10

    def test_copy_without_template(self, collection: ProfileCollection) -> None:
        with pytest.raises(InvalidSegmentsError):
            collection.copy_template_from(ProfileCollection())
