"""Tests for outline tracing and profile calculation."""

from __future__ import annotations

import numpy as np
import pytest
from skimage.draw import disk

from nucleoprofile.core.models import ProfileType
from nucleoprofile.profiling import (
    angle_profile,
    calculate_profile,
    cells_from_labels,
    outlines_from_labels,
    radius_profile,
    resample_outline,
)
from nucleoprofile.profiling.outline import ensure_counter_clockwise, profile_window, signed_area

SQUARE = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])


class TestOrientation:
    def test_signed_area(self) -> None:
        assert signed_area(SQUARE) == pytest.approx(100.0)
        assert signed_area(SQUARE[::-1]) == pytest.approx(-100.0)

    def test_ensure_counter_clockwise(self) -> None:
        fixed = ensure_counter_clockwise(SQUARE[::-1])
        assert signed_area(fixed) > 0
        assert np.array_equal(ensure_counter_clockwise(SQUARE), SQUARE)


class TestResample:
    def test_even_spacing(self) -> None:
        points = resample_outline(SQUARE, spacing=1.0)
        assert points.shape == (40, 2)
        steps = np.hypot(*np.diff(np.vstack([points, points[:1]]), axis=0).T)
        assert steps == pytest.approx(np.ones(40))
        assert points[0] == pytest.approx([0.0, 0.0])

    def test_coarse_spacing(self) -> None:
        assert len(resample_outline(SQUARE, spacing=4.0)) == 10

    def test_minimum_three_points(self) -> None:
        assert len(resample_outline(SQUARE, spacing=100.0)) == 3

    def test_invalid_spacing(self) -> None:
        with pytest.raises(ValueError, match="spacing must be > 0"):
            resample_outline(SQUARE, spacing=0)

    def test_zero_perimeter(self) -> None:
        with pytest.raises(ValueError, match="zero perimeter"):
            resample_outline(np.zeros((4, 2)))


class TestProfiles:
    def test_circle_angle(self) -> None:
        theta = np.arange(100) * (2.0 * np.pi / 100)
        points = np.column_stack([np.cos(theta), np.sin(theta)]) * 15.0
        profile = angle_profile(points, 5)
        assert profile.values == pytest.approx(np.full(100, 162.0))

    def test_straight_edge_is_180(self) -> None:
        points = resample_outline(SQUARE, spacing=1.0)
        profile = angle_profile(points, 2)
        assert profile.get(5) == pytest.approx(180.0)
        assert profile.get(0) < 180.0

    def test_circle_radius(self) -> None:
        theta = np.arange(60) * (2.0 * np.pi / 60)
        points = np.column_stack([np.cos(theta), np.sin(theta)]) * 7.0 + 3.0
        assert radius_profile(points).values == pytest.approx(np.full(60, 7.0))

    def test_window_proportional(self) -> None:
        assert profile_window(100, 0.05) == 5
        assert profile_window(10, 0.01) == 1

    def test_translation_invariant(self, make_outline) -> None:
        base = make_outline()
        moved = base + np.array([123.5, -40.25])
        for profile_type in ProfileType:
            a = calculate_profile(base, profile_type)
            b = calculate_profile(moved, profile_type)
            assert a.almost_equal(b, 1e-4)

    def test_rotation_rolls_profile(self, make_outline) -> None:
        base = make_outline()
        rolled = make_outline(rotation=17)
        a = calculate_profile(base, ProfileType.ANGLE)
        b = calculate_profile(rolled, ProfileType.ANGLE)
        assert b.offset(17).almost_equal(a, 1e-6)


class TestLabels:
    @pytest.fixture
    def labels(self) -> np.ndarray:
        image = np.zeros((80, 120), dtype=np.int32)
        image[disk((30, 30), 15)] = 1
        image[disk((50, 85), 10)] = 2
        return image

    def test_one_outline_per_label(self, labels: np.ndarray) -> None:
        outlines = outlines_from_labels(labels)
        assert set(outlines) == {1, 2}

    def test_outlines_in_image_coordinates(self, labels: np.ndarray) -> None:
        outlines = outlines_from_labels(labels)
        centre = outlines[2].mean(axis=0)
        assert centre == pytest.approx([85.0, 50.0], abs=1.0)
        radius = np.hypot(*(outlines[1] - outlines[1].mean(axis=0)).T)
        assert radius.mean() == pytest.approx(15.0, abs=1.5)

    def test_outlines_counter_clockwise(self, labels: np.ndarray) -> None:
        for outline in outlines_from_labels(labels).values():
            assert signed_area(outline) > 0

    def test_cells_from_labels(self, labels: np.ndarray) -> None:
        cells = cells_from_labels(labels, spacing=2.0)
        assert [c.name for c in cells] == ["cell_1", "cell_2"]
        assert cells[0].border_length == pytest.approx(2 * np.pi * 15 / 2, abs=8)

    def test_empty_image(self) -> None:
        assert outlines_from_labels(np.zeros((10, 10), dtype=np.int32)) == {}
