"""Outline tracing and profile calculation.

Outlines are (N, 2) arrays of (x, y) border points ordered
counter-clockwise. Label images are traced with scikit-image
``find_contours``; everything downstream works on the point arrays.
"""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np
from skimage.measure import find_contours, regionprops

from nucleoprofile.core.models import Cell, ProfileType
from nucleoprofile.core.profile import Profile

logger = logging.getLogger(__name__)


def signed_area(points: np.ndarray) -> float:
    """Shoelace area; positive for counter-clockwise outlines."""
    x, y = points[:, 0], points[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def ensure_counter_clockwise(points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    if signed_area(points) < 0:
        return points[::-1].copy()
    return points


def resample_outline(points: np.ndarray, spacing: float = 1.0) -> np.ndarray:
    """Resample a closed outline to evenly spaced points.

    Args:
        points: (N, 2) border points; the closing edge back to the first
            point is implied.
        spacing: Target distance between consecutive points.

    Returns:
        (M, 2) array with ``M = round(perimeter / spacing)`` (at least 3).
    """
    if spacing <= 0:
        raise ValueError(f"spacing must be > 0, got {spacing}")
    points = np.asarray(points, dtype=np.float64)
    closed = np.vstack([points, points[:1]])
    steps = np.hypot(*np.diff(closed, axis=0).T)
    distance = np.concatenate([[0.0], np.cumsum(steps)])
    perimeter = distance[-1]
    if perimeter == 0:
        raise ValueError("outline has zero perimeter")
    count = max(3, int(round(perimeter / spacing)))
    positions = np.arange(count) * (perimeter / count)
    x = np.interp(positions, distance, closed[:, 0])
    y = np.interp(positions, distance, closed[:, 1])
    return np.column_stack([x, y])


def outlines_from_labels(labels: np.ndarray, spacing: float = 1.0) -> dict[int, np.ndarray]:
    """Trace the outer boundary of every labelled region.

    Args:
        labels: 2D integer array (Y, X) where pixel value = cell ID,
            0 = background.
        spacing: Distance between resampled border points, in pixels.

    Returns:
        Mapping of label value to a counter-clockwise (N, 2) outline in
        image (x, y) coordinates.
    """
    outlines: dict[int, np.ndarray] = {}
    for prop in regionprops(labels):
        min_row, min_col, _, _ = prop.bbox
        # Pad so regions touching the crop edge still give closed contours.
        crop = np.pad(prop.image, 1).astype(np.float64)
        contours = find_contours(crop, 0.5)
        if not contours:
            logger.warning("No contour found for label %d", prop.label)
            continue
        contour = max(contours, key=len)
        if np.allclose(contour[0], contour[-1]):
            contour = contour[:-1]
        # find_contours returns (row, col); swap to (x, y) and undo the padding.
        xy = np.column_stack([contour[:, 1] + min_col - 1, contour[:, 0] + min_row - 1])
        outlines[int(prop.label)] = ensure_counter_clockwise(resample_outline(xy, spacing))
    return outlines


def cells_from_labels(labels: np.ndarray, spacing: float = 1.0) -> list[Cell]:
    """One ``Cell`` per labelled region, named after its label value."""
    return [
        Cell(outline, name=f"cell_{label}")
        for label, outline in outlines_from_labels(labels, spacing).items()
    ]


# ----------------------------------------------------------------------
# Profiles
# ----------------------------------------------------------------------


def profile_window(length: int, proportion: float) -> int:
    """Neighbour offset for angle measurement: a fraction of the perimeter."""
    return max(1, int(round(length * proportion)))


def angle_profile(points: np.ndarray, window: int) -> Profile:
    """Interior angle in degrees at each point.

    The angle is measured between the points ``window`` steps behind and
    ahead. Straight edges give 180, convex corners less, concave more.
    """
    points = np.asarray(points, dtype=np.float64)
    behind = np.roll(points, window, axis=0) - points
    ahead = np.roll(points, -window, axis=0) - points
    degrees = np.degrees(
        np.arctan2(behind[:, 1], behind[:, 0]) - np.arctan2(ahead[:, 1], ahead[:, 0])
    )
    return Profile(np.mod(degrees, 360.0))


def radius_profile(points: np.ndarray, window: int = 1) -> Profile:
    """Distance of each point from the centroid of the outline."""
    points = np.asarray(points, dtype=np.float64)
    centre = points.mean(axis=0)
    return Profile(np.hypot(*(points - centre).T))


PROFILE_CALCULATORS: dict[ProfileType, Callable[[np.ndarray, int], Profile]] = {
    ProfileType.ANGLE: angle_profile,
    ProfileType.RADIUS: radius_profile,
}


def calculate_profile(
    points: np.ndarray,
    profile_type: ProfileType,
    window_proportion: float = 0.05,
) -> Profile:
    """Measure one profile type around an outline, starting at point 0."""
    window = profile_window(len(points), window_proportion)
    return PROFILE_CALCULATORS[profile_type](points, window)
