"""Shared test fixtures for nucleoprofile."""

from __future__ import annotations

from typing import Callable

import numpy as np
import pytest

from nucleoprofile.core.models import Cell
from nucleoprofile.dataset import Dataset
from nucleoprofile.profiling.outline import ensure_counter_clockwise, resample_outline

OutlineFactory = Callable[..., np.ndarray]


def lobed_outline(
    scale: float = 1.0,
    rotation: int = 0,
    shift: tuple[float, float] = (0.0, 0.0),
    spacing: float = 1.0,
) -> np.ndarray:
    """Smooth asymmetric outline with a single longest radius at angle 0.

    Args:
        scale: Size multiplier.
        rotation: Number of points to roll the outline by, so index 0 lands
            somewhere else on the border.
        shift: Translation added to every point.
        spacing: Distance between resampled border points.
    """
    theta = np.linspace(0.0, 2.0 * np.pi, 720, endpoint=False)
    radius = scale * (20.0 + 4.0 * np.cos(2.0 * theta) + 2.0 * np.cos(theta))
    dense = np.column_stack([radius * np.cos(theta), radius * np.sin(theta)])
    outline = ensure_counter_clockwise(resample_outline(dense, spacing))
    return np.roll(outline, rotation, axis=0) + np.asarray(shift)


@pytest.fixture
def make_outline() -> OutlineFactory:
    """Factory for synthetic lobed outlines."""
    return lobed_outline


@pytest.fixture
def make_dataset() -> Callable[..., Dataset]:
    """Factory for datasets of lobed cells with random size and start point."""

    def factory(
        n_cells: int = 5,
        size_variation: float = 0.2,
        seed: int = 0,
        name: str = "synthetic",
    ) -> Dataset:
        rng = np.random.default_rng(seed)
        dataset = Dataset(name)
        for i in range(n_cells):
            scale = 1.0 - size_variation * rng.random()
            rotation = int(rng.integers(0, 100))
            shift = tuple(rng.uniform(-50.0, 50.0, size=2))
            dataset.add_cell(Cell(lobed_outline(scale, rotation, shift), name=f"cell_{i}"))
        return dataset

    return factory
