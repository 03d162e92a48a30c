"""Shared fixtures for CLI tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def outlines_csv(tmp_path: Path, make_outline) -> Path:
    """CSV of five lobed outlines in cell,x,y format."""
    rng = np.random.default_rng(3)
    frames = []
    for i in range(5):
        outline = make_outline(
            scale=1.0 - 0.15 * rng.random(),
            rotation=int(rng.integers(0, 100)),
            shift=tuple(rng.uniform(-50, 50, size=2)),
        )
        frames.append(pd.DataFrame({
            "cell": f"nucleus_{i}", "x": outline[:, 0], "y": outline[:, 1],
        }))
    path = tmp_path / "shapes.csv"
    pd.concat(frames).to_csv(path, index=False)
    return path
