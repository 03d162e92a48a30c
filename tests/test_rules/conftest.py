"""Shared fixtures for rule tests."""

from __future__ import annotations

import numpy as np
import pytest

from nucleoprofile.core.profile import Profile
from nucleoprofile.rules.index_finder import ProfileIndexFinder


@pytest.fixture
def finder() -> ProfileIndexFinder:
    return ProfileIndexFinder()


@pytest.fixture
def valley() -> Profile:
    """20 points: a deep minimum at 5 and a shallow one at 15."""
    values = np.full(20, 10.0)
    values[3:8] = [8.0, 6.0, 2.0, 6.0, 8.0]
    values[13:18] = [9.0, 7.0, 5.0, 7.0, 9.0]
    return Profile(values)
