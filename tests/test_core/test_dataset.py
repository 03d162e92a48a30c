"""Tests for Dataset."""

from __future__ import annotations

import uuid

import numpy as np
import pytest

from nucleoprofile.core.models import Cell
from nucleoprofile.dataset import Dataset
from nucleoprofile.rules import RuleSetCollection


def triangle() -> np.ndarray:
    return np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])


class TestDataset:
    def test_defaults(self) -> None:
        dataset = Dataset("wt")
        assert len(dataset) == 0
        assert dataset.rule_sets.name == "Round"
        assert not dataset.collection.has_aggregate()

    def test_add_and_iterate(self) -> None:
        dataset = Dataset("wt")
        cells = [Cell(triangle(), name=f"c{i}") for i in range(3)]
        for cell in cells:
            dataset.add_cell(cell)
        assert len(dataset) == 3
        assert [c.name for c in dataset] == ["c0", "c1", "c2"]

    def test_get_cell(self) -> None:
        cell = Cell(triangle())
        dataset = Dataset("wt", [cell])
        assert dataset.get_cell(cell.id) is cell
        with pytest.raises(KeyError):
            dataset.get_cell(uuid.uuid4())

    def test_independent_defaults(self) -> None:
        a, b = Dataset("a"), Dataset("b")
        a.add_cell(Cell(triangle()))
        assert len(b) == 0
        assert a.collection is not b.collection

    def test_custom_rules(self) -> None:
        dataset = Dataset("pointy", rule_sets=RuleSetCollection.pointed())
        assert len(dataset.rule_sets) == 2
