"""Dataset — a population of cells analysed together."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from nucleoprofile.core.collection import ProfileCollection
from nucleoprofile.core.models import Cell
from nucleoprofile.rules.rule import RuleSetCollection


@dataclass
class Dataset:
    """Cells of one population with their shared statistics and rules.

    Attributes:
        name: Dataset name.
        cells: Member cells, in a stable order.
        rule_sets: Landmark rules for this kind of shape.
        collection: Population statistics and the segment template.
    """

    name: str
    cells: list[Cell] = field(default_factory=list)
    rule_sets: RuleSetCollection = field(default_factory=RuleSetCollection.round)
    collection: ProfileCollection = field(default_factory=ProfileCollection)

    def add_cell(self, cell: Cell) -> None:
        self.cells.append(cell)

    def get_cell(self, cell_id: uuid.UUID) -> Cell:
        """Look up a cell by id.

        Raises:
            KeyError: If no cell has this id.
        """
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        raise KeyError(f"No cell with id {cell_id}")

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)
