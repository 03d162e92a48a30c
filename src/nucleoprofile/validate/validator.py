"""DatasetValidator — check dataset-wide segmentation invariants."""

from __future__ import annotations

import logging

import pandas as pd

from nucleoprofile.core.exceptions import NucleoProfileError
from nucleoprofile.core.models import REFERENCE_POINT, Cell, ProfileType
from nucleoprofile.core.segments import MIN_SEGMENT_LENGTH, same_segment_order
from nucleoprofile.dataset import Dataset

logger = logging.getLogger(__name__)


class DatasetValidator:
    """Check every cell of a dataset against the collection's template.

    Per cell: the reference point is assigned, the profile exists, the
    segment count and ids match the template in the same cyclic order,
    segments cover the whole circle without gaps, none is shorter than the
    minimum length, and (for multi-segment templates) a segment starts at
    the reference point. ``validate`` never raises; failures are collected
    in ``get_errors()`` and ``get_error_cells()``.

    Args:
        profile_type: Profile whose segments are checked.
        min_length: Minimum segment length to enforce.
    """

    def __init__(
        self,
        profile_type: ProfileType = ProfileType.ANGLE,
        min_length: int = MIN_SEGMENT_LENGTH,
    ) -> None:
        self.profile_type = profile_type
        self.min_length = min_length
        self._errors: list[str] = []
        self._error_cells: list[Cell] = []
        self._summary: list[str] = []

    def validate(self, dataset: Dataset) -> bool:
        """Check the dataset. Returns True if every cell passes."""
        self._errors = []
        self._error_cells = []
        template_ids = dataset.collection.segment_ids()

        for cell in dataset.cells:
            try:
                problems = self.check_cell(cell, template_ids)
            except Exception as exc:
                if isinstance(exc, (MemoryError, KeyboardInterrupt, SystemExit)):
                    raise
                logger.warning("Validation of cell %s raised: %s", cell.name, exc, exc_info=True)
                problems = [f"validation raised {type(exc).__name__}: {exc}"]
            if problems:
                self._error_cells.append(cell)
                self._errors.extend(f"{cell.name}: {p}" for p in problems)

        total = len(dataset.cells)
        if self._error_cells:
            self._summary = [
                f"Dataset {dataset.name} failed validation: "
                f"{len(self._error_cells)} out of {total} cells have errors",
            ]
            logger.warning(self._summary[0])
        else:
            self._summary = [f"Dataset {dataset.name} OK: {total} cells valid"]
        return not self._error_cells

    def check_cell(self, cell: Cell, template_ids: list) -> list[str]:
        """Problems found on one cell; empty when it is valid."""
        problems: list[str] = []
        if not cell.has_landmark(REFERENCE_POINT):
            problems.append("reference point is not assigned")
        if not cell.has_profile(self.profile_type):
            problems.append(f"no {self.profile_type.value} profile")
        if problems or not template_ids:
            return problems

        if not cell.has_segments():
            return ["not segmented"]
        try:
            profile = cell.get_profile(self.profile_type, REFERENCE_POINT)
        except NucleoProfileError as exc:
            return [f"segments are not contiguous: {exc}"]

        ids = profile.segment_ids()
        if len(ids) != len(template_ids):
            problems.append(f"has {len(ids)} segments, template has {len(template_ids)}")
        elif set(ids) != set(template_ids):
            problems.append("segment ids differ from the template")
        elif not same_segment_order(ids, template_ids):
            problems.append("segments are out of template order")

        if len(ids) > 1:
            for segment in profile.segments:
                if segment.length < self.min_length:
                    problems.append(
                        f"{segment.name or segment.id} is {segment.length} long, "
                        f"below the minimum {self.min_length}"
                    )
            if not any(s.start == 0 for s in profile.segments):
                problems.append("reference point is not on a segment boundary")
        return problems

    def get_errors(self) -> list[str]:
        return list(self._errors)

    def get_error_cells(self) -> list[Cell]:
        return list(self._error_cells)

    def get_summary(self) -> list[str]:
        return list(self._summary)

    def to_frame(self) -> pd.DataFrame:
        """One row per error with the cell name and message."""
        rows = [error.split(": ", 1) for error in self._errors]
        return pd.DataFrame(rows, columns=["cell", "error"])
