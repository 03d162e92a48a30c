"""DatasetProfilingMethod — measure, aggregate and align a dataset's profiles."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from nucleoprofile.core.exceptions import IndexFinderError
from nucleoprofile.core.models import REFERENCE_POINT, Cell, ProfileType, Stat
from nucleoprofile.core.profile import Profile
from nucleoprofile.dataset import Dataset
from nucleoprofile.profiling._workers import run_per_cell
from nucleoprofile.profiling.outline import calculate_profile
from nucleoprofile.rules.index_finder import ProfileIndexFinder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfilingParams:
    """Parameters for a profiling run.

    Attributes:
        window_proportion: Angle window as a fraction of the perimeter.
        profile_types: Profile types to measure on every cell.
        sample_length: Common length of the population aggregate. None uses
            the median cell length.
        max_workers: Thread pool size. None lets the executor decide.
        max_coercion_attempts: How many times the reference point may be
            re-aligned before giving up on landing it at median index 0.
    """

    window_proportion: float = 0.05
    profile_types: tuple[ProfileType, ...] = (ProfileType.ANGLE, ProfileType.RADIUS)
    sample_length: int | None = None
    max_workers: int | None = None
    max_coercion_attempts: int = 50

    def __post_init__(self) -> None:
        """Validate parameters."""
        object.__setattr__(self, "profile_types", tuple(self.profile_types))
        if not (0 < self.window_proportion < 0.5):
            raise ValueError(
                f"window_proportion must be between 0 and 0.5, got {self.window_proportion}"
            )
        if not self.profile_types:
            raise ValueError("profile_types must not be empty")
        if self.sample_length is not None and self.sample_length < 1:
            raise ValueError(f"sample_length must be >= 1 or None, got {self.sample_length}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1 or None, got {self.max_workers}")
        if self.max_coercion_attempts < 1:
            raise ValueError(
                f"max_coercion_attempts must be >= 1, got {self.max_coercion_attempts}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_proportion": self.window_proportion,
            "profile_types": [t.value for t in self.profile_types],
            "sample_length": self.sample_length,
            "max_workers": self.max_workers,
            "max_coercion_attempts": self.max_coercion_attempts,
        }


@dataclass(frozen=True)
class ProfilingResult:
    """Result of a profiling run.

    Attributes:
        cells_profiled: Cells whose profiles were measured and aggregated.
        failed_cells: Names of cells that could not be profiled.
        warnings: Per-cell and per-landmark warning messages.
        coercion_attempts: Re-alignments needed to land the reference point
            at index 0 of the median.
        cancelled: Whether the run was cancelled before every cell ran.
        elapsed_seconds: Wall-clock time for the run.
    """

    cells_profiled: int
    failed_cells: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    coercion_attempts: int = 0
    cancelled: bool = False
    elapsed_seconds: float = 0.0


class DatasetProfilingMethod:
    """Profile every cell of a dataset and align them at their landmarks.

    1. Measure each requested profile type on each cell (in parallel) and
       place a first reference point with the cell's own rules, falling
       back to index 0.
    2. Aggregate all cells into the collection.
    3. Find the reference point in the population median, shift every cell
       to best fit the median from there, and re-aggregate until the
       median's reference point is index 0.
    4. Find the remaining landmarks in the median and place them on every
       cell by best fit.

    Args:
        dataset: Dataset to profile. Its ``rule_sets`` define the landmarks.
        params: Profiling parameters. Defaults to ``ProfilingParams()``.
    """

    def __init__(self, dataset: Dataset, params: ProfilingParams | None = None) -> None:
        self.dataset = dataset
        self.params = params or ProfilingParams()
        self._finder = ProfileIndexFinder()

    def run(
        self,
        progress_callback: Callable[[int, int, str], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ProfilingResult:
        """Run profiling on the whole dataset.

        Args:
            progress_callback: Optional callback(current, total, cell_name).
            cancel_event: Optional event that stops cells not yet started.

        Returns:
            ProfilingResult with run statistics.

        Raises:
            ValueError: If the dataset has no cells.
        """
        start = time.monotonic()
        if not self.dataset.cells:
            raise ValueError(f"Dataset {self.dataset.name!r} has no cells")

        outcomes, cancelled = run_per_cell(
            self.dataset.cells,
            self._profile_cell,
            action="Profiling",
            max_workers=self.params.max_workers,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )
        warnings = [f"{o.cell.name}: {o.warning}" for o in outcomes if o.ok and o.warning]
        failed = [o.cell.name for o in outcomes if not o.ok]
        warnings.extend(f"{o.cell.name}: profiling failed: {o.error}" for o in outcomes if not o.ok)
        cells = [o.cell for o in outcomes if o.ok]

        attempts = 0
        if cells:
            self._aggregate(cells)
            attempts = self._coerce_reference_point(cells, warnings)
            self._place_secondary_landmarks(cells, warnings)

        elapsed = time.monotonic() - start
        logger.info(
            "Profiled %d of %d cells in %.1fs",
            len(cells), len(self.dataset.cells), elapsed,
        )
        return ProfilingResult(
            cells_profiled=len(cells),
            failed_cells=failed,
            warnings=warnings,
            coercion_attempts=attempts,
            cancelled=cancelled,
            elapsed_seconds=round(elapsed, 3),
        )

    # ------------------------------------------------------------------
    # Per-cell work
    # ------------------------------------------------------------------

    def _profile_cell(self, cell: Cell) -> str | None:
        for profile_type in self.params.profile_types:
            profile = calculate_profile(cell.outline, profile_type, self.params.window_proportion)
            cell.set_raw_profile(profile_type, profile)

        rule_sets = self.dataset.rule_sets.get_rule_sets(REFERENCE_POINT)
        if not rule_sets:
            cell.set_landmark(REFERENCE_POINT, 0)
            return None
        raw = {t: cell.get_raw_profile(t) for t in cell.profile_types()}
        try:
            index = self._finder.identify_index(raw, rule_sets)
        except (IndexFinderError, KeyError) as exc:
            cell.set_landmark(REFERENCE_POINT, 0)
            return f"reference point not found, using index 0 ({exc})"
        cell.set_landmark(REFERENCE_POINT, index)
        return None

    # ------------------------------------------------------------------
    # Population steps
    # ------------------------------------------------------------------

    def _aggregate(self, cells: list[Cell]) -> None:
        profiles = {
            t: [c.get_profile(t, REFERENCE_POINT) for c in cells]
            for t in self.params.profile_types
        }
        self.dataset.collection.create_aggregate(profiles, self.params.sample_length)

    def _medians(self) -> dict[ProfileType, Profile]:
        collection = self.dataset.collection
        return {
            t: collection.get_profile(t, REFERENCE_POINT, Stat.MEDIAN)
            for t in self.params.profile_types
        }

    def _alignment_type(self) -> ProfileType:
        """Profile type used for best-fit alignment: that of the first RP rule set."""
        rule_sets = self.dataset.rule_sets.get_rule_sets(REFERENCE_POINT)
        for rule_set in rule_sets:
            if rule_set.profile_type in self.params.profile_types:
                return rule_set.profile_type
        return self.params.profile_types[0]

    def _realign(self, cells: list[Cell], alignment: ProfileType, template: Profile) -> bool:
        """Move each cell's reference point to its best fit against ``template``.

        Returns:
            True if any reference point moved.
        """
        moved = False
        for cell in cells:
            shift = cell.get_profile(alignment, REFERENCE_POINT).find_best_fit_offset(template)
            if shift:
                cell.set_landmark(REFERENCE_POINT, cell.get_border_index(REFERENCE_POINT) + shift)
                moved = True
        return moved

    def _coerce_reference_point(self, cells: list[Cell], warnings: list[str]) -> int:
        """Re-align cells until the median reference point is index 0.

        Every cell is fitted to the median once before the median's
        reference point is checked.
        """
        rule_sets = self.dataset.rule_sets.get_rule_sets(REFERENCE_POINT)
        if not rule_sets:
            return 0
        alignment = self._alignment_type()
        if self._realign(cells, alignment, self._medians()[alignment]):
            self._aggregate(cells)
        for attempt in range(self.params.max_coercion_attempts):
            medians = self._medians()
            try:
                index = self._finder.identify_index(medians, rule_sets)
            except (IndexFinderError, KeyError) as exc:
                warnings.append(f"reference point not found in the median: {exc}")
                return attempt
            if index == 0:
                return attempt

            logger.debug("Median reference point at %d, re-aligning cells", index)
            self._realign(cells, alignment, medians[alignment].offset(index))
            self._aggregate(cells)

        warnings.append(
            "reference point did not settle at index 0 of the median after "
            f"{self.params.max_coercion_attempts} attempts"
        )
        return self.params.max_coercion_attempts

    def _place_secondary_landmarks(self, cells: list[Cell], warnings: list[str]) -> None:
        collection = self.dataset.collection
        medians = self._medians()
        for landmark in self.dataset.rule_sets.landmarks():
            if landmark == REFERENCE_POINT:
                continue
            rule_sets = self.dataset.rule_sets.get_rule_sets(landmark)
            try:
                index = self._finder.identify_index(medians, rule_sets)
            except (IndexFinderError, KeyError) as exc:
                warnings.append(f"{landmark} not found in the median: {exc}")
                continue
            collection.set_landmark_index(landmark, index)

            profile_type = rule_sets[0].profile_type
            template = medians[profile_type].offset(index)
            for cell in cells:
                rp = cell.get_border_index(REFERENCE_POINT)
                guess = rp + int(round(index * cell.border_length / collection.length))
                cell.set_landmark(landmark, guess)
                shift = cell.get_profile(profile_type, landmark).find_best_fit_offset(template)
                cell.set_landmark(landmark, guess + shift)
            logger.info("Placed %s at median index %d", landmark, index)
