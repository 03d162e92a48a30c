"""DatasetSegmentationMethod — segment a dataset and fit every cell."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from nucleoprofile.core.exceptions import SegmentationError
from nucleoprofile.core.models import REFERENCE_POINT, Cell, ProfileType
from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import SegmentedProfile, same_segment_order
from nucleoprofile.dataset import Dataset
from nucleoprofile.profiling._workers import run_per_cell
from nucleoprofile.profiling.median_finder import RepresentativeMedianFinder
from nucleoprofile.profiling.offsetter import ProfileOffsetter
from nucleoprofile.segment.fitter import FitterParams, IterativeSegmentFitter
from nucleoprofile.segment.profile_segmenter import ProfileSegmenter, SegmenterParams
from nucleoprofile.validate.validator import DatasetValidator

logger = logging.getLogger(__name__)


class SegmentationMode(Enum):
    """How the template is obtained."""

    NEW = "new"  # segment the representative profile from scratch
    REFINE = "refine"  # keep the template, refit stale cells only
    COPY = "copy"  # take the template from another dataset


@dataclass(frozen=True)
class SegmentationParams:
    """Parameters for a dataset segmentation run.

    Attributes:
        mode: Where the template comes from and which cells are fitted.
        profile_type: Profile that is segmented and fitted.
        segmenter: Breakpoint detection parameters (NEW mode).
        fitter: Per-cell fitting parameters.
        max_workers: Thread pool size. None lets the executor decide.
        update_landmarks: Re-place secondary landmarks through the new
            segments once fitting is done.
    """

    mode: SegmentationMode = SegmentationMode.NEW
    profile_type: ProfileType = ProfileType.ANGLE
    segmenter: SegmenterParams = field(default_factory=SegmenterParams)
    fitter: FitterParams = field(default_factory=FitterParams)
    max_workers: int | None = None
    update_landmarks: bool = True

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1 or None, got {self.max_workers}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "profile_type": self.profile_type.value,
            "segmenter": self.segmenter.to_dict(),
            "fitter": self.fitter.to_dict(),
            "max_workers": self.max_workers,
            "update_landmarks": self.update_landmarks,
        }


@dataclass(frozen=True)
class SegmentationResult:
    """Result of a dataset segmentation run.

    Attributes:
        mode: Mode the run used.
        segment_count: Number of segments in the template.
        cells_fitted: Cells that received new segments.
        cells_skipped: Cells left untouched (up to date or cancelled).
        failed_cells: Names of cells whose fitting failed.
        warnings: Per-cell and landmark warning messages.
        valid: Whether the dataset passed validation afterwards.
        validation_errors: Messages from the validator.
        error_cells: Names of cells the validator flagged.
        cancelled: Whether the run was cancelled before every cell ran.
        elapsed_seconds: Wall-clock time for the run.
    """

    mode: str
    segment_count: int
    cells_fitted: int
    cells_skipped: int = 0
    failed_cells: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    valid: bool = True
    validation_errors: list[str] = field(default_factory=list)
    error_cells: list[str] = field(default_factory=list)
    cancelled: bool = False
    elapsed_seconds: float = 0.0


class DatasetSegmentationMethod:
    """Build or reuse a segment template and fit it to every cell.

    NEW picks the representative cell profile, segments it and stores the
    segments as the template, then fits all cells. REFINE keeps the
    existing template and refits only cells whose segments are stale or do
    not match it. COPY takes the template and landmark positions from
    ``source`` and fits all cells.

    Fitting runs on a thread pool, one cell per task. A cancelled run keeps
    the new segments of cells already fitted; the others keep their old
    segmentation. The dataset is validated afterwards and the outcome is
    reported in the result rather than raised.

    Args:
        dataset: Profiled dataset to segment.
        params: Run parameters. Defaults to ``SegmentationParams()``.
        source: Dataset to copy the template from (COPY mode).

    Raises:
        ValueError: If COPY mode is requested without a source.
    """

    def __init__(
        self,
        dataset: Dataset,
        params: SegmentationParams | None = None,
        source: Dataset | None = None,
    ) -> None:
        self.dataset = dataset
        self.params = params or SegmentationParams()
        self.source = source
        if self.params.mode is SegmentationMode.COPY and source is None:
            raise ValueError("COPY mode needs a source dataset")

    def run(
        self,
        progress_callback: Callable[[int, int, str], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> SegmentationResult:
        """Segment the dataset.

        Args:
            progress_callback: Optional callback(current, total, cell_name).
            cancel_event: Optional event that stops cells not yet started.

        Returns:
            SegmentationResult with fitting and validation details.

        Raises:
            SegmentationError: If the dataset is empty, unprofiled, or has
                no template to refine against.
        """
        start = time.monotonic()
        profile_type = self.params.profile_type
        collection = self.dataset.collection
        if not self.dataset.cells:
            raise SegmentationError(f"dataset {self.dataset.name!r} has no cells")
        if not collection.has_aggregate(profile_type):
            raise SegmentationError(f"dataset has no {profile_type.value} aggregate; profile it first")

        mode = self.params.mode
        if mode is SegmentationMode.NEW:
            self._build_template()
        elif mode is SegmentationMode.COPY:
            collection.copy_template_from(self.source.collection)
        elif not collection.has_segments():
            raise SegmentationError("no template segments to refine against")
        template = collection.get_segmented_profile(profile_type, REFERENCE_POINT)

        candidates = [c for c in self.dataset.cells if c.has_profile(profile_type)]
        if mode is SegmentationMode.REFINE:
            to_fit = [c for c in candidates if self._is_stale(c, template)]
        else:
            to_fit = candidates

        fitter = IterativeSegmentFitter(template, self.params.fitter)
        outcomes, cancelled = run_per_cell(
            to_fit,
            lambda cell: self._fit_cell(cell, fitter),
            action="Segment fitting",
            max_workers=self.params.max_workers,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )
        fitted = sum(1 for o in outcomes if o.ok)
        failed = [o.cell.name for o in outcomes if not o.ok]
        warnings = [f"{o.cell.name}: fitting failed: {o.error}" for o in outcomes if not o.ok]

        if self.params.update_landmarks and template.has_segments() and not cancelled:
            offsetter = ProfileOffsetter(self.dataset, profile_type)
            for offset_result in offsetter.recalculate_verticals():
                warnings.extend(offset_result.warnings)

        validator = DatasetValidator(profile_type)
        valid = validator.validate(self.dataset)

        elapsed = time.monotonic() - start
        logger.info(
            "%s segmentation: %d segments, %d cells fitted, %d failed",
            mode.value, template.segment_count, fitted, len(failed),
        )
        return SegmentationResult(
            mode=mode.value,
            segment_count=template.segment_count,
            cells_fitted=fitted,
            cells_skipped=len(self.dataset.cells) - len(outcomes),
            failed_cells=failed,
            warnings=warnings,
            valid=valid,
            validation_errors=validator.get_errors(),
            error_cells=[c.name for c in validator.get_error_cells()],
            cancelled=cancelled,
            elapsed_seconds=round(elapsed, 3),
        )

    def _build_template(self) -> None:
        """Segment the representative profile and store it as the template."""
        profile_type = self.params.profile_type
        collection = self.dataset.collection
        profiles = [
            c.get_profile(profile_type, REFERENCE_POINT)
            for c in self.dataset.cells
            if c.has_profile(profile_type) and c.has_landmark(REFERENCE_POINT)
        ]
        if not profiles:
            raise SegmentationError("no profiled cells to build a template from")
        finder = RepresentativeMedianFinder(profiles, sample_length=collection.length)
        representative = Profile.interpolate(finder.find_median(), collection.length)
        segments = ProfileSegmenter(self.params.segmenter).segment(representative)
        collection.add_segments(segments)

    def _is_stale(self, cell: Cell, template: SegmentedProfile) -> bool:
        if cell.stale or not cell.has_segments():
            return True
        ids = [s.id for s in cell.segments]
        return not same_segment_order(ids, template.segment_ids())

    def _fit_cell(self, cell: Cell, fitter: IterativeSegmentFitter) -> None:
        target = cell.get_profile(self.params.profile_type, REFERENCE_POINT)
        fitted = fitter.fit(target)
        cell.set_profile(self.params.profile_type, REFERENCE_POINT, fitted)
