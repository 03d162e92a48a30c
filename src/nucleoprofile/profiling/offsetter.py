"""ProfileOffsetter — place landmarks on cells through their segments."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from nucleoprofile.core.exceptions import NucleoProfileError, ProfileOffsetError
from nucleoprofile.core.models import REFERENCE_POINT, Cell, Landmark, ProfileType
from nucleoprofile.core.segments import SegmentedProfile, same_segment_order
from nucleoprofile.dataset import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OffsetResult:
    """Result of placing one landmark across a dataset.

    Attributes:
        landmark: Name of the landmark placed.
        cells_assigned: Number of cells that received the landmark.
        failed_cells: Names of cells that could not be offset.
        warnings: One message per failed cell.
        elapsed_seconds: Wall-clock time for the run.
    """

    landmark: str
    cells_assigned: int
    failed_cells: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0


class ProfileOffsetter:
    """Align cells to the population template through a franken-profile.

    A cell's franken-profile stretches each of its segments to the length of
    the matching template segment and joins them in template order. The
    result no longer depends on where the cell's segments start or how
    long the cell is, so it can be compared index for index with the
    template. A short sliding search absorbs any remaining misregistration,
    then the template's landmark index is mapped back through its segment
    onto the cell.

    Args:
        dataset: Dataset whose collection holds the template.
        profile_type: Profile used for alignment.
        search_window: Largest residual shift tried, in template indexes.
    """

    def __init__(
        self,
        dataset: Dataset,
        profile_type: ProfileType = ProfileType.ANGLE,
        search_window: int = 5,
    ) -> None:
        self.dataset = dataset
        self.profile_type = profile_type
        self.search_window = search_window

    def template(self) -> SegmentedProfile:
        """Median profile of the collection with the template segments.

        Raises:
            ProfileOffsetError: If the collection has not been segmented.
        """
        collection = self.dataset.collection
        if not collection.has_segments():
            raise ProfileOffsetError(reason="the dataset has no template segments")
        return collection.get_segmented_profile(self.profile_type, REFERENCE_POINT)

    def franken_profile(self, cell: Cell, template: SegmentedProfile | None = None) -> SegmentedProfile:
        """The cell's profile rebuilt on the template's segment layout.

        Raises:
            ProfileOffsetError: If the cell lacks a matching segmented profile.
        """
        template = template if template is not None else self.template()
        try:
            profile = cell.get_profile(self.profile_type, REFERENCE_POINT)
        except NucleoProfileError as exc:
            raise ProfileOffsetError(cell.name, str(exc)) from exc
        if not cell.has_segments() or not same_segment_order(
            profile.segment_ids(), template.segment_ids()
        ):
            raise ProfileOffsetError(cell.name, "no segmented profile matching the template")
        return profile.franken_normalise_to(template)

    def place_landmark(
        self,
        cell: Cell,
        landmark: Landmark,
        template: SegmentedProfile | None = None,
    ) -> int:
        """Assign ``landmark`` on one cell and return its raw border index.

        Raises:
            ProfileOffsetError: If the cell cannot be aligned.
        """
        template = template if template is not None else self.template()
        target = self.dataset.collection.get_landmark_index(landmark)
        franken = self.franken_profile(cell, template)
        shift = franken.find_best_fit_offset(template, max_offset=self.search_window)
        template_index = template.wrap(target + shift)

        template_segment = template.get_segment_containing(template_index)
        fraction = template.wrap(template_index - template_segment.start) / template_segment.length
        cell_segment = cell.get_profile(self.profile_type, REFERENCE_POINT).get_segment(
            template_segment.id
        )
        local = cell_segment.start + int(round(fraction * cell_segment.length))
        cell.set_landmark(landmark, cell.get_border_index(REFERENCE_POINT) + local)
        return cell.get_border_index(landmark)

    def assign_landmark_via_franken_profile(
        self,
        landmark: Landmark,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> OffsetResult:
        """Place ``landmark`` on every cell of the dataset.

        Cells that cannot be aligned are reported and skipped; the others
        are still updated.
        """
        start = time.monotonic()
        template = self.template()
        failed: list[str] = []
        warnings: list[str] = []
        assigned = 0
        total = len(self.dataset.cells)

        for i, cell in enumerate(self.dataset.cells):
            try:
                self.place_landmark(cell, landmark, template)
                assigned += 1
            except Exception as exc:
                if isinstance(exc, (MemoryError, KeyboardInterrupt, SystemExit)):
                    raise
                logger.warning(
                    "Could not place %s on cell %s: %s",
                    landmark, cell.name, exc, exc_info=True,
                )
                failed.append(cell.name)
                warnings.append(f"{cell.name}: {exc}")

            if progress_callback:
                progress_callback(i + 1, total, cell.name)

        elapsed = time.monotonic() - start
        logger.info("Placed %s on %d of %d cells", landmark, assigned, total)
        return OffsetResult(
            landmark=landmark.name,
            cells_assigned=assigned,
            failed_cells=failed,
            warnings=warnings,
            elapsed_seconds=round(elapsed, 3),
        )

    def recalculate_verticals(self) -> list[OffsetResult]:
        """Re-place every landmark other than the reference point.

        Call after the template segments or landmark positions change.
        """
        return [
            self.assign_landmark_via_franken_profile(landmark)
            for landmark in self.dataset.collection.landmarks
            if landmark != REFERENCE_POINT
        ]
