"""Fit template segments onto individual profiles."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

import numpy as np

from nucleoprofile.core.profile import Profile
from nucleoprofile.core.segments import Segment, SegmentedProfile, same_segment_order

logger = logging.getLogger(__name__)

# Cost improvements smaller than this do not move a boundary.
_MIN_IMPROVEMENT = 1e-12


@dataclass(frozen=True)
class FitterParams:
    """Parameters for segment fitting.

    Attributes:
        search_window: Indexes each boundary may move per step, either way.
        max_iterations: Cap on full sweeps over all boundaries.
        length_penalty: Weight of the penalty for a segment whose share of
            the profile differs from its share of the template.
        pin_reference: Keep a boundary that sits on index 0 of the template
            at index 0 of the target.
    """

    search_window: int = 10
    max_iterations: int = 20
    length_penalty: float = 0.5
    pin_reference: bool = True

    def __post_init__(self) -> None:
        """Validate parameters."""
        if self.search_window < 1:
            raise ValueError(f"search_window must be >= 1, got {self.search_window}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.length_penalty < 0:
            raise ValueError(f"length_penalty must be >= 0, got {self.length_penalty}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "search_window": self.search_window,
            "max_iterations": self.max_iterations,
            "length_penalty": self.length_penalty,
            "pin_reference": self.pin_reference,
        }


class SegmentFitter:
    """Place a template's segments on a target profile.

    Boundaries start at the template positions scaled to the target length.
    Each boundary is then moved within ``search_window`` to the position
    that minimises the mismatch of the two segments it separates. Segment
    sub-profiles are compared after resampling to the template segment's
    length, so the cost does not depend on absolute profile length.

    ``fit`` performs a single sweep. ``IterativeSegmentFitter`` repeats
    sweeps until no boundary moves.

    Args:
        template: Segmented profile whose segment ids and shapes are copied.
        params: Fitting parameters. Defaults to ``FitterParams()``.
    """

    def __init__(self, template: SegmentedProfile, params: FitterParams | None = None) -> None:
        self.template = template.copy()
        self.params = params or FitterParams()
        self._pieces = {s.id: template.sub_profile(s).values for s in template.segments}
        self._shares = {s.id: s.proportion() for s in template.segments}
        self._pinned: set[uuid.UUID] = set()
        if self.params.pin_reference and template.has_segments():
            self._pinned = {s.id for s in template.segments if s.start == 0}

    # ------------------------------------------------------------------
    # Cost
    # ------------------------------------------------------------------

    def arc_cost(self, profile: Profile, segment_id: uuid.UUID, start: int, end: int) -> float:
        """Mismatch of the arc ``[start, end)`` against one template segment."""
        reference = self._pieces[segment_id]
        piece = profile.sub_region(start, end)
        resampled = Profile.interpolate(piece, len(reference)).values
        mismatch = float(np.mean((resampled - reference) ** 2))
        ratio = (len(piece) / len(profile)) / self._shares[segment_id]
        return mismatch * (1.0 + self.params.length_penalty * (ratio - 1.0) ** 2)

    def score(self, fitted: SegmentedProfile) -> float:
        """Total mismatch of a fitted profile against the template."""
        return sum(self.arc_cost(fitted, s.id, s.start, s.end) for s in fitted.segments)

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def initial_fit(self, target: Profile) -> SegmentedProfile:
        """Starting segmentation for ``target``.

        A target that already carries the template's segment ids keeps its
        own boundaries; anything else gets the template scaled to its length.
        """
        if isinstance(target, SegmentedProfile) and same_segment_order(
            target.segment_ids(), self.template.segment_ids()
        ):
            if all(target.get_segment(i).start == 0 for i in self._pinned):
                return target.copy()
        return SegmentedProfile.from_profile(target, self.template)

    def single_segment(self, target: Profile) -> SegmentedProfile:
        """Fast path for one-segment templates: the whole circle, unchanged values."""
        only = self.template.segments[0]
        segment = Segment(0, 0, len(target), id=only.id, name=only.name, locked=only.locked)
        return SegmentedProfile(target, [segment], min_length=self.template.min_length)

    def fit_boundary(self, fitted: SegmentedProfile, segment_id: uuid.UUID) -> bool:
        """Move the start of one segment to its best nearby position.

        Returns:
            True if the boundary moved.
        """
        if segment_id in self._pinned:
            return False
        ordered = fitted.segments
        seg = fitted.get_segment(segment_id)
        prev = ordered[ordered.index(seg) - 1]
        if seg.locked or prev.locked:
            return False

        best_cost = (
            self.arc_cost(fitted, prev.id, prev.start, seg.start)
            + self.arc_cost(fitted, seg.id, seg.start, seg.end)
        )
        best_start = seg.start
        for delta in range(-self.params.search_window, self.params.search_window + 1):
            if delta == 0:
                continue
            candidate = (seg.start + delta) % len(fitted)
            ok, _ = fitted.can_update(seg, candidate, seg.end)
            if not ok:
                continue
            cost = (
                self.arc_cost(fitted, prev.id, prev.start, candidate)
                + self.arc_cost(fitted, seg.id, candidate, seg.end)
            )
            if cost < best_cost - _MIN_IMPROVEMENT:
                best_cost = cost
                best_start = candidate

        if best_start == seg.start:
            return False
        logger.debug("Moved start of %s from %d to %d", seg.name, seg.start, best_start)
        return fitted.update(seg, best_start, seg.end)

    def sweep(self, fitted: SegmentedProfile) -> int:
        """Try every boundary once, in order. Returns how many moved."""
        moved = 0
        for segment_id in fitted.segment_ids():
            if self.fit_boundary(fitted, segment_id):
                moved += 1
        return moved

    def fit(self, target: Profile) -> SegmentedProfile:
        """Fit the template to ``target`` with a single sweep."""
        if not self.template.has_segments():
            return self.single_segment(target)
        fitted = self.initial_fit(target)
        self.sweep(fitted)
        return fitted


class IterativeSegmentFitter:
    """Repeat ``SegmentFitter`` sweeps until the boundaries settle.

    Stops when a full sweep moves nothing or after
    ``params.max_iterations`` sweeps. The result is a local optimum: fitting
    it again leaves every boundary where it is.

    Args:
        template: Segmented profile whose segments are fitted.
        params: Fitting parameters. Defaults to ``FitterParams()``.
    """

    def __init__(self, template: SegmentedProfile, params: FitterParams | None = None) -> None:
        self._fitter = SegmentFitter(template, params)

    @property
    def template(self) -> SegmentedProfile:
        return self._fitter.template

    @property
    def params(self) -> FitterParams:
        return self._fitter.params

    def score(self, fitted: SegmentedProfile) -> float:
        return self._fitter.score(fitted)

    def fit(self, target: Profile) -> SegmentedProfile:
        """Fit the template to ``target``.

        The result keeps the template's ordered segment ids, covers the
        whole circle and respects the minimum segment length.

        Raises:
            InvalidSegmentsError: If the target is too short for the template.
        """
        if not self.template.has_segments():
            return self._fitter.single_segment(target)
        fitted = self._fitter.initial_fit(target)
        for iteration in range(1, self.params.max_iterations + 1):
            moved = self._fitter.sweep(fitted)
            if moved == 0:
                logger.debug("Fit converged after %d sweeps", iteration)
                break
        else:
            logger.debug("Fit stopped at the %d sweep limit", self.params.max_iterations)
        return fitted
