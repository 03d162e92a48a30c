"""Segments and segmented profiles.

A segment is a named arc ``[start, end)`` over the circular index space of a
profile. A ``SegmentedProfile`` owns an ordered set of segments that covers
every index exactly once.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Sequence, Union

import numpy as np

from nucleoprofile.core.exceptions import InvalidSegmentsError
from nucleoprofile.core.profile import Profile

logger = logging.getLogger(__name__)

# Smallest number of indexes a segment may hold once part of a profile.
MIN_SEGMENT_LENGTH = 3


class Segment:
    """A contiguous arc of a circular profile with a stable identity.

    The identity (``id``) is shared by every copy of the segment across a
    population; positions differ per instance. Bounds are read-only here
    and only change through ``SegmentedProfile.update``.

    Args:
        start: First index of the arc.
        end: Index one past the last index of the arc. ``start == end``
            means the arc covers the whole circle.
        total_length: Length of the profile the segment belongs to.
        id: Stable identifier. A fresh UUID is generated when omitted.
        name: Display name.
        locked: Locked segments are never moved by fitting or editing.

    Raises:
        InvalidSegmentsError: If an index lies outside the profile.
    """

    def __init__(
        self,
        start: int,
        end: int,
        total_length: int,
        *,
        id: uuid.UUID | None = None,
        name: str = "",
        locked: bool = False,
    ) -> None:
        if total_length < 1:
            raise InvalidSegmentsError(f"total length must be >= 1, got {total_length}")
        for label, index in (("start", start), ("end", end)):
            if not 0 <= index < total_length:
                raise InvalidSegmentsError(
                    f"{label} index {index} outside profile of length {total_length}"
                )
        self._start = int(start)
        self._end = int(end)
        self._total = int(total_length)
        self.id = id if id is not None else uuid.uuid4()
        self.name = name
        self._locked = locked

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def total_length(self) -> int:
        return self._total

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def length(self) -> int:
        """Number of indexes on the arc, counted modulo the profile length."""
        return (self._end - self._start) % self._total or self._total

    def contains(self, index: int) -> bool:
        return (index - self._start) % self._total < self.length

    def proportion(self) -> float:
        """Fraction of the profile covered by this segment."""
        return self.length / self._total

    def clone(self) -> Segment:
        return Segment(
            self._start, self._end, self._total,
            id=self.id, name=self.name, locked=self._locked,
        )

    def shifted(self, amount: int) -> Segment:
        """Copy with both bounds moved back by ``amount`` (profile offset)."""
        return Segment(
            (self._start - amount) % self._total,
            (self._end - amount) % self._total,
            self._total,
            id=self.id, name=self.name, locked=self._locked,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return (
            self.id == other.id
            and self._start == other.start
            and self._end == other.end
            and self._total == other.total_length
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        label = self.name or str(self.id)[:8]
        return f"Segment({label} [{self._start}, {self._end}) len={self.length}/{self._total})"


SegmentRef = Union[Segment, uuid.UUID]


def _canonical(segments: Sequence[Segment], total: int, min_length: int) -> list[Segment]:
    """Check a segment set and return it ordered from the segment holding index 0.

    Raises:
        InvalidSegmentsError: If the set does not cover the circle exactly once.
    """
    if not segments:
        raise InvalidSegmentsError("at least one segment is required")
    ids = [s.id for s in segments]
    if len(set(ids)) != len(ids):
        raise InvalidSegmentsError("segment ids are not unique")
    for s in segments:
        if s.total_length != total:
            raise InvalidSegmentsError(
                f"{s!r} spans {s.total_length} indexes but the profile has {total}"
            )

    if len(segments) == 1:
        only = segments[0]
        if only.start != only.end:
            raise InvalidSegmentsError("a single segment must cover the full circle")
        return [only]

    ordered = sorted(segments, key=lambda s: s.start)
    if ordered[-1].contains(0) and ordered[0].start != 0:
        ordered = ordered[-1:] + ordered[:-1]
    covered = 0
    for i, seg in enumerate(ordered):
        nxt = ordered[(i + 1) % len(ordered)]
        if seg.start == seg.end:
            raise InvalidSegmentsError(f"{seg!r} has zero length")
        if seg.end != nxt.start:
            raise InvalidSegmentsError(f"gap or overlap between {seg!r} and {nxt!r}")
        if seg.length < min_length:
            raise InvalidSegmentsError(
                f"{seg!r} is shorter than the minimum length {min_length}"
            )
        covered += seg.length
    if covered != total:
        raise InvalidSegmentsError(f"segments cover {covered} of {total} indexes")
    return ordered


class SegmentedProfile(Profile):
    """A profile together with a gapless, non-overlapping set of segments.

    Segments are copied on construction, so a segment object belongs to one
    profile only. Without segments the profile holds a single default
    segment covering the whole circle from index 0.

    Args:
        values: Profile or sequence of values.
        segments: Segments covering every index exactly once.
        min_length: Minimum number of indexes per segment.

    Raises:
        InvalidSegmentsError: If the segments are malformed.
    """

    def __init__(
        self,
        values: Profile | Iterable[float] | np.ndarray,
        segments: Sequence[Segment] | None = None,
        *,
        min_length: int = MIN_SEGMENT_LENGTH,
    ) -> None:
        super().__init__(values.values if isinstance(values, Profile) else values)
        n = len(self)
        if not segments:
            segments = [Segment(0, 0, n, name="Seg_0")]
        self._min_length = min_length
        self._segments = _canonical([s.clone() for s in segments], n, min_length)
        self.last_update_error: str | None = None

    @classmethod
    def from_profile(cls, profile: Profile, template: SegmentedProfile) -> SegmentedProfile:
        """Apply the template's segments, scaled to the profile's length."""
        scaled = template.interpolate(len(profile))
        return cls(profile, scaled.segments, min_length=template.min_length)

    # ------------------------------------------------------------------
    # Segment access
    # ------------------------------------------------------------------

    @property
    def min_length(self) -> int:
        return self._min_length

    @property
    def segments(self) -> list[Segment]:
        """Segments in canonical order (see ``get_ordered_segments``)."""
        return list(self._segments)

    def get_ordered_segments(self) -> list[Segment]:
        """Segments starting with the one that contains index 0."""
        return list(self._segments)

    def segment_ids(self) -> list[uuid.UUID]:
        return [s.id for s in self._segments]

    @property
    def segment_count(self) -> int:
        return len(self._segments)

    def has_segments(self) -> bool:
        """True when the profile is divided into more than one segment."""
        return len(self._segments) > 1

    def get_segment(self, segment_id: uuid.UUID) -> Segment:
        """Look up a segment by id.

        Raises:
            KeyError: If no segment has this id.
        """
        for s in self._segments:
            if s.id == segment_id:
                return s
        raise KeyError(f"No segment with id {segment_id}")

    def get_segment_named(self, name: str) -> Segment:
        for s in self._segments:
            if s.name == name:
                return s
        raise KeyError(f"No segment named {name!r}")

    def get_segment_containing(self, index: int) -> Segment:
        index = self.wrap(index)
        for s in self._segments:
            if s.contains(index):
                return s
        raise InvalidSegmentsError(f"no segment contains index {index}")

    def sub_profile(self, segment: SegmentRef) -> Profile:
        """Values of one segment, in order from its start."""
        seg = self._resolve(segment)
        return self.sub_region(seg.start, seg.end)

    def _resolve(self, segment: SegmentRef) -> Segment:
        segment_id = segment.id if isinstance(segment, Segment) else segment
        return self.get_segment(segment_id)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def can_update(
        self, segment: SegmentRef, new_start: int, new_end: int
    ) -> tuple[bool, str | None]:
        """Check whether moving a segment's bounds keeps the profile valid.

        Moving the start of a segment also moves the end of the previous
        segment; moving the end also moves the start of the next one.

        Returns:
            ``(True, None)`` if the move is allowed, otherwise ``(False, reason)``.
        """
        seg = self._resolve(segment)
        n = len(self)
        new_start %= n
        new_end %= n
        m = len(self._segments)
        if m == 1:
            if new_start != new_end:
                return False, "a single segment must start and end at the same index"
            if seg.locked and new_start != seg.start:
                return False, f"{seg!r} is locked"
            return True, None

        i = self._segments.index(seg)
        prev = self._segments[i - 1]
        nxt = self._segments[(i + 1) % m]
        if new_start != seg.start and (seg.locked or prev.locked):
            return False, f"start of {seg!r} is held by a locked segment"
        if new_end != seg.end and (seg.locked or nxt.locked):
            return False, f"end of {seg!r} is held by a locked segment"

        starts = [s.start for s in self._segments]
        starts[i] = new_start
        starts[(i + 1) % m] = new_end
        gaps = [(starts[(k + 1) % m] - starts[k]) % n for k in range(m)]
        for k, gap in enumerate(gaps):
            if gap == 0:
                return False, f"{self._segments[k]!r} would have zero length"
        if sum(gaps) != n:
            return False, f"moving {seg!r} would cross a neighbouring segment"
        for k, gap in enumerate(gaps):
            if gap < self._min_length:
                return False, (
                    f"{self._segments[k]!r} would be {gap} long, "
                    f"below the minimum length {self._min_length}"
                )
        return True, None

    def update(self, segment: SegmentRef, new_start: int, new_end: int) -> bool:
        """Move a segment's bounds, adjusting both neighbours.

        Invalid moves leave the profile unchanged and record the reason in
        ``last_update_error``.

        Returns:
            True if the segment was moved.
        """
        ok, reason = self.can_update(segment, new_start, new_end)
        if not ok:
            self.last_update_error = reason
            logger.debug("Rejected segment update: %s", reason)
            return False

        seg = self._resolve(segment)
        n = len(self)
        new_start %= n
        new_end %= n
        m = len(self._segments)
        if m == 1:
            seg._start = seg._end = new_start
        else:
            i = self._segments.index(seg)
            self._segments[i - 1]._end = new_start
            self._segments[(i + 1) % m]._start = new_end
            seg._start = new_start
            seg._end = new_end
        self._segments = _canonical(self._segments, n, self._min_length)
        self.last_update_error = None
        return True

    def lock_segment(self, segment: SegmentRef, locked: bool = True) -> None:
        self._resolve(segment)._locked = locked

    def nudge_segments(self, amount: int) -> None:
        """Rotate every segment boundary forward by ``amount`` indexes."""
        n = len(self)
        for s in self._segments:
            s._start = (s._start + amount) % n
            s._end = (s._end + amount) % n
        self._segments = _canonical(self._segments, n, self._min_length)

    def set_segments(self, segments: Sequence[Segment]) -> None:
        """Replace all segments at once; nothing changes if they are invalid."""
        self._segments = _canonical(
            [s.clone() for s in segments], len(self), self._min_length
        )

    # ------------------------------------------------------------------
    # Segment-aware reshaping
    # ------------------------------------------------------------------

    def copy(self) -> SegmentedProfile:
        return SegmentedProfile(self.values, self._segments, min_length=self._min_length)

    def offset(self, amount: int) -> SegmentedProfile:
        """Rotate values and segments so index ``amount`` becomes index 0."""
        return SegmentedProfile(
            np.roll(self.values, -amount),
            [s.shifted(amount) for s in self._segments],
            min_length=self._min_length,
        )

    def reverse(self) -> SegmentedProfile:
        """Reverse the direction of travel, mirroring each segment."""
        n = len(self)
        mirrored = [
            Segment((n - s.end) % n, (n - s.start) % n, n,
                    id=s.id, name=s.name, locked=s.locked)
            for s in self._segments
        ]
        return SegmentedProfile(self.values[::-1], mirrored, min_length=self._min_length)

    def interpolate(self, length: int) -> SegmentedProfile:
        """Resample values and scale segment starts proportionally.

        Segments that would fall below the minimum length are pushed forward.

        Raises:
            InvalidSegmentsError: If ``length`` cannot hold every segment.
        """
        resampled = Profile.interpolate(self, length)
        n = len(self)
        if len(self._segments) == 1:
            only = self._segments[0]
            start = int(round(only.start * length / n)) % length
            seg = Segment(start, start, length, id=only.id, name=only.name, locked=only.locked)
            return SegmentedProfile(resampled, [seg], min_length=self._min_length)

        starts = [int(round(s.start * length / n)) % length for s in self._segments]
        # Work in unwrapped coordinates from the first start.
        base = starts[0]
        unwrapped = [(s - base) % length for s in starts]
        for k in range(1, len(unwrapped)):
            if unwrapped[k] - unwrapped[k - 1] < self._min_length:
                unwrapped[k] = unwrapped[k - 1] + self._min_length
        if length - unwrapped[-1] < self._min_length:
            raise InvalidSegmentsError(
                f"{len(self._segments)} segments do not fit in {length} indexes"
            )
        starts = [(u + base) % length for u in unwrapped]
        m = len(starts)
        scaled = [
            Segment(starts[k], starts[(k + 1) % m], length,
                    id=s.id, name=s.name, locked=s.locked)
            for k, s in enumerate(self._segments)
        ]
        return SegmentedProfile(resampled, scaled, min_length=self._min_length)

    def franken_normalise_to(self, template: SegmentedProfile) -> SegmentedProfile:
        """Stretch each segment to the length of its twin in ``template``.

        The pieces are concatenated in template order, giving a profile with
        the template's length and segment positions. Two instances of the
        same shape produce the same result regardless of where their
        segments start or how long they are.

        Raises:
            InvalidSegmentsError: If the segment ids differ from the template's.
        """
        if not same_segment_order(self.segment_ids(), template.segment_ids()):
            raise InvalidSegmentsError("segment ids do not match the template")
        ordered = template.get_ordered_segments()
        pieces = [
            self.sub_profile(t.id).interpolate(t.length).values for t in ordered
        ]
        joined = np.roll(np.concatenate(pieces), ordered[0].start)
        return SegmentedProfile(joined, template.segments, min_length=self._min_length)

    # ------------------------------------------------------------------

    def segments_equal(self, other: SegmentedProfile) -> bool:
        return self._segments == other.segments

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SegmentedProfile):
            return NotImplemented
        return Profile.__eq__(self, other) and self.segments_equal(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SegmentedProfile(n={len(self)}, segments={self._segments!r})"


def same_segment_order(ids: Sequence[uuid.UUID], reference: Sequence[uuid.UUID]) -> bool:
    """True if ``ids`` is a rotation of ``reference``."""
    if len(ids) != len(reference):
        return False
    if not ids:
        return True
    try:
        shift = list(ids).index(reference[0])
    except ValueError:
        return False
    return list(ids[shift:]) + list(ids[:shift]) == list(reference)
