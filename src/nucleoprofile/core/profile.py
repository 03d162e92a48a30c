"""Circular numeric profiles measured around a closed outline."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Union

import numpy as np
from scipy.ndimage import uniform_filter1d

from nucleoprofile.core.exceptions import DimensionMismatchError

# Boolean mask over profile indexes (1D bool array, same length as the profile).
BooleanMask = np.ndarray

Operand = Union["Profile", float, int]

# Consistent regions use two bands: a run starts only at a value within the
# tolerance and then continues while values stay within this multiple of it.
# Keep them separate: with a single band, [1, 2, 3, 4, 5, 5, 5, 5, 6, 7, 8, 9]
# at tolerance 0.6 no longer yields the region (4, 8).
CONSISTENT_REGION_BAND = 2.0


class Profile:
    """Immutable circular sequence of real values.

    Every index is taken modulo the profile length, so ``get(-1)`` is the last
    value and ``get(len(p))`` is the first. Operations never modify the
    profile; they return new instances.

    Args:
        values: Any 1D sequence of numbers. At least one value is required.

    Raises:
        ValueError: If ``values`` is empty.
    """

    def __init__(self, values: Iterable[float] | np.ndarray) -> None:
        arr = np.array(values, dtype=np.float64).ravel()
        if arr.size < 1:
            raise ValueError("Profile must contain at least one value")
        arr.setflags(write=False)
        self._values = arr

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the underlying values."""
        return self._values

    def to_array(self) -> np.ndarray:
        """Return a writable copy of the values."""
        return self._values.copy()

    def __len__(self) -> int:
        return int(self._values.size)

    def size(self) -> int:
        return len(self)

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._values)

    def get(self, index: int) -> float:
        """Value at ``index``, wrapping around the ends."""
        return float(self._values[index % len(self)])

    def __getitem__(self, index: int) -> float:
        return self.get(index)

    def wrap(self, index: int) -> int:
        """Map any integer onto a valid index of this profile."""
        return index % len(self)

    def max(self) -> float:
        return float(self._values.max())

    def min(self) -> float:
        return float(self._values.min())

    def index_of_max(self, mask: BooleanMask | None = None) -> int:
        """Index of the largest value, optionally restricted to ``mask``.

        Ties resolve to the lowest index.

        Raises:
            ValueError: If ``mask`` selects no index.
        """
        return self._extreme_index(mask, np.argmax, -np.inf)

    def index_of_min(self, mask: BooleanMask | None = None) -> int:
        """Index of the smallest value, optionally restricted to ``mask``."""
        return self._extreme_index(mask, np.argmin, np.inf)

    def _extreme_index(
        self,
        mask: BooleanMask | None,
        pick: Callable[[np.ndarray], np.intp],
        fill: float,
    ) -> int:
        if mask is None:
            return int(pick(self._values))
        mask = self.as_mask(mask)
        if not mask.any():
            raise ValueError("Mask selects no index")
        return int(pick(np.where(mask, self._values, fill)))

    def as_mask(self, mask: BooleanMask) -> np.ndarray:
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != self._values.shape:
            raise DimensionMismatchError(len(self), int(mask.size))
        return mask

    # ------------------------------------------------------------------
    # Reshaping
    # ------------------------------------------------------------------

    def sub_region(self, start: int, end: int) -> Profile:
        """Values on the arc ``[start, end)``, wrapping past the last index.

        ``start == end`` selects the whole circle beginning at ``start``.
        """
        n = len(self)
        length = (end - start) % n or n
        idx = (start + np.arange(length)) % n
        return Profile(self._values[idx])

    def interpolate(self, length: int) -> Profile:
        """Resample to ``length`` points by circular linear interpolation.

        Point ``i`` of the result sits at fractional position
        ``i * len(self) / length`` of this profile; the segment between the
        last and first values is interpolated like any other.
        """
        if length < 1:
            raise ValueError(f"length must be >= 1, got {length}")
        n = len(self)
        if length == n:
            return Profile(self._values)
        positions = np.arange(length) * (n / length)
        resampled = np.interp(positions, np.arange(n), self._values, period=n)
        return Profile(resampled)

    def offset(self, amount: int) -> Profile:
        """Rotate so that index ``amount`` becomes index 0."""
        return Profile(np.roll(self._values, -amount))

    def reverse(self) -> Profile:
        return Profile(self._values[::-1])

    def smooth(self, window: int) -> Profile:
        """Circular moving average over ``window`` points on each side."""
        if window < 0:
            raise ValueError(f"window must be >= 0, got {window}")
        if window == 0:
            return Profile(self._values)
        return Profile(uniform_filter1d(self._values, size=2 * window + 1, mode="wrap"))

    def calculate_deltas(self, window: int) -> Profile:
        """Sum of consecutive differences across ``window`` points each side.

        The sum telescopes to ``v[i + window] - v[i - window]``.
        """
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        return Profile(np.roll(self._values, -window) - np.roll(self._values, window))

    # ------------------------------------------------------------------
    # Extrema
    # ------------------------------------------------------------------

    def local_minima(self, window: int, threshold: float | None = None) -> BooleanMask:
        """Indexes whose neighbours rise strictly for ``window`` steps both ways.

        Args:
            window: Number of neighbours checked on each side.
            threshold: If given, minima must also lie below this value.

        Returns:
            Boolean mask with the same length as the profile.
        """
        return self._local_extrema(window, threshold, np.greater)

    def local_maxima(self, window: int, threshold: float | None = None) -> BooleanMask:
        """Indexes whose neighbours fall strictly for ``window`` steps both ways."""
        return self._local_extrema(window, threshold, np.less)

    def _local_extrema(
        self,
        window: int,
        threshold: float | None,
        away: Callable[[np.ndarray, np.ndarray], np.ndarray],
    ) -> BooleanMask:
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        v = self._values
        result = np.ones(v.shape, dtype=bool)
        for k in range(1, window + 1):
            # np.roll(v, k)[i] == v[i - k]
            result &= away(np.roll(v, k), np.roll(v, k - 1))
            result &= away(np.roll(v, -k), np.roll(v, -(k - 1)))
        if threshold is not None:
            if away is np.greater:
                result &= v < threshold
            else:
                result &= v > threshold
        return result

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def absolute_square_difference(self, other: Profile) -> float:
        """Sum of squared differences, resampling the shorter profile first."""
        a, b = self, other
        if len(a) < len(b):
            a = Profile.interpolate(a, len(b))
        elif len(b) < len(a):
            b = Profile.interpolate(b, len(a))
        return float(np.sum((a.values - b.values) ** 2))

    def find_best_fit_offset(self, template: Profile, max_offset: int | None = None) -> int:
        """Offset ``k`` for which ``self.offset(k)`` best matches ``template``.

        The template is resampled to this profile's length. Without
        ``max_offset`` every rotation is tried and the result lies in
        ``[0, len(self))``. With ``max_offset`` only rotations in
        ``[-max_offset, max_offset]`` are tried and the signed offset is
        returned. Ties resolve to the first offset tried.
        """
        n = len(self)
        target = Profile.interpolate(template, n).values
        if max_offset is None:
            offsets = np.arange(n)
        else:
            offsets = np.arange(-max_offset, max_offset + 1)
        idx = (offsets[:, None] + np.arange(n)[None, :]) % n
        scores = np.sum((self._values[idx] - target[None, :]) ** 2, axis=1)
        return int(offsets[int(np.argmin(scores))])

    def get_consistent_region_bounds(
        self, value: float, tolerance: float, min_points: int
    ) -> tuple[int, int]:
        """Locate the first run of values that stay close to ``value``.

        A run starts at an index within ``tolerance`` of ``value`` and
        extends forward while values stay within
        ``CONSISTENT_REGION_BAND * tolerance``. The scan does not wrap.

        Returns:
            Inclusive ``(start, end)`` of the first run holding at least
            ``min_points`` points, or ``(-1, -1)`` if there is none.
        """
        if min_points < 1:
            raise ValueError(f"min_points must be >= 1, got {min_points}")
        distance = np.abs(self._values - value)
        entry = distance < tolerance
        stay = distance < tolerance * CONSISTENT_REGION_BAND
        n = len(self)
        i = 0
        while i < n:
            if not entry[i]:
                i += 1
                continue
            j = i
            while j + 1 < n and stay[j + 1]:
                j += 1
            if j - i + 1 >= min_points:
                return i, j
            i = j + 1
        return -1, -1

    def almost_equal(self, other: Profile, tolerance: float = 1e-4) -> bool:
        """True if lengths match and every value is within ``tolerance``."""
        if len(self) != len(other):
            return False
        return bool(np.all(np.abs(self._values - other.values) <= tolerance))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Profile):
            return NotImplemented
        return len(self) == len(other) and bool(np.array_equal(self._values, other.values))

    def __hash__(self) -> int:
        return hash(self._values.tobytes())

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _combine(self, other: Operand, op: Callable[[np.ndarray, object], np.ndarray]) -> Profile:
        if isinstance(other, Profile):
            if len(other) != len(self):
                raise DimensionMismatchError(len(self), len(other))
            return Profile(op(self._values, other.values))
        return Profile(op(self._values, float(other)))

    def add(self, other: Operand) -> Profile:
        return self._combine(other, np.add)

    def subtract(self, other: Operand) -> Profile:
        return self._combine(other, np.subtract)

    def multiply(self, other: Operand) -> Profile:
        return self._combine(other, np.multiply)

    def divide(self, other: Operand) -> Profile:
        return self._combine(other, np.divide)

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply
    __truediv__ = divide

    def __repr__(self) -> str:
        preview = ", ".join(f"{v:.3g}" for v in self._values[:6])
        more = ", ..." if len(self) > 6 else ""
        return f"Profile(n={len(self)}, [{preview}{more}])"
