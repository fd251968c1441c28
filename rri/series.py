"""
rri/series.py — Beat-interval time series
==========================================
An `IntervalSeries` pairs interval durations with their onset times.  Both
arrays are copied and frozen on construction, and every processing stage
returns a new series instead of editing one in place.
"""

from dataclasses import dataclass

import numpy as np

from utils.errors import InvalidInputError


def as_signal(values, name: str = "signal", min_length: int = 1) -> np.ndarray:
    """
    Convert `values` to a finite 1-D float64 array.

    Raises
    ------
    InvalidInputError
        If the array is not 1-D, contains NaN/inf, or is shorter than
        `min_length`.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got shape {arr.shape}.")
    if arr.size < min_length:
        raise InvalidInputError(f"{name} needs at least {min_length} samples, got {arr.size}.")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError(f"{name} contains NaN or infinite values.")
    return arr


def onset_times(intervals: np.ndarray) -> np.ndarray:
    """Zero-based onset time of each interval: [0, cumsum(rr[:-1])]."""
    return np.concatenate(([0.0], np.cumsum(intervals[:-1])))


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=np.float64, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class IntervalSeries:
    """
    Ordered beat intervals with their time axis.

    Attributes
    ----------
    intervals : ndarray, shape (N,)   Durations in seconds (strictly positive).
    times     : ndarray, shape (N,)   Onset times in seconds (non-decreasing).
    """

    intervals: np.ndarray
    times: np.ndarray

    @classmethod
    def from_arrays(cls, intervals, times=None, min_length: int = 1) -> "IntervalSeries":
        rri = as_signal(intervals, "intervals", min_length=min_length)
        if np.any(rri <= 0):
            raise InvalidInputError("intervals must be strictly positive.")

        if times is None:
            trr = onset_times(rri)
        else:
            trr = as_signal(times, "times")
            if trr.size != rri.size:
                raise InvalidInputError(
                    f"times and intervals must have the same length ({trr.size} != {rri.size})."
                )
            if np.any(np.diff(trr) < 0):
                raise InvalidInputError("times must be monotonically non-decreasing.")

        return cls(intervals=_frozen(rri), times=_frozen(trr))

    def __len__(self) -> int:
        return int(self.intervals.size)

    @property
    def duration(self) -> float:
        """Time span covered by the series (seconds)."""
        if len(self) == 0:
            return 0.0
        return float(self.times[-1] - self.times[0] + self.intervals[-1])

    def select(self, keep: np.ndarray) -> "IntervalSeries":
        """Return a new series made of the samples where `keep` is True."""
        keep = np.asarray(keep, dtype=bool)
        return IntervalSeries(
            intervals=_frozen(self.intervals[keep]),
            times=_frozen(self.times[keep]),
        )

    def with_intervals(self, intervals: np.ndarray) -> "IntervalSeries":
        """Same time axis, new values (used after detrending)."""
        return IntervalSeries(intervals=_frozen(intervals), times=self.times)
