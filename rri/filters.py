"""
rri/filters.py — RR-interval outlier rejection
===============================================
Turns a raw RR-interval sequence into an NN ("normal-to-normal") sequence by
removing intervals that are physiologically implausible or that look like
ectopic beats / detection artefacts.

Four independent rules are available.  In every pass all enabled rules look
at the surviving series, their flags are unioned and removed together, and
the pass repeats until nothing new is flagged.  Each rule reports an
`OutlierMask` of indices into the raw series.  The result is a fixed point:
filtering it again removes nothing.

range
    Interval outside [rr_min, rr_max] (0.32–1.5 s by default).

moving_average
    Deviation from a centred, zero-phase moving average larger than
    `win_percent` % of that average.  The window spans ±`win_samples`
    neighbours and gives the current sample zero weight, so a single large
    artefact cannot pull its own reference value towards itself.

quotient
    Ratio of an interval to its predecessor or successor (or the reciprocal
    of that ratio) outside [1 − c, 1 + c] with c = `rr_max_change` / 100.

poincare
    Pair (RR(n), RR(n+1)) outside the Poincaré ellipse; RR(n) is flagged.

Why filtfilt?
-------------
Running the moving average forwards and backwards cancels its group delay,
so the local reference stays aligned with the interval being tested.
"""

from dataclasses import dataclass, field

import numpy as np
from scipy.signal import filtfilt

from config import FilterParams, RATIO_EPSILON
from rri.poincare import poincare
from rri.series import IntervalSeries
from utils.logger import get_logger

logger = get_logger("rri.filters")


@dataclass(frozen=True)
class OutlierMask:
    """Indices (into the raw series) flagged by one rule."""

    rule: str
    indices: np.ndarray

    def __len__(self) -> int:
        return int(self.indices.size)


# ── Rules ────────────────────────────────────────────────────────────────────


def range_outliers(rri: np.ndarray, params: FilterParams) -> np.ndarray:
    return (rri < params.rr_min) | (rri > params.rr_max)


def moving_average(rri: np.ndarray, win_samples: int) -> np.ndarray | None:
    """
    Zero-phase moving average excluding the current sample.

    Returns None when the series is too short for filtfilt's edge padding
    (it needs more than 3 × kernel-length samples).
    """
    b_fir = np.concatenate([np.ones(win_samples), [0.0], np.ones(win_samples)]) / (2 * win_samples)
    min_samples = 3 * b_fir.size + 1
    if rri.size < min_samples:
        return None
    return filtfilt(b_fir, [1.0], rri)


def moving_average_outliers(rri: np.ndarray, params: FilterParams) -> np.ndarray:
    rri_ma = moving_average(rri, params.win_samples)
    if rri_ma is None:
        logger.warning(
            "Moving-average rule skipped: %d intervals is too short for a ±%d-sample window.",
            rri.size, params.win_samples,
        )
        return np.zeros(rri.size, dtype=bool)
    return np.abs(rri - rri_ma) > (params.win_percent / 100.0) * rri_ma


def quotient_outliers(rri: np.ndarray, params: FilterParams) -> np.ndarray:
    flags = np.zeros(rri.size, dtype=bool)
    if rri.size < 2:
        return flags

    max_change = params.rr_max_change / 100.0
    q_min, q_max = 1.0 - max_change, 1.0 + max_change

    rr_n0 = np.maximum(rri[:-1], RATIO_EPSILON)   # RR(n)
    rr_n1 = np.maximum(rri[1:], RATIO_EPSILON)    # RR(n+1)
    forward = rr_n0 / rr_n1
    backward = rr_n1 / rr_n0
    bad_pair = (
        (forward < q_min) | (forward > q_max) |
        (backward < q_min) | (backward > q_max)
    )

    # Pair k joins intervals k and k+1: each interval is judged against both
    # of its neighbours.
    flags[:-1] |= bad_pair
    flags[1:] |= bad_pair
    return flags


def poincare_outliers(rri: np.ndarray, params: FilterParams) -> np.ndarray:
    if rri.size < 3:
        return np.zeros(rri.size, dtype=bool)
    geometry = poincare(rri, sd1_factor=params.sd1_factor, sd2_factor=params.sd2_factor)
    if geometry.is_degenerate:
        logger.debug("Poincaré rule skipped: degenerate ellipse (SD1=%.3g, SD2=%.3g).",
                     geometry.sd1, geometry.sd2)
    return geometry.outlier_mask(rri)


# Supported rule names → callable
_RULES = {
    "range":          range_outliers,
    "moving_average": moving_average_outliers,
    "quotient":       quotient_outliers,
    "poincare":       poincare_outliers,
}


# ── Public API ───────────────────────────────────────────────────────────────


def union_masks(masks, length: int) -> np.ndarray:
    """Boolean array of length `length`, True wherever any mask flagged."""
    flagged = np.zeros(length, dtype=bool)
    for mask in masks:
        flagged[mask.indices] = True
    return flagged


@dataclass(frozen=True)
class FilterResult:
    """
    Output of `filter_intervals`.

    Unpacks as ``(clean_intervals, clean_times, per_rule_outlier_indices)``.
    """

    nn: IntervalSeries
    outliers: dict = field(default_factory=dict)
    raw_length: int = 0

    def __iter__(self):
        yield self.nn.intervals
        yield self.nn.times
        yield {rule: mask.indices for rule, mask in self.outliers.items()}

    @property
    def removed_indices(self) -> np.ndarray:
        return np.flatnonzero(union_masks(self.outliers.values(), self.raw_length))

    @property
    def num_removed(self) -> int:
        return int(self.removed_indices.size)


def filter_intervals(
    intervals,
    times=None,
    rules=None,
    params: FilterParams = FilterParams(),
) -> FilterResult:
    """
    Remove outlier intervals.

    Parameters
    ----------
    intervals : array-like | IntervalSeries   RR intervals in seconds.
    times     : array-like | None              Onset times (s); ignored when
                                               `intervals` is an IntervalSeries.
    rules     : iterable[str] | None           Rules to apply; defaults to
                                               `params.rules`.
    params    : FilterParams                   Rule thresholds.

    Returns
    -------
    FilterResult
        Cleaned NN series (original order kept) and the mask of every rule.
    """
    if isinstance(intervals, IntervalSeries):
        series = intervals
    else:
        series = IntervalSeries.from_arrays(intervals, times)

    rules = tuple(params.rules if rules is None else rules)
    for rule in rules:
        if rule not in _RULES:
            raise ValueError(f"Unknown filter rule '{rule}'. Choose from {list(_RULES)}.")

    rri = series.intervals
    # Raw index of every surviving interval
    survivors = np.arange(rri.size)
    flagged_raw = {rule: [] for rule in rules}
    passes = 0

    while rules and survivors.size:
        current = rri[survivors]
        flags = {rule: _RULES[rule](current, params) for rule in rules}
        removed = np.zeros(current.size, dtype=bool)
        for rule, rule_flags in flags.items():
            flagged_raw[rule].append(survivors[rule_flags])
            removed |= rule_flags
        passes += 1
        if not removed.any():
            break
        survivors = survivors[~removed]

    outliers = {
        rule: OutlierMask(rule=rule, indices=np.unique(np.concatenate(chunks)).astype(np.intp))
        for rule, chunks in flagged_raw.items()
    }
    keep = np.zeros(rri.size, dtype=bool)
    keep[survivors] = True
    nn = series.select(keep)

    logger.info(
        "Filtered %d RR intervals → %d NN in %d pass(es) (%s)",
        rri.size,
        len(nn),
        passes,
        ", ".join(f"{rule}={len(mask)}" for rule, mask in outliers.items()) or "no rules",
    )
    return FilterResult(nn=nn, outliers=outliers, raw_length=int(rri.size))
