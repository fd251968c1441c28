"""
features/fragmentation.py — Heart-rate fragmentation indices
=============================================================
Costa, Davis & Goldberger, "Heart Rate Fragmentation: A New Approach to the
Analysis of Cardiac Interbeat Interval Dynamics", Front. Physiol. 2017.

An *inflection point* is where the sign of ΔNN changes, i.e. where the
product of two consecutive differences is negative.  Inflection points cut
the series into acceleration / deceleration *segments*.

    PIP  — Percentage of inflection points
    IALS — Inverse of the average segment length
    PSS  — Percentage of NN intervals in short segments (< 3 intervals)
    PAS  — Percentage of NN intervals in alternation segments
           (runs of length-1 segments) longer than 3 intervals
"""

from dataclasses import dataclass

import numpy as np

from rri.series import as_signal


@dataclass(frozen=True)
class FragmentationResult:
    pip: float     # %
    ials: float    # n.u.
    pss: float     # %
    pas: float     # %


def inflection_points(intervals: np.ndarray) -> np.ndarray:
    """
    Boolean array marking inflection points, padded with a virtual one at
    each end so the first and last segments are bounded like interior ones.
    """
    dnn = np.diff(intervals)
    ddnn = dnn[:-1] * dnn[1:]
    return np.concatenate(([-1.0], ddnn, [-1.0])) < 0


def segment_lengths(intervals: np.ndarray) -> np.ndarray:
    """Lengths of the segments between consecutive inflection points."""
    return np.diff(np.flatnonzero(inflection_points(intervals)))


def fragmentation(intervals) -> FragmentationResult:
    """
    Compute PIP, IALS, PSS and PAS of an NN-interval series (N ≥ 3).
    """
    nn = as_signal(intervals, "intervals", min_length=3)
    N = nn.size

    ip = inflection_points(nn)
    num_inflections = int(np.count_nonzero(ip)) - 2   # drop the virtual ones

    lengths = segment_lengths(nn)
    ials = 1.0 / float(np.mean(lengths))

    short_total = int(np.sum(lengths[lengths < 3]))

    # Alternation segments are length-1 segments; consecutive ones form runs.
    # A run of k unit segments spans k + 1 intervals.
    boundaries = np.concatenate(([True], lengths > 1, [True]))
    alternation_runs = np.diff(np.flatnonzero(boundaries))
    alternation_total = int(np.sum(alternation_runs[alternation_runs > 3]))

    return FragmentationResult(
        pip=100.0 * num_inflections / N,
        ials=ials,
        pss=100.0 * short_total / N,
        pas=100.0 * alternation_total / N,
    )
