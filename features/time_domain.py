"""
features/time_domain.py — Time-domain HRV statistics
=====================================================
Descriptive statistics of an NN-interval sequence, reported in milliseconds:

    AVNN  — Average NN interval
    SDNN  — Standard deviation of NN intervals
    RMSSD — Root mean square of successive differences
    pNNx  — Percentage of successive differences larger than x ms (x = 50)
    SEM   — Standard error of the mean NN interval (SDNN / √N)

Variance convention
-------------------
SDNN uses the *sample* standard deviation (ddof=1).  The same denominator
is used for SD1/SD2 and for every other standard deviation in the project,
so metrics stay comparable with each other.

Clinical context (for reference only)
-------------------------------------
* SDNN reflects overall variability (sympathetic + parasympathetic).
* RMSSD is dominated by vagal tone and is less sensitive to
  non-stationarity than SDNN.
* pNN50 is a coarse proxy for RMSSD.
"""

import math
from dataclasses import dataclass

import numpy as np

from config import PNN_THRESH_MS
from rri.series import as_signal
from utils.logger import get_logger

logger = get_logger("features.time_domain")


@dataclass(frozen=True)
class TimeDomainResult:
    avnn_ms: float
    sdnn_ms: float
    rmssd_ms: float
    pnn: float                 # percentage [0, 100]
    sem_ms: float
    pnn_thresh_ms: float
    num_intervals: int

    @property
    def pnn_name(self) -> str:
        """Metric name for the pNNx value, e.g. 'pNN50'."""
        return f"pNN{math.floor(self.pnn_thresh_ms)}"


def time_domain(intervals, pnn_thresh_ms: float = PNN_THRESH_MS) -> TimeDomainResult:
    """
    Compute time-domain HRV statistics.

    Parameters
    ----------
    intervals     : array-like   NN intervals in **seconds** (N ≥ 2).
    pnn_thresh_ms : float        Threshold x of the pNNx metric (ms).

    Returns
    -------
    TimeDomainResult with all values in milliseconds (pNNx in percent).
    """
    # Convert to milliseconds for standard reporting
    nn_ms = as_signal(intervals, "intervals", min_length=2) * 1000.0

    avnn_ms = float(np.mean(nn_ms))
    sdnn_ms = float(np.std(nn_ms, ddof=1))

    # Successive differences: ΔNN_i = NN_{i+1} − NN_i
    successive_diffs = np.diff(nn_ms)
    rmssd_ms = float(np.sqrt(np.mean(successive_diffs ** 2)))

    count_above = int(np.sum(np.abs(successive_diffs) > pnn_thresh_ms))
    pnn = 100.0 * count_above / successive_diffs.size

    sem_ms = sdnn_ms / math.sqrt(nn_ms.size)

    logger.debug(
        "Time domain — AVNN=%.1f ms, SDNN=%.1f ms, RMSSD=%.1f ms, pNN%d=%.1f%% (%d intervals)",
        avnn_ms, sdnn_ms, rmssd_ms, math.floor(pnn_thresh_ms), pnn, nn_ms.size,
    )

    return TimeDomainResult(
        avnn_ms=avnn_ms,
        sdnn_ms=sdnn_ms,
        rmssd_ms=rmssd_ms,
        pnn=pnn,
        sem_ms=sem_ms,
        pnn_thresh_ms=pnn_thresh_ms,
        num_intervals=int(nn_ms.size),
    )
