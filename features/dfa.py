"""
features/dfa.py — Detrended Fluctuation Analysis (DFA)
=======================================================
Peng, Hausdorff & Goldberger (2000), "Fractal mechanisms in neuronal control:
human heartbeat and gait dynamics in health and disease".

Algorithm
---------
1. Integrate the zero-mean series:  y(k) = Σ (x_i − x̄).
2. For every box size n, cut y into floor(N/n) non-overlapping windows and
   remove an ordinary least-squares line (fitted on the local time axis)
   from each window.
3. F(n) = sqrt( Σ residual² / N ), with N the full series length.
4. The scaling exponents α1 / α2 are the slopes of log10 F(n) vs log10 n
   over the short-scale and long-scale ranges.

Box sizes
---------
`n_incr >= 1` gives a linear grid n_min, n_min + n_incr, …, n_max.
`n_incr < 1` is read as the ratio of a geometric series,

    n_k = floor(n_min · (2^n_incr)^k + 0.5),   k = 0 … log2(n_max/n_min)/n_incr

which reproduces the box sizes of the PhysioNet DFA implementation.

Undefined exponents
-------------------
A fit range holding fewer than two box sizes, or a zero-variance input
(nothing to scale), leaves the exponent undefined (`None` plus a reason);
it is never reported as 0.
"""

from dataclasses import dataclass

import numpy as np

from config import DFAParams, DFA_FN_FLOOR, VARIANCE_EPSILON
from rri.series import as_signal, onset_times
from utils.errors import InvalidInputError
from utils.logger import get_logger

logger = get_logger("features.dfa")


@dataclass(frozen=True)
class LineFit:
    """y = slope · x + intercept (log-log coordinates)."""

    slope: float
    intercept: float


@dataclass(frozen=True)
class ScalingResult:
    n: np.ndarray              # box sizes, strictly increasing
    fn: np.ndarray             # F(n), ≥ DFA_FN_FLOOR
    alpha1_fit: LineFit | None
    alpha2_fit: LineFit | None
    alpha1_reason: str | None = None
    alpha2_reason: str | None = None

    @property
    def alpha1(self) -> float | None:
        return None if self.alpha1_fit is None else self.alpha1_fit.slope

    @property
    def alpha2(self) -> float | None:
        return None if self.alpha2_fit is None else self.alpha2_fit.slope


def box_sizes(n_min: int, n_max: int, n_incr: float) -> np.ndarray:
    """Block sizes to evaluate (see module docstring)."""
    if n_incr < 1:
        M = np.log2(n_max / n_min) / n_incr
        k = np.arange(0, int(np.floor(M)) + 1)
        n = np.floor(n_min * (2.0 ** n_incr) ** k + 0.5).astype(int)
        return np.unique(n)
    if n_incr != int(n_incr):
        raise ValueError(f"A linear box-size grid needs an integer n_incr (got {n_incr}).")
    return np.arange(n_min, n_max + 1, int(n_incr))


def fluctuation(profile: np.ndarray, t: np.ndarray, n: int) -> float:
    """
    RMS residual of window-wise linear detrending of `profile` for box size n.

    Each window is regressed on its own slice of the time axis; the closed
    form OLS slope is computed for all windows at once.
    """
    N = profile.size
    num_win = N // n
    y = profile[: n * num_win].reshape(num_win, n)
    x = t[: n * num_win].reshape(num_win, n)

    x_mean = x.mean(axis=1, keepdims=True)
    y_mean = y.mean(axis=1, keepdims=True)
    dx = x - x_mean
    sxx = np.sum(dx ** 2, axis=1, keepdims=True)
    sxy = np.sum(dx * (y - y_mean), axis=1, keepdims=True)
    # A window whose time axis is constant degenerates to a mean-only fit
    slope = np.divide(sxy, sxx, out=np.zeros_like(sxy), where=sxx > 0)

    residual = y - (y_mean + slope * dx)
    return float(np.sqrt(np.sum(residual ** 2) / N))


def _fit_range(n_log, fn_log, n, rng, label):
    idx = (n >= rng[0]) & (n <= rng[1])
    if np.count_nonzero(idx) < 2:
        reason = f"{label} range {tuple(rng)} contains {np.count_nonzero(idx)} box size(s); need 2"
        return None, reason
    slope, intercept = np.polyfit(n_log[idx], fn_log[idx], 1)
    return LineFit(slope=float(slope), intercept=float(intercept)), None


def dfa(values, times=None, params: DFAParams = DFAParams()) -> ScalingResult:
    """
    Detrended fluctuation analysis of a signal.

    Parameters
    ----------
    values : array-like         Signal (e.g. NN intervals in seconds).
    times  : array-like | None  Time axis used for the per-window regression;
                                defaults to the cumulative interval onsets.
    params : DFAParams          Box-size grid and alpha ranges.

    Returns
    -------
    ScalingResult

    Raises
    ------
    InvalidInputError
        If the series cannot hold two windows of the smallest box size.
    """
    sig = as_signal(values, "values")
    if sig.size < 2 * params.n_min:
        raise InvalidInputError(
            f"DFA needs at least {2 * params.n_min} samples for n_min={params.n_min}, got {sig.size}."
        )
    if times is None:
        t = onset_times(sig)
    else:
        t = as_signal(times, "times")
        if t.size != sig.size:
            raise InvalidInputError("times and values must have the same length.")

    N = sig.size
    n = box_sizes(params.n_min, params.n_max, params.n_incr)
    n = n[n <= N]

    profile = np.cumsum(sig - np.mean(sig))
    fn = np.array([fluctuation(profile, t, int(nn)) for nn in n])

    # F(n) may vanish at small scales; keep log10 finite
    fn = np.maximum(fn, DFA_FN_FLOOR)

    if np.var(sig) < VARIANCE_EPSILON:
        reason = "zero-variance series has no fluctuation to scale"
        logger.warning("DFA exponents undefined: %s.", reason)
        return ScalingResult(n=n, fn=fn, alpha1_fit=None, alpha2_fit=None,
                             alpha1_reason=reason, alpha2_reason=reason)

    n_log = np.log10(n)
    fn_log = np.log10(fn)
    fit1, reason1 = _fit_range(n_log, fn_log, n, params.alpha1_range, "alpha1")
    fit2, reason2 = _fit_range(n_log, fn_log, n, params.alpha2_range, "alpha2")

    logger.debug(
        "DFA — %d box sizes (%d…%d), alpha1=%s, alpha2=%s",
        n.size, n[0], n[-1],
        "undefined" if fit1 is None else f"{fit1.slope:.3f}",
        "undefined" if fit2 is None else f"{fit2.slope:.3f}",
    )
    return ScalingResult(n=n, fn=fn, alpha1_fit=fit1, alpha2_fit=fit2,
                         alpha1_reason=reason1, alpha2_reason=reason2)
