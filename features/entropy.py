"""
features/entropy.py — Sample entropy & multiscale entropy
==========================================================
Sample entropy (Richman & Moorman, 2000) measures how often patterns that
match for m samples keep matching for m + 1 samples:

    B = #{ i < j : max_k |x[i+k] − x[j+k]| < r,  k = 0 … m−1 }
    A = #{ i < j : max_k |x[i+k] − x[j+k]| < r,  k = 0 … m   }
    SampEn = −ln(A / B)

Both counts run over the same N − m templates, so every m-match is a
candidate for an (m+1)-match.  For m = 0, B is defined as N(N−1)/2.

Undefined results are returned as values so the caller can tell them apart:

    A = 0 < B   →  +inf   (no pattern survives one more sample)
    A = B = 0   →  NaN    (no pattern of length m matched at all)

Multiscale entropy (Costa, Goldberger & Peng, 2005) repeats the estimate on
coarse-grained copies of the signal (non-overlapping block means of `scale`
samples).  Inside an `EntropyProfile` both undefined cases become NaN and
`reasons` records which one occurred.

Complexity
----------
The exact pairwise count is O(N²·m) time and O(N·m) memory: every template
is compared with all later templates in one vectorised step.  No spatial
pruning is used, so the strict Chebyshev `< r` semantics hold exactly.
"""

from dataclasses import dataclass

import numpy as np

from config import MSEParams, VARIANCE_EPSILON
from rri.series import as_signal
from utils.logger import get_logger

logger = get_logger("features.entropy")


@dataclass(frozen=True)
class EntropyProfile:
    scales: np.ndarray         # 1 … max_scale
    values: np.ndarray         # SampEn per scale, NaN when undefined
    m: int
    r: float
    reasons: tuple = ()        # Why each scale is undefined (None where defined)

    @property
    def sample_entropy(self) -> float:
        """Scale-1 value, i.e. the sample entropy of the signal itself."""
        return float(self.values[0])


def sample_entropy_counts(signal, m: int, r: float) -> tuple[int, int]:
    """
    Return the template-match counts (A, B) used by sample entropy.

    Parameters
    ----------
    signal : array-like   Input samples.
    m      : int          Template length (≥ 0).
    r      : float        Match tolerance (absolute, ≥ 0); distances must be
                          strictly below r.
    """
    if m < 0 or r < 0:
        raise ValueError("Sample entropy parameters must satisfy m >= 0 and r >= 0.")
    sig = as_signal(signal, "signal")
    N = sig.size

    A = 0
    B = N * (N - 1) // 2 if m == 0 else 0

    num_templates = N - m
    if num_templates < 2:
        return A, B

    # Row i holds x[i : i+m+1]
    templates = np.lib.stride_tricks.sliding_window_view(sig, m + 1)[:num_templates]
    head = templates[:, :m]
    tail = templates[:, m]

    for i in range(num_templates - 1):
        diff_tail = np.abs(tail[i + 1:] - tail[i])
        if m == 0:
            A += int(np.count_nonzero(diff_tail < r))
            continue
        dist_b = np.max(np.abs(head[i + 1:] - head[i]), axis=1)
        dist_a = np.maximum(dist_b, diff_tail)
        A += int(np.count_nonzero(dist_a < r))
        B += int(np.count_nonzero(dist_b < r))

    return A, B


def sample_entropy(signal, m: int = 2, r: float = 0.2) -> float:
    """
    Sample entropy of `signal`; +inf when A = 0 < B and NaN when A = B = 0.
    """
    A, B = sample_entropy_counts(signal, m, r)
    if B == 0:
        return float("nan")
    if A == 0:
        return float("inf")
    return float(-np.log(A / B))


def coarse_grain(signal: np.ndarray, scale: int) -> np.ndarray:
    """Means of consecutive non-overlapping blocks of `scale` samples."""
    usable = (signal.size // scale) * scale
    return signal[:usable].reshape(-1, scale).mean(axis=1)


def multiscale_entropy(signal, params: MSEParams = MSEParams()) -> EntropyProfile:
    """
    Sample entropy of the coarse-grained signal at scales 1 … max_scale.

    With `normalize_std` the zero-mean signal is scaled to unit variance,
    which makes `r` a fraction of the standard deviation.  A zero-variance
    signal is left unscaled.
    """
    sig = as_signal(signal, "signal", min_length=1)
    sig = sig - np.mean(sig)
    if params.normalize_std:
        std = float(np.std(sig, ddof=1)) if sig.size > 1 else 0.0
        if std ** 2 > VARIANCE_EPSILON:
            sig = sig / std
        else:
            logger.debug("MSE: zero-variance signal, skipping std normalisation.")

    scales = np.arange(1, params.max_scale + 1)
    values = np.full(scales.size, np.nan)
    reasons = []

    for k, scale in enumerate(scales):
        coarse = coarse_grain(sig, int(scale))
        if coarse.size < params.m + 2:
            # Not even two templates of length m+1 left at this scale
            reasons.append(f"fewer than {params.m + 2} coarse-grained samples at scale {scale}")
            continue
        A, B = sample_entropy_counts(coarse, params.m, params.r)
        if B == 0:
            reasons.append(f"no template pair matched for m={params.m} (A = B = 0)")
        elif A == 0:
            reasons.append(f"no match survived to m+1={params.m + 1} (A = 0 < B, infinite entropy)")
        else:
            values[k] = -np.log(A / B)
            reasons.append(None)

    undefined = int(np.count_nonzero(np.isnan(values)))
    if undefined:
        logger.debug("MSE: %d of %d scales undefined.", undefined, scales.size)

    return EntropyProfile(scales=scales, values=values, m=params.m, r=params.r,
                          reasons=tuple(reasons))
