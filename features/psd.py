"""
features/psd.py — Power-spectral-density estimators
====================================================
Four estimators, each returning a one-sided PSD (signal units² / Hz)
evaluated on a caller-supplied frequency axis so that results from
different methods can be compared point by point.

Lomb-Scargle periodogram
    Works directly on irregularly spaced samples (the NN intervals at their
    own onset times); the only estimator that needs no resampling.

Yule-Walker autoregressive model
    Biased autocorrelation → Toeplitz solve for the AR coefficients → the
    rational spectrum  2σ² / (fs · |1 − Σ a_k e^{−i2πfk/fs}|²).

Welch's method
    Averaged periodograms of overlapping, Hamming-tapered segments.

FFT periodogram
    Hamming-tapered periodogram of one segment (averaging over segments is
    done by the caller, which gives Bartlett's method).

Welch, FFT and AR require uniformly sampled input.
"""

import numpy as np
from scipy.linalg import solve_toeplitz
from scipy.signal import get_window, lombscargle, periodogram, welch

from config import VARIANCE_EPSILON
from utils.errors import InvalidInputError


def hamming_taper(x: np.ndarray) -> tuple[np.ndarray, float]:
    """
    Apply a symmetric Hamming window.

    Returns the tapered signal and the window's mean power, used to undo the
    taper's energy loss.
    """
    if x.size < 2:
        return x.copy(), 1.0
    w = get_window("hamming", x.size, fftbins=False)
    return x * w, float(np.mean(w ** 2))


def lomb_psd(values: np.ndarray, times: np.ndarray, freqs: np.ndarray, duration: float) -> np.ndarray:
    """
    Lomb-Scargle PSD of an irregularly sampled, tapered window.

    Parameters
    ----------
    values   : ndarray   Samples (already detrended).
    times    : ndarray   Sample times (s).
    freqs    : ndarray   Output frequencies (Hz, > 0).
    duration : float     Window length (s).

    Notes
    -----
    scipy returns the classical periodogram P(ω); scaling by 2·T/N turns it
    into a one-sided density whose integral approximates the window variance.
    The Hamming window's power loss is compensated as well.
    """
    tapered, window_power = hamming_taper(values)
    tapered = tapered - np.mean(tapered)
    pgram = lombscargle(times, tapered, 2.0 * np.pi * freqs)
    return pgram * (2.0 * duration / values.size) / window_power


def yule_walker(x: np.ndarray, order: int) -> tuple[np.ndarray, float]:
    """
    AR coefficients a_1 … a_p and innovation variance of a zero-mean signal
    (model: x[n] = Σ a_k x[n−k] + e[n]).
    """
    N = x.size
    if order >= N:
        raise InvalidInputError(f"AR order {order} requires more than {order} samples, got {N}.")
    x = x - np.mean(x)
    # Biased autocorrelation estimate r[0 … p]
    acf = np.array([np.dot(x[: N - k], x[k:]) / N for k in range(order + 1)])
    if acf[0] < VARIANCE_EPSILON:
        return np.zeros(order), 0.0
    coeffs = solve_toeplitz(acf[:order], acf[1: order + 1])
    sigma2 = float(acf[0] - np.dot(coeffs, acf[1: order + 1]))
    return coeffs, max(sigma2, 0.0)


def ar_psd(x: np.ndarray, order: int, freqs: np.ndarray, fs: float) -> np.ndarray:
    """One-sided PSD of the Yule-Walker AR model of uniformly sampled `x`."""
    coeffs, sigma2 = yule_walker(x, order)
    k = np.arange(1, order + 1)
    z = np.exp(-2j * np.pi * np.outer(freqs, k) / fs)
    denom = np.abs(1.0 - z @ coeffs) ** 2
    return 2.0 * sigma2 / (fs * denom)


def welch_psd(x: np.ndarray, fs: float, nperseg: int, overlap_percent: float,
              freqs: np.ndarray) -> np.ndarray:
    """Welch PSD with Hamming segments, interpolated onto `freqs`."""
    noverlap = int(np.floor(nperseg * overlap_percent / 100.0))
    f_welch, pxx = welch(
        x, fs=fs, window="hamming", nperseg=nperseg, noverlap=noverlap,
        detrend=False, scaling="density",
    )
    return np.interp(freqs, f_welch, pxx)


def fft_psd(x: np.ndarray, fs: float, freqs: np.ndarray) -> np.ndarray:
    """Hamming-windowed periodogram of one segment, interpolated onto `freqs`."""
    f_per, pxx = periodogram(x, fs=fs, window="hamming", detrend=False, scaling="density")
    return np.interp(freqs, f_per, pxx)
