"""
features/frequency.py — Frequency-domain HRV analysis
======================================================
Turns an NN-interval series into one power spectrum per requested estimator
and reduces each spectrum to band powers, spectral peaks and a power-law
slope.

Pipeline
--------
1. Subtract the mean, then a least-squares polynomial trend of
   `detrend_order` fitted on the time axis.
2. Split the series into windows of `t_win = 60 · window_minutes` seconds.
   A series shorter than one window is analysed as a single window (and a
   warning is recorded).
3. Build a common frequency axis  f = f_res · (1 … floor(f_max / f_res)),
   f_res = 1 / t_win, f_max = upper edge of the HF band.
4. Estimate the PSD per window and average:

       lomb   irregular samples, Hamming taper, windows violating the
              Nyquist criterion (n_win ≤ 2 · f_max · t_win) are skipped
       ar     Yule-Walker AR model on the cubic-spline resampled series
       welch  Welch's method on the resampled series
       fft    Hamming periodogram per resampled window (Bartlett average)

   The resampled methods still estimate a window that fails the Nyquist
   criterion, but the failure is recorded as a warning.

5. Band powers by trapezoidal integration, LF/HF peak frequencies and the
   log-log slope (beta) of the VLF power.

Band powers are returned in s² (the caller converts to ms²).  Configuration
problems are never raised: they are collected as warnings on the result and
logged.
"""

from dataclasses import dataclass, field

import numpy as np
from numpy.polynomial import Polynomial
from scipy.integrate import trapezoid
from scipy.interpolate import CubicSpline, interp1d
from scipy.signal import find_peaks

from config import SpectralParams
from features.dfa import LineFit
from features.psd import ar_psd, fft_psd, lomb_psd, welch_psd
from rri.series import as_signal
from utils.errors import InvalidInputError
from utils.logger import get_logger

logger = get_logger("features.frequency")

BAND_NAMES = ("total", "vlf", "lf", "hf")


# ─── Result types ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Spectrum:
    method: str
    frequencies: np.ndarray          # Hz, strictly increasing, > 0
    power: np.ndarray                # s² / Hz
    band_powers: dict                # {"total"|"vlf"|"lf"|"hf": s²}
    peaks: dict                      # {"lf"|"hf": Hz or None}
    beta: LineFit | None
    warnings: tuple = ()

    def ratio(self, numerator: str, denominator: str) -> float | None:
        """Band-power ratio; None when the denominator is zero or undefined."""
        num = self.band_powers[numerator]
        den = self.band_powers[denominator]
        if not (np.isfinite(num) and np.isfinite(den)) or den == 0:
            return None
        return num / den


@dataclass(frozen=True)
class SpectralAnalysis:
    spectra: dict                    # method → Spectrum, in request order
    power_method: str
    warnings: tuple = field(default=())

    @property
    def primary(self) -> Spectrum:
        """The spectrum whose band powers are reported as the headline values."""
        return self.spectra[self.power_method]


# ─── Spectrum reduction ──────────────────────────────────────────────────────


def band_power(power: np.ndarray, freqs: np.ndarray, band: tuple) -> float:
    """
    Integrate `power` over `band` with the trapezoidal rule.

    The PSD at the band edges is linearly interpolated (extrapolated outside
    the axis), so adjacent bands add up exactly to the band that covers both.
    """
    lo, hi = band
    if hi <= lo:
        return 0.0
    edges = interp1d(freqs, power, kind="linear", fill_value="extrapolate", assume_sorted=True)
    inner = (freqs > lo) & (freqs < hi)
    f = np.concatenate(([lo], freqs[inner], [hi]))
    p = np.concatenate(([edges(lo)], power[inner], [edges(hi)]))
    return float(trapezoid(p, f))


def band_peak(power: np.ndarray, freqs: np.ndarray, band: tuple) -> float | None:
    """Frequency of the most prominent local maximum inside `band`, if any."""
    idx = np.flatnonzero((freqs >= band[0]) & (freqs <= band[1]))
    if idx.size < 3 or not np.all(np.isfinite(power[idx])):
        return None
    peaks, props = find_peaks(power[idx], prominence=0)
    if peaks.size == 0:
        return None
    best = peaks[np.argmax(props["prominences"])]
    return float(freqs[idx[best]])


def power_law_slope(power: np.ndarray, freqs: np.ndarray, band: tuple) -> LineFit | None:
    """Line fit of log10 power vs log10 frequency over `band`."""
    idx = (freqs >= band[0]) & (freqs <= band[1]) & np.isfinite(power) & (power > 0)
    if np.count_nonzero(idx) < 2:
        return None
    slope, intercept = np.polyfit(np.log10(freqs[idx]), np.log10(power[idx]), 1)
    return LineFit(slope=float(slope), intercept=float(intercept))


# ─── Preprocessing ───────────────────────────────────────────────────────────


def detrend_polynomial(values: np.ndarray, times: np.ndarray, order: int) -> np.ndarray:
    """Remove the mean and a least-squares polynomial trend of `order`."""
    x = values - np.mean(values)
    if order == 0 or x.size <= order:
        return x
    # Polynomial.fit maps the time axis onto [-1, 1], keeping the fit well conditioned
    trend = Polynomial.fit(times, x, order)
    return x - trend(times)


@dataclass
class _Prepared:
    t: np.ndarray
    x: np.ndarray
    t_win: float
    num_windows: int
    f_axis: np.ndarray
    f_max: float
    warnings: list
    fs_uni: float = 0.0
    x_uni: np.ndarray | None = None
    n_win_uni: int = 0

    def window_masks(self):
        last = self.num_windows - 1
        for k in range(self.num_windows):
            lo, hi = k * self.t_win, (k + 1) * self.t_win
            upper = self.t <= hi if k == last else self.t < hi
            yield k, (self.t >= lo) & upper

    def uniform_windows(self):
        n = self.n_win_uni
        num = max(1, min(self.num_windows, self.x_uni.size // n))
        return [self.x_uni[k * n: (k + 1) * n] for k in range(num)]


def _warn(sink: list, message: str) -> None:
    logger.warning(message)
    sink.append(message)


def _prepare(nn_values, nn_times, params: SpectralParams) -> _Prepared:
    x = as_signal(nn_values, "nn_values", min_length=3)
    t = as_signal(nn_times, "nn_times", min_length=3)
    if t.size != x.size:
        raise InvalidInputError("nn_times and nn_values must have the same length.")
    if np.any(np.diff(t) <= 0):
        raise InvalidInputError("Spectral analysis requires strictly increasing sample times.")

    t = t - t[0]
    t_max = float(t[-1])
    warnings: list = []

    x = detrend_polynomial(x, t, params.detrend_order)

    t_win = t_max if params.window_minutes is None else 60.0 * params.window_minutes
    num_windows = int(np.floor(t_max / t_win))
    if num_windows < 1:
        _warn(warnings,
              f"Signal duration {t_max:.1f} s is shorter than the {t_win:.1f} s analysis window; "
              f"using a single window of the whole signal.")
        num_windows = 1
        t_win = t_max

    f_max = params.f_max
    f_res = 1.0 / t_win
    num_freqs = int(np.floor(f_max / f_res + 1e-9))
    if num_freqs < 2:
        raise InvalidInputError(
            f"A {t_win:.1f} s window cannot resolve frequencies up to {f_max:.3f} Hz."
        )
    f_axis = f_res * np.arange(1, num_freqs + 1)

    logger.debug(
        "Spectral preprocessing — %d samples, %.1f s, %d window(s) of %.1f s, %d frequencies up to %.3f Hz",
        x.size, t_max, num_windows, t_win, f_axis.size, f_axis[-1],
    )
    return _Prepared(t=t, x=x, t_win=t_win, num_windows=num_windows,
                     f_axis=f_axis, f_max=f_max, warnings=warnings)


def _resample(prep: _Prepared, params: SpectralParams) -> None:
    fs = params.resample_factor * prep.f_max
    t_uni = np.arange(0.0, prep.t[-1], 1.0 / fs)
    prep.fs_uni = fs
    prep.x_uni = CubicSpline(prep.t, prep.x)(t_uni)
    prep.n_win_uni = min(int(np.floor(prep.t_win * fs)), prep.x_uni.size)


# ─── Estimators ──────────────────────────────────────────────────────────────


def _window_counts(prep: _Prepared):
    """Yield (index, raw sample count, samples needed to resolve f_max, mask) per window."""
    min_samples = 2.0 * prep.f_max * prep.t_win
    for k, mask in prep.window_masks():
        yield k, int(np.count_nonzero(mask)), min_samples, mask


def _check_nyquist(prep: _Prepared, method: str, warnings: list) -> None:
    # Resampling hides a sparse beat rate; judge the raw samples instead.
    for k, n_win, min_samples, _ in _window_counts(prep):
        if n_win <= min_samples:
            _warn(warnings,
                  f"{method}: window {k} has {n_win} samples; resolving {prep.f_max:.3f} Hz "
                  f"needs more than {min_samples:.0f} (Nyquist). Estimate is interpolated.")


def _lomb(prep: _Prepared, params: SpectralParams, warnings: list) -> np.ndarray:
    estimates = []
    for k, n_win, min_samples, mask in _window_counts(prep):
        if n_win <= min_samples:
            _warn(warnings,
                  f"lomb: window {k} has {n_win} samples; resolving {prep.f_max:.3f} Hz "
                  f"needs more than {min_samples:.0f} (Nyquist). Window skipped.")
            continue
        estimates.append(lomb_psd(prep.x[mask], prep.t[mask], prep.f_axis, prep.t_win))
    if not estimates:
        _warn(warnings, "lomb: no window satisfies the Nyquist criterion; spectrum undefined.")
        return np.full(prep.f_axis.size, np.nan)
    return np.mean(estimates, axis=0)


def _ar(prep: _Prepared, params: SpectralParams, warnings: list) -> np.ndarray:
    if params.ar_order >= prep.n_win_uni:
        raise InvalidInputError(
            f"AR order {params.ar_order} is not smaller than the {prep.n_win_uni} samples per window."
        )
    _check_nyquist(prep, "ar", warnings)
    return np.mean(
        [ar_psd(seg, params.ar_order, prep.f_axis, prep.fs_uni) for seg in prep.uniform_windows()],
        axis=0,
    )


def _welch(prep: _Prepared, params: SpectralParams, warnings: list) -> np.ndarray:
    _check_nyquist(prep, "welch", warnings)
    return welch_psd(prep.x_uni, prep.fs_uni, prep.n_win_uni, params.welch_overlap, prep.f_axis)


def _fft(prep: _Prepared, params: SpectralParams, warnings: list) -> np.ndarray:
    _check_nyquist(prep, "fft", warnings)
    return np.mean([fft_psd(seg, prep.fs_uni, prep.f_axis) for seg in prep.uniform_windows()], axis=0)


_ESTIMATORS = {
    "lomb": _lomb,
    "ar": _ar,
    "welch": _welch,
    "fft": _fft,
}


# ─── Public entry point ──────────────────────────────────────────────────────


def reduce_spectrum(method: str, freqs: np.ndarray, power: np.ndarray,
                    params: SpectralParams, warnings=()) -> Spectrum:
    """Band powers, peaks and beta slope of one PSD."""
    vlf = params.scaled(params.vlf_band)
    lf = params.scaled(params.lf_band)
    hf = params.scaled(params.hf_band)
    f_top = float(freqs[-1])

    bands = {
        "total": (vlf[0], f_top),
        "vlf": vlf,
        "lf": lf,
        "hf": (hf[0], f_top),
    }
    band_powers = {name: band_power(power, freqs, band) for name, band in bands.items()}
    peaks = {"lf": band_peak(power, freqs, lf), "hf": band_peak(power, freqs, hf)}
    beta = power_law_slope(power, freqs, params.scaled(params.beta_band))

    return Spectrum(method=method, frequencies=freqs, power=power, band_powers=band_powers,
                    peaks=peaks, beta=beta, warnings=tuple(warnings))


def spectrum(nn_values, nn_times, params: SpectralParams = SpectralParams()) -> SpectralAnalysis:
    """
    Power spectra of an NN-interval series.

    Parameters
    ----------
    nn_values : array-like   NN intervals (s).
    nn_times  : array-like   Onset time of every interval (s), strictly increasing.
    params    : SpectralParams

    Returns
    -------
    SpectralAnalysis with one `Spectrum` per requested method.

    Raises
    ------
    InvalidInputError
        Too few samples, non-increasing times, a window too short for the
        frequency range, or an AR order not smaller than the window.
    """
    prep = _prepare(nn_values, nn_times, params)
    if any(m != "lomb" for m in params.methods):
        _resample(prep, params)

    spectra = {}
    all_warnings = list(prep.warnings)
    for method in params.methods:
        method_warnings = list(prep.warnings)
        power = _ESTIMATORS[method](prep, params, method_warnings)
        spectra[method] = reduce_spectrum(method, prep.f_axis, power, params, method_warnings)
        all_warnings.extend(method_warnings[len(prep.warnings):])

        bp = spectra[method].band_powers
        logger.debug(
            "%s — TOT=%.3g s², VLF=%.3g s², LF=%.3g s², HF=%.3g s²",
            method, bp["total"], bp["vlf"], bp["lf"], bp["hf"],
        )

    return SpectralAnalysis(spectra=spectra, power_method=params.primary_method,
                            warnings=tuple(all_warnings))
