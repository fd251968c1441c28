"""
metrics/analysis.py — Analysis entry point
===========================================
Runs the complete HRV analysis of one interval series:

    raw RR intervals
        │  filter_intervals (range / moving average / quotient / Poincaré)
        ▼
    NN series ──(optional smoothness-priors detrending)
        │
        ├── time domain      AVNN, SDNN, RMSSD, pNNx, SEM
        ├── frequency        band powers, ratios, peaks, beta (per method)
        ├── Poincaré         SD1, SD2
        ├── DFA              alpha1, alpha2
        ├── MSE              SampEn (+ MSE1 … MSEk)
        └── fragmentation    PIP, IALS, PSS, PAS
        ▼
    MetricsRecord

Components are independent: each reads the same immutable NN series and the
same immutable configuration.  A component that raises is logged and its
metrics are emitted as undefined with the error as the reason; the other
components are unaffected.  With `parallel=True` the components run on a
thread pool.
"""

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import numpy as np

from config import AnalysisConfig
from features.dfa import dfa
from features.entropy import multiscale_entropy
from features.fragmentation import fragmentation
from features.frequency import SpectralAnalysis, spectrum
from features.time_domain import time_domain
from metrics.record import MetricsRecord, make_metric
from rri.detrend import detrend_smoothness_priors
from rri.filters import filter_intervals
from rri.poincare import poincare
from rri.series import IntervalSeries
from utils.logger import get_logger

logger = get_logger("metrics.analysis")

SEC_TO_MS = 1000.0
SEC2_TO_MS2 = 1.0e6


@dataclass(frozen=True)
class AnalysisResult:
    record: MetricsRecord
    nn: IntervalSeries                   # series the features were computed on
    outliers: dict                       # rule → OutlierMask (raw-series indices)
    spectral: SpectralAnalysis | None    # None when the frequency component failed
    warnings: tuple = ()
    errors: dict = field(default_factory=dict)   # component → error message


# ─── Metric names per component ──────────────────────────────────────────────


def _spectral_names(config: AnalysisConfig) -> list:
    names = []
    for method in config.spectral.methods:
        suffix = method.upper()
        names += [f"{base}_{suffix}" for base in (
            "TOT_PWR", "VLF_PWR", "LF_PWR", "HF_PWR",
            "VLF_TO_TOT", "LF_TO_TOT", "HF_TO_TOT", "LF_TO_HF",
            "LF_PEAK", "HF_PEAK", "BETA",
        )]
    return names


def component_metric_names(component: str, config: AnalysisConfig) -> list:
    """Metric names a component emits under `config`, in report order."""
    if component == "time_domain":
        pnn = f"pNN{math.floor(config.time_domain.pnn_thresh_ms)}"
        return ["AVNN", "SDNN", "RMSSD", pnn, "SEM"]
    if component == "frequency":
        return _spectral_names(config)
    if component == "poincare":
        return ["SD1", "SD2"]
    if component == "dfa":
        return ["alpha1", "alpha2"]
    if component == "mse":
        names = ["SampEn"]
        if config.mse.mse_metrics:
            names += [f"MSE{k}" for k in range(1, config.mse.max_scale + 1)]
        return names
    if component == "fragmentation":
        return ["PIP", "IALS", "PSS", "PAS"]
    raise ValueError(f"Unknown component '{component}'.")


# ─── Components ──────────────────────────────────────────────────────────────
# Each returns (metrics, extra); `extra` is the SpectralAnalysis for the
# frequency component and None otherwise.


def _time_domain_metrics(nn: IntervalSeries, config: AnalysisConfig):
    td = time_domain(nn.intervals, config.time_domain.pnn_thresh_ms)
    return [
        make_metric("AVNN", td.avnn_ms),
        make_metric("SDNN", td.sdnn_ms),
        make_metric("RMSSD", td.rmssd_ms),
        make_metric(td.pnn_name, td.pnn),
        make_metric("SEM", td.sem_ms),
    ], None


def _frequency_metrics(nn: IntervalSeries, config: AnalysisConfig):
    analysis = spectrum(nn.intervals, nn.times, config.spectral)
    metrics = []
    for method, sp in analysis.spectra.items():
        suffix = method.upper()
        bp = sp.band_powers
        metrics += [
            make_metric(f"TOT_PWR_{suffix}", bp["total"] * SEC2_TO_MS2),
            make_metric(f"VLF_PWR_{suffix}", bp["vlf"] * SEC2_TO_MS2),
            make_metric(f"LF_PWR_{suffix}", bp["lf"] * SEC2_TO_MS2),
            make_metric(f"HF_PWR_{suffix}", bp["hf"] * SEC2_TO_MS2),
        ]
        for band, denominator in (("vlf", "total"), ("lf", "total"), ("hf", "total"), ("lf", "hf")):
            name = f"{band.upper()}_TO_{'TOT' if denominator == 'total' else 'HF'}_{suffix}"
            metrics.append(make_metric(name, sp.ratio(band, denominator),
                                       reason=f"{denominator} power is zero or undefined"))
        for band in ("lf", "hf"):
            metrics.append(make_metric(f"{band.upper()}_PEAK_{suffix}", sp.peaks[band],
                                       reason=f"no spectral peak in the {band.upper()} band"))
        beta = None if sp.beta is None else sp.beta.slope
        metrics.append(make_metric(f"BETA_{suffix}", beta,
                                   reason="fewer than two positive PSD points in the beta band"))
    return metrics, analysis


def _poincare_metrics(nn: IntervalSeries, config: AnalysisConfig):
    geometry = poincare(nn.intervals, config.poincare.sd1_factor, config.poincare.sd2_factor)
    return [
        make_metric("SD1", geometry.sd1 * SEC_TO_MS),
        make_metric("SD2", geometry.sd2 * SEC_TO_MS),
    ], None


def _dfa_metrics(nn: IntervalSeries, config: AnalysisConfig):
    result = dfa(nn.intervals, nn.times, config.dfa)
    return [
        make_metric("alpha1", result.alpha1, reason=result.alpha1_reason),
        make_metric("alpha2", result.alpha2, reason=result.alpha2_reason),
    ], None


def _mse_metrics(nn: IntervalSeries, config: AnalysisConfig):
    profile = multiscale_entropy(nn.intervals, config.mse)
    metrics = [make_metric("SampEn", profile.sample_entropy, reason=profile.reasons[0])]
    if config.mse.mse_metrics:
        metrics += [
            make_metric(f"MSE{int(scale)}", value, reason=reason)
            for scale, value, reason in zip(profile.scales, profile.values, profile.reasons)
        ]
    return metrics, None


def _fragmentation_metrics(nn: IntervalSeries, config: AnalysisConfig):
    frag = fragmentation(nn.intervals)
    return [
        make_metric("PIP", frag.pip),
        make_metric("IALS", frag.ials),
        make_metric("PSS", frag.pss),
        make_metric("PAS", frag.pas),
    ], None


COMPONENTS = {
    "time_domain": _time_domain_metrics,
    "frequency": _frequency_metrics,
    "poincare": _poincare_metrics,
    "dfa": _dfa_metrics,
    "mse": _mse_metrics,
    "fragmentation": _fragmentation_metrics,
}


def _run_component(name: str, nn: IntervalSeries, config: AnalysisConfig):
    """Run one component; returns (metrics, extra, error message or None)."""
    try:
        metrics, extra = COMPONENTS[name](nn, config)
        return metrics, extra, None
    except ValueError as e:
        message = str(e)
        logger.warning("Component '%s' could not run: %s", name, message)
    except Exception as e:
        message = f"unexpected error: {e}"
        logger.exception("Component '%s' failed with exception:", name)

    reason = f"{name} failed: {message}"
    return [make_metric(n, None, reason=reason) for n in component_metric_names(name, config)], None, message


# ─── Entry point ─────────────────────────────────────────────────────────────


def _detrended(nn: IntervalSeries, lambda_: float, warnings: list) -> IntervalSeries:
    if len(nn) < 3:
        message = f"Detrending skipped: {len(nn)} NN intervals are too few."
        logger.warning(message)
        warnings.append(message)
        return nn
    residual = detrend_smoothness_priors(nn.intervals, lambda_)
    return nn.with_intervals(residual + np.mean(nn.intervals))


def analyze(
    intervals,
    times=None,
    config: AnalysisConfig = AnalysisConfig(),
    parallel: bool = False,
) -> AnalysisResult:
    """
    Filter an RR-interval series and compute every HRV metric.

    Parameters
    ----------
    intervals : array-like | IntervalSeries   RR intervals (s).
    times     : array-like | None              Onset times (s); defaults to the
                                               cumulative sum of the intervals.
    config    : AnalysisConfig                 Parameters of every component.
    parallel  : bool                           Evaluate components on a thread pool.

    Returns
    -------
    AnalysisResult

    Raises
    ------
    InvalidInputError
        If the raw series itself is invalid (empty, non-finite, non-positive,
        mismatched or decreasing times).  Problems inside a component never
        raise; they surface as undefined metrics.
    """
    if isinstance(intervals, IntervalSeries):
        series = intervals
    else:
        series = IntervalSeries.from_arrays(intervals, times)

    filtered = filter_intervals(series, params=config.filtering)
    nn = filtered.nn
    warnings: list = []

    if config.detrend_lambda is not None:
        nn = _detrended(nn, config.detrend_lambda, warnings)

    names = list(COMPONENTS)
    if parallel:
        with ThreadPoolExecutor(max_workers=len(names)) as pool:
            outcomes = list(pool.map(lambda name: _run_component(name, nn, config), names))
    else:
        outcomes = [_run_component(name, nn, config) for name in names]

    metrics = [
        make_metric("RR", len(series)),
        make_metric("NN", len(filtered.nn)),
    ]
    spectral = None
    errors = {}
    for name, (component_metrics, extra, error) in zip(names, outcomes):
        metrics.extend(component_metrics)
        if error is not None:
            errors[name] = error
        if name == "frequency" and extra is not None:
            spectral = extra
            warnings.extend(extra.warnings)

    record = MetricsRecord(metrics)
    logger.info(
        "Analysis complete — %d RR → %d NN, %d metrics (%d undefined), %d component error(s)",
        len(series), len(filtered.nn), len(record), len(record.undefined), len(errors),
    )
    return AnalysisResult(
        record=record,
        nn=nn,
        outliers=filtered.outliers,
        spectral=spectral,
        warnings=tuple(warnings),
        errors=errors,
    )
