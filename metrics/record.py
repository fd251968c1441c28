"""
metrics/record.py — Named metric values & tabular export
=========================================================
Every number the engine reports is a `Metric`: a name, a value, its unit and
a one-line description.  A metric that could not be computed keeps its slot
with `value=None` and a `reason`, so "undefined" is never confused with 0 or
with a metric that was not requested.

A `MetricsRecord` is the immutable, ordered collection of metrics of one
analysis window.  Many records (e.g. consecutive windows of a long
recording) become one pandas DataFrame through `metrics_table`, and
`summary_statistics` condenses that table into Mean / SE / Median rows.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

import numpy as np
import pandas as pd

# ─── Metric catalogue ────────────────────────────────────────────────────────
# name → (unit, description)

_FIXED = {
    "RR":     ("n.u.", "Number of RR intervals before filtering"),
    "NN":     ("n.u.", "Number of NN intervals after filtering"),
    "AVNN":   ("ms",   "Average NN interval"),
    "SDNN":   ("ms",   "Standard deviation of NN intervals"),
    "RMSSD":  ("ms",   "Root mean square of successive NN differences"),
    "SEM":    ("ms",   "Standard error of the mean NN interval"),
    "SD1":    ("ms",   "Poincaré plot SD perpendicular to the line of identity"),
    "SD2":    ("ms",   "Poincaré plot SD along the line of identity"),
    "alpha1": ("n.u.", "DFA short-term scaling exponent"),
    "alpha2": ("n.u.", "DFA long-term scaling exponent"),
    "SampEn": ("n.u.", "Sample entropy"),
    "PIP":    ("%",    "Percentage of inflection points"),
    "IALS":   ("n.u.", "Inverse of the average segment length"),
    "PSS":    ("%",    "Percentage of NN intervals in short segments"),
    "PAS":    ("%",    "Percentage of NN intervals in alternation segments"),
}

_SPECTRAL = {
    "TOT_PWR":    ("ms^2", "Total power"),
    "VLF_PWR":    ("ms^2", "Power in the very-low-frequency band"),
    "LF_PWR":     ("ms^2", "Power in the low-frequency band"),
    "HF_PWR":     ("ms^2", "Power in the high-frequency band"),
    "VLF_TO_TOT": ("n.u.", "VLF to total power ratio"),
    "LF_TO_TOT":  ("n.u.", "LF to total power ratio"),
    "HF_TO_TOT":  ("n.u.", "HF to total power ratio"),
    "LF_TO_HF":   ("n.u.", "LF to HF power ratio"),
    "LF_PEAK":    ("Hz",   "Peak frequency in the LF band"),
    "HF_PEAK":    ("Hz",   "Peak frequency in the HF band"),
    "BETA":       ("n.u.", "Slope of log power vs log frequency in the VLF band"),
}

_METHOD_LABELS = {
    "LOMB": "Lomb-Scargle periodogram",
    "AR": "Yule-Walker AR model",
    "WELCH": "Welch's method",
    "FFT": "FFT periodogram",
}

_SPECTRAL_NAME = re.compile(r"^([A-Z_]+?)_(LOMB|AR|WELCH|FFT)$")
_PNN_NAME = re.compile(r"^pNN(\d+)$")
_MSE_NAME = re.compile(r"^MSE(\d+)$")


def describe(name: str) -> tuple[str, str]:
    """(unit, description) of a metric name; unknown names get empty strings."""
    if name in _FIXED:
        return _FIXED[name]
    match = _SPECTRAL_NAME.match(name)
    if match and match.group(1) in _SPECTRAL:
        unit, text = _SPECTRAL[match.group(1)]
        return unit, f"{text} ({_METHOD_LABELS[match.group(2)]})"
    match = _PNN_NAME.match(name)
    if match:
        return "%", f"Percentage of successive NN differences larger than {match.group(1)} ms"
    match = _MSE_NAME.match(name)
    if match:
        return "n.u.", f"Multiscale sample entropy at scale {match.group(1)}"
    return "", ""


# ─── Metric & record ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Metric:
    name: str
    value: float | None
    unit: str = ""
    description: str = ""
    reason: str | None = None      # why the value is undefined

    @property
    def is_undefined(self) -> bool:
        return self.value is None


def make_metric(name: str, value, reason: str | None = None) -> Metric:
    """
    Build a catalogued `Metric`.

    `None`, NaN and ±inf all become the undefined marker; `reason` defaults to
    a generic explanation in that case.
    """
    unit, description = describe(name)
    if value is not None:
        value = float(value)
        if not np.isfinite(value):
            reason = reason or f"result is not finite ({value})"
            value = None
    if value is None and reason is None:
        reason = "undefined"
    if value is not None:
        reason = None
    return Metric(name=name, value=value, unit=unit, description=description, reason=reason)


class MetricsRecord(Mapping):
    """Read-only, ordered mapping of metric name → `Metric`."""

    def __init__(self, metrics=()):
        ordered = {}
        for metric in metrics:
            if metric.name in ordered:
                raise ValueError(f"Duplicate metric '{metric.name}'.")
            ordered[metric.name] = metric
        self._metrics = MappingProxyType(ordered)

    def __getitem__(self, name: str) -> Metric:
        return self._metrics[name]

    def __iter__(self):
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def __repr__(self) -> str:
        return f"MetricsRecord({len(self)} metrics)"

    def value(self, name: str) -> float | None:
        return self._metrics[name].value

    @property
    def undefined(self) -> list:
        """Names of the metrics that could not be computed."""
        return [name for name, m in self._metrics.items() if m.is_undefined]

    def to_row(self) -> list:
        """Values in metric order (None for undefined)."""
        return [m.value for m in self._metrics.values()]

    def to_dict(self) -> dict:
        return {name: m.value for name, m in self._metrics.items()}

    def to_frame(self) -> pd.DataFrame:
        """One-row DataFrame; undefined values become NaN."""
        return metrics_table([self])


# ─── Tables ──────────────────────────────────────────────────────────────────


def metrics_table(records, index=None) -> pd.DataFrame:
    """
    Stack records into a DataFrame (rows = windows, columns = metrics).

    Column order follows first appearance across the records.  Units and
    descriptions are kept in `DataFrame.attrs`.
    """
    records = list(records)
    columns: dict = {}
    for record in records:
        for name, metric in record.items():
            columns.setdefault(name, metric)

    rows = [
        [np.nan if record.get(name) is None or record[name].value is None else record[name].value
         for name in columns]
        for record in records
    ]
    table = pd.DataFrame(rows, columns=list(columns), index=index, dtype=float)
    table.index.name = "window"
    table.attrs["units"] = {name: m.unit for name, m in columns.items()}
    table.attrs["descriptions"] = {name: m.description for name, m in columns.items()}
    return table


def summary_statistics(table: pd.DataFrame) -> pd.DataFrame:
    """
    Mean, standard error and median of every column, ignoring undefined (NaN)
    entries.  SE = sample SD / √(number of defined rows).
    """
    numeric = table.apply(pd.to_numeric, errors="coerce")
    count = numeric.count()
    stats = pd.DataFrame({
        "Mean": numeric.mean(),
        "SE": numeric.std(ddof=1) / np.sqrt(count.where(count > 0)),
        "Median": numeric.median(),
    }).T
    stats.attrs = dict(table.attrs)
    return stats
