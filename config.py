"""
config.py — Centralised configuration & analysis parameters
============================================================
Every tunable constant in the project lives here so that the rest of the
codebase can import from a single source of truth.

The module-level constants are the documented defaults.  The frozen
dataclasses below bundle them per component; an `AnalysisConfig` is built
once per analysis and handed to every stage, so a run is a pure function of
(data, parameters).  Override individual values with `dataclasses.replace`.
"""

from dataclasses import dataclass, field, replace

# ─── Interval Filtering ──────────────────────────────────────────────────────
# Physiological range of a single RR interval (seconds).
# 0.32 s → 187.5 BPM   |   1.5 s → 40 BPM
RR_MIN_SEC: float = 0.32
RR_MAX_SEC: float = 1.5

# Moving-average rule: ±W samples around the current one (window = 2W + 1,
# the current sample itself gets zero weight).
MA_WIN_SAMPLES: int = 10
MA_WIN_PERCENT: float = 20.0      # Max deviation from the local average [%]

# Quotient rule: max relative change between adjacent intervals [%]
RR_MAX_CHANGE_PERCENT: float = 25.0

# Rules enabled when the caller does not choose explicitly
DEFAULT_FILTER_RULES = ("range", "moving_average", "quotient")
SUPPORTED_FILTER_RULES = ("range", "moving_average", "quotient", "poincare")

# ─── Poincaré Plot ───────────────────────────────────────────────────────────
# Ellipse radius = factor × SD.  A factor of 2 keeps ~95% of well-behaved
# points inside the ellipse.
SD1_FACTOR: float = 2.0
SD2_FACTOR: float = 2.0

# ─── Time Domain ─────────────────────────────────────────────────────────────
PNN_THRESH_MS: float = 50.0       # Threshold for the pNNx metric (ms)

# ─── DFA ─────────────────────────────────────────────────────────────────────
DFA_N_MIN: int = 4
DFA_N_MAX: int = 128
DFA_N_INCR: float = 4             # < 1 → ratio of a geometric box-size series
DFA_ALPHA1_RANGE = (4, 15)
DFA_ALPHA2_RANGE = (16, 128)

# ─── Multiscale Entropy ──────────────────────────────────────────────────────
MSE_MAX_SCALE: int = 20
SAMPEN_M: int = 2
SAMPEN_R: float = 0.2             # In units of std. dev. when normalising
MSE_NORMALIZE_STD: bool = True
MSE_METRICS: bool = False         # Emit MSE<k> for every scale

# ─── Frequency Domain ────────────────────────────────────────────────────────
SPECTRAL_METHODS = ("lomb", "ar", "welch")
SUPPORTED_SPECTRAL_METHODS = ("lomb", "ar", "welch", "fft")
VLF_BAND = (0.003, 0.04)          # Hz
LF_BAND = (0.04, 0.15)            # Hz
HF_BAND = (0.15, 0.4)             # Hz
BETA_BAND = (0.003, 0.04)         # Hz, band for the power-law slope
BAND_FACTOR: float = 1.0          # Scales every band (species adaptation)
WINDOW_MINUTES: float = 5.0
DETREND_ORDER: int = 1
AR_ORDER: int = 24
WELCH_OVERLAP_PERCENT: float = 50.0
RESAMPLE_FACTOR: float = 10.0     # Uniform sampling rate = factor × f_max

# ─── Smoothness-priors detrending ────────────────────────────────────────────
# λ = 10 is the usual choice for human recordings.  None disables the step.
DETREND_LAMBDA = None

# ─── Numeric Guards ──────────────────────────────────────────────────────────
DFA_FN_FLOOR: float = 1e-9        # F(n) never drops below this (log10 safety)
RATIO_EPSILON: float = 1e-9       # Denominator clamp for interval quotients
ELLIPSE_MIN_RADIUS: float = 1e-12 # Smaller radii make the ellipse rule a no-op
VARIANCE_EPSILON: float = 1e-15   # Variance treated as zero below this

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "HRV Feature Extraction API"
API_VERSION = "0.1.0"
API_HOST = "127.0.0.1"
API_PORT = 8000
API_CORS_ORIGINS = ("*",)      # Browser clients allowed to call the API


def _check_band(name: str, band) -> None:
    lo, hi = band
    if not (0.0 <= lo < hi):
        raise ValueError(f"{name} must satisfy 0 <= low < high, got {band}.")


# ─── Per-component parameters ────────────────────────────────────────────────


@dataclass(frozen=True)
class FilterParams:
    """Thresholds of the outlier-rejection rules."""

    rr_min: float = RR_MIN_SEC
    rr_max: float = RR_MAX_SEC
    win_samples: int = MA_WIN_SAMPLES
    win_percent: float = MA_WIN_PERCENT
    rr_max_change: float = RR_MAX_CHANGE_PERCENT
    sd1_factor: float = SD1_FACTOR
    sd2_factor: float = SD2_FACTOR
    rules: tuple = DEFAULT_FILTER_RULES

    def __post_init__(self):
        if not (0.0 < self.rr_min < self.rr_max):
            raise ValueError("rr_min and rr_max must satisfy 0 < rr_min < rr_max.")
        if self.win_samples < 1:
            raise ValueError("win_samples must be >= 1.")
        if not (0.0 <= self.win_percent <= 100.0):
            raise ValueError("win_percent must be in [0, 100].")
        if not (0.0 < self.rr_max_change <= 100.0):
            raise ValueError("rr_max_change must be in (0, 100].")
        if self.sd1_factor <= 0 or self.sd2_factor <= 0:
            raise ValueError("Poincaré SD factors must be > 0.")
        unknown = set(self.rules) - set(SUPPORTED_FILTER_RULES)
        if unknown:
            raise ValueError(
                f"Unknown filter rules {sorted(unknown)}. Choose from {list(SUPPORTED_FILTER_RULES)}."
            )


@dataclass(frozen=True)
class PoincareParams:
    sd1_factor: float = SD1_FACTOR
    sd2_factor: float = SD2_FACTOR

    def __post_init__(self):
        if self.sd1_factor <= 0 or self.sd2_factor <= 0:
            raise ValueError("Poincaré SD factors must be > 0.")


@dataclass(frozen=True)
class TimeDomainParams:
    pnn_thresh_ms: float = PNN_THRESH_MS

    def __post_init__(self):
        if self.pnn_thresh_ms < 0:
            raise ValueError("pnn_thresh_ms must be >= 0.")


@dataclass(frozen=True)
class DFAParams:
    """Box-size grid and fit ranges for detrended fluctuation analysis."""

    n_min: int = DFA_N_MIN
    n_max: int = DFA_N_MAX
    n_incr: float = DFA_N_INCR
    alpha1_range: tuple = DFA_ALPHA1_RANGE
    alpha2_range: tuple = DFA_ALPHA2_RANGE

    def __post_init__(self):
        if not (2 <= self.n_min < self.n_max):
            raise ValueError("DFA block sizes must satisfy 2 <= n_min < n_max.")
        if self.n_incr <= 0:
            raise ValueError("n_incr must be > 0.")
        if self.n_incr >= 1 and float(self.n_incr) != int(self.n_incr):
            raise ValueError(f"A linear box-size grid needs an integer n_incr (got {self.n_incr}).")
        for name, rng in (("alpha1_range", self.alpha1_range), ("alpha2_range", self.alpha2_range)):
            if len(rng) != 2 or rng[0] > rng[1]:
                raise ValueError(f"{name} must be a (low, high) pair with low <= high.")


@dataclass(frozen=True)
class MSEParams:
    max_scale: int = MSE_MAX_SCALE
    m: int = SAMPEN_M
    r: float = SAMPEN_R
    normalize_std: bool = MSE_NORMALIZE_STD
    mse_metrics: bool = MSE_METRICS

    def __post_init__(self):
        if self.max_scale < 1:
            raise ValueError("max_scale must be >= 1.")
        if self.m < 0 or self.r < 0:
            raise ValueError("Sample entropy m and r must be >= 0.")


@dataclass(frozen=True)
class SpectralParams:
    """
    Frequency-domain settings.

    `band_factor` multiplies every band (VLF/LF/HF and beta), which is how
    the bands are adapted to species with a different resting heart rate.
    """

    methods: tuple = SPECTRAL_METHODS
    power_method: str | None = None
    vlf_band: tuple = VLF_BAND
    lf_band: tuple = LF_BAND
    hf_band: tuple = HF_BAND
    beta_band: tuple = BETA_BAND
    band_factor: float = BAND_FACTOR
    window_minutes: float | None = WINDOW_MINUTES
    detrend_order: int = DETREND_ORDER
    ar_order: int = AR_ORDER
    welch_overlap: float = WELCH_OVERLAP_PERCENT
    resample_factor: float = RESAMPLE_FACTOR

    def __post_init__(self):
        if not self.methods:
            raise ValueError("At least one spectral method is required.")
        unknown = set(self.methods) - set(SUPPORTED_SPECTRAL_METHODS)
        if unknown:
            raise ValueError(
                f"Unknown spectral methods {sorted(unknown)}. "
                f"Choose from {list(SUPPORTED_SPECTRAL_METHODS)}."
            )
        if self.power_method is not None and self.power_method not in self.methods:
            raise ValueError(f"power_method '{self.power_method}' is not one of the requested methods.")
        for name in ("vlf_band", "lf_band", "hf_band", "beta_band"):
            _check_band(name, getattr(self, name))
        if self.band_factor <= 0:
            raise ValueError("band_factor must be > 0.")
        if self.window_minutes is not None and self.window_minutes <= 0:
            raise ValueError("window_minutes must be > 0 (or None for a single window).")
        if self.detrend_order < 0:
            raise ValueError("detrend_order must be >= 0.")
        if self.ar_order < 1:
            raise ValueError("ar_order must be >= 1.")
        if not (0.0 <= self.welch_overlap < 100.0):
            raise ValueError("welch_overlap must be in [0, 100).")
        if self.resample_factor < 2.0:
            raise ValueError("resample_factor must be >= 2 (Nyquist).")

    # Bands after applying `band_factor`
    def scaled(self, band: tuple) -> tuple:
        return (band[0] * self.band_factor, band[1] * self.band_factor)

    @property
    def primary_method(self) -> str:
        return self.power_method or self.methods[0]

    @property
    def f_max(self) -> float:
        return self.scaled(self.hf_band)[1]


@dataclass(frozen=True)
class AnalysisConfig:
    """Immutable bundle of every component's parameters for one analysis."""

    filtering: FilterParams = field(default_factory=FilterParams)
    time_domain: TimeDomainParams = field(default_factory=TimeDomainParams)
    poincare: PoincareParams = field(default_factory=PoincareParams)
    dfa: DFAParams = field(default_factory=DFAParams)
    mse: MSEParams = field(default_factory=MSEParams)
    spectral: SpectralParams = field(default_factory=SpectralParams)
    detrend_lambda: float | None = DETREND_LAMBDA

    def __post_init__(self):
        if self.detrend_lambda is not None and self.detrend_lambda <= 0:
            raise ValueError("detrend_lambda must be > 0 (or None to disable).")

    @classmethod
    def for_human(cls) -> "AnalysisConfig":
        return cls()

    @classmethod
    def for_canine(cls) -> "AnalysisConfig":
        """
        Canine preset: faster resting rhythm, so the range rule is tighter,
        pNN uses a 32 ms threshold and all bands move up by 120/75 = 1.6.
        """
        return cls(
            filtering=FilterParams(rr_min=0.3, rr_max=1.2),
            time_domain=TimeDomainParams(pnn_thresh_ms=32.0),
            spectral=SpectralParams(band_factor=1.6),
        )

    @classmethod
    def from_preset(cls, name: str) -> "AnalysisConfig":
        presets = {"human": cls.for_human, "canine": cls.for_canine}
        if name not in presets:
            raise ValueError(f"Unknown preset '{name}'. Choose from {list(presets)}.")
        return presets[name]()

    def with_overrides(self, **sections) -> "AnalysisConfig":
        """Return a copy with whole sections replaced, e.g. `spectral=...`."""
        return replace(self, **sections)
