import dataclasses

import pytest

from config import (
    AnalysisConfig,
    DFAParams,
    FilterParams,
    MSEParams,
    SpectralParams,
    TimeDomainParams,
)


def test_defaults():
    config = AnalysisConfig()
    assert config.filtering.rules == ("range", "moving_average", "quotient")
    assert config.filtering.rr_min == 0.32 and config.filtering.rr_max == 1.5
    assert config.spectral.methods == ("lomb", "ar", "welch")
    assert config.spectral.primary_method == "lomb"
    assert config.spectral.f_max == pytest.approx(0.4)
    assert config.dfa.alpha1_range == (4, 15)
    assert config.mse.max_scale == 20
    assert config.detrend_lambda is None
    assert AnalysisConfig.for_human() == config


def test_canine_preset():
    config = AnalysisConfig.for_canine()
    assert config.time_domain.pnn_thresh_ms == 32.0
    assert (config.filtering.rr_min, config.filtering.rr_max) == (0.3, 1.2)
    assert config.spectral.scaled(config.spectral.lf_band) == pytest.approx((0.064, 0.24))
    assert config.spectral.scaled(config.spectral.beta_band) == pytest.approx((0.0048, 0.064))
    assert config.spectral.f_max == pytest.approx(0.64)


def test_from_preset():
    assert AnalysisConfig.from_preset("canine") == AnalysisConfig.for_canine()
    with pytest.raises(ValueError):
        AnalysisConfig.from_preset("feline")


def test_configs_are_frozen():
    config = AnalysisConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.detrend_lambda = 5.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.filtering.rr_min = 0.1


def test_with_overrides_replaces_sections():
    config = AnalysisConfig().with_overrides(time_domain=TimeDomainParams(pnn_thresh_ms=20.0))
    assert config.time_domain.pnn_thresh_ms == 20.0
    assert config.filtering == FilterParams()


def test_power_method_defaults_to_first_method():
    assert SpectralParams(methods=("welch", "ar")).primary_method == "welch"
    assert SpectralParams(methods=("welch", "ar"), power_method="ar").primary_method == "ar"


@pytest.mark.parametrize("factory", [
    lambda: FilterParams(rr_min=1.5, rr_max=0.3),
    lambda: FilterParams(win_samples=0),
    lambda: FilterParams(rules=("range", "median")),
    lambda: DFAParams(n_min=1),
    lambda: DFAParams(alpha1_range=(15, 4)),
    lambda: DFAParams(n_incr=2.5),
    lambda: MSEParams(max_scale=0),
    lambda: SpectralParams(methods=()),
    lambda: SpectralParams(methods=("lomb", "burg")),
    lambda: SpectralParams(methods=("lomb",), power_method="ar"),
    lambda: SpectralParams(lf_band=(0.15, 0.04)),
    lambda: SpectralParams(welch_overlap=100.0),
    lambda: SpectralParams(window_minutes=0),
    lambda: SpectralParams(ar_order=0),
    lambda: TimeDomainParams(pnn_thresh_ms=-1.0),
    lambda: AnalysisConfig(detrend_lambda=0.0),
])
def test_invalid_parameters_rejected(factory):
    with pytest.raises(ValueError):
        factory()
