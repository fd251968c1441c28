import numpy as np
import pytest

from rri.detrend import detrend_smoothness_priors, smoothness_priors_trend
from utils.errors import InvalidInputError


def test_linear_trend_removed_completely():
    z = np.linspace(0.7, 0.9, 200)
    assert np.allclose(detrend_smoothness_priors(z, 10.0), 0.0, atol=1e-9)


def test_fast_oscillation_preserved():
    n = np.arange(300)
    wiggle = 0.01 * (-1.0) ** n
    residual = detrend_smoothness_priors(0.8 + wiggle, 10.0)
    assert np.allclose(residual, wiggle, atol=1e-3)


def test_trend_keeps_series_mean(rng):
    z = 0.8 + 0.05 * rng.standard_normal(250) + np.linspace(0.0, 0.1, 250)
    trend = smoothness_priors_trend(z, 10.0)
    assert trend.mean() == pytest.approx(z.mean(), rel=1e-9)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        detrend_smoothness_priors(np.ones(10), 0.0)
    with pytest.raises(InvalidInputError):
        detrend_smoothness_priors([0.8, 0.9], 10.0)
