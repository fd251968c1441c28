import math

import numpy as np
import pytest

from config import MSEParams
from features.entropy import coarse_grain, multiscale_entropy, sample_entropy, sample_entropy_counts


def test_counts_by_hand():
    # Templates of length 1: heads [1, 2, 1, 2], tails [2, 1, 2, 1]
    assert sample_entropy_counts([1, 2, 1, 2, 1], m=1, r=0.5) == (2, 2)


def test_m_zero_uses_all_pairs():
    A, B = sample_entropy_counts([1.0, 1.0, 5.0], m=0, r=0.5)
    assert (A, B) == (1, 3)
    assert sample_entropy([1.0, 1.0, 5.0], m=0, r=0.5) == pytest.approx(math.log(3))


def test_no_continuing_match_is_infinite():
    assert sample_entropy([0.0, 0.0, 10.0, 20.0], m=1, r=1.0) == math.inf


def test_no_match_at_all_is_nan():
    assert math.isnan(sample_entropy([0.0, 10.0, 20.0, 30.0], m=1, r=1.0))


def test_tolerance_is_strict():
    # Distance exactly r is not a match
    assert sample_entropy_counts([0.0, 1.0, 0.0, 1.0], m=1, r=1.0) == (1, 1)
    assert sample_entropy_counts([0.0, 0.5, 0.0, 0.5], m=1, r=0.5) == (1, 1)


def test_periodic_signal_is_regular():
    x = np.tile([1.0, 2.0, 3.0, 4.0], 100)
    assert sample_entropy(x, m=2, r=0.2) == pytest.approx(0.0, abs=1e-12)


def test_white_noise_is_irregular(rng):
    x = rng.standard_normal(500)
    assert 1.5 < sample_entropy(x, m=2, r=0.2) < 3.0


def test_deterministic(rng):
    x = rng.standard_normal(300)
    assert sample_entropy(x, 2, 0.2) == sample_entropy(x.copy(), 2, 0.2)


def test_invalid_parameters_rejected():
    with pytest.raises(ValueError):
        sample_entropy([1.0, 2.0, 3.0], m=-1)
    with pytest.raises(ValueError):
        MSEParams(r=-0.1)


def test_coarse_grain_drops_partial_block():
    assert coarse_grain(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), 2).tolist() == [1.5, 3.5]


def test_mse_profile_shape_and_short_scales(rng):
    x = rng.standard_normal(100)
    profile = multiscale_entropy(x, MSEParams(max_scale=60))
    assert profile.scales.tolist() == list(range(1, 61))
    assert profile.values.size == 60
    # Scales 50+ leave fewer than m + 2 coarse samples
    assert np.all(np.isnan(profile.values[49:]))
    assert profile.sample_entropy == pytest.approx(sample_entropy((x - x.mean()) / x.std(ddof=1), 2, 0.2))


def test_mse_replaces_infinite_with_nan():
    x = np.array([0.0, 0.0, 10.0, 20.0])
    profile = multiscale_entropy(x, MSEParams(max_scale=1, m=1, r=0.1, normalize_std=False))
    assert np.isnan(profile.sample_entropy)


def test_mse_zero_variance_signal_is_not_normalised():
    profile = multiscale_entropy(np.full(50, 0.8), MSEParams(max_scale=3))
    assert np.allclose(profile.values, 0.0)


def test_white_noise_profile_stays_high_across_scales(rng):
    x = rng.standard_normal(3000)
    profile = multiscale_entropy(x, MSEParams(max_scale=5))
    values = profile.values

    assert np.all(np.isfinite(values))
    # Theory for Gaussian noise at r = 0.2: SampEn ≈ 2.2
    assert values[0] == pytest.approx(2.2, abs=0.15)
    # r stays tied to the scale-1 SD, so coarse-graining lowers the value
    # slowly (block means shrink by sqrt(scale)); it stays within a factor of 2.
    assert np.all(values > 1.1)
    assert values.max() / values.min() < 2.0

    smooth = np.sin(2 * np.pi * np.arange(3000) / 50)
    smooth_profile = multiscale_entropy(smooth, MSEParams(max_scale=5))
    assert np.all(values > smooth_profile.values)


def test_mse_reasons_tell_undefined_cases_apart():
    no_extension = multiscale_entropy([0.8, 0.8, 1.2, 0.8, 0.8, 1.4], MSEParams(max_scale=3))
    assert np.isnan(no_extension.values[0])
    assert "A = 0 < B" in no_extension.reasons[0]
    # Scales 2 and 3 leave too few coarse samples
    assert "coarse-grained" in no_extension.reasons[2]

    no_match = multiscale_entropy(np.linspace(0.5, 1.4, 10), MSEParams(max_scale=1))
    assert np.isnan(no_match.values[0])
    assert "A = B = 0" in no_match.reasons[0]


def test_mse_reasons_are_none_where_defined(rng):
    profile = multiscale_entropy(rng.standard_normal(300), MSEParams(max_scale=3))
    assert profile.reasons == (None, None, None)
