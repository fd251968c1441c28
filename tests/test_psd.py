import numpy as np
import pytest

from features.psd import ar_psd, fft_psd, hamming_taper, lomb_psd, welch_psd, yule_walker
from utils.errors import InvalidInputError


def test_yule_walker_recovers_ar1(rng):
    e = rng.standard_normal(20000)
    x = np.empty_like(e)
    x[0] = e[0]
    for k in range(1, x.size):
        x[k] = 0.6 * x[k - 1] + e[k]
    coeffs, sigma2 = yule_walker(x, 1)
    assert coeffs[0] == pytest.approx(0.6, abs=0.03)
    assert sigma2 == pytest.approx(1.0, abs=0.05)


def test_yule_walker_constant_signal_has_no_power():
    coeffs, sigma2 = yule_walker(np.full(50, 0.8), 4)
    assert sigma2 == 0.0
    assert np.all(ar_psd(np.full(50, 0.8), 4, np.array([0.1, 0.2]), 4.0) == 0.0)


def test_ar_order_must_be_below_length():
    with pytest.raises(InvalidInputError):
        yule_walker(np.arange(10, dtype=float), 10)


def test_hamming_taper_power():
    tapered, power = hamming_taper(np.ones(1000))
    assert tapered[0] == pytest.approx(0.08)
    assert power == pytest.approx(0.397, abs=0.005)


def test_estimators_find_a_sinusoid(rng):
    fs = 4.0
    t = np.arange(0, 300, 1 / fs)
    x = np.sin(2 * np.pi * 0.25 * t) + 0.1 * rng.standard_normal(t.size)
    freqs = np.arange(1, 121) / 300.0          # up to 0.4 Hz

    for pxx in (
        lomb_psd(x, t, freqs, 300.0),
        ar_psd(x, 16, freqs, fs),
        welch_psd(x, fs, 600, 50.0, freqs),
        fft_psd(x, fs, freqs),
    ):
        assert pxx.shape == freqs.shape
        assert np.all(pxx >= 0)
        assert freqs[np.argmax(pxx)] == pytest.approx(0.25, abs=0.01)


def test_lomb_and_fft_agree_on_uniform_samples():
    fs = 4.0
    t = np.arange(0, 300, 1 / fs)
    x = np.sin(2 * np.pi * 0.1 * t) + 0.5 * np.sin(2 * np.pi * 0.3 * t)
    freqs = np.arange(1, 121) / 300.0
    lomb = lomb_psd(x, t, freqs, 300.0)
    fft = fft_psd(x, fs, freqs)
    # Same density scaling: summed power within 10 %
    assert np.sum(lomb) == pytest.approx(np.sum(fft), rel=0.1)
