import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure repository root is on sys.path so tests can import local modules
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def modulated_intervals(num_beats, base=0.8, lf_amp=0.03, hf_amp=0.02, noise=0.0, seed=0):
    """RR series with a 0.1 Hz and a 0.25 Hz modulation evaluated at the beat onsets."""
    rng = np.random.default_rng(seed)
    rr = np.empty(num_beats)
    t = 0.0
    for i in range(num_beats):
        rr[i] = (base
                 + lf_amp * np.sin(2 * np.pi * 0.1 * t)
                 + hf_amp * np.sin(2 * np.pi * 0.25 * t)
                 + noise * rng.standard_normal())
        t += rr[i]
    return rr


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def long_rr():
    # ~640 s: two complete 5-minute windows
    return modulated_intervals(800, noise=0.005, seed=7)


@pytest.fixture
def sinus_rr():
    i = np.arange(200)
    return 0.8 + 0.05 * np.sin(2 * np.pi * i / 10)
