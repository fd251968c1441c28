import math

import numpy as np
import pytest

from features.time_domain import time_domain
from utils.errors import InvalidInputError


def test_alternating_series():
    td = time_domain([0.8, 0.9, 0.8, 0.9])
    assert td.avnn_ms == pytest.approx(850.0)
    assert td.sdnn_ms == pytest.approx(math.sqrt(10000.0 / 3.0))
    assert td.rmssd_ms == pytest.approx(100.0)
    assert td.pnn == pytest.approx(100.0)
    assert td.sem_ms == pytest.approx(td.sdnn_ms / 2.0)
    assert td.num_intervals == 4


def test_pnn_threshold_is_strict():
    td = time_domain([0.8, 0.9, 0.8, 0.9], pnn_thresh_ms=100.0)
    assert td.pnn == 0.0
    assert td.pnn_name == "pNN100"


def test_pnn_name_floors_threshold():
    assert time_domain([0.8, 0.9], pnn_thresh_ms=32.7).pnn_name == "pNN32"
    assert time_domain([0.8, 0.9]).pnn_name == "pNN50"


def test_constant_series_has_no_variability():
    td = time_domain(np.full(100, 0.8))
    assert td.avnn_ms == pytest.approx(800.0)
    assert td.sdnn_ms == 0.0
    assert td.rmssd_ms == 0.0
    assert td.pnn == 0.0


def test_too_short_rejected():
    with pytest.raises(InvalidInputError):
        time_domain([0.8])
