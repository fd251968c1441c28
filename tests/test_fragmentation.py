import numpy as np
import pytest

from features.fragmentation import fragmentation, inflection_points, segment_lengths
from utils.errors import InvalidInputError


def test_pure_alternation():
    nn = [1, 2, 1, 2, 1, 2, 1, 2]
    frag = fragmentation(nn)
    # Six interior inflection points out of eight intervals
    assert frag.pip == pytest.approx(75.0)
    assert frag.ials == pytest.approx(1.0)
    assert frag.pss == pytest.approx(87.5)
    assert frag.pas == pytest.approx(100.0)


def test_monotonic_series_has_one_segment():
    nn = [1, 2, 3, 4, 5, 6]
    assert segment_lengths(np.array(nn, dtype=float)).tolist() == [5]
    frag = fragmentation(nn)
    assert frag.pip == 0.0
    assert frag.ials == pytest.approx(0.2)
    assert frag.pss == 0.0
    assert frag.pas == 0.0


def test_mixed_segments():
    # Up for three steps, then alternating
    nn = np.array([1, 2, 3, 4, 3, 4, 3, 4, 3], dtype=float)
    ip = inflection_points(nn)
    assert ip.tolist() == [True, False, False, True, True, True, True, True, True]
    assert segment_lengths(nn).tolist() == [3, 1, 1, 1, 1, 1]
    frag = fragmentation(nn)
    assert frag.pip == pytest.approx(100.0 * 5 / 9)
    assert frag.ials == pytest.approx(6 / 8)
    assert frag.pss == pytest.approx(100.0 * 5 / 9)
    # Five unit segments span six intervals
    assert frag.pas == pytest.approx(100.0 * 6 / 9)


def test_too_short_rejected():
    with pytest.raises(InvalidInputError):
        fragmentation([0.8, 0.9])
