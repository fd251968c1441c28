import numpy as np
import pytest

from rri.series import IntervalSeries, as_signal, onset_times
from utils.errors import HRVError, InvalidInputError


def test_default_times_are_cumulative_onsets():
    series = IntervalSeries.from_arrays([1.0, 2.0, 3.0])
    assert np.allclose(series.times, [0.0, 1.0, 3.0])
    assert np.allclose(onset_times(np.array([0.5, 0.5, 0.5])), [0.0, 0.5, 1.0])


def test_duration_covers_last_interval():
    series = IntervalSeries.from_arrays([1.0, 2.0, 3.0])
    assert series.duration == pytest.approx(6.0)
    assert len(series) == 3


@pytest.mark.parametrize("bad", [[0.8, -0.1, 0.8], [0.8, 0.0], [0.8, np.nan], [0.8, np.inf]])
def test_invalid_values_rejected(bad):
    with pytest.raises(InvalidInputError):
        IntervalSeries.from_arrays(bad)


def test_empty_series_rejected():
    with pytest.raises(InvalidInputError):
        IntervalSeries.from_arrays([])


def test_times_must_match_and_not_decrease():
    with pytest.raises(InvalidInputError):
        IntervalSeries.from_arrays([0.8, 0.8], times=[0.0])
    with pytest.raises(InvalidInputError):
        IntervalSeries.from_arrays([0.8, 0.8, 0.8], times=[0.0, 1.0, 0.5])
    # Repeated time stamps are allowed
    IntervalSeries.from_arrays([0.8, 0.8], times=[1.0, 1.0])


def test_arrays_are_read_only():
    series = IntervalSeries.from_arrays([0.8, 0.9, 1.0])
    with pytest.raises(ValueError):
        series.intervals[0] = 5.0
    with pytest.raises(ValueError):
        series.times[0] = 5.0


def test_select_keeps_order_and_source_untouched():
    series = IntervalSeries.from_arrays([0.7, 0.8, 0.9, 1.0])
    picked = series.select(np.array([True, False, True, True]))
    assert np.allclose(picked.intervals, [0.7, 0.9, 1.0])
    assert np.allclose(picked.times, [0.0, 1.5, 2.4])
    assert len(series) == 4


def test_invalid_input_error_is_a_value_error():
    assert issubclass(InvalidInputError, ValueError)
    assert issubclass(InvalidInputError, HRVError)


def test_as_signal_min_length_and_shape():
    with pytest.raises(InvalidInputError):
        as_signal([1.0, 2.0], min_length=3)
    with pytest.raises(InvalidInputError):
        as_signal([[1.0, 2.0], [3.0, 4.0]])
    assert as_signal([1, 2, 3]).dtype == np.float64
