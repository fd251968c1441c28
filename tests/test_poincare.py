import numpy as np
import pytest

from rri.poincare import poincare, rotate_pairs
from utils.errors import InvalidInputError


@pytest.fixture
def noisy_rr(rng):
    return 0.8 + 0.05 * rng.standard_normal(500)


def test_sd_identities(noisy_rr):
    geo = poincare(noisy_rr)
    rr_n, rr_n1 = noisy_rr[:-1], noisy_rr[1:]

    assert geo.sd1 ** 2 + geo.sd2 ** 2 == pytest.approx(
        np.var(rr_n, ddof=1) + np.var(rr_n1, ddof=1), rel=1e-10
    )
    assert geo.sd1 ** 2 == pytest.approx(np.var(np.diff(noisy_rr), ddof=1) / 2, rel=1e-10)
    assert geo.sd2 ** 2 == pytest.approx(np.var(rr_n + rr_n1, ddof=1) / 2, rel=1e-10)


def test_rotation_puts_identity_line_on_x_axis():
    x_rot, y_rot = rotate_pairs(np.array([1.0, 1.0, 1.0]))
    assert np.allclose(y_rot, 0.0)
    assert np.allclose(x_rot, np.sqrt(2.0))


def test_ellipse_radii_follow_factors(noisy_rr):
    geo = poincare(noisy_rr, sd1_factor=3.0, sd2_factor=1.5)
    assert geo.radii == pytest.approx((1.5 * geo.sd2, 3.0 * geo.sd1))
    assert geo.angle == pytest.approx(-np.pi / 4)


def test_contains_centre_but_not_far_points(noisy_rr):
    geo = poincare(noisy_rr)
    cx, cy = geo.center
    inside = geo.contains(np.array([cx]), np.array([cy]))
    outside = geo.contains(np.array([cx]), np.array([cy + 10 * geo.radii[1]]))
    assert inside.tolist() == [True]
    assert outside.tolist() == [False]


def test_outlier_mask_marks_first_interval_of_pair(noisy_rr):
    rr = noisy_rr.copy()
    rr[200] = 2.0
    geo = poincare(noisy_rr)
    mask = geo.outlier_mask(rr)
    assert mask.size == rr.size
    assert mask[199] and mask[200]
    assert not mask[-1]


def test_degenerate_ellipse_contains_everything():
    geo = poincare(np.full(20, 0.8))
    assert geo.sd1 == pytest.approx(0.0, abs=1e-12)
    assert geo.sd2 == pytest.approx(0.0, abs=1e-12)
    assert geo.is_degenerate
    assert not geo.outlier_mask(np.array([0.8, 2.0, 0.8])).any()


def test_ellipse_outline_shape(noisy_rr):
    outline = poincare(noisy_rr).ellipse_outline(num_points=50)
    assert outline.shape == (2, 50)


def test_too_short_rejected():
    with pytest.raises(InvalidInputError):
        poincare([0.8, 0.9])
