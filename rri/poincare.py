"""
rri/poincare.py — Poincaré plot geometry
=========================================
Scatter each interval against its successor, (RR(n), RR(n+1)), and rotate
the cloud by −45° so the line of identity becomes the x-axis:

    x' = ( RR(n) + RR(n+1)) / √2      → spread along the identity line (SD2)
    y' = (−RR(n) + RR(n+1)) / √2      → spread perpendicular to it     (SD1)

An ellipse centred on the mean of the rotated cloud with radii
`sd2_factor·SD2` and `sd1_factor·SD1` summarises the plot and doubles as the
geometric outlier rule of the interval filter.

Standard deviations use the sample (N−1) denominator, as everywhere else in
the project.
"""

from dataclasses import dataclass

import numpy as np

from config import ELLIPSE_MIN_RADIUS, SD1_FACTOR, SD2_FACTOR
from rri.series import as_signal
from utils.logger import get_logger

logger = get_logger("rri.poincare")

ROTATION_ANGLE = -np.pi / 4


def rotation_matrix(theta: float) -> np.ndarray:
    return np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])


def rotate_pairs(intervals: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return the rotated (x', y') coordinates of consecutive interval pairs."""
    pairs = np.vstack([intervals[:-1], intervals[1:]])      # shape (2, N-1)
    rotated = rotation_matrix(ROTATION_ANGLE) @ pairs
    return rotated[0], rotated[1]


@dataclass(frozen=True)
class PoincareGeometry:
    """
    Dispersion descriptors and the fitted ellipse (in the rotated frame).

    Attributes
    ----------
    sd1    : float            SD perpendicular to the identity line (s).
    sd2    : float            SD along the identity line (s).
    center : (float, float)   Ellipse centre (x', y').
    radii  : (float, float)   Radii along x' and y' (sd2_factor·SD2, sd1_factor·SD1).
    angle  : float            Rotation applied to the raw scatter (rad).
    """

    sd1: float
    sd2: float
    center: tuple
    radii: tuple
    angle: float = ROTATION_ANGLE

    @property
    def is_degenerate(self) -> bool:
        return min(self.radii) < ELLIPSE_MIN_RADIUS

    def contains(self, x_rot: np.ndarray, y_rot: np.ndarray) -> np.ndarray:
        """
        Canonical ellipse inequality on rotated coordinates.  A degenerate
        ellipse (a radius below ELLIPSE_MIN_RADIUS) contains every point.
        """
        x_rot = np.asarray(x_rot, dtype=np.float64)
        y_rot = np.asarray(y_rot, dtype=np.float64)
        if self.is_degenerate:
            return np.ones(x_rot.shape, dtype=bool)
        cx, cy = self.center
        rx, ry = self.radii
        return (x_rot - cx) ** 2 / rx ** 2 + (y_rot - cy) ** 2 / ry ** 2 <= 1.0

    def outlier_mask(self, intervals: np.ndarray) -> np.ndarray:
        """
        Boolean mask over `intervals` marking RR(n) of every pair that falls
        outside the ellipse.  The last interval starts no pair and is never
        flagged.
        """
        x_rot, y_rot = rotate_pairs(np.asarray(intervals, dtype=np.float64))
        mask = ~self.contains(x_rot, y_rot)
        return np.append(mask, False)

    def ellipse_outline(self, num_points: int = 200) -> np.ndarray:
        """Ellipse outline in the original (RR(n), RR(n+1)) frame, shape (2, num_points)."""
        t = np.linspace(0.0, 2.0 * np.pi, num_points)
        outline = np.vstack([
            self.radii[0] * np.cos(t) + self.center[0],
            self.radii[1] * np.sin(t) + self.center[1],
        ])
        return rotation_matrix(-self.angle) @ outline


def poincare(
    intervals,
    sd1_factor: float = SD1_FACTOR,
    sd2_factor: float = SD2_FACTOR,
) -> PoincareGeometry:
    """
    Compute SD1/SD2 and the Poincaré ellipse of an interval series.

    Parameters
    ----------
    intervals  : array-like   RR/NN intervals in seconds (N ≥ 3).
    sd1_factor : float        Ellipse radius along y' in units of SD1.
    sd2_factor : float        Ellipse radius along x' in units of SD2.
    """
    rri = as_signal(intervals, "intervals", min_length=3)
    x_rot, y_rot = rotate_pairs(rri)

    sd1 = float(np.std(y_rot, ddof=1))
    sd2 = float(np.std(x_rot, ddof=1))

    geometry = PoincareGeometry(
        sd1=sd1,
        sd2=sd2,
        center=(float(np.mean(x_rot)), float(np.mean(y_rot))),
        radii=(sd2_factor * sd2, sd1_factor * sd1),
    )
    logger.debug("Poincaré — SD1=%.4f s, SD2=%.4f s (%d pairs)", sd1, sd2, x_rot.size)
    return geometry
