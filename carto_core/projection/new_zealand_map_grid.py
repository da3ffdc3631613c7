"""
New Zealand Map Grid (EPSG method 9811).

Conformal grid defined by complex polynomial series rather than a
closed form. Accuracy of the series is about a millimetre within
New Zealand; the inverse is the C series followed by Newton-Raphson
refinement of the B series.

Reference:
    Land Information New Zealand, "New Zealand Map Grid" (LINZS25002)
"""

from typing import Optional, Tuple
import math

from ..config import NZMG_REFINEMENT_ITERATIONS, NZMG_ASSERTION_TOLERANCE
from ..models.ellipsoid import INTERNATIONAL_1924
from ..models.parameters import ProjectionParameters
from .base import MapProjection


# Latitude differences are in units of 10^5 arc-seconds
SECONDS_SCALE = 3600.0e-5

# Isometric latitude from latitude difference
A = (
    0.6399175073,
    -0.1358797613,
    0.063294409,
    -0.02526853,
    0.0117879,
    -0.0055161,
    0.0026906,
    -0.001333,
    0.00067,
    -0.00034,
)

# Forward complex series
B = (
    complex(0.7557853228, 0.0),
    complex(0.249204646, 0.003371507),
    complex(-0.001541739, 0.041058560),
    complex(-0.10162907, 0.01727609),
    complex(-0.26623489, -0.36249218),
    complex(-0.6870983, -1.1651967),
)

# Inverse complex series
C = (
    complex(1.3231270439, 0.0),
    complex(-0.577245789, -0.007809598),
    complex(0.508307513, -0.112208952),
    complex(-0.15094762, 0.18200602),
    complex(1.01418179, 1.64497696),
    complex(1.9660549, 2.5127645),
)

# Latitude difference from isometric latitude
D = (
    1.5627014243,
    0.5185406398,
    -0.03333098,
    -0.1052906,
    -0.0368594,
    0.007317,
    0.01220,
    0.00394,
    -0.0013,
)


def _series(coefficients, value):
    """Evaluate sum(c[n] * value^(n+1)) by Horner's rule (real or complex)."""
    total = 0
    for c in reversed(coefficients):
        total = total * value + c
    return total * value


def default_parameters() -> ProjectionParameters:
    """Parameters of the official grid: International 1924, origin 173E 41S."""
    return ProjectionParameters(
        semi_major=INTERNATIONAL_1924.semi_major,
        semi_minor=INTERNATIONAL_1924.semi_minor,
        central_meridian=math.radians(173.0),
        latitude_of_origin=math.radians(-41.0),
        scale_factor=1.0,
        false_easting=2510000.0,
        false_northing=6023150.0,
    )


class NewZealandMapGrid(MapProjection):
    """New Zealand Map Grid; parameters default to the official grid."""

    def __init__(self, parameters: Optional[ProjectionParameters] = None, verify: Optional[bool] = None):
        super().__init__(parameters or default_parameters(), verify)

    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if math.isnan(x) or math.isnan(y):
            return math.nan, math.nan

        dphi = math.degrees(y - self.latitude_of_origin) * SECONDS_SCALE
        dpsi = _series(A, dphi)
        z = _series(B, complex(dpsi, x))
        return z.imag, z.real

    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if math.isnan(x) or math.isnan(y):
            return math.nan, math.nan

        z = complex(y, x)
        theta = _series(C, z)

        for _ in range(NZMG_REFINEMENT_ITERATIONS):
            numerator = 0j
            denominator = 0j
            power = 1 + 0j
            for n, b in enumerate(B, start=1):
                denominator += n * b * power
                power *= theta
                numerator += (n - 1) * b * power
            theta = (z + numerator) / denominator

        dphi = _series(D, theta.real)
        return theta.imag, self.latitude_of_origin + math.radians(dphi / SECONDS_SCALE)

    def tolerance_for_assertions(self, longitude: float, latitude: float) -> float:
        return NZMG_ASSERTION_TOLERANCE
