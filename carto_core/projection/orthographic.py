"""
Orthographic projection (EPSG method 9840, spherical form).

Perspective view of the globe from infinite distance. Only the
hemisphere centred on the origin can be drawn. The general oblique
formulas cover the polar (latitude of origin +-90) and equatorial
(latitude of origin 0) aspects as special cases.
"""

from typing import Optional, Tuple
import math

from ..config import EPS
from ..models.parameters import ProjectionParameters
from .base import MapProjection
from .errors import PointOutsideDomainError, UnsupportedVariantError
from .formulas import clamped_asin


class Orthographic(MapProjection):
    """Spherical Orthographic projection centred on (central_meridian, latitude_of_origin)."""

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        if not parameters.is_spherical:
            raise UnsupportedVariantError("Orthographic: ellipsoidal not supported")

        super().__init__(parameters, verify)
        self._sin_phi0 = math.sin(parameters.latitude_of_origin)
        self._cos_phi0 = math.cos(parameters.latitude_of_origin)

    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        sinphi = math.sin(y)
        cosphi = math.cos(y)
        coslam = math.cos(x)

        # Cosine of the angular distance from the origin
        if self._sin_phi0 * sinphi + self._cos_phi0 * cosphi * coslam < -EPS:
            raise PointOutsideDomainError("Point outside hemisphere")

        return (
            cosphi * math.sin(x),
            self._cos_phi0 * sinphi - self._sin_phi0 * cosphi * coslam,
        )

    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        rho = math.hypot(x, y)
        sinc = rho
        if sinc > 1.0:
            if sinc - 1.0 > EPS:
                raise PointOutsideDomainError("Point outside hemisphere")
            sinc = 1.0

        if rho <= EPS:
            return 0.0, self.latitude_of_origin

        cosc = math.sqrt(1.0 - sinc * sinc)
        phi = clamped_asin(cosc * self._sin_phi0 + y * sinc * self._cos_phi0 / rho)
        lam = math.atan2(
            x * sinc,
            rho * self._cos_phi0 * cosc - y * self._sin_phi0 * sinc
        )
        return lam, phi
