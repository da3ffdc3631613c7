"""
Stereographic projection.

Azimuthal conformal projection from the point antipodal to the origin.
The aspect is chosen once from the latitude of origin:

- equatorial and oblique: spherical formulas (Snyder 21-2 to 21-4) and
  ellipsoidal formulas through the conformal latitude (Snyder 21-24 to
  21-38)
- polar: spherical and ellipsoidal formulas (Snyder 21-33, 21-39),
  either with the pole as natural origin (variant A) or with a
  latitude of true scale given as standard_parallel_1 (variant B)

ObliqueStereographic is the EPSG "Oblique Stereographic" method (9809),
a double projection through the Gauss conformal sphere.
"""

from enum import Enum
from typing import Optional, Tuple
import logging
import math

from ..config import EPS, GAUSS_TOL, MAX_ITER, TOL
from ..models.parameters import ProjectionParameters
from .base import MapProjection
from .errors import NoConvergenceError, PointOutsideDomainError
from .formulas import HALF_PI, clamped_asin, conformal_latitude, cphi2, msfn, tsfn

logger = logging.getLogger(__name__)

QUARTER_PI = 0.25 * math.pi


class Aspect(Enum):
    """Position of the projection origin."""
    NORTH_POLE = "north_pole"
    SOUTH_POLE = "south_pole"
    EQUATORIAL = "equatorial"
    OBLIQUE = "oblique"

    @property
    def is_polar(self) -> bool:
        return self in (Aspect.NORTH_POLE, Aspect.SOUTH_POLE)


def aspect_of(latitude_of_origin: float) -> Aspect:
    """
    Classify a latitude of origin (radians).

    Args:
        latitude_of_origin: Latitude of the projection origin

    Returns:
        Aspect of a stereographic projection centred there
    """
    if abs(latitude_of_origin - HALF_PI) < EPS:
        return Aspect.NORTH_POLE
    if abs(latitude_of_origin + HALF_PI) < EPS:
        return Aspect.SOUTH_POLE
    if abs(latitude_of_origin) < EPS:
        return Aspect.EQUATORIAL
    return Aspect.OBLIQUE


class Stereographic(MapProjection):
    """
    Stereographic projection in any aspect.

    When standard_parallel_1 is set the projection is polar with that
    latitude of true scale; its sign selects the pole and the latitude
    of origin is pinned to it.

    Attributes:
        aspect: Aspect selected from the latitude of origin
        k0: Scale constant of the formulas (2 on a sphere or when true
            scale is at the pole)
    """

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        standard_parallel = parameters.standard_parallel_1
        if standard_parallel is not None:
            pole = math.copysign(HALF_PI, standard_parallel)
            if parameters.latitude_of_origin != pole:
                parameters = parameters.replace(latitude_of_origin=pole)

        self.aspect = aspect_of(parameters.latitude_of_origin)
        if self.aspect == Aspect.EQUATORIAL and parameters.latitude_of_origin != 0:
            parameters = parameters.replace(latitude_of_origin=0.0)

        super().__init__(parameters, verify)

        self._south = self.aspect == Aspect.SOUTH_POLE
        self._sin_phi0 = math.sin(parameters.latitude_of_origin)
        self._cos_phi0 = math.cos(parameters.latitude_of_origin)

        # Conformal latitude of the origin, ellipsoidal equatorial/oblique only
        chi1 = 0.0
        if not self.aspect.is_polar and not self.is_spherical:
            chi1 = conformal_latitude(parameters.latitude_of_origin, self.excentricity)
        self._sin_chi1 = math.sin(chi1)
        self._cos_chi1 = math.cos(chi1)

        self.k0 = self._scale(standard_parallel)

        logger.debug(f"{type(self).__name__} aspect={self.aspect.value} k0={self.k0}")

    def _scale(self, standard_parallel: Optional[float]) -> float:
        if not self.aspect.is_polar:
            if self.is_spherical:
                return 2.0
            return 2.0 * msfn(self._sin_phi0, self._cos_phi0, self.excentricity_squared)

        if standard_parallel is None:
            standard_parallel = HALF_PI
        standard_parallel = abs(standard_parallel)

        if self.is_spherical:
            if abs(standard_parallel - HALF_PI) >= EPS:
                return 1.0 + math.sin(standard_parallel)
            return 2.0

        e = self.excentricity
        if abs(standard_parallel - HALF_PI) >= EPS:
            sinphi = math.sin(standard_parallel)
            return msfn(sinphi, math.cos(standard_parallel), self.excentricity_squared) / \
                tsfn(standard_parallel, sinphi, e)
        return 2.0 / math.sqrt((1 + e) ** (1 + e) * (1 - e) ** (1 - e))

    # -------------------------------------------------------------------------
    # Forward
    # -------------------------------------------------------------------------

    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if not self.aspect.is_polar:
            if self.is_spherical:
                return self._forward_oblique(x, y)
            return self._forward_oblique_ellipsoidal(x, y)
        if self.is_spherical:
            return self._forward_polar_spherical(x, y)
        return self._forward_polar_ellipsoidal(x, y)

    def _forward_oblique(self, x: float, y: float) -> Tuple[float, float]:
        sinphi = math.sin(y)
        cosphi = math.cos(y)
        coslam = math.cos(x)

        denominator = 1.0 + self._sin_phi0 * sinphi + self._cos_phi0 * cosphi * coslam
        if denominator < EPS:
            raise PointOutsideDomainError("Value tends toward infinity")

        a = 2.0 / denominator
        return (
            a * cosphi * math.sin(x),
            a * (self._cos_phi0 * sinphi - self._sin_phi0 * cosphi * coslam),
        )

    def _forward_oblique_ellipsoidal(self, x: float, y: float) -> Tuple[float, float]:
        chi = conformal_latitude(y, self.excentricity)
        sinchi = math.sin(chi)
        coschi = math.cos(chi)
        coschi_coslam = coschi * math.cos(x)

        denominator = 1.0 + self._sin_chi1 * sinchi + self._cos_chi1 * coschi_coslam
        if denominator < EPS:
            raise PointOutsideDomainError("Value tends toward infinity")

        a = self.k0 / (self._cos_chi1 * denominator)
        return (
            a * coschi * math.sin(x),
            a * (self._cos_chi1 * sinchi - self._sin_chi1 * coschi_coslam),
        )

    def _forward_polar_spherical(self, x: float, y: float) -> Tuple[float, float]:
        sinphi = math.sin(y)
        cosphi = math.cos(y)

        if self._south:
            if abs(1.0 - sinphi) < EPS:
                raise PointOutsideDomainError("Value tends toward infinity")
            f = self.k0 * cosphi / (1.0 - sinphi)
            return f * math.sin(x), f * math.cos(x)

        if abs(1.0 + sinphi) < EPS:
            raise PointOutsideDomainError("Value tends toward infinity")
        f = self.k0 * cosphi / (1.0 + sinphi)
        return f * math.sin(x), -f * math.cos(x)

    def _forward_polar_ellipsoidal(self, x: float, y: float) -> Tuple[float, float]:
        sinphi = math.sin(y)

        if self._south:
            if abs(1.0 - sinphi) < EPS:
                raise PointOutsideDomainError("Value tends toward infinity")
            rho = self.k0 * tsfn(-y, -sinphi, self.excentricity)
            return rho * math.sin(x), rho * math.cos(x)

        if abs(1.0 + sinphi) < EPS:
            raise PointOutsideDomainError("Value tends toward infinity")
        rho = self.k0 * tsfn(y, sinphi, self.excentricity)
        return rho * math.sin(x), -rho * math.cos(x)

    # -------------------------------------------------------------------------
    # Inverse
    # -------------------------------------------------------------------------

    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if not self.aspect.is_polar:
            if self.is_spherical:
                return self._inverse_oblique(x, y)
            return self._inverse_oblique_ellipsoidal(x, y)
        if self.is_spherical:
            return self._inverse_polar_spherical(x, y)
        return self._inverse_polar_ellipsoidal(x, y)

    def _inverse_oblique(self, x: float, y: float) -> Tuple[float, float]:
        rho = math.hypot(x, y)
        if rho <= EPS:
            return 0.0, self.latitude_of_origin

        c = 2.0 * math.atan(0.5 * rho)
        sinc = math.sin(c)
        cosc = math.cos(c)

        phi = clamped_asin(cosc * self._sin_phi0 + y * sinc * self._cos_phi0 / rho)
        lam = math.atan2(
            x * sinc,
            rho * self._cos_phi0 * cosc - y * self._sin_phi0 * sinc
        )
        return lam, phi

    def _inverse_oblique_ellipsoidal(self, x: float, y: float) -> Tuple[float, float]:
        rho = math.hypot(x, y)
        if rho < EPS:
            return 0.0, self.latitude_of_origin

        ce = 2.0 * math.atan2(rho * self._cos_chi1, self.k0)
        since = math.sin(ce)
        cosce = math.cos(ce)

        chi = clamped_asin(cosce * self._sin_chi1 + y * since * self._cos_chi1 / rho)
        lam = math.atan2(
            x * since,
            rho * self._cos_chi1 * cosce - y * self._sin_chi1 * since
        )
        # Geodetic latitude from the conformal one (Snyder 3-4)
        return lam, cphi2(math.tan(QUARTER_PI - 0.5 * chi), self.excentricity)

    def _inverse_polar_spherical(self, x: float, y: float) -> Tuple[float, float]:
        rho = math.hypot(x, y)
        if not self._south:
            y = -y

        if rho < EPS:
            return 0.0, self.latitude_of_origin

        cosc = math.cos(2.0 * math.atan(rho / self.k0))
        lam = math.atan2(x, y)
        phi = clamped_asin(cosc)
        return lam, -phi if self._south else phi

    def _inverse_polar_ellipsoidal(self, x: float, y: float) -> Tuple[float, float]:
        rho = math.hypot(x, y)
        if self._south:
            y = -y

        phi = cphi2(rho / self.k0, self.excentricity)
        lam = 0.0 if abs(rho) < TOL else math.atan2(x, -y)
        return lam, -phi if self._south else phi

    def _identity(self) -> tuple:
        return super()._identity() + (self.k0,)


def _srat(esinphi: float, exponent: float) -> float:
    return ((1.0 - esinphi) / (1.0 + esinphi)) ** exponent


class ObliqueStereographic(Stereographic):
    """
    Oblique Stereographic (EPSG method 9809).

    The ellipsoid is first mapped conformally onto the Gauss sphere,
    which is then projected stereographically. Formulas follow the
    "Oblique Stereographic Alternative" of libproj4 (PJ_sterea.c,
    pj_gauss.c) and IOGP Guidance Note 7-2. Polar origins use the
    polar formulas of Stereographic.

    Attributes:
        n: Longitude ratio between the Gauss sphere and the ellipsoid
    """

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        super().__init__(parameters, verify)

        self.n = 1.0
        if self.aspect.is_polar:
            return

        phi0 = self.latitude_of_origin
        e = self.excentricity
        e2 = self.excentricity_squared
        sinphi0 = math.sin(phi0)
        cos2phi0 = math.cos(phi0) ** 2

        # Diameter of the conformal sphere on a unit ellipsoid
        self._r2 = 2.0 * math.sqrt(1.0 - e2) / (1.0 - e2 * sinphi0 * sinphi0)
        self.n = math.sqrt(1.0 + e2 * cos2phi0 * cos2phi0 / (1.0 - e2))

        self._chi0 = math.asin(sinphi0 / self.n)
        self._sin_chi0 = math.sin(self._chi0)
        self._cos_chi0 = math.cos(self._chi0)

        self._ratexp = 0.5 * self.n * e
        self._k = math.tan(0.5 * self._chi0 + QUARTER_PI) / (
            math.tan(0.5 * phi0 + QUARTER_PI) ** self.n * _srat(e * sinphi0, self._ratexp)
        )

    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if self.aspect.is_polar:
            return super().transform_normalized(x, y)

        # Latitude and longitude on the Gauss sphere
        t = max(0.0, math.tan(0.5 * y + QUARTER_PI))
        chi = 2.0 * math.atan(
            self._k * t ** self.n * _srat(self.excentricity * math.sin(y), self._ratexp)
        ) - HALF_PI
        lam = self.n * x

        sinchi = math.sin(chi)
        coschi = math.cos(chi)
        coslam = math.cos(lam)

        denominator = 1.0 + self._sin_chi0 * sinchi + self._cos_chi0 * coschi * coslam
        if denominator < EPS:
            raise PointOutsideDomainError("Value tends toward infinity")

        k = self._r2 / denominator
        return (
            k * coschi * math.sin(lam),
            k * (self._cos_chi0 * sinchi - self._sin_chi0 * coschi * coslam),
        )

    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if self.aspect.is_polar:
            return super().inverse_transform_normalized(x, y)

        rho = math.hypot(x, y)
        if rho < EPS:
            lam = 0.0
            chi = self._chi0
        else:
            ce = 2.0 * math.atan2(rho, self._r2)
            sinc = math.sin(ce)
            cosc = math.cos(ce)
            lam = math.atan2(x * sinc, rho * self._cos_chi0 * cosc - y * self._sin_chi0 * sinc)
            chi = clamped_asin(cosc * self._sin_chi0 + y * sinc * self._cos_chi0 / rho)

        lam /= self.n
        num = (max(0.0, math.tan(0.5 * chi + QUARTER_PI)) / self._k) ** (1.0 / self.n)

        half_e = -0.5 * self.excentricity
        phi = chi
        for _ in range(MAX_ITER):
            next_phi = 2.0 * math.atan(num * _srat(self.excentricity * math.sin(phi), half_e)) - HALF_PI
            if abs(next_phi - phi) < GAUSS_TOL:
                return lam, next_phi
            phi = next_phi

        raise NoConvergenceError(f"Latitude did not converge after {MAX_ITER} iterations")

    def _identity(self) -> tuple:
        return super()._identity() + (self.n,)
