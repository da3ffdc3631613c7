"""
Shared formulas for conformal projections.

Functions follow Snyder, "Map Projections - A Working Manual"
(USGS Professional Paper 1395). All angles are in radians.
"""

import math

from ..config import TOL, MAX_ITER
from .errors import NoConvergenceError

HALF_PI = math.pi / 2
TWO_PI = 2.0 * math.pi


def cphi2(ts: float, excentricity: float) -> float:
    """
    Latitude from the isometric colatitude ts (Snyder 7-9).

    Fixed-point iteration starting from the spherical solution.

    Args:
        ts: Isometric colatitude, as returned by tsfn()
        excentricity: Ellipsoid excentricity

    Returns:
        Latitude in radians (NaN if ts is NaN)

    Raises:
        NoConvergenceError: If no convergence after MAX_ITER iterations
    """
    if math.isnan(ts):
        return math.nan

    half_e = 0.5 * excentricity
    phi = HALF_PI - 2.0 * math.atan(ts)
    for _ in range(MAX_ITER):
        con = excentricity * math.sin(phi)
        dphi = HALF_PI - 2.0 * math.atan(ts * ((1.0 - con) / (1.0 + con)) ** half_e) - phi
        phi += dphi
        if abs(dphi) <= TOL:
            return phi

    raise NoConvergenceError(f"Latitude did not converge after {MAX_ITER} iterations (ts={ts})")


def msfn(sinphi: float, cosphi: float, excentricity_squared: float) -> float:
    """
    Radius of the parallel on a unit ellipsoid (Snyder 14-15).

    Args:
        sinphi: Sine of the latitude
        cosphi: Cosine of the latitude
        excentricity_squared: Ellipsoid excentricity squared
    """
    return cosphi / math.sqrt(1.0 - (sinphi * sinphi) * excentricity_squared)


def tsfn(phi: float, sinphi: float, excentricity: float) -> float:
    """
    Isometric colatitude function (Snyder 15-9 and 7-7).

    Args:
        phi: Latitude
        sinphi: Sine of the latitude
        excentricity: Ellipsoid excentricity
    """
    esinphi = excentricity * sinphi
    # (1 - e sin) / (1 + e sin) stays positive for e < 1
    return math.tan(0.5 * (HALF_PI - phi)) / \
        ((1.0 - esinphi) / (1.0 + esinphi)) ** (0.5 * excentricity)


def ssfn(phi: float, sinphi: float, excentricity: float) -> float:
    """
    Part of the conformal latitude function (Snyder 3-1).

    The conformal latitude is 2 * atan(ssfn(phi, sin(phi), e)) - pi/2.

    Args:
        phi: Latitude
        sinphi: Sine of the latitude
        excentricity: Ellipsoid excentricity
    """
    esinphi = excentricity * sinphi
    return math.tan(0.25 * math.pi + 0.5 * phi) * \
        ((1.0 - esinphi) / (1.0 + esinphi)) ** (0.5 * excentricity)


def conformal_latitude(phi: float, excentricity: float) -> float:
    """Conformal latitude of a geodetic latitude (Snyder 3-1)."""
    return 2.0 * math.atan(ssfn(phi, math.sin(phi), excentricity)) - HALF_PI


def roll_longitude(x: float) -> float:
    """
    Wrap a longitude into [-pi, pi].

    Args:
        x: Longitude in radians

    Returns:
        Equivalent longitude in [-pi, pi]
    """
    return x - TWO_PI * math.floor(x / TWO_PI + 0.5)


def orthodromic_distance(lon1: float, lat1: float, lon2: float, lat2: float, radius: float) -> float:
    """
    Great circle distance between two geographic points (haversine form).

    Args:
        lon1, lat1: First point in degrees
        lon2, lat2: Second point in degrees
        radius: Sphere radius in metres

    Returns:
        Distance in metres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlam = math.radians(abs(lon2 - lon1) % 360.0)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    h = min(1.0, max(0.0, h))
    return 2.0 * radius * math.asin(math.sqrt(h))


def clamped_asin(value: float) -> float:
    """
    Arc sine tolerant of rounding just outside [-1, 1].

    NaN is returned unchanged.
    """
    if value > 1.0:
        return HALF_PI
    if value < -1.0:
        return -HALF_PI
    return math.asin(value)
