"""
Data models for carto_core.
"""

from .geometry import Point2D
from .ellipsoid import Ellipsoid, WGS84, GRS80, INTERNATIONAL_1924, BESSEL_1841, SPHERE
from .parameters import ProjectionParameters

__all__ = [
    'Point2D',
    'Ellipsoid', 'WGS84', 'GRS80', 'INTERNATIONAL_1924', 'BESSEL_1841', 'SPHERE',
    'ProjectionParameters',
]
