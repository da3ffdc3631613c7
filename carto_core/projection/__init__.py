"""
Projection module for carto_core.

Map projections between geographic coordinates (degrees) and projected
coordinates (metres), built on the shared MapProjection transform core.
"""

from .base import MathTransform2D, MapProjection, InverseProjection
from .errors import (
    ProjectionError,
    PointOutsideEnvelopeError,
    PointOutsideDomainError,
    NoConvergenceError,
    UnsupportedVariantError,
    ProjectionCheckError,
)
from .mercator import Mercator
from .equidistant_cylindrical import EquidistantCylindrical, PlateCarree
from .orthographic import Orthographic
from .stereographic import Stereographic, ObliqueStereographic, Aspect
from .new_zealand_map_grid import NewZealandMapGrid
from .factory import create_projection, intern_projection, available_methods

__all__ = [
    'MathTransform2D',
    'MapProjection',
    'InverseProjection',
    'ProjectionError',
    'PointOutsideEnvelopeError',
    'PointOutsideDomainError',
    'NoConvergenceError',
    'UnsupportedVariantError',
    'ProjectionCheckError',
    'Mercator',
    'EquidistantCylindrical',
    'PlateCarree',
    'Orthographic',
    'Stereographic',
    'ObliqueStereographic',
    'Aspect',
    'NewZealandMapGrid',
    'create_projection',
    'intern_projection',
    'available_methods',
]
