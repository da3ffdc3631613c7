"""
Built-in projection definitions keyed by EPSG code.

A small table covering one coordinate reference system per supported
projection method, enough to run a ProjectionAuthorityFactory without
an external registry.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping

from ..models.ellipsoid import Ellipsoid, WGS84, INTERNATIONAL_1924, BESSEL_1841, SPHERE


@dataclass(frozen=True)
class ProjectionDefinition:
    """
    Recipe for building a projection.

    Attributes:
        method: Projection method name understood by create_projection()
        parameters: Parameter values in degrees/metres
        name: Human readable name of the coordinate reference system
    """
    method: str
    parameters: Mapping[str, float] = field(default_factory=dict)
    name: str = ""


def _axes(ellipsoid: Ellipsoid) -> Dict[str, float]:
    return {'semi_major': ellipsoid.semi_major, 'semi_minor': ellipsoid.semi_minor}


BUILTIN_DEFINITIONS: Dict[str, ProjectionDefinition] = {
    '3395': ProjectionDefinition(
        method='Mercator_1SP',
        parameters={**_axes(WGS84), 'central_meridian': 0.0, 'scale_factor': 1.0},
        name='WGS 84 / World Mercator',
    ),
    '4088': ProjectionDefinition(
        method='Equidistant_Cylindrical',
        parameters={**_axes(SPHERE), 'standard_parallel_1': 0.0},
        name='World Equidistant Cylindrical (Sphere)',
    ),
    '27200': ProjectionDefinition(
        method='New_Zealand_Map_Grid',
        parameters={
            **_axes(INTERNATIONAL_1924),
            'central_meridian': 173.0,
            'latitude_of_origin': -41.0,
            'false_easting': 2510000.0,
            'false_northing': 6023150.0,
        },
        name='NZGD49 / New Zealand Map Grid',
    ),
    '32661': ProjectionDefinition(
        method='Polar_Stereographic',
        parameters={
            **_axes(WGS84),
            'latitude_of_origin': 90.0,
            'central_meridian': 0.0,
            'scale_factor': 0.994,
            'false_easting': 2000000.0,
            'false_northing': 2000000.0,
        },
        name='WGS 84 / UPS North (N,E)',
    ),
    '3031': ProjectionDefinition(
        method='Polar_Stereographic_B',
        parameters={**_axes(WGS84), 'standard_parallel_1': -71.0, 'central_meridian': 0.0},
        name='WGS 84 / Antarctic Polar Stereographic',
    ),
    '28992': ProjectionDefinition(
        method='Oblique_Stereographic',
        parameters={
            **_axes(BESSEL_1841),
            'latitude_of_origin': 52.156160556,
            'central_meridian': 5.387638889,
            'scale_factor': 0.9999079,
            'false_easting': 155000.0,
            'false_northing': 463000.0,
        },
        name='Amersfoort / RD New',
    ),
}
