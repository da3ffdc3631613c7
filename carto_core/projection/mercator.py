"""
Mercator projection (EPSG methods 9804 and 9805).

Cylindrical conformal projection. Meridians are equally spaced
vertical lines, parallels are spaced so that angles are preserved,
which sends the poles to infinity.
"""

from typing import Optional, Tuple
import math

from ..config import EPS
from ..models.parameters import ProjectionParameters
from .base import MapProjection
from .errors import PointOutsideDomainError
from .formulas import HALF_PI, cphi2, msfn, tsfn


class Mercator(MapProjection):
    """
    Mercator projection, spherical or ellipsoidal.

    With standard_parallel_1 set the projection is the two standard
    parallel variant: the scale factor is derived from the parallel and
    any given scale_factor is replaced. The latitude of origin is
    always 0.
    """

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        changes = {}
        if parameters.latitude_of_origin != 0:
            changes['latitude_of_origin'] = 0.0

        standard_parallel = parameters.standard_parallel_1
        if standard_parallel is not None:
            # Both parallels are symmetric about the equator
            standard_parallel = abs(standard_parallel)
            if standard_parallel >= HALF_PI - EPS:
                raise ValueError("Mercator standard parallel cannot be a pole")

            if parameters.is_spherical:
                scale = math.cos(standard_parallel)
            else:
                scale = msfn(
                    math.sin(standard_parallel),
                    math.cos(standard_parallel),
                    parameters.excentricity_squared
                )
            changes['scale_factor'] = scale

        if changes:
            parameters = parameters.replace(**changes)

        super().__init__(parameters, verify)

    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if abs(y) > HALF_PI - EPS:
            raise PointOutsideDomainError(f"Pole cannot be projected: {math.degrees(y)}")

        if self.is_spherical:
            return x, math.log(math.tan(math.pi / 4 + 0.5 * y))
        return x, -math.log(tsfn(y, math.sin(y), self.excentricity))

    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        if self.is_spherical:
            # Gudermannian in its overflow-free form
            return x, 2.0 * math.atan(math.tanh(0.5 * y))

        try:
            ts = math.exp(-y)
        except OverflowError:
            ts = math.inf
        return x, cphi2(ts, self.excentricity)
