"""
Equidistant Cylindrical projection (EPSG method 1028, spherical).

Meridians and parallels are equally spaced straight lines. With the
standard parallel at the equator this is the Plate Carree.
"""

from typing import Optional, Tuple
import math

from ..config import EPS
from ..models.parameters import ProjectionParameters
from .base import MapProjection
from .errors import UnsupportedVariantError
from .formulas import HALF_PI


class EquidistantCylindrical(MapProjection):
    """
    Spherical Equidistant Cylindrical projection.

    standard_parallel_1 (default 0) is the parallel of true scale.
    """

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        if not parameters.is_spherical:
            raise UnsupportedVariantError(
                "Equidistant Cylindrical: ellipsoidal not supported"
            )

        if parameters.standard_parallel_1 is None:
            parameters = parameters.replace(standard_parallel_1=0.0)
        if abs(parameters.standard_parallel_1) >= HALF_PI - EPS:
            raise ValueError("Equidistant Cylindrical standard parallel cannot be a pole")

        super().__init__(parameters, verify)
        self._cos_standard_parallel = math.cos(parameters.standard_parallel_1)

    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        return x * self._cos_standard_parallel, y

    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        return x / self._cos_standard_parallel, y


class PlateCarree(EquidistantCylindrical):
    """Equidistant Cylindrical with the standard parallel fixed at the equator."""

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        super().__init__(parameters.replace(standard_parallel_1=0.0), verify)
