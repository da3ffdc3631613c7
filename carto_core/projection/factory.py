"""
Projection factory.

Maps operation method names to projection classes, builds the
parameter set for each method and interns the result so that
structurally equal projections are shared.
"""

from typing import Callable, Dict, Mapping, Optional, Union
import logging
import threading
import weakref

from ..models.parameters import ProjectionParameters
from .base import MapProjection
from .equidistant_cylindrical import EquidistantCylindrical, PlateCarree
from .mercator import Mercator
from .new_zealand_map_grid import NewZealandMapGrid, default_parameters as nzmg_parameters
from .orthographic import Orthographic
from .stereographic import ObliqueStereographic, Stereographic, aspect_of

logger = logging.getLogger(__name__)


ParameterInput = Union[ProjectionParameters, Mapping[str, float]]


def _mercator_1sp(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return Mercator(params.replace(standard_parallel_1=None), verify)


def _mercator_2sp(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    if params.standard_parallel_1 is None:
        params = params.replace(standard_parallel_1=0.0)
    return Mercator(params, verify)


def _equidistant_cylindrical(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return EquidistantCylindrical(params, verify)


def _plate_carree(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return PlateCarree(params, verify)


def _orthographic(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return Orthographic(params, verify)


def _stereographic(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return Stereographic(params.replace(standard_parallel_1=None), verify)


def _oblique_stereographic(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return ObliqueStereographic(params.replace(standard_parallel_1=None), verify)


def _polar_stereographic(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    if not aspect_of(params.latitude_of_origin).is_polar:
        raise ValueError("Polar Stereographic latitude_of_origin must be +-90")
    return Stereographic(params.replace(standard_parallel_1=None), verify)


def _polar_stereographic_b(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    if params.standard_parallel_1 is None:
        raise ValueError("Polar Stereographic (variant B) requires standard_parallel_1")
    return Stereographic(params.replace(scale_factor=1.0), verify)


def _new_zealand_map_grid(params: ProjectionParameters, verify: Optional[bool]) -> MapProjection:
    return NewZealandMapGrid(params, verify)


# Normalized method name -> builder
_METHODS: Dict[str, Callable[[ProjectionParameters, Optional[bool]], MapProjection]] = {
    'mercator_1sp': _mercator_1sp,
    'mercator_2sp': _mercator_2sp,
    'equidistant_cylindrical': _equidistant_cylindrical,
    'plate_carree': _plate_carree,
    'orthographic': _orthographic,
    'stereographic': _stereographic,
    'oblique_stereographic': _oblique_stereographic,
    'polar_stereographic': _polar_stereographic,
    'polar_stereographic_b': _polar_stereographic_b,
    'new_zealand_map_grid': _new_zealand_map_grid,
}

# Parameters merged under a mapping before ingestion
_METHOD_DEFAULTS: Dict[str, Dict[str, float]] = {
    'new_zealand_map_grid': nzmg_parameters().to_mapping(),
}

# (class, parameters, verify) -> projection
_pool: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
_pool_lock = threading.Lock()


def normalize_method_name(method: str) -> str:
    """Normalize an operation method name ("Mercator (1SP)" -> "mercator_1sp")."""
    name = method.strip().lower()
    for char in ' -()':
        name = name.replace(char, '_')
    return '_'.join(part for part in name.split('_') if part)


def available_methods() -> list:
    """Return the registered method names."""
    return sorted(_METHODS)


def create_projection(
    method: str,
    parameters: ParameterInput,
    *,
    verify: Optional[bool] = None,
    intern: bool = True
) -> MapProjection:
    """
    Create a projection from a method name and its parameters.

    Args:
        method: Operation method name, e.g. "Mercator_1SP" (case and
                separators are ignored)
        parameters: ProjectionParameters, or a mapping in degrees/metres
        verify: Enable the round-trip check (default: config.VERIFY_TRANSFORMS)
        intern: Return the shared instance for structurally equal projections

    Returns:
        MapProjection instance

    Raises:
        ValueError: On unknown method or invalid parameters
    """
    key = normalize_method_name(method)
    builder = _METHODS.get(key)
    if builder is None:
        raise ValueError(f"Unknown projection method: {method!r}")

    if not isinstance(parameters, ProjectionParameters):
        values = dict(_METHOD_DEFAULTS.get(key, {}))
        if 'semi_major' in parameters:
            # Axes given explicitly replace the default ellipsoid as a whole
            values.pop('semi_minor', None)
        values.update(parameters)
        parameters = ProjectionParameters.from_mapping(values)

    projection = builder(parameters, verify)
    logger.debug(f"Created {projection!r}")

    if intern:
        projection = intern_projection(projection)
    return projection


def intern_projection(projection: MapProjection) -> MapProjection:
    """
    Return the shared instance structurally equal to projection.

    The pool holds weak references only; unused projections are
    released normally.
    """
    # The key must not reference the projection or it would never be released
    key = (type(projection), projection.parameters, projection.verify)
    with _pool_lock:
        existing = _pool.get(key)
        if existing is not None:
            logger.debug(f"Reusing interned {type(existing).__name__}")
            return existing
        _pool[key] = projection
    return projection


__all__ = [
    'create_projection',
    'intern_projection',
    'available_methods',
    'normalize_method_name',
]
