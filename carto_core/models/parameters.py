"""
Projection parameter set.

ProjectionParameters is the immutable value every projection is built
from. Angles are held in radians and lengths in metres; the mapping
ingestion helpers convert from (and back to) the degree based names
used by OGC well-known parameter sets.
"""

from dataclasses import dataclass, replace, fields
from typing import Dict, Mapping, Optional
import math

from .ellipsoid import Ellipsoid


# Parameter names given in degrees; everything else is metres or unitless
ANGULAR_PARAMETERS = frozenset({
    'central_meridian',
    'latitude_of_origin',
    'standard_parallel_1',
})

KNOWN_PARAMETERS = frozenset({
    'semi_major',
    'semi_minor',
    'inverse_flattening',
    'central_meridian',
    'latitude_of_origin',
    'scale_factor',
    'false_easting',
    'false_northing',
    'standard_parallel_1',
})


@dataclass(frozen=True)
class ProjectionParameters:
    """
    Validated parameter set of a map projection.

    Attributes:
        semi_major: Equatorial radius (metres)
        semi_minor: Polar radius (metres)
        central_meridian: Longitude of natural origin (radians)
        latitude_of_origin: Latitude of natural origin (radians)
        scale_factor: Scale factor at natural origin
        false_easting: Added to projected x (metres)
        false_northing: Added to projected y (metres)
        standard_parallel_1: Projection specific parallel (radians), if any

    Projections needing to pin a value (e.g. the polar stereographic
    origin) do so with replace() before construction; the instance
    handed to a projection is never modified afterwards.
    """
    semi_major: float
    semi_minor: float
    central_meridian: float = 0.0
    latitude_of_origin: float = 0.0
    scale_factor: float = 1.0
    false_easting: float = 0.0
    false_northing: float = 0.0
    standard_parallel_1: Optional[float] = None

    def __post_init__(self):
        """Validate parameter ranges."""
        if not (self.semi_major > 0 and self.semi_minor > 0):
            raise ValueError("semi_major and semi_minor must be positive")

        if self.semi_minor > self.semi_major:
            raise ValueError("semi_minor cannot exceed semi_major")

        if not (-math.pi <= self.central_meridian <= math.pi):
            raise ValueError(
                f"central_meridian out of range: {math.degrees(self.central_meridian)}"
            )

        if not (-math.pi / 2 <= self.latitude_of_origin <= math.pi / 2):
            raise ValueError(
                f"latitude_of_origin out of range: {math.degrees(self.latitude_of_origin)}"
            )

        if self.standard_parallel_1 is not None and \
                not (-math.pi / 2 <= self.standard_parallel_1 <= math.pi / 2):
            raise ValueError(
                f"standard_parallel_1 out of range: {math.degrees(self.standard_parallel_1)}"
            )

        if not self.scale_factor > 0:
            raise ValueError("scale_factor must be positive")

        if not (math.isfinite(self.false_easting) and math.isfinite(self.false_northing)):
            raise ValueError("false_easting and false_northing must be finite")

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def is_spherical(self) -> bool:
        return self.semi_major == self.semi_minor

    @property
    def excentricity_squared(self) -> float:
        ratio = self.semi_minor / self.semi_major
        return 1.0 - ratio * ratio

    @property
    def excentricity(self) -> float:
        return math.sqrt(self.excentricity_squared)

    @property
    def global_scale(self) -> float:
        return self.scale_factor * self.semi_major

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def replace(self, **changes) -> 'ProjectionParameters':
        """Return a copy with some fields changed (validated again)."""
        return replace(self, **changes)

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, float],
        ellipsoid: Optional[Ellipsoid] = None
    ) -> 'ProjectionParameters':
        """
        Build parameters from a flat name -> value mapping.

        Angles are read in degrees, lengths in metres. The axes come from
        the mapping (semi_major plus semi_minor or inverse_flattening) or,
        failing that, from the given ellipsoid.

        Args:
            values: Parameter values keyed by OGC name
            ellipsoid: Ellipsoid used when the mapping carries no axes

        Returns:
            ProjectionParameters instance

        Raises:
            ValueError: On unknown names, missing axes or out of range values
        """
        unknown = set(values) - KNOWN_PARAMETERS
        if unknown:
            raise ValueError(f"Unknown projection parameter(s): {', '.join(sorted(unknown))}")

        semi_major = values.get('semi_major')
        semi_minor = values.get('semi_minor')

        if semi_major is None:
            if ellipsoid is None:
                raise ValueError("semi_major is required when no ellipsoid is given")
            semi_major = ellipsoid.semi_major
            semi_minor = ellipsoid.semi_minor if semi_minor is None else semi_minor

        if semi_minor is None:
            inverse_flattening = values.get('inverse_flattening')
            if inverse_flattening is not None:
                semi_minor = Ellipsoid.from_flattening(
                    "", float(semi_major), float(inverse_flattening)
                ).semi_minor
            elif ellipsoid is not None:
                semi_minor = ellipsoid.semi_minor
            else:
                raise ValueError("semi_minor or inverse_flattening is required")

        kwargs = {
            'semi_major': float(semi_major),
            'semi_minor': float(semi_minor),
        }
        for name in ('central_meridian', 'latitude_of_origin', 'scale_factor',
                     'false_easting', 'false_northing', 'standard_parallel_1'):
            if values.get(name) is None:
                continue
            value = float(values[name])
            if name in ANGULAR_PARAMETERS:
                value = math.radians(value)
            kwargs[name] = value

        return cls(**kwargs)

    def to_mapping(self) -> Dict[str, float]:
        """Return the parameters as a name -> value mapping (degrees, metres)."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in ANGULAR_PARAMETERS:
                value = math.degrees(value)
            result[f.name] = value
        return result
