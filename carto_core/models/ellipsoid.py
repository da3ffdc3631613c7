"""
Reference ellipsoids.

Only the two axis lengths are needed by the projection engine; the
derived quantities are exposed for convenience.
"""

from dataclasses import dataclass
import math


@dataclass(frozen=True)
class Ellipsoid:
    """
    Ellipsoid of revolution.

    Attributes:
        name: Human readable name
        semi_major: Equatorial radius (metres)
        semi_minor: Polar radius (metres)
    """
    name: str
    semi_major: float
    semi_minor: float

    def __post_init__(self):
        if not (self.semi_major > 0 and self.semi_minor > 0):
            raise ValueError(f"{self.name}: axis lengths must be positive")
        if self.semi_minor > self.semi_major:
            raise ValueError(f"{self.name}: semi_minor cannot exceed semi_major")

    @classmethod
    def from_flattening(cls, name: str, semi_major: float, inverse_flattening: float) -> 'Ellipsoid':
        """Create an ellipsoid from its semi-major axis and 1/f."""
        if math.isinf(inverse_flattening):
            return cls(name, semi_major, semi_major)
        return cls(name, semi_major, semi_major * (1.0 - 1.0 / inverse_flattening))

    @classmethod
    def sphere(cls, name: str, radius: float) -> 'Ellipsoid':
        """Create a sphere."""
        return cls(name, radius, radius)

    @property
    def is_sphere(self) -> bool:
        return self.semi_major == self.semi_minor

    @property
    def flattening(self) -> float:
        return (self.semi_major - self.semi_minor) / self.semi_major

    @property
    def excentricity_squared(self) -> float:
        ratio = self.semi_minor / self.semi_major
        return 1.0 - ratio * ratio


WGS84 = Ellipsoid.from_flattening("WGS 84", 6378137.0, 298.257223563)
GRS80 = Ellipsoid.from_flattening("GRS 1980", 6378137.0, 298.257222101)
INTERNATIONAL_1924 = Ellipsoid.from_flattening("International 1924", 6378388.0, 297.0)
BESSEL_1841 = Ellipsoid.from_flattening("Bessel 1841", 6377397.155, 299.1528128)

# Authalic sphere of WGS 84 as used by EPSG
SPHERE = Ellipsoid.sphere("Sphere", 6371007.0)
