"""
Core geometry types for carto_core.

Provides the Point2D value type used by the single-point transform API.
"""

from dataclasses import dataclass
import math


@dataclass(frozen=True, slots=True)
class Point2D:
    """2D coordinate pair (degrees for geographic, metres for projected)."""
    x: float
    y: float

    def distance_to(self, other: 'Point2D') -> float:
        """Euclidean distance to another point."""
        dx = self.x - other.x
        dy = self.y - other.y
        return math.sqrt(dx * dx + dy * dy)

    def is_nan(self) -> bool:
        """True if either ordinate is NaN."""
        return math.isnan(self.x) or math.isnan(self.y)

    def __iter__(self):
        """Unpack as (x, y)."""
        yield self.x
        yield self.y
