"""
Transform core shared by every map projection.

MapProjection owns everything that is not projection specific:
envelope validation, degree/radian conversion, central meridian
rotation with longitude wraparound, global scale, false origin and
the batch transforms over flat coordinate buffers. Subclasses only
implement the normalized pair (unit ellipsoid, no offsets).
"""

from abc import ABC, abstractmethod
from typing import Any, MutableSequence, Optional, Sequence, Tuple
import logging
import math

import numpy as np

from ..config import (
    EPS,
    LONGITUDE_MIN, LONGITUDE_MAX,
    LATITUDE_MIN, LATITUDE_MAX,
    VERIFY_TRANSFORMS,
    FAR_FROM_ORIGIN_DEG,
    EDGE_LONGITUDE_DEG, EDGE_LATITUDE_DEG,
    TOLERANCE_FAR, TOLERANCE_EDGE, TOLERANCE_NEAR,
)
from ..models.geometry import Point2D
from ..models.parameters import ProjectionParameters
from .errors import ProjectionError, PointOutsideEnvelopeError, ProjectionCheckError
from .formulas import roll_longitude, orthodromic_distance

logger = logging.getLogger(__name__)


class MathTransform2D(ABC):
    """
    Abstract two-dimensional coordinate transform.

    Implementations provide the single point transform; the point,
    flat buffer and (N, 2) array variants are derived from it.
    """

    @abstractmethod
    def transform(self, x: float, y: float) -> Tuple[float, float]:
        """
        Transform a single coordinate pair.

        Raises:
            ProjectionError: If the point cannot be transformed
        """
        pass

    @abstractmethod
    def inverse_transform(self) -> 'MathTransform2D':
        """Return the transform going the opposite way."""
        pass

    def transform_point(self, point: Point2D) -> Point2D:
        """Transform a Point2D, returning a new Point2D."""
        x, y = self.transform(point.x, point.y)
        return Point2D(x, y)

    def transform_array(
        self,
        src: Sequence[float],
        src_offset: int,
        dst: MutableSequence[float],
        dst_offset: int,
        num_pts: int
    ) -> None:
        """
        Transform interleaved (x, y) pairs from src into dst.

        src and dst may be the same buffer (list or numpy array of
        float64 or float32) with overlapping ranges; when the destination
        starts inside the source range the points are processed from
        last to first so no source value is overwritten before it is read.

        A point that fails, including one rejected by the round-trip
        check, is written as (NaN, NaN) and the remaining points are
        still transformed. Once the whole batch is done the first error
        met is raised, so callers must check the output for NaN to find
        the failing points.

        Args:
            src: Source buffer
            src_offset: Index of the first source ordinate
            dst: Destination buffer
            dst_offset: Index of the first destination ordinate
            num_pts: Number of points to transform

        Raises:
            ProjectionError: First per-point failure, after the batch
            ProjectionCheckError: If the first failure was a round-trip check
        """
        if num_pts <= 0:
            return

        reverse = (src is dst and src_offset < dst_offset < src_offset + 2 * num_pts)
        indices = range(num_pts - 1, -1, -1) if reverse else range(num_pts)

        first_error: Optional[Exception] = None
        failures = 0
        for i in indices:
            s = src_offset + 2 * i
            d = dst_offset + 2 * i
            try:
                x, y = self.transform(float(src[s]), float(src[s + 1]))
            except (ProjectionError, ProjectionCheckError) as e:
                x = y = math.nan
                failures += 1
                if first_error is None:
                    first_error = e
            dst[d] = x
            dst[d + 1] = y

        if first_error is not None:
            logger.debug(f"{failures}/{num_pts} points failed in batch transform: {first_error}")
            raise first_error

    def transform_points(self, coords: Any, ignore_errors: bool = False) -> np.ndarray:
        """
        Transform an (N, 2) array-like of coordinates.

        Args:
            coords: Anything numpy can turn into an (N, 2) float array
            ignore_errors: If True, return failing points as NaN without raising

        Returns:
            New float64 array of shape (N, 2)
        """
        buffer = np.array(coords, dtype=np.float64).reshape(-1)
        if buffer.size % 2 != 0:
            raise ValueError("Coordinates must come in (x, y) pairs")

        try:
            self.transform_array(buffer, 0, buffer, 0, buffer.size // 2)
        except (ProjectionError, ProjectionCheckError):
            if not ignore_errors:
                raise
        return buffer.reshape(-1, 2)


class MapProjection(MathTransform2D):
    """
    Base class of all map projections.

    Forward direction is geographic degrees (longitude, latitude) to
    projected metres (x, y). Instances are immutable once constructed
    and may be shared freely between threads.

    Attributes:
        parameters: Validated parameter set
        verify: Whether every transform is checked against its inverse
    """

    def __init__(self, parameters: ProjectionParameters, verify: Optional[bool] = None):
        """
        Initialize the common part of a projection.

        Args:
            parameters: Validated parameter set (angles already in radians)
            verify: Enable the round-trip check (default: config.VERIFY_TRANSFORMS)
        """
        self.parameters = parameters
        self.verify = VERIFY_TRANSFORMS if verify is None else verify
        self._inverse_transform: Optional['InverseProjection'] = None

    # -------------------------------------------------------------------------
    # Parameter accessors
    # -------------------------------------------------------------------------

    @property
    def semi_major(self) -> float:
        return self.parameters.semi_major

    @property
    def semi_minor(self) -> float:
        return self.parameters.semi_minor

    @property
    def excentricity(self) -> float:
        return self.parameters.excentricity

    @property
    def excentricity_squared(self) -> float:
        return self.parameters.excentricity_squared

    @property
    def is_spherical(self) -> bool:
        return self.parameters.is_spherical

    @property
    def central_meridian(self) -> float:
        return self.parameters.central_meridian

    @property
    def latitude_of_origin(self) -> float:
        return self.parameters.latitude_of_origin

    @property
    def scale_factor(self) -> float:
        return self.parameters.scale_factor

    @property
    def false_easting(self) -> float:
        return self.parameters.false_easting

    @property
    def false_northing(self) -> float:
        return self.parameters.false_northing

    @property
    def global_scale(self) -> float:
        return self.parameters.global_scale

    def parameter_values(self) -> dict:
        """Parameter values in degrees and metres."""
        return self.parameters.to_mapping()

    # -------------------------------------------------------------------------
    # Normalized transforms (projection specific)
    # -------------------------------------------------------------------------

    @abstractmethod
    def transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        """
        Project a point on the unit ellipsoid.

        Args:
            x: Longitude in radians, relative to the central meridian
            y: Latitude in radians

        Returns:
            Dimensionless (x, y) before scale and false origin
        """
        pass

    @abstractmethod
    def inverse_transform_normalized(self, x: float, y: float) -> Tuple[float, float]:
        """
        Inverse of transform_normalized().

        Returns:
            (longitude, latitude) in radians, longitude relative to
            the central meridian
        """
        pass

    # -------------------------------------------------------------------------
    # Transforms
    # -------------------------------------------------------------------------

    def transform(self, x: float, y: float) -> Tuple[float, float]:
        return self.forward(x, y)

    def forward(self, lon: float, lat: float) -> Tuple[float, float]:
        """
        Project geographic coordinates.

        Args:
            lon: Longitude in degrees
            lat: Latitude in degrees

        Returns:
            (x, y) in metres

        Raises:
            ProjectionError: If the point cannot be projected
        """
        x, y = self._forward(lon, lat)
        if self.verify:
            self._check_forward(lon, lat, x, y)
        return x, y

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        """
        Convert projected coordinates back to geographic.

        Args:
            x: Easting in metres
            y: Northing in metres

        Returns:
            (longitude, latitude) in degrees

        Raises:
            ProjectionError: If the point cannot be converted
        """
        lon, lat = self._inverse(x, y)
        if self.verify:
            self._check_inverse(x, y, lon, lat)
        return lon, lat

    def _forward(self, lon: float, lat: float) -> Tuple[float, float]:
        # Comparisons are False for NaN, so NaN passes through
        if lon < LONGITUDE_MIN - EPS or lon > LONGITUDE_MAX + EPS:
            raise PointOutsideEnvelopeError(f"Longitude out of range: {lon}")
        if lat < LATITUDE_MIN - EPS or lat > LATITUDE_MAX + EPS:
            raise PointOutsideEnvelopeError(f"Latitude out of range: {lat}")
        if math.isnan(lon) or math.isnan(lat):
            return math.nan, math.nan

        lam = math.radians(lon)
        if self.central_meridian != 0:
            lam = roll_longitude(lam - self.central_meridian)

        x, y = self.transform_normalized(lam, math.radians(lat))
        return (
            self.global_scale * x + self.false_easting,
            self.global_scale * y + self.false_northing,
        )

    def _inverse(self, x: float, y: float) -> Tuple[float, float]:
        if math.isnan(x) or math.isnan(y):
            return math.nan, math.nan

        lam, phi = self.inverse_transform_normalized(
            (x - self.false_easting) / self.global_scale,
            (y - self.false_northing) / self.global_scale,
        )

        if self.central_meridian != 0:
            lam = roll_longitude(lam + self.central_meridian)
        lon = math.degrees(lam)
        lat = math.degrees(phi)

        if lon < LONGITUDE_MIN - EPS or lon > LONGITUDE_MAX + EPS:
            raise PointOutsideEnvelopeError(f"Longitude out of range: {lon}")
        if lat < LATITUDE_MIN - EPS or lat > LATITUDE_MAX + EPS:
            raise PointOutsideEnvelopeError(f"Latitude out of range: {lat}")
        return lon, lat

    def forward_point(self, point: Point2D) -> Point2D:
        """Project a Point2D (x = longitude, y = latitude)."""
        return self.transform_point(point)

    def inverse_point(self, point: Point2D) -> Point2D:
        """Inverse of forward_point()."""
        lon, lat = self.inverse(point.x, point.y)
        return Point2D(lon, lat)

    def forward_array(self, src, src_offset: int, dst, dst_offset: int, num_pts: int) -> None:
        """Project interleaved (lon, lat) pairs; see transform_array()."""
        self.transform_array(src, src_offset, dst, dst_offset, num_pts)

    def inverse_array(self, src, src_offset: int, dst, dst_offset: int, num_pts: int) -> None:
        """Inverse of forward_array()."""
        self.inverse_transform().transform_array(src, src_offset, dst, dst_offset, num_pts)

    def forward_points(self, coords: Any, ignore_errors: bool = False) -> np.ndarray:
        """Project an (N, 2) array of (lon, lat)."""
        return self.transform_points(coords, ignore_errors)

    def inverse_points(self, coords: Any, ignore_errors: bool = False) -> np.ndarray:
        """Inverse of forward_points()."""
        return self.inverse_transform().transform_points(coords, ignore_errors)

    def inverse_transform(self) -> 'InverseProjection':
        """
        Return the inverse of this projection.

        Created on first use. Two threads racing here may each build an
        instance; both are equivalent and one of them is kept.
        """
        inverse = self._inverse_transform
        if inverse is None:
            inverse = InverseProjection(self)
            self._inverse_transform = inverse
        return inverse

    # -------------------------------------------------------------------------
    # Round-trip check
    # -------------------------------------------------------------------------

    def tolerance_for_assertions(self, longitude: float, latitude: float) -> float:
        """
        Maximal round-trip error (metres) accepted at a point.

        Args:
            longitude: Longitude in degrees
            latitude: Latitude in degrees
        """
        if abs(longitude - math.degrees(self.central_meridian)) / 2 + \
                abs(latitude - math.degrees(self.latitude_of_origin)) > FAR_FROM_ORIGIN_DEG:
            return TOLERANCE_FAR

        if abs(longitude) > EDGE_LONGITUDE_DEG or abs(latitude) > EDGE_LATITUDE_DEG:
            return TOLERANCE_EDGE
        return TOLERANCE_NEAR

    def _check_forward(self, lon: float, lat: float, x: float, y: float) -> None:
        try:
            lon2, lat2 = self._inverse(x, y)
        except ProjectionError as e:
            raise ProjectionCheckError(
                f"{type(self).__name__}: inverse failed for ({lon}, {lat}): {e}"
            ) from e

        distance = orthodromic_distance(lon, lat, lon2, lat2, self.semi_major)
        self._check_distance(distance, lon, lat)

    def _check_inverse(self, x: float, y: float, lon: float, lat: float) -> None:
        try:
            x2, y2 = self._forward(lon, lat)
        except ProjectionError as e:
            raise ProjectionCheckError(
                f"{type(self).__name__}: forward failed for ({lon}, {lat}): {e}"
            ) from e

        distance = math.hypot(x2 - x, y2 - y)
        self._check_distance(distance, lon, lat)

    def _check_distance(self, distance: float, lon: float, lat: float) -> None:
        # NaN never fails
        if distance > self.tolerance_for_assertions(lon, lat):
            raise ProjectionCheckError(
                f"{type(self).__name__}: round trip error of {distance:.3g} m at "
                f"dlon={lon - math.degrees(self.central_meridian):.6f}, "
                f"dlat={lat - math.degrees(self.latitude_of_origin):.6f}"
            )

    # -------------------------------------------------------------------------
    # Equality
    # -------------------------------------------------------------------------

    def _identity(self) -> tuple:
        return (type(self), self.parameters)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, MapProjection):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.parameters})"


class InverseProjection(MathTransform2D):
    """
    Inverse direction of a MapProjection: projected metres to degrees.

    Holds no state of its own beyond the projection it inverts.
    """

    def __init__(self, projection: MapProjection):
        self.projection = projection

    def transform(self, x: float, y: float) -> Tuple[float, float]:
        return self.projection.inverse(x, y)

    def inverse_transform(self) -> MapProjection:
        return self.projection

    def __repr__(self) -> str:
        return f"InverseProjection({self.projection!r})"
