"""Tests of the shared projection formulas."""

import math
import pytest

from carto_core.models.ellipsoid import WGS84
from carto_core.projection import formulas
from carto_core.projection.errors import NoConvergenceError
from carto_core.projection.formulas import (
    cphi2,
    msfn,
    tsfn,
    ssfn,
    conformal_latitude,
    roll_longitude,
    orthodromic_distance,
    clamped_asin,
)


WGS84_E = math.sqrt(WGS84.excentricity_squared)


class TestRollLongitude:
    """Longitude wraparound into [-pi, pi]."""

    @pytest.mark.parametrize("value", [0.0, 0.5, -0.5, 3.0, -3.0])
    def test_inside_range_unchanged(self, value):
        """Values already within [-pi, pi] are returned as is."""
        assert roll_longitude(value) == pytest.approx(value, abs=1e-15)

    def test_wraps_past_antimeridian(self):
        """3pi/2 east is pi/2 west."""
        assert roll_longitude(1.5 * math.pi) == pytest.approx(-0.5 * math.pi)
        assert roll_longitude(-1.5 * math.pi) == pytest.approx(0.5 * math.pi)

    def test_nan(self):
        """NaN stays NaN."""
        assert math.isnan(roll_longitude(math.nan))


class TestConformalLatitude:
    """msfn, tsfn and their inverse cphi2."""

    def test_msfn_sphere_is_cosine(self):
        """On a sphere the parallel radius is cos(phi)."""
        phi = math.radians(37.0)
        assert msfn(math.sin(phi), math.cos(phi), 0.0) == pytest.approx(math.cos(phi))

    def test_msfn_equator(self):
        """At the equator the parallel radius is 1 for any ellipsoid."""
        assert msfn(0.0, 1.0, WGS84.excentricity_squared) == pytest.approx(1.0)

    def test_tsfn_sphere(self):
        """On a sphere tsfn reduces to tan(pi/4 - phi/2)."""
        phi = math.radians(20.0)
        assert tsfn(phi, math.sin(phi), 0.0) == pytest.approx(math.tan(math.pi / 4 - phi / 2))

    @pytest.mark.parametrize("degrees", [-80.0, -45.0, 0.0, 12.5, 45.0, 80.0])
    def test_cphi2_inverts_tsfn(self, degrees):
        """cphi2(tsfn(phi)) gives phi back."""
        phi = math.radians(degrees)
        ts = tsfn(phi, math.sin(phi), WGS84_E)
        assert cphi2(ts, WGS84_E) == pytest.approx(phi, abs=1e-10)

    def test_cphi2_nan(self):
        """NaN input gives NaN without raising."""
        assert math.isnan(cphi2(math.nan, WGS84_E))

    def test_cphi2_no_convergence(self, monkeypatch):
        """Exceeding the iteration cap raises NoConvergenceError."""
        monkeypatch.setattr(formulas, 'MAX_ITER', 1)
        phi = math.radians(60.0)
        ts = tsfn(phi, math.sin(phi), WGS84_E)

        with pytest.raises(NoConvergenceError):
            cphi2(ts, WGS84_E)

    @pytest.mark.parametrize("degrees", [-75.0, -10.0, 0.0, 33.0, 60.0])
    def test_ssfn_is_reciprocal_of_tsfn(self, degrees):
        """ssfn(phi) * tsfn(phi) == 1."""
        phi = math.radians(degrees)
        sinphi = math.sin(phi)
        assert ssfn(phi, sinphi, WGS84_E) * tsfn(phi, sinphi, WGS84_E) == pytest.approx(1.0)

    def test_conformal_latitude_sphere(self):
        """On a sphere the conformal latitude is the latitude itself."""
        phi = math.radians(52.0)
        assert conformal_latitude(phi, 0.0) == pytest.approx(phi)

    def test_conformal_latitude_ellipsoid(self):
        """Equator is kept, mid latitudes move towards the equator."""
        assert conformal_latitude(0.0, WGS84_E) == pytest.approx(0.0, abs=1e-15)
        phi = math.radians(45.0)
        chi = conformal_latitude(phi, WGS84_E)
        assert math.radians(0.19) < phi - chi < math.radians(0.2)


class TestOrthodromicDistance:
    """Great circle distance used by the round-trip check."""

    def test_same_point(self):
        """Distance from a point to itself is zero."""
        assert orthodromic_distance(10.0, 20.0, 10.0, 20.0, 6371000.0) == 0.0

    def test_quarter_equator(self):
        """90 degrees along the equator of a unit sphere is pi/2."""
        assert orthodromic_distance(0.0, 0.0, 90.0, 0.0, 1.0) == pytest.approx(math.pi / 2)

    def test_antimeridian_is_same_point(self):
        """-180 and 180 are the same meridian."""
        assert orthodromic_distance(-180.0, 10.0, 180.0, 10.0, 6371000.0) == pytest.approx(0.0, abs=1e-6)

    def test_small_distance_is_precise(self):
        """Sub-millimetre separations are resolved."""
        radius = 6371000.0
        dlat = math.degrees(1e-4 / radius)
        assert orthodromic_distance(5.0, 5.0, 5.0, 5.0 + dlat, radius) == pytest.approx(1e-4, rel=1e-3)


class TestClampedAsin:
    """Arc sine tolerant of rounding."""

    def test_clamps(self):
        """Values just outside [-1, 1] map to +-pi/2."""
        assert clamped_asin(1.0 + 1e-12) == math.pi / 2
        assert clamped_asin(-1.0 - 1e-12) == -math.pi / 2

    def test_regular(self):
        """Inside the range it is math.asin."""
        assert clamped_asin(0.5) == pytest.approx(math.asin(0.5))

    def test_nan(self):
        """NaN stays NaN."""
        assert math.isnan(clamped_asin(math.nan))
