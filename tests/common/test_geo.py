from __future__ import annotations

import math

import pytest

from src.timeclock_system.timeclock_system.common.geo import distance_m, is_within_radius
from src.timeclock_system.timeclock_system.core.constants import EARTH_RADIUS_M


def test_same_point_is_zero():
    assert distance_m(40.7128, -74.0060, 40.7128, -74.0060) == 0.0


def test_one_degree_of_latitude():
    assert distance_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(EARTH_RADIUS_M * math.pi / 180, abs=0.01)


def test_distance_is_symmetric():
    a = distance_m(48.8566, 2.3522, 51.5074, -0.1278)
    b = distance_m(51.5074, -0.1278, 48.8566, 2.3522)
    assert a == pytest.approx(b)
    # Paris - London is roughly 344 km
    assert a == pytest.approx(343_500, rel=0.01)


def test_antipodal_points_do_not_blow_up():
    d = distance_m(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)


def test_crossing_the_antimeridian():
    d = distance_m(0.0, 179.9995, 0.0, -179.9995)
    assert d == pytest.approx(111.19, abs=0.1)


def test_radius_boundary_is_inclusive():
    d = distance_m(10.0005, 10.0, 10.0, 10.0)
    assert is_within_radius(10.0005, 10.0, 10.0, 10.0, d)
    assert not is_within_radius(10.0005, 10.0, 10.0, 10.0, d - 1e-6)
