import math

import pytest

from utils.geo import distance_to_polyline, haversine_km, is_near_route


def test_haversine_one_degree_on_equator():
    assert haversine_km((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111.195, rel=1e-3)


def test_haversine_same_point_is_zero():
    assert haversine_km((52.37, 4.9), (52.37, 4.9)) == 0.0


def test_haversine_is_symmetric():
    a, b = (48.8566, 2.3522), (51.5074, -0.1278)
    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))
    # Paris - London
    assert haversine_km(a, b) == pytest.approx(343.5, abs=2.0)


def test_distance_to_polyline_uses_nearest_vertex():
    polyline = [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)]
    assert distance_to_polyline((0.0, 2.0), polyline) == 0.0
    assert distance_to_polyline((0.0, 1.5), polyline) == pytest.approx(haversine_km((0.0, 1.5), (0.0, 1.0)))


def test_distance_to_empty_polyline_is_infinite():
    assert math.isinf(distance_to_polyline((0.0, 0.0), []))
    assert math.isinf(distance_to_polyline((0.0, 0.0), None))


def test_is_near_route_threshold_is_inclusive():
    polyline = [(52.0, 4.0), (52.0, 4.1)]
    point = (52.0, 4.15)
    exact = distance_to_polyline(point, polyline)

    assert is_near_route(point, polyline, threshold_km=exact)
    assert not is_near_route(point, polyline, threshold_km=exact - 0.001)


def test_is_near_route_default_threshold_is_five_km():
    polyline = [(0.0, 0.0)]
    # ~4.45 km and ~5.56 km east of the only vertex
    assert is_near_route((0.0, 0.04), polyline)
    assert not is_near_route((0.0, 0.05), polyline)


def test_no_route_is_never_near():
    assert not is_near_route((0.0, 0.0), [], threshold_km=10_000)
