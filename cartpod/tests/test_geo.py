"""
Tests for the distance helpers.
"""

import pytest

from cartpod.directory.geo import haversine_km, validate_coordinates


def test_same_point_is_zero():
    assert haversine_km([-122.68, 45.52], [-122.68, 45.52]) == 0.0


def test_one_degree_of_latitude():
    assert haversine_km([0.0, 0.0], [0.0, 1.0]) == pytest.approx(111.195, abs=0.001)


def test_distance_is_symmetric():
    portland = [-122.6765, 45.5231]
    seattle = [-122.3321, 47.6062]

    assert haversine_km(portland, seattle) == pytest.approx(haversine_km(seattle, portland))
    assert haversine_km(portland, seattle) == pytest.approx(233.1, abs=1.0)


def test_antipodes():
    assert haversine_km([0.0, 0.0], [180.0, 0.0]) == pytest.approx(20015.1, abs=0.5)


@pytest.mark.parametrize("longitude,latitude", [(181, 0), (-181, 0), (0, 91), (0, -90.5)])
def test_out_of_range_coordinates(longitude, latitude):
    with pytest.raises(ValueError):
        validate_coordinates(longitude, latitude)


def test_boundary_coordinates_are_valid():
    validate_coordinates(180, 90)
    validate_coordinates(-180, -90)
