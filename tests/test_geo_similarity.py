from __future__ import annotations

import math

import pytest

from poifinder.core.errors import InvalidCoordinate
from poifinder.core.geo import EARTH_RADIUS_M, distance, validate_coordinate
from poifinder.core.similarity import normalize_name, similarity
from poifinder.providers.base import Coordinate

PAIRS = [
    (48.8566, 2.3522, 48.8584, 2.2945),
    (40.7484, -73.9857, 51.5007, -0.1246),
    (-33.8568, 151.2153, 35.6586, 139.7454),
    (0.0, 179.9, 0.0, -179.9),
    (89.9, 0.0, -89.9, 180.0),
]


# ===================================================================
# Distance
# ===================================================================


class TestDistance:
    @pytest.mark.parametrize("lat1,lon1,lat2,lon2", PAIRS)
    def test_symmetric(self, lat1, lon1, lat2, lon2):
        assert distance(lat1, lon1, lat2, lon2) == pytest.approx(distance(lat2, lon2, lat1, lon1))

    @pytest.mark.parametrize("lat,lon", [(p[0], p[1]) for p in PAIRS])
    def test_same_point_is_zero(self, lat, lon):
        assert distance(lat, lon, lat, lon) == 0.0

    def test_reference_distance_2300m(self):
        # 2300m due north along a meridian
        dlat = math.degrees(2300 / EARTH_RADIUS_M)
        d = distance(48.8566, 2.3522, 48.8566 + dlat, 2.3522)
        assert d == pytest.approx(2300, rel=0.01)

    def test_one_degree_of_latitude(self):
        assert distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=0.001)

    def test_across_antimeridian_is_short(self):
        assert distance(0.0, 179.9, 0.0, -179.9) < 25_000

    def test_antipodal_points(self):
        assert distance(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_M)

    @pytest.mark.parametrize(
        "lat1,lon1,lat2,lon2",
        [
            (90.1, 0.0, 0.0, 0.0),
            (0.0, 0.0, -90.5, 0.0),
            (0.0, 180.1, 0.0, 0.0),
            (0.0, 0.0, 0.0, -181.0),
            (float("nan"), 0.0, 0.0, 0.0),
        ],
    )
    def test_invalid_coordinates_raise(self, lat1, lon1, lat2, lon2):
        with pytest.raises(InvalidCoordinate):
            distance(lat1, lon1, lat2, lon2)

    def test_invalid_coordinate_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_coordinate(100.0, 0.0)

    def test_boundaries_are_valid(self):
        validate_coordinate(90.0, 180.0)
        validate_coordinate(-90.0, -180.0)

    def test_coordinate_validates_and_measures(self):
        with pytest.raises(InvalidCoordinate):
            Coordinate(0.0, 200.0)
        a = Coordinate(48.8566, 2.3522)
        b = Coordinate(48.8584, 2.2945)
        assert a.distance_to(b) == pytest.approx(distance(a.lat, a.lon, b.lat, b.lon))


# ===================================================================
# Name similarity
# ===================================================================


class TestSimilarity:
    @pytest.mark.parametrize("name", ["Louvre", "Eiffel Tower", "McDonald's", "x"])
    def test_identical_is_one(self, name):
        assert similarity(name, name) == 1.0

    def test_empty_strings(self):
        assert similarity("", "") == 1.0
        assert similarity("", "x") == 0.0
        assert similarity("x", "") == 0.0

    def test_case_and_whitespace_ignored(self):
        assert similarity("Test Landmark", "test landmark ") == 1.0

    def test_surrounding_punctuation_dropped(self):
        assert similarity('"Louvre!"', "louvre") == 1.0

    def test_internal_punctuation_kept(self):
        assert normalize_name("McDonald's") == "mcdonald's"
        assert similarity("McDonald's", "McDonalds") < 1.0

    def test_edit_distance_ratio(self):
        # one substitution over three characters
        assert similarity("abc", "abd") == pytest.approx(1 - 1 / 3)

    def test_completely_different(self):
        assert similarity("abc", "xyz") == 0.0

    @pytest.mark.parametrize(
        "a,b",
        [
            ("Notre-Dame de Paris", "Notre Dame"),
            ("Sacré-Cœur", "Sacre Coeur"),
            ("Arc de Triomphe", "Arc de Triomphe du Carrousel"),
            ("", "Pantheon"),
        ],
    )
    def test_symmetric_and_bounded(self, a, b):
        s = similarity(a, b)
        assert s == similarity(b, a)
        assert 0.0 <= s <= 1.0
