import math

import pytest

from planeseg.region_growing import (
    create_regular_polygon,
    grow_convex_polygon_inside_shape,
    update_mean,
)
from planeseg.shapes import Polygon, PolygonWithHoles, is_inside


def _square_with_holes(holes=()):
    return PolygonWithHoles(Polygon([(1, -1), (1, 1), (-1, 1), (-1, -1)]), list(holes))


def test_center_on_border():
    parent = _square_with_holes()
    center = (0.0, 1.0)
    result = grow_convex_polygon_inside_shape(parent, center, 16, 1.05)
    assert result.is_convex()
    assert all(is_inside(p, parent) for p in result)
    assert all(p == pytest.approx(center) for p in result)


DEBUG_OUTER = [
    (1.03923, -0.946553), (1.03923, 0.840114), (0.7859, 0.840114), (0.772567, 0.853447), (0.759233, 0.853447),
    (0.7459, 0.86678), (0.7459, 0.880114), (0.732567, 0.893447), (0.719233, 0.893447), (0.7059, 0.90678),
    (0.7059, 1.05345), (0.652567, 1.05345), (0.652567, 0.90678), (0.639233, 0.893447), (0.6259, 0.893447),
    (0.612567, 0.880114), (0.612567, 0.86678), (0.599233, 0.853447), (0.5859, 0.853447), (0.572567, 0.840114),
    (0.532567, 0.840114), (0.532567, 0.82678), (0.519233, 0.813447), (0.5059, 0.813447), (0.492567, 0.800114),
    (0.3059, 0.800114), (0.292567, 0.813447), (0.279233, 0.813447), (0.2659, 0.82678), (0.2659, 0.840114),
    (0.252567, 0.853447), (0.239233, 0.853447), (0.2259, 0.86678), (0.2259, 0.920114), (0.212567, 0.933447),
    (0.199233, 0.933447), (0.1859, 0.94678), (0.1859, 1.05345), (0.132567, 1.05345), (0.132567, 0.86678),
    (0.119233, 0.853447), (0.1059, 0.853447), (0.0925666, 0.840114), (0.0925666, 0.82678), (0.0792332, 0.813447),
    (0.0658999, 0.813447), (0.0525666, 0.800114), (-0.1341, 0.800114), (-0.147433, 0.813447), (-0.160767, 0.813447),
    (-0.1741, 0.82678), (-0.1741, 0.840114), (-0.2141, 0.840114), (-0.227433, 0.853447), (-0.240767, 0.853447),
    (-0.2541, 0.86678), (-0.2541, 0.880114), (-0.267433, 0.893447), (-0.280767, 0.893447), (-0.2941, 0.90678),
    (-0.2941, 1.05345), (-0.960767, 1.05345), (-0.960767, -0.946553),
]

DEBUG_HOLE = [
    (0.5459, -0.266553), (0.532566, -0.279886), (0.3059, -0.279886), (0.292566, -0.266553), (0.279233, -0.266553),
    (0.2659, -0.25322), (0.2659, -0.239886), (0.252566, -0.226553), (0.239233, -0.226553), (0.2259, -0.21322),
    (0.2259, 0.320114), (0.239233, 0.333447), (0.252566, 0.333447), (0.2659, 0.34678), (0.532567, 0.34678),
    (0.5459, 0.333447), (0.559233, 0.333447), (0.572567, 0.320114), (0.572567, 0.30678), (0.5859, 0.293447),
    (0.599233, 0.293447), (0.612567, 0.280114), (0.612566, 0.0667803), (0.6259, 0.053447), (0.639233, 0.053447),
    (0.652566, 0.0401136), (0.652566, -0.17322), (0.639233, -0.186553), (0.6259, -0.186553), (0.612566, -0.199886),
    (0.612566, -0.21322), (0.599233, -0.226553), (0.5859, -0.226553), (0.572566, -0.239886), (0.572566, -0.25322),
    (0.559233, -0.266553),
]


def test_debug_case():
    parent = PolygonWithHoles(Polygon(DEBUG_OUTER), [Polygon(DEBUG_HOLE)])
    result = grow_convex_polygon_inside_shape(parent, (-0.147433, 0.800114), 16, 1.05)
    assert len(result) == 16
    assert result.is_convex()
    assert all(is_inside(p, parent) for p in result)


@pytest.mark.parametrize("number_of_vertices", [4, 8, 16])
def test_grows_beyond_initial_circle_in_square(number_of_vertices):
    parent = _square_with_holes()
    result = grow_convex_polygon_inside_shape(parent, (0.0, 0.0), number_of_vertices, 1.05)
    assert result.is_convex()
    assert all(is_inside(p, parent) for p in result)
    assert max(math.hypot(x, y) for x, y in result) > 1.0


def test_grows_inside_plain_polygon():
    parent = Polygon([(0, 0), (4, 0), (4, 2), (0, 2)])
    result = grow_convex_polygon_inside_shape(parent, (1.0, 1.0), 8, 1.1)
    assert result.is_convex()
    assert all(is_inside(p, parent) for p in result)


def test_result_avoids_hole():
    hole = Polygon([(0.2, -0.2), (0.2, 0.2), (0.6, 0.2), (0.6, -0.2)])
    parent = _square_with_holes([hole])
    result = grow_convex_polygon_inside_shape(parent, (-0.5, 0.0), 12, 1.05)
    assert result.is_convex()
    assert all(is_inside(p, parent) for p in result)
    assert all(x < 0.2 + 1e-9 for x, _ in result)


def test_create_regular_polygon_square():
    polygon = create_regular_polygon((0.0, 0.0), 1.0, 4)
    expected = [(1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0)]
    assert len(polygon) == 4
    for got, want in zip(polygon, expected):
        assert got == pytest.approx(want, abs=1e-12)


def test_create_regular_polygon_is_convex_and_centered():
    center = (2.0, -3.0)
    polygon = create_regular_polygon(center, 0.5, 7)
    assert polygon.is_convex()
    for x, y in polygon:
        assert math.hypot(x - center[0], y - center[1]) == pytest.approx(0.5)


def test_create_regular_polygon_needs_three_vertices():
    with pytest.raises(ValueError):
        create_regular_polygon((0.0, 0.0), 1.0, 2)


def test_update_mean_matches_recomputed_mean():
    points = [(0.0, 0.0), (2.0, 0.0), (1.0, 3.0)]
    mean = (1.0, 1.0)
    new = update_mean(mean, points[2], (4.0, 6.0), 3)
    assert new == pytest.approx((2.0, 2.0))