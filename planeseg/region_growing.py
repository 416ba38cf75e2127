"""Growing a convex polygon inside a (possibly holed) parent shape."""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass

from .shapes import (
    Point,
    Polygon,
    PolygonWithHoles,
    Shape,
    distance_to_shape,
    point_on_line,
    segments_intersect,
    squared_distance,
    squared_distance_to_segment,
)

logger = logging.getLogger(__name__)

_INITIAL_RADIUS_FACTOR = 0.999
_MAX_ITERATIONS = 1000


@dataclass(frozen=True)
class _Circle:
    center: Point
    squared_radius: float

    def contains(self, point: Point) -> bool:
        return squared_distance(point, self.center) < self.squared_radius


def create_regular_polygon(center: Point, radius: float, number_of_vertices: int) -> Polygon:
    """Regular polygon around center, vertices in counter-clockwise order starting on the +x axis."""
    if number_of_vertices <= 2:
        raise ValueError(f"a polygon needs more than 2 vertices, got {number_of_vertices}")
    angle = 2.0 * math.pi / number_of_vertices
    cx, cy = center
    return Polygon(
        [
            (radius * math.cos(k * angle) + cx, radius * math.sin(k * angle) + cy)
            for k in range(number_of_vertices)
        ]
    )


def update_mean(mean: Point, old_value: Point, updated_value: Point, n: int) -> Point:
    """Mean of n points after one of them changed from old_value to updated_value."""
    return (
        mean[0] + (updated_value[0] - old_value[0]) / n,
        mean[1] + (updated_value[1] - old_value[1]) / n,
    )


def _neighbours(vertices: list[Point], i: int) -> tuple[Point, Point]:
    n = len(vertices)
    return vertices[(i + 1) % n], vertices[(i - 1) % n]


def _remains_convex(vertices: list[Point], i: int, point: Point) -> bool:
    n = len(vertices)
    window = [
        vertices[(i + 2) % n],
        vertices[(i + 1) % n],
        point,
        vertices[(i - 1) % n],
        vertices[(i - 2) % n],
    ]
    return Polygon(window).is_convex()


def _try_move(
    vertices: list[Point], i: int, candidate: Point, free_circle: _Circle, parent_shape: Shape
) -> _Circle | None:
    """Free circle to keep if vertex i may move to candidate, None if it is blocked."""
    if not _remains_convex(vertices, i, candidate):
        return None

    neighbours = _neighbours(vertices, i)
    if all(free_circle.contains(p) for p in (neighbours[0], candidate, neighbours[1])):
        return free_circle

    new_segments = [(neighbour, candidate) for neighbour in neighbours]
    min_squared_distance = sys.float_info.max
    for edge in parent_shape.edges():
        if any(segments_intersect(segment, edge) for segment in new_segments):
            return None
        min_squared_distance = min(min_squared_distance, squared_distance_to_segment(candidate, edge))
    return _Circle(candidate, min_squared_distance)


def grow_convex_polygon_inside_shape(
    parent_shape: Shape, center: Point, number_of_vertices: int, growth_factor: float
) -> Polygon:
    """Grow a regular polygon from center outwards while it stays convex and inside parent_shape."""
    if not isinstance(parent_shape, (Polygon, PolygonWithHoles)):
        raise TypeError(f"cannot grow inside {type(parent_shape).__name__}")

    start_center = (float(center[0]), float(center[1]))
    center = start_center
    radius = _INITIAL_RADIUS_FACTOR * distance_to_shape(center, parent_shape)
    vertices = list(create_regular_polygon(center, radius, number_of_vertices).vertices)

    if radius == 0.0:
        logger.warning(
            "Zero initial radius. Provide a point with a non-zero offset to the boundary."
        )
        return Polygon(vertices)

    blocked = [False] * number_of_vertices
    free_circles = [_Circle(center, radius * radius)] * number_of_vertices

    n_blocked = 0
    iteration = 0
    while n_blocked < number_of_vertices and iteration < _MAX_ITERATIONS:
        for i in range(number_of_vertices):
            if blocked[i]:
                continue
            candidate = point_on_line(center, vertices[i], growth_factor)
            circle = _try_move(vertices, i, candidate, free_circles[i], parent_shape)
            if circle is None:
                blocked[i] = True
                n_blocked += 1
            else:
                free_circles[i] = circle
                center = update_mean(center, vertices[i], candidate, number_of_vertices)
                vertices[i] = candidate
        iteration += 1

    if iteration == _MAX_ITERATIONS:
        logger.warning(
            "Max iteration in region growing: vertices=%d, growth factor=%s, center=%s, shape=%r",
            number_of_vertices,
            growth_factor,
            start_center,
            parent_shape,
        )
    return Polygon(vertices)