"""Planar polygons, polygons with holes and the 2D geometry used on them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Union

Point = tuple[float, float]
Segment = tuple[Point, Point]


class _Side(Enum):
    INSIDE = "inside"
    BOUNDARY = "boundary"
    OUTSIDE = "outside"


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned 2D bounding box."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float


@dataclass
class Polygon:
    """A simple polygon given by its vertices in order."""

    vertices: list[Point] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.vertices = [(float(x), float(y)) for x, y in self.vertices]

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.vertices)

    def __getitem__(self, index: int) -> Point:
        return self.vertices[index]

    def edges(self) -> Iterator[Segment]:
        """Yield the edges, including the closing edge back to the first vertex."""
        vertices = self.vertices
        yield from zip(vertices, vertices[1:] + vertices[:1])

    def is_convex(self) -> bool:
        """True if the polygon is convex; collinear and repeated vertices are allowed."""
        points = _without_consecutive_duplicates(self.vertices)
        if len(points) < 3:
            return True

        turn_sign = 0
        for a, b, c in zip(points, points[1:] + points[:1], points[2:] + points[:2]):
            cross = _orientation(a, b, c)
            if cross == 0:
                continue
            sign = 1 if cross > 0 else -1
            if turn_sign and sign != turn_sign:
                return False
            turn_sign = sign

        # A polygon that turns consistently but winds more than once changes x-direction too often.
        x_directions = [
            1 if b[0] > a[0] else -1 for a, b in zip(points, points[1:] + points[:1]) if b[0] != a[0]
        ]
        changes = sum(
            1 for s, t in zip(x_directions, x_directions[1:] + x_directions[:1]) if s != t
        )
        return changes <= 2

    def bbox(self) -> BoundingBox:
        """Bounding box of the vertices."""
        if not self.vertices:
            raise ValueError("bounding box of an empty polygon")
        xs = [x for x, _ in self.vertices]
        ys = [y for _, y in self.vertices]
        return BoundingBox(min(xs), min(ys), max(xs), max(ys))


@dataclass
class PolygonWithHoles:
    """An outer boundary with zero or more holes."""

    outer: Polygon = field(default_factory=Polygon)
    holes: list[Polygon] = field(default_factory=list)

    def edges(self) -> Iterator[Segment]:
        """Yield the edges of the outer boundary followed by those of every hole."""
        yield from self.outer.edges()
        for hole in self.holes:
            yield from hole.edges()


Shape = Union[Polygon, PolygonWithHoles]


def _without_consecutive_duplicates(points: list[Point]) -> list[Point]:
    result: list[Point] = []
    for point in points:
        if not result or result[-1] != point:
            result.append(point)
    while len(result) > 1 and result[0] == result[-1]:
        result.pop()
    return result


def _orientation(a: Point, b: Point, c: Point) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _within_box(point: Point, a: Point, b: Point) -> bool:
    return (
        min(a[0], b[0]) <= point[0] <= max(a[0], b[0])
        and min(a[1], b[1]) <= point[1] <= max(a[1], b[1])
    )


def _locate(point: Point, polygon: Polygon) -> _Side:
    px, py = point
    inside = False
    for a, b in polygon.edges():
        if _orientation(a, b, point) == 0 and _within_box(point, a, b):
            return _Side.BOUNDARY
        (ax, ay), (bx, by) = a, b
        if (ay > py) != (by > py):
            x_cross = ax + (py - ay) * (bx - ax) / (by - ay)
            if x_cross > px:
                inside = not inside
    return _Side.INSIDE if inside else _Side.OUTSIDE


def scale_shape(shape: Shape, scale: float) -> Shape:
    """Return a copy of the shape with every coordinate multiplied by scale."""
    if isinstance(shape, Polygon):
        return Polygon([(scale * x, scale * y) for x, y in shape])
    if isinstance(shape, PolygonWithHoles):
        return PolygonWithHoles(
            scale_shape(shape.outer, scale), [scale_shape(hole, scale) for hole in shape.holes]
        )
    raise TypeError(f"cannot scale {type(shape).__name__}")


def is_inside(point: Point, shape: Shape) -> bool:
    """True if the point lies in the shape; the boundary counts as inside."""
    if isinstance(shape, Polygon):
        return _locate(point, shape) is not _Side.OUTSIDE
    if isinstance(shape, PolygonWithHoles):
        if _locate(point, shape.outer) is _Side.OUTSIDE:
            return False
        return all(_locate(point, hole) is not _Side.INSIDE for hole in shape.holes)
    raise TypeError(f"cannot test containment in {type(shape).__name__}")


def squared_distance(p: Point, q: Point) -> float:
    """Squared Euclidean distance between two points."""
    dx = p[0] - q[0]
    dy = p[1] - q[1]
    return dx * dx + dy * dy


def _closest_point_on_segment(point: Point, segment: Segment) -> Point:
    (ax, ay), (bx, by) = segment
    dx, dy = bx - ax, by - ay
    length_squared = dx * dx + dy * dy
    if length_squared == 0.0:
        return (ax, ay)
    t = ((point[0] - ax) * dx + (point[1] - ay) * dy) / length_squared
    t = min(1.0, max(0.0, t))
    return (ax + t * dx, ay + t * dy)


def squared_distance_to_segment(point: Point, segment: Segment) -> float:
    """Squared distance from a point to the closest point of a segment."""
    return squared_distance(point, _closest_point_on_segment(point, segment))


def segments_intersect(first: Segment, second: Segment) -> bool:
    """True if two closed segments share at least one point."""
    p1, p2 = first
    q1, q2 = second
    d1 = _orientation(q1, q2, p1)
    d2 = _orientation(q1, q2, p2)
    d3 = _orientation(p1, p2, q1)
    d4 = _orientation(p1, p2, q2)
    if ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4)):
        return True
    return (
        (d1 == 0 and _within_box(p1, q1, q2))
        or (d2 == 0 and _within_box(p2, q1, q2))
        or (d3 == 0 and _within_box(q1, p1, p2))
        or (d4 == 0 and _within_box(q2, p1, p2))
    )


def _edges_of(shape: Shape) -> Iterable[Segment]:
    if isinstance(shape, (Polygon, PolygonWithHoles)):
        return shape.edges()
    raise TypeError(f"not a shape: {type(shape).__name__}")


def distance_to_shape(point: Point, shape: Shape) -> float:
    """Distance from a point to the nearest edge of the shape, holes included."""
    squared = [squared_distance_to_segment(point, edge) for edge in _edges_of(shape)]
    if not squared:
        raise ValueError("distance to an empty shape")
    return math.sqrt(min(squared))


def project_to_closest_point(point: Point, polygon: Shape) -> Point:
    """Closest point on the boundary of the polygon."""
    candidates = [_closest_point_on_segment(point, edge) for edge in _edges_of(polygon)]
    if not candidates:
        raise ValueError("projection onto an empty polygon")
    return min(candidates, key=lambda candidate: squared_distance(point, candidate))


def point_on_line(start: Point, end: Point, factor: float) -> Point:
    """Point at start + factor * (end - start)."""
    return (start[0] + factor * (end[0] - start[0]), start[1] + factor * (end[1] - start[1]))