"""Projection of world points onto the best matching planar region."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from .planar_region import PlanarRegion, position_in_world_from_plane
from .shapes import BoundingBox, Point, PolygonWithHoles, is_inside, project_to_closest_point, squared_distance


@dataclass
class RegionSortingInfo:
    """A region with the query expressed in its frame and a lower bound on the squared distance."""

    region: PlanarRegion
    position_in_terrain_frame: Point
    bounding_box_square_distance: float


@dataclass
class PlanarTerrainProjection:
    """Result of projecting a world point onto a set of planar regions."""

    region: PlanarRegion | None = None
    position_in_terrain_frame: Point = (0.0, 0.0)
    position_in_world: np.ndarray = field(default_factory=lambda: np.zeros(3))
    cost: float = sys.float_info.max


def _distance_cost(query: np.ndarray, terrain_point: np.ndarray) -> float:
    diff = np.asarray(query, dtype=float) - terrain_point
    return float(diff @ diff)


def _interval_square_distance(value: float, low: float, high: float) -> float:
    if value < low:
        return (low - value) ** 2
    if value < high:
        return 0.0
    return (high - value) ** 2


def _squared_distance_to_bounding_box(point: Point, box: BoundingBox) -> float:
    return _interval_square_distance(point[0], box.xmin, box.xmax) + _interval_square_distance(
        point[1], box.ymin, box.ymax
    )


def _find_inset_containing(point: Point, insets: Sequence[PolygonWithHoles]) -> PolygonWithHoles | None:
    return next((inset for inset in insets if is_inside(point, inset.outer)), None)


def project_to_planar_region(query: Point, planar_region: PlanarRegion) -> Point:
    """Project a point given in the plane frame into the insets of the region."""
    insets = planar_region.boundary_with_inset.insets
    if not insets:
        raise ValueError("planar region has no insets to project onto")

    containing = _find_inset_containing(query, insets)
    if containing is None:
        # Outside every inset: take the closest point on any inset boundary.
        candidates = (project_to_closest_point(query, inset.outer) for inset in insets)
        return min(candidates, key=lambda candidate: squared_distance(candidate, query))

    for hole in containing.holes:
        if is_inside(query, hole):
            return project_to_closest_point(query, hole)
    return (float(query[0]), float(query[1]))


def sort_with_bounding_boxes(
    position_in_world, planar_regions: Sequence[PlanarRegion]
) -> list[RegionSortingInfo]:
    """Regions ordered from near to far by the squared distance to their bounding boxes."""
    infos = []
    for region in planar_regions:
        local = region.transform_plane_to_world.inverse().apply(position_in_world)
        xy = (float(local[0]), float(local[1]))
        distance = _squared_distance_to_bounding_box(xy, region.bbox2d) + float(local[2]) ** 2
        infos.append(RegionSortingInfo(region, xy, distance))
    infos.sort(key=lambda info: info.bounding_box_square_distance)
    return infos


def get_best_planar_region_at_position(
    position_in_world,
    planar_regions: Sequence[PlanarRegion],
    penalty_function: Callable[[np.ndarray], float],
) -> PlanarTerrainProjection:
    """Projection with the lowest squared distance plus penalty over all regions."""
    position = np.asarray(position_in_world, dtype=float)
    projection = PlanarTerrainProjection()
    for info in sort_with_bounding_boxes(position, planar_regions):
        # The bounding-box distance is a lower bound on the distance cost.
        if info.bounding_box_square_distance > projection.cost:
            continue

        in_terrain = project_to_planar_region(info.position_in_terrain_frame, info.region)
        in_world = position_in_world_from_plane(in_terrain, info.region.transform_plane_to_world)
        cost = _distance_cost(position, in_world) + penalty_function(in_world)
        if cost < projection.cost:
            projection = PlanarTerrainProjection(info.region, in_terrain, in_world, cost)
    return projection