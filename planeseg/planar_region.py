"""Planar regions, their local frames and projections between plane and world."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .shapes import BoundingBox, Point, PolygonWithHoles

_CROSS_TOLERANCE = 1e-3


def _vector(values, size: int) -> np.ndarray:
    array = np.asarray(values, dtype=float).reshape(-1)
    if array.shape != (size,):
        raise ValueError(f"expected a vector of length {size}, got shape {array.shape}")
    return array


@dataclass
class NormalAndPosition:
    """A plane given by a point on it and its normal."""

    position: np.ndarray
    normal: np.ndarray

    def __post_init__(self) -> None:
        self.position = _vector(self.position, 3)
        self.normal = _vector(self.normal, 3)


@dataclass
class Transform:
    """Rigid transform: rotation followed by translation."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.rotation = np.asarray(self.rotation, dtype=float)
        if self.rotation.shape != (3, 3):
            raise ValueError(f"rotation must be 3x3, got shape {self.rotation.shape}")
        self.translation = _vector(self.translation, 3)

    def apply(self, point) -> np.ndarray:
        """Map a 3D point through the transform."""
        return self.rotation @ _vector(point, 3) + self.translation

    def inverse(self) -> Transform:
        """The transform that undoes this one."""
        rotation_t = self.rotation.T
        return Transform(rotation_t, -(rotation_t @ self.translation))


@dataclass
class BoundaryWithInset:
    """A region boundary together with the inset polygons inside it."""

    boundary: PolygonWithHoles = field(default_factory=PolygonWithHoles)
    insets: list[PolygonWithHoles] = field(default_factory=list)


@dataclass
class PlanarRegion:
    """A planar region expressed in its own plane frame."""

    boundary_with_inset: BoundaryWithInset
    transform_plane_to_world: Transform
    bbox2d: BoundingBox


@dataclass
class SegmentedPlanesMap:
    """A labelled image of planes and the plane parameters of each label."""

    label_plane_parameters: list[tuple[int, NormalAndPosition]] = field(default_factory=list)
    labeled_image: np.ndarray = field(default_factory=lambda: np.zeros((0, 0), dtype=np.int32))
    resolution: float = 0.0
    map_origin: np.ndarray = field(default_factory=lambda: np.zeros(2))
    highest_label: int = -1


def get_transform_local_to_global(normal_and_position: NormalAndPosition) -> Transform:
    """Frame whose z-axis is the plane normal and whose origin is the plane position."""
    norm = np.linalg.norm(normal_and_position.normal)
    if norm == 0.0:
        raise ValueError("plane normal must not be zero")
    z_axis = normal_and_position.normal / norm

    y_axis = np.cross(z_axis, [1.0, 0.0, 0.0])
    y_squared_norm = float(y_axis @ y_axis)
    if y_squared_norm > _CROSS_TOLERANCE:
        y_axis = y_axis / np.sqrt(y_squared_norm)
    else:
        # Normal is almost along x: choose a y-axis close to the world y-axis instead.
        y_axis = np.cross(z_axis, np.cross([0.0, 1.0, 0.0], z_axis))
        y_axis = y_axis / np.linalg.norm(y_axis)

    x_axis = np.cross(y_axis, z_axis)
    rotation = np.column_stack((x_axis, y_axis, z_axis))
    return Transform(rotation, normal_and_position.position.copy())


def project_to_plane_along_gravity(world_xy: Point, transform_plane_to_world: Transform) -> Point:
    """Plane coordinates of the point on the plane straight above or below world_xy."""
    rotation = transform_plane_to_world.rotation
    x_axis, y_axis, normal = rotation[:, 0], rotation[:, 1], rotation[:, 2]
    origin = transform_plane_to_world.translation

    dx = world_xy[0] - origin[0]
    dy = world_xy[1] - origin[1]
    dz = (-dx * normal[0] - dy * normal[1]) / normal[2]
    offset = np.array([dx, dy, dz])
    return (float(x_axis @ offset), float(y_axis @ offset))


def position_in_world_from_plane(plane_xy: Point, transform_plane_to_world: Transform) -> np.ndarray:
    """World position of a point given in plane coordinates, on the plane itself."""
    rotation = transform_plane_to_world.rotation
    return (
        transform_plane_to_world.translation
        + plane_xy[0] * rotation[:, 0]
        + plane_xy[1] * rotation[:, 1]
    )