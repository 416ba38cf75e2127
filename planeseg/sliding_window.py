"""Plane segmentation of an elevation map with a sliding window planarity test."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy import ndimage

from .planar_region import NormalAndPosition, SegmentedPlanesMap
from .ransac import RansacParameters, RansacPlaneExtractor

_UNIT_Z = (0.0, 0.0, 1.0)
_UNDEFINED_ERROR = 1e30


def normal_and_error_from_covariance(num_points, mean, sum_squared) -> tuple[np.ndarray, float]:
    """Upward plane normal and mean squared error from the first and second moments.

    Returns the z-axis with an error of 1e30 when the normal is undefined.
    """
    mean = np.asarray(mean, dtype=float).reshape(3)
    covariance = np.asarray(sum_squared, dtype=float).reshape(3, 3) / num_points - np.outer(mean, mean)
    eigenvalues, eigenvectors = np.linalg.eigh(covariance)
    if eigenvalues[1] > 1e-8:
        normal = eigenvectors[:, 0]
        if normal[2] < 0.0:
            normal = -normal
        # The smallest eigenvalue may come out slightly negative.
        return normal, max(float(eigenvalues[0]), 0.0)
    return np.array(_UNIT_Z), _UNDEFINED_ERROR


@dataclass
class SlidingWindowParameters:
    """Settings of the sliding window plane extraction."""

    kernel_size: int = 3
    planarity_opening_filter: int = 0
    plane_inclination_threshold: float = math.cos(math.radians(30.0))
    local_plane_inclination_threshold: float = math.cos(math.radians(35.0))
    plane_patch_error_threshold: float = 0.02
    min_number_points_per_label: int = 4
    connectivity: int = 4
    include_ransac_refinement: bool = True
    global_plane_fit_distance_error_threshold: float = 0.025
    global_plane_fit_angle_error_threshold_degrees: float = 25.0

    def __post_init__(self) -> None:
        if self.kernel_size < 1 or self.kernel_size % 2 == 0:
            raise ValueError(f"kernel_size must be a positive odd number, got {self.kernel_size}")
        if self.planarity_opening_filter < 0:
            raise ValueError("planarity_opening_filter must not be negative")
        if self.connectivity not in (4, 8):
            raise ValueError(f"connectivity must be 4 or 8, got {self.connectivity}")


def _cross_kernel(size: int) -> np.ndarray:
    kernel = np.zeros((size, size), dtype=bool)
    kernel[size // 2, :] = True
    kernel[:, size // 2] = True
    return kernel


def _with_replicated_border(operation, image: np.ndarray, kernel: np.ndarray, radius: int) -> np.ndarray:
    padded = np.pad(image, radius, mode="edge")
    return operation(padded, structure=kernel)[radius:-radius, radius:-radius]


class SlidingWindowPlaneExtractor:
    """Labels planar areas of an elevation map and fits a plane to each label."""

    def __init__(
        self,
        parameters: SlidingWindowParameters | None = None,
        ransac_parameters: RansacParameters | None = None,
    ) -> None:
        self.parameters = parameters if parameters is not None else SlidingWindowParameters()
        self.ransac_parameters = ransac_parameters if ransac_parameters is not None else RansacParameters()
        self.segmented_planes_map = SegmentedPlanesMap()
        self.binary_labeled_image = np.zeros((0, 0), dtype=np.uint8)
        self.surface_normals = np.zeros((0, 0, 3))
        self._elevation = np.zeros((0, 0))

    def run_extraction(self, elevation, resolution, map_origin) -> SegmentedPlanesMap:
        """Segment the elevation map.

        Cell (row, col) lies at map_origin - resolution * (row, col) in world x and y.
        """
        elevation = np.asarray(elevation, dtype=float)
        if elevation.ndim != 2:
            raise ValueError(f"elevation must be 2D, got {elevation.ndim} dimensions")
        if resolution <= 0.0:
            raise ValueError(f"resolution must be positive, got {resolution}")

        self._elevation = elevation
        self.segmented_planes_map = SegmentedPlanesMap(
            resolution=float(resolution),
            map_origin=np.asarray(map_origin, dtype=float).reshape(2).copy(),
        )
        self.surface_normals = np.zeros(elevation.shape + (3,))

        planar = self._run_sliding_window_detector()
        self._run_segmentation(planar)
        self._extract_plane_parameters()

        # Classification follows the segmentation so that reassigned cells are accounted for.
        self.binary_labeled_image = (self.segmented_planes_map.labeled_image > 0).astype(np.uint8)
        return self.segmented_planes_map

    def compute_normal_and_error_for_window(self, window) -> tuple[np.ndarray, float]:
        """Normal and mean squared error of the finite heights in a kernel-sized window."""
        window = np.asarray(window, dtype=float)
        size = self.parameters.kernel_size
        if window.shape != (size, size):
            raise ValueError(f"window must be {size}x{size}, got shape {window.shape}")

        rows, cols = np.nonzero(np.isfinite(window))
        if len(rows) < 3:
            return np.array(_UNIT_Z), _UNDEFINED_ERROR

        # The map offset is irrelevant here; the mean is subtracted anyway.
        resolution = self.segmented_planes_map.resolution
        points = np.column_stack((-rows * resolution, -cols * resolution, window[rows, cols]))
        return normal_and_error_from_covariance(len(points), points.mean(axis=0), points.T @ points)

    def is_locally_planar(self, normal, mean_squared_error) -> bool:
        """True if the window fit is accurate enough and not too steep."""
        threshold = self.parameters.plane_patch_error_threshold
        return bool(
            mean_squared_error < threshold * threshold
            and normal[2] > self.parameters.local_plane_inclination_threshold
        )

    def is_globally_planar(self, normal, support, points, normals) -> bool:
        """True if every point lies near the plane and has a normal close to the plane normal."""
        normal = np.asarray(normal, dtype=float)
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        normals = np.asarray(normals, dtype=float).reshape(-1, 3)
        distance_errors = np.abs(points @ normal - normal @ np.asarray(support, dtype=float))
        dot_threshold = math.cos(math.radians(self.parameters.global_plane_fit_angle_error_threshold_degrees))
        return bool(
            np.all(distance_errors <= self.parameters.global_plane_fit_distance_error_threshold)
            and np.all(normals @ normal >= dot_threshold)
        )

    def is_within_inclination_limit(self, normal) -> bool:
        """True if the plane is flat enough to keep."""
        return bool(normal[2] > self.parameters.plane_inclination_threshold)

    def _run_sliding_window_detector(self) -> np.ndarray:
        size = self.parameters.kernel_size
        middle = (size - 1) // 2
        padded = np.pad(self._elevation, middle, constant_values=np.nan)
        windows = sliding_window_view(padded, (size, size))

        planar = np.zeros(self._elevation.shape, dtype=bool)
        for row, col in np.ndindex(self._elevation.shape):
            window = windows[row, col]
            if not np.isfinite(window[middle, middle]):
                continue
            normal, error = self.compute_normal_and_error_for_window(window)
            self.surface_normals[row, col] = normal
            planar[row, col] = self.is_locally_planar(normal, error)

        radius = self.parameters.planarity_opening_filter
        if radius > 0:
            kernel = _cross_kernel(2 * radius + 1)
            planar = _with_replicated_border(ndimage.binary_erosion, planar, kernel, radius)
            planar = _with_replicated_border(ndimage.binary_dilation, planar, kernel, radius)
        return planar

    def _run_segmentation(self, planar: np.ndarray) -> None:
        if self.parameters.connectivity == 4:
            structure = ndimage.generate_binary_structure(2, 1)
        else:
            structure = np.ones((3, 3), dtype=bool)
        labeled, count = ndimage.label(planar, structure=structure)
        self.segmented_planes_map.labeled_image = labeled.astype(np.int32)
        self.segmented_planes_map.highest_label = int(count)

    def _extract_plane_parameters(self) -> None:
        # Label 0 is the non-planar background; labels added during refinement are not revisited.
        for label in range(1, self.segmented_planes_map.highest_label + 1):
            self._compute_plane_parameters_for_label(label)

    def _compute_plane_parameters_for_label(self, label: int) -> None:
        segmented = self.segmented_planes_map
        cols, rows = np.nonzero(segmented.labeled_image.T == label)
        heights = self._elevation[rows, cols]
        finite = np.isfinite(heights)
        rows, cols, heights = rows[finite], cols[finite], heights[finite]

        num_points = len(rows)
        if num_points < self.parameters.min_number_points_per_label or num_points < 3:
            return

        origin = segmented.map_origin
        resolution = segmented.resolution
        points = np.column_stack(
            (origin[0] - rows * resolution, origin[1] - cols * resolution, heights)
        )
        normals = self.surface_normals[rows, cols]

        support = points.mean(axis=0)
        normal = normal_and_error_from_covariance(num_points, support, points.T @ points)[0]

        if self.parameters.include_ransac_refinement and not self.is_globally_planar(
            normal, support, points, normals
        ):
            # Unassigned points end up in the background.
            self._set_to_background(label)
            self._refine_label_with_ransac(label, points, normals, rows, cols)
        elif self.is_within_inclination_limit(normal):
            segmented.label_plane_parameters.append((label, NormalAndPosition(support, normal)))
        else:
            self._set_to_background(label)

    def _refine_label_with_ransac(self, label, points, normals, rows, cols) -> None:
        segmented = self.segmented_planes_map
        planes = RansacPlaneExtractor(self.ransac_parameters, seed=0).detect_planes(points, normals)

        reuse_label = True
        for plane in planes:
            normal, support = RansacPlaneExtractor.plane_parameters(plane)
            if not self.is_within_inclination_limit(normal):
                continue
            if reuse_label:
                new_label = label
                reuse_label = False
            else:
                segmented.highest_label += 1
                new_label = segmented.highest_label
            segmented.label_plane_parameters.append((new_label, NormalAndPosition(support, normal)))
            segmented.labeled_image[rows[plane.indices], cols[plane.indices]] = new_label

    def _set_to_background(self, label: int) -> None:
        labeled = self.segmented_planes_map.labeled_image
        labeled[labeled == label] = 0