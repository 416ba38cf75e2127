"""RANSAC detection of planes in oriented point sets."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree

_MAX_TRIALS = 1000
_DEGENERATE_TOLERANCE = 1e-12


@dataclass
class RansacParameters:
    """Settings for plane detection.

    epsilon is the largest point-to-plane distance of an inlier, cluster_epsilon the
    largest spacing between neighbouring points of one plane, and normal_threshold the
    largest angle in degrees between a point normal and the plane normal.
    """

    probability: float = 0.01
    min_points: int = 4
    epsilon: float = 0.025
    cluster_epsilon: float = 0.08
    normal_threshold: float = 25.0

    def __post_init__(self) -> None:
        if not 0.0 < self.probability < 1.0:
            raise ValueError(f"probability must lie in (0, 1), got {self.probability}")
        if self.min_points < 1:
            raise ValueError(f"min_points must be positive, got {self.min_points}")
        if self.epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.cluster_epsilon <= 0.0:
            raise ValueError(f"cluster_epsilon must be positive, got {self.cluster_epsilon}")


@dataclass
class DetectedPlane:
    """A detected plane: unit normal, a point on it and the indices of its points."""

    normal: np.ndarray
    point: np.ndarray
    indices: np.ndarray


class RansacPlaneExtractor:
    """Detects planes one after another, removing the points of each plane found."""

    def __init__(self, parameters: RansacParameters | None = None, seed: int = 0) -> None:
        self.parameters = parameters if parameters is not None else RansacParameters()
        self.seed = seed
        self.detected_planes: list[DetectedPlane] = []
        self._cos_threshold = math.cos(math.radians(self.parameters.normal_threshold))

    def detect_planes(self, points, normals) -> list[DetectedPlane]:
        """Detect planes in the points; indices in the result refer to the input order."""
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        nrm = np.asarray(normals, dtype=float).reshape(-1, 3)
        if len(pts) != len(nrm):
            raise ValueError(f"got {len(pts)} points but {len(nrm)} normals")

        lengths = np.linalg.norm(nrm, axis=1, keepdims=True)
        nrm = np.divide(nrm, lengths, out=np.zeros_like(nrm), where=lengths > 0.0)

        rng = np.random.default_rng(self.seed)
        minimum = max(self.parameters.min_points, 3)
        remaining = np.arange(len(pts))
        planes: list[DetectedPlane] = []
        while len(remaining) >= minimum:
            plane = self._detect_one(pts, nrm, remaining, rng)
            if plane is None or len(plane.indices) < minimum:
                break
            planes.append(plane)
            remaining = np.setdiff1d(remaining, plane.indices, assume_unique=True)

        self.detected_planes = planes
        return planes

    @staticmethod
    def plane_parameters(plane: DetectedPlane) -> tuple[np.ndarray, np.ndarray]:
        """Upward normal of the plane and the projection of the origin onto it."""
        normal = np.asarray(plane.normal, dtype=float)
        if normal[2] < 0.0:
            normal = -normal
        support = float(normal @ np.asarray(plane.point, dtype=float)) * normal
        return normal, support

    def _inliers(self, pts, nrm, candidates, normal, point) -> np.ndarray:
        distances = np.abs((pts[candidates] - point) @ normal)
        agreement = np.abs(nrm[candidates] @ normal)
        # The distance tolerance is the user epsilon itself.
        mask = (distances < self.parameters.epsilon) & (agreement >= self._cos_threshold)
        return candidates[mask]

    def _largest_cluster(self, pts, indices) -> np.ndarray:
        if len(indices) == 0:
            return indices
        tree = cKDTree(pts[indices])
        pairs = tree.query_pairs(self.parameters.cluster_epsilon, output_type="ndarray")
        size = len(indices)
        graph = coo_matrix(
            (np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])), shape=(size, size)
        )
        _, labels = connected_components(graph, directed=False)
        biggest = np.bincount(labels).argmax()
        return indices[labels == biggest]

    def _best_candidate(self, pts, nrm, remaining, rng):
        best = None
        best_count = 0
        needed = _MAX_TRIALS
        trials = 0
        while trials < needed:
            trials += 1
            a, b, c = pts[rng.choice(remaining, 3, replace=False)]
            normal = np.cross(b - a, c - a)
            length = np.linalg.norm(normal)
            if length < _DEGENERATE_TOLERANCE:
                continue
            normal = normal / length
            count = len(self._inliers(pts, nrm, remaining, normal, a))
            if count > best_count:
                best_count = count
                best = (normal, a)
                ratio_cubed = (count / len(remaining)) ** 3
                if ratio_cubed >= 1.0:
                    break
                if ratio_cubed > _DEGENERATE_TOLERANCE:
                    estimate = math.log(self.parameters.probability) / math.log(1.0 - ratio_cubed)
                    needed = min(_MAX_TRIALS, max(trials, math.ceil(estimate)))
        return best

    def _detect_one(self, pts, nrm, remaining, rng) -> DetectedPlane | None:
        candidate = self._best_candidate(pts, nrm, remaining, rng)
        if candidate is None:
            return None
        normal, point = candidate
        cluster = self._largest_cluster(pts, self._inliers(pts, nrm, remaining, normal, point))

        if len(cluster) >= 3:
            centroid = pts[cluster].mean(axis=0)
            refit_normal = np.linalg.svd(pts[cluster] - centroid)[2][-1]
            refit = self._largest_cluster(
                pts, self._inliers(pts, nrm, remaining, refit_normal, centroid)
            )
            if len(refit) >= len(cluster):
                return DetectedPlane(refit_normal, pts[refit].mean(axis=0), np.sort(refit))
        return DetectedPlane(normal, np.array(point), np.sort(cluster))