import numpy as np
import pytest

from planeseg.ransac import DetectedPlane, RansacParameters, RansacPlaneExtractor


def _grid(height, size=10, spacing=0.05):
    xs, ys = np.meshgrid(np.arange(size) * spacing, np.arange(size) * spacing)
    points = np.column_stack((xs.ravel(), ys.ravel(), np.full(xs.size, height)))
    normals = np.tile([0.0, 0.0, 1.0], (xs.size, 1))
    return points, normals


def test_single_plane_takes_all_points():
    points, normals = _grid(0.5)
    planes = RansacPlaneExtractor().detect_planes(points, normals)
    assert len(planes) == 1
    assert np.array_equal(planes[0].indices, np.arange(len(points)))
    normal, support = RansacPlaneExtractor.plane_parameters(planes[0])
    assert np.allclose(normal, [0.0, 0.0, 1.0])
    assert np.allclose(support, [0.0, 0.0, 0.5])


def test_two_planes_are_separated():
    low, low_normals = _grid(0.0)
    high, high_normals = _grid(1.0)
    points = np.vstack((low, high))
    normals = np.vstack((low_normals, high_normals))
    planes = RansacPlaneExtractor().detect_planes(points, normals)
    assert len(planes) == 2
    assert len(np.intersect1d(planes[0].indices, planes[1].indices)) == 0
    heights = sorted(RansacPlaneExtractor.plane_parameters(p)[1][2] for p in planes)
    assert np.allclose(heights, [0.0, 1.0])


def test_outlier_is_not_assigned():
    points, normals = _grid(0.0)
    points = np.vstack((points, [[0.2, 0.2, 3.0]]))
    normals = np.vstack((normals, [[0.0, 0.0, 1.0]]))
    planes = RansacPlaneExtractor().detect_planes(points, normals)
    assigned = np.concatenate([p.indices for p in planes])
    assert len(points) - 1 not in assigned


def test_points_with_disagreeing_normals_are_rejected():
    points, _ = _grid(0.0)
    sideways = np.tile([1.0, 0.0, 0.0], (len(points), 1))
    planes = RansacPlaneExtractor().detect_planes(points, sideways)
    assert planes == []


def test_detection_is_deterministic():
    rng = np.random.default_rng(3)
    points, normals = _grid(0.0)
    points[:, 2] += rng.normal(scale=0.002, size=len(points))
    first = RansacPlaneExtractor().detect_planes(points, normals)
    second = RansacPlaneExtractor().detect_planes(points, normals)
    assert len(first) == len(second)
    for a, b in zip(first, second):
        assert np.array_equal(a.indices, b.indices)
        assert np.allclose(a.normal, b.normal)


def test_detected_planes_are_stored():
    points, normals = _grid(0.0)
    extractor = RansacPlaneExtractor()
    planes = extractor.detect_planes(points, normals)
    assert extractor.detected_planes == planes


def test_too_few_points_give_no_plane():
    points, normals = _grid(0.0, size=1)
    assert RansacPlaneExtractor().detect_planes(points, normals) == []


def test_mismatched_lengths_raise():
    points, normals = _grid(0.0)
    with pytest.raises(ValueError):
        RansacPlaneExtractor().detect_planes(points, normals[:-1])


def test_plane_parameters_flip_normal_upwards():
    plane = DetectedPlane(np.array([0.0, 0.0, -1.0]), np.array([1.0, 2.0, 3.0]), np.array([0]))
    normal, support = RansacPlaneExtractor.plane_parameters(plane)
    assert normal[2] > 0.0
    assert np.allclose(normal, [0.0, 0.0, 1.0])
    assert np.allclose(support, [0.0, 0.0, 3.0])


@pytest.mark.parametrize(
    "kwargs",
    [{"probability": 0.0}, {"probability": 1.0}, {"min_points": 0}, {"epsilon": 0.0}, {"cluster_epsilon": -1.0}],
)
def test_invalid_parameters_raise(kwargs):
    with pytest.raises(ValueError):
        RansacParameters(**kwargs)