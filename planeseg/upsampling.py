"""Upsampling of labelled images and segmented plane maps."""

from __future__ import annotations

import dataclasses

import numpy as np

from .planar_region import SegmentedPlanesMap


def _repeat_counts(length: int) -> np.ndarray:
    counts = np.full(length, 3, dtype=int)
    counts[0] = 2
    counts[-1] = 2
    return counts


def upsample_image(image) -> np.ndarray:
    """Repeat border pixels twice and interior pixels three times along both axes.

    An image of r x c pixels becomes (4 + 3 (r - 2)) x (4 + 3 (c - 2)).
    """
    array = np.asarray(image)
    if array.ndim != 2:
        raise ValueError(f"expected a 2D image, got {array.ndim} dimensions")
    rows, cols = array.shape
    if rows < 2 or cols < 2:
        raise ValueError(f"image must be at least 2x2, got {rows}x{cols}")
    upsampled = np.repeat(array, _repeat_counts(rows), axis=0)
    return np.repeat(upsampled, _repeat_counts(cols), axis=1)


def upsample_map(segmented_map: SegmentedPlanesMap) -> SegmentedPlanesMap:
    """Upsample the labelled image and scale the resolution to match."""
    return dataclasses.replace(
        segmented_map,
        label_plane_parameters=list(segmented_map.label_plane_parameters),
        labeled_image=upsample_image(segmented_map.labeled_image),
        resolution=segmented_map.resolution / 3.0,
        map_origin=np.array(segmented_map.map_origin, dtype=float),
    )