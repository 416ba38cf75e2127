# planeseg

Tools for finding flat regions in a 2.5D elevation map and for working with
planar regions: plane frames, convex region growing inside polygons and
projection of 3D points onto the best matching region.

## Modules

- `planeseg.shapes`: 2D geometry on points given as `(x, y)` tuples.
  `Polygon` (with `edges()`, `is_convex()`, `bbox()`), `PolygonWithHoles`
  (an `outer` polygon plus `holes`), `BoundingBox`, and the functions
  `is_inside` (boundary counts as inside; a point inside a hole is outside),
  `squared_distance`, `squared_distance_to_segment`, `segments_intersect`,
  `distance_to_shape`, `project_to_closest_point`, `point_on_line` and
  `scale_shape`.
- `planeseg.planar_region`: `NormalAndPosition`, the rigid `Transform`
  (`apply`, `inverse`), `get_transform_local_to_global` (a frame whose z-axis
  is the plane normal), `project_to_plane_along_gravity` (plane coordinates of
  the point on the plane vertically above or below a world x, y) and
  `position_in_world_from_plane`. The containers `BoundaryWithInset`,
  `PlanarRegion` and `SegmentedPlanesMap` live here too.
- `planeseg.upsampling`: `upsample_image` repeats border rows/columns twice
  and interior ones three times, so an r x c image (at least 2 x 2) becomes
  (4 + 3 (r - 2)) x (4 + 3 (c - 2)); `upsample_map` does this to the label
  image of a `SegmentedPlanesMap` and divides its resolution by 3.
- `planeseg.region_growing`: `grow_convex_polygon_inside_shape` starts from a
  regular polygon around a seed point (`create_regular_polygon`) and moves
  each vertex outwards by `growth_factor` while the polygon stays convex and
  does not cross the parent shape's edges. A seed on the boundary gives a
  zero-size polygon and a logged warning; growth stops after 1000 rounds.
- `planeseg.projection`: `get_best_planar_region_at_position` returns a
  `PlanarTerrainProjection` (region, position in the plane frame, position in
  the world, cost) minimising squared distance plus a penalty function, using
  `sort_with_bounding_boxes` to skip regions that cannot win.
  `project_to_planar_region` projects a plane-frame point into the region's
  insets and out of any hole; it raises `ValueError` for a region without
  insets.
- `planeseg.ransac`: `RansacPlaneExtractor.detect_planes(points, normals)`
  finds planes one after another (seeded, so results are repeatable) and
  returns `DetectedPlane` objects whose `indices` refer to the input order.
  `RansacParameters` sets the inlier distance `epsilon`, the neighbour spacing
  `cluster_epsilon`, the normal angle `normal_threshold` in degrees,
  `min_points` and `probability`. `RansacPlaneExtractor.plane_parameters`
  gives the upward normal and the projection of the origin onto the plane.
- `planeseg.sliding_window`: `SlidingWindowPlaneExtractor` classifies each
  cell as locally planar with a `kernel_size` window, optionally opens the
  result, labels connected components (4- or 8-connectivity) and fits a plane
  per label, refining non-planar labels with RANSAC when
  `include_ransac_refinement` is set. Settings are in
  `SlidingWindowParameters`; `normal_and_error_from_covariance` is exposed as
  a helper.

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Example

```python
import numpy as np

from planeseg.planar_region import (
    NormalAndPosition,
    get_transform_local_to_global,
    position_in_world_from_plane,
    project_to_plane_along_gravity,
)
from planeseg.region_growing import grow_convex_polygon_inside_shape
from planeseg.shapes import Polygon, PolygonWithHoles, is_inside
from planeseg.sliding_window import SlidingWindowPlaneExtractor

# A plane through (0.1, 0.2, 0.3) with normal along (0.4, 0.5, 0.6)
normal = np.array([0.4, 0.5, 0.6])
frame = get_transform_local_to_global(
    NormalAndPosition(position=[0.1, 0.2, 0.3], normal=normal / np.linalg.norm(normal))
)
in_plane = project_to_plane_along_gravity((0.5, -0.2), frame)
in_world = position_in_world_from_plane(in_plane, frame)  # x, y are 0.5, -0.2

# Grow a convex region inside a square
square = PolygonWithHoles(Polygon([(1, -1), (1, 1), (-1, 1), (-1, -1)]))
region = grow_convex_polygon_inside_shape(square, (0.0, 0.5), 16, 1.05)
assert region.is_convex()
assert all(is_inside(p, square) for p in region)

# Segment a flat elevation map
extractor = SlidingWindowPlaneExtractor()
segmented = extractor.run_extraction(np.zeros((10, 10)), 0.1, (0.0, 0.0))
print(segmented.highest_label, segmented.label_plane_parameters)
```

## Elevation maps

`SlidingWindowPlaneExtractor.run_extraction(elevation, resolution, map_origin)`
takes a 2D array of heights (NaN for unknown cells), the cell size and the
world x, y of cell (0, 0). Cell (row, col) lies at
`map_origin - resolution * (row, col)`, so rows run towards negative x and
columns towards negative y. It returns a `SegmentedPlanesMap` with the label
image (0 is the non-planar background), the highest label used and a
`(label, NormalAndPosition)` entry for each kept plane. After a run the
extractor also holds `binary_labeled_image` (1 where a cell has a plane
label) and `surface_normals` (the per-cell window normals).

## What it does not do

The package does not read elevation maps from images or other files, does
not inpaint, smooth or resample maps, and does not turn a label image into
`PlanarRegion` polygons (contour tracing, insets). `PlanarRegion` objects for
`planeseg.projection` and boundaries for `planeseg.region_growing` have to be
built by the caller. There is no command-line tool and nothing is drawn.