"""Plane segmentation of elevation maps, convex region growing and projection onto planar regions."""

__version__ = "0.1.0"
__all__ = [
    "planar_region",
    "projection",
    "ransac",
    "region_growing",
    "shapes",
    "sliding_window",
    "upsampling",
]