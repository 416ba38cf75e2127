[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "planeseg"
version = "0.1.0"
description = "Plane segmentation of elevation maps, convex region growing inside polygons and projection onto planar regions"
requires-python = ">=3.10"
keywords = ["elevation map", "plane segmentation", "ransac", "convex polygon", "terrain", "geometry"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["planeseg"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
