"""Taichi-based Phong ray tracer.

This package renders line-oriented scene descriptions with local
illumination, using Taichi kernels in double precision:
- Spheres, infinite planes and triangles
- Phong materials with transparency blending against the background
- Point and square area lights with soft shadows
- Stratified super-sampling

Subpackages:
    core: Vector math, errors, Taichi runtime, integrator and renderer
    geometry: Surface primitives and intersection algorithms
    materials: Phong material model and material storage
    scene: Scene model, loader, light storage and ray-scene queries
    camera: Pinhole camera with a screen plane
    preview: 8-bit conversion and PNG export

Command-line entry point: ``phongtracer SCENE OUTPUT [WIDTH HEIGHT]``.
"""

__version__ = "0.1.0"
