"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    vector: Vector math, the Ray struct and host-side vector helpers
    errors: Exception hierarchy for loading, validation and output
    runtime: Taichi initialization
    integrator: Phong shading with soft shadows and row-band kernels
    renderer: Renderer driving the integrator and producing RenderResult

All compute-intensive operations use Taichi kernels; pixels are shaded
in parallel and never depend on one another.
"""

from .errors import (
    DegenerateGeometryError,
    ImageWriteError,
    RayTracerError,
    SceneFileError,
    SceneFormatError,
    SceneReferenceError,
)
from .vector import (
    T_MIN,
    Ray,
    as_vector,
    build_onb_from_normal,
    cross,
    dot,
    length,
    length_squared,
    normalize,
    normalized,
    ray_at,
    real,
    reflect,
    vec3,
)

# Note: integrator and renderer are NOT imported here; they declare Taichi
# fields, which requires ti.init() to have been called first.
#
# For rendering, use:
#   from src.phongtracer.core.renderer import Renderer

__all__ = [
    "RayTracerError",
    "SceneFormatError",
    "SceneFileError",
    "SceneReferenceError",
    "DegenerateGeometryError",
    "ImageWriteError",
    "Ray",
    "ray_at",
    "real",
    "vec3",
    "T_MIN",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "build_onb_from_normal",
    "as_vector",
    "normalized",
]
