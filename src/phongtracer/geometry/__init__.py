"""Geometry module for surface primitives.

This module provides the closed set of surfaces the tracer supports:

Components:
    sphere: Sphere primitive and the HitRecord shared by all primitives
    plane: Infinite plane given by a unit normal and an offset
    triangle: Triangle with Moller-Trumbore intersection

All intersection routines are Taichi functions (@ti.func) that can be
called from parallel render kernels. They are pure and share the T_MIN
self-intersection threshold from ``core.vector``.

Ray-object intersection follows the pattern:
    record = hit_shape(ray_origin, ray_direction, shape)
"""

from .plane import PARALLEL_THRESHOLD, Plane, hit_plane
from .sphere import HitRecord, Sphere, hit_sphere, make_miss
from .triangle import Triangle, hit_triangle, triangle_normal

__all__ = [
    "HitRecord",
    "make_miss",
    "Sphere",
    "hit_sphere",
    "Plane",
    "hit_plane",
    "PARALLEL_THRESHOLD",
    "Triangle",
    "hit_triangle",
    "triangle_normal",
]
