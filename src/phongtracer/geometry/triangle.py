"""Triangle primitive with Moller-Trumbore intersection.

The triangle (v0, v1, v2) has the face normal normalize((v1 - v0) x (v2 - v0)),
so its orientation follows the right-hand rule over the vertex order.
Zero-area triangles are rejected by the scene builder, which keeps the
normal well defined here.

Example:
    >>> from src.phongtracer.geometry.triangle import Triangle, vec3
    >>> tri = Triangle(v0=vec3(0, 0, 0), v1=vec3(1, 0, 0), v2=vec3(0, 1, 0))
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.phongtracer.core.vector import T_MIN, vec3

from .sphere import HitRecord, make_miss


@ti.dataclass
class Triangle:
    """A triangle given by its three vertices.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
    """

    v0: vec3
    v1: vec3
    v2: vec3


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Unit face normal following the vertex winding."""
    return tm.normalize(tm.cross(tri.v1 - tri.v0, tri.v2 - tri.v0))


@ti.func
def hit_triangle(ray_origin: vec3, ray_direction: vec3, tri: Triangle) -> HitRecord:
    """Test for ray-triangle intersection.

    Expresses the hit as origin + t * direction = v0 + u * e1 + v * e2 and
    solves for (t, u, v) with Cramer's rule. The point lies inside the
    triangle when u >= 0, v >= 0 and u + v <= 1.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        tri: The triangle to test intersection against.

    Returns:
        A HitRecord with the face normal of the triangle.
    """
    result = make_miss()

    e1 = tri.v1 - tri.v0
    e2 = tri.v2 - tri.v0
    p = tm.cross(ray_direction, e2)
    det = tm.dot(e1, p)

    # det == 0: ray parallel to the triangle's plane
    if ti.abs(det) > 1e-12:
        inv_det = 1.0 / det
        s = ray_origin - tri.v0
        u = tm.dot(s, p) * inv_det
        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, e1)
            v = tm.dot(ray_direction, q) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(e2, q) * inv_det
                if t > T_MIN:
                    result = HitRecord(
                        hit=1,
                        t=t,
                        point=ray_origin + t * ray_direction,
                        normal=tm.normalize(tm.cross(e1, e2)),
                    )

    return result
