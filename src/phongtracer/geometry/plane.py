"""Infinite plane primitive.

A plane is the set of points P with dot(normal, P) = offset. The normal is
stored normalized; the host-side scene builder normalizes it and rejects
zero-length normals before anything is uploaded.

Rays that run (nearly) parallel to the plane are reported as misses rather
than intersected: the division by dot(direction, normal) would otherwise
blow up.
"""

import taichi as ti
import taichi.math as tm

from src.phongtracer.core.vector import T_MIN, real, vec3

from .sphere import HitRecord, make_miss

# |dot(direction, normal)| below this counts as parallel
PARALLEL_THRESHOLD = 0.01


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        normal: Unit normal of the plane.
        offset: Signed distance of the plane from the origin along normal.
    """

    normal: vec3
    offset: real


@ti.func
def hit_plane(ray_origin: vec3, ray_direction: vec3, plane: Plane) -> HitRecord:
    """Test for ray-plane intersection.

    t = (offset - dot(origin, normal)) / dot(direction, normal)

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        plane: The plane to test intersection against.

    Returns:
        A HitRecord. The normal is the stored plane normal; no back-face
        flip is performed here.
    """
    result = make_miss()
    denom = tm.dot(ray_direction, plane.normal)

    if ti.abs(denom) >= PARALLEL_THRESHOLD:
        t = (plane.offset - tm.dot(ray_origin, plane.normal)) / denom
        if t > T_MIN:
            result = HitRecord(
                hit=1,
                t=t,
                point=ray_origin + t * ray_direction,
                normal=plane.normal,
            )

    return result
