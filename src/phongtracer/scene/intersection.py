"""Scene-level primitive intersection testing.

This module stores every surface of the scene in Taichi fields and answers
two queries over them:

- ``intersect_scene``: the nearest hit along a ray, with the material index
  of the surface that was struck (``raycast`` is the host-side wrapper).
- ``intersect_scene_any``: whether anything blocks a ray segment, used for
  shadow rays.

Both queries are a linear scan over all spheres, planes and triangles. They
only read the primitive fields, so any number of kernel iterations can run
them concurrently once the scene has been uploaded.

Example:
    >>> from src.phongtracer.scene.intersection import add_sphere, raycast, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, 0.0), 1.0, material_index=1)
    0
    >>> raycast((0.0, 0.0, -5.0), (0.0, 0.0, 1.0)).position
    (0.0, 0.0, -1.0)
"""

from dataclasses import dataclass

import taichi as ti

from src.phongtracer.core.vector import (
    Vec3Tuple,
    as_vector,
    length_squared,
    normalized,
    real,
    vec3,
)
from src.phongtracer.geometry.plane import Plane, hit_plane
from src.phongtracer.geometry.sphere import HitRecord, Sphere, hit_sphere
from src.phongtracer.geometry.triangle import Triangle, hit_triangle

# Larger than any squared distance in a sane scene
FAR_DISTANCE_SQUARED = 1e300


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The world-space intersection point. Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, in the
            surface's own orientation. Only valid if hit == 1.
        material_id: The 1-based material index of the surface that was
            struck. 0 for a miss.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    material_id: ti.i32


@dataclass(frozen=True)
class Intersection:
    """Host-side result of a successful ray-scene query.

    Attributes:
        position: World-space hit position.
        normal: Unit surface normal at the hit position.
        material_index: 1-based index of the struck surface's material.
    """

    position: Vec3Tuple
    normal: Vec3Tuple
    material_index: int


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_PLANES = 256
MAX_TRIANGLES = 4096

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Plane storage
plane_normals = ti.Vector.field(3, dtype=real, shape=MAX_PLANES)
plane_offsets = ti.field(dtype=real, shape=MAX_PLANES)
plane_material_ids = ti.field(dtype=ti.i32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# Triangle storage
triangle_v0 = ti.Vector.field(3, dtype=real, shape=MAX_TRIANGLES)
triangle_v1 = ti.Vector.field(3, dtype=real, shape=MAX_TRIANGLES)
triangle_v2 = ti.Vector.field(3, dtype=real, shape=MAX_TRIANGLES)
triangle_material_ids = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())

# Result slots for host-side queries
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_point = ti.Vector.field(3, dtype=real, shape=())
_query_normal = ti.Vector.field(3, dtype=real, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_planes[None] = 0
    num_triangles[None] = 0


def add_sphere(center: Vec3Tuple, radius: float, material_index: int) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material_index: 1-based material index of the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_index
    num_spheres[None] = idx + 1
    return idx


def add_plane(normal: Vec3Tuple, offset: float, material_index: int) -> int:
    """Add an infinite plane to the scene.

    Args:
        normal: The plane normal. Normalized before it is stored.
        offset: Signed distance of the plane from the origin along normal.
        material_index: 1-based material index of the plane.

    Returns:
        The index of the added plane.

    Raises:
        RuntimeError: If the maximum number of planes is exceeded.
        DegenerateGeometryError: If the normal has zero length.
    """
    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    unit = normalized(normal, "plane normal")
    plane_normals[idx] = vec3(unit[0], unit[1], unit[2])
    plane_offsets[idx] = offset
    plane_material_ids[idx] = material_index
    num_planes[None] = idx + 1
    return idx


def add_triangle(v0: Vec3Tuple, v1: Vec3Tuple, v2: Vec3Tuple, material_index: int) -> int:
    """Add a triangle to the scene.

    Args:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        material_index: 1-based material index of the triangle.

    Returns:
        The index of the added triangle.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    idx = num_triangles[None]
    if idx >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    triangle_v0[idx] = vec3(v0[0], v0[1], v0[2])
    triangle_v1[idx] = vec3(v1[0], v1[1], v1[2])
    triangle_v2[idx] = vec3(v2[0], v2[1], v2[2])
    triangle_material_ids[idx] = material_index
    num_triangles[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=0,
    )


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHitRecord:
    """Find the nearest surface along a ray.

    Tests every sphere, plane and triangle and keeps the hit whose point is
    closest (in squared distance) to the ray origin.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record.
    """
    closest = FAR_DISTANCE_SQUARED
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere)
        if rec.hit == 1:
            dist2 = length_squared(rec.point - ray_origin)
            if dist2 < closest:
                closest = dist2
                result = _to_scene_hit_record(rec, sphere_material_ids[i])

    for i in range(num_planes[None]):
        plane = Plane(normal=plane_normals[i], offset=plane_offsets[i])
        rec = hit_plane(ray_origin, ray_direction, plane)
        if rec.hit == 1:
            dist2 = length_squared(rec.point - ray_origin)
            if dist2 < closest:
                closest = dist2
                result = _to_scene_hit_record(rec, plane_material_ids[i])

    for i in range(num_triangles[None]):
        tri = Triangle(v0=triangle_v0[i], v1=triangle_v1[i], v2=triangle_v2[i])
        rec = hit_triangle(ray_origin, ray_direction, tri)
        if rec.hit == 1:
            dist2 = length_squared(rec.point - ray_origin)
            if dist2 < closest:
                closest = dist2
                result = _to_scene_hit_record(rec, triangle_material_ids[i])

    return result


@ti.func
def intersect_scene_any(ray_origin: vec3, ray_direction: vec3, max_distance: real) -> ti.i32:
    """Test whether any surface blocks a ray segment (shadow ray query).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        max_distance: Only hits with t < max_distance count as blocking.

    Returns:
        1 if any primitive was hit within the segment, 0 otherwise.
    """
    hit_any = 0

    for i in range(num_spheres[None]):
        if hit_any == 0:
            sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
            rec = hit_sphere(ray_origin, ray_direction, sphere)
            if rec.hit == 1 and rec.t < max_distance:
                hit_any = 1

    for i in range(num_planes[None]):
        if hit_any == 0:
            plane = Plane(normal=plane_normals[i], offset=plane_offsets[i])
            rec = hit_plane(ray_origin, ray_direction, plane)
            if rec.hit == 1 and rec.t < max_distance:
                hit_any = 1

    for i in range(num_triangles[None]):
        if hit_any == 0:
            tri = Triangle(v0=triangle_v0[i], v1=triangle_v1[i], v2=triangle_v2[i])
            rec = hit_triangle(ray_origin, ray_direction, tri)
            if rec.hit == 1 and rec.t < max_distance:
                hit_any = 1

    return hit_any


@ti.kernel
def _raycast_kernel(ray_origin: vec3, ray_direction: vec3):
    rec = intersect_scene(ray_origin, ray_direction)
    _query_hit[None] = rec.hit
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_material_id[None] = rec.material_id


def raycast(origin: Vec3Tuple, direction: Vec3Tuple) -> Intersection | None:
    """Find the nearest surface along a ray from Python.

    Args:
        origin: The ray origin.
        direction: The ray direction; normalized before the query.

    Returns:
        The nearest Intersection, or None when the ray hits nothing.

    Raises:
        DegenerateGeometryError: If direction has zero length.
    """
    o = as_vector(origin)
    d = normalized(direction, "ray direction")
    _raycast_kernel(vec3(o[0], o[1], o[2]), vec3(d[0], d[1], d[2]))

    if _query_hit[None] == 0:
        return None

    point = _query_point[None]
    normal = _query_normal[None]
    return Intersection(
        position=(float(point[0]), float(point[1]), float(point[2])),
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        material_index=int(_query_material_id[None]),
    )
