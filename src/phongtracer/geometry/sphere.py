"""Sphere primitive with robust ray-sphere intersection.

This module provides the Sphere dataclass, the HitRecord shared by all
primitives, and the intersection function. Roots are computed with the
robust quadratic formula from Ray Tracing Gems to avoid catastrophic
cancellation when b^2 is nearly equal to 4ac.

Example:
    >>> from src.phongtracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, 0), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.phongtracer.core.vector import T_MIN, real, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
    """

    center: vec3
    radius: real


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The world-space intersection point. Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, in the
            primitive's own orientation (never flipped toward the ray).
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(hit=0, t=0.0, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0))


@ti.func
def _solve_quadratic_robust(h: real, a: real, c: real, sqrt_d: real):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-12:
        # Fall back to standard formula for edge cases
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> HitRecord:
    """Test for ray-sphere intersection.

    Solves |origin + t * direction - center|^2 = radius^2 in the half-b
    form a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = |origin - center|^2 - radius^2
    and returns the smallest root greater than T_MIN.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        sphere: The sphere to test intersection against.

    Returns:
        A HitRecord. The normal is (point - center) / radius, i.e. it
        always points away from the center.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        # Nearest root in front of the origin
        t = t0
        valid = t > T_MIN
        if not valid:
            t = t1
            valid = t > T_MIN

        if valid:
            point = ray_origin + t * ray_direction
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=(point - sphere.center) / sphere.radius,
            )

    return result
