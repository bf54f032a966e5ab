"""Local illumination integrator.

This module turns the nearest hit along each primary ray into a colour
and renders whole images with a parallel Taichi kernel.

Shading model (no recursion):
    base  = transparency * background + (1 - transparency) * (diffuse + specular)
    color = base + sum over lights of
            intensity * (phong_diffuse + phong_specular)
    intensity = (1 - shadow_intensity) + shadow_intensity * visibility

``visibility`` is the fraction of shadow rays that reach the light. With a
shadow ray count of N > 1 and a light width w > 0, N x N jittered samples
are spread over a w x w square centred on the light and facing the shaded
point; otherwise a single ray is cast to the light position.

Normals are flipped toward the viewer before lighting, so planes and
triangles are lit from whichever side the camera sees.

Pixels whose colour comes out NaN or infinite are written as
SENTINEL_COLOR and counted; the render itself always completes.

Example:
    >>> from src.phongtracer.core.integrator import configure_render_settings, render_rows
    >>> configure_render_settings(background=(0, 0, 0), shadow_ray_count=4)
    >>> # upload a scene and camera, then:
    >>> # render_rows(image, 0, height, samples_per_axis=1)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.phongtracer.camera.pinhole import get_ray
from src.phongtracer.core.vector import T_MIN, Vec3Tuple, as_vector, build_onb_from_normal, normalized, real, vec3
from src.phongtracer.materials.phong import (
    base_color,
    eval_phong_diffuse,
    eval_phong_specular,
    get_phong_material,
)
from src.phongtracer.scene.intersection import (
    Intersection,
    SceneHitRecord,
    intersect_scene,
    intersect_scene_any,
)
from src.phongtracer.scene.lights import (
    light_colors,
    light_positions,
    light_shadow_intensities,
    light_specular_intensities,
    light_widths,
    num_lights,
)

# Colour written for pixels whose computation produced NaN/Inf
SENTINEL_COLOR = vec3(1.0, 0.0, 1.0)

# =============================================================================
# Render Settings
# =============================================================================

_background = ti.Vector.field(3, dtype=real, shape=())
_shadow_ray_count = ti.field(dtype=ti.i32, shape=())
_invalid_pixels = ti.field(dtype=ti.i32, shape=())


def configure_render_settings(
    background: Vec3Tuple = (0.0, 0.0, 0.0),
    shadow_ray_count: int = 1,
) -> None:
    """Set the scene-wide settings the shader reads.

    Args:
        background: Colour returned for rays that hit nothing.
        shadow_ray_count: Shadow rays per light axis (N x N samples).

    Raises:
        ValueError: If shadow_ray_count is less than 1.
    """
    if shadow_ray_count < 1:
        raise ValueError(f"Shadow ray count must be at least 1, got {shadow_ray_count}")
    _background[None] = [background[0], background[1], background[2]]
    _shadow_ray_count[None] = shadow_ray_count


def reset_render_settings() -> None:
    """Restore default settings and clear the invalid pixel counter."""
    configure_render_settings()
    _invalid_pixels[None] = 0


def get_invalid_pixel_count() -> int:
    """Number of sentinel pixels written since the last reset."""
    return int(_invalid_pixels[None])


# =============================================================================
# Shadows and Shading
# =============================================================================


@ti.func
def _segment_blocked(point: vec3, target: vec3) -> ti.i32:
    """Whether any surface lies between a surface point and a target point.

    The shadow ray starts T_MIN along the direction to the target so that it
    does not hit the surface it leaves from.
    """
    offset = target - point
    distance = tm.length(offset)
    blocked = 0
    if distance > 2.0 * T_MIN:
        direction = offset / distance
        origin = point + direction * T_MIN
        blocked = intersect_scene_any(origin, direction, distance - T_MIN)
    return blocked


@ti.func
def light_visibility(point: vec3, light_index: ti.i32) -> real:
    """Fraction of a light that is visible from a surface point.

    Args:
        point: The surface point.
        light_index: Index of the light.

    Returns:
        A value in [0, 1]; 1 when nothing blocks the light.
    """
    light_pos = light_positions[light_index]
    width = light_widths[light_index]
    n = _shadow_ray_count[None]

    fraction = 0.0
    # A light on the point itself has no direction to sample around
    if n <= 1 or width <= 0.0 or tm.length(point - light_pos) <= T_MIN:
        fraction = 1.0 - ti.cast(_segment_blocked(point, light_pos), real)
    else:
        # Square of side `width` centred on the light, facing the point
        axis = tm.normalize(point - light_pos)
        tangent, bitangent, _axis = build_onb_from_normal(axis)
        cell = width / ti.cast(n, real)
        corner = light_pos - 0.5 * width * tangent - 0.5 * width * bitangent

        reached = 0
        for i in range(n):
            for j in range(n):
                sample = (
                    corner
                    + (ti.cast(i, real) + ti.random(real)) * cell * tangent
                    + (ti.cast(j, real) + ti.random(real)) * cell * bitangent
                )
                if _segment_blocked(point, sample) == 0:
                    reached += 1

        fraction = ti.cast(reached, real) / ti.cast(n * n, real)

    return fraction


@ti.func
def shade(rec: SceneHitRecord, ray_direction: vec3) -> vec3:
    """Compute the colour seen along a ray.

    Args:
        rec: The nearest hit along the ray (or a miss record).
        ray_direction: The unit direction of the ray.

    Returns:
        The unclamped colour. The background colour for a miss.
    """
    background = _background[None]
    color = background

    if rec.hit == 1:
        material = get_phong_material(rec.material_id)
        color = base_color(material, background)

        # Light the side facing the viewer
        normal = rec.normal
        if tm.dot(normal, ray_direction) > 0.0:
            normal = -normal
        to_viewer = -ray_direction

        for li in range(num_lights[None]):
            offset = light_positions[li] - rec.point
            light_distance = tm.length(offset)
            to_light = offset / ti.max(light_distance, T_MIN)
            if light_distance > T_MIN and tm.dot(normal, to_light) > 0.0:
                shadow = light_shadow_intensities[li]
                intensity = (1.0 - shadow) + shadow * light_visibility(rec.point, li)
                light_color = light_colors[li]
                diffuse = eval_phong_diffuse(material.diffuse, light_color, normal, to_light)
                specular = eval_phong_specular(
                    material.specular,
                    material.shininess,
                    light_color,
                    light_specular_intensities[li],
                    normal,
                    to_light,
                    to_viewer,
                )
                color += intensity * (diffuse + specular)

    return color


@ti.func
def _is_finite(color: vec3) -> ti.i32:
    ok = 1
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            ok = 0
    return ok


@ti.func
def render_pixel_impl(row: ti.i32, col: ti.i32, samples_per_axis: ti.i32) -> vec3:
    """Average the colour of samples_per_axis^2 stratified pixel samples.

    Args:
        row: Pixel row (0 = top).
        col: Pixel column (0 = left).
        samples_per_axis: Super-sampling level S; S x S samples are taken
            at the centres of a regular sub-pixel grid.

    Returns:
        The pixel colour, or SENTINEL_COLOR if it is not finite.
    """
    color = vec3(0.0, 0.0, 0.0)
    step = 1.0 / ti.cast(samples_per_axis, real)

    for sy in range(samples_per_axis):
        for sx in range(samples_per_axis):
            ray = get_ray(row, col, (ti.cast(sx, real) + 0.5) * step, (ti.cast(sy, real) + 0.5) * step)
            rec = intersect_scene(ray.origin, ray.direction)
            color += shade(rec, ray.direction)

    color = color * step * step

    if _is_finite(color) == 0:
        color = SENTINEL_COLOR
        _invalid_pixels[None] += 1

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    image: ti.types.ndarray(dtype=real, ndim=3),
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    samples_per_axis: ti.i32,
):
    """Render a band of rows into an (height, width, 3) image.

    Every (row, col) iteration runs in parallel and writes only its own
    pixel; scene, camera and light fields are read-only here.
    """
    for row, col in ti.ndrange((row_start, row_end), width):
        color = render_pixel_impl(row, col, samples_per_axis)
        for c in ti.static(range(3)):
            image[row, col, c] = color[c]


@ti.kernel
def _render_single_pixel(row: ti.i32, col: ti.i32, samples_per_axis: ti.i32) -> vec3:
    return render_pixel_impl(row, col, samples_per_axis)


@ti.kernel
def _light_visibility_kernel(point: vec3, light_index: ti.i32) -> real:
    return light_visibility(point, light_index)


@ti.kernel
def _shade_kernel(hit: ti.i32, point: vec3, normal: vec3, material_id: ti.i32, ray_direction: vec3) -> vec3:
    rec = SceneHitRecord(hit=hit, t=0.0, point=point, normal=normal, material_id=material_id)
    return shade(rec, ray_direction)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    image: npt.NDArray[np.float64],
    row_start: int,
    row_end: int,
    samples_per_axis: int = 1,
) -> None:
    """Render rows [row_start, row_end) of an image in place.

    The scene and camera must have been uploaded first.

    Args:
        image: Float64 array of shape (height, width, 3).
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.
        samples_per_axis: Super-sampling level.

    Raises:
        ValueError: If the image has the wrong shape or dtype, or the row
            range or sampling level is invalid.
    """
    if image.ndim != 3 or image.shape[2] != 3 or image.dtype != np.float64:
        raise ValueError(f"Expected a float64 (height, width, 3) image, got {image.dtype} {image.shape}")
    if not 0 <= row_start <= row_end <= image.shape[0]:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {image.shape[0]}")
    if samples_per_axis < 1:
        raise ValueError(f"Super-sampling level must be at least 1, got {samples_per_axis}")

    if row_end > row_start:
        _render_rows(image, row_start, row_end, image.shape[1], samples_per_axis)


def render_pixel(row: int, col: int, samples_per_axis: int = 1) -> Vec3Tuple:
    """Render a single pixel of the uploaded scene.

    Used for testing and debugging; whole images go through render_rows().

    Returns:
        Tuple of (R, G, B) color values.
    """
    color = _render_single_pixel(row, col, samples_per_axis)
    return (float(color[0]), float(color[1]), float(color[2]))


def visible_light_fraction(point: Vec3Tuple, light_index: int) -> float:
    """Fraction of an uploaded light that reaches a point, from Python."""
    p = as_vector(point)
    return float(_light_visibility_kernel(vec3(p[0], p[1], p[2]), light_index))


def shade_intersection(intersection: Intersection | None, ray_direction: Vec3Tuple) -> Vec3Tuple:
    """Shade an intersection (or a miss) of the uploaded scene from Python.

    Args:
        intersection: The hit to shade, or None for a ray that hit nothing.
        ray_direction: Direction of the ray that produced the hit.

    Returns:
        The unclamped (R, G, B) colour.
    """
    d = normalized(ray_direction, "ray direction")
    direction = vec3(d[0], d[1], d[2])

    if intersection is None:
        zero = vec3(0.0, 0.0, 0.0)
        color = _shade_kernel(0, zero, zero, 0, direction)
    else:
        p = as_vector(intersection.position)
        n = as_vector(intersection.normal)
        color = _shade_kernel(
            1,
            vec3(p[0], p[1], p[2]),
            vec3(n[0], n[1], n[2]),
            intersection.material_index,
            direction,
        )
    return (float(color[0]), float(color[1]), float(color[2]))
