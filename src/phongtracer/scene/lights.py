"""Point/area light storage.

Each light has a position, a colour, a specular intensity weight, a
shadow intensity (how much of the light an occluder blocks) and a width.
A width greater than zero turns the light into a square area light for
soft shadow sampling.
"""

import taichi as ti

from src.phongtracer.core.vector import real, vec3

# Maximum number of lights in the scene
MAX_LIGHTS = 64

light_positions = ti.Vector.field(3, dtype=real, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=real, shape=MAX_LIGHTS)
light_specular_intensities = ti.field(dtype=real, shape=MAX_LIGHTS)
light_shadow_intensities = ti.field(dtype=real, shape=MAX_LIGHTS)
light_widths = ti.field(dtype=real, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def add_light(
    position: tuple[float, float, float],
    color: tuple[float, float, float],
    specular_intensity: float = 1.0,
    shadow_intensity: float = 1.0,
    width: float = 0.0,
) -> int:
    """Add a light to the scene.

    Args:
        position: Light position (x, y, z).
        color: Light colour (R, G, B).
        specular_intensity: Weight of the light in specular highlights.
        shadow_intensity: Fraction of the light blocked by an occluder, in [0, 1].
        width: Side length of the square area light (0 for a point light).

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
        ValueError: If shadow_intensity is outside [0, 1] or width is negative.
    """
    if shadow_intensity < 0.0 or shadow_intensity > 1.0:
        raise ValueError(f"Shadow intensity {shadow_intensity} is outside [0, 1]")
    if width < 0.0:
        raise ValueError(f"Light width must be non-negative, got {width}")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

    light_positions[idx] = vec3(position[0], position[1], position[2])
    light_colors[idx] = vec3(color[0], color[1], color[2])
    light_specular_intensities[idx] = specular_intensity
    light_shadow_intensities[idx] = shadow_intensity
    light_widths[idx] = width
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])
