"""Phong material model and material registry.

A material carries a diffuse colour, a specular colour, a reflection
colour, a Phong shininess exponent and a transparency fraction. Lighting
at a surface point uses the classic Phong terms:

    diffuse  = kd * light_color * max(0, N . L)
    specular = ks * light_color * specular_intensity * max(0, R . V)^shininess

where L points toward the light, V toward the viewer and R is -L
reflected about N.

Materials are referenced by 1-based index (index 0 is reserved and never
valid). The registry stores material ``i`` in slot ``i - 1``.

Example:
    >>> from src.phongtracer.materials.phong import add_phong_material
    >>> red = add_phong_material(diffuse=(1, 0, 0), specular=(0.3, 0.3, 0.3), shininess=50)
    >>> red
    1
"""

import taichi as ti
import taichi.math as tm

from src.phongtracer.core.vector import real, reflect, vec3


@ti.dataclass
class PhongMaterial:
    """Phong material properties.

    Attributes:
        diffuse: Diffuse colour (RGB).
        specular: Specular colour (RGB).
        reflection: Reflection colour (RGB). Stored for recursive
            reflection; the local lighting model does not use it.
        shininess: Phong specular exponent.
        transparency: Fraction of the background seen through the
            surface, in [0, 1].
    """

    diffuse: vec3
    specular: vec3
    reflection: vec3
    shininess: real
    transparency: real


@ti.func
def eval_phong_diffuse(diffuse: vec3, light_color: vec3, normal: vec3, to_light: vec3) -> vec3:
    """Evaluate the Lambert diffuse term.

    Args:
        diffuse: Material diffuse colour.
        light_color: Light colour.
        normal: Unit surface normal facing the viewer.
        to_light: Unit vector from the surface point toward the light.

    Returns:
        The diffuse contribution (zero for lights behind the surface).
    """
    n_dot_l = ti.max(tm.dot(normal, to_light), 0.0)
    return diffuse * light_color * n_dot_l


@ti.func
def eval_phong_specular(
    specular: vec3,
    shininess: real,
    light_color: vec3,
    specular_intensity: real,
    normal: vec3,
    to_light: vec3,
    to_viewer: vec3,
) -> vec3:
    """Evaluate the Phong specular highlight term.

    Args:
        specular: Material specular colour.
        shininess: Phong exponent.
        light_color: Light colour.
        specular_intensity: The light's specular weight.
        normal: Unit surface normal facing the viewer.
        to_light: Unit vector from the surface point toward the light.
        to_viewer: Unit vector from the surface point toward the viewer.

    Returns:
        The specular contribution.
    """
    result = vec3(0.0, 0.0, 0.0)
    if tm.dot(normal, to_light) > 0.0:
        mirrored = reflect(-to_light, normal)
        r_dot_v = ti.max(tm.dot(mirrored, to_viewer), 0.0)
        result = specular * light_color * specular_intensity * ti.pow(r_dot_v, shininess)
    return result


@ti.func
def base_color(material: PhongMaterial, background: vec3) -> vec3:
    """Inherent surface colour before lighting.

    Blends the background seen through the surface with the material's
    own diffuse and specular colours by its transparency.
    """
    opaque = material.diffuse + material.specular
    return material.transparency * background + (1.0 - material.transparency) * opaque


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 256

phong_diffuse = ti.Vector.field(3, dtype=real, shape=MAX_MATERIALS)
phong_specular = ti.Vector.field(3, dtype=real, shape=MAX_MATERIALS)
phong_reflection = ti.Vector.field(3, dtype=real, shape=MAX_MATERIALS)
phong_shininess = ti.field(dtype=real, shape=MAX_MATERIALS)
phong_transparency = ti.field(dtype=real, shape=MAX_MATERIALS)
num_phong_materials = ti.field(dtype=ti.i32, shape=())


def clear_phong_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_phong_materials[None] = 0


def add_phong_material(
    diffuse: tuple[float, float, float],
    specular: tuple[float, float, float] = (0.0, 0.0, 0.0),
    reflection: tuple[float, float, float] = (0.0, 0.0, 0.0),
    shininess: float = 1.0,
    transparency: float = 0.0,
) -> int:
    """Add a material to the registry.

    Args:
        diffuse: Diffuse colour as (R, G, B).
        specular: Specular colour as (R, G, B).
        reflection: Reflection colour as (R, G, B).
        shininess: Phong exponent (non-negative).
        transparency: Transparency fraction in [0, 1].

    Returns:
        The 1-based index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If shininess is negative or transparency is outside [0, 1].
    """
    if shininess < 0.0:
        raise ValueError(f"Shininess must be non-negative, got {shininess}")
    if transparency < 0.0 or transparency > 1.0:
        raise ValueError(f"Transparency {transparency} is outside [0, 1]")

    slot = num_phong_materials[None]
    if slot >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    phong_diffuse[slot] = vec3(diffuse[0], diffuse[1], diffuse[2])
    phong_specular[slot] = vec3(specular[0], specular[1], specular[2])
    phong_reflection[slot] = vec3(reflection[0], reflection[1], reflection[2])
    phong_shininess[slot] = shininess
    phong_transparency[slot] = transparency
    num_phong_materials[None] = slot + 1
    return slot + 1


def get_phong_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_phong_materials[None])


@ti.func
def get_phong_material(material_index: ti.i32) -> PhongMaterial:
    """Look up a material by its 1-based index.

    Args:
        material_index: The 1-based material index.

    Returns:
        The material properties.
    """
    slot = material_index - 1
    return PhongMaterial(
        diffuse=phong_diffuse[slot],
        specular=phong_specular[slot],
        reflection=phong_reflection[slot],
        shininess=phong_shininess[slot],
        transparency=phong_transparency[slot],
    )
