"""Scene model, builder and upload to the render kernels.

A scene goes through two phases:

1. Construction: a mutable SceneBuilder collects settings, materials,
   lights and surfaces (sequentially, e.g. while a scene file is parsed).
   ``build()`` validates everything and returns a frozen Scene.
2. Rendering: ``upload_scene`` copies the frozen Scene into the Taichi
   fields read by the render kernels. Nothing writes to those fields
   while a kernel is running.

Validation happens at construction time so degenerate input fails with
a clear error instead of turning into NaN pixels:

- every surface's material index must be in 1..len(materials)
- spheres need a positive radius
- plane normals and triangle areas must be non-zero

Example:
    >>> from src.phongtracer.scene.manager import SceneBuilder, upload_scene
    >>> builder = SceneBuilder()
    >>> red = builder.add_material(diffuse=(1.0, 0.0, 0.0))
    >>> builder.add_sphere(center=(0.0, 0.0, 0.0), radius=1.0, material_index=red)
    >>> scene = builder.build()
    >>> upload_scene(scene)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Union

import numpy as np

from src.phongtracer.core.errors import DegenerateGeometryError, SceneReferenceError
from src.phongtracer.core.integrator import configure_render_settings
from src.phongtracer.core.vector import DEGENERATE_LENGTH, Vec3Tuple, as_vector, normalized, to_tuple
from src.phongtracer.materials.phong import (
    MAX_MATERIALS,
    add_phong_material,
    clear_phong_materials,
)
from src.phongtracer.scene.intersection import (
    MAX_PLANES,
    MAX_SPHERES,
    MAX_TRIANGLES,
    add_plane,
    add_sphere,
    add_triangle,
    clear_scene,
)
from src.phongtracer.scene.lights import MAX_LIGHTS, add_light, clear_lights

# =============================================================================
# Scene Elements
# =============================================================================


@dataclass(frozen=True)
class Material:
    """Surface appearance parameters.

    Attributes:
        diffuse: Diffuse colour (R, G, B).
        specular: Specular colour (R, G, B).
        reflection: Reflection colour (R, G, B).
        shininess: Phong specular exponent.
        transparency: Fraction of the background seen through the surface.
    """

    diffuse: Vec3Tuple
    specular: Vec3Tuple = (0.0, 0.0, 0.0)
    reflection: Vec3Tuple = (0.0, 0.0, 0.0)
    shininess: float = 1.0
    transparency: float = 0.0


@dataclass(frozen=True)
class Light:
    """A light source.

    Attributes:
        position: Light position.
        color: Light colour (R, G, B).
        specular_intensity: Weight of the light in specular highlights.
        shadow_intensity: Fraction of the light an occluder blocks.
        width: Side of the square area light used for soft shadows.
    """

    position: Vec3Tuple
    color: Vec3Tuple
    specular_intensity: float = 1.0
    shadow_intensity: float = 1.0
    width: float = 0.0


@dataclass(frozen=True)
class SphereSurface:
    """A sphere surface."""

    center: Vec3Tuple
    radius: float
    material_index: int


@dataclass(frozen=True)
class PlaneSurface:
    """An infinite plane; the normal is stored normalized."""

    normal: Vec3Tuple
    offset: float
    material_index: int


@dataclass(frozen=True)
class TriangleSurface:
    """A triangle given by its vertices in winding order."""

    v0: Vec3Tuple
    v1: Vec3Tuple
    v2: Vec3Tuple
    material_index: int


# The closed set of surface kinds
Surface = Union[SphereSurface, PlaneSurface, TriangleSurface]


@dataclass(frozen=True)
class SceneSettings:
    """General render settings.

    Attributes:
        background: Colour of rays that hit nothing.
        shadow_ray_count: Shadow rays per light axis (N x N samples).
        maximum_recursion_count: Reflection/refraction depth limit. Stored
            for recursive shading; local shading ignores it.
        super_sampling_level: Samples per pixel axis (S x S per pixel).
    """

    background: Vec3Tuple = (0.0, 0.0, 0.0)
    shadow_ray_count: int = 1
    maximum_recursion_count: int = 10
    super_sampling_level: int = 1


@dataclass(frozen=True)
class Scene:
    """An immutable, validated scene.

    Attributes:
        settings: General render settings.
        materials: Materials, referenced by 1-based index.
        lights: Light sources.
        surfaces: Spheres, planes and triangles.
    """

    settings: SceneSettings = field(default_factory=SceneSettings)
    materials: tuple[Material, ...] = ()
    lights: tuple[Light, ...] = ()
    surfaces: tuple[Surface, ...] = ()

    @property
    def background(self) -> Vec3Tuple:
        return self.settings.background

    def get_material(self, material_index: int) -> Material:
        """Look up a material by its 1-based index.

        Raises:
            SceneReferenceError: If the index does not name a material.
        """
        if not 1 <= material_index <= len(self.materials):
            raise SceneReferenceError(
                f"Material index {material_index} is out of range 1..{len(self.materials)}"
            )
        return self.materials[material_index - 1]

    def count(self, kind: type) -> int:
        """Number of surfaces of one kind (SphereSurface, PlaneSurface, ...)."""
        return sum(1 for surface in self.surfaces if isinstance(surface, kind))


# =============================================================================
# Validation
# =============================================================================


def _check_color(color: Vec3Tuple) -> Vec3Tuple:
    return to_tuple(as_vector(color))


def _check_settings(settings: SceneSettings) -> SceneSettings:
    if settings.shadow_ray_count < 1:
        raise ValueError(f"Shadow ray count must be at least 1, got {settings.shadow_ray_count}")
    if settings.maximum_recursion_count < 0:
        raise ValueError(
            f"Maximum recursion count must be non-negative, got {settings.maximum_recursion_count}"
        )
    if settings.super_sampling_level < 1:
        raise ValueError(
            f"Super-sampling level must be at least 1, got {settings.super_sampling_level}"
        )
    return replace(settings, background=_check_color(settings.background))


def _check_material(material: Material) -> Material:
    if material.shininess < 0.0:
        raise ValueError(f"Shininess must be non-negative, got {material.shininess}")
    if not 0.0 <= material.transparency <= 1.0:
        raise ValueError(f"Transparency {material.transparency} is outside [0, 1]")
    return Material(
        diffuse=_check_color(material.diffuse),
        specular=_check_color(material.specular),
        reflection=_check_color(material.reflection),
        shininess=float(material.shininess),
        transparency=float(material.transparency),
    )


def _check_light(light: Light) -> Light:
    if not 0.0 <= light.shadow_intensity <= 1.0:
        raise ValueError(f"Shadow intensity {light.shadow_intensity} is outside [0, 1]")
    if light.width < 0.0:
        raise ValueError(f"Light width must be non-negative, got {light.width}")
    return Light(
        position=to_tuple(as_vector(light.position)),
        color=_check_color(light.color),
        specular_intensity=float(light.specular_intensity),
        shadow_intensity=float(light.shadow_intensity),
        width=float(light.width),
    )


def _check_surface(surface: Surface) -> Surface:
    if isinstance(surface, SphereSurface):
        if not surface.radius > 0.0:
            raise DegenerateGeometryError(f"Sphere radius must be positive, got {surface.radius}")
        return replace(surface, center=to_tuple(as_vector(surface.center)), radius=float(surface.radius))
    if isinstance(surface, PlaneSurface):
        return replace(surface, normal=to_tuple(normalized(surface.normal, "plane normal")))
    if isinstance(surface, TriangleSurface):
        v0, v1, v2 = (as_vector(v) for v in (surface.v0, surface.v1, surface.v2))
        if np.linalg.norm(np.cross(v1 - v0, v2 - v0)) < DEGENERATE_LENGTH:
            raise DegenerateGeometryError(
                f"Triangle {surface.v0}, {surface.v1}, {surface.v2} has zero area"
            )
        return replace(surface, v0=to_tuple(v0), v1=to_tuple(v1), v2=to_tuple(v2))
    raise TypeError(f"Unknown surface type: {type(surface).__name__}")


# =============================================================================
# Scene Builder
# =============================================================================


class SceneBuilder:
    """Mutable collector for scene elements.

    Elements can be added in any order; material references are resolved
    when ``build()`` is called. Geometry is validated as it is added.

    Example:
        >>> builder = SceneBuilder()
        >>> builder.set_settings(background=(0.1, 0.1, 0.1), shadow_ray_count=3)
        >>> mat = builder.add_material(diffuse=(0.8, 0.8, 0.8), specular=(1, 1, 1), shininess=30)
        >>> builder.add_plane(normal=(0, 1, 0), offset=-1.0, material_index=mat)
        >>> builder.add_light(position=(0, 5, 0), color=(1, 1, 1), width=1.0)
        >>> scene = builder.build()
    """

    def __init__(self) -> None:
        self.settings = SceneSettings()
        self.materials: list[Material] = []
        self.lights: list[Light] = []
        self.surfaces: list[Surface] = []

    def set_settings(
        self,
        background: Vec3Tuple = (0.0, 0.0, 0.0),
        shadow_ray_count: int = 1,
        maximum_recursion_count: int = 10,
        super_sampling_level: int = 1,
    ) -> None:
        """Replace the general render settings."""
        self.settings = _check_settings(
            SceneSettings(
                background=background,
                shadow_ray_count=shadow_ray_count,
                maximum_recursion_count=maximum_recursion_count,
                super_sampling_level=super_sampling_level,
            )
        )

    def add_material(
        self,
        diffuse: Vec3Tuple,
        specular: Vec3Tuple = (0.0, 0.0, 0.0),
        reflection: Vec3Tuple = (0.0, 0.0, 0.0),
        shininess: float = 1.0,
        transparency: float = 0.0,
    ) -> int:
        """Add a material.

        Returns:
            The 1-based index of the new material.
        """
        self.materials.append(
            _check_material(Material(diffuse, specular, reflection, shininess, transparency))
        )
        return len(self.materials)

    def add_light(
        self,
        position: Vec3Tuple,
        color: Vec3Tuple,
        specular_intensity: float = 1.0,
        shadow_intensity: float = 1.0,
        width: float = 0.0,
    ) -> int:
        """Add a light.

        Returns:
            The 0-based index of the new light.
        """
        self.lights.append(
            _check_light(Light(position, color, specular_intensity, shadow_intensity, width))
        )
        return len(self.lights) - 1

    def add_surface(self, surface: Surface) -> int:
        """Add a sphere, plane or triangle.

        Returns:
            The 0-based index of the new surface.
        """
        self.surfaces.append(_check_surface(surface))
        return len(self.surfaces) - 1

    def add_sphere(self, center: Vec3Tuple, radius: float, material_index: int) -> int:
        return self.add_surface(SphereSurface(center, radius, material_index))

    def add_plane(self, normal: Vec3Tuple, offset: float, material_index: int) -> int:
        return self.add_surface(PlaneSurface(normal, float(offset), material_index))

    def add_triangle(self, v0: Vec3Tuple, v1: Vec3Tuple, v2: Vec3Tuple, material_index: int) -> int:
        return self.add_surface(TriangleSurface(v0, v1, v2, material_index))

    def build(self) -> Scene:
        """Validate cross-references and freeze the scene.

        Raises:
            SceneReferenceError: If a surface refers to a missing material.
            RuntimeError: If the scene exceeds the render capacity limits.
        """
        for index, surface in enumerate(self.surfaces):
            if not 1 <= surface.material_index <= len(self.materials):
                raise SceneReferenceError(
                    f"Surface {index} ({type(surface).__name__}) refers to material "
                    f"{surface.material_index}, but {len(self.materials)} material(s) are defined"
                )

        scene = Scene(
            settings=self.settings,
            materials=tuple(self.materials),
            lights=tuple(self.lights),
            surfaces=tuple(self.surfaces),
        )
        _check_capacity(scene)
        return scene


def _check_capacity(scene: Scene) -> None:
    limits = (
        ("materials", len(scene.materials), MAX_MATERIALS),
        ("lights", len(scene.lights), MAX_LIGHTS),
        ("spheres", scene.count(SphereSurface), MAX_SPHERES),
        ("planes", scene.count(PlaneSurface), MAX_PLANES),
        ("triangles", scene.count(TriangleSurface), MAX_TRIANGLES),
    )
    for name, count, limit in limits:
        if count > limit:
            raise RuntimeError(f"Scene has {count} {name}; at most {limit} are supported")


# =============================================================================
# Upload
# =============================================================================


def upload_scene(scene: Scene) -> None:
    """Copy a frozen scene into the Taichi fields read by the kernels.

    Replaces whatever scene was uploaded before. Must be called from
    Python scope, before rendering.
    """
    clear_scene()
    clear_phong_materials()
    clear_lights()

    configure_render_settings(
        background=scene.settings.background,
        shadow_ray_count=scene.settings.shadow_ray_count,
    )

    for material in scene.materials:
        add_phong_material(
            diffuse=material.diffuse,
            specular=material.specular,
            reflection=material.reflection,
            shininess=material.shininess,
            transparency=material.transparency,
        )

    for light in scene.lights:
        add_light(
            position=light.position,
            color=light.color,
            specular_intensity=light.specular_intensity,
            shadow_intensity=light.shadow_intensity,
            width=light.width,
        )

    for surface in scene.surfaces:
        if isinstance(surface, SphereSurface):
            add_sphere(surface.center, surface.radius, surface.material_index)
        elif isinstance(surface, PlaneSurface):
            add_plane(surface.normal, surface.offset, surface.material_index)
        elif isinstance(surface, TriangleSurface):
            add_triangle(surface.v0, surface.v1, surface.v2, surface.material_index)
        else:
            raise TypeError(f"Unknown surface type: {type(surface).__name__}")

