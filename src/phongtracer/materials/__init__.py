"""Materials module.

Components:
    phong: Phong material model (diffuse, specular, shininess,
        transparency) and the 1-based material registry

Lighting terms are Taichi functions so they can be evaluated inside the
render kernels.
"""

from .phong import (
    MAX_MATERIALS,
    PhongMaterial,
    add_phong_material,
    base_color,
    clear_phong_materials,
    eval_phong_diffuse,
    eval_phong_specular,
    get_phong_material,
    get_phong_material_count,
)

__all__ = [
    "PhongMaterial",
    "add_phong_material",
    "clear_phong_materials",
    "get_phong_material",
    "get_phong_material_count",
    "eval_phong_diffuse",
    "eval_phong_specular",
    "base_color",
    "MAX_MATERIALS",
]
