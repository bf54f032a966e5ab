"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

from pathlib import Path

import pytest
import taichi as ti

SCENES_DIR = Path(__file__).resolve().parent.parent / "examples" / "scenes"


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test."""
    # Import here so Taichi is initialized before fields are declared
    from src.phongtracer.core.integrator import reset_render_settings
    from src.phongtracer.materials.phong import clear_phong_materials
    from src.phongtracer.scene.intersection import clear_scene
    from src.phongtracer.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_phong_materials()
        clear_lights()
        reset_render_settings()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def scenes_dir() -> Path:
    """Directory holding the example scene files."""
    return SCENES_DIR


@pytest.fixture
def red_sphere_scene_text() -> str:
    """Unit red sphere at the origin seen from z = -10 on a black background."""
    return "\n".join(
        [
            "cam 0 0 -10   0 0 0   0 1 0   1 2",
            "set 0 0 0   1 10 1",
            "mtl 1 0 0   0 0 0   0 0 0   1 0",
            "sph 0 0 0   1   1",
        ]
    )
