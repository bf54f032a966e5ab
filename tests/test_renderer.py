"""Unit tests for the Renderer."""

import numpy as np
import pytest


def _scene_and_camera(text):
    from src.phongtracer.scene.loader import parse_scene

    description = parse_scene(text)
    return description.scene, description.camera


class TestRenderer:
    """Tests for Renderer construction and band rendering."""

    def test_dimensions(self):
        from src.phongtracer.core.renderer import Renderer

        renderer = Renderer(32, 16)
        assert renderer.width == 32
        assert renderer.height == 16

    @pytest.mark.parametrize("size", [(0, 10), (10, 0)])
    def test_invalid_size(self, size):
        from src.phongtracer.core.renderer import Renderer

        with pytest.raises(ValueError):
            Renderer(*size)

    def test_result(self, red_sphere_scene_text):
        from src.phongtracer.core.renderer import Renderer

        scene, camera = _scene_and_camera(red_sphere_scene_text)
        result = Renderer(40, 30).render(scene, camera)

        assert result.image.shape == (30, 40, 3)
        assert result.image.dtype == np.float64
        assert result.pixels.shape == (30, 40, 3)
        assert result.pixels.dtype == np.uint8
        assert (result.width, result.height) == (40, 30)
        assert result.invalid_pixels == 0
        assert result.elapsed >= 0.0

    def test_progress_callback_per_band(self, red_sphere_scene_text):
        from src.phongtracer.core.renderer import Renderer

        scene, camera = _scene_and_camera(red_sphere_scene_text)
        calls = []
        Renderer(10, 25).render(scene, camera, band_rows=10, callback=lambda d, t: calls.append((d, t)))
        assert calls == [(10, 25), (20, 25), (25, 25)]

    def test_band_size_does_not_change_image(self, red_sphere_scene_text):
        from src.phongtracer.core.renderer import Renderer

        scene, camera = _scene_and_camera(red_sphere_scene_text)
        renderer = Renderer(24, 24)
        whole = renderer.render(scene, camera, band_rows=24)
        banded = renderer.render(scene, camera, band_rows=5)
        assert np.array_equal(whole.pixels, banded.pixels)

    def test_invalid_band_size(self, red_sphere_scene_text):
        from src.phongtracer.core.renderer import Renderer

        scene, camera = _scene_and_camera(red_sphere_scene_text)
        with pytest.raises(ValueError):
            Renderer(4, 4).render(scene, camera, band_rows=0)

    def test_scene_super_sampling_is_used(self, red_sphere_scene_text):
        from src.phongtracer.core.renderer import Renderer

        scene, camera = _scene_and_camera(red_sphere_scene_text.replace("set 0 0 0   1 10 1", "set 0 0 0   1 10 3"))
        assert scene.settings.super_sampling_level == 3
        red = Renderer(100, 100).render(scene, camera).image[:, :, 0]
        assert ((red > 0.0) & (red < 1.0)).any()

    def test_invalid_pixels_reported(self):
        from src.phongtracer.camera.pinhole import ScreenCamera
        from src.phongtracer.core.renderer import Renderer
        from src.phongtracer.scene.manager import Material, Scene, SphereSurface

        # Bypasses builder validation to get a non-finite colour into the kernels
        scene = Scene(
            materials=(Material(diffuse=(float("inf"), 0.0, 0.0)),),
            surfaces=(SphereSurface((0.0, 0.0, 0.0), 1.0, 1),),
        )
        camera = ScreenCamera((0.0, 0.0, -10.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 1.0, 2.0)
        result = Renderer(20, 20).render(scene, camera)
        assert result.invalid_pixels > 0
        magenta = (result.pixels == [255, 0, 255]).all(axis=2)
        assert magenta.sum() == result.invalid_pixels
