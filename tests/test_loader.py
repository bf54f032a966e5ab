"""Unit tests for the scene description loader."""

import pytest

CAMERA = "cam 0 0 -10   0 0 0   0 1 0   1 2"
SETTINGS = "set 0.1 0.2 0.3   4 7"
MATERIAL = "mtl 1 0 0   0.5 0.5 0.5   0 0 0   20 0.25"


class TestParseScene:
    """Tests for parse_scene on in-memory text."""

    def test_full_scene(self):
        from src.phongtracer.scene.loader import parse_scene
        from src.phongtracer.scene.manager import PlaneSurface, SphereSurface, TriangleSurface

        text = "\n".join(
            [
                "# A comment",
                "",
                CAMERA,
                SETTINGS,
                MATERIAL,
                "sph 0 0 0 1 1",
                "pln 0 2 0 -1 1",
                "trg 0 0 0  1 0 0  0 1 0  1",
                "lgt 0 5 0  1 1 1  0.5 0.8 1.5",
            ]
        )
        description = parse_scene(text)
        scene = description.scene

        camera = description.camera
        assert camera.position == (0.0, 0.0, -10.0)
        assert camera.look_at == (0.0, 0.0, 0.0)
        assert camera.up == (0.0, 1.0, 0.0)
        assert camera.screen_distance == 1.0
        assert camera.screen_width == 2.0

        assert scene.settings.background == pytest.approx((0.1, 0.2, 0.3))
        assert scene.settings.shadow_ray_count == 4
        assert scene.settings.maximum_recursion_count == 7
        assert scene.settings.super_sampling_level == 1

        material = scene.materials[0]
        assert material.diffuse == (1.0, 0.0, 0.0)
        assert material.specular == (0.5, 0.5, 0.5)
        assert material.shininess == 20.0
        assert material.transparency == 0.25

        kinds = [type(s) for s in scene.surfaces]
        assert kinds == [SphereSurface, PlaneSurface, TriangleSurface]
        assert scene.surfaces[1].normal == pytest.approx((0.0, 1.0, 0.0))
        assert scene.surfaces[1].offset == -1.0

        light = scene.lights[0]
        assert light.position == (0.0, 5.0, 0.0)
        assert light.specular_intensity == 0.5
        assert light.shadow_intensity == 0.8
        assert light.width == 1.5

    def test_optional_super_sampling(self):
        from src.phongtracer.scene.loader import parse_scene

        description = parse_scene("\n".join([CAMERA, "set 0 0 0 2 5 3"]))
        assert description.scene.settings.super_sampling_level == 3

    def test_directives_are_case_insensitive(self):
        from src.phongtracer.scene.loader import parse_scene

        description = parse_scene("\n".join(["CAM 0 0 -10 0 0 0 0 1 0 1 2", "Mtl 1 1 1 0 0 0 0 0 0 1 0", "SPH 0 0 0 1 1"]))
        assert len(description.scene.surfaces) == 1

    def test_leading_whitespace_and_tabs(self):
        from src.phongtracer.scene.loader import parse_scene

        description = parse_scene("   cam\t0 0 -10\t0 0 0\t0 1 0\t1 2\n\t# indented comment\n")
        assert description.camera.screen_width == 2.0

    def test_info_diagnostic_per_directive(self):
        from src.phongtracer.scene.loader import INFO, parse_scene

        description = parse_scene("\n".join([CAMERA, SETTINGS, MATERIAL]))
        lines = [d.line for d in description.diagnostics if d.level == INFO and d.line is not None]
        assert lines == [1, 2, 3]
        assert "material 1" in str(description.diagnostics[2])

    def test_unknown_directive_is_warning(self):
        from src.phongtracer.scene.loader import WARNING, parse_scene

        description = parse_scene("\n".join([CAMERA, SETTINGS, "box 1 2 3"]))
        assert len(description.warnings) == 1
        warning = description.warnings[0]
        assert warning.level == WARNING
        assert warning.line == 3
        assert "box" in warning.message

    def test_missing_settings_uses_defaults(self):
        from src.phongtracer.scene.loader import parse_scene

        description = parse_scene(CAMERA)
        assert description.scene.settings.shadow_ray_count == 1
        assert description.scene.settings.background == (0.0, 0.0, 0.0)
        assert any("settings" in w.message for w in description.warnings)

    def test_missing_camera(self):
        from src.phongtracer.core.errors import SceneFormatError
        from src.phongtracer.scene.loader import parse_scene

        with pytest.raises(SceneFormatError, match="camera") as excinfo:
            parse_scene(SETTINGS, source="scene.txt")
        assert excinfo.value.line is None

    @pytest.mark.parametrize(
        "line",
        [
            "sph 0 0 zero 1 1",
            "sph 0 0 0 1",
            "sph 0 0 0 1 1 9",
            "sph 0 0 0 1 1.5",
            "set 0 0 0 2.5 10",
            "mtl 1 0 0 0 0 0 0 0 0 1 3",
            "lgt 0 5 0 1 1 1 1 2 0",
            "sph 0 nan 0 1 1",
        ],
    )
    def test_malformed_lines(self, line):
        from src.phongtracer.core.errors import SceneFormatError
        from src.phongtracer.scene.loader import parse_scene

        with pytest.raises(SceneFormatError) as excinfo:
            parse_scene("\n".join([CAMERA, MATERIAL, line]), source="bad.txt")
        assert excinfo.value.line == 3
        assert str(excinfo.value).startswith("bad.txt:3:")

    def test_degenerate_geometry_reports_line(self):
        from src.phongtracer.core.errors import DegenerateGeometryError
        from src.phongtracer.scene.loader import parse_scene

        with pytest.raises(DegenerateGeometryError, match="geo.txt:3"):
            parse_scene("\n".join([CAMERA, MATERIAL, "pln 0 0 0 1 1"]), source="geo.txt")

    @pytest.mark.parametrize(
        "camera",
        [
            "cam 0 0 -10   0 0 0   0 1 0   0 2",
            "cam 0 0 -10   0 0 0   0 1 0   -1 2",
            "cam 0 0 -10   0 0 0   0 1 0   1 0",
            "cam 0 0 -10   0 0 0   0 1 0   1 -2",
        ],
    )
    def test_non_positive_screen_is_format_error(self, camera):
        from src.phongtracer.core.errors import SceneFormatError
        from src.phongtracer.scene.loader import parse_scene

        with pytest.raises(SceneFormatError, match="Screen") as excinfo:
            parse_scene("\n".join([SETTINGS, camera, MATERIAL]), source="cam.txt")
        assert excinfo.value.line == 2

    @pytest.mark.parametrize(
        "camera, message",
        [
            ("cam 0 0 0   0 0 0   0 1 0   1 2", "coincides"),
            ("cam 0 0 -10   0 0 0   0 0 1   1 2", "parallel"),
        ],
    )
    def test_degenerate_camera_reports_line(self, camera, message):
        from src.phongtracer.core.errors import DegenerateGeometryError
        from src.phongtracer.scene.loader import parse_scene

        with pytest.raises(DegenerateGeometryError, match=message) as excinfo:
            parse_scene("\n".join([SETTINGS, camera, MATERIAL]), source="cam.txt")
        assert str(excinfo.value).startswith("cam.txt:2:")

    def test_undefined_material(self):
        from src.phongtracer.core.errors import SceneReferenceError
        from src.phongtracer.scene.loader import parse_scene

        with pytest.raises(SceneReferenceError):
            parse_scene("\n".join([CAMERA, MATERIAL, "sph 0 0 0 1 2"]))

    def test_accepts_iterable_of_lines(self):
        from src.phongtracer.scene.loader import parse_scene

        description = parse_scene(iter([CAMERA + "\n", MATERIAL + "\n", "sph 0 0 0 1 1\n"]))
        assert len(description.scene.surfaces) == 1


class TestLoadSceneFile:
    """Tests for reading scene files from disk."""

    def test_load_file(self, tmp_path, red_sphere_scene_text):
        from src.phongtracer.scene.loader import load_scene_file

        path = tmp_path / "scene.txt"
        path.write_text(red_sphere_scene_text)
        description = load_scene_file(path)
        assert description.scene.materials[0].diffuse == (1.0, 0.0, 0.0)

    def test_errors_name_the_file(self, tmp_path):
        from src.phongtracer.core.errors import SceneFormatError
        from src.phongtracer.scene.loader import load_scene_file

        path = tmp_path / "broken.txt"
        path.write_text(CAMERA + "\nsph 0 0 0 x 1\n")
        with pytest.raises(SceneFormatError, match="broken.txt:2"):
            load_scene_file(path)

    def test_missing_file(self, tmp_path):
        from src.phongtracer.core.errors import SceneFileError
        from src.phongtracer.scene.loader import load_scene_file

        path = tmp_path / "missing.txt"
        with pytest.raises(SceneFileError) as excinfo:
            load_scene_file(path)
        assert excinfo.value.path == str(path)

    @pytest.mark.parametrize("name", ["spheres.txt", "pyramid.txt"])
    def test_example_scenes_load(self, scenes_dir, name):
        from src.phongtracer.scene.loader import load_scene_file

        description = load_scene_file(scenes_dir / name)
        assert description.scene.surfaces
        assert description.scene.lights
        assert not description.warnings
