"""Unit tests for infinite plane intersection."""

import math

import pytest
import taichi as ti


def _cast(origin, direction, normal, offset):
    """Intersect one ray with one plane; returns (hit, t, point, normal)."""
    from src.phongtracer.core.vector import vec3
    from src.phongtracer.geometry.plane import Plane, hit_plane

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    point = ti.Vector.field(3, dtype=ti.f64, shape=())
    hit_normal = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, n: vec3, k: ti.f64):
        record = hit_plane(o, d, Plane(normal=n, offset=k))
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        hit_normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), vec3(*normal), offset)
    return hit[None], t_val[None], point[None].to_numpy(), hit_normal[None].to_numpy()


class TestPlaneIntersection:
    """Tests for ray-plane intersection."""

    def test_hit_from_above(self):
        hit, t, p, n = _cast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1.0)
        assert hit == 1
        assert t == pytest.approx(4.0)
        assert p == pytest.approx([0.0, 1.0, 0.0])
        assert n == pytest.approx([0.0, 1.0, 0.0])

    def test_hit_from_below_keeps_stored_normal(self):
        """No back-face flip happens at intersection time."""
        hit, t, _, n = _cast((0.0, -3.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.0)
        assert hit == 1
        assert t == pytest.approx(3.0)
        assert n == pytest.approx([0.0, 1.0, 0.0])

    def test_oblique_hit(self):
        d = (1.0 / math.sqrt(2.0), -1.0 / math.sqrt(2.0), 0.0)
        hit, t, p, _ = _cast((0.0, 2.0, 0.0), d, (0.0, 1.0, 0.0), 0.0)
        assert hit == 1
        assert t == pytest.approx(2.0 * math.sqrt(2.0))
        assert p == pytest.approx([2.0, 0.0, 0.0], abs=1e-12)

    def test_plane_behind_ray(self):
        hit, _, _, _ = _cast((0.0, 5.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.0)
        assert hit == 0

    @pytest.mark.parametrize(
        "origin",
        [(0.0, 5.0, 0.0), (0.0, -5.0, 0.0), (3.0, 0.0, -2.0), (100.0, 1.0, 100.0)],
    )
    def test_perpendicular_to_normal_never_hits(self, origin):
        """A ray running along the plane misses regardless of origin."""
        hit, _, _, _ = _cast(origin, (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), 1.0)
        assert hit == 0

    def test_nearly_parallel_is_a_miss(self):
        """|d . n| below the parallel threshold counts as parallel."""
        from src.phongtracer.geometry.plane import PARALLEL_THRESHOLD

        angle = 0.5 * PARALLEL_THRESHOLD
        d = (math.cos(angle), -math.sin(angle), 0.0)
        hit, _, _, _ = _cast((0.0, 1.0, 0.0), d, (0.0, 1.0, 0.0), 0.0)
        assert hit == 0

    def test_just_above_threshold_hits(self):
        angle = 0.05
        d = (math.cos(angle), -math.sin(angle), 0.0)
        hit, _, p, _ = _cast((0.0, 1.0, 0.0), d, (0.0, 1.0, 0.0), 0.0)
        assert hit == 1
        assert p[1] == pytest.approx(0.0, abs=1e-9)

    def test_origin_on_plane_is_not_a_hit(self):
        """A ray leaving the plane does not hit it again at t = 0."""
        hit, _, _, _ = _cast((1.0, 0.0, 1.0), (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 0.0)
        assert hit == 0

    def test_offset_along_tilted_normal(self):
        s = 1.0 / math.sqrt(3.0)
        hit, _, p, _ = _cast((0.0, 0.0, 0.0), (s, s, s), (s, s, s), 2.0)
        assert hit == 1
        assert float(p.sum()) * s == pytest.approx(2.0)
