"""Unit tests for triangle intersection."""

import pytest
import taichi as ti

V0 = (0.0, 0.0, 0.0)
V1 = (1.0, 0.0, 0.0)
V2 = (0.0, 1.0, 0.0)


def _cast(origin, direction, v0=V0, v1=V1, v2=V2):
    """Intersect one ray with one triangle; returns (hit, t, point, normal)."""
    from src.phongtracer.core.vector import vec3
    from src.phongtracer.geometry.triangle import Triangle, hit_triangle

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    point = ti.Vector.field(3, dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, a: vec3, b: vec3, c: vec3):
        record = hit_triangle(o, d, Triangle(v0=a, v1=b, v2=c))
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), vec3(*v0), vec3(*v1), vec3(*v2))
    return hit[None], t_val[None], point[None].to_numpy(), normal[None].to_numpy()


class TestTriangleIntersection:
    """Tests for Moller-Trumbore ray-triangle intersection."""

    def test_hit_inside(self):
        hit, t, p, n = _cast((0.25, 0.25, -1.0), (0.0, 0.0, 1.0))
        assert hit == 1
        assert t == pytest.approx(1.0)
        assert p == pytest.approx([0.25, 0.25, 0.0])
        assert n == pytest.approx([0.0, 0.0, 1.0])

    def test_normal_follows_winding(self):
        """Swapping two vertices flips the face normal."""
        hit, _, _, n = _cast((0.25, 0.25, -1.0), (0.0, 0.0, 1.0), V0, V2, V1)
        assert hit == 1
        assert n == pytest.approx([0.0, 0.0, -1.0])

    def test_hit_from_back_side(self):
        hit, t, _, n = _cast((0.25, 0.25, 2.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t == pytest.approx(2.0)
        assert n == pytest.approx([0.0, 0.0, 1.0])

    @pytest.mark.parametrize(
        "x,y",
        [(0.6, 0.6), (-0.1, 0.5), (0.5, -0.1), (2.0, 2.0), (1.01, 0.0)],
    )
    def test_miss_outside_edges(self, x, y):
        """Rays hitting the supporting plane outside the edges miss."""
        hit, _, _, _ = _cast((x, y, -1.0), (0.0, 0.0, 1.0))
        assert hit == 0

    @pytest.mark.parametrize(
        "u,v",
        [(0.1, 0.1), (0.7, 0.2), (0.2, 0.7), (0.01, 0.98), (0.333, 0.333)],
    )
    def test_hit_point_matches_barycentric(self, u, v):
        """Inside hits land on v0 + u*(v1-v0) + v*(v2-v0) in the supporting plane."""
        a, b, c = (1.0, 0.0, 2.0), (3.0, 1.0, 2.5), (0.0, 4.0, 3.0)
        target = [a[i] + u * (b[i] - a[i]) + v * (c[i] - a[i]) for i in range(3)]
        origin = (target[0], target[1], target[2] - 5.0)
        hit, _, p, n = _cast(origin, (0.0, 0.0, 1.0), a, b, c)
        assert hit == 1
        assert p == pytest.approx(target, abs=1e-9)
        # The point lies in the supporting plane
        assert float(n @ (p - a)) == pytest.approx(0.0, abs=1e-9)

    def test_parallel_ray_misses(self):
        hit, _, _, _ = _cast((-1.0, 0.25, 0.0), (1.0, 0.0, 0.0))
        assert hit == 0

    def test_triangle_behind_ray(self):
        hit, _, _, _ = _cast((0.25, 0.25, 1.0), (0.0, 0.0, 1.0))
        assert hit == 0

    def test_triangle_normal_function(self):
        from src.phongtracer.core.vector import vec3
        from src.phongtracer.geometry.triangle import Triangle, triangle_normal

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            tri = Triangle(v0=vec3(0.0, 0.0, 0.0), v1=vec3(0.0, 2.0, 0.0), v2=vec3(0.0, 0.0, 3.0))
            result[None] = triangle_normal(tri)

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([1.0, 0.0, 0.0])
