"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting a sphere from outside
- Ray missing a sphere (offset, behind the origin)
- Ray starting inside a sphere (near root only)
- Roughness perturbation of the reported normal
"""

import math

import taichi as ti


def _run_hit(origin, direction, position, radius, roughness=0.0):
    """Run hit_sphere in a kernel and return (hit, t, point, normal)."""
    from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, p: vec3, r: ti.f32, rough: ti.f32):
        sphere = Sphere(
            position=p,
            radius=r,
            emission=vec3(0.0, 0.0, 0.0),
            reflectivity=vec3(1.0, 1.0, 1.0),
            roughness=rough,
        )
        record = hit_sphere(o, d, sphere)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal

    test_kernel(vec3(*origin), vec3(*direction), vec3(*position), radius, roughness)
    p = point[None]
    n = normal[None]
    return hit[None], t_val[None], (p[0], p[1], p[2]), (n[0], n[1], n[2])


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from pathtracer.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())
        roughness_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(
                vec3(1.0, 2.0, 3.0), 0.5, vec3(0.0, 0.0, 0.0), vec3(1.0, 1.0, 1.0), 3.0
            )
            center_result[None] = sphere.position
            radius_result[None] = sphere.radius
            roughness_result[None] = sphere.roughness

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6
        assert abs(roughness_result[None] - 3.0) < 1e-6


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """A ray toward the centre hits the near surface."""
        hit, t, point, normal = _run_hit((0, 0, 0), (0, 0, 1), (0, 0, 10), 2.0)
        assert hit == 1
        assert abs(t - 8.0) < 1e-5
        assert abs(point[2] - 8.0) < 1e-5
        assert abs(normal[0]) < 1e-6
        assert abs(normal[1]) < 1e-6
        assert abs(normal[2] + 1.0) < 1e-6

    def test_offset_hit(self):
        """A ray passing off-centre hits at tca - sqrt(r^2 - d^2)."""
        hit, t, point, _ = _run_hit((0, 1, 0), (0, 0, 1), (0, 0, 10), 2.0)
        assert hit == 1
        assert abs(t - (10.0 - math.sqrt(3.0))) < 1e-4
        assert abs(point[1] - 1.0) < 1e-5

    def test_miss_offset(self):
        hit, t, _, _ = _run_hit((5, 0, 0), (0, 0, 1), (0, 0, 10), 2.0)
        assert hit == 0
        assert math.isinf(t)

    def test_miss_sphere_behind_origin(self):
        """A sphere behind the ray origin is never hit."""
        hit, _, _, _ = _run_hit((0, 0, 0), (0, 0, 1), (0, 0, -10), 2.0)
        assert hit == 0

    def test_grazing_ray_misses(self):
        """A ray exactly at distance r from the centre does not count as a hit."""
        hit, _, _, _ = _run_hit((0, 2, 0), (0, 0, 1), (0, 0, 10), 2.0)
        assert hit == 0

    def test_inside_with_centre_ahead_reports_negative_distance(self):
        """Only the near root is used, even when it lies behind the origin."""
        hit, t, _, _ = _run_hit((0, 0, 9), (0, 0, 1), (0, 0, 10), 2.0)
        assert hit == 1
        assert abs(t + 1.0) < 1e-5

    def test_inside_with_centre_behind_misses(self):
        hit, _, _, _ = _run_hit((0, 0, 11), (0, 0, 1), (0, 0, 10), 2.0)
        assert hit == 0

    def test_rough_normal_is_unit_length(self):
        _, _, _, normal = _run_hit((0, 0, 0), (0, 0, 1), (0, 0, 10), 2.0, roughness=3.0)
        length = math.sqrt(sum(c * c for c in normal))
        assert abs(length - 1.0) < 1e-4
