"""Unit tests for scene-level intersection.

Tests cover:
- Nearest-hit selection across spheres
- Exclusion of one sphere index
- Empty scenes and misses
- Scene capacity
"""

import math

import pytest
import taichi as ti


class TestSceneStorage:
    """Tests for uploading spheres into the scene fields."""

    def test_add_sphere_returns_sequential_indices(self):
        from pathtracer.scene.intersection import add_sphere, get_sphere_count, vec3

        zero = vec3(0.0, 0.0, 0.0)
        one = vec3(1.0, 1.0, 1.0)
        assert add_sphere(vec3(0.0, 0.0, 5.0), 1.0, zero, one) == 0
        assert add_sphere(vec3(0.0, 0.0, 9.0), 1.0, zero, one) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        from pathtracer.scene.intersection import add_sphere, clear_scene, get_sphere_count, vec3

        add_sphere(vec3(0.0, 0.0, 5.0), 1.0, vec3(0.0, 0.0, 0.0), vec3(1.0, 1.0, 1.0))
        clear_scene()
        assert get_sphere_count() == 0

    def test_capacity_exceeded_raises(self):
        from pathtracer.scene.intersection import MAX_SPHERES, num_spheres, add_sphere, vec3

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError):
            add_sphere(vec3(0.0, 0.0, 5.0), 1.0, vec3(0.0, 0.0, 0.0), vec3(1.0, 1.0, 1.0))


class TestIntersectScene:
    """Tests for the nearest-hit query."""

    def _add(self, z, radius=1.0):
        from pathtracer.scene.intersection import add_sphere, vec3

        return add_sphere(vec3(0.0, 0.0, z), radius, vec3(0.0, 0.0, 0.0), vec3(1.0, 1.0, 1.0))

    def test_empty_scene_misses(self):
        from pathtracer.scene.intersection import query_intersection

        hit, t, _, _, index = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert not hit
        assert math.isinf(t)
        assert index == -1

    def test_nearest_sphere_wins(self):
        from pathtracer.scene.intersection import query_intersection

        self._add(20.0)
        near = self._add(5.0)
        self._add(10.0)

        hit, t, point, normal, index = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert hit
        assert index == near
        assert abs(t - 4.0) < 1e-5
        assert abs(point[2] - 4.0) < 1e-5
        assert abs(normal[2] + 1.0) < 1e-6

    def test_excluded_sphere_is_skipped(self):
        from pathtracer.scene.intersection import query_intersection

        near = self._add(5.0)
        far = self._add(10.0)

        hit, t, _, _, index = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), near)
        assert hit
        assert index == far
        assert abs(t - 9.0) < 1e-5

    def test_excluding_only_sphere_misses(self):
        from pathtracer.scene.intersection import query_intersection

        only = self._add(5.0)
        hit, _, _, _, _ = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), only)
        assert not hit

    def test_ray_pointing_away_misses(self):
        from pathtracer.scene.intersection import query_intersection

        self._add(5.0)
        hit, _, _, _, _ = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert not hit

    def test_intersect_scene_in_kernel(self):
        """intersect_scene can be called from a user kernel."""
        from pathtracer.scene.intersection import NO_EXCLUSION, intersect_scene, vec3

        index = self._add(5.0)
        result_index = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), NO_EXCLUSION)
            result_index[None] = rec.sphere_index

        test_kernel()
        assert result_index[None] == index
