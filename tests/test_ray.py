"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at
- Shadow and reflection ray construction
- Vector utilities (normalize, length, reflect)
"""

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.whitted.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes correct point along ray."""
        from src.whitted.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0))
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_shadow_ray_reaches_light_at_t_one(self):
        """A shadow ray keeps the full point-to-light vector, so t = 1 is the light."""
        from src.whitted.core.ray import ray_at, shadow_ray, vec3

        result = ti.field(dtype=ti.math.vec3, shape=2)

        @ti.kernel
        def test_kernel():
            ray = shadow_ray(vec3(0.2, 0.2, 0.0), vec3(1.0, 3.0, 5.0))
            result[0] = ray.origin
            result[1] = ray_at(ray, 1.0)

        test_kernel()
        r = result.to_numpy()
        assert r[0] == pytest.approx([0.2, 0.2, 0.0])
        assert r[1] == pytest.approx([1.0, 3.0, 5.0])

    def test_reflection_ray(self):
        """A reflection ray starts at the hit point with a unit mirror direction."""
        from src.whitted.core.ray import length, reflection_ray, vec3

        result = ti.field(dtype=ti.math.vec3, shape=2)
        result_len = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = reflection_ray(vec3(1.0, 0.0, 2.0), vec3(3.0, -3.0, 0.0), vec3(0.0, 1.0, 0.0))
            result[0] = ray.origin
            result[1] = ray.direction
            result_len[None] = length(ray.direction)

        test_kernel()
        s = 1.0 / 2.0**0.5
        r = result.to_numpy()
        assert r[0] == pytest.approx([1.0, 0.0, 2.0])
        assert r[1] == pytest.approx([s, s, 0.0], abs=1e-6)
        assert result_len[None] == pytest.approx(1.0, abs=1e-6)


class TestVectorUtilities:
    """Tests for vector utility functions."""

    def test_normalize(self):
        """Normalized vectors have unit length and keep their direction."""
        from src.whitted.core.ray import length, normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        result_len = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            n = normalize(vec3(3.0, 0.0, 4.0))
            result[None] = n
            result_len[None] = length(n)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6
        assert abs(result_len[None] - 1.0) < 1e-6

    def test_reflect(self):
        """Test reflection about a normal: d - 2 (d . n) n."""
        from src.whitted.core.ray import normalize, reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = normalize(vec3(1.0, -1.0, 0.0))
            result[None] = reflect(incident, vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        s = 1.0 / 2.0**0.5
        assert abs(r[0] - s) < 1e-6
        assert abs(r[1] - s) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_reflect_is_independent_of_normal_side(self):
        """Flipping the normal gives the same reflected direction."""
        from src.whitted.core.ray import normalize, reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=2)

        @ti.kernel
        def test_kernel():
            incident = normalize(vec3(0.3, -0.8, 0.5))
            result[0] = reflect(incident, vec3(0.0, 1.0, 0.0))
            result[1] = reflect(incident, vec3(0.0, -1.0, 0.0))

        test_kernel()
        for i in range(3):
            assert abs(result[0][i] - result[1][i]) < 1e-6
