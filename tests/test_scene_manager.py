"""Unit tests for the SceneManager.

Tests cover:
- Adding materials, triangles, quads and lights
- Normal handling (geometric default, normalization, degenerate input)
- Bulk triangle upload
- Bounds, dist_bound and validation
- Serialization round trip through dictionaries
"""

import numpy as np
import pytest


@pytest.fixture
def scene():
    from src.whitted.scene.manager import SceneManager

    return SceneManager()


@pytest.fixture
def grey(scene):
    return scene.add_material(ka=(0.1, 0.1, 0.1), kd=(0.5, 0.5, 0.5), ks=(0.0, 0.0, 0.0))


class TestMaterials:
    """Tests for material registration."""

    def test_add_material(self, scene):
        """Materials get consecutive IDs and are recorded."""
        first = scene.add_material((0.1, 0.0, 0.0), (0.7, 0.1, 0.1), (0.2, 0.2, 0.2))
        second = scene.add_material((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.9, 0.9, 0.9))

        assert (first, second) == (0, 1)
        assert scene.get_material_count() == 2
        info = scene.get_material_info(0)
        assert info.kd == (0.7, 0.1, 0.1)
        assert scene.get_material_info(5) is None

    def test_negative_component_rejected(self, scene):
        """Negative colors are invalid."""
        with pytest.raises(ValueError, match="negative"):
            scene.add_material((0.0, 0.0, 0.0), (-0.1, 0.5, 0.5), (0.0, 0.0, 0.0))

    def test_colors_above_one_allowed(self, scene):
        """Colors are not clamped on input."""
        scene.add_material((0.0, 0.0, 0.0), (1.5, 1.0, 1.0), (0.0, 0.0, 0.0))
        assert scene.get_material_count() == 1

    def test_wrong_arity(self, scene):
        """Colors need three components."""
        with pytest.raises(ValueError, match="3 components"):
            scene.add_material((0.0, 0.0), (0.5, 0.5, 0.5), (0.0, 0.0, 0.0))


class TestTriangles:
    """Tests for triangle registration."""

    def test_geometric_normal_default(self, scene, grey):
        """Without a normal the right-hand rule normal is stored."""
        scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey)

        assert scene.get_triangle_count() == 1
        assert np.allclose(scene.get_normals()[0], [0.0, 0.0, 1.0])
        assert scene.get_material_ids().tolist() == [grey]

    def test_explicit_normal_is_normalized(self, scene, grey):
        """Given normals are stored at unit length, in any direction."""
        scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey, normal=(0.0, 0.0, -3.0))
        assert np.allclose(scene.get_normals()[0], [0.0, 0.0, -1.0])

    def test_invalid_material(self, scene, grey):
        """Triangles must reference an existing material."""
        with pytest.raises(ValueError, match="Invalid material_id"):
            scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey + 1)

    def test_degenerate_without_normal(self, scene, grey):
        """A degenerate triangle has no normal to default to."""
        with pytest.raises(ValueError):
            scene.add_triangle((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 2.0, 2.0), grey)

    def test_zero_normal(self, scene, grey):
        """A zero-length normal is rejected."""
        with pytest.raises(ValueError, match="zero length"):
            scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey, normal=(0.0, 0.0, 0.0))

    def test_add_quad(self, scene, grey):
        """A quad is two triangles sharing the u x v normal."""
        first, second = scene.add_quad((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.0, 0.0, -2.0), grey)

        assert (first, second) == (0, 1)
        normals = scene.get_normals()
        assert np.allclose(normals, [[0.0, 1.0, 0.0], [0.0, 1.0, 0.0]])

    def test_add_triangles_bulk(self, scene, grey):
        """Bulk add assigns a contiguous range and broadcasts one material."""
        scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey)
        vertices = np.array(
            [
                [[0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [0.0, 1.0, 1.0]],
                [[0.0, 0.0, 2.0], [0.0, 1.0, 2.0], [1.0, 0.0, 2.0]],
            ]
        )

        indices = scene.add_triangles(vertices, grey)

        assert indices == range(1, 3)
        assert scene.get_triangle_count() == 3
        assert scene.get_vertices().shape == (3, 3, 3)
        assert np.allclose(scene.get_normals()[2], [0.0, 0.0, -1.0])

    def test_add_triangles_bad_shape(self, scene, grey):
        """Vertices must be (N, 3, 3)."""
        with pytest.raises(ValueError, match="vertices"):
            scene.add_triangles(np.zeros((2, 3)), grey)
        with pytest.raises(ValueError, match="normals"):
            scene.add_triangles(np.ones((2, 3, 3)), grey, normals=np.ones((3, 3)))
        with pytest.raises(ValueError, match="Invalid material_id"):
            scene.add_triangles(np.ones((1, 3, 3)), [7])


class TestLights:
    """Tests for light registration."""

    def test_add_light(self, scene):
        """Lights are recorded in order."""
        index = scene.add_light((0.0, 2.0, 0.0), (1.0, 0.9, 0.8), 0.75)

        assert index == 0
        assert scene.get_light_count() == 1
        assert scene.lights[0].intensity == 0.75

    def test_light_limit(self, scene):
        """At most MAX_LIGHTS lights are allowed."""
        from src.whitted.scene.manager import SceneManager

        for i in range(SceneManager.get_max_lights()):
            scene.add_light((float(i), 0.0, 0.0), (1.0, 1.0, 1.0), 1.0)
        with pytest.raises(ValueError, match="at most"):
            scene.add_light((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), 1.0)

    @pytest.mark.parametrize("color,intensity", [((1.2, 1.0, 1.0), 1.0), ((1.0, 1.0, 1.0), -1.0)])
    def test_invalid_light(self, scene, color, intensity):
        """Colors outside [0, 1] and negative intensities are rejected."""
        with pytest.raises(ValueError):
            scene.add_light((0.0, 0.0, 0.0), color, intensity)


class TestQueries:
    """Tests for bounds, validation and serialization."""

    def test_bounds_and_dist_bound(self, scene, grey):
        """dist_bound is the bounding box diagonal."""
        assert scene.dist_bound() == 0.0
        with pytest.raises(ValueError):
            scene.bounds()

        scene.add_triangle((0.0, 0.0, 0.0), (3.0, 0.0, 0.0), (0.0, 4.0, 0.0), grey)
        lo, hi = scene.bounds()
        assert np.allclose(lo, [0.0, 0.0, 0.0])
        assert np.allclose(hi, [3.0, 4.0, 0.0])
        assert scene.dist_bound() == pytest.approx(5.0)

    def test_validate(self, scene, grey):
        """A consistent scene validates."""
        scene.add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey)
        scene.add_light((0.5, 0.5, 2.0), (1.0, 1.0, 1.0), 1.0)
        scene.validate()

    def test_clear(self, scene, grey):
        """clear removes everything, including the Taichi-side counts."""
        from src.whitted.scene.intersection import get_triangle_count

        scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey)
        scene.add_light((0.0, 0.0, 1.0), (1.0, 1.0, 1.0), 1.0)
        scene.clear()

        assert get_triangle_count() == 0
        assert scene.get_material_count() == 0
        assert scene.get_light_count() == 0
        assert scene.get_vertices().shape == (0, 3, 3)

    def test_dict_round_trip(self, scene, grey):
        """to_dict / from_dict reproduces the scene."""
        from src.whitted.scene.manager import SceneManager

        scene.add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), grey)
        scene.add_light((0.5, 0.5, 2.0), (1.0, 0.5, 0.25), 0.5)
        data = scene.to_dict()

        restored = SceneManager()
        restored.from_dict(data)

        assert restored.get_triangle_count() == 2
        assert restored.get_material_count() == 1
        assert restored.get_light_count() == 1
        assert np.allclose(restored.get_vertices(), scene.get_vertices())
        assert np.allclose(restored.get_normals(), scene.get_normals())
        assert restored.to_dict() == data

    def test_capacities(self):
        """Capacity limits are exposed."""
        from src.whitted.scene.manager import SceneManager

        assert SceneManager.get_max_triangles() == 1 << 18
        assert SceneManager.get_max_materials() == 1024
        assert SceneManager.get_max_lights() == 20
