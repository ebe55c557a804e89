"""Tests for OBJ/MTL scene loading.

Tests cover:
- Triangle and material counts of the bundled example scene
- Normalization by the bounding box diagonal (geometry and lights)
- MTL colors (ambient, diffuse, specular) read unchanged, and the default material
- Missing files
"""

from pathlib import Path

import numpy as np
import pytest

EXAMPLE_OBJ = Path(__file__).parent.parent / "examples" / "scenes" / "room.obj"

# Bounding box of room.obj is (-5, 0, -5) .. (5, 6, 5)
ROOM_DIST_BOUND = float(np.sqrt(10.0**2 + 6.0**2 + 10.0**2))

# MTL colors are read as floats, not through 8-bit visuals
COLOR_TOL = 1e-6

# (Ka, Kd, Ks) of every material in room.mtl
ROOM_MATERIALS = [
    ((0.08, 0.08, 0.08), (0.7, 0.7, 0.65), (0.05, 0.05, 0.05)),
    ((0.06, 0.06, 0.08), (0.45, 0.5, 0.7), (0.0, 0.0, 0.0)),
    ((0.0, 0.0, 0.0), (0.05, 0.05, 0.05), (0.9, 0.9, 0.9)),
    ((0.1, 0.05, 0.0), (0.8, 0.45, 0.1), (0.3, 0.3, 0.3)),
]


class TestLoadExampleScene:
    """Tests against examples/scenes/room.obj."""

    def test_counts(self):
        """Four quads and a four-sided pyramid, four materials."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        loaded = load_obj_scene(EXAMPLE_OBJ, scene)

        assert loaded.triangle_count == 10
        assert loaded.material_count == 4
        assert scene.get_triangle_count() == 10
        scene.validate()

    def test_normalized_to_unit_diagonal(self):
        """Vertices are divided by dist_bound, so the new diagonal is 1."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        loaded = load_obj_scene(EXAMPLE_OBJ, scene)

        assert loaded.dist_bound == pytest.approx(ROOM_DIST_BOUND)
        assert scene.dist_bound() == pytest.approx(1.0)
        lo, hi = scene.bounds()
        assert np.allclose(lo, np.array([-5.0, 0.0, -5.0]) / ROOM_DIST_BOUND)
        assert np.allclose(hi, np.array([5.0, 6.0, 5.0]) / ROOM_DIST_BOUND)

    def test_normalize_point(self):
        """LoadedScene.normalize_point applies the same factor."""
        from src.whitted.scene.loader import LoadedScene

        loaded = LoadedScene(dist_bound=4.0, triangle_count=1, material_count=1)
        assert loaded.normalize_point((4.0, -2.0, 8.0)) == (1.0, -0.5, 2.0)

    def test_lights_are_normalized(self):
        """Light positions are scaled with the geometry; colors are kept."""
        from src.whitted.config.render_config import LightSpec
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        light = LightSpec(position=(3.0, 5.0, 4.0), color=(1.0, 0.5, 0.25), intensity=0.6)
        load_obj_scene(EXAMPLE_OBJ, scene, lights=[light])

        assert scene.get_light_count() == 1
        info = scene.lights[0]
        assert info.position == pytest.approx(tuple(c / ROOM_DIST_BOUND for c in light.position))
        assert info.color == pytest.approx(light.color)
        assert info.intensity == pytest.approx(0.6)

    def test_normals_are_unit_and_match_faces(self):
        """Each stored normal is unit length and agrees with its flat face."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        load_obj_scene(EXAMPLE_OBJ, scene)

        vertices = scene.get_vertices()
        normals = scene.get_normals()
        assert np.allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-6)

        face = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
        face /= np.linalg.norm(face, axis=1)[:, None]
        assert np.allclose(np.sum(face * normals, axis=1), 1.0, atol=1e-5)

    def test_mtl_colors(self):
        """Ka, Kd and Ks from the MTL file become ka, kd and ks."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        load_obj_scene(EXAMPLE_OBJ, scene)

        by_kd = {info.kd: info for info in scene.materials}
        assert len(by_kd) == len(ROOM_MATERIALS)
        for ka, kd, ks in ROOM_MATERIALS:
            info = next(m for k, m in by_kd.items() if np.allclose(k, kd, atol=COLOR_TOL))
            assert np.allclose(info.ka, ka, atol=COLOR_TOL)
            assert np.allclose(info.ks, ks, atol=COLOR_TOL)

    def test_mirror_specular(self):
        """The mirror keeps its exact Ks of 0.9 in every channel."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        load_obj_scene(EXAMPLE_OBJ, scene)

        mirror = next(m for m in scene.materials if np.allclose(m.kd, 0.05, atol=COLOR_TOL))
        assert mirror.ks == pytest.approx((0.9, 0.9, 0.9), abs=COLOR_TOL)

    def test_reload_clears_previous_scene(self):
        """Loading twice does not accumulate triangles."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        scene = SceneManager()
        load_obj_scene(EXAMPLE_OBJ, scene)
        load_obj_scene(EXAMPLE_OBJ, scene)
        assert scene.get_triangle_count() == 10


class TestMtlValues:
    """MTL colors are taken as written, without 8-bit rounding or clamping."""

    @staticmethod
    def _write_scene(tmp_path, mtl_text):
        (tmp_path / "bright.mtl").write_text(mtl_text)
        path = tmp_path / "bright.obj"
        path.write_text("mtllib bright.mtl\nv 0 0 0\nv 2 0 0\nv 0 2 0\nusemtl bright\nf 1 2 3\n")
        return path

    def test_values_above_one_are_kept(self, tmp_path):
        """Kd 1.6 stays 1.6 and 0.7 is not rounded to 0.698."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        path = self._write_scene(tmp_path, "newmtl bright\nKa 0.2 0.3 0.4\nKd 1.6 0.7 0.65\nKs 1.25 0.9 0.9\n")

        scene = SceneManager()
        load_obj_scene(path, scene)

        info = scene.materials[0]
        assert info.ka == pytest.approx((0.2, 0.3, 0.4), abs=COLOR_TOL)
        assert info.kd == pytest.approx((1.6, 0.7, 0.65), abs=COLOR_TOL)
        assert info.ks == pytest.approx((1.25, 0.9, 0.9), abs=COLOR_TOL)

    def test_single_value_is_grey(self, tmp_path):
        """A one-number color applies to all three channels."""
        from src.whitted.scene.loader import DEFAULT_KA, load_obj_scene
        from src.whitted.scene.manager import SceneManager

        path = self._write_scene(tmp_path, "newmtl bright\nKd 0.5\nKs 0.9\n")

        scene = SceneManager()
        load_obj_scene(path, scene)

        info = scene.materials[0]
        assert info.kd == pytest.approx((0.5, 0.5, 0.5), abs=COLOR_TOL)
        assert info.ks == pytest.approx((0.9, 0.9, 0.9), abs=COLOR_TOL)
        assert info.ka == pytest.approx(DEFAULT_KA)


class TestLoadErrors:
    """Tests for files without materials and missing files."""

    def test_default_material(self, tmp_path):
        """A mesh without an MTL gets the default grey material."""
        from src.whitted.scene.loader import DEFAULT_KD, load_obj_scene
        from src.whitted.scene.manager import SceneManager

        path = tmp_path / "plain.obj"
        path.write_text("v 0 0 0\nv 2 0 0\nv 0 2 0\nf 1 2 3\n")

        scene = SceneManager()
        loaded = load_obj_scene(path, scene)

        assert loaded.triangle_count == 1
        assert loaded.material_count == 1
        assert np.allclose(scene.materials[0].kd, DEFAULT_KD, atol=1.0 / 255.0 + 1e-6)
        assert np.allclose(scene.get_normals()[0], [0.0, 0.0, 1.0])

    def test_missing_file(self, tmp_path):
        """A missing OBJ raises FileNotFoundError."""
        from src.whitted.scene.loader import load_obj_scene
        from src.whitted.scene.manager import SceneManager

        with pytest.raises(FileNotFoundError):
            load_obj_scene(tmp_path / "missing.obj", SceneManager())
