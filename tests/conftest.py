"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset scene storage and renderer state around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any field is declared
    from src.whitted.camera.pinhole import reset_camera
    from src.whitted.core.integrator import clear_render_target, setup_tracer
    from src.whitted.scene.intersection import clear_scene
    from src.whitted.scene.lights import clear_lights
    from src.whitted.scene.materials import clear_materials
    from src.whitted.shading.phong import setup_shading

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        reset_camera()
        clear_render_target()
        setup_shading()
        setup_tracer()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def single_triangle_scene():
    """The one-triangle scene used by several tracer tests.

    Triangle (0,0,0), (1,0,0), (0,1,0) with normal +z, material
    ka = 0.1, kd = 0.5, ks = 0 (grey), and a white light of intensity 1
    at (0.2, 0.2, 5).
    """
    from src.whitted.scene.manager import SceneManager

    scene = SceneManager()
    mat = scene.add_material(ka=(0.1, 0.1, 0.1), kd=(0.5, 0.5, 0.5), ks=(0.0, 0.0, 0.0))
    scene.add_triangle((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), mat, normal=(0.0, 0.0, 1.0))
    scene.add_light((0.2, 0.2, 5.0), (1.0, 1.0, 1.0), 1.0)
    return scene
