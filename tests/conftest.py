"""Pytest configuration for path tracer tests.

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
    """Clear the scene and the render target around each test."""
    # Import here so that Taichi is initialized before fields are declared
    from pathtracer.core.integrator import clear_render_target
    from pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def mirror_and_light_scene():
    """A mirror sphere ahead of the origin and a light sphere behind it.

    A ray from the origin along +z hits the mirror head-on, reflects straight
    back along -z and hits the light.
    """
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_sphere((0.0, 0.0, 10.0), 2.0, reflectivity=(1.0, 1.0, 1.0))
    scene.add_sphere((0.0, 0.0, -10.0), 2.0, emission=(100.0, 100.0, 100.0))
    return scene
