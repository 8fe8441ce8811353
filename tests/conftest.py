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
    """Clear scene data and the render target before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before fields are declared
    from pathtracer.core.sampler import clear_render_target, release_render_target
    from pathtracer.materials.dielectric import clear_dielectric_materials
    from pathtracer.materials.diffuse import clear_diffuse_materials
    from pathtracer.materials.metal import clear_metal_materials
    from pathtracer.scene.intersection import clear_scene
    from pathtracer.scene.manager import clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_diffuse_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_tracking()
        clear_render_target()
        release_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def front_camera():
    """Set up a pinhole camera at the origin looking down -z (aspect 2:1)."""
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.scene.presets import create_front_camera

    camera = create_front_camera(2.0)
    setup_camera(camera)
    return camera
