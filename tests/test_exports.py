"""Tests for the public names exported by each subpackage."""

import importlib

import pytest


@pytest.mark.parametrize(
    "package",
    [
        "pathtracer.camera",
        "pathtracer.core",
        "pathtracer.geometry",
        "pathtracer.materials",
        "pathtracer.output",
        "pathtracer.scene",
    ],
)
def test_all_names_resolve(package):
    """Test that every name in __all__ is defined by the package."""
    module = importlib.import_module(package)
    missing = [name for name in module.__all__ if not hasattr(module, name)]
    assert missing == []


def test_material_structs_are_not_exported():
    """Test that materials are exposed only through their scatter functions and registries."""
    import pathtracer.materials as materials

    for name in ("DiffuseMaterial", "MetalMaterial", "DielectricMaterial"):
        assert name not in materials.__all__
        assert not hasattr(materials, name)
