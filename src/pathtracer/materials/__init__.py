"""Materials module for surface scattering models.

Components:
    diffuse: Ideal diffuse (Lambertian) reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick Fresnel)
    scatter: The scatter-or-absorb outcome shared by all materials

Every scatter function is a Taichi function that takes an explicit random
stream state and returns the updated state as the last tuple element.
Each material module also owns a fixed-capacity Taichi field registry of its
parameters; the scene manager maps global material IDs onto these registries.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    will_reflect,
)
from .diffuse import (
    add_diffuse_material,
    clear_diffuse_materials,
    get_diffuse_albedo,
    get_diffuse_material_count,
    scatter_diffuse,
    validate_albedo,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)
from .scatter import ABSORBED, SCATTERED, ScatterEvent, make_absorbed, make_scattered

__all__ = [
    # Diffuse
    "scatter_diffuse",
    "validate_albedo",
    "add_diffuse_material",
    "clear_diffuse_materials",
    "get_diffuse_material_count",
    "get_diffuse_albedo",
    # Metal
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "fresnel_reflectance",
    "will_reflect",
    # Scatter outcome
    "ScatterEvent",
    "SCATTERED",
    "ABSORBED",
    "make_scattered",
    "make_absorbed",
]
