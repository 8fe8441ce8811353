"""Diffuse (Lambertian) material implementation.

A diffuse surface scatters incoming light around the surface normal: the new
direction is the normal plus a random unit vector, which yields a
cosine-weighted distribution over the hemisphere. The surface never absorbs a
path outright; it tints it by its albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.diffuse import scatter_diffuse
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, rng = scatter_diffuse(albedo, normal, rng)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_diffuse(albedo: vec3, normal: vec3, rng: ti.u32):
    """Sample a scattered ray direction for a diffuse material.

    When the random unit vector nearly cancels the normal, the normal itself
    is used so the scattered ray never has a zero-length direction.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal at the hit point.
        rng: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, rng). The direction is
        not normalized.
    """
    offset, state = random_unit_vector(rng)
    scattered_direction = normal + offset

    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of diffuse materials in the scene
MAX_DIFFUSE_MATERIALS = 256

# Storage for diffuse material properties
diffuse_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DIFFUSE_MATERIALS)
num_diffuse_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_materials() -> None:
    """Clear all diffuse materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_diffuse_materials[None] = 0


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that every albedo channel lies in [0, 1].

    Args:
        albedo: The color to check as an (R, G, B) tuple.

    Raises:
        ValueError: If the tuple does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def add_diffuse_material(albedo: tuple[float, float, float]) -> int:
    """Add a diffuse material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component must be in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_diffuse_materials[None]
    if idx >= MAX_DIFFUSE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse materials ({MAX_DIFFUSE_MATERIALS}) exceeded"
        )

    diffuse_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_diffuse_materials[None] = idx + 1
    return idx


def get_diffuse_material_count() -> int:
    """Get the number of diffuse materials in the registry."""
    return int(num_diffuse_materials[None])


@ti.func
def get_diffuse_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a diffuse material by index."""
    return diffuse_albedos[material_idx]
