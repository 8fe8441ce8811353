"""Path tracing integrator for Monte Carlo light transport.

This module computes the color carried back along one camera path. A path
starts with a white throughput and bounces through the scene: every surface
hit multiplies the throughput by the material's attenuation, a ray that
escapes picks up the sky gradient, and a path that is absorbed or runs out of
bounces contributes black. There are no emitters other than the sky.

The bounce loop is iterative and bounded by ``max_bounces``; a budget of 0
therefore renders black. Scattered rays start exactly at the hit point and
self-intersection is avoided by the T_MIN lower bound on t.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import trace_ray
    >>> from pathtracer.scene.presets import create_default_scene
    >>>
    >>> scene, camera = create_default_scene(16.0 / 9.0)
    >>> trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_bounces=10, seed=7)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.rng import seed_rng
from pathtracer.materials.dielectric import get_dielectric_ior, scatter_dielectric
from pathtracer.materials.diffuse import get_diffuse_albedo, scatter_diffuse
from pathtracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from pathtracer.materials.scatter import (
    ABSORBED,
    make_absorbed,
    make_scattered,
)
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t bounds for path rays; T_MIN keeps a scattered ray from re-hitting the
# surface it leaves
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Background
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Color of a ray that escapes the scene.

    Linearly blends white and light blue by the height of the unit direction:
    t = 0.5 * (y + 1), so straight down is white and straight up is blue.
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point on the surface.
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if hit front face, 0 if back face.
        rng: Random stream state.

    Returns:
        A tuple of (event, rng). The event's scattered ray starts at
        hit_point. Unknown material IDs absorb the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    state = rng
    event = make_absorbed()

    if mat_type == int(MaterialType.DIFFUSE):
        albedo = get_diffuse_albedo(type_index)
        direction, attenuation, state = scatter_diffuse(albedo, normal, state)
        event = make_scattered(attenuation, hit_point, direction)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        direction, attenuation, did_scatter, state = scatter_metal(
            albedo, fuzz, incident_direction, normal, state
        )
        if did_scatter == 1:
            event = make_scattered(attenuation, hit_point, direction)

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        direction, attenuation, state = scatter_dielectric(
            ior, incident_direction, normal, front_face, state
        )
        event = make_scattered(attenuation, hit_point, direction)

    return event, state


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def compute_color(ray: Ray, max_bounces: ti.i32, rng: ti.u32):
    """Trace a single path from a primary ray through the scene.

    Args:
        ray: The primary ray.
        max_bounces: Maximum number of surface interactions. Hitting a
            surface with no budget left contributes black.
        rng: Random stream state.

    Returns:
        A tuple of (color, rng). Every channel of color is in [0, 1].
    """
    origin = ray.origin
    direction = ray.direction
    state = rng

    # Product of attenuations along the path
    throughput = vec3(1.0, 1.0, 1.0)
    color = vec3(0.0, 0.0, 0.0)

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(max_bounces):
        if active == 1:
            hit_record = intersect_scene(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                event, state = scatter_material(
                    hit_record.material_id,
                    direction,
                    hit_record.point,
                    hit_record.normal,
                    hit_record.front_face,
                    state,
                )

                if event.scattered == ABSORBED:
                    active = 0
                else:
                    throughput *= event.attenuation
                    origin = event.origin
                    direction = event.direction

    # Paths that are still active here exhausted the bounce budget and stay black
    return color, state


# =============================================================================
# Diagnostics
# =============================================================================


@ti.kernel
def _trace_ray_kernel(
    origin: vec3,
    direction: vec3,
    max_bounces: ti.i32,
    seed: ti.u32,
) -> vec3:
    rng = seed_rng(seed, 0, 0)
    color, rng = compute_color(make_ray(origin, direction), max_bounces, rng)
    return color


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_bounces: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace a single path against the current scene.

    This is a Python-callable helper for testing and debugging. The result
    is deterministic for a given scene and seed.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_bounces: Maximum number of surface interactions.
        seed: Seed of the random stream used for scattering.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    if max_bounces < 0:
        raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")

    color = _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_bounces,
        seed & 0xFFFFFFFF,
    )
    return (float(color[0]), float(color[1]), float(color[2]))
