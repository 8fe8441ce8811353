"""Ray data structure and vector utilities for path tracing.

This module provides the fundamental Ray dataclass and vector utility functions
for Monte Carlo ray tracing. All operations are designed to work within Taichi
kernels.

Random sampling helpers take an explicit random stream state (see
``pathtracer.core.rng``) and return the updated state as the last element of
their result tuple.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared length below which a direction is treated as degenerate
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether a vector is too short to be used as a direction.

    Args:
        v: The vector to check.

    Returns:
        1 if the squared length is below NEAR_ZERO_EPSILON, 0 otherwise.
    """
    return length_squared(v) < NEAR_ZERO_EPSILON


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes incident - 2 * (incident . normal) * normal. The normal must be
    unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface (vector form of Snell's law).

    The incident direction is split into parts perpendicular and parallel to
    the normal. The perpendicular part is scaled by the refraction ratio and
    the parallel part is rebuilt so the result has unit length. Callers must
    rule out total internal reflection first.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal (unit length, facing the incident ray).
        ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(tm.dot(-unit_incident, normal), 1.0)
    r_out_perp = ratio * (unit_incident + cos_theta * normal)
    # Rounding can push the radicand slightly below zero
    parallel_sq = tm.max(1.0 - length_squared(r_out_perp), 0.0)
    r_out_parallel = -ti.sqrt(parallel_sq) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(rng: ti.u32):
    """Generate a random point inside the unit sphere.

    Uses rejection sampling to generate uniformly distributed points
    within the unit sphere.

    Args:
        rng: Random stream state.

    Returns:
        A tuple of (point, rng) where point has length < 1.
    """
    state = rng
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Bounded rejection loop; acceptance rate is about 52%
    for _ in range(100):
        if not found:
            x, state = random_range(-1.0, 1.0, state)
            y, state = random_range(-1.0, 1.0, state)
            z, state = random_range(-1.0, 1.0, state)
            p = vec3(x, y, z)
            if length_squared(p) < 1.0 and not near_zero(p):
                found = True
    return p, state


@ti.func
def random_unit_vector(rng: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    This is the normalized version of random_in_unit_sphere().

    Args:
        rng: Random stream state.

    Returns:
        A tuple of (unit_vector, rng).
    """
    p, state = random_in_unit_sphere(rng)
    return tm.normalize(p), state


@ti.func
def random_in_unit_disk(rng: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used to jitter ray origins across the lens aperture.

    Args:
        rng: Random stream state.

    Returns:
        A tuple of (point, rng) where point is (x, y, 0) with x^2 + y^2 < 1.
    """
    state = rng
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            x, state = random_range(-1.0, 1.0, state)
            y, state = random_range(-1.0, 1.0, state)
            p = vec3(x, y, 0.0)
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p, state
