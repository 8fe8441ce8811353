"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    rng: Explicit per-sample random streams (xorshift32 seeded by hashing)
    ray: Ray data structure, vector helpers and random direction sampling
    config: Render configuration (image size, samples, bounce limit)
    integrator: Light transport loop and background gradient
    sampler: Per-pixel sampling, accumulation and the RGB8 pixel buffer
    renderer: Render orchestration with progress reporting

All compute-intensive operations use Taichi kernels.
"""

from .config import RenderConfig
from .ray import (
    Ray,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .rng import hash_u32, next_u32, random_f32, random_range, seed_rng

# Note: integrator, sampler and renderer are NOT imported here because they
# declare Taichi fields at import time. Import them directly once Taichi is
# initialized, e.g.:
#   from pathtracer.core.renderer import Renderer

__all__ = [
    "RenderConfig",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "near_zero",
    "reflect",
    "refract",
    "schlick_fresnel",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "hash_u32",
    "next_u32",
    "random_f32",
    "random_range",
    "seed_rng",
]
