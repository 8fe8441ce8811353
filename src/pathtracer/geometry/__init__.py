"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) returning a HitRecord:
    record = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)

New primitive kinds follow the same contract (origin, direction, shape,
t_min, t_max) -> HitRecord and are registered with the scene in
pathtracer.scene.intersection.
"""

from .sphere import HitRecord, Sphere, hit_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
]
