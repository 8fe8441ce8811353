"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders scenes of spheres by path tracing, with support for:
- Diffuse, metal and dielectric (glass) materials
- A thin-lens camera with optional depth of field
- Parallel per-pixel sampling with independent random streams
- Progressive refinement and PNG/JPEG output

Subpackages:
    core: Ray utilities, random streams, integrator, sampler and renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Scattering models
    scene: Scene storage, nearest-hit queries, scene manager and presets
    camera: Thin-lens camera with ray generation
    output: Image encoding utilities
"""

__version__ = "0.1.0"
