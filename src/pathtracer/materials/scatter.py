"""Scatter outcome shared by all materials.

A surface interaction either continues the path with a new ray and a color
attenuation, or absorbs it. ``ScatterEvent`` carries both cases in one record;
``scattered`` says which one applies, and the ray and attenuation fields are
only meaningful when it equals ``SCATTERED``.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Values of ScatterEvent.scattered
ABSORBED = 0
SCATTERED = 1


@ti.dataclass
class ScatterEvent:
    """Result of scattering a ray off a surface.

    Attributes:
        scattered: SCATTERED if the path continues, ABSORBED if it ends.
        attenuation: Per-channel color multiplier for the continued path.
        origin: Origin of the scattered ray (the hit point).
        direction: Direction of the scattered ray (not normalized).
    """

    scattered: ti.i32
    attenuation: vec3
    origin: vec3
    direction: vec3


@ti.func
def make_scattered(attenuation: vec3, origin: vec3, direction: vec3) -> ScatterEvent:
    """Create an event for a path that continues."""
    return ScatterEvent(
        scattered=SCATTERED,
        attenuation=attenuation,
        origin=origin,
        direction=direction,
    )


@ti.func
def make_absorbed() -> ScatterEvent:
    """Create an event for a path that ends at this surface."""
    return ScatterEvent(
        scattered=ABSORBED,
        attenuation=vec3(0.0, 0.0, 0.0),
        origin=vec3(0.0, 0.0, 0.0),
        direction=vec3(0.0, 0.0, 0.0),
    )
