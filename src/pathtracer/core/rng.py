"""Explicit random streams for Taichi kernels.

Every unit of parallel work (one sample of one pixel) owns its own random
stream. A stream is a single ``ti.u32`` state that is passed into every
function that needs randomness and returned updated alongside the result::

    rng = seed_rng(seed, pixel_index, sample_index)
    x, rng = random_f32(rng)
    y, rng = random_f32(rng)

Seeding hashes ``(seed, pixel_index, sample_index)`` with the Wang integer
hash, so neighbouring pixels and samples get decorrelated streams. The
generator itself is Marsaglia's xorshift32. Because no state is shared between
threads, a render is a pure function of its inputs and the seed.
"""

import taichi as ti


@ti.func
def _u32(value) -> ti.u32:
    return ti.cast(value, ti.u32)


@ti.func
def hash_u32(value: ti.u32) -> ti.u32:
    """Wang hash of a 32-bit unsigned integer.

    Args:
        value: The value to hash.

    Returns:
        A well-mixed 32-bit unsigned integer.
    """
    h = _u32(value)
    h = (h ^ _u32(61)) ^ (h >> _u32(16))
    h = h * _u32(9)
    h = h ^ (h >> _u32(4))
    h = h * _u32(0x27D4EB2D)
    h = h ^ (h >> _u32(15))
    return h


@ti.func
def seed_rng(seed, pixel_index, sample_index) -> ti.u32:
    """Create the random stream for one sample of one pixel.

    Args:
        seed: The render seed.
        pixel_index: Linear pixel index (y * width + x).
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero xorshift32 state.
    """
    h = hash_u32(_u32(seed))
    h = hash_u32(h ^ _u32(pixel_index))
    h = hash_u32(h ^ _u32(sample_index))
    # Zero is a fixed point of xorshift
    if h == _u32(0):
        h = _u32(1)
    return h


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state.

    Args:
        state: The current (non-zero) state.

    Returns:
        The next state, which is also the next random value.
    """
    x = _u32(state)
    x = x ^ (x << _u32(13))
    x = x ^ (x >> _u32(17))
    x = x ^ (x << _u32(5))
    return x


@ti.func
def random_f32(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Uses the upper 24 bits of the next state so that every value is exactly
    representable as a float32 strictly below 1.

    Args:
        state: The current stream state.

    Returns:
        A tuple of (value, new_state).
    """
    new_state = next_u32(state)
    value = ti.cast(new_state >> _u32(8), ti.f32) * (1.0 / 16777216.0)
    return value, new_state


@ti.func
def random_range(low: ti.f32, high: ti.f32, state: ti.u32):
    """Draw a uniform float in [low, high).

    Args:
        low: Lower bound (inclusive).
        high: Upper bound (exclusive).
        state: The current stream state.

    Returns:
        A tuple of (value, new_state).
    """
    value, new_state = random_f32(state)
    return low + (high - low) * value, new_state
