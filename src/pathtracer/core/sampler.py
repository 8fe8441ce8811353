"""Per-pixel sampling, accumulation and the RGB8 pixel buffer.

Every pixel is rendered independently: for each sample a random stream is
seeded from (seed, pixel_index, sample_index), the pixel position is jittered
inside the pixel, a camera ray is traced through the scene and its color is
added to the pixel's running sum. After the samples for a launch are done the
pixel is resolved: the sum is divided by the pixel's total sample count, gamma
corrected with a square root, clamped to [0, 0.999], scaled by 256 and written
as three bytes into a flat interleaved RGB8 buffer at offset
(y * width + x) * 3. Row 0 is the top of the image.

Because randomness is keyed by pixel and sample index rather than shared
between threads, the pixel buffer depends only on the scene, the camera, the
sample budget and the seed. Serial and parallel launches produce the same
bytes, and so does any split of the image into row bands or of the samples
into several passes.

Buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT so that
changing the image size never recompiles kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import (
    ...     setup_render_target, render_image, get_image_uint8
    ... )
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=10, max_bounces=5, seed=0)
    >>> image = get_image_uint8()  # (225, 400, 3) uint8
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.core.integrator import compute_color
from pathtracer.core.rng import random_f32, seed_rng

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Render Target
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Largest value a resolved channel may take before scaling to a byte
MAX_CHANNEL = 0.999

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear color sum per pixel, indexed [x, y] with y = 0 at the top
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Number of samples accumulated per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flat interleaved RGB8 buffer, row-major from the top-left pixel
_pixels = ti.field(dtype=ti.u8, shape=MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT * 3)

# Pixels finished since the last reset_progress()
_progress = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set up at %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the accumulated colors, sample counts, pixels and progress."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)
    _pixels.fill(0)
    _progress[None] = 0


def release_render_target() -> None:
    """Mark the render target as not set up.

    Subsequent queries raise RuntimeError until setup_render_target() is
    called again.
    """
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Pixel Resolution
# =============================================================================


@ti.func
def _channel_to_byte(value: ti.f32) -> ti.u8:
    """Gamma correct (gamma 2), clamp and quantize one linear channel."""
    c = ti.sqrt(value)
    if tm.isnan(c) or tm.isinf(c):
        c = 0.0
    c = tm.clamp(c, 0.0, MAX_CHANNEL)
    return ti.cast(ti.cast(256.0 * c, ti.i32), ti.u8)


@ti.func
def _write_pixel(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32, rgb: vec3):
    """Write one resolved pixel into the flat RGB8 buffer."""
    offset = (y * width + x) * 3
    assert 0 <= offset and offset + 2 < width * height * 3, "pixel offset out of bounds"
    if 0 <= offset and offset + 2 < width * height * 3:
        _pixels[offset + 0] = _channel_to_byte(rgb.x)
        _pixels[offset + 1] = _channel_to_byte(rgb.y)
        _pixels[offset + 2] = _channel_to_byte(rgb.z)


@ti.func
def _sample_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_bounces: ti.i32,
    seed: ti.u32,
) -> vec3:
    """Trace one jittered camera path through pixel (x, y)."""
    # Row 0 is the top of the image, v = 0 is the bottom of the viewport
    y_flipped = height - 1 - y
    pixel_index = y * width + x

    # Single-pixel dimensions would otherwise divide by zero
    u_scale = ti.cast(ti.max(width - 1, 1), ti.f32)
    v_scale = ti.cast(ti.max(height - 1, 1), ti.f32)

    rng = seed_rng(seed, pixel_index, sample_index)
    jitter_u, rng = random_f32(rng)
    jitter_v, rng = random_f32(rng)

    u = (ti.cast(x, ti.f32) + jitter_u) / u_scale
    v = (ti.cast(y_flipped, ti.f32) + jitter_v) / v_scale

    ray, rng = get_ray(u, v, rng)
    color, rng = compute_color(ray, max_bounces, rng)
    return color


@ti.func
def _accumulate_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_bounces: ti.i32,
    seed: ti.u32,
):
    """Add num_samples samples to pixel (x, y) and rewrite its bytes.

    Sample indices continue from the pixel's current sample count, so a
    pixel rendered in several passes sees the same sample sequence as one
    rendered in a single pass.
    """
    first_sample = _sample_count[x, y]
    color_sum = _color_sum[x, y]

    for k in range(num_samples):
        color_sum += _sample_pixel(x, y, width, height, first_sample + k, max_bounces, seed)

    count = first_sample + num_samples
    _color_sum[x, y] = color_sum
    _sample_count[x, y] = count

    _write_pixel(x, y, width, height, color_sum / ti.cast(count, ti.f32))
    ti.atomic_add(_progress[None], 1)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _accumulate_rows_parallel(
    width: ti.i32,
    height: ti.i32,
    y_begin: ti.i32,
    y_end: ti.i32,
    num_samples: ti.i32,
    max_bounces: ti.i32,
    seed: ti.u32,
):
    for x, y in ti.ndrange(width, (y_begin, y_end)):
        _accumulate_pixel(x, y, width, height, num_samples, max_bounces, seed)


@ti.kernel
def _accumulate_rows_serial(
    width: ti.i32,
    height: ti.i32,
    y_begin: ti.i32,
    y_end: ti.i32,
    num_samples: ti.i32,
    max_bounces: ti.i32,
    seed: ti.u32,
):
    ti.loop_config(serialize=True)
    for x, y in ti.ndrange(width, (y_begin, y_end)):
        _accumulate_pixel(x, y, width, height, num_samples, max_bounces, seed)


@ti.kernel
def _render_single_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_bounces: ti.i32,
    seed: ti.u32,
) -> vec3:
    color_sum = vec3(0.0, 0.0, 0.0)
    for k in range(num_samples):
        color_sum += _sample_pixel(x, y, width, height, k, max_bounces, seed)
    return color_sum / ti.cast(num_samples, ti.f32)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    y_begin: int,
    y_end: int,
    num_samples: int,
    max_bounces: int,
    seed: int = 0,
    parallel: bool = True,
) -> None:
    """Add samples to every pixel of the rows y_begin..y_end-1.

    Args:
        y_begin: First row of the band (0 = top).
        y_end: One past the last row of the band.
        num_samples: Samples to add to each pixel of the band.
        max_bounces: Maximum number of surface interactions per path.
        seed: Render seed.
        parallel: Run the band across all threads (True) or on one thread.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the band or sample counts are out of range.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= y_begin <= y_end <= height:
        raise ValueError(f"Invalid row band [{y_begin}, {y_end}) for height {height}")
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if max_bounces < 0:
        raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")
    if y_begin == y_end:
        return

    kernel = _accumulate_rows_parallel if parallel else _accumulate_rows_serial
    kernel(width, height, y_begin, y_end, num_samples, max_bounces, seed & 0xFFFFFFFF)


def render_image(
    num_samples: int,
    max_bounces: int,
    seed: int = 0,
    parallel: bool = True,
) -> None:
    """Add num_samples samples to every pixel of the image in one launch.

    Can be called multiple times to keep refining the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    _, height = get_image_dimensions()
    render_rows(0, height, num_samples, max_bounces, seed=seed, parallel=parallel)


def render_pixel(
    x: int,
    y: int,
    num_samples: int,
    max_bounces: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Average the first num_samples samples of a single pixel.

    This is a Python-callable function for testing and debugging. It uses
    the same sample sequence as the accumulating kernels but leaves the
    render target untouched.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the pixel is outside the image.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"Pixel ({x}, {y}) is outside the {width}x{height} image")
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")

    color = _render_single_pixel(x, y, width, height, num_samples, max_bounces, seed & 0xFFFFFFFF)
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Queries
# =============================================================================


def get_total_samples() -> int:
    """Get the number of samples accumulated in pixel (0, 0).

    After render_image() every pixel has the same count.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_progress() -> int:
    """Get the number of pixels finished since the last reset_progress()."""
    return int(_progress[None])


def reset_progress() -> None:
    """Reset the finished-pixel counter."""
    _progress[None] = 0


def get_pixel_buffer() -> npt.NDArray[np.uint8]:
    """Get a copy of the flat RGB8 buffer.

    Returns:
        NumPy array of length width * height * 3; pixel (x, y) starts at
        (y * width + x) * 3.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    return _pixels.to_numpy()[: width * height * 3].copy()


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the pixel buffer as an image array.

    Returns:
        NumPy array of shape (height, width, 3) with dtype uint8, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    width, height = get_image_dimensions()
    return get_pixel_buffer().reshape(height, width, 3)


def get_linear_image() -> npt.NDArray[np.float32]:
    """Get the average linear color of every pixel.

    Pixels without samples are black.

    Returns:
        NumPy array of shape (height, width, 3) with dtype float32, top row
        first, without gamma correction or clamping.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    # Fields are indexed [x, y]; images are (row, column)
    color_sum = np.transpose(_color_sum.to_numpy()[:width, :height, :], (1, 0, 2))
    counts = np.transpose(_sample_count.to_numpy()[:width, :height])

    image = np.zeros_like(color_sum, dtype=np.float32)
    mask = counts > 0
    image[mask] = color_sum[mask] / counts[mask][:, None]
    return image
