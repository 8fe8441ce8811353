"""Render orchestration with progress reporting and progressive refinement.

The Renderer ties a RenderConfig to the sampler's render target. The image is
rendered one band of rows at a time so that progress can be reported between
kernel launches, and further passes can be added to an existing render to
reduce noise.

The scene and camera are global Taichi state: build the scene and call
setup_camera() before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.config import RenderConfig
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.presets import create_default_scene
    >>>
    >>> config = RenderConfig.with_ratio(16.0 / 9.0, 225, samples_per_pixel=20)
    >>> scene, camera = create_default_scene(config.aspect_ratio)
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(config, seed=1)
    >>> renderer.render()
    >>> renderer.save_image("spheres.png")
"""

import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtracer.core.config import RenderConfig
from pathtracer.core.sampler import (
    clear_render_target,
    get_image_uint8,
    get_linear_image,
    get_progress,
    get_total_samples,
    render_rows,
    reset_progress,
    setup_render_target,
)
from pathtracer.output.export import save_image

logger = logging.getLogger(__name__)

# Callback receives (pixels_done, total_pixels)
ProgressCallback = Callable[[int, int], None]

DEFAULT_BAND_HEIGHT = 16


class Renderer:
    """Renders the current scene according to a RenderConfig.

    The renderer owns the sampler's render target while it is in use;
    creating a second Renderer resets it.

    Attributes:
        config: The render configuration.
        seed: Seed of the per-sample random streams.
        parallel: Whether kernels run on all threads.
        band_height: Number of rows rendered per kernel launch.
    """

    def __init__(
        self,
        config: RenderConfig,
        seed: int = 0,
        parallel: bool = True,
        band_height: int = DEFAULT_BAND_HEIGHT,
    ) -> None:
        """Initialize the renderer and its render target.

        Raises:
            ValueError: If band_height is not positive or the image is larger
                than the render target supports.
        """
        if band_height <= 0:
            raise ValueError(f"band_height must be positive, got {band_height}")

        self.config = config
        self.seed = seed
        self.parallel = parallel
        self.band_height = band_height
        setup_render_target(config.width, config.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.config.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.config.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard all accumulated samples."""
        clear_render_target()

    def render_progressive(
        self,
        num_samples: int | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Add one pass of samples band by band, yielding after each band.

        Args:
            num_samples: Samples to add to every pixel. Defaults to the
                configured samples_per_pixel.

        Yields:
            Tuple of (pixels_done, total_pixels) for the current pass.

        Example:
            >>> for done, total in renderer.render_progressive():
            ...     print(f"{100 * done // total}%")
        """
        if num_samples is None:
            num_samples = self.config.samples_per_pixel
        if num_samples <= 0:
            raise ValueError(f"num_samples must be positive, got {num_samples}")

        total_pixels = self.config.pixel_count
        reset_progress()

        logger.info(
            "Rendering %dx%d, %d samples per pixel, %d bounces (%s)",
            self.width,
            self.height,
            num_samples,
            self.config.max_bounces,
            "parallel" if self.parallel else "serial",
        )
        start = time.perf_counter()

        for y_begin in range(0, self.height, self.band_height):
            y_end = min(y_begin + self.band_height, self.height)
            render_rows(
                y_begin,
                y_end,
                num_samples,
                self.config.max_bounces,
                seed=self.seed,
                parallel=self.parallel,
            )
            pixels_done = get_progress()
            logger.debug("Rows %d-%d done (%d/%d pixels)", y_begin, y_end - 1, pixels_done, total_pixels)
            yield (pixels_done, total_pixels)

        logger.info(
            "Pass finished in %.2fs (%d samples per pixel accumulated)",
            time.perf_counter() - start,
            self.sample_count,
        )

    def refine(
        self,
        num_samples: int,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples to every pixel of the existing render.

        The result is identical to rendering the combined sample count in a
        single pass.

        Args:
            num_samples: Samples to add to every pixel.
            callback: Optional callback called after each band with
                (pixels_done, total_pixels).
        """
        for pixels_done, total_pixels in self.render_progressive(num_samples):
            if callback is not None:
                callback(pixels_done, total_pixels)

    def render(self, callback: ProgressCallback | None = None) -> None:
        """Render the configured number of samples per pixel from scratch.

        Args:
            callback: Optional callback called after each band with
                (pixels_done, total_pixels).
        """
        self.reset()
        self.refine(self.config.samples_per_pixel, callback=callback)

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit array.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        return get_image_uint8()

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the average linear color of every pixel.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        return get_linear_image()

    def save_image(self, filepath: str | Path, quality: int = 100) -> None:
        """Save the rendered image to a file.

        Args:
            filepath: Path to save the image; the format follows the
                extension (e.g. "output.png", "output.jpg").
            quality: JPEG quality (ignored for lossless formats).
        """
        save_image(self.get_image_uint8(), filepath, quality=quality)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, seed={self.seed})"
        )
