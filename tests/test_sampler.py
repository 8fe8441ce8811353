"""Unit tests for per-pixel sampling and the RGB8 pixel buffer.

Tests cover:
- Render target setup and validation
- Pixel layout (row 0 at the top, offset (y * width + x) * 3)
- Gamma correction, clamping and quantization
- Determinism: serial vs parallel, banded vs single pass, refinement
- Convergence toward a high sample count reference
"""

import numpy as np
import pytest

WIDTH = 16
HEIGHT = 8


@pytest.fixture
def render_target(front_camera):
    """Set up a small render target viewed through the front camera."""
    from pathtracer.core.sampler import setup_render_target

    setup_render_target(WIDTH, HEIGHT)


@pytest.fixture
def default_scene(front_camera):
    """Build the default preset scene (camera already set up)."""
    from pathtracer.scene.presets import create_default_scene

    return create_default_scene(2.0)


class TestRenderTarget:
    """Tests for render target setup."""

    @pytest.mark.parametrize("width, height", [(0, 10), (10, -1), (4096, 10), (10, 4096)])
    def test_invalid_dimensions(self, width, height):
        """Test that invalid sizes raise ValueError."""
        from pathtracer.core.sampler import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_uninitialized_target_raises(self):
        """Test that rendering without a target raises RuntimeError."""
        from pathtracer.core.sampler import get_pixel_buffer, render_image

        with pytest.raises(RuntimeError):
            render_image(num_samples=1, max_bounces=1)
        with pytest.raises(RuntimeError):
            get_pixel_buffer()

    def test_dimensions(self, render_target):
        """Test that the active dimensions are reported."""
        from pathtracer.core.sampler import get_image_dimensions, get_pixel_buffer

        assert get_image_dimensions() == (WIDTH, HEIGHT)
        assert get_pixel_buffer().shape == (WIDTH * HEIGHT * 3,)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"y_begin": -1, "y_end": 2},
            {"y_begin": 3, "y_end": 2},
            {"y_begin": 0, "y_end": HEIGHT + 1},
            {"y_begin": 0, "y_end": 2, "num_samples": 0},
            {"y_begin": 0, "y_end": 2, "max_bounces": -1},
        ],
    )
    def test_invalid_band(self, render_target, kwargs):
        """Test that bad bands and counts raise ValueError."""
        from pathtracer.core.sampler import render_rows

        params = {"num_samples": 1, "max_bounces": 1}
        params.update(kwargs)
        with pytest.raises(ValueError):
            render_rows(**params)


class TestPixelResolution:
    """Tests for the bytes written to the pixel buffer."""

    def test_zero_bounces_renders_black(self, render_target):
        """Test that a zero bounce budget yields an all-black image."""
        from pathtracer.core.sampler import get_pixel_buffer, render_image

        render_image(num_samples=4, max_bounces=0)
        assert np.all(get_pixel_buffer() == 0)

    def test_sky_blue_channel_clamps_to_255(self, render_target):
        """Test that a full-intensity channel is clamped to 0.999 before scaling."""
        from pathtracer.core.sampler import get_image_uint8, render_image

        render_image(num_samples=2, max_bounces=1)
        image = get_image_uint8()
        # The sky's blue channel is 1.0 in every direction
        assert np.all(image[:, :, 2] == 255)

    def test_gamma_correction(self, render_target):
        """Test that bytes are 256 * sqrt(linear) truncated."""
        from pathtracer.core.sampler import get_image_uint8, get_linear_image, render_image

        render_image(num_samples=3, max_bounces=1)
        linear = get_linear_image()
        expected = (256.0 * np.clip(np.sqrt(linear), 0.0, 0.999)).astype(np.int32)
        assert np.abs(get_image_uint8().astype(np.int32) - expected).max() <= 1

    def test_row_zero_is_top(self, render_target):
        """Test that the top row looks up into bluer sky than the bottom row."""
        from pathtracer.core.sampler import get_image_uint8, render_image

        render_image(num_samples=4, max_bounces=1)
        image = get_image_uint8().astype(np.int32)
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()

    def test_buffer_offset_layout(self, default_scene, render_target):
        """Test that pixel (x, y) is stored at (y * width + x) * 3."""
        from pathtracer.core.sampler import get_image_uint8, get_pixel_buffer, render_image

        render_image(num_samples=2, max_bounces=4)
        buffer = get_pixel_buffer()
        image = get_image_uint8()
        for x, y in [(0, 0), (WIDTH - 1, 0), (3, 5), (WIDTH - 1, HEIGHT - 1)]:
            offset = (y * WIDTH + x) * 3
            assert tuple(buffer[offset : offset + 3]) == tuple(image[y, x])

    def test_single_pixel_image(self, front_camera):
        """Test that a 1x1 image renders without dividing by zero."""
        from pathtracer.core.sampler import get_linear_image, render_image, setup_render_target

        setup_render_target(1, 1)
        render_image(num_samples=4, max_bounces=1)
        assert np.all(np.isfinite(get_linear_image()))

    def test_progress_counts_pixels(self, render_target):
        """Test that every pixel reports completion once per launch."""
        from pathtracer.core.sampler import get_progress, render_image, reset_progress

        reset_progress()
        render_image(num_samples=1, max_bounces=1)
        assert get_progress() == WIDTH * HEIGHT


class TestDeterminism:
    """Tests that the image depends only on scene, budget and seed."""

    def _render(self, num_samples, seed=0, parallel=True):
        from pathtracer.core.sampler import clear_render_target, get_pixel_buffer, render_image

        clear_render_target()
        render_image(num_samples=num_samples, max_bounces=8, seed=seed, parallel=parallel)
        return get_pixel_buffer()

    def test_repeatable(self, default_scene, render_target):
        """Test that rendering twice gives the same bytes."""
        assert np.array_equal(self._render(4, seed=3), self._render(4, seed=3))

    def test_seed_changes_image(self, default_scene, render_target):
        """Test that different seeds give different noise."""
        assert not np.array_equal(self._render(2, seed=1), self._render(2, seed=2))

    def test_serial_matches_parallel(self, default_scene, render_target):
        """Test that single-threaded and parallel launches agree byte for byte."""
        parallel = self._render(4, seed=5, parallel=True)
        serial = self._render(4, seed=5, parallel=False)
        assert np.array_equal(parallel, serial)

    def test_bands_match_single_pass(self, default_scene, render_target):
        """Test that rendering in row bands equals one launch over the image."""
        from pathtracer.core.sampler import clear_render_target, get_pixel_buffer, render_rows

        single = self._render(3, seed=9)

        clear_render_target()
        for y_begin, y_end in [(0, 3), (3, 4), (4, HEIGHT)]:
            render_rows(y_begin, y_end, num_samples=3, max_bounces=8, seed=9)
        assert np.array_equal(get_pixel_buffer(), single)

    def test_refinement_matches_single_pass(self, default_scene, render_target):
        """Test that 2 + 3 samples equal 5 samples in one pass."""
        from pathtracer.core.sampler import (
            clear_render_target,
            get_pixel_buffer,
            get_total_samples,
            render_image,
        )

        single = self._render(5, seed=11)

        clear_render_target()
        render_image(num_samples=2, max_bounces=8, seed=11)
        render_image(num_samples=3, max_bounces=8, seed=11)
        assert get_total_samples() == 5
        assert np.array_equal(get_pixel_buffer(), single)

    def test_render_pixel_matches_buffer(self, default_scene, render_target):
        """Test that render_pixel reproduces the accumulated average."""
        from pathtracer.core.sampler import get_linear_image, render_pixel

        self._render(6, seed=13)
        linear = get_linear_image()
        for x, y in [(0, 0), (7, 4), (WIDTH - 1, HEIGHT - 1)]:
            color = render_pixel(x, y, num_samples=6, max_bounces=8, seed=13)
            assert np.allclose(color, linear[y, x], atol=1e-6)

    def test_render_pixel_outside_image(self, render_target):
        """Test that out-of-range pixels raise ValueError."""
        from pathtracer.core.sampler import render_pixel

        with pytest.raises(ValueError):
            render_pixel(WIDTH, 0, num_samples=1, max_bounces=1)


class TestConvergence:
    """Tests that more samples reduce noise."""

    def test_error_decreases_with_samples(self, default_scene, render_target):
        """Test RMSE against a high sample count reference shrinks as spp grows."""
        from pathtracer.core.sampler import clear_render_target, get_linear_image, render_image
        from pathtracer.output.export import compute_rmse

        def linear(num_samples, seed):
            clear_render_target()
            render_image(num_samples=num_samples, max_bounces=8, seed=seed)
            return get_linear_image()

        reference = linear(512, seed=1000)
        low = compute_rmse(linear(2, seed=1), reference)
        high = compute_rmse(linear(64, seed=1), reference)
        assert high < low
