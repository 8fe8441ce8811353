"""Command-line entry point for rendering sphere scenes.

Usage:
    pathtracer [options]

Options:
    --width WIDTH           Image width in pixels (default: from height and ratio)
    --height HEIGHT         Image height in pixels (default: 360)
    --aspect-ratio RATIO    Width / height when only one dimension is given
                            (default: 16/9)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-bounces BOUNCES   Bounce limit per path (default: 10)
    --seed SEED             Seed of the random streams (default: 0)
    --scene SCENE           Preset name (default, glass, single) or a JSON file
    --aperture APERTURE     Override the camera aperture
    --focus-dist DIST       Override the camera focus distance
    --serial                Render on a single thread
    --band-height ROWS      Rows per kernel launch (default: 16)
    --output OUTPUT         Output file path, or - for JPEG on stdout
                            (default: spheres.png)
    --quiet                 Suppress progress output
    --log-level LEVEL       Log level (default: WARNING)
    --arch ARCH             Taichi backend, cpu or gpu (default: cpu)

Example:
    pathtracer --height 225 --samples 50 --scene glass --output glass.png
    pathtracer --samples 20 --output - > spheres.jpg
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

from pathtracer.core.config import RenderConfig
from pathtracer.logging_config import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_HEIGHT = 360
DEFAULT_SAMPLES = 100
DEFAULT_MAX_BOUNCES = 10
DEFAULT_OUTPUT = "spheres.png"
STDOUT_OUTPUT = "-"


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if not number > 0.0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {value}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres by path tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=None,
        help="Image width in pixels (default: height * aspect ratio)",
    )
    parser.add_argument(
        "--height",
        type=_positive_int,
        default=None,
        help=f"Image height in pixels (default: {DEFAULT_HEIGHT})",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=_positive_float,
        default=DEFAULT_ASPECT_RATIO,
        help="Width / height used when only one dimension is given (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=_positive_int,
        default=DEFAULT_SAMPLES,
        help=f"Number of samples per pixel (default: {DEFAULT_SAMPLES})",
    )
    parser.add_argument(
        "--max-bounces",
        type=_non_negative_int,
        default=DEFAULT_MAX_BOUNCES,
        help=f"Bounce limit per path (default: {DEFAULT_MAX_BOUNCES})",
    )
    parser.add_argument(
        "--seed",
        type=_non_negative_int,
        default=0,
        help="Seed of the per-sample random streams (default: 0)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default="default",
        help="Scene preset (default, glass, single) or path to a JSON scene file",
    )
    parser.add_argument(
        "--aperture",
        type=float,
        default=None,
        help="Override the camera aperture (0 for a pinhole)",
    )
    parser.add_argument(
        "--focus-dist",
        type=_positive_float,
        default=None,
        help="Override the camera focus distance",
    )
    parser.add_argument(
        "--serial",
        action="store_true",
        help="Render on a single thread (same image, slower)",
    )
    parser.add_argument(
        "--band-height",
        type=_positive_int,
        default=16,
        help="Rows rendered per kernel launch (default: 16)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output file path, or - to write JPEG to stdout (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu"],
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RenderConfig:
    """Build the render configuration from parsed arguments.

    With both dimensions given the aspect ratio follows from them; with only
    the width given the height is derived from --aspect-ratio.
    """
    if args.width is None:
        height = args.height if args.height is not None else DEFAULT_HEIGHT
        return RenderConfig.with_ratio(
            args.aspect_ratio,
            height,
            samples_per_pixel=args.samples,
            max_bounces=args.max_bounces,
        )

    height = args.height
    if height is None:
        height = max(1, int(args.width / args.aspect_ratio))
    return RenderConfig(
        width=args.width,
        height=height,
        samples_per_pixel=args.samples,
        max_bounces=args.max_bounces,
    )


def init_taichi(arch: str) -> None:
    """Initialize Taichi, falling back to the CPU when no GPU is available."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            logger.info("Using GPU backend")
            return
        except Exception as e:
            logger.warning("GPU backend unavailable (%s), using CPU", e)
    ti.init(arch=ti.cpu)
    logger.info("Using CPU backend")


def render_scene(args: argparse.Namespace, config: RenderConfig) -> None:
    """Build the selected scene, render it and write the image.

    Taichi must be initialized first.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.renderer import Renderer
    from pathtracer.output.export import write_jpeg
    from pathtracer.scene.presets import SCENE_PRESETS, get_scene_preset, load_scene_file

    if args.scene in SCENE_PRESETS:
        scene, camera = get_scene_preset(args.scene)(config.aspect_ratio)
    else:
        scene, camera = load_scene_file(Path(args.scene), config.aspect_ratio)

    if args.aperture is not None:
        camera = dataclasses.replace(camera, aperture=args.aperture)
    if args.focus_dist is not None:
        camera = dataclasses.replace(camera, focus_dist=args.focus_dist)

    setup_camera(camera)
    logger.info("Scene %r: %d spheres", args.scene, scene.get_sphere_count())

    renderer = Renderer(
        config,
        seed=args.seed,
        parallel=not args.serial,
        band_height=args.band_height,
    )

    start_time = time.perf_counter()

    def progress_callback(done: int, total: int) -> None:
        percent = 100 * done // total if total > 0 else 100
        print(f"\r[{percent:3d}%] Rendering", end="", file=sys.stderr, flush=True)

    renderer.render(callback=None if args.quiet else progress_callback)

    if not args.quiet:
        print(file=sys.stderr)  # Newline after progress

    if args.output == STDOUT_OUTPUT:
        write_jpeg(renderer.get_image_uint8(), sys.stdout.buffer)
    else:
        renderer.save_image(args.output)

    logger.info("Total time: %.2fs", time.perf_counter() - start_time)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = build_config(args)
        init_taichi(args.arch)
        render_scene(args, config)
        return 0
    except (OSError, RuntimeError, ValueError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
