#!/usr/bin/env python3
"""Render the glass scene at increasing sample counts.

This script renders the same scene progressively, saving a snapshot after
each refinement so the noise reduction can be compared side by side. Every
snapshot equals a single-pass render with the same total sample count.

Usage:
    python examples/render_spheres.py [--height HEIGHT] [--passes PASSES]

Example:
    python examples/render_spheres.py --height 180 --passes 4
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Render the glass scene progressively.")
    parser.add_argument("--height", type=int, default=180, help="Image height (default: 180)")
    parser.add_argument("--passes", type=int, default=4, help="Number of passes (default: 4)")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=".",
        help="Directory for the snapshots (default: current directory)",
    )
    return parser.parse_args()


def render_snapshots(height: int, passes: int, output_dir: Path) -> list[Path]:
    """Render the glass scene, doubling the sample count on every pass.

    Returns:
        Paths of the saved snapshots.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.config import RenderConfig
    from pathtracer.core.renderer import Renderer
    from pathtracer.scene.presets import create_glass_scene

    config = RenderConfig.with_ratio(16.0 / 9.0, height, samples_per_pixel=4, max_bounces=10)
    _, camera = create_glass_scene(config.aspect_ratio)
    setup_camera(camera)

    renderer = Renderer(config, seed=7)
    renderer.render()

    output_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    for _ in range(passes):
        path = output_dir / f"glass_{renderer.sample_count:04d}spp.png"
        renderer.save_image(path)
        print(f"Saved {path} ({renderer.sample_count} samples per pixel)")
        saved.append(path)
        renderer.refine(renderer.sample_count)
    return saved


def main() -> int:
    """Main entry point."""
    args = parse_args()
    ti.init(arch=ti.cpu)

    try:
        render_snapshots(args.height, args.passes, Path(args.output_dir))
        return 0
    except (OSError, RuntimeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
