"""Tests for the command-line entry point.

Taichi is already initialized by the session fixture, so tests that run
main() replace init_taichi with a no-op.
"""

import io
import json
import logging

import numpy as np
import pytest
from PIL import Image

from pathtracer import cli


@pytest.fixture
def no_taichi_init(monkeypatch):
    monkeypatch.setattr(cli, "init_taichi", lambda arch: None)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Remove handlers installed by setup_logging()."""
    yield
    logger = logging.getLogger("pathtracer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test the default options."""
        args = cli.parse_args([])
        assert args.width is None
        assert args.height is None
        assert args.samples == 100
        assert args.max_bounces == 10
        assert args.scene == "default"
        assert args.output == "spheres.png"
        assert not args.serial
        assert args.arch == "cpu"

    def test_log_level_is_case_insensitive(self):
        """Test that --log-level accepts lower case."""
        assert cli.parse_args(["--log-level", "debug"]).log_level == "DEBUG"

    @pytest.mark.parametrize(
        "argv",
        [
            ["--width", "0"],
            ["--samples", "-3"],
            ["--max-bounces", "-1"],
            ["--aspect-ratio", "0"],
            ["--arch", "tpu"],
        ],
    )
    def test_invalid_values_exit(self, argv):
        """Test that invalid values are rejected by the parser."""
        with pytest.raises(SystemExit):
            cli.parse_args(argv)


class TestBuildConfig:
    """Tests for deriving the RenderConfig from arguments."""

    def test_default_size(self):
        """Test the default 16:9 image, 360 rows high."""
        config = cli.build_config(cli.parse_args([]))
        assert (config.width, config.height) == (640, 360)
        assert config.samples_per_pixel == 100
        assert config.max_bounces == 10

    def test_height_and_ratio(self):
        """Test width = ceil(height * ratio)."""
        config = cli.build_config(cli.parse_args(["--height", "100", "--aspect-ratio", "1.5"]))
        assert (config.width, config.height) == (150, 100)

    def test_width_only(self):
        """Test that the height is derived from the width."""
        config = cli.build_config(cli.parse_args(["--width", "400"]))
        assert (config.width, config.height) == (400, 225)

    def test_explicit_dimensions(self):
        """Test that both dimensions override the ratio."""
        config = cli.build_config(cli.parse_args(["--width", "30", "--height", "20"]))
        assert (config.width, config.height) == (30, 20)


class TestMain:
    """End-to-end runs of main()."""

    def test_render_to_file(self, no_taichi_init, tmp_path):
        """Test rendering a tiny image to a PNG file."""
        output = tmp_path / "out.png"
        status = cli.main(
            ["--height", "4", "--samples", "2", "--max-bounces", "3", "--quiet", "--output", str(output)]
        )

        assert status == 0
        with Image.open(output) as img:
            assert img.size == (8, 4)

    def test_render_to_stdout(self, no_taichi_init, capsysbinary):
        """Test that --output - writes a JPEG to stdout."""
        status = cli.main(["--height", "4", "--samples", "1", "--quiet", "--output", "-"])

        assert status == 0
        data = capsysbinary.readouterr().out
        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            assert img.size == (8, 4)

    def test_progress_on_stderr(self, no_taichi_init, tmp_path, capsys):
        """Test that progress is reported on stderr."""
        output = tmp_path / "out.png"
        status = cli.main(["--height", "4", "--samples", "1", "--output", str(output)])

        assert status == 0
        assert "[100%] Rendering" in capsys.readouterr().err

    def test_scene_file(self, no_taichi_init, tmp_path):
        """Test rendering a scene loaded from JSON with a camera entry."""
        scene_path = tmp_path / "scene.json"
        scene_path.write_text(
            json.dumps(
                {
                    "materials": [{"type": "metal", "albedo": [0.9, 0.9, 0.9], "fuzz": 0.0}],
                    "spheres": [{"center": [0, 0, -2], "radius": 1.0, "material_id": 0}],
                    "camera": {"lookfrom": [0, 0, 0], "lookat": [0, 0, -1], "vfov": 60},
                }
            ),
            encoding="utf-8",
        )
        output = tmp_path / "out.png"
        status = cli.main(
            ["--scene", str(scene_path), "--width", "6", "--height", "6", "--samples", "1",
             "--quiet", "--output", str(output)]
        )

        assert status == 0
        with Image.open(output) as img:
            pixels = np.asarray(img.convert("RGB"))
        assert pixels.shape == (6, 6, 3)

    def test_missing_scene_file_fails(self, no_taichi_init, tmp_path):
        """Test that errors are reported with exit status 1."""
        status = cli.main(["--scene", str(tmp_path / "missing.json"), "--quiet"])
        assert status == 1

    def test_invalid_aperture_fails(self, no_taichi_init, tmp_path):
        """Test that invalid camera overrides are reported with exit status 1."""
        status = cli.main(
            ["--aperture", "-1", "--height", "4", "--samples", "1", "--quiet",
             "--output", str(tmp_path / "out.png")]
        )
        assert status == 1
