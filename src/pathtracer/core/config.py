"""Render configuration.

A RenderConfig fixes the output image size, the number of samples averaged per
pixel and the bounce limit of each path. It is immutable for the duration of a
render and validated on construction.

Example:
    >>> config = RenderConfig.with_ratio(16.0 / 9.0, 360, samples_per_pixel=50)
    >>> config.width, config.height
    (640, 360)
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Any

# 10 samples per pixel and 5 bounces
DEFAULT_SAMPLES_PER_PIXEL = 10
DEFAULT_MAX_BOUNCES = 5


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for a single render.

    Attributes:
        width: Image width in pixels (positive).
        height: Image height in pixels (positive).
        samples_per_pixel: Number of jittered paths averaged per pixel (positive).
        max_bounces: Maximum number of surface interactions per path
            (non-negative). A path that exhausts this budget contributes black.
    """

    width: int
    height: int
    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_bounces: int = DEFAULT_MAX_BOUNCES

    def __post_init__(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If any field is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {self.max_bounces}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def pixel_count(self) -> int:
        """Total number of pixels in the image."""
        return self.width * self.height

    @classmethod
    def with_ratio(
        cls,
        aspect_ratio: float,
        height: int,
        samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL,
        max_bounces: int = DEFAULT_MAX_BOUNCES,
    ) -> RenderConfig:
        """Build a configuration from an aspect ratio and an image height.

        The width is rounded up: width = ceil(height * aspect_ratio).

        Args:
            aspect_ratio: Desired width / height.
            height: Image height in pixels.
            samples_per_pixel: Samples per pixel.
            max_bounces: Bounce limit per path.

        Returns:
            A validated RenderConfig.

        Raises:
            ValueError: If the aspect ratio is not positive or a field is invalid.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        width = math.ceil(height * aspect_ratio)
        return cls(
            width=width,
            height=height,
            samples_per_pixel=samples_per_pixel,
            max_bounces=max_bounces,
        )

    def with_dimensions(self, width: int, height: int) -> RenderConfig:
        """Return a copy with a different image size."""
        return dataclasses.replace(self, width=width, height=height)

    def with_samples(self, samples_per_pixel: int) -> RenderConfig:
        """Return a copy with a different sample count."""
        return dataclasses.replace(self, samples_per_pixel=samples_per_pixel)

    def with_max_bounces(self, max_bounces: int) -> RenderConfig:
        """Return a copy with a different bounce limit."""
        return dataclasses.replace(self, max_bounces=max_bounces)

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a dictionary."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderConfig:
        """Load a configuration from a dictionary.

        Args:
            data: Dictionary with 'width' and 'height' and optionally
                'samples_per_pixel' and 'max_bounces'.

        Returns:
            A validated RenderConfig.

        Raises:
            ValueError: If required keys are missing or values are invalid.
        """
        try:
            return cls(
                width=int(data["width"]),
                height=int(data["height"]),
                samples_per_pixel=int(
                    data.get("samples_per_pixel", DEFAULT_SAMPLES_PER_PIXEL)
                ),
                max_bounces=int(data.get("max_bounces", DEFAULT_MAX_BOUNCES)),
            )
        except KeyError as e:
            raise ValueError(f"Missing render config key: {e.args[0]}") from e
