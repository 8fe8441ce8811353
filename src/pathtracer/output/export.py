"""Image export utilities for rendered images.

Rendered images are already gamma corrected and quantized by the sampler, so
export only encodes the 8-bit array.

Supported formats:
    - PNG (lossless, via Pillow)
    - JPEG (via Pillow, quality 100 by default)
    - anything else Pillow recognizes from the file extension

Example:
    >>> from pathtracer.output.export import save_image, write_jpeg
    >>> save_image(renderer.get_image_uint8(), "output.png")
    >>> import sys
    >>> write_jpeg(renderer.get_image_uint8(), sys.stdout.buffer)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 100


class ImageExportError(RuntimeError):
    """Raised when an image cannot be encoded or written."""


def _to_pil(image: npt.NDArray[np.uint8]) -> PILImage.Image:
    """Wrap an (H, W, 3) uint8 array as a Pillow RGB image."""
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got dtype {image.dtype}")
    return PILImage.fromarray(np.ascontiguousarray(image))


def save_image(
    image: npt.NDArray[np.uint8],
    filepath: str | Path,
    *,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> None:
    """Save an 8-bit RGB image, choosing the format from the file extension.

    Args:
        image: Image array of shape (H, W, 3) with dtype uint8.
        filepath: Output file path (e.g. "output.png" or "output.jpg").
        quality: JPEG quality in [1, 100]. Ignored by lossless formats.

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
        ImageExportError: If the format is unknown or the file cannot be
            written.
    """
    pil_image = _to_pil(image)
    try:
        pil_image.save(filepath, quality=quality)
    except (OSError, ValueError, KeyError) as e:
        raise ImageExportError(f"Could not save image to {filepath}: {e}") from e
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def write_jpeg(
    image: npt.NDArray[np.uint8],
    stream: BinaryIO,
    *,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> None:
    """Encode an 8-bit RGB image as JPEG into a binary stream.

    Args:
        image: Image array of shape (H, W, 3) with dtype uint8.
        stream: Writable binary stream (e.g. sys.stdout.buffer).
        quality: JPEG quality in [1, 100].

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
        ImageExportError: If encoding or writing fails.
    """
    pil_image = _to_pil(image)
    try:
        pil_image.save(stream, format="JPEG", quality=quality)
        stream.flush()
    except (OSError, ValueError) as e:
        raise ImageExportError(f"Could not write JPEG stream: {e}") from e


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
