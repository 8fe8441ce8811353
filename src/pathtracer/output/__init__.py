"""Output module for encoding rendered images.

Components:
    export: PNG/JPEG file export, JPEG streaming and image comparison
"""

from .export import ImageExportError, compute_rmse, save_image, write_jpeg

__all__ = [
    "ImageExportError",
    "save_image",
    "write_jpeg",
    "compute_rmse",
]
