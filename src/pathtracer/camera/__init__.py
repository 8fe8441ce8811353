"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with optional aperture (depth of field)

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image

The camera state lives in Taichi fields written by setup_camera() and read
by get_ray() inside kernels.
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
