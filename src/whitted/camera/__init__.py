"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole camera scanning one centered ray per pixel

Camera responsibilities:
    - Hold the eye position and the forward/right/up frame
    - Derive the focal length from the vertical resolution and view factor
    - Map pixel (row, col) to a unit world-space direction

Row 0 is the top of the image and column 0 the left edge, matching the
row-major layout of the output buffer.
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_primary_ray,
    is_camera_initialized,
    reset_camera,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "reset_camera",
    "is_camera_initialized",
    "get_primary_ray",
    "get_camera_info",
]
