"""Preview module for rendered output.

Components:
    export: 8-bit encoding and Pillow-based image files

Example:
    >>> from src.whitted.preview import save_buffer
    >>> save_buffer(buffer, 640, 480, "output.jpg")
"""

from src.whitted.preview.export import (
    buffer_to_image,
    compute_rmse,
    image_to_uint8,
    save_buffer,
    save_image,
)

__all__ = [
    "buffer_to_image",
    "image_to_uint8",
    "save_image",
    "save_buffer",
    "compute_rmse",
]
