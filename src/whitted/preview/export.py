"""Image export utilities for rendered images.

Rendered colors are linear and unclamped. Encoding clamps every channel into
[0, 1 - 1e-6], scales by 256 and truncates, so 1.0 maps to 255 and the 256
output levels are equally wide.

Supported formats:
    - Anything Pillow can write from RGB data, chosen by file extension
      (.png, .jpg/.jpeg, .bmp, .tga, ...)

Example:
    >>> from src.whitted.preview.export import save_image
    >>> from src.whitted.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(512, 512)
    >>> renderer.render(camera, depth=3)
    >>> save_image(renderer.get_image_numpy(), "output.jpg")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Largest encodable value is just below 1 so that 256 * value < 256
ENCODE_EPSILON = 1e-6

# Formats that take a quality setting
_LOSSY_SUFFIXES = {".jpg", ".jpeg"}


def buffer_to_image(
    buffer: npt.NDArray[np.floating[npt.NBitBase]], width: int, height: int
) -> npt.NDArray[np.float32]:
    """Reshape a row-major (width * height, 3) buffer into (height, width, 3).

    Raises:
        ValueError: If the buffer does not hold width * height colors.
    """
    if np.shape(buffer) != (width * height, 3):
        raise ValueError(
            f"Buffer has shape {np.shape(buffer)}, expected ({width * height}, 3)"
        )
    return np.asarray(buffer, dtype=np.float32).reshape(height, width, 3)


def image_to_uint8(image: npt.NDArray[np.floating[npt.NBitBase]]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit.

    Args:
        image: Float array of any shape whose last axis is RGB.

    Returns:
        Array of the same shape with dtype uint8, floor(256 * clamp(c)).
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0 - ENCODE_EPSILON)
    return (clamped * 256.0).astype(np.uint8)


def save_image(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    filepath: str | Path,
    *,
    quality: int = 95,
) -> Path:
    """Encode and save a rendered image.

    Args:
        image: Linear image of shape (H, W, 3).
        filepath: Output path. The format follows the extension.
        quality: JPEG quality, ignored by lossless formats.

    Returns:
        The path written.

    Raises:
        ValueError: If the image is not (H, W, 3) or the extension is missing.
    """
    path = Path(filepath)
    if np.ndim(image) != 3 or np.shape(image)[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {np.shape(image)}")
    if not path.suffix:
        raise ValueError(f"Cannot infer an image format from {str(path)!r}")

    pil_image = PILImage.fromarray(image_to_uint8(image))
    if path.suffix.lower() in _LOSSY_SUFFIXES:
        pil_image.save(path, quality=quality)
    else:
        pil_image.save(path)

    logger.info(f"Saved {pil_image.width}x{pil_image.height} image to {path}")
    return path


def save_buffer(
    buffer: npt.NDArray[np.floating[npt.NBitBase]],
    width: int,
    height: int,
    filepath: str | Path,
    *,
    quality: int = 95,
) -> Path:
    """Save a row-major (width * height, 3) render buffer as an image."""
    return save_image(buffer_to_image(buffer, width, height), filepath, quality=quality)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
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
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
