"""Renderer wrapping the Whitted integrator.

The Renderer class owns the image resolution together with the shading and
tracer configuration, pushes them into the integrator's Taichi state before
every render, and times each pass.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.whitted.core.renderer import Renderer
    >>> from src.whitted.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, camera = create_cornell_box_scene(yres=512)
    >>>
    >>> renderer = Renderer(512, 512)
    >>> renderer.render(camera, depth=3)
    >>> renderer.save_image("cornell.png")
"""

import logging
import time
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.whitted.camera.pinhole import PinholeCamera, setup_camera
from src.whitted.core.integrator import (
    DEFAULT_TRACER,
    TracerConfig,
    clear_render_target,
    get_image_numpy,
    get_output_buffer,
    render_image,
    setup_render_target,
    setup_tracer,
)
from src.whitted.preview.export import image_to_uint8
from src.whitted.preview.export import save_image as _save_image
from src.whitted.shading.phong import DEFAULT_SHADING, ShadingConfig, setup_shading

logger = logging.getLogger(__name__)


class Renderer:
    """Render the current scene at a fixed resolution.

    The renderer delegates to the global integrator buffers (which are Taichi
    fields), so only one image is live at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        shading: The active ShadingConfig.
        tracer: The active TracerConfig.
    """

    def __init__(
        self,
        width: int,
        height: int,
        shading: ShadingConfig = DEFAULT_SHADING,
        tracer: TracerConfig = DEFAULT_TRACER,
    ) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            shading: Shading calibration to use for every render.
            tracer: Ray offsets to use for every render.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self.shading = shading
        self.tracer = tracer
        self._last_render_seconds: float | None = None

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def last_render_seconds(self) -> float | None:
        """Wall-clock duration of the most recent render, or None."""
        return self._last_render_seconds

    def reset(self) -> None:
        """Clear the image to black without changing its size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and clear it.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        camera: PinholeCamera,
        depth: int,
        *,
        dist_bound: float | None = None,
        preview: bool = False,
    ) -> npt.NDArray[np.float32]:
        """Render the loaded scene through a camera.

        Args:
            camera: The camera to render from.
            depth: Trace depth k (>= 0).
            dist_bound: Bounding distance the scene was normalized by, used
                as the attenuation distance unit. None means 1.
            preview: If True, render the flat ka + kd preview instead.

        Returns:
            The image as a (height, width, 3) float array.

        Raises:
            ValueError: If depth is negative, dist_bound is not positive or
                the camera is invalid.
        """
        if depth < 0:
            raise ValueError(f"Trace depth = {depth} must be non-negative.")

        setup_render_target(self._width, self._height)
        setup_camera(camera)
        setup_shading(self.shading, distance_unit=1.0 if dist_bound is None else dist_bound)
        setup_tracer(self.tracer)

        mode = "preview" if preview else f"depth {depth}"
        logger.info(f"Rendering {self._width}x{self._height} ({mode})")

        start = time.perf_counter()
        render_image(depth, preview=preview)
        image = get_image_numpy()
        self._last_render_seconds = time.perf_counter() - start

        logger.info(f"Render finished in {self._last_render_seconds:.3f}s")
        return image

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the last rendered image, shape (height, width, 3), unclamped."""
        return get_image_numpy()

    def get_buffer(self, output: npt.NDArray[np.float32] | None = None) -> npt.NDArray[np.float32]:
        """Get the last rendered image as a row-major (width * height, 3) buffer.

        Args:
            output: Optional caller-owned buffer to fill.
        """
        return get_output_buffer(output)

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the last rendered image encoded to 8 bits per channel."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path, quality: int = 95) -> Path:
        """Save the last rendered image to a file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            quality: JPEG quality, ignored by lossless formats.
        """
        return _save_image(self.get_image_numpy(), filepath, quality=quality)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return f"Renderer(width={self.width}, height={self.height}, shading={self.shading})"
