"""Pinhole camera model for primary ray generation.

The camera is described by an eye position, a unit forward vector, a unit
right vector and a focal length measured in half-pixels. The up vector is
derived as up = forward x right.

Pixel (i, j) (row i from the top, column j from the left) maps to the image
plane offsets

    y = -(yres - 1) + 2 * i
    x = -(xres - 1) + 2 * j

and its primary ray direction is normalize(f * forward + x * right + y * up).
The offsets are pixel centers on a grid with spacing 2, so the image spans
[-yres, yres] vertically and a focal length of yres / yview gives a half-height
to focal-length ratio of yview.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.camera.pinhole import PinholeCamera, setup_camera
    >>>
    >>> # Camera at z=3 looking at the origin, 640x480 image
    >>> camera = PinholeCamera.look_at(
    ...     eye=(0.0, 0.0, 3.0),
    ...     target=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     yview=1.0,
    ...     yres=480,
    ... )
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, make_ray

# =============================================================================
# Camera Data Structures
# =============================================================================


def _unit(name: str, v) -> np.ndarray:
    arr = np.asarray(v, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm < 1e-12:
        raise ValueError(f"Camera {name} vector must be non-zero, got {tuple(v)}")
    return arr / norm


@dataclass
class PinholeCamera:
    """Configuration for a pinhole camera.

    Attributes:
        origin: Eye position in world space (x, y, z).
        forward: Unit viewing direction.
        right: Unit vector pointing to the right of the image.
        focal_length: Distance from the eye to the image plane, in the same
            half-pixel units as the pixel offsets.
    """

    origin: tuple[float, float, float]
    forward: tuple[float, float, float]
    right: tuple[float, float, float]
    focal_length: float

    @property
    def up(self) -> tuple[float, float, float]:
        """The derived up vector forward x right."""
        up = np.cross(np.asarray(self.forward, dtype=np.float64), np.asarray(self.right, dtype=np.float64))
        return (float(up[0]), float(up[1]), float(up[2]))

    @classmethod
    def look_at(
        cls,
        eye: tuple[float, float, float],
        target: tuple[float, float, float],
        up: tuple[float, float, float] = (0.0, 1.0, 0.0),
        yview: float = 1.0,
        yres: int = 480,
    ) -> "PinholeCamera":
        """Build a camera from a view point, a look-at point and an up hint.

        Args:
            eye: Camera position.
            target: Point the camera looks at.
            up: Approximate up direction.
            yview: Ratio of the image half-height to the focal length.
            yres: Vertical resolution in pixels.

        Returns:
            A PinholeCamera with forward = normalize(target - eye),
            right = normalize(forward x up) and focal_length = yres / yview.

        Raises:
            ValueError: If eye == target, up is parallel to the view
                direction, or yview/yres is not positive.
        """
        if yview <= 0.0:
            raise ValueError(f"yview = {yview} must be positive.")
        if yres <= 0:
            raise ValueError(f"yres = {yres} must be positive.")

        forward = _unit("forward", np.asarray(target, dtype=np.float64) - np.asarray(eye, dtype=np.float64))
        right = _unit("right", np.cross(forward, _unit("up", up)))

        return cls(
            origin=(float(eye[0]), float(eye[1]), float(eye[2])),
            forward=(float(forward[0]), float(forward[1]), float(forward[2])),
            right=(float(right[0]), float(right[1]), float(right[2])),
            focal_length=float(yres) / yview,
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_focal_length = ti.field(dtype=ti.f32, shape=())
_camera_initialized = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Initialize camera state from configuration.

    Normalizes forward and right, derives up = forward x right and stores
    everything in Taichi fields. Must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If forward or right is zero-length, they are parallel,
            or the focal length is not positive.
    """
    if camera.focal_length <= 0.0:
        raise ValueError(f"Focal length = {camera.focal_length} must be positive.")

    forward = _unit("forward", camera.forward)
    right = _unit("right", camera.right)

    up = np.cross(forward, right)
    if np.linalg.norm(up) < 1e-6:
        raise ValueError("Camera forward and right vectors must not be parallel.")

    _camera_origin[None] = [float(c) for c in camera.origin]
    _camera_forward[None] = forward.tolist()
    _camera_right[None] = right.tolist()
    _camera_up[None] = up.tolist()
    _focal_length[None] = camera.focal_length
    _camera_initialized[None] = 1


def is_camera_initialized() -> bool:
    """Check whether setup_camera() has been called."""
    return bool(_camera_initialized[None])


def reset_camera() -> None:
    """Forget the current camera."""
    _camera_initialized[None] = 0


# =============================================================================
# Ray Generation (Taichi)
# =============================================================================


@ti.func
def get_primary_ray(row: ti.i32, col: ti.i32, xres: ti.i32, yres: ti.i32) -> Ray:
    """Generate the primary ray through the center of pixel (row, col).

    Args:
        row: Pixel row, 0 = top.
        col: Pixel column, 0 = left.
        xres: Image width in pixels.
        yres: Image height in pixels.

    Returns:
        A Ray from the camera origin with a unit direction.
    """
    x = ti.cast(2 * col - (xres - 1), ti.f32)
    y = ti.cast(2 * row - (yres - 1), ti.f32)

    direction = tm.normalize(
        _focal_length[None] * _camera_forward[None] + x * _camera_right[None] + y * _camera_up[None]
    )
    return make_ray(_camera_origin[None], direction)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, forward, right, up and focal_length.
    """
    origin_vec = _camera_origin[None]
    f_vec = _camera_forward[None]
    r_vec = _camera_right[None]
    u_vec = _camera_up[None]

    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "forward": (float(f_vec[0]), float(f_vec[1]), float(f_vec[2])),
        "right": (float(r_vec[0]), float(r_vec[1]), float(r_vec[2])),
        "up": (float(u_vec[0]), float(u_vec[1]), float(u_vec[2])),
        "focal_length": float(_focal_length[None]),
    }
