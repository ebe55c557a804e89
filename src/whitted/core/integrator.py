"""Whitted-style ray tracing integrator.

This module implements the tracer and the image driver:

    trace(ray, depth):
        depth == 0           -> black
        no hit               -> black
        local  = ka + kd * diffuse + ks * specular   (hard shadows per light)
        weight = damping * (max(n . r, 0) * kd + ks)
        return local + weight * trace(Ray(hit, normalize(r)), depth - 1)

Taichi functions cannot recurse, so trace() unrolls the recursion into a
bounded loop that carries the product of the reflection weights. The loop runs
at most `depth` times, so it always terminates.

The driver issues one primary ray per pixel from a Taichi top-level loop, which
Taichi parallelizes across pixels. Every pixel reads the immutable scene and
writes only its own buffer entry.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.camera.pinhole import PinholeCamera, setup_camera
    >>> from src.whitted.core.integrator import render_image, setup_render_target
    >>> from src.whitted.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, camera = create_cornell_box_scene(yres=256)
    >>> setup_camera(camera)
    >>> setup_render_target(256, 256)
    >>> render_image(depth=3)
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.whitted.camera.pinhole import (
    PinholeCamera,
    get_primary_ray,
    is_camera_initialized,
    setup_camera,
)
from src.whitted.core.ray import reflect, reflection_ray, shadow_ray
from src.whitted.scene.intersection import NO_TRIANGLE, is_occluded, nearest_hit
from src.whitted.scene.lights import get_light, num_lights
from src.whitted.scene.materials import get_material
from src.whitted.shading.phong import (
    is_shading_initialized,
    light_contribution,
    local_color,
    preview_color,
    reflection_weight,
    set_distance_unit,
    setup_shading,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


# =============================================================================
# Tracer Configuration
# =============================================================================


@dataclass(frozen=True)
class TracerConfig:
    """Ray offsets used by the scene queries.

    Attributes:
        hit_epsilon: Closest-hit queries ignore hits with t <= hit_epsilon.
        shadow_epsilon: Shadow rays only count blockers with
            shadow_epsilon < t < 1 - shadow_epsilon.
    """

    hit_epsilon: float = 1e-4
    shadow_epsilon: float = 1e-4

    def __post_init__(self) -> None:
        if self.hit_epsilon <= 0.0:
            raise ValueError(f"hit_epsilon = {self.hit_epsilon} must be positive.")
        if not 0.0 < self.shadow_epsilon < 0.5:
            raise ValueError(f"shadow_epsilon = {self.shadow_epsilon} must be in (0, 0.5).")


DEFAULT_TRACER = TracerConfig()

_hit_epsilon = ti.field(dtype=ti.f32, shape=())
_shadow_epsilon = ti.field(dtype=ti.f32, shape=())
_tracer_initialized = ti.field(dtype=ti.i32, shape=())


def setup_tracer(config: TracerConfig = DEFAULT_TRACER) -> None:
    """Make a tracer configuration the active one for subsequent kernels."""
    _hit_epsilon[None] = config.hit_epsilon
    _shadow_epsilon[None] = config.shadow_epsilon
    _tracer_initialized[None] = 1
    logger.debug(f"Tracer configured: {config}")


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer indexed [row, col], row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def validate_resolution(width: int, height: int) -> None:
    """Check that an image size is renderable.

    Raises:
        ValueError: If either dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target.

    Sets the active image dimensions and clears the buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    validate_resolution(width, height)

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to black."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_initialized() -> None:
    if not is_camera_initialized():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


def _ensure_configured() -> None:
    """Fall back to the default shading and tracer settings if none were set."""
    if not is_shading_initialized():
        setup_shading()
    if _tracer_initialized[None] == 0:
        setup_tracer()


# =============================================================================
# Tracing Core
# =============================================================================


@ti.func
def _direct_light(point: vec3, normal: vec3, reflected: vec3, triangle_id: ti.i32):
    """Sum diffuse and specular light from every unshadowed light."""
    diffuse = vec3(0.0, 0.0, 0.0)
    specular = vec3(0.0, 0.0, 0.0)
    eps = _shadow_epsilon[None]

    for k in range(num_lights[None]):
        light = get_light(k)
        shadow = shadow_ray(point, light.position)
        if is_occluded(shadow.origin, shadow.direction, triangle_id, eps, 1.0 - eps) == 0:
            d, s = light_contribution(
                point, normal, reflected, light.position, light.color, light.intensity
            )
            diffuse += d
            specular += s

    return diffuse, specular


@ti.func
def trace(ray_origin: vec3, ray_direction: vec3, depth: ti.i32) -> vec3:
    """Trace a ray through the scene and return its radiance.

    Equivalent to the recursive Whitted definition with at most `depth`
    levels: the primary hit plus depth - 1 mirror bounces.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        depth: Remaining trace depth. 0 returns black.

    Returns:
        The non-negative, unclamped RGB radiance.
    """
    radiance = vec3(0.0, 0.0, 0.0)

    # Product of reflection weights along the path so far
    throughput = vec3(1.0, 1.0, 1.0)

    origin = ray_origin
    direction = ray_direction
    exclude = NO_TRIANGLE

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = nearest_hit(origin, direction, _hit_epsilon[None], exclude)

            if rec.hit == 0:
                active = 0
            else:
                mat = get_material(rec.material_id)
                normal = rec.normal
                reflected = reflect(direction, normal)

                diffuse, specular = _direct_light(rec.point, normal, reflected, rec.triangle_id)
                radiance += throughput * local_color(mat.ka, mat.kd, mat.ks, diffuse, specular)

                throughput *= reflection_weight(mat.kd, mat.ks, normal, reflected)

                bounce = reflection_ray(rec.point, direction, normal)
                origin = bounce.origin
                direction = bounce.direction
                exclude = rec.triangle_id

    return radiance


@ti.func
def trace_preview(ray_origin: vec3, ray_direction: vec3) -> vec3:
    """Fast preview: flat ka + kd of the first hit, no lights or shadows."""
    color = vec3(0.0, 0.0, 0.0)
    rec = nearest_hit(ray_origin, ray_direction, _hit_epsilon[None], NO_TRIANGLE)
    if rec.hit == 1:
        mat = get_material(rec.material_id)
        color = preview_color(mat.ka, mat.kd)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32, depth: ti.i32, preview: ti.i32):
    """Trace one primary ray per pixel into the color buffer."""
    for row, col in ti.ndrange(height, width):
        ray = get_primary_ray(row, col, width, height)
        color = vec3(0.0, 0.0, 0.0)
        if preview == 1:
            color = trace_preview(ray.origin, ray.direction)
        else:
            color = trace(ray.origin, ray.direction, depth)
        _color_buffer[row, col] = color


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
) -> vec3:
    """Trace one arbitrary ray (used for testing and debugging)."""
    return trace(vec3(ox, oy, oz), vec3(dx, dy, dz), depth)


@ti.kernel
def _render_single_pixel(row: ti.i32, col: ti.i32, width: ti.i32, height: ti.i32, depth: ti.i32) -> vec3:
    """Trace the primary ray of a single pixel."""
    ray = get_primary_ray(row, col, width, height)
    return trace(ray.origin, ray.direction, depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def _validate_depth(depth: int) -> None:
    if depth < 0:
        raise ValueError(f"Trace depth = {depth} must be non-negative.")


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
) -> tuple[float, float, float]:
    """Trace a single ray from Python.

    The direction is normalized before tracing.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z), non-zero.
        depth: Trace depth (>= 0).

    Returns:
        Tuple of (R, G, B) radiance.

    Raises:
        ValueError: If depth is negative or the direction is zero.
    """
    _validate_depth(depth)
    _ensure_configured()
    d = np.asarray(direction, dtype=np.float64)
    norm = float(np.linalg.norm(d))
    if norm < 1e-12:
        raise ValueError("Ray direction must be non-zero.")
    d = d / norm

    color = _trace_single_ray(
        float(origin[0]), float(origin[1]), float(origin[2]),
        float(d[0]), float(d[1]), float(d[2]),
        depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_pixel(row: int, col: int, depth: int) -> tuple[float, float, float]:
    """Trace the primary ray of one pixel of the current render target.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If depth is negative or the pixel is outside the image.
    """
    _check_render_target_initialized()
    _check_camera_initialized()
    _validate_depth(depth)
    _ensure_configured()

    width, height = get_image_dimensions()
    if not (0 <= row < height and 0 <= col < width):
        raise ValueError(f"Pixel ({row}, {col}) is outside the {width}x{height} image")

    color = _render_single_pixel(row, col, width, height, depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(depth: int, preview: bool = False) -> None:
    """Render every pixel of the current render target.

    Args:
        depth: Trace depth k (>= 0). Ignored in preview mode.
        preview: If True, shade only the first hit with ka + kd.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If depth is negative.
    """
    _check_render_target_initialized()
    _check_camera_initialized()
    _validate_depth(depth)
    _ensure_configured()

    width, height = get_image_dimensions()
    _render_kernel(width, height, depth, 1 if preview else 0)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array of shape (height, width, 3).

    Row 0 is the top of the image. Values are unclamped.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()
    return np.ascontiguousarray(full_image[:height, :width, :], dtype=np.float32)


def get_output_buffer(output: npt.NDArray[np.float32] | None = None) -> npt.NDArray[np.float32]:
    """Copy the rendered image into a flat row-major buffer.

    Args:
        output: Optional caller-owned array of shape (width * height, 3).
            When omitted a new array is allocated.

    Returns:
        The buffer, where entry row * width + col is the color of pixel
        (row, col).

    Raises:
        ValueError: If the provided buffer has the wrong shape.
    """
    image = get_image_numpy()
    height, width = image.shape[:2]
    flat = image.reshape(width * height, 3)

    if output is None:
        return flat.copy()
    if output.shape != (width * height, 3):
        raise ValueError(f"Output buffer has shape {output.shape}, expected ({width * height}, 3)")
    output[...] = flat
    return output


def render(
    xres: int,
    yres: int,
    focal_length: float,
    origin: tuple[float, float, float],
    forward: tuple[float, float, float],
    right: tuple[float, float, float],
    depth: int,
    dist_bound: float | None = None,
    output: npt.NDArray[np.float32] | None = None,
    preview: bool = False,
) -> npt.NDArray[np.float32]:
    """Render the current scene from an explicit camera frame.

    Sets up the camera and render target, traces every pixel and copies the
    result into a row-major buffer. Pixel (i, j) ends up at output[i * xres + j].

    Args:
        xres: Image width in pixels.
        yres: Image height in pixels.
        focal_length: Distance to the image plane in half-pixel units.
        origin: Eye position.
        forward: Viewing direction.
        right: Image right direction. Up is forward x right.
        depth: Trace depth k (>= 0). depth == 0 renders black unless preview.
        dist_bound: Bounding distance the scene was normalized by. When
            given, light distances are divided by it before attenuation.
        output: Optional caller-owned (xres * yres, 3) float array.
        preview: If True, render the flat ka + kd preview.

    Returns:
        The (xres * yres, 3) array of unclamped colors.

    Raises:
        ValueError: On invalid resolution, depth, camera or dist_bound.
    """
    validate_resolution(xres, yres)
    _validate_depth(depth)
    if dist_bound is not None and dist_bound <= 0.0:
        raise ValueError(f"dist_bound = {dist_bound} must be positive.")
    if output is not None and output.shape != (xres * yres, 3):
        raise ValueError(f"Output buffer has shape {output.shape}, expected ({xres * yres}, 3)")

    setup_camera(PinholeCamera(origin=origin, forward=forward, right=right, focal_length=focal_length))
    setup_render_target(xres, yres)
    _ensure_configured()
    set_distance_unit(1.0 if dist_bound is None else dist_bound)

    render_image(depth, preview=preview)
    return get_output_buffer(output)
