"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    integrator: The Whitted-style tracer and the image scan driver
    renderer: Renderer class wrapping the driver with configuration and timing

The integrator follows every primary ray to its nearest triangle, shades it
against the point lights with hard shadows, and follows the mirror reflection
with a damped weight until the trace depth is exhausted.

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    length,
    make_ray,
    normalize,
    ray_at,
    reflect,
    reflection_ray,
    shadow_ray,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.whitted.core.integrator or src.whitted.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "shadow_ray",
    "reflection_ray",
    "length",
    "normalize",
    "reflect",
]
