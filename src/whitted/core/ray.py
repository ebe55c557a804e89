"""Rays and the vector helpers the tracer builds them with.

Three kinds of ray are traced:

- primary rays, one per pixel from the camera eye;
- reflection rays, leaving a hit point along the mirror direction;
- shadow rays, from a hit point towards a point light.

Primary and reflection rays carry a unit direction, so their parameter t is a
distance. A shadow ray carries the unnormalized vector to its light: t = 1
lands exactly on the light, and only blockers with t in (0, 1) cast a shadow.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: Unit length for primary and reflection rays; the full
            point-to-light vector for shadow rays.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Return ray.origin + t * ray.direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


@ti.func
def shadow_ray(point: vec3, light_position: vec3) -> Ray:
    """Build the shadow ray from a surface point to a light.

    The direction is not normalized, so ray_at(ray, 1.0) is the light
    position and ray_at(ray, 0.5) is halfway there.
    """
    return Ray(origin=point, direction=light_position - point)


@ti.func
def reflection_ray(point: vec3, incident: vec3, normal: vec3) -> Ray:
    """Build the mirror ray leaving a hit point.

    Args:
        point: The hit point, used as the new origin.
        incident: Direction of the ray that arrived at the point.
        normal: Unit surface normal. Either side gives the same result.

    Returns:
        A ray with unit direction reflect(incident, normal).
    """
    return Ray(origin=point, direction=tm.normalize(reflect(incident, normal)))


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale v to unit length. v must not be the zero vector."""
    return tm.normalize(v)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror a direction about a surface normal.

    Computes r = d - 2 (d . n) n. With a unit normal the result keeps the
    length of d, and flipping n leaves r unchanged, so surfaces reflect the
    same way from either side.

    Args:
        incident: The incoming direction, pointing toward the surface.
        normal: The unit surface normal.

    Returns:
        The reflected direction.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal
