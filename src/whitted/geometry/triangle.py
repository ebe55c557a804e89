"""Triangle primitive with ray-triangle intersection.

This module provides a Triangle dataclass and the Moller-Trumbore intersection
test used for every ray in the tracer.

A triangle is stored in barycentric-ready form:
- P: The anchor vertex
- u: Edge vector from P to the second vertex
- v: Edge vector from P to the third vertex

The original vertices are recovered as P, P+u, P+v. A point on the triangle is
P + alpha * u + beta * v with alpha >= 0, beta >= 0 and alpha + beta <= 1.

Intersection uses the non-culling variant: a triangle is hit from either side,
and only rays (nearly) parallel to its plane are rejected. Which side was hit
is left to the shading normal supplied with the scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.geometry.triangle import Triangle, intersect_triangle
    >>> # Unit right triangle in the z=0 plane
    >>> tri = Triangle(
    ...     P=ti.math.vec3(0, 0, 0),
    ...     u=ti.math.vec3(1, 0, 0),
    ...     v=ti.math.vec3(0, 1, 0)
    ... )
    >>> # Use intersect_triangle within a Taichi kernel
"""

import numpy as np
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays whose direction is this close to the triangle plane are treated as misses
DET_EPSILON = 1e-6


@ti.dataclass
class Triangle:
    """A triangle defined by an anchor vertex and two edge vectors.

    Attributes:
        P: The anchor vertex (vec3).
        u: Edge vector from P to the second vertex (vec3).
        v: Edge vector from P to the third vertex (vec3).
    """

    P: vec3
    u: vec3
    v: vec3


@ti.dataclass
class TriangleHit:
    """Result of a single ray-triangle test.

    Attributes:
        hit: 1 if the ray's line crosses the triangle, 0 otherwise.
        t: Ray parameter of the crossing (may be negative; callers bound it).
            Only valid if hit == 1.
        u: Barycentric coordinate along the triangle's u edge.
        v: Barycentric coordinate along the triangle's v edge.
    """

    hit: ti.i32
    t: ti.f32
    u: ti.f32
    v: ti.f32


@ti.func
def intersect_triangle(ray_origin: vec3, ray_direction: vec3, tri: Triangle) -> TriangleHit:
    """Test for ray-triangle intersection (Moller-Trumbore, non-culling).

    Solves ray_origin + t * ray_direction = P + alpha * u + beta * v with
    Cramer's rule:
        pvec = d x v,  det = u . pvec
        tvec = o - P,  alpha = (tvec . pvec) / det
        qvec = tvec x u,  beta = (d . qvec) / det,  t = (v . qvec) / det

    No bounds are applied to t here. The ray direction does not need to be
    normalized; t is expressed in units of its length.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        tri: The triangle to test.

    Returns:
        A TriangleHit. When hit == 1, t is the ray parameter and (u, v) are the
        barycentric coordinates of the crossing point.
    """
    did_hit = 0
    hit_t = 0.0
    hit_u = 0.0
    hit_v = 0.0

    pvec = tm.cross(ray_direction, tri.v)
    det = tm.dot(tri.u, pvec)

    # Parallel to the plane (or degenerate triangle): silent miss
    if ti.abs(det) >= DET_EPSILON:
        inv_det = 1.0 / det
        tvec = ray_origin - tri.P
        alpha = tm.dot(tvec, pvec) * inv_det
        if alpha >= 0.0 and alpha <= 1.0:
            qvec = tm.cross(tvec, tri.u)
            beta = tm.dot(ray_direction, qvec) * inv_det
            if beta >= 0.0 and alpha + beta <= 1.0:
                did_hit = 1
                hit_t = tm.dot(tri.v, qvec) * inv_det
                hit_u = alpha
                hit_v = beta

    return TriangleHit(hit=did_hit, t=hit_t, u=hit_u, v=hit_v)


@ti.func
def make_triangle(p: vec3, u: vec3, v: vec3) -> Triangle:
    """Create a triangle from an anchor vertex and two edge vectors."""
    return Triangle(P=p, u=u, v=v)


@ti.func
def triangle_from_vertices(v0: vec3, v1: vec3, v2: vec3) -> Triangle:
    """Create a triangle from its three vertices.

    Args:
        v0: The anchor vertex.
        v1: The second vertex.
        v2: The third vertex.

    Returns:
        Triangle with P = v0, u = v1 - v0, v = v2 - v0.
    """
    return Triangle(P=v0, u=v1 - v0, v=v2 - v0)


@ti.func
def triangle_point(tri: Triangle, alpha: ti.f32, beta: ti.f32) -> vec3:
    """Evaluate P + alpha * u + beta * v."""
    return tri.P + alpha * tri.u + beta * tri.v


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Compute the geometric normal normalize(u x v) of a triangle."""
    return tm.normalize(tm.cross(tri.u, tri.v))


@ti.func
def triangle_area(tri: Triangle) -> ti.f32:
    """Compute the area of a triangle (half the edge cross product length)."""
    return 0.5 * tm.length(tm.cross(tri.u, tri.v))


# =============================================================================
# Python-side helpers (NumPy)
# =============================================================================


def triangle_vertices(
    anchor: tuple[float, float, float],
    edge_u: tuple[float, float, float],
    edge_v: tuple[float, float, float],
) -> tuple[tuple[float, float, float], ...]:
    """Recover the three vertices P, P+u, P+v of a barycentric triangle.

    Args:
        anchor: The anchor vertex P.
        edge_u: The u edge vector.
        edge_v: The v edge vector.

    Returns:
        Tuple of the three vertices as (x, y, z) tuples.
    """
    p = np.asarray(anchor, dtype=np.float64)
    v1 = p + np.asarray(edge_u, dtype=np.float64)
    v2 = p + np.asarray(edge_v, dtype=np.float64)
    return tuple(tuple(float(c) for c in vertex) for vertex in (p, v1, v2))


def geometric_normal(
    v0: tuple[float, float, float],
    v1: tuple[float, float, float],
    v2: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Compute the unit normal of the triangle (v0, v1, v2) on the Python side.

    The normal follows the right-hand rule: (v1 - v0) x (v2 - v0).

    Raises:
        ValueError: If the triangle is degenerate (zero area).
    """
    p = np.asarray(v0, dtype=np.float64)
    n = np.cross(np.asarray(v1, dtype=np.float64) - p, np.asarray(v2, dtype=np.float64) - p)
    norm = float(np.linalg.norm(n))
    if norm < 1e-12:
        raise ValueError(f"Degenerate triangle has no normal: {v0}, {v1}, {v2}")
    return (float(n[0] / norm), float(n[1] / norm), float(n[2] / norm))
