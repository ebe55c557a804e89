"""Geometry module for the triangle primitive.

This module provides the only primitive the tracer knows about:

Components:
    triangle: Barycentric triangle with Moller-Trumbore intersection

All intersection routines are implemented as Taichi functions (@ti.func).
Scene-level closest-hit and any-hit (shadow) queries are built on top of
intersect_triangle in src.whitted.scene.intersection.
"""

from .triangle import (
    DET_EPSILON,
    Triangle,
    TriangleHit,
    geometric_normal,
    intersect_triangle,
    make_triangle,
    triangle_area,
    triangle_from_vertices,
    triangle_normal,
    triangle_point,
    triangle_vertices,
)

__all__ = [
    "Triangle",
    "TriangleHit",
    "DET_EPSILON",
    "intersect_triangle",
    "make_triangle",
    "triangle_from_vertices",
    "triangle_point",
    "triangle_normal",
    "triangle_area",
    "triangle_vertices",
    "geometric_normal",
]
