"""Scene-level triangle storage and ray queries.

This module stores the flattened triangle list and answers the two ray queries
the tracer needs:

- nearest_hit: the closest triangle along a ray (primary and reflection rays)
- is_occluded: whether anything blocks a shadow ray (any-hit, early out)

Both are brute-force linear scans over every triangle. They are the stable
boundary for a future spatial index: callers only see the query functions.

Triangles are kept in Structure-of-Arrays Taichi fields, parallel by index:
anchor, edge u, edge v, shading normal and material index. Every material index
must name a material already in the material table.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.intersection import add_triangle, clear_scene, vec3
    >>> from src.whitted.scene.materials import add_material
    >>> clear_scene()
    >>> add_material((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.0, 0.0, 0.0))
    >>> add_triangle(vec3(0, 0, 0), vec3(1, 0, 0), vec3(0, 1, 0), vec3(0, 0, 1), material_id=0)
    >>> # Use nearest_hit / is_occluded within a Taichi kernel
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.whitted.geometry.triangle import Triangle, intersect_triangle
from src.whitted.scene.materials import get_material_count

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Upper bound on t for closest-hit queries
T_MAX = 1e10

# Sentinel triangle index meaning "no triangle"
NO_TRIANGLE = -1


@ti.dataclass
class SceneHitRecord:
    """Record of the closest ray-scene intersection.

    Attributes:
        hit: Whether the ray intersected any triangle (1 if hit, 0 if miss).
        triangle_id: Index of the hit triangle, NO_TRIANGLE on a miss.
        t: The ray parameter of the hit. Only valid if hit == 1.
        point: The hit point origin + t * direction. Only valid if hit == 1.
        normal: The triangle's stored shading normal. Only valid if hit == 1.
        material_id: Material index of the hit triangle, -1 on a miss.
    """

    hit: ti.i32
    triangle_id: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


# Maximum number of triangles supported in the scene
MAX_TRIANGLES = 1 << 18

# Triangle storage: Structure of Arrays layout
triangle_anchors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_material_ids = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all triangles from the scene.

    Resets the triangle count to zero. The field data is overwritten when new
    triangles are added.
    """
    num_triangles[None] = 0


def _check_material_ids(material_ids: npt.NDArray[np.int32]) -> None:
    material_ids = np.asarray(material_ids)
    count = get_material_count()
    bad = (material_ids < 0) | (material_ids >= count)
    if np.any(bad):
        raise ValueError(
            f"Material index {int(material_ids[bad][0])} is out of range; {count} materials are defined"
        )


def add_triangle(anchor: vec3, edge_u: vec3, edge_v: vec3, normal: vec3, material_id: int = 0) -> int:
    """Add one triangle to the scene.

    Args:
        anchor: The anchor vertex P.
        edge_u: Edge vector from P to the second vertex.
        edge_v: Edge vector from P to the third vertex.
        normal: The unit shading normal of the triangle.
        material_id: The material index of the triangle.

    Returns:
        The index of the added triangle.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
        ValueError: If material_id is not in the material table.
    """
    idx = num_triangles[None]
    if idx >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    _check_material_ids(np.array([material_id]))
    triangle_anchors[idx] = anchor
    triangle_edge_u[idx] = edge_u
    triangle_edge_v[idx] = edge_v
    triangle_normals[idx] = normal
    triangle_material_ids[idx] = material_id
    num_triangles[None] = idx + 1
    return idx


@ti.kernel
def _upload_triangles_kernel(
    start: ti.i32,
    count: ti.i32,
    anchors: ti.types.ndarray(),
    edges_u: ti.types.ndarray(),
    edges_v: ti.types.ndarray(),
    normals: ti.types.ndarray(),
    material_ids: ti.types.ndarray(),
):
    for k in range(count):
        idx = start + k
        triangle_anchors[idx] = vec3(anchors[k, 0], anchors[k, 1], anchors[k, 2])
        triangle_edge_u[idx] = vec3(edges_u[k, 0], edges_u[k, 1], edges_u[k, 2])
        triangle_edge_v[idx] = vec3(edges_v[k, 0], edges_v[k, 1], edges_v[k, 2])
        triangle_normals[idx] = vec3(normals[k, 0], normals[k, 1], normals[k, 2])
        triangle_material_ids[idx] = material_ids[k]


def upload_triangles(
    anchors: npt.NDArray[np.float32],
    edges_u: npt.NDArray[np.float32],
    edges_v: npt.NDArray[np.float32],
    normals: npt.NDArray[np.float32],
    material_ids: npt.NDArray[np.int32],
) -> range:
    """Append many triangles at once from NumPy arrays.

    Args:
        anchors: (N, 3) anchor vertices.
        edges_u: (N, 3) u edge vectors.
        edges_v: (N, 3) v edge vectors.
        normals: (N, 3) unit shading normals.
        material_ids: (N,) material indices.

    Returns:
        The range of triangle indices that were assigned.

    Raises:
        ValueError: If the array shapes disagree or a material index is not
            in the material table.
        RuntimeError: If the maximum number of triangles would be exceeded.
    """
    count = len(anchors)
    for name, array in (("edges_u", edges_u), ("edges_v", edges_v), ("normals", normals)):
        if np.shape(array) != (count, 3):
            raise ValueError(f"{name} has shape {np.shape(array)}, expected ({count}, 3)")
    if np.shape(anchors) != (count, 3):
        raise ValueError(f"anchors has shape {np.shape(anchors)}, expected ({count}, 3)")
    if np.shape(material_ids) != (count,):
        raise ValueError(f"material_ids has shape {np.shape(material_ids)}, expected ({count},)")

    start = int(num_triangles[None])
    if start + count > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    if count == 0:
        return range(start, start)
    _check_material_ids(material_ids)

    _upload_triangles_kernel(
        start,
        count,
        np.ascontiguousarray(anchors, dtype=np.float32),
        np.ascontiguousarray(edges_u, dtype=np.float32),
        np.ascontiguousarray(edges_v, dtype=np.float32),
        np.ascontiguousarray(normals, dtype=np.float32),
        np.ascontiguousarray(material_ids, dtype=np.int32),
    )
    num_triangles[None] = start + count
    return range(start, start + count)


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


@ti.func
def get_triangle(triangle_id: ti.i32) -> Triangle:
    """Load a stored triangle by index inside a kernel."""
    return Triangle(
        P=triangle_anchors[triangle_id],
        u=triangle_edge_u[triangle_id],
        v=triangle_edge_v[triangle_id],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        triangle_id=NO_TRIANGLE,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def nearest_hit(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    exclude: ti.i32,
) -> SceneHitRecord:
    """Find the closest triangle along a ray.

    Scans every triangle and keeps the smallest t with t > t_min. The
    triangle with index `exclude` is skipped, which lets a reflection ray
    ignore the surface it leaves; pass NO_TRIANGLE to test everything.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Hits at or below this ray parameter are ignored.
        exclude: Triangle index to skip, or NO_TRIANGLE.

    Returns:
        A SceneHitRecord for the closest hit, or a miss record.
    """
    closest_t = T_MAX
    closest_id = NO_TRIANGLE

    for i in range(num_triangles[None]):
        if i != exclude:
            rec = intersect_triangle(ray_origin, ray_direction, get_triangle(i))
            if rec.hit == 1 and rec.t > t_min and rec.t < closest_t:
                closest_t = rec.t
                closest_id = i

    result = _make_miss_record()
    if closest_id != NO_TRIANGLE:
        result = SceneHitRecord(
            hit=1,
            triangle_id=closest_id,
            t=closest_t,
            point=ray_origin + closest_t * ray_direction,
            normal=triangle_normals[closest_id],
            material_id=triangle_material_ids[closest_id],
        )
    return result


@ti.func
def is_occluded(
    point: vec3,
    to_light: vec3,
    origin_triangle: ti.i32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test whether a shadow ray is blocked (any-hit query).

    The shadow ray starts at `point` with the unnormalized direction
    `to_light = light_position - point`, so t = 1 is the light itself. A
    triangle blocks the light when it is crossed strictly inside
    (t_min, t_max). The triangle the point lies on never shadows itself.

    Args:
        point: The shaded surface point.
        to_light: Vector from the point to the light.
        origin_triangle: Index of the triangle the point lies on.
        t_min: Lower ray parameter bound (> 0).
        t_max: Upper ray parameter bound (< 1).

    Returns:
        1 if any other triangle blocks the light, 0 otherwise.
    """
    blocked = 0

    for i in range(num_triangles[None]):
        if blocked == 0 and i != origin_triangle:
            rec = intersect_triangle(point, to_light, get_triangle(i))
            if rec.hit == 1 and rec.t > t_min and rec.t < t_max:
                blocked = 1

    return blocked
