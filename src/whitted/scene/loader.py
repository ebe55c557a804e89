"""Wavefront OBJ/MTL scene loading.

Meshes are read with trimesh, which triangulates polygons and attaches the
MTL materials. Every mesh material becomes one tracer material whose ka, kd
and ks are the Ka, Kd and Ks floats of its MTL entry, unchanged: values above
1 are kept. A single value such as "Ks 0.9" is a grey. Materials that have no
MTL entry (PBR or per-face colors) fall back to trimesh's 8-bit colors.

All vertices (and the optional light positions) are divided by the length of
the bounding box diagonal, dist_bound, so the scene fits in a unit-sized
region and the shading constants apply unchanged. The caller applies the same
factor to the camera via LoadedScene.normalize_point().

Each triangle's shading normal is the mesh normal of its first vertex.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.loader import load_obj_scene
    >>> from src.whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> loaded = load_obj_scene("scenes/cornell.obj", scene)
    >>> loaded.triangle_count
    34
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt
import trimesh
from trimesh.exchange.obj import parse_mtl

from src.whitted.config.render_config import LightSpec
from src.whitted.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Used when a mesh carries no material
DEFAULT_KA = (0.1, 0.1, 0.1)
DEFAULT_KD = (0.6, 0.6, 0.6)
DEFAULT_KS = (0.0, 0.0, 0.0)

# MTL statement -> SimpleMaterial keyword, as parse_mtl stores them
_MTL_KEYWORDS = {"ka": "ambient", "kd": "diffuse", "ks": "specular"}


@dataclass(frozen=True)
class LoadedScene:
    """Summary of a loaded OBJ scene.

    Attributes:
        dist_bound: Bounding box diagonal the scene was divided by.
        triangle_count: Number of triangles uploaded.
        material_count: Number of materials created.
    """

    dist_bound: float
    triangle_count: int
    material_count: int

    def normalize_point(self, point: tuple[float, float, float]) -> tuple[float, float, float]:
        """Express a point in the normalized scene units."""
        return (
            float(point[0]) / self.dist_bound,
            float(point[1]) / self.dist_bound,
            float(point[2]) / self.dist_bound,
        )


def _read_mtl_entries(path: Path) -> dict[str, dict[str, Any]]:
    """Raw MTL entries by material name, for every library the OBJ names."""
    entries: dict[str, dict[str, Any]] = {}
    with path.open(encoding="utf-8", errors="replace") as f:
        for line in f:
            parts = line.split(maxsplit=1)
            if len(parts) != 2 or parts[0] != "mtllib":
                continue
            mtl_path = path.parent / parts[1].strip()
            if not mtl_path.is_file():
                logger.warning(f"Material library {mtl_path} not found")
                continue
            entries.update(parse_mtl(mtl_path.read_bytes()))
    return entries


def _mtl_color(entry: dict[str, Any], key: str, fallback: tuple[float, float, float]) -> tuple[float, float, float]:
    """Read one Ka/Kd/Ks value from a parsed MTL entry as float RGB."""
    # Older trimesh releases only keep the SimpleMaterial keyword names
    value = entry.get(key, entry.get(_MTL_KEYWORDS[key]))
    if value is None:
        return fallback
    arr = np.atleast_1d(np.asarray(value, dtype=np.float64))
    if arr.size == 1:
        arr = np.repeat(arr, 3)
    if arr.size < 3:
        return fallback
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def _color(value: Any, fallback: tuple[float, float, float]) -> tuple[float, float, float]:
    """Convert a trimesh RGB(A) color to [0, 1] floats."""
    if value is None:
        return fallback
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.size < 3:
        return fallback
    # trimesh stores material colors as uint8
    if np.issubdtype(np.asarray(value).dtype, np.integer) or arr[:3].max() > 1.0:
        arr = arr / 255.0
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def _material_colors(
    mesh: trimesh.Trimesh,
    mtl_entries: dict[str, dict[str, Any]],
) -> tuple[tuple[float, float, float], ...] | None:
    """Extract (ka, kd, ks) for a mesh's material, or None if it has none."""
    material = getattr(mesh.visual, "material", None)
    if material is None:
        # Materials without texture coordinates may arrive as flat face colors
        if getattr(mesh.visual, "kind", None) == "face":
            return (DEFAULT_KA, _color(mesh.visual.main_color, DEFAULT_KD), DEFAULT_KS)
        return None

    entry = mtl_entries.get(getattr(material, "name", None))
    if entry is not None:
        return (
            _mtl_color(entry, "ka", DEFAULT_KA),
            _mtl_color(entry, "kd", DEFAULT_KD),
            _mtl_color(entry, "ks", DEFAULT_KS),
        )

    # PBR materials only carry a base color
    if not hasattr(material, "diffuse"):
        base = getattr(material, "baseColorFactor", None)
        kd = _color(base, DEFAULT_KD)
        return (DEFAULT_KA, kd, DEFAULT_KS)

    ka = _color(getattr(material, "ambient", None), DEFAULT_KA)
    kd = _color(getattr(material, "diffuse", None), DEFAULT_KD)
    ks = _color(getattr(material, "specular", None), DEFAULT_KS)
    return (ka, kd, ks)


def _first_vertex_normals(mesh: trimesh.Trimesh, rotation: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Shading normal per face, taken from the face's first vertex."""
    normals = np.asarray(mesh.vertex_normals, dtype=np.float64)[mesh.faces[:, 0]] @ rotation.T
    lengths = np.linalg.norm(normals, axis=1)

    # Vertices without a usable normal fall back to the face normal
    missing = lengths < 1e-12
    if np.any(missing):
        normals[missing] = np.asarray(mesh.face_normals, dtype=np.float64)[missing] @ rotation.T
        lengths = np.linalg.norm(normals, axis=1)

    # Degenerate faces are never hit, any unit normal will do
    degenerate = lengths < 1e-12
    normals[degenerate] = (0.0, 0.0, 1.0)
    lengths[degenerate] = 1.0
    return normals / lengths[:, None]


def _collect_meshes(path: Path) -> list[tuple[str, trimesh.Trimesh, npt.NDArray[np.float64]]]:
    """Load a file and list (name, mesh, 4x4 transform) for every instance."""
    loaded = trimesh.load(str(path), force="scene", process=False)

    meshes = []
    for node_name in loaded.graph.nodes_geometry:
        transform, geometry_name = loaded.graph[node_name]
        mesh = loaded.geometry[geometry_name]
        if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
            logger.warning(f"Skipping non-mesh geometry {geometry_name!r} in {path}")
            continue
        meshes.append((geometry_name, mesh, np.asarray(transform, dtype=np.float64)))
    return meshes


def load_obj_scene(
    path: Path | str,
    scene: SceneManager,
    lights: Iterable[LightSpec] = (),
) -> LoadedScene:
    """Load an OBJ file (and its MTL) into a scene.

    Clears the scene first. Lights are added after the geometry, with their
    positions normalized the same way as the vertices.

    Args:
        path: Path of the .obj file.
        scene: The SceneManager to fill.
        lights: Point lights in the file's units.

    Returns:
        A LoadedScene with the normalization factor and element counts.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file holds no triangles, its bounding box is a
            single point, or there are too many lights.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"OBJ file not found: {path}")

    meshes = _collect_meshes(path)
    mtl_entries = _read_mtl_entries(path)
    if not meshes:
        raise ValueError(f"{path} contains no triangles")

    vertex_blocks = []
    normal_blocks = []
    material_blocks = []
    colors_to_id: dict[tuple[tuple[float, float, float], ...], int] = {}

    scene.clear()

    for name, mesh, transform in meshes:
        vertices = trimesh.transformations.transform_points(
            np.asarray(mesh.vertices, dtype=np.float64), transform
        )
        faces = np.asarray(mesh.faces, dtype=np.int64)

        colors = _material_colors(mesh, mtl_entries)
        if colors is None:
            logger.warning(f"Mesh {name!r} has no material, using a default grey")
            colors = (DEFAULT_KA, DEFAULT_KD, DEFAULT_KS)
        if colors not in colors_to_id:
            colors_to_id[colors] = scene.add_material(*colors)

        vertex_blocks.append(vertices[faces])
        normal_blocks.append(_first_vertex_normals(mesh, transform[:3, :3]))
        material_blocks.append(np.full(len(faces), colors_to_id[colors], dtype=np.int32))

    triangles = np.concatenate(vertex_blocks)
    flat = triangles.reshape(-1, 3)
    dist_bound = float(np.linalg.norm(flat.max(axis=0) - flat.min(axis=0)))
    if dist_bound <= 0.0:
        raise ValueError(f"{path} has a zero-size bounding box")

    scene.add_triangles(
        triangles / dist_bound,
        np.concatenate(material_blocks),
        np.concatenate(normal_blocks),
    )

    for light in lights:
        position = np.asarray(light.position, dtype=np.float64) / dist_bound
        scene.add_light(tuple(position.tolist()), light.color, light.intensity)

    result = LoadedScene(
        dist_bound=dist_bound,
        triangle_count=scene.get_triangle_count(),
        material_count=scene.get_material_count(),
    )
    logger.info(
        f"Loaded {path}: {result.triangle_count} triangles, "
        f"{result.material_count} materials, dist_bound={dist_bound:.4g}"
    )
    return result
