"""Scene builder coordinating triangles, materials and lights.

This module provides a high-level scene API on top of the flat Taichi
storage in intersection.py, materials.py and lights.py. It validates every
element on entry so the tracer can assume a consistent scene:

- every triangle has exactly one unit normal and one material index
- every material index refers to an existing material
- material colors are never negative, light colors lie in [0, 1]
- there are at most MAX_LIGHTS lights

The SceneManager also keeps a Python-side copy of what it uploaded, which
backs the bounding-box queries, validation and serialization.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_material(ka=(0.1, 0.0, 0.0), kd=(0.7, 0.1, 0.1), ks=(0.2, 0.2, 0.2))
    >>> scene.add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0), material_id=red)
    >>> scene.add_light(position=(0, 0, 2), color=(1, 1, 1), intensity=1.0)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi.math as tm

from src.whitted.geometry.triangle import geometric_normal
from src.whitted.scene.intersection import (
    MAX_TRIANGLES,
    add_triangle,
    clear_scene,
    get_triangle_count,
    upload_triangles,
)
from src.whitted.scene.lights import MAX_LIGHTS, add_light, clear_lights, get_light_count
from src.whitted.scene.materials import (
    MAX_MATERIALS,
    add_material,
    clear_materials,
    get_material_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Color = tuple[float, float, float]
Point = tuple[float, float, float]


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: Index into the material table.
        ka: Ambient color.
        kd: Diffuse reflectance.
        ks: Specular reflectance.
    """

    material_id: int
    ka: Color
    kd: Color
    ks: Color


@dataclass
class LightInfo:
    """Information about a point light in the scene.

    Attributes:
        light_index: Index into the light storage.
        position: Light position.
        color: RGB color in [0, 1].
        intensity: Non-negative scalar intensity.
    """

    light_index: int
    position: Point
    color: Color
    intensity: float


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        triangles: List of triangle configurations.
        lights: List of light configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    triangles: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(name: str, value: Any) -> tuple[float, float, float]:
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got shape {arr.shape}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def _unit_normals(normals: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    lengths = np.linalg.norm(normals, axis=1)
    if np.any(lengths < 1e-12):
        bad = int(np.argmax(lengths < 1e-12))
        raise ValueError(f"Triangle normal {bad} has zero length")
    return normals / lengths[:, None]


def _face_normals(vertices: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    n = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
    lengths = np.linalg.norm(n, axis=1)
    if np.any(lengths < 1e-12):
        bad = int(np.argmax(lengths < 1e-12))
        raise ValueError(f"Triangle {bad} is degenerate and has no normal")
    return n / lengths[:, None]


class SceneManager:
    """Scene builder that flattens geometry and lights into tracer storage.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        lights: List of LightInfo for all lights in the scene.

    Example:
        >>> scene = SceneManager()
        >>> white = scene.add_material((0.1, 0.1, 0.1), (0.7, 0.7, 0.7), (0.0, 0.0, 0.0))
        >>> mirror = scene.add_material((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.9, 0.9, 0.9))
        >>> scene.add_quad((-1, 0, -1), (2, 0, 0), (0, 0, 2), material_id=white)
        >>> scene.add_light((0, 1.5, 0), (1, 1, 1), 1.0)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.lights: list[LightInfo] = []
        self._vertex_blocks: list[npt.NDArray[np.float64]] = []
        self._normal_blocks: list[npt.NDArray[np.float64]] = []
        self._material_blocks: list[npt.NDArray[np.int32]] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.lights.clear()
        self._vertex_blocks.clear()
        self._normal_blocks.clear()
        self._material_blocks.clear()

    def clear(self) -> None:
        """Clear the entire scene (triangles, materials and lights).

        Resets all Taichi fields and internal tracking structures.
        """
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, ka: Color, kd: Color, ks: Color) -> int:
        """Add a material to the scene.

        Args:
            ka: Ambient color as (R, G, B).
            kd: Diffuse reflectance as (R, G, B).
            ks: Specular reflectance as (R, G, B).

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any component is negative.
        """
        ka = _as_triple("ka", ka)
        kd = _as_triple("kd", kd)
        ks = _as_triple("ks", ks)
        material_id = add_material(ka, kd, ks)
        self.materials.append(MaterialInfo(material_id=material_id, ka=ka, kd=kd, ks=ks))
        return material_id

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get the registered material with the given ID, or None."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Triangle Management
    # =========================================================================

    def add_triangle(
        self,
        v0: Point,
        v1: Point,
        v2: Point,
        material_id: int,
        normal: Point | None = None,
    ) -> int:
        """Add a triangle to the scene.

        Args:
            v0: First vertex, used as the anchor P.
            v1: Second vertex (u = v1 - v0).
            v2: Third vertex (v = v2 - v0).
            material_id: The material ID to assign.
            normal: Shading normal. Defaults to the geometric normal
                (v1 - v0) x (v2 - v0). Normalized on entry.

        Returns:
            The index of the added triangle.

        Raises:
            RuntimeError: If the maximum number of triangles is exceeded.
            ValueError: If material_id is invalid, the normal is zero or the
                triangle is degenerate and no normal was given.
        """
        self._check_material_id(material_id)

        p0 = np.asarray(_as_triple("v0", v0))
        p1 = np.asarray(_as_triple("v1", v1))
        p2 = np.asarray(_as_triple("v2", v2))
        if normal is None:
            n = np.asarray(geometric_normal(v0, v1, v2))
        else:
            n = _unit_normals(np.asarray([_as_triple("normal", normal)]))[0]

        u = p1 - p0
        v = p2 - p0
        index = add_triangle(
            vec3(*p0.tolist()),
            vec3(*u.tolist()),
            vec3(*v.tolist()),
            vec3(*n.tolist()),
            material_id,
        )

        self._vertex_blocks.append(np.stack([p0, p1, p2])[None])
        self._normal_blocks.append(n[None])
        self._material_blocks.append(np.array([material_id], dtype=np.int32))
        return index

    def add_triangles(
        self,
        vertices: npt.ArrayLike,
        material_ids: npt.ArrayLike | int,
        normals: npt.ArrayLike | None = None,
    ) -> range:
        """Add many triangles at once.

        Args:
            vertices: (N, 3, 3) array of triangle vertices.
            material_ids: (N,) material IDs, or one ID for every triangle.
            normals: Optional (N, 3) shading normals. Defaults to the
                geometric normals. Normalized on entry.

        Returns:
            The range of assigned triangle indices.

        Raises:
            RuntimeError: If the maximum number of triangles is exceeded.
            ValueError: On malformed arrays, invalid material IDs, zero
                normals or degenerate triangles without normals.
        """
        verts = np.asarray(vertices, dtype=np.float64)
        if verts.ndim != 3 or verts.shape[1:] != (3, 3):
            raise ValueError(f"vertices must have shape (N, 3, 3), got {verts.shape}")
        count = verts.shape[0]

        mats = np.broadcast_to(np.asarray(material_ids, dtype=np.int32), (count,)).copy()
        if count and (mats.min() < 0 or mats.max() >= get_material_count()):
            bad = mats[(mats < 0) | (mats >= get_material_count())][0]
            raise ValueError(f"Invalid material_id: {int(bad)}")

        if normals is None:
            norms = _face_normals(verts) if count else np.zeros((0, 3))
        else:
            norms = np.asarray(normals, dtype=np.float64)
            if norms.shape != (count, 3):
                raise ValueError(f"normals must have shape ({count}, 3), got {norms.shape}")
            norms = _unit_normals(norms) if count else norms

        indices = upload_triangles(
            verts[:, 0],
            verts[:, 1] - verts[:, 0],
            verts[:, 2] - verts[:, 0],
            norms,
            mats,
        )

        if count:
            self._vertex_blocks.append(verts)
            self._normal_blocks.append(norms)
            self._material_blocks.append(mats)
        logger.debug(f"Added {count} triangles (indices {indices.start}..{indices.stop - 1})")
        return indices

    def add_quad(
        self,
        corner: Point,
        edge_u: Point,
        edge_v: Point,
        material_id: int,
    ) -> tuple[int, int]:
        """Add a parallelogram as two triangles.

        The quad spans corner, corner+edge_u, corner+edge_u+edge_v and
        corner+edge_v. Both halves share the normal edge_u x edge_v.

        Returns:
            The indices of the two triangles.
        """
        q = np.asarray(_as_triple("corner", corner))
        u = np.asarray(_as_triple("edge_u", edge_u))
        v = np.asarray(_as_triple("edge_v", edge_v))
        first = self.add_triangle(q, q + u, q + u + v, material_id)
        second = self.add_triangle(q, q + u + v, q + v, material_id)
        return first, second

    # =========================================================================
    # Light Management
    # =========================================================================

    def add_light(self, position: Point, color: Color, intensity: float) -> int:
        """Add a point light.

        Args:
            position: Light position as (x, y, z).
            color: Light color as (R, G, B), each component in [0, 1].
            intensity: Scalar intensity (non-negative).

        Returns:
            The index of the added light.

        Raises:
            ValueError: If the scene already has MAX_LIGHTS lights, the color
                is outside [0, 1] or the intensity is negative.
        """
        if get_light_count() >= MAX_LIGHTS:
            raise ValueError(f"A scene supports at most {MAX_LIGHTS} lights")
        position = _as_triple("position", position)
        color = _as_triple("color", color)
        light_index = add_light(position, color, float(intensity))
        self.lights.append(
            LightInfo(
                light_index=light_index,
                position=position,
                color=color,
                intensity=float(intensity),
            )
        )
        return light_index

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_triangle_count(self) -> int:
        """Get the number of triangles in the scene."""
        return get_triangle_count()

    def get_material_count(self) -> int:
        """Get the number of materials in the scene."""
        return get_material_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    def get_vertices(self) -> npt.NDArray[np.float64]:
        """Get all triangle vertices as an (N, 3, 3) array."""
        if not self._vertex_blocks:
            return np.zeros((0, 3, 3))
        return np.concatenate(self._vertex_blocks)

    def get_normals(self) -> npt.NDArray[np.float64]:
        """Get all triangle shading normals as an (N, 3) array."""
        if not self._normal_blocks:
            return np.zeros((0, 3))
        return np.concatenate(self._normal_blocks)

    def get_material_ids(self) -> npt.NDArray[np.int32]:
        """Get the material ID of every triangle as an (N,) array."""
        if not self._material_blocks:
            return np.zeros(0, dtype=np.int32)
        return np.concatenate(self._material_blocks)

    def bounds(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Axis-aligned bounds (min, max) of all vertices.

        Raises:
            ValueError: If the scene has no triangles.
        """
        vertices = self.get_vertices()
        if len(vertices) == 0:
            raise ValueError("An empty scene has no bounds")
        flat = vertices.reshape(-1, 3)
        return flat.min(axis=0), flat.max(axis=0)

    def dist_bound(self) -> float:
        """Length of the bounding box diagonal, or 0 for an empty scene."""
        if self.get_triangle_count() == 0:
            return 0.0
        lo, hi = self.bounds()
        return float(np.linalg.norm(hi - lo))

    def validate(self) -> None:
        """Check the scene invariants.

        Raises:
            ValueError: If the triangle, normal and material arrays disagree,
                a material index is invalid, or a color is out of range.
        """
        count = self.get_triangle_count()
        normals = self.get_normals()
        material_ids = self.get_material_ids()
        if not (len(self.get_vertices()) == len(normals) == len(material_ids) == count):
            raise ValueError(
                f"Inconsistent scene: {count} triangles, {len(normals)} normals, "
                f"{len(material_ids)} material indices"
            )
        if count and (material_ids.min() < 0 or material_ids.max() >= self.get_material_count()):
            raise ValueError("Scene references a material that does not exist")
        if count and not np.allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-5):
            raise ValueError("Scene contains a normal that is not unit length")
        for mat in self.materials:
            if min(*mat.ka, *mat.kd, *mat.ks) < 0.0:
                raise ValueError(f"Material {mat.material_id} has a negative component")
        if len(self.lights) > MAX_LIGHTS:
            raise ValueError(f"Scene has {len(self.lights)} lights, at most {MAX_LIGHTS} allowed")
        for light in self.lights:
            if min(light.color) < 0.0 or max(light.color) > 1.0 or light.intensity < 0.0:
                raise ValueError(f"Light {light.light_index} has an out-of-range color or intensity")

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing all materials, triangles and lights.
        """
        config = SceneConfig()

        for mat in self.materials:
            config.materials.append({"ka": list(mat.ka), "kd": list(mat.kd), "ks": list(mat.ks)})

        for verts, normal, material_id in zip(
            self.get_vertices(), self.get_normals(), self.get_material_ids()
        ):
            config.triangles.append(
                {
                    "vertices": verts.tolist(),
                    "normal": normal.tolist(),
                    "material_id": int(material_id),
                }
            )

        for light in self.lights:
            config.lights.append(
                {
                    "position": list(light.position),
                    "color": list(light.color),
                    "intensity": light.intensity,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first, triangles reference them
        for mat_config in config.materials:
            self.add_material(
                mat_config.get("ka", [0.0, 0.0, 0.0]),
                mat_config.get("kd", [0.0, 0.0, 0.0]),
                mat_config.get("ks", [0.0, 0.0, 0.0]),
            )

        if config.triangles:
            self.add_triangles(
                [tri["vertices"] for tri in config.triangles],
                [tri.get("material_id", 0) for tri in config.triangles],
                [tri["normal"] for tri in config.triangles]
                if all("normal" in tri for tri in config.triangles)
                else None,
            )

        for light_config in config.lights:
            self.add_light(
                light_config.get("position", [0.0, 0.0, 0.0]),
                light_config.get("color", [1.0, 1.0, 1.0]),
                light_config.get("intensity", 1.0),
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "triangles": config.triangles,
            "lights": config.lights,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials', 'triangles', 'lights' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            triangles=data.get("triangles", []),
            lights=data.get("lights", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_triangles() -> int:
        """Get the maximum number of triangles supported."""
        return MAX_TRIANGLES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS
