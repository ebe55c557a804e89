"""Scene module for scene storage, ray queries and scene construction.

Components:
    intersection: Triangle storage plus nearest-hit and shadow queries
    materials: Ambient/diffuse/specular material table
    lights: Point light storage
    manager: Scene builder that validates and flattens materials, triangles
        and lights
    loader: Wavefront OBJ/MTL loading with bounding-box normalization
    cornell_box: Built-in Cornell box test scene

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for triangle data
    - Contiguous material ID and normal arrays, parallel to the triangles
    - Scene data is written once and only read while tracing

Note: these modules declare Taichi fields, so import them after ti.init().
"""

from .cornell_box import (
    BOX_SIZE,
    CornellBoxParams,
    create_cornell_box_scene,
    get_cornell_box_bounds,
)
from .intersection import (
    MAX_TRIANGLES,
    NO_TRIANGLE,
    SceneHitRecord,
    add_triangle,
    clear_scene,
    get_triangle_count,
    is_occluded,
    nearest_hit,
    upload_triangles,
)
from .lights import MAX_LIGHTS, PointLight, add_light, clear_lights, get_light_count
from .loader import LoadedScene, load_obj_scene
from .manager import LightInfo, MaterialInfo, SceneConfig, SceneManager
from .materials import MAX_MATERIALS, Material, add_material, clear_materials, get_material_count

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_triangle",
    "upload_triangles",
    "clear_scene",
    "get_triangle_count",
    "nearest_hit",
    "is_occluded",
    "MAX_TRIANGLES",
    "NO_TRIANGLE",
    # Materials and lights
    "Material",
    "add_material",
    "clear_materials",
    "get_material_count",
    "MAX_MATERIALS",
    "PointLight",
    "add_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "LightInfo",
    "SceneConfig",
    # Loader module
    "LoadedScene",
    "load_obj_scene",
    # Cornell box module
    "create_cornell_box_scene",
    "get_cornell_box_bounds",
    "CornellBoxParams",
    "BOX_SIZE",
]
