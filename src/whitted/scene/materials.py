"""Material table for the Whitted shading model.

Every triangle references one material by index. A material is three
reflectance colors:
- ka: ambient color, added unconditionally at every hit
- kd: diffuse reflectance, scales the summed diffuse light
- ks: specular reflectance, scales the summed specular light and the mirror
  reflection

Colors are conceptually in [0, 1] per channel but are not clamped on input;
only negative components are rejected.

Materials live in preallocated Taichi fields so kernels can look them up by
index.
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Maximum number of materials in the scene
MAX_MATERIALS = 1024


@ti.dataclass
class Material:
    """Ambient/diffuse/specular reflectance of a surface.

    Attributes:
        ka: Ambient color (RGB).
        kd: Diffuse reflectance (RGB).
        ks: Specular reflectance (RGB).
    """

    ka: vec3
    kd: vec3
    ks: vec3


# Storage for material properties
material_ka = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_kd = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_ks = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def _validate_color(name: str, color: tuple[float, float, float]) -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"{name} component {i} = {component} is negative.")


def add_material(
    ka: tuple[float, float, float],
    kd: tuple[float, float, float],
    ks: tuple[float, float, float],
) -> int:
    """Add a material to the material table.

    Args:
        ka: Ambient color as (R, G, B).
        kd: Diffuse reflectance as (R, G, B).
        ks: Specular reflectance as (R, G, B).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any color component is negative.
    """
    _validate_color("ka", ka)
    _validate_color("kd", kd)
    _validate_color("ks", ks)

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_ka[idx] = vec3(ka[0], ka[1], ka[2])
    material_kd[idx] = vec3(kd[0], kd[1], kd[2])
    material_ks[idx] = vec3(ks[0], ks[1], ks[2])
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the table."""
    return int(num_materials[None])


@ti.func
def get_material(material_idx: ti.i32) -> Material:
    """Look up a material by index inside a kernel.

    Args:
        material_idx: The index of the material in the table.

    Returns:
        The Material at that index.
    """
    return Material(
        ka=material_ka[material_idx],
        kd=material_kd[material_idx],
        ks=material_ks[material_idx],
    )
