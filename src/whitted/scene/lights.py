"""Point light storage.

A point light has a position, a color normalized to [0, 1] per channel and a
non-negative scalar intensity. The shading model sums the contribution of
every light that a shadow ray can reach.

Lights live in preallocated Taichi fields. The cap of MAX_LIGHTS matches what
the render configuration format allows.
"""

import taichi as ti
import taichi.math as tm

from src.whitted.config.render_config import MAX_LIGHTS

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class PointLight:
    """A point light source.

    Attributes:
        position: World-space position (vec3).
        color: RGB color, each component in [0, 1].
        intensity: Non-negative scalar intensity.
    """

    position: vec3
    color: vec3
    intensity: ti.f32


light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights from the scene."""
    num_lights[None] = 0


def add_light(
    position: tuple[float, float, float],
    color: tuple[float, float, float],
    intensity: float,
) -> int:
    """Add a point light.

    Args:
        position: Light position as (x, y, z).
        color: Light color as (R, G, B), each component in [0, 1].
        intensity: Scalar intensity (non-negative).

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
        ValueError: If the color is outside [0, 1] or the intensity is negative.
    """
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"Light color component {i} = {component} is outside [0, 1].")
    if intensity < 0.0:
        raise ValueError(f"Light intensity = {intensity} is negative.")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

    light_positions[idx] = vec3(position[0], position[1], position[2])
    light_colors[idx] = vec3(color[0], color[1], color[2])
    light_intensities[idx] = intensity
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def get_light(light_idx: ti.i32) -> PointLight:
    """Look up a light by index inside a kernel."""
    return PointLight(
        position=light_positions[light_idx],
        color=light_colors[light_idx],
        intensity=light_intensities[light_idx],
    )
