"""Local illumination model for the Whitted tracer.

At a hit point P with unit normal n, incoming direction d and material
(ka, kd, ks), each light that is not shadowed contributes:

    l_vec = light.position - P,  dist = |l_vec|,  l = l_vec / dist
    diffuse_term  = max(l . n, 0)
    specular_term = max(r . l, 0) ** specular_power,  r = reflect(d, n)
    atten = 1 / (A * x^2 + B * x + C),  x = dist / distance_unit

    diffuse  += atten * intensity * color * diffuse_term
    specular += atten * intensity * color * specular_term

and the local color is ka + kd * diffuse + ks * specular.

The constants A, B, C, the specular exponent and the reflection damping are
tuned for a scene normalized to unit scale. They are grouped in an immutable
ShadingConfig; two calibrations exist and exactly one is active at a time.
setup_shading() copies the active configuration into Taichi fields that the
kernels read.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.shading.phong import STEEP_FALLOFF, setup_shading
    >>> setup_shading(STEEP_FALLOFF)
"""

import logging
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class ShadingConfig:
    """Scene-wide shading constants.

    Attributes:
        attenuation_a: Quadratic coefficient A of the attenuation curve.
        attenuation_b: Linear coefficient B of the attenuation curve.
        attenuation_c: Constant coefficient C of the attenuation curve.
        specular_power: Exponent applied to the specular lobe.
        reflect_damping: Energy kept per mirror bounce.
    """

    attenuation_a: float = 1.0
    attenuation_b: float = 1.0
    attenuation_c: float = 0.4
    specular_power: float = 10.0
    reflect_damping: float = 0.1

    def __post_init__(self) -> None:
        if min(self.attenuation_a, self.attenuation_b, self.attenuation_c) < 0.0:
            raise ValueError("Attenuation coefficients must be non-negative.")
        if self.attenuation_c <= 0.0:
            raise ValueError("Attenuation constant C must be positive.")
        if self.specular_power <= 0.0:
            raise ValueError(f"Specular power = {self.specular_power} must be positive.")
        if self.reflect_damping < 0.0:
            raise ValueError(f"Reflection damping = {self.reflect_damping} is negative.")

    def attenuation(self, distance: float) -> float:
        """Evaluate 1 / (A*d^2 + B*d + C) on the Python side."""
        return 1.0 / (
            self.attenuation_a * distance * distance
            + self.attenuation_b * distance
            + self.attenuation_c
        )


# Gentle falloff with a broad highlight
SOFT_FALLOFF = ShadingConfig(
    attenuation_a=1.0,
    attenuation_b=1.0,
    attenuation_c=0.4,
    specular_power=10.0,
    reflect_damping=0.1,
)

# Faster falloff with a tighter highlight
STEEP_FALLOFF = ShadingConfig(
    attenuation_a=1.0,
    attenuation_b=3.0,
    attenuation_c=0.3,
    specular_power=15.0,
    reflect_damping=0.1,
)

CALIBRATIONS: dict[str, ShadingConfig] = {
    "soft": SOFT_FALLOFF,
    "steep": STEEP_FALLOFF,
}

DEFAULT_SHADING = SOFT_FALLOFF


def get_calibration(name: str) -> ShadingConfig:
    """Look up a named shading calibration.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return CALIBRATIONS[name]
    except KeyError:
        raise ValueError(
            f"Unknown shading calibration: {name!r} (expected one of {sorted(CALIBRATIONS)})"
        ) from None


# =============================================================================
# Taichi Fields for the Active Configuration
# =============================================================================

_atten_a = ti.field(dtype=ti.f32, shape=())
_atten_b = ti.field(dtype=ti.f32, shape=())
_atten_c = ti.field(dtype=ti.f32, shape=())
_specular_power = ti.field(dtype=ti.f32, shape=())
_reflect_damping = ti.field(dtype=ti.f32, shape=())

# Light distances are divided by this before attenuation
_distance_unit = ti.field(dtype=ti.f32, shape=())
_shading_initialized = ti.field(dtype=ti.i32, shape=())


def setup_shading(config: ShadingConfig = DEFAULT_SHADING, distance_unit: float = 1.0) -> None:
    """Make a shading configuration the active one for subsequent kernels.

    Args:
        config: The shading constants to use.
        distance_unit: Length that light distances are expressed in. Use 1.0
            when the scene is already normalized, or the scene's bounding
            distance to rescale raw distances.

    Raises:
        ValueError: If distance_unit is not positive.
    """
    if distance_unit <= 0.0:
        raise ValueError(f"Distance unit = {distance_unit} must be positive.")

    _atten_a[None] = config.attenuation_a
    _atten_b[None] = config.attenuation_b
    _atten_c[None] = config.attenuation_c
    _specular_power[None] = config.specular_power
    _reflect_damping[None] = config.reflect_damping
    _distance_unit[None] = distance_unit
    _shading_initialized[None] = 1
    logger.debug(f"Shading configured: {config}, distance_unit={distance_unit}")


def set_distance_unit(distance_unit: float) -> None:
    """Change only the distance unit of the active configuration.

    Raises:
        ValueError: If distance_unit is not positive.
    """
    if distance_unit <= 0.0:
        raise ValueError(f"Distance unit = {distance_unit} must be positive.")
    _distance_unit[None] = distance_unit


def get_distance_unit() -> float:
    """Get the distance unit used by the attenuation curve."""
    return float(_distance_unit[None])


def is_shading_initialized() -> bool:
    """Check whether setup_shading() has been called."""
    return bool(_shading_initialized[None])


# =============================================================================
# Shading Functions (Taichi)
# =============================================================================


@ti.func
def attenuation(distance: ti.f32) -> ti.f32:
    """Distance falloff 1 / (A*x^2 + B*x + C) with x = distance / distance_unit."""
    x = distance / _distance_unit[None]
    return 1.0 / (_atten_a[None] * x * x + _atten_b[None] * x + _atten_c[None])


@ti.func
def light_contribution(
    point: vec3,
    normal: vec3,
    reflected: vec3,
    light_position: vec3,
    light_color: vec3,
    light_intensity: ti.f32,
):
    """Diffuse and specular light arriving from one unshadowed point light.

    Args:
        point: The shaded surface point.
        normal: Unit surface normal.
        reflected: Mirror reflection of the incoming ray direction.
        light_position: Light position.
        light_color: Light RGB color.
        light_intensity: Light scalar intensity.

    Returns:
        A tuple (diffuse, specular) of RGB contributions, before kd/ks.
    """
    diffuse = vec3(0.0, 0.0, 0.0)
    specular = vec3(0.0, 0.0, 0.0)

    to_light = light_position - point
    dist = tm.length(to_light)
    # A light sitting on the surface has no direction
    if dist > 1e-8:
        light_dir = to_light / dist
        diffuse_term = tm.max(tm.dot(light_dir, normal), 0.0)
        specular_term = tm.max(tm.dot(reflected, light_dir), 0.0) ** _specular_power[None]
        coeff = attenuation(dist) * light_intensity * light_color
        diffuse = diffuse_term * coeff
        specular = specular_term * coeff

    return diffuse, specular


@ti.func
def local_color(ka: vec3, kd: vec3, ks: vec3, diffuse: vec3, specular: vec3) -> vec3:
    """Combine accumulated light into the local color ka + kd*diffuse + ks*specular."""
    return ka + kd * diffuse + ks * specular


@ti.func
def reflection_weight(kd: vec3, ks: vec3, normal: vec3, reflected: vec3) -> vec3:
    """Per-channel weight applied to the color seen along the mirror direction.

    The weight is reflect_damping * (cos * kd + ks), where cos is the cosine
    between the normal and the reflected direction clamped at zero, so the
    reflected term never subtracts light.
    """
    cos_r = tm.max(tm.dot(normal, tm.normalize(reflected)), 0.0)
    return _reflect_damping[None] * (cos_r * kd + ks)


@ti.func
def preview_color(ka: vec3, kd: vec3) -> vec3:
    """Flat color used by the fast preview mode (no lights, no shadows)."""
    return ka + kd
