"""Cornell box scene configuration.

This module provides a factory function to create a triangle-mesh Cornell box,
the standard test scene for checking shading, shadows and reflections.

The Cornell box consists of:
- 5 walls forming an open box (left, right, back, floor, ceiling)
- Left wall: red diffuse
- Right wall: green diffuse
- Back, floor, ceiling: white diffuse
- A short and a tall block standing on the floor
- A mirror panel in front of the back wall
- A point light below the ceiling

Every wall and block face is a quad split into two triangles whose normals
point into the box (walls) or out of the block (blocks). The box spans 0 to
box_size on every axis; the default size of 1 matches the unit scale the
shading constants are tuned for. The camera sits outside the box looking in
through the open front.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.whitted.scene.cornell_box import create_cornell_box_scene
    >>> from src.whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_cornell_box_scene(yres=512)
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

from dataclasses import dataclass

from src.whitted.camera.pinhole import PinholeCamera
from src.whitted.scene.manager import SceneManager

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    Attributes:
        light_intensity: Scalar intensity of the point light.
        light_color: RGB color of the light (each component in [0, 1]).
        left_wall_color: RGB diffuse reflectance of the left wall.
        right_wall_color: RGB diffuse reflectance of the right wall.
        white_color: RGB diffuse reflectance of the back wall, floor, ceiling
            and blocks.
        mirror_ks: RGB specular reflectance of the mirror panel.
        include_blocks: Whether to add the two blocks.
        include_mirror: Whether to add the mirror panel.

    Example:
        >>> params = CornellBoxParams()
        >>> params.light_intensity
        1.0

        >>> # Warm light, no mirror
        >>> custom = CornellBoxParams(light_color=(1.0, 0.9, 0.8), include_mirror=False)
    """

    light_intensity: float = 1.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.65, 0.05, 0.05)
    right_wall_color: tuple[float, float, float] = (0.12, 0.45, 0.15)
    white_color: tuple[float, float, float] = (0.73, 0.73, 0.73)
    mirror_ks: tuple[float, float, float] = (0.9, 0.9, 0.9)
    include_blocks: bool = True
    include_mirror: bool = True


# =============================================================================
# Cornell Box Constants
# =============================================================================

BOX_SIZE = 1.0

# Ambient color as a fraction of the diffuse color
AMBIENT_FRACTION = 0.1

# Faint highlight on the painted surfaces
WALL_SPECULAR = (0.05, 0.05, 0.05)

# Light position as fractions of the box size
LIGHT_POSITION = (0.5, 0.9, 0.4)

# Blocks as (min corner, max corner) fractions of the box size
SHORT_BLOCK = ((0.52, 0.0, 0.15), (0.80, 0.30, 0.43))
TALL_BLOCK = ((0.18, 0.0, 0.50), (0.46, 0.60, 0.78))

# Mirror panel (x range, y range) in front of the back wall
MIRROR_EXTENT = ((0.25, 0.75), (0.35, 0.85))
MIRROR_GAP = 0.01

# Camera distance in front of the open face and vertical view ratio
CAMERA_DISTANCE = 1.4
CAMERA_YVIEW = 0.4


def _diffuse(scene: SceneManager, color: tuple[float, float, float]) -> int:
    ambient = tuple(AMBIENT_FRACTION * c for c in color)
    return scene.add_material(ka=ambient, kd=color, ks=WALL_SPECULAR)


def _add_block(
    scene: SceneManager,
    lo: tuple[float, float, float],
    hi: tuple[float, float, float],
    material_id: int,
) -> None:
    """Add an axis-aligned box with outward-facing normals."""
    dx, dy, dz = hi[0] - lo[0], hi[1] - lo[1], hi[2] - lo[2]

    # (corner, edge_u, edge_v) with edge_u x edge_v pointing outward
    faces = [
        ((lo[0], lo[1], lo[2]), (0.0, 0.0, dz), (0.0, dy, 0.0)),  # -x
        ((hi[0], lo[1], lo[2]), (0.0, dy, 0.0), (0.0, 0.0, dz)),  # +x
        ((lo[0], lo[1], lo[2]), (dx, 0.0, 0.0), (0.0, 0.0, dz)),  # -y
        ((lo[0], hi[1], lo[2]), (0.0, 0.0, dz), (dx, 0.0, 0.0)),  # +y
        ((lo[0], lo[1], lo[2]), (0.0, dy, 0.0), (dx, 0.0, 0.0)),  # -z
        ((lo[0], lo[1], hi[2]), (dx, 0.0, 0.0), (0.0, dy, 0.0)),  # +z
    ]
    for corner, edge_u, edge_v in faces:
        scene.add_quad(corner, edge_u, edge_v, material_id)


def _scaled(point: tuple[float, float, float], box_size: float) -> tuple[float, float, float]:
    return (point[0] * box_size, point[1] * box_size, point[2] * box_size)


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_scene(
    box_size: float = BOX_SIZE,
    params: CornellBoxParams | None = None,
    yres: int = 512,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a Cornell box scene with standard configuration.

    The coordinate system places the box origin at (0, 0, 0) with:
    - X-axis: right to left as seen by the camera (0 to box_size)
    - Y-axis: floor to ceiling (0 to box_size)
    - Z-axis: front to back (0 to box_size), camera looks toward +Z

    Args:
        box_size: The size of the box in each dimension.
        params: Optional CornellBoxParams for customizing the scene.
            If None, uses default CornellBoxParams().
        yres: Vertical resolution the camera's focal length is derived for.

    Returns:
        A tuple of (SceneManager, PinholeCamera).

    Raises:
        ValueError: If box_size is not positive.

    Example:
        >>> scene, camera = create_cornell_box_scene()
        >>> scene.get_triangle_count()
        36
    """
    if box_size <= 0.0:
        raise ValueError(f"box_size = {box_size} must be positive.")
    if params is None:
        params = CornellBoxParams()

    s = box_size
    scene = SceneManager()

    # =========================================================================
    # Materials
    # =========================================================================

    red_mat = _diffuse(scene, params.left_wall_color)
    green_mat = _diffuse(scene, params.right_wall_color)
    white_mat = _diffuse(scene, params.white_color)
    mirror_mat = scene.add_material(ka=(0.0, 0.0, 0.0), kd=(0.05, 0.05, 0.05), ks=params.mirror_ks)

    # =========================================================================
    # Walls (5 quads, normals pointing into the box)
    # =========================================================================

    # Left wall (red) at x=s
    scene.add_quad((s, 0.0, 0.0), (0.0, 0.0, s), (0.0, s, 0.0), red_mat)

    # Right wall (green) at x=0
    scene.add_quad((0.0, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), green_mat)

    # Back wall at z=s
    scene.add_quad((0.0, 0.0, s), (0.0, s, 0.0), (s, 0.0, 0.0), white_mat)

    # Floor at y=0
    scene.add_quad((0.0, 0.0, 0.0), (0.0, 0.0, s), (s, 0.0, 0.0), white_mat)

    # Ceiling at y=s
    scene.add_quad((0.0, s, s), (0.0, 0.0, -s), (s, 0.0, 0.0), white_mat)

    # =========================================================================
    # Blocks and mirror
    # =========================================================================

    if params.include_blocks:
        for lo, hi in (SHORT_BLOCK, TALL_BLOCK):
            _add_block(scene, _scaled(lo, s), _scaled(hi, s), white_mat)

    if params.include_mirror:
        (x0, x1), (y0, y1) = MIRROR_EXTENT
        scene.add_quad(
            (x0 * s, y0 * s, s * (1.0 - MIRROR_GAP)),
            (0.0, (y1 - y0) * s, 0.0),
            ((x1 - x0) * s, 0.0, 0.0),
            mirror_mat,
        )

    # =========================================================================
    # Light
    # =========================================================================

    scene.add_light(_scaled(LIGHT_POSITION, s), params.light_color, params.light_intensity)

    # =========================================================================
    # Camera Setup
    # =========================================================================

    camera = PinholeCamera.look_at(
        eye=(s / 2.0, s / 2.0, -CAMERA_DISTANCE * s),
        target=(s / 2.0, s / 2.0, s / 2.0),
        up=(0.0, 1.0, 0.0),
        yview=CAMERA_YVIEW,
        yres=yres,
    )

    return scene, camera


def get_cornell_box_bounds(box_size: float = BOX_SIZE) -> dict[str, tuple[float, float, float]]:
    """Get the bounding box of the Cornell box scene.

    Args:
        box_size: The size of the box.

    Returns:
        A dictionary with keys 'min', 'max', 'center' and 'size'.
    """
    return {
        "min": (0.0, 0.0, 0.0),
        "max": (box_size, box_size, box_size),
        "center": (box_size / 2.0, box_size / 2.0, box_size / 2.0),
        "size": (box_size, box_size, box_size),
    }
