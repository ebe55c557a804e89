"""Plain-text render configuration files.

A configuration file describes one render job, one item per line:

    comment
    path/to/scene.obj
    path/to/output.jpg    ".jpg" is appended when there is no extension
    k                      trace depth
    xres yres
    vp_x vp_y vp_z         view point
    la_x la_y la_z         look-at point
    [up_x up_y up_z]       optional, default 0 1 0
    [yview]                optional, default 1
    [L px py pz r g b i]   zero or more point lights

Light colors are written as 0..255 per channel and intensities as
percentages; both are converted to [0, 1] scales on read and back on write.
Light lines end at the first line that does not start with "L". At most
MAX_LIGHTS lights are allowed.

Example:
    >>> from src.whitted.config.render_config import read_render_config
    >>> config = read_render_config("scenes/cornell.txt")
    >>> config.xres, config.yres, config.depth
    (640, 480, 3)
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

logger = logging.getLogger(__name__)

# Maximum number of lights a configuration (and a scene) may hold
MAX_LIGHTS = 20

# Appended to output paths written without an extension
DEFAULT_OUTPUT_SUFFIX = ".jpg"

DEFAULT_UP = (0.0, 1.0, 0.0)
DEFAULT_YVIEW = 1.0


@dataclass(frozen=True)
class LightSpec:
    """A point light as described by a configuration file.

    Attributes:
        position: Light position in scene units (before normalization).
        color: RGB color in [0, 1].
        intensity: Scalar intensity (a file value of 100 reads as 1.0).
    """

    position: tuple[float, float, float]
    color: tuple[float, float, float]
    intensity: float

    def __post_init__(self) -> None:
        if any(c < 0.0 or c > 1.0 for c in self.color):
            raise ValueError(f"Light color {self.color} is outside [0, 1]")
        if self.intensity < 0.0:
            raise ValueError(f"Light intensity = {self.intensity} is negative.")


@dataclass(frozen=True)
class RenderConfig:
    """One render job.

    Attributes:
        comment: Free-text first line, kept for round trips.
        obj_path: Path of the OBJ scene, as written in the file.
        output_path: Path of the image to write, as written in the file.
        depth: Trace depth k.
        xres: Image width in pixels.
        yres: Image height in pixels.
        view_point: Camera position.
        look_at: Point the camera looks at.
        up: Approximate up direction.
        yview: Ratio of the image half-height to the focal length.
        lights: Point lights.
        base_dir: Directory relative paths are resolved against.
    """

    comment: str
    obj_path: str
    output_path: str
    depth: int
    xres: int
    yres: int
    view_point: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float] = DEFAULT_UP
    yview: float = DEFAULT_YVIEW
    lights: tuple[LightSpec, ...] = field(default_factory=tuple)
    base_dir: Path = field(default=Path("."), compare=False)

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"Trace depth = {self.depth} must be non-negative.")
        if self.xres <= 0 or self.yres <= 0:
            raise ValueError(f"Resolution ({self.xres}x{self.yres}) must be positive")
        if self.yview <= 0.0:
            raise ValueError(f"yview = {self.yview} must be positive.")
        if len(self.lights) > MAX_LIGHTS:
            raise ValueError(f"Too many lights in the scene: {len(self.lights)} > {MAX_LIGHTS}")

    def resolve_obj_path(self) -> Path:
        """The OBJ path, relative paths taken from the config file's directory."""
        return self.base_dir / self.obj_path

    def resolve_output_path(self) -> Path:
        """The output path, relative paths taken from the config file's directory.

        An output written without an extension is a base name and gets
        DEFAULT_OUTPUT_SUFFIX, so "renders/room" becomes "renders/room.jpg".
        """
        path = self.base_dir / self.output_path
        if not path.suffix:
            path = path.with_name(path.name + DEFAULT_OUTPUT_SUFFIX)
        return path

    def with_camera(
        self,
        view_point: tuple[float, float, float],
        look_at: tuple[float, float, float],
    ) -> "RenderConfig":
        """Copy of this configuration with a new view point and look-at point."""
        return replace(self, view_point=tuple(view_point), look_at=tuple(look_at))


# =============================================================================
# Parsing
# =============================================================================


def _parse_floats(line: str, count: int, what: str, lineno: int) -> tuple[float, ...]:
    parts = line.split()
    if len(parts) < count:
        raise ValueError(f"Line {lineno}: expected {count} numbers for {what}, got {line!r}")
    try:
        return tuple(float(p) for p in parts[:count])
    except ValueError:
        raise ValueError(f"Line {lineno}: invalid number in {what}: {line!r}") from None


def _parse_light(line: str, lineno: int) -> LightSpec:
    values = _parse_floats(line[1:], 7, "light", lineno)
    return LightSpec(
        position=(values[0], values[1], values[2]),
        color=(values[3] / 255.0, values[4] / 255.0, values[5] / 255.0),
        intensity=values[6] * 0.01,
    )


def parse_render_config(text: str, base_dir: Path | str = ".") -> RenderConfig:
    """Parse configuration text.

    Args:
        text: The file contents.
        base_dir: Directory that relative paths are resolved against.

    Returns:
        The parsed RenderConfig.

    Raises:
        ValueError: If a required line is missing or malformed, or there are
            more than MAX_LIGHTS lights.
    """
    lines = text.splitlines()
    required = ("comment", "OBJ path", "output path", "trace depth", "resolution",
                "view point", "look-at point")
    if len(lines) < len(required):
        raise ValueError(
            f"Configuration ends early: missing {required[len(lines)]} (line {len(lines) + 1})"
        )

    comment = lines[0]
    obj_path = lines[1].strip()
    output_path = lines[2].strip()
    if not obj_path:
        raise ValueError("Line 2: OBJ path is empty")
    if not output_path:
        raise ValueError("Line 3: output path is empty")

    try:
        depth = int(lines[3].split()[0])
    except (IndexError, ValueError):
        raise ValueError(f"Line 4: invalid trace depth {lines[3]!r}") from None

    xres_f, yres_f = _parse_floats(lines[4], 2, "resolution", 5)
    if not (xres_f.is_integer() and yres_f.is_integer()):
        raise ValueError(f"Line 5: resolution must be integers, got {lines[4]!r}")

    view_point = _parse_floats(lines[5], 3, "view point", 6)
    look_at = _parse_floats(lines[6], 3, "look-at point", 7)

    up = DEFAULT_UP
    yview = DEFAULT_YVIEW
    lights: list[LightSpec] = []

    rest = lines[7:]
    # Blank optional lines keep their defaults
    if rest and rest[0].strip():
        up = _parse_floats(rest[0], 3, "up vector", 8)
    if len(rest) > 1:
        if rest[1].strip():
            yview = _parse_floats(rest[1], 1, "yview", 9)[0]

        for offset, line in enumerate(rest[2:]):
            lineno = 10 + offset
            stripped = line.strip()
            if not stripped.startswith("L"):
                if stripped:
                    logger.warning(f"Line {lineno}: ignoring {line!r} and everything after it")
                break
            lights.append(_parse_light(stripped, lineno))

    config = RenderConfig(
        comment=comment,
        obj_path=obj_path,
        output_path=output_path,
        depth=depth,
        xres=int(xres_f),
        yres=int(yres_f),
        view_point=view_point,
        look_at=look_at,
        up=up,
        yview=yview,
        lights=tuple(lights),
        base_dir=Path(base_dir),
    )
    logger.debug(f"Parsed render configuration: {config}")
    return config


def read_render_config(path: Path | str) -> RenderConfig:
    """Read a configuration file.

    Relative OBJ and output paths are resolved against the file's directory.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the contents are malformed.
    """
    path = Path(path)
    text = path.read_text()
    config = parse_render_config(text, base_dir=path.parent)
    logger.info(
        f"Loaded render configuration {path}: {config.xres}x{config.yres}, "
        f"depth {config.depth}, {len(config.lights)} lights"
    )
    return config


# =============================================================================
# Writing
# =============================================================================


def _format_vec(v: tuple[float, ...]) -> str:
    return " ".join(f"{c:g}" for c in v)


def format_render_config(config: RenderConfig) -> str:
    """Serialize a configuration in the file format, optional lines included."""
    lines = [
        config.comment,
        config.obj_path,
        config.output_path,
        str(config.depth),
        f"{config.xres} {config.yres}",
        _format_vec(config.view_point),
        _format_vec(config.look_at),
        _format_vec(config.up),
        f"{config.yview:g}",
    ]
    for light in config.lights:
        color = tuple(int(round(c * 255.0)) for c in light.color)
        lines.append(
            f"L {_format_vec(light.position)} {color[0]} {color[1]} {color[2]} "
            f"{light.intensity * 100.0:g}"
        )
    return "\n".join(lines) + "\n"


def write_render_config(config: RenderConfig, path: Path | str) -> None:
    """Write a configuration file."""
    path = Path(path)
    path.write_text(format_render_config(config))
    logger.info(f"Configuration updated: {path}")
