#!/usr/bin/env python3
"""Render an OBJ scene described by a render configuration file.

The configuration file names the OBJ scene, the output image, the trace depth,
the resolution, the camera and the point lights (see
src/whitted/config/render_config.py for the format). The scene, the lights
and the camera are normalized by the scene's bounding box diagonal before
rendering.

Usage:
    python -m examples.render_scene CONFIG [options]

Options:
    --depth DEPTH       Override the trace depth from the file
    --shading NAME      Shading calibration, soft or steep (default: soft)
    --preview           Render the flat ka + kd preview instead
    --output OUTPUT     Override the output path from the file
    --save-config PATH  Write the configuration back out (normalizes formatting)
    --cpu               Force the CPU backend
    --verbose           Log debug messages

Example:
    python -m examples.render_scene scenes/cornell.txt --depth 4
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render an OBJ scene from a render configuration file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("config", type=Path, help="Render configuration file")
    parser.add_argument("--depth", type=int, default=None, help="Override the trace depth")
    parser.add_argument(
        "--shading",
        choices=["soft", "steep"],
        default="soft",
        help="Shading calibration (default: soft)",
    )
    parser.add_argument("--preview", action="store_true", help="Render the flat ka + kd preview")
    parser.add_argument("--output", type=Path, default=None, help="Override the output path")
    parser.add_argument("--save-config", type=Path, default=None, help="Write the configuration back out")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages")
    return parser.parse_args()


def render_scene(
    config_path: Path,
    depth: int | None = None,
    shading: str = "soft",
    preview: bool = False,
    output_path: Path | None = None,
) -> Path:
    """Load, render and save the scene described by a configuration file.

    Args:
        config_path: Path of the render configuration file.
        depth: Trace depth, or None to use the file's value.
        shading: Name of the shading calibration.
        preview: If True, render the flat preview.
        output_path: Output path, or None to use the file's value.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.whitted.camera.pinhole import PinholeCamera
    from src.whitted.config.render_config import read_render_config
    from src.whitted.core.renderer import Renderer
    from src.whitted.scene.loader import load_obj_scene
    from src.whitted.scene.manager import SceneManager
    from src.whitted.shading.phong import get_calibration

    config = read_render_config(config_path)

    scene = SceneManager()
    loaded = load_obj_scene(config.resolve_obj_path(), scene, lights=config.lights)
    scene.validate()

    camera = PinholeCamera.look_at(
        eye=loaded.normalize_point(config.view_point),
        target=loaded.normalize_point(config.look_at),
        up=config.up,
        yview=config.yview,
        yres=config.yres,
    )

    # Geometry is already normalized, so light distances need no rescaling
    renderer = Renderer(config.xres, config.yres, shading=get_calibration(shading))
    renderer.render(camera, config.depth if depth is None else depth, preview=preview)

    return renderer.save_image(output_path or config.resolve_output_path())


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Taichi falls back to the CPU when no GPU backend is available
    ti.init(arch=ti.cpu if args.cpu else ti.gpu)

    try:
        if args.save_config is not None:
            from src.whitted.config.render_config import read_render_config, write_render_config

            write_render_config(read_render_config(args.config), args.save_config)

        output = render_scene(
            args.config,
            depth=args.depth,
            shading=args.shading,
            preview=args.preview,
            output_path=args.output,
        )
    except (ValueError, RuntimeError, OSError) as e:
        logger.error(f"Render failed: {e}")
        return 1

    logger.info(f"Saved to: {output.absolute()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
