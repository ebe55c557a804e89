#!/usr/bin/env python3
"""Render the built-in Cornell box scene.

This script demonstrates end-to-end rendering with the Whitted tracer: it
builds the triangle Cornell box, sets up the camera and renders it at the
requested trace depth.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH       Image width in pixels (default: 512)
    --height HEIGHT     Image height in pixels (default: 512)
    --depth DEPTH       Trace depth, 1 = no reflections (default: 3)
    --shading NAME      Shading calibration, soft or steep (default: soft)
    --preview           Render the flat ka + kd preview instead
    --output OUTPUT     Output file path (default: cornell_box.png)
    --cpu               Force the CPU backend
    --verbose           Log debug messages

Example:
    python -m examples.render_cornell_box --width 256 --height 256 --depth 4
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_cornell_box")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=512, help="Image width in pixels (default: 512)")
    parser.add_argument("--height", type=int, default=512, help="Image height in pixels (default: 512)")
    parser.add_argument("--depth", type=int, default=3, help="Trace depth (default: 3)")
    parser.add_argument(
        "--shading",
        choices=["soft", "steep"],
        default="soft",
        help="Shading calibration (default: soft)",
    )
    parser.add_argument("--preview", action="store_true", help="Render the flat ka + kd preview")
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path (default: cornell_box.png)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages")
    return parser.parse_args()


def render_cornell_box(
    width: int = 512,
    height: int = 512,
    depth: int = 3,
    shading: str = "soft",
    preview: bool = False,
    output_path: str = "cornell_box.png",
) -> Path:
    """Render the Cornell box scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        depth: Trace depth.
        shading: Name of the shading calibration.
        preview: If True, render the flat preview.
        output_path: Output file path.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.whitted.core.renderer import Renderer
    from src.whitted.scene.cornell_box import create_cornell_box_scene
    from src.whitted.shading.phong import get_calibration

    logger.info(f"Creating Cornell box scene ({width}x{height})")
    scene, camera = create_cornell_box_scene(yres=height)
    scene.validate()

    renderer = Renderer(width, height, shading=get_calibration(shading))
    renderer.render(camera, depth, preview=preview)

    return renderer.save_image(output_path)


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
        output = render_cornell_box(
            width=args.width,
            height=args.height,
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
