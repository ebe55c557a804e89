"""Integration tests for the end-to-end rendering pipeline.

These tests run the example entry points from configuration or scene factory
through to an image file on disk. They are kept small (low resolution, shallow
depth) while still exercising every stage.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import shutil
from dataclasses import replace
from pathlib import Path

import numpy as np
from PIL import Image

SCENES_DIR = Path(__file__).parent.parent / "examples" / "scenes"


def _small_room_config(tmp_path: Path, output_path: str = "room.png") -> Path:
    """Copy the example room scene next to a reduced-size configuration."""
    from src.whitted.config.render_config import read_render_config, write_render_config

    for name in ("room.obj", "room.mtl"):
        shutil.copy(SCENES_DIR / name, tmp_path / name)

    config = read_render_config(SCENES_DIR / "room.txt")
    small = replace(config, output_path=output_path, xres=48, yres=36)
    path = tmp_path / "room.txt"
    write_render_config(small, path)
    return path


class TestConfigPipeline:
    """Config file -> OBJ -> render -> image file."""

    def test_render_scene_writes_image(self, tmp_path: Path) -> None:
        """The configured output file is written at the configured size."""
        from examples.render_scene import render_scene

        output = render_scene(_small_room_config(tmp_path))

        assert output == tmp_path / "room.png"
        with Image.open(output) as img:
            assert img.size == (48, 36)
            data = np.asarray(img)
        # Floor and back wall cover a good part of the view
        assert (data.sum(axis=2) > 0).mean() > 0.25

    def test_output_base_name_renders_jpeg(self, tmp_path: Path) -> None:
        """An output line without an extension is written as a JPEG."""
        from examples.render_scene import render_scene

        output = render_scene(_small_room_config(tmp_path, output_path="room_out"))

        assert output == tmp_path / "room_out.jpg"
        with Image.open(output) as img:
            assert img.format == "JPEG"
            assert img.size == (48, 36)

    def test_preview_and_depth_override(self, tmp_path: Path) -> None:
        """Overrides change the output without touching the file."""
        from examples.render_scene import render_scene

        config_path = _small_room_config(tmp_path)
        preview = render_scene(config_path, preview=True, output_path=tmp_path / "preview.png")
        shallow = render_scene(config_path, depth=1, output_path=tmp_path / "shallow.png")

        with Image.open(preview) as a, Image.open(shallow) as b:
            assert not np.array_equal(np.asarray(a), np.asarray(b))
        assert not (tmp_path / "room.png").exists()


class TestCornellPipeline:
    """Scene factory -> render -> image file."""

    def test_render_cornell_box(self, tmp_path: Path) -> None:
        """The Cornell box example renders and saves."""
        from examples.render_cornell_box import render_cornell_box

        output = render_cornell_box(width=24, height=24, depth=2, output_path=str(tmp_path / "cornell.png"))

        with Image.open(output) as img:
            assert img.size == (24, 24)
            data = np.asarray(img).astype(np.int32)
        # Red wall on the left, green wall on the right
        assert data[12, 2, 0] > data[12, 2, 1]
        assert data[12, 21, 1] > data[12, 21, 0]
