"""Tests for the Renderer class.

Tests cover:
- Construction, resizing and reset
- Rendering returns (H, W, 3) images and records timing
- Buffer, 8-bit and file output
- Shading calibration and distance unit handling
"""

import numpy as np
import pytest


def _front_camera(yres):
    """Camera above the single triangle scene looking down -z."""
    from src.whitted.camera.pinhole import PinholeCamera

    return PinholeCamera.look_at(eye=(0.2, 0.2, 5.0), target=(0.2, 0.2, 0.0), yview=0.01, yres=yres)


class TestRendererSetup:
    """Tests for renderer construction."""

    def test_init(self):
        """Dimensions and defaults are stored."""
        from src.whitted.core.integrator import DEFAULT_TRACER
        from src.whitted.core.renderer import Renderer
        from src.whitted.shading.phong import DEFAULT_SHADING

        renderer = Renderer(64, 48)
        assert renderer.width == 64
        assert renderer.height == 48
        assert renderer.shading is DEFAULT_SHADING
        assert renderer.tracer is DEFAULT_TRACER
        assert renderer.last_render_seconds is None
        assert "64" in repr(renderer)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (5000, 10)])
    def test_invalid_size(self, width, height):
        """Invalid sizes raise ValueError."""
        from src.whitted.core.renderer import Renderer

        with pytest.raises(ValueError):
            Renderer(width, height)

    def test_resize(self):
        """resize changes the image dimensions."""
        from src.whitted.core.integrator import get_image_dimensions
        from src.whitted.core.renderer import Renderer

        renderer = Renderer(8, 8)
        renderer.resize(16, 4)
        assert (renderer.width, renderer.height) == (16, 4)
        assert get_image_dimensions() == (16, 4)


class TestRendererRender:
    """Tests for rendering through the Renderer."""

    def test_render_shape_and_timing(self, single_triangle_scene):
        """render returns an (H, W, 3) image and records its duration."""
        from src.whitted.core.renderer import Renderer

        renderer = Renderer(6, 4)
        image = renderer.render(_front_camera(4), depth=2)

        assert image.shape == (4, 6, 3)
        assert renderer.last_render_seconds is not None
        assert renderer.last_render_seconds >= 0.0
        # A narrow view sees only the triangle
        assert np.allclose(image, 0.1 + 0.5 / 30.4, atol=1e-4)

    def test_negative_depth(self, single_triangle_scene):
        """Negative depth is rejected before rendering."""
        from src.whitted.core.renderer import Renderer

        with pytest.raises(ValueError):
            Renderer(4, 4).render(_front_camera(4), depth=-1)

    def test_steep_calibration(self, single_triangle_scene):
        """The shading calibration changes the attenuation."""
        from src.whitted.core.renderer import Renderer
        from src.whitted.shading.phong import STEEP_FALLOFF

        image = Renderer(1, 1, shading=STEEP_FALLOFF).render(_front_camera(1), depth=1)
        expected = 0.1 + 0.5 * STEEP_FALLOFF.attenuation(5.0)
        assert np.allclose(image[0, 0], expected, atol=1e-5)

    def test_dist_bound(self, single_triangle_scene):
        """dist_bound becomes the attenuation distance unit."""
        from src.whitted.core.renderer import Renderer
        from src.whitted.shading.phong import get_distance_unit

        image = Renderer(1, 1).render(_front_camera(1), depth=1, dist_bound=5.0)
        assert get_distance_unit() == pytest.approx(5.0)
        assert np.allclose(image[0, 0], 0.1 + 0.5 / 2.4, atol=1e-5)

    def test_preview(self, single_triangle_scene):
        """Preview mode renders ka + kd."""
        from src.whitted.core.renderer import Renderer

        image = Renderer(2, 2).render(_front_camera(2), depth=0, preview=True)
        assert np.allclose(image, 0.6, atol=1e-6)

    def test_reset_clears_image(self, single_triangle_scene):
        """reset blacks out the last image."""
        from src.whitted.core.renderer import Renderer

        renderer = Renderer(2, 2)
        renderer.render(_front_camera(2), depth=1)
        renderer.reset()
        assert np.all(renderer.get_image_numpy() == 0.0)


class TestRendererOutput:
    """Tests for buffer and file output."""

    def test_buffer_and_uint8(self, single_triangle_scene):
        """The flat buffer and the 8-bit image agree with the float image."""
        from src.whitted.core.renderer import Renderer

        renderer = Renderer(3, 2)
        image = renderer.render(_front_camera(2), depth=1)

        buffer = renderer.get_buffer()
        assert buffer.shape == (6, 3)
        assert np.array_equal(buffer.reshape(2, 3, 3), image)

        encoded = renderer.get_image_uint8()
        assert encoded.dtype == np.uint8
        assert encoded.shape == (2, 3, 3)
        assert np.all(encoded == int((0.1 + 0.5 / 30.4) * 256))

    def test_save_image(self, single_triangle_scene, tmp_path):
        """save_image writes a readable file of the right size."""
        from PIL import Image

        from src.whitted.core.renderer import Renderer

        renderer = Renderer(5, 3)
        renderer.render(_front_camera(3), depth=1)
        path = renderer.save_image(tmp_path / "out.png")

        assert path.exists()
        with Image.open(path) as img:
            assert img.size == (5, 3)
            assert img.mode == "RGB"
