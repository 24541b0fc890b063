"""Tests for image export utilities.

Tests cover:
- PNG export from a renderer
- Agreement between the saved file and the display bytes
"""

import numpy as np
from PIL import Image


class TestSavePng:
    """Tests for PNG export."""

    def test_save_png_from_renderer(self, tmp_path):
        from spheretracer.camera.thin_lens import setup_camera
        from spheretracer.core.progressive import ProgressiveRenderer, RenderSettings
        from spheretracer.preview.export import save_png
        from spheretracer.scene.presets import three_spheres_scene

        _scene, camera = three_spheres_scene()
        setup_camera(camera)
        renderer = ProgressiveRenderer(
            RenderSettings(width=15, height=10, samples_per_pixel=1, max_depth=3)
        )
        renderer.render()

        path = tmp_path / "render.png"
        save_png(renderer, path)

        with Image.open(path) as img:
            assert img.mode == "RGB"
            assert img.size == (15, 10)
            assert np.array_equal(np.asarray(img), renderer.get_image_uint8())

    def test_save_png_accepts_str_path(self, tmp_path):
        from spheretracer.camera.thin_lens import setup_camera
        from spheretracer.core.progressive import ProgressiveRenderer, RenderSettings
        from spheretracer.preview import save_png
        from spheretracer.scene.presets import three_spheres_scene

        _scene, camera = three_spheres_scene()
        setup_camera(camera)
        renderer = ProgressiveRenderer(
            RenderSettings(width=6, height=4, samples_per_pixel=1, max_depth=2)
        )
        renderer.render()

        path = tmp_path / "small.png"
        save_png(renderer, str(path))

        with Image.open(path) as img:
            assert img.size == (6, 4)
