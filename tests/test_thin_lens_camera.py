"""Unit tests for the thin-lens camera.

Tests cover:
- Orthonormal basis construction
- Viewport geometry from field of view, aspect ratio and focus distance
- Validation of degenerate configurations
- Pinhole rays through the viewport
- Defocus rays: origins on the lens disk, aimed at the focus plane
"""

import math

import numpy as np
import pytest
import taichi as ti


def _camera(**overrides):
    from spheretracer.camera.thin_lens import ThinLensCamera

    params = dict(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=2.0,
    )
    params.update(overrides)
    return ThinLensCamera(**params)


class TestCameraFrame:
    """Tests for build_camera_frame and setup_camera."""

    def test_default_basis(self):
        from spheretracer.camera.thin_lens import build_camera_frame

        frame = build_camera_frame(_camera())
        assert np.allclose(frame.u, (1.0, 0.0, 0.0))
        assert np.allclose(frame.v, (0.0, 1.0, 0.0))
        assert np.allclose(frame.w, (0.0, 0.0, 1.0))
        assert frame.lens_radius == 0.0

    def test_viewport_size(self):
        """vfov = 90 gives a viewport of height 2 at unit focus distance."""
        from spheretracer.camera.thin_lens import build_camera_frame

        frame = build_camera_frame(_camera())
        assert np.allclose(frame.horizontal, (4.0, 0.0, 0.0))
        assert np.allclose(frame.vertical, (0.0, 2.0, 0.0))
        assert np.allclose(frame.lower_left_corner, (-2.0, -1.0, -1.0))

    def test_viewport_scales_with_focus_distance(self):
        from spheretracer.camera.thin_lens import build_camera_frame

        frame = build_camera_frame(_camera(aperture=0.5, focus_dist=3.0))
        assert np.allclose(frame.horizontal, (12.0, 0.0, 0.0))
        assert np.allclose(frame.vertical, (0.0, 6.0, 0.0))
        assert np.allclose(frame.lower_left_corner, (-6.0, -3.0, -3.0))
        assert frame.lens_radius == 0.25

    def test_basis_is_orthonormal_for_oblique_view(self):
        from spheretracer.camera.thin_lens import build_camera_frame

        frame = build_camera_frame(_camera(lookfrom=(13.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0)))
        basis = np.array([frame.u, frame.v, frame.w])
        assert np.allclose(basis @ basis.T, np.eye(3), atol=1e-9)
        expected_w = np.array([13.0, 2.0, 3.0]) / np.linalg.norm([13.0, 2.0, 3.0])
        assert np.allclose(frame.w, expected_w)

    def test_focus_defaults_to_lookat_distance(self):
        from spheretracer.camera.thin_lens import build_camera_frame

        frame = build_camera_frame(_camera(lookfrom=(0.0, 0.0, 4.0), vfov=2 * math.degrees(math.atan(0.5))))
        # Viewport height is 2 * tan(vfov / 2) * 5 = 5
        assert np.allclose(frame.vertical, (0.0, 5.0, 0.0))

    @pytest.mark.parametrize(
        "overrides, match",
        [
            ({"aspect_ratio": 0.0}, "aspect_ratio"),
            ({"vfov": 0.0}, "vfov"),
            ({"vfov": 180.0}, "vfov"),
            ({"aperture": -0.1}, "aperture"),
            ({"focus_dist": 0.0}, "focus_dist"),
            ({"lookat": (0.0, 0.0, 0.0)}, "different points"),
            ({"vup": (0.0, 0.0, 1.0)}, "parallel"),
        ],
    )
    def test_invalid_configuration(self, overrides, match):
        from spheretracer.camera.thin_lens import build_camera_frame

        with pytest.raises(ValueError, match=match):
            build_camera_frame(_camera(**overrides))

    def test_setup_camera_stores_fields(self):
        from spheretracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 0.0), aperture=0.2))
        info = get_camera_info()
        assert np.allclose(info["origin"], (1.0, 2.0, 3.0))
        assert np.allclose(info["w"], (0.0, 0.0, 1.0))
        assert abs(info["lens_radius"] - 0.1) < 1e-6


class TestRayGeneration:
    """Tests for get_ray."""

    def test_pinhole_center_ray(self):
        from spheretracer.camera.thin_lens import get_ray, setup_camera

        setup_camera(_camera())
        origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray, _state = get_ray(0.5, 0.5, ti.cast(777, ti.u32))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        assert np.allclose(origin[None].to_numpy(), 0.0, atol=1e-6)
        assert np.allclose(direction[None].to_numpy(), (0.0, 0.0, -1.0), atol=1e-6)

    def test_pinhole_corner_rays(self):
        """s = t = 0 is the lower-left corner and s = t = 1 the upper-right."""
        from spheretracer.camera.thin_lens import get_ray, setup_camera

        setup_camera(_camera())
        directions = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            ray0, s = get_ray(0.0, 0.0, ti.cast(777, ti.u32))
            ray1, s = get_ray(1.0, 1.0, s)
            directions[0] = ray0.direction
            directions[1] = ray1.direction

        test_kernel()
        d = directions.to_numpy()
        assert np.allclose(d[0], (-2.0, -1.0, -1.0), atol=1e-6)
        assert np.allclose(d[1], (2.0, 1.0, -1.0), atol=1e-6)

    def test_defocus_rays_converge_on_focus_plane(self):
        from spheretracer.camera.thin_lens import get_ray, setup_camera
        from spheretracer.core.sampling import make_seeds

        n = 1024
        aperture = 0.5
        focus = 3.0
        setup_camera(_camera(aperture=aperture, focus_dist=focus))

        seeds = ti.field(dtype=ti.u32, shape=n)
        seeds.from_numpy(make_seeds((n,), seed=21))
        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
        focus_points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                ray, _state = get_ray(0.25, 0.75, seeds[i])
                origins[i] = ray.origin
                focus_points[i] = ray.origin + ray.direction

        test_kernel()
        o = origins.to_numpy()
        radii = np.linalg.norm(o[:, :2], axis=1)
        assert np.all(radii < aperture / 2.0 + 1e-6)
        assert np.allclose(o[:, 2], 0.0)
        # Lens samples are spread over the disk
        assert radii.max() > aperture / 4.0

        p = focus_points.to_numpy()
        assert np.allclose(p, p[0], atol=1e-5)
        assert np.allclose(p[0], (-6.0 + 0.25 * 12.0, -3.0 + 0.75 * 6.0, -focus), atol=1e-5)

    def test_get_camera_origin(self):
        from spheretracer.camera.thin_lens import get_camera_origin, setup_camera

        setup_camera(_camera(lookfrom=(3.0, 3.0, 2.0), lookat=(0.0, 0.0, -1.0)))
        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_camera_origin()

        test_kernel()
        assert np.allclose(result[None].to_numpy(), (3.0, 3.0, 2.0))
