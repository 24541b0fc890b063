"""Thin-lens camera model for perspective ray generation with depth of field.

This module implements a positionable camera that generates primary rays for
rendering. The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- A finite aperture focused at a chosen distance (depth of field)

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is placed at the focus distance, so points on that plane stay
sharp while the lens sample blurs everything nearer or farther. An aperture of
zero reduces the model to a pinhole camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>>
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray, state = get_ray(0.5, 0.5, state)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from spheretracer.core.ray import make_ray, vec3
from spheretracer.core.sampling import random_in_unit_disk

# Cross products shorter than this mean vup is parallel to the view direction
_DEGENERATE_EPSILON = 1e-12

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens (defocus) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance to the plane of perfect focus. None means the
            distance from lookfrom to lookat.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float | None = None


@dataclass(frozen=True)
class CameraFrame:
    """Derived, immutable camera state computed once per render.

    Attributes:
        origin: Camera position.
        horizontal: Full viewport width vector, scaled by focus distance.
        vertical: Full viewport height vector, scaled by focus distance.
        lower_left_corner: Lower-left corner of the viewport.
        u: Right basis vector.
        v: Up basis vector.
        w: Backward basis vector (opposite view direction).
        lens_radius: Half the aperture.
    """

    origin: tuple[float, float, float]
    horizontal: tuple[float, float, float]
    vertical: tuple[float, float, float]
    lower_left_corner: tuple[float, float, float]
    u: tuple[float, float, float]
    v: tuple[float, float, float]
    w: tuple[float, float, float]
    lens_radius: float


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def _as_tuple(a: np.ndarray) -> tuple[float, float, float]:
    return (float(a[0]), float(a[1]), float(a[2]))


def build_camera_frame(camera: ThinLensCamera) -> CameraFrame:
    """Validate a camera configuration and compute its derived frame.

    Args:
        camera: Camera configuration.

    Returns:
        The immutable CameraFrame for the configuration.

    Raises:
        ValueError: If the aspect ratio is not positive, the field of view is
            outside (0, 180), lookfrom equals lookat, vup is parallel to the
            view direction, the aperture is negative, or the focus distance is
            not positive.
    """
    if not camera.aspect_ratio > 0.0:
        raise ValueError(f"aspect_ratio must be positive, got {camera.aspect_ratio}")
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aperture < 0.0:
        raise ValueError(f"aperture must be non-negative, got {camera.aperture}")

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    view = lookfrom - lookat
    view_length = float(np.linalg.norm(view))
    if view_length == 0.0:
        raise ValueError("lookfrom and lookat must be different points")

    focus_dist = view_length if camera.focus_dist is None else camera.focus_dist
    if not focus_dist > 0.0:
        raise ValueError(f"focus_dist must be positive, got {focus_dist}")

    # w points from lookat toward lookfrom (backward)
    w = view / view_length

    # u points right; undefined when vup is parallel to w
    u = np.cross(vup, w)
    u_length = float(np.linalg.norm(u))
    if u_length < _DEGENERATE_EPSILON:
        raise ValueError(
            f"vup {tuple(camera.vup)} is parallel to the view direction; "
            "the camera basis is undefined"
        )
    u = u / u_length

    v = np.cross(w, u)

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    horizontal = focus_dist * viewport_width * u
    vertical = focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - focus_dist * w

    return CameraFrame(
        origin=_as_tuple(lookfrom),
        horizontal=_as_tuple(horizontal),
        vertical=_as_tuple(vertical),
        lower_left_corner=_as_tuple(lower_left),
        u=_as_tuple(u),
        v=_as_tuple(v),
        w=_as_tuple(w),
        lens_radius=camera.aperture / 2.0,
    )


def setup_camera(camera: ThinLensCamera) -> CameraFrame:
    """Initialize camera state from configuration.

    Computes the camera frame and stores it in Taichi fields. This must be
    called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Returns:
        The computed CameraFrame.

    Raises:
        ValueError: If the configuration is degenerate (see build_camera_frame).
    """
    frame = build_camera_frame(camera)

    _camera_origin[None] = list(frame.origin)
    _camera_u[None] = list(frame.u)
    _camera_v[None] = list(frame.v)
    _camera_w[None] = list(frame.w)
    _viewport_horizontal[None] = list(frame.horizontal)
    _viewport_vertical[None] = list(frame.vertical)
    _lower_left_corner[None] = list(frame.lower_left_corner)
    _lens_radius[None] = frame.lens_radius

    return frame


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, state: ti.u32):
    """Generate a ray through normalized viewport coordinates (s, t).

    The ray origin is the camera position offset by a random point on the lens
    disk; the ray aims at the matching point on the focus plane.
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        state: Random stream state used for the lens sample.

    Returns:
        A tuple of (ray, new_state). The ray direction is not normalized.
    """
    disk, new_state = random_in_unit_disk(state)
    rd = _lens_radius[None] * disk
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )

    return make_ray(origin, target - origin), new_state


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (lens center) in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left and
        lens_radius as read back from the Taichi fields.
    """

    def _read(f) -> tuple[float, float, float]:
        vec = f[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _read(_camera_origin),
        "u": _read(_camera_u),
        "v": _read(_camera_v),
        "w": _read(_camera_w),
        "horizontal": _read(_viewport_horizontal),
        "vertical": _read(_viewport_vertical),
        "lower_left": _read(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
