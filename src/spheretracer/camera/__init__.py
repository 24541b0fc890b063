"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with a finite aperture (depth of field)

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

Each ray consumes a lens sample from the caller's random stream. An aperture
of zero gives a pinhole camera.
"""

from .thin_lens import (
    CameraFrame,
    ThinLensCamera,
    build_camera_frame,
    get_camera_info,
    get_camera_origin,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "CameraFrame",
    "build_camera_frame",
    "setup_camera",
    "get_ray",
    "get_camera_origin",
    "get_camera_info",
]
