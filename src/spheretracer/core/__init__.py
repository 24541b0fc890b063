"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampling: Random streams and sampling of disks, balls and sphere surfaces
    integrator: Path tracing, render target and image conversion
    progressive: Render settings and a progressive renderer

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    reflectance,
    refract,
    vec3,
)
from .sampling import (
    make_seeds,
    next_state,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_uniform,
    random_unit_vector,
    random_vector,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from spheretracer.core.integrator or spheretracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "reflectance",
    "near_zero",
    "next_state",
    "random_float",
    "random_uniform",
    "random_vector",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "make_seeds",
]
