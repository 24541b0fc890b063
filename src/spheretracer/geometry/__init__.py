"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) so they can run inside
the per-pixel rendering kernels.
"""

from .sphere import HitRecord, Sphere, face_normal, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "face_normal",
    "hit_sphere",
    "make_sphere",
]
