"""Sphere primitive with ray-sphere intersection.

This module provides a Sphere dataclass and intersection function using the
half-b form of the quadratic formula, which drops the factor-of-two terms of
the textbook formula.

The radius is signed. A negative radius flips the outward normal, which turns
the sphere inside out; nesting a negative-radius sphere inside a glass sphere
models a hollow glass shell.

Only the smaller root of the quadratic is considered. When it falls outside
[t_min, t_max] the sphere reports no hit, even if the larger root would be in
range. A ray starting inside a sphere therefore does not see that sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and signed radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normals.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The surface normal at the intersection point, always facing
            against the incoming ray. Only valid if hit == 1.
        front_face: 1 if the outward normal already faced against the ray,
            0 if it had to be flipped. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a normal against the incoming ray.

    Args:
        ray_direction: The direction of the incoming ray.
        outward_normal: The geometric outward normal at the hit point.

    Returns:
        A tuple of (front_face, normal) where normal always satisfies
        dot(ray_direction, normal) <= 0.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    In half-b form:
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2
        discriminant = half_b^2 - a*c
        t = (-half_b - sqrt(discriminant)) / a

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum t value for a valid hit (inclusive).
        t_max: Maximum t value for a valid hit (inclusive).

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if an intersection occurred.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        root = (-half_b - ti.sqrt(discriminant)) / a

        if t_min <= root <= t_max:
            did_hit = 1
            hit_t = root
            hit_point = ray_origin + root * ray_direction

            # Dividing by the signed radius flips the normal of inverted spheres
            outward_normal = (hit_point - sphere.center) / sphere.radius
            is_front_face, hit_normal = face_normal(ray_direction, outward_normal)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and signed radius."""
    return Sphere(center=center, radius=radius)
