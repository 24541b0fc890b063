"""Random sampling utilities driven by explicit random streams.

Every sampling function takes the current state of a random stream and returns
the sampled value together with the advanced state. No function here reads or
writes global random state, so each worker (one per pixel in the renderer) can
own its own stream and renders stay reproducible under parallel execution.

The generator is xorshift32: a non-zero 32-bit state advanced by three
shift/xor steps. Floats are built from the top 24 bits of the state, which
gives values in [0, 1) at full f32 mantissa precision.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.core.sampling import random_unit_vector
    >>> # Inside a Taichi kernel:
    >>> # direction, state = random_unit_vector(state)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import length_squared, vec3

# 2^-24, maps a 24-bit integer onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step.

    Args:
        state: The current state. Must be non-zero.

    Returns:
        The next state (non-zero whenever the input is non-zero).
    """
    x = state
    x ^= x << 13
    x ^= ti.bit_shr(x, 17)
    x ^= x << 5
    return x


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current stream state.

    Returns:
        A tuple of (value, new_state).
    """
    s = next_state(state)
    value = ti.cast(ti.bit_shr(s, 8), ti.f32) * _INV_2_24
    return value, s


@ti.func
def random_uniform(state: ti.u32, min_value: ti.f32, max_value: ti.f32):
    """Draw a uniform float in [min_value, max_value).

    Returns:
        A tuple of (value, new_state).
    """
    r, s = random_float(state)
    return min_value + (max_value - min_value) * r, s


@ti.func
def random_vector(state: ti.u32):
    """Draw a vector with independent uniform components in [0, 1).

    Returns:
        A tuple of (vector, new_state).
    """
    x, s = random_float(state)
    y, s = random_float(s)
    z, s = random_float(s)
    return vec3(x, y, z), s


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly distributed inside the unit ball.

    Rejection samples the cube [-1, 1)^3 until the point lies strictly inside
    the ball.

    Returns:
        A tuple of (point, new_state) with length(point) < 1.
    """
    s = state
    p = vec3(1.0, 1.0, 1.0)
    while length_squared(p) >= 1.0:
        x, s = random_uniform(s, -1.0, 1.0)
        y, s = random_uniform(s, -1.0, 1.0)
        z, s = random_uniform(s, -1.0, 1.0)
        p = vec3(x, y, z)
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a point uniformly distributed on the unit sphere surface.

    Uses spherical coordinates: azimuth uniform in [0, 2*pi), z uniform in
    [-1, 1), r = sqrt(1 - z^2).

    Added to a surface normal this gives a cosine-weighted direction about the
    normal, which is how Lambertian scattering uses it.

    Returns:
        A tuple of (unit_vector, new_state).
    """
    a, s = random_uniform(state, 0.0, 2.0 * tm.pi)
    z, s = random_uniform(s, -1.0, 1.0)
    r = ti.sqrt(1.0 - z * z)
    return vec3(r * ti.cos(a), r * ti.sin(a), z), s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly distributed inside the unit disk (z = 0).

    Used to sample the lens aperture for depth of field.

    Returns:
        A tuple of (point, new_state) with x^2 + y^2 < 1 and z = 0.
    """
    s = state
    p = vec3(1.0, 1.0, 0.0)
    while length_squared(p) >= 1.0:
        x, s = random_uniform(s, -1.0, 1.0)
        y, s = random_uniform(s, -1.0, 1.0)
        p = vec3(x, y, 0.0)
    return p, s


# =============================================================================
# Stream Seeding (Python-side)
# =============================================================================


def make_seeds(shape: tuple[int, ...], seed: int = 0) -> npt.NDArray[np.uint32]:
    """Create independent non-zero xorshift32 seeds.

    Args:
        shape: Shape of the seed array (typically (width, height)).
        seed: Seed for the NumPy generator that produces the stream seeds.

    Returns:
        A uint32 array of the given shape with every entry in [1, 2^32).
    """
    rng = np.random.default_rng(seed)
    return rng.integers(1, 2**32, size=shape, dtype=np.uint32)
