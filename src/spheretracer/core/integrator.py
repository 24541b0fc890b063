"""Path tracing integrator and image assembler.

This module turns camera rays into pixel colors. A path starts at the camera,
bounces off spheres according to their materials and ends when it escapes to
the sky, gets absorbed, or runs out of depth budget. The sky gradient is the
only light source in the scene.

The radiance function is written as a loop rather than recursion. Throughput
starts at white and is multiplied by each bounce's attenuation; when the path
escapes, the sky color scaled by the throughput is the result. A depth budget
of D allows D + 1 intersection tests, and a budget below zero yields black.

Randomness comes from one xorshift32 stream per pixel, stored in a field next
to the color accumulator. Pixels never share a stream, so the per-pixel loop
runs in parallel while staying reproducible for a given seed.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Jittered supersampling with optional pixel blocks
    - Progressive sample accumulation across render calls
    - Per-row progress reporting through logging and a callback
    - Gamma-2 output conversion and a row-major pixel sink

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.core.integrator import (
    ...     render_image, setup_render_target, get_image_uint8
    ... )
    >>> from spheretracer.scene.presets import three_spheres_scene
    >>> from spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(300, 200, seed=7)
    >>> render_image(samples_per_pixel=8, max_depth=10)
    >>> image = get_image_uint8()
"""

import logging
from collections.abc import Callable

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spheretracer.camera.thin_lens import get_ray
from spheretracer.core.ray import normalize
from spheretracer.core.sampling import make_seeds, random_uniform
from spheretracer.materials.dielectric import (
    get_dielectric_ior,
    scatter_dielectric,
)
from spheretracer.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from spheretracer.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from spheretracer.scene.intersection import intersect_scene
from spheretracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Receives (row, height) after each traced row
RowCallback = Callable[[int, int], None]

# Receives (x, y, (r, g, b)) for each finished pixel
PixelSink = Callable[[int, int, tuple[int, int, int]], None]

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min skips hits at the ray's own origin (shadow acne)
T_MIN = 0.001
T_MAX = 1e30

# Sky gradient endpoints
SKY_BOTTOM_COLOR = vec3(1.0, 1.0, 1.0)
SKY_TOP_COLOR = vec3(0.5, 0.7, 1.0)

# Output scaling: byte = int(OUTPUT_SCALE * clamp(sqrt(c), 0, MAX_DISPLAY_VALUE))
OUTPUT_SCALE = 256.0
MAX_DISPLAY_VALUE = 0.999

# A progress record is logged every this many rows
PROGRESS_ROW_INTERVAL = 3

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all sample colors per pixel, indexed [x, y] with y = 0 at the top
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# One random stream per pixel
_rng_states = ti.field(dtype=ti.u32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int, seed: int = 0) -> None:
    """Initialize the render target buffers and per-pixel random streams.

    Sets the active image dimensions, reseeds every pixel's stream from
    ``seed`` and clears the accumulators. The buffers are preallocated to
    MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        seed: Seed for the per-pixel random streams.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _rng_states.from_numpy(make_seeds((MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT), seed))
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulated colors and sample counts.

    The random streams keep their position, so further samples stay
    independent of the ones already discarded.
    """
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by rays that miss every sphere.

    Blends white and sky blue by the height of the normalized direction, so
    the result depends only on the direction and never on the ray origin.
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_BOTTOM_COLOR + t * SKY_TOP_COLOR


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing against the ray).
        front_face: 1 if hit front face, 0 if back face.
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_state).
        Unknown material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_lambertian(albedo, normal, s)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_metal(
            albedo, fuzz, incident_direction, normal, s
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_dielectric(
            ior, incident_direction, normal, front_face, s
        )

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, state: ti.u32):
    """Trace one path and return the light it carries back to its origin.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Depth budget. Negative budgets return black.
        state: Random stream state.

    Returns:
        A tuple of (color, new_state).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    s = state

    # Taichi has no break in ti.func loops
    active = 1

    for _depth in range(max_depth + 1):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, s = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, s
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color, s


@ti.func
def sample_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    pixel_block: ti.i32,
    state: ti.u32,
):
    """Accumulate jittered samples for one pixel.

    Each sample jitters (x, y) by uniform(0, pixel_block), maps the result to
    viewport coordinates with row 0 at the top (v = 1) and traces the camera
    ray through it.

    Returns:
        A tuple of (color_sum, new_state). The sum is not divided by the
        sample count.
    """
    total = vec3(0.0, 0.0, 0.0)
    s = state
    block = ti.cast(pixel_block, ti.f32)
    u_scale = ti.cast(ti.max(width - 1, 1), ti.f32)
    v_scale = ti.cast(ti.max(height - 1, 1), ti.f32)

    for _sample in range(samples):
        jitter_x, s = random_uniform(s, 0.0, block)
        jitter_y, s = random_uniform(s, 0.0, block)
        u = (ti.cast(x, ti.f32) + jitter_x) / u_scale
        v = 1.0 - (ti.cast(y, ti.f32) + jitter_y) / v_scale

        ray, s = get_ray(u, v, s)
        color, s = ray_color(ray.origin, ray.direction, max_depth, s)
        total += color

    return total, s


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_row(
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    pixel_block: ti.i32,
):
    """Trace one image row and accumulate it.

    Only pixels whose x is a multiple of pixel_block are traced; each traced
    pixel's sum is added to every pixel of its block x block tile.
    """
    for x in range(width):
        if x % pixel_block == 0:
            total, state = sample_pixel(
                x, y, width, height, samples, max_depth, pixel_block, _rng_states[x, y]
            )
            _rng_states[x, y] = state

            for dx, dy in ti.ndrange(pixel_block, pixel_block):
                px = x + dx
                py = y + dy
                if px < width and py < height:
                    _color_sum[px, py] += total
                    _sample_count[px, py] += samples


@ti.kernel
def _render_single_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Render one sample for a pixel without accumulating it."""
    total, state = sample_pixel(x, y, width, height, 1, max_depth, 1, _rng_states[x, y])
    _rng_states[x, y] = state
    return total


@ti.kernel
def _trace_ray_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
    seed: ti.u32,
) -> vec3:
    color, _state = ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, seed)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    seed: int = 1,
) -> tuple[float, float, float]:
    """Trace a single ray through the current scene.

    Does not need a render target. Useful for probing the scene and in tests.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Depth budget.
        seed: Initial random stream state; must be in [1, 2^32).

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If seed is outside [1, 2^32).
    """
    if not 0 < seed < 2**32:
        raise ValueError(f"seed must be in [1, 2^32), got {seed}")

    color = _trace_ray_kernel(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        max_depth,
        seed,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(x: int, y: int, max_depth: int = 10) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    The sample uses and advances the pixel's random stream but is not added to
    the accumulator. For production rendering, use render_image().

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        max_depth: Depth budget.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If (x, y) lies outside the render target.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"Pixel ({x}, {y}) is outside the {width}x{height} render target")

    color = _render_single_pixel(x, y, width, height, max_depth)

    return (float(color[0]), float(color[1]), float(color[2]))


def progress_percent(y: int, width: int, height: int) -> int:
    """Percentage of pixels before row y, truncated to an integer."""
    return int((y * width) / (width * height) * 100)


def render_image(
    samples_per_pixel: int = 8,
    max_depth: int = 10,
    pixel_block: int = 1,
    callback: RowCallback | None = None,
) -> None:
    """Render every row of the image and accumulate the samples.

    Can be called multiple times to add more samples for convergence.

    Args:
        samples_per_pixel: Samples added to each pixel by this call.
        max_depth: Depth budget for each path.
        pixel_block: Size of the square tile covered by one traced pixel.
        callback: Optional function called with (row, height) after each
            traced row.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If samples_per_pixel or pixel_block is less than 1.
    """
    _check_render_target_initialized()

    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
    if pixel_block < 1:
        raise ValueError(f"pixel_block must be at least 1, got {pixel_block}")

    width, height = get_image_dimensions()

    for y in range(height):
        if y % PROGRESS_ROW_INTERVAL == 0:
            logger.debug(
                "progress y = %d, %d%% completed", y, progress_percent(y, width, height)
            )
        if y % pixel_block != 0:
            continue

        _render_row(y, width, height, samples_per_pixel, max_depth, pixel_block)

        if callback is not None:
            callback(y, height)

    logger.info(
        "Done! %dx%d image, %d samples per pixel, max depth %d",
        width,
        height,
        samples_per_pixel,
        max_depth,
    )


# =============================================================================
# Image Access
# =============================================================================


def get_total_samples() -> int:
    """Get the number of samples accumulated in pixel (0, 0).

    Every pixel carries the same count after render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear image as a NumPy array.

    Pixels without samples are black.

    Returns:
        NumPy array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    average = np.zeros_like(color_sum, dtype=np.float32)
    np.divide(
        color_sum,
        counts[:, :, np.newaxis],
        out=average,
        where=counts[:, :, np.newaxis] > 0,
    )

    # Transpose from (width, height, 3) to (height, width, 3)
    return np.ascontiguousarray(np.transpose(average, (1, 0, 2)), dtype=np.float32)


def to_display_bytes(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit display values.

    Applies gamma 2 (square root), clamps to [0, 0.999] and scales by 256, so
    each channel lands in [0, 255].

    Args:
        image: Linear image with non-negative values.

    Returns:
        uint8 array of the same shape.
    """
    corrected = np.sqrt(np.maximum(image, 0.0))
    clamped = np.clip(corrected, 0.0, MAX_DISPLAY_VALUE)
    return np.floor(OUTPUT_SCALE * clamped).astype(np.uint8)


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the finished image as 8-bit RGB, shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return to_display_bytes(get_linear_image_numpy())


def emit_pixels(sink: PixelSink) -> None:
    """Hand every finished pixel to a sink in row-major order.

    Args:
        sink: Called as sink(x, y, (r, g, b)) with 0-255 integers.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    image = get_image_uint8()
    height, width, _ = image.shape
    for y in range(height):
        for x in range(width):
            r, g, b = image[y, x]
            sink(x, y, (int(r), int(g), int(b)))
