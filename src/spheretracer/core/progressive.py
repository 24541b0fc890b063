"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Validated render settings (size, samples, depth, pixel blocks, seed)
- Progressive rendering that refines over repeated passes
- Per-row progress callbacks for UI updates
- Easy reset and re-render functionality

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.core.progressive import ProgressiveRenderer, RenderSettings
    >>> from spheretracer.scene.presets import three_spheres_scene
    >>> from spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = three_spheres_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(RenderSettings(width=300, height=200))
    >>> renderer.render()  # One pass of samples_per_pixel samples
    >>> image = renderer.get_image_uint8()
"""

from collections.abc import Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from spheretracer.core.integrator import (
    PixelSink,
    RowCallback,
    clear_render_target,
    emit_pixels,
    get_image_uint8,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)


@dataclass(frozen=True)
class RenderSettings:
    """Image and sampling configuration for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples added to each pixel per pass.
        max_depth: Maximum number of bounces per path.
        pixel_block: Only every pixel_block-th pixel in each direction is
            traced; its color fills the whole block. 1 traces every pixel.
        seed: Seed for the per-pixel random streams.
    """

    width: int
    height: int
    samples_per_pixel: int = 8
    max_depth: int = 10
    pixel_block: int = 1
    seed: int = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.pixel_block < 1:
            raise ValueError(f"pixel_block must be at least 1, got {self.pixel_block}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float, **kwargs) -> "RenderSettings":
        """Create settings whose height follows from the width and aspect ratio.

        The height is truncated to an integer.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over repeated passes.

    The renderer delegates to the global integrator buffers (which are Taichi
    fields), so only one renderer is active at a time. Creating one reseeds and
    clears the render target.

    Attributes:
        settings: The active render settings.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the progressive renderer.

        Args:
            settings: Render settings.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self.settings = settings
        self._passes = 0
        setup_render_target(settings.width, settings.height, settings.seed)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    @property
    def passes(self) -> int:
        """Get the number of completed render passes since the last reset."""
        return self._passes

    def reset(self) -> None:
        """Clear the accumulator without changing settings or streams."""
        clear_render_target()
        self._passes = 0

    def render(self, callback: RowCallback | None = None) -> None:
        """Render one pass of samples_per_pixel samples into the accumulator.

        Args:
            callback: Optional function called with (row, height) after each
                traced row.

        Example:
            >>> def progress(row, height):
            ...     print(f"row {row}/{height}")
            >>> renderer.render(callback=progress)
        """
        render_image(
            samples_per_pixel=self.settings.samples_per_pixel,
            max_depth=self.settings.max_depth,
            pixel_block=self.settings.pixel_block,
            callback=callback,
        )
        self._passes += 1

    def render_progressive(self, num_passes: int = 1) -> Generator[int, None, None]:
        """Render several passes, yielding the sample count after each.

        Args:
            num_passes: Number of passes to render.

        Yields:
            The accumulated samples per pixel after each pass.

        Example:
            >>> for samples in renderer.render_progressive(4):
            ...     print(f"{samples} samples per pixel")
        """
        for _ in range(num_passes):
            self.render()
            yield self.sample_count

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear image, shape (height, width, 3)."""
        return get_linear_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image, shape (height, width, 3)."""
        return get_image_uint8()

    def emit_pixels(self, sink: PixelSink) -> None:
        """Hand every finished pixel to sink(x, y, (r, g, b)) in row-major order."""
        emit_pixels(sink)

    def save_image(self, filepath: str) -> None:
        """Save the rendered image to a file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
        """
        from spheretracer.preview.export import save_png

        save_png(self, filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
