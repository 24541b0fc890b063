"""Image export utilities for rendered images.

This module saves rendered images to files through Pillow. The renderer's own
gamma-2 conversion is applied, so a saved PNG matches the pixels handed to
emit_pixels().

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from spheretracer.preview.export import save_png
    >>> from spheretracer.core.progressive import ProgressiveRenderer, RenderSettings
    >>>
    >>> renderer = ProgressiveRenderer(RenderSettings(width=300, height=200))
    >>> renderer.render()
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image as PILImage

if TYPE_CHECKING:
    from spheretracer.core.progressive import ProgressiveRenderer


def save_png(renderer: ProgressiveRenderer, filepath: str | Path) -> None:
    """Save the rendered image as a PNG file.

    Args:
        renderer: The ProgressiveRenderer instance to save.
        filepath: Output file path (should end in .png).
    """
    image_uint8 = renderer.get_image_uint8()

    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)
