"""Preview module for image output.

Components:
    export: PNG export through Pillow

Example:
    >>> from spheretracer.preview import save_png
    >>> save_png(renderer, "output.png")
"""

from spheretracer.preview.export import save_png

__all__ = [
    "save_png",
]
