"""Preview module for image output.

Components:
    export: Float-to-8-bit conversion and PNG export via Pillow

Colours are clamped to [0, 255] only when the pixel buffer is produced;
everything upstream works with unclamped float64 values.

Example:
    >>> from src.phongtracer.preview import save_png, to_rgb_bytes
    >>> save_png(to_rgb_bytes(image), "output.png")
"""

from src.phongtracer.preview.export import (
    load_png,
    pixel_buffer_bytes,
    save_png,
    to_rgb_bytes,
)

__all__ = [
    "to_rgb_bytes",
    "pixel_buffer_bytes",
    "save_png",
    "load_png",
]
