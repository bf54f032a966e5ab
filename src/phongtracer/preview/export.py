"""Image export utilities for rendered images.

Rendered colours are linear float64 values that may fall outside [0, 1].
They are clamped only here, when the 8-bit pixel buffer is produced:

    byte = round(clip(value, 0, 1) * 255)

The buffer is row-major with 3 bytes (R, G, B) per pixel and row 0 at the
top of the image, which is the layout Pillow expects.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from src.phongtracer.preview.export import save_png, to_rgb_bytes
    >>> pixels = to_rgb_bytes(result.image)
    >>> save_png(pixels, "output.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.phongtracer.core.errors import ImageWriteError


def to_rgb_bytes(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a float image to an 8-bit RGB pixel buffer.

    Args:
        image: Colour array of shape (H, W, 3); 1.0 maps to 255.

    Returns:
        Uint8 array of shape (H, W, 3). NaN values map to 0.

    Raises:
        ValueError: If the image does not have shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    clipped = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    return np.rint(clipped * 255.0).astype(np.uint8)


def pixel_buffer_bytes(pixels: npt.NDArray[np.uint8]) -> bytes:
    """Flatten a pixel buffer into raw row-major RGB bytes.

    Byte ``(row * width + col) * 3 + channel`` holds the given channel of
    pixel (row, col).
    """
    return np.ascontiguousarray(pixels, dtype=np.uint8).tobytes()


def save_png(pixels: npt.NDArray[np.uint8], filepath: Union[str, Path]) -> None:
    """Save an 8-bit RGB pixel buffer as a PNG file.

    Args:
        pixels: Uint8 array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path.

    Raises:
        ValueError: If the buffer has the wrong shape or dtype.
        ImageWriteError: If the file cannot be written.
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3 or pixels.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 (H, W, 3) buffer, got {pixels.dtype} {pixels.shape}")

    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels), mode="RGB")
    try:
        pil_image.save(filepath, format="PNG")
    except (OSError, ValueError) as exc:
        raise ImageWriteError(str(filepath), str(exc)) from exc


def load_png(filepath: Union[str, Path]) -> npt.NDArray[np.uint8]:
    """Read a PNG written by save_png back into an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)

