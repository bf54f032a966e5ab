"""Image renderer driving the integrator over row bands.

The Renderer uploads a scene and camera, then renders the image one band
of rows at a time so callers can report progress between kernel launches.
Pixels inside a band are computed in parallel by the integrator kernel.

Example:
    >>> from src.phongtracer.core.renderer import Renderer
    >>> from src.phongtracer.scene.loader import load_scene_file
    >>>
    >>> description = load_scene_file("examples/scenes/spheres.txt")
    >>> renderer = Renderer(500, 500)
    >>> result = renderer.render(description.scene, description.camera)
    >>> result.pixels.shape
    (500, 500, 3)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.phongtracer.camera.pinhole import ScreenCamera, setup_camera
from src.phongtracer.core.integrator import get_invalid_pixel_count, render_rows, reset_render_settings
from src.phongtracer.preview.export import to_rgb_bytes
from src.phongtracer.scene.manager import Scene, upload_scene

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_BAND_ROWS = 64


@dataclass(frozen=True)
class RenderResult:
    """Output of a finished render.

    Attributes:
        image: Float64 colours of shape (height, width, 3), unclamped.
        pixels: Uint8 RGB buffer of shape (height, width, 3), row 0 = top.
        width: Image width in pixels.
        height: Image height in pixels.
        invalid_pixels: Pixels written with the sentinel colour.
        elapsed: Wall-clock render time in seconds.
    """

    image: npt.NDArray[np.float64]
    pixels: npt.NDArray[np.uint8]
    width: int
    height: int
    invalid_pixels: int
    elapsed: float


class Renderer:
    """Renders scenes at a fixed image size.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If either dimension is less than 1.
        """
        self._check_size(width, height)
        self._width = width
        self._height = height

    @staticmethod
    def _check_size(width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Image size must be positive, got {width}x{height}")

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    def prepare(self, scene: Scene, camera: ScreenCamera) -> None:
        """Upload a scene and camera and reset the invalid pixel counter."""
        reset_render_settings()
        upload_scene(scene)
        setup_camera(camera, self._width, self._height)

    def render_bands(
        self,
        image: npt.NDArray[np.float64],
        super_sampling_level: int = 1,
        band_rows: int = DEFAULT_BAND_ROWS,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the uploaded scene into image, yielding after each band.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        if band_rows < 1:
            raise ValueError(f"Band size must be at least 1 row, got {band_rows}")

        for row_start in range(0, self._height, band_rows):
            row_end = min(row_start + band_rows, self._height)
            render_rows(image, row_start, row_end, super_sampling_level)
            yield (row_end, self._height)

    def render(
        self,
        scene: Scene,
        camera: ScreenCamera,
        band_rows: int = DEFAULT_BAND_ROWS,
        callback: ProgressCallback | None = None,
    ) -> RenderResult:
        """Render a scene as seen from a camera.

        Args:
            scene: The scene to render.
            camera: The camera configuration.
            band_rows: Rows rendered per kernel launch.
            callback: Optional callback invoked after each band with
                (rows_done, total_rows).

        Returns:
            The RenderResult with float and 8-bit images.
        """
        start = time.perf_counter()
        self.prepare(scene, camera)

        image = np.zeros((self._height, self._width, 3), dtype=np.float64)
        for done, total in self.render_bands(image, scene.settings.super_sampling_level, band_rows):
            if callback is not None:
                callback(done, total)

        return RenderResult(
            image=image,
            pixels=to_rgb_bytes(image),
            width=self._width,
            height=self._height,
            invalid_pixels=get_invalid_pixel_count(),
            elapsed=time.perf_counter() - start,
        )
