"""Pinhole camera with a screen plane at a fixed distance.

The camera is described by an eye position, a look-at point, an up hint,
the distance from the eye to the screen plane and the world-space width
of that plane. From these it builds a right-handed orthonormal basis:

- forward: normalize(look_at - position)
- right:   normalize(forward x up_hint)
- up:      right x forward (the up hint need not be orthogonal to forward)

The screen height follows the pixel aspect ratio:
screen_height = screen_width * height / width.

Screen points are computed in closed form from (row, col) so the error is
the same for every pixel no matter how large the image is:

    point = bottom_left + (col + ox) * pixel_right + (height - 1 - row + oy) * pixel_up

Row 0 is the top of the image; (ox, oy) is the sub-pixel offset in
[0, 1), with (0.5, 0.5) at the pixel centre.

Example:
    >>> from src.phongtracer.camera.pinhole import ScreenCamera, setup_camera
    >>> camera = ScreenCamera(
    ...     position=(0.0, 0.0, -10.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     screen_distance=1.0,
    ...     screen_width=2.0,
    ... )
    >>> frame = setup_camera(camera, 100, 100)
    >>> # Use get_ray(row, col, 0.5, 0.5) within a Taichi kernel
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.phongtracer.core.errors import DegenerateGeometryError
from src.phongtracer.core.vector import (
    DEGENERATE_LENGTH,
    Ray,
    Vec3Tuple,
    as_vector,
    real,
    vec3,
)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class ScreenCamera:
    """Camera configuration as given by the scene description.

    Attributes:
        position: Eye position in world space.
        look_at: Point the camera looks at.
        up: Up hint; only needs to be non-parallel to the view direction.
        screen_distance: Distance from the eye to the screen plane.
        screen_width: World-space width of the screen plane.
    """

    position: Vec3Tuple
    look_at: Vec3Tuple
    up: Vec3Tuple
    screen_distance: float
    screen_width: float


@dataclass(frozen=True)
class CameraFrame:
    """View basis and screen geometry derived for one image size.

    Attributes:
        origin: Eye position.
        forward: Unit view direction.
        right: Unit vector pointing right on the screen.
        up: Unit vector pointing up on the screen.
        screen_height: World-space height of the screen plane.
        bottom_left: World-space bottom-left corner of the screen.
        pixel_right: Step vector of one pixel to the right.
        pixel_up: Step vector of one pixel upward.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    origin: npt.NDArray[np.float64]
    forward: npt.NDArray[np.float64]
    right: npt.NDArray[np.float64]
    up: npt.NDArray[np.float64]
    screen_height: float
    bottom_left: npt.NDArray[np.float64]
    pixel_right: npt.NDArray[np.float64]
    pixel_up: npt.NDArray[np.float64]
    width: int
    height: int

    def screen_point(
        self, row: int, col: int, offset_x: float = 0.5, offset_y: float = 0.5
    ) -> npt.NDArray[np.float64]:
        """World-space point on the screen for a pixel sample."""
        return (
            self.bottom_left
            + (col + offset_x) * self.pixel_right
            + (self.height - 1 - row + offset_y) * self.pixel_up
        )

    def ray_direction(
        self, row: int, col: int, offset_x: float = 0.5, offset_y: float = 0.5
    ) -> npt.NDArray[np.float64]:
        """Unit direction of the primary ray through a pixel sample."""
        direction = self.screen_point(row, col, offset_x, offset_y) - self.origin
        return direction / np.linalg.norm(direction)


def _camera_basis(
    camera: ScreenCamera,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Validate a camera and return (origin, forward, right, up)."""
    if camera.screen_distance <= 0.0:
        raise ValueError(f"Screen distance must be positive, got {camera.screen_distance}")
    if camera.screen_width <= 0.0:
        raise ValueError(f"Screen width must be positive, got {camera.screen_width}")

    origin = as_vector(camera.position)
    up_hint = as_vector(camera.up)

    forward = as_vector(camera.look_at) - origin
    forward_length = np.linalg.norm(forward)
    if forward_length < DEGENERATE_LENGTH:
        raise DegenerateGeometryError(
            f"Camera look-at point {camera.look_at} coincides with its position"
        )
    forward = forward / forward_length

    right = np.cross(forward, up_hint)
    right_length = np.linalg.norm(right)
    if right_length < DEGENERATE_LENGTH:
        raise DegenerateGeometryError(
            f"Camera up vector {camera.up} is parallel to the view direction"
        )
    right = right / right_length

    # Restore orthogonality: the up hint may lean toward forward
    up = np.cross(right, forward)
    return origin, forward, right, up


def check_camera(camera: ScreenCamera) -> None:
    """Check that a camera can produce an image.

    Raises:
        ValueError: If the screen distance or screen width is not positive.
        DegenerateGeometryError: If the camera looks at its own position or
            the up hint is parallel to the view direction.
    """
    _camera_basis(camera)


def compute_camera_frame(camera: ScreenCamera, width: int, height: int) -> CameraFrame:
    """Derive the view basis and screen geometry for an image size.

    Args:
        camera: Camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The CameraFrame for the image.

    Raises:
        ValueError: If the image size, screen distance or screen width is
            not positive.
        DegenerateGeometryError: If the camera looks at its own position or
            the up hint is parallel to the view direction.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    origin, forward, right, up = _camera_basis(camera)

    screen_height = camera.screen_width * height / width
    center = origin + forward * camera.screen_distance
    bottom_left = center - right * (camera.screen_width / 2.0) - up * (screen_height / 2.0)

    return CameraFrame(
        origin=origin,
        forward=forward,
        right=right,
        up=up,
        screen_height=screen_height,
        bottom_left=bottom_left,
        pixel_right=right * (camera.screen_width / width),
        pixel_up=up * (screen_height / height),
        width=width,
        height=height,
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=real, shape=())
_bottom_left = ti.Vector.field(3, dtype=real, shape=())
_pixel_right = ti.Vector.field(3, dtype=real, shape=())
_pixel_up = ti.Vector.field(3, dtype=real, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: ScreenCamera, width: int, height: int) -> CameraFrame:
    """Compute the camera frame and upload it for the render kernels.

    This must be called before rendering, from Python scope.

    Args:
        camera: Camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The CameraFrame that was uploaded.
    """
    frame = compute_camera_frame(camera, width, height)

    _camera_origin[None] = frame.origin.tolist()
    _bottom_left[None] = frame.bottom_left.tolist()
    _pixel_right[None] = frame.pixel_right.tolist()
    _pixel_up[None] = frame.pixel_up.tolist()
    _image_height[None] = height

    return frame


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(row: ti.i32, col: ti.i32, offset_x: real, offset_y: real) -> Ray:
    """Generate the primary ray through a pixel sample.

    Args:
        row: Pixel row (0 = top).
        col: Pixel column (0 = left).
        offset_x: Horizontal sub-pixel offset in [0, 1).
        offset_y: Vertical sub-pixel offset in [0, 1).

    Returns:
        A Ray from the eye through the screen point.
    """
    rows_from_bottom = ti.cast(_image_height[None] - 1 - row, real) + offset_y
    point = (
        _bottom_left[None]
        + (ti.cast(col, real) + offset_x) * _pixel_right[None]
        + rows_from_bottom * _pixel_up[None]
    )
    origin = _camera_origin[None]
    return Ray(origin=origin, direction=tm.normalize(point - origin))


@ti.kernel
def _primary_ray_kernel(row: ti.i32, col: ti.i32, offset_x: real, offset_y: real) -> vec3:
    return get_ray(row, col, offset_x, offset_y).direction


def primary_ray_direction(
    row: int, col: int, offset_x: float = 0.5, offset_y: float = 0.5
) -> Vec3Tuple:
    """Direction of the uploaded camera's primary ray through a pixel sample.

    Useful for checking the kernel-side ray generation from Python.
    """
    direction = _primary_ray_kernel(row, col, offset_x, offset_y)
    return (float(direction[0]), float(direction[1]), float(direction[2]))


def get_camera_info() -> dict[str, Vec3Tuple]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, bottom_left, pixel_right and pixel_up.
    """
    info = {}
    for name, field in (
        ("origin", _camera_origin),
        ("bottom_left", _bottom_left),
        ("pixel_right", _pixel_right),
        ("pixel_up", _pixel_up),
    ):
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
