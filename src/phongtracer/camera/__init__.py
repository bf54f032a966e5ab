"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole camera with a screen plane at a given distance and
        width, derived from eye position, look-at point and up hint

Camera responsibilities:
    - Build a right-handed orthonormal view basis
    - Map (row, col) pixel indices to screen points in closed form
    - Generate primary rays (origin at the eye, unit direction)

Row 0 is the top of the image. Ray generation runs inside the render
kernel, one parallel iteration per pixel.
"""

from .pinhole import (
    CameraFrame,
    ScreenCamera,
    check_camera,
    compute_camera_frame,
    get_camera_info,
    get_ray,
    primary_ray_direction,
    setup_camera,
)

__all__ = [
    "ScreenCamera",
    "CameraFrame",
    "check_camera",
    "compute_camera_frame",
    "setup_camera",
    "get_ray",
    "primary_ray_direction",
    "get_camera_info",
]
