"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole camera looking down +z, focal length in pixels or
        derived from a horizontal field of view

Ray generation maps integer pixel coordinates (i, j) to unit directions
centred on the raster, inside Taichi kernels.
"""

from .pinhole import (
    PinholeCamera,
    focal_length_from_fov,
    get_camera_info,
    get_direction,
    get_pixel_direction,
    get_ray,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "focal_length_from_fov",
    "setup_camera",
    "get_direction",
    "get_ray",
    "get_pixel_direction",
    "get_camera_info",
]
