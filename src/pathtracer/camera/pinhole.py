"""Pinhole camera model for primary ray generation.

The camera sits at ``origin`` and looks down +z. Pixel (i, j) of a
width x height raster is mapped to the unprojected direction

    normalize((i - width // 2, j - height // 2, focal_length))

so the focal length is measured in pixels. A horizontal field of view can
be given instead, in which case the focal length is derived from the raster
width: ``(width / 2) / tan(fov / 2)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.pinhole import PinholeCamera, setup_camera
    >>> setup_camera(PinholeCamera(focal_length=50.0), width=250)
    >>> # Use get_ray(i, j, width, height) within a Taichi kernel
"""

import logging
import math
from dataclasses import dataclass

import taichi as ti

from pathtracer.core.ray import Ray, make_ray, normalize, vec3

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole camera.

    Attributes:
        origin: Camera position in world space (x, y, z).
        focal_length: Distance from the pinhole to the image plane, in pixels.
        field_of_view: Horizontal field of view in degrees. Overrides
            focal_length when set.
    """

    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    focal_length: float = 50.0
    field_of_view: float | None = None

    def effective_focal_length(self, width: int) -> float:
        """Focal length in pixels for a raster of the given width.

        Args:
            width: Raster width in pixels.

        Returns:
            ``focal_length``, or the value derived from ``field_of_view``.
        """
        if self.field_of_view is None:
            return float(self.focal_length)
        return focal_length_from_fov(self.field_of_view, width)


def focal_length_from_fov(field_of_view: float, width: int) -> float:
    """Convert a horizontal field of view to a focal length in pixels.

    Args:
        field_of_view: Horizontal field of view in degrees, in (0, 180).
        width: Raster width in pixels.

    Returns:
        The focal length placing the raster's left and right edges at
        +-field_of_view / 2.
    """
    return (width / 2.0) / math.tan(math.radians(field_of_view) / 2.0)


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_focal_length = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera, width: int) -> None:
    """Upload camera state for rendering.

    Must be called before rendering, and again whenever the raster width
    changes for a field-of-view camera.

    Args:
        camera: Camera configuration.
        width: Raster width in pixels, used to resolve field_of_view.
    """
    focal_length = camera.effective_focal_length(width)
    _camera_origin[None] = [camera.origin[0], camera.origin[1], camera.origin[2]]
    _camera_focal_length[None] = focal_length
    logger.debug("Camera at %s, focal length %.3f px", camera.origin, focal_length)


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_direction(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Unit view direction through pixel (i, j).

    Args:
        pixel_i: Pixel column.
        pixel_j: Pixel row.
        width: Raster width in pixels.
        height: Raster height in pixels.

    Returns:
        The normalized direction toward the pixel on the image plane.
    """
    x = ti.cast(pixel_i - width // 2, ti.f32)
    y = ti.cast(pixel_j - height // 2, ti.f32)
    return normalize(vec3(x, y, _camera_focal_length[None]))


@ti.func
def get_ray(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Primary ray from the camera origin through pixel (i, j)."""
    return make_ray(_camera_origin[None], get_direction(pixel_i, pixel_j, width, height))


# =============================================================================
# Utility Functions
# =============================================================================


_direction_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _direction_kernel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32):
    _direction_result[None] = get_direction(pixel_i, pixel_j, width, height)


def get_pixel_direction(
    pixel_i: int, pixel_j: int, width: int, height: int
) -> tuple[float, float, float]:
    """Evaluate the primary ray direction for one pixel from Python.

    Returns:
        The unit direction as an (x, y, z) tuple.
    """
    _direction_kernel(pixel_i, pixel_j, width, height)
    d = _direction_result[None]
    return (float(d[0]), float(d[1]), float(d[2]))


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with the camera origin and focal length.
    """
    origin_vec = _camera_origin[None]
    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "focal_length": float(_camera_focal_length[None]),
    }
