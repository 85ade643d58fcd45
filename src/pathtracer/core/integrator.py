"""Path tracing integrator.

Each sample follows one path from the camera. At every hit the surface's
emission is added and the path continues along the specular reflection about
the (roughness-perturbed) normal, attenuated by the surface reflectivity:

    trace(o, d, budget) = 0                                   on a miss
                        = 0                                   if budget == 0
                        = E(hit) + R(hit) * trace(p, reflect(d, n), budget - 1)

where the recursive call sees the full scene minus the sphere just hit.
Taichi functions cannot recurse, so ``trace_path`` evaluates the same
recurrence as a loop carrying the product of reflectivities (throughput).

A pixel's colour is the mean of many independent samples, accumulated with
a running average in the render target.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import trace
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, 10), 2.0, emission=(1, 2, 3))
    0
    >>> trace((0, 0, 0), (0, 0, 1), bounce_budget=1, scene=scene)
    Colour(r=1.0, g=2.0, b=3.0)
"""

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.pinhole import get_ray
from pathtracer.config import MAX_IMAGE_SIZE
from pathtracer.core.ray import multiply, reflect
from pathtracer.core.values import Colour, Vector3
from pathtracer.scene.intersection import (
    NO_EXCLUSION,
    intersect_scene,
    sphere_emissions,
    sphere_reflectivities,
)

if TYPE_CHECKING:
    from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(origin: vec3, direction: vec3, bounce_budget: ti.i32) -> vec3:
    """Trace a single path and return its radiance estimate.

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        bounce_budget: Maximum number of surface hits that contribute.
            0 always yields black.

    Returns:
        The estimated radiance (RGB) carried back along the ray.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    excluded = NO_EXCLUSION

    # Active flag for path continuation
    active = 1

    for _ in range(bounce_budget):
        if active == 1:
            hit_record = intersect_scene(origin, direction, excluded)

            if hit_record.hit == 0:
                active = 0
            else:
                index = hit_record.sphere_index
                radiance += multiply(throughput, sphere_emissions[index])
                throughput = multiply(throughput, sphere_reflectivities[index])

                direction = reflect(direction, hit_record.normal)
                origin = hit_record.point
                excluded = index

    return radiance


# =============================================================================
# Python-side Tracing
# =============================================================================

# Maximum number of independent samples per trace_samples() call
MAX_TRACE_SAMPLES = 4096

_trace_results = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRACE_SAMPLES)


@ti.kernel
def _trace_kernel(origin: vec3, direction: vec3, bounce_budget: ti.i32, count: ti.i32):
    for s in range(count):
        _trace_results[s] = trace_path(origin, direction, bounce_budget)


def trace_samples(
    origin: Vector3 | tuple[float, float, float],
    direction: Vector3 | tuple[float, float, float],
    bounce_budget: int,
    count: int,
    scene: "SceneManager | None" = None,
) -> list[Colour]:
    """Evaluate ``count`` independent samples of one ray in parallel.

    Args:
        origin: Ray origin.
        direction: Ray direction. Must be unit length.
        bounce_budget: Maximum number of contributing hits (>= 0).
        count: Number of samples, 1 to MAX_TRACE_SAMPLES.
        scene: Scene to trace against. It is uploaded first if the fields
            hold another scene. Defaults to whatever the fields hold.

    Returns:
        One Colour per sample.

    Raises:
        ValueError: If count is out of range.
    """
    if not 1 <= count <= MAX_TRACE_SAMPLES:
        raise ValueError(f"Sample count must be in [1, {MAX_TRACE_SAMPLES}], got {count}")

    if scene is not None:
        scene.upload()

    o = Vector3.of(origin)
    d = Vector3.of(direction)
    _trace_kernel(vec3(o.x, o.y, o.z), vec3(d.x, d.y, d.z), bounce_budget, count)

    results = _trace_results.to_numpy()[:count]
    return [Colour(float(c[0]), float(c[1]), float(c[2])) for c in results]


def trace(
    origin: Vector3 | tuple[float, float, float],
    direction: Vector3 | tuple[float, float, float],
    bounce_budget: int,
    scene: "SceneManager | None" = None,
) -> Colour:
    """Evaluate one stochastic sample of the radiance along a ray.

    With a fixed Taichi random seed and the same scene, repeated program
    runs give the same colour.

    Args:
        origin: Ray origin.
        direction: Ray direction. Must be unit length.
        bounce_budget: Maximum number of contributing hits (>= 0).
        scene: Scene to trace against. Defaults to whatever the fields hold.

    Returns:
        The radiance estimate.
    """
    return trace_samples(origin, direction, bounce_budget, 1, scene)[0]


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = MAX_IMAGE_SIZE
MAX_IMAGE_HEIGHT = MAX_IMAGE_SIZE

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, bounce_budget: ti.i32):
    """Trace one sample through every pixel and fold it into the running mean."""
    for i, j in ti.ndrange(width, height):
        ray = get_ray(i, j, width, height)
        color = trace_path(ray.origin, ray.direction, bounce_budget)

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(num_samples: int = 1, bounce_budget: int = 4) -> None:
    """Add ``num_samples`` samples to every pixel.

    Can be called repeatedly; samples keep accumulating until the render
    target is cleared.

    Args:
        num_samples: Number of samples to add per pixel.
        bounce_budget: Maximum contributing hits per path.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, bounce_budget)

    logger.debug("Rendered %d sample pass(es) at %dx%d", num_samples, width, height)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Every pass covers every pixel, so pixel (0, 0) is representative.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the accumulated image as a NumPy array.

    Values are the raw per-pixel means: not clamped, not tone mapped.
    Element ``[j, i]`` holds pixel (i, j).

    Returns:
        NumPy array of shape (height, width, 3), dtype float32.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2))).astype(np.float32)


def get_pixel(pixel_i: int, pixel_j: int) -> Colour:
    """Get the accumulated colour of one pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    c = _color_buffer[pixel_i, pixel_j]
    return Colour(float(c[0]), float(c[1]), float(c[2]))
