"""Frame driver: progressive sample accumulation and pixel emission.

The ProgressiveRenderer wraps the integrator's render target and supports:
- Progressive rendering that refines over time
- Batch rendering (multiple samples per pixel in one call)
- Progress callbacks, or a generator that yields between batches
- Handing the finished frame to a pixel sink

``render_frame`` is the one-call entry point: it renders a whole frame for
a scene and settings and emits every pixel to a sink.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.config import RenderSettings
    >>> from pathtracer.core.progressive import render_frame
    >>> from pathtracer.preview.sink import ImageBufferSink
    >>> from pathtracer.scene.demo import create_demo_scene
    >>>
    >>> settings = RenderSettings(width=64, height=64, samples=4)
    >>> sink = ImageBufferSink(64, 64)
    >>> render_frame(create_demo_scene(), settings, sink)
    ProgressiveRenderer(width=64, height=64, bounces=4, samples=4)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from pathtracer.camera.pinhole import PinholeCamera, setup_camera
from pathtracer.config import RenderSettings
from pathtracer.core.integrator import (
    clear_render_target,
    get_image_numpy,
    get_pixel,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.core.values import Colour
from pathtracer.scene.manager import SceneManager

if TYPE_CHECKING:
    from pathtracer.preview.sink import PixelSink

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps the image size and bounce budget and delegates to the
    integrator's render target, which is a set of global Taichi fields. Only
    one renderer is meaningful at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        bounces: Maximum contributing hits per path.
    """

    def __init__(self, width: int, height: int, bounces: int = 4) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            bounces: Maximum contributing hits per path (>= 0).

        Raises:
            ValueError: If dimensions are invalid or bounces is negative.
        """
        if bounces < 0:
            raise ValueError(f"bounces must be non-negative, got {bounces}")
        self._width = width
        self._height = height
        self.bounces = bounces
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples, keeping the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples with an optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback called after each batch with
                (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples, yielding progress after each batch.

        Closing the generator early stops the render; samples from finished
        batches stay in the buffer.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(max(batch_size, 1), remaining)
            render_image(batch, self.bounces)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_pixel(self, pixel_i: int, pixel_j: int) -> Colour:
        """Get the averaged colour of pixel (i, j).

        Raises:
            IndexError: If the pixel lies outside the image.
        """
        if not (0 <= pixel_i < self._width and 0 <= pixel_j < self._height):
            raise IndexError(f"Pixel ({pixel_i}, {pixel_j}) outside {self._width}x{self._height}")
        return get_pixel(pixel_i, pixel_j)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged radiance as an array of shape (height, width, 3)."""
        return get_image_numpy()

    def emit(self, sink: PixelSink) -> None:
        """Hand every pixel's averaged colour to ``sink``.

        Pixels are emitted once each, column by column: ``i`` in the outer
        loop and ``j`` in the inner loop.

        Args:
            sink: Callable receiving ``((i, j), colour)``.

        Raises:
            RuntimeError: If no samples have been rendered yet.
        """
        if self.sample_count == 0:
            raise RuntimeError("No samples rendered yet. Call render() before emit().")

        image = get_image_numpy()
        for i in range(self._width):
            for j in range(self._height):
                r, g, b = image[j, i]
                sink((i, j), Colour(float(r), float(g), float(b)))

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"bounces={self.bounces}, samples={self.sample_count})"
        )


def render_frame(
    scene: SceneManager,
    settings: RenderSettings,
    sink: PixelSink,
    camera: PinholeCamera | None = None,
) -> ProgressiveRenderer:
    """Render one frame of ``scene`` and emit it to ``sink``.

    The scene is uploaded into the Taichi fields first if another scene
    replaced it; it is only read while rendering.

    Args:
        scene: The scene to render.
        settings: Image size, sample count and bounce budget.
        sink: Receives every pixel exactly once.
        camera: Camera to use. Defaults to a pinhole at the origin with the
            settings' focal length or field of view.

    Returns:
        The renderer, holding the accumulated image.

    Raises:
        ValueError: If the settings are invalid.
    """
    settings.validate()
    scene.upload()

    if camera is None:
        camera = PinholeCamera(
            focal_length=settings.focal_length,
            field_of_view=settings.field_of_view,
        )
    setup_camera(camera, settings.width)

    renderer = ProgressiveRenderer(settings.width, settings.height, settings.bounces)

    start = time.perf_counter()
    renderer.render(settings.samples)
    elapsed = time.perf_counter() - start

    renderer.emit(sink)
    logger.info(
        "Rendered %dx%d frame of %d spheres, %d samples in %.2fs",
        settings.width,
        settings.height,
        scene.get_sphere_count(),
        settings.samples,
        elapsed,
    )
    return renderer
