"""Interactive preview window using Taichi GGUI.

Renders the demo scene progressively on screen, one sample pass per frame.
A control panel adjusts the light emission and the bounce budget; any
change rebuilds the scene and discards the accumulated samples.

Example:
    >>> from pathtracer.preview.interactive import InteractivePreview, fit_window, ASPECT_4_3
    >>> from pathtracer.scene.demo import DemoSceneParams
    >>>
    >>> width, height = fit_window(ASPECT_4_3, 1920, 1080)
    >>> preview = InteractivePreview(width, height)
    >>> preview.set_params(DemoSceneParams(light_emission=4000.0))
    >>> preview.run_reactive()  # Renders continuously until window closed
"""

from __future__ import annotations

import copy
import logging
import math
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from pathtracer.camera.pinhole import PinholeCamera, setup_camera
from pathtracer.core.progressive import ProgressiveRenderer
from pathtracer.preview.display import process_image_for_display
from pathtracer.scene.demo import DemoSceneParams, create_demo_scene

if TYPE_CHECKING:
    import numpy.typing as npt

    from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Common display aspect ratios (width / height)
ASPECT_4_3 = 1.333333
ASPECT_16_9 = 1.777777
ASPECT_16_10 = 1.6

MAX_BOUNCES = 16
MAX_LIGHT_EMISSION = 20000.0


def fit_window(aspect: float, available_width: int, available_height: int) -> tuple[int, int]:
    """Pick a window size with the given aspect ratio for an available area.

    The width starts at the available width and shrinks by 10% of it per
    step (at least once) until the height fits in 80% of the available
    height.

    Args:
        aspect: Width / height ratio, e.g. ASPECT_4_3.
        available_width: Available width in pixels.
        available_height: Available height in pixels.

    Returns:
        (width, height) in whole pixels.

    Raises:
        ValueError: If any argument is not positive.
    """
    if aspect <= 0 or available_width <= 0 or available_height <= 0:
        raise ValueError(
            f"aspect and available size must be positive, got {aspect}, "
            f"{available_width}x{available_height}"
        )

    width = available_width
    while True:
        width = math.floor(width - available_width * 0.1)
        height = math.floor(width / aspect)
        if height <= available_height * 0.8:
            return width, height


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        focal_length: Camera focal length in pixels.
        display_image: Taichi field storing the display image (RGB float).
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        focal_length: float = 50.0,
        bounces: int = 4,
        title: str = "Path Tracer - Interactive Preview",
    ) -> None:
        """Initialize the preview.

        The window itself is created lazily, on first use, so that a preview
        can be constructed in headless environments.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            focal_length: Camera focal length in pixels.
            bounces: Initial bounce budget.
            title: Window title.
        """
        self.width = width
        self.height = height
        self.focal_length = focal_length
        self._title = title
        self._is_initialized = False

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Taichi fields use (x, y) indexing, so the shape is (width, height)
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

        self._pending_params = DemoSceneParams()
        self._pending_bounces = bounces
        self._current_params: DemoSceneParams | None = None
        self._current_bounces: int | None = None
        self._scene: SceneManager | None = None
        self._renderer: ProgressiveRenderer | None = None

    def _initialize_window(self) -> None:
        if self._is_initialized:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        if self._window is None:
            self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        if self._canvas is None:
            self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: npt.NDArray[np.float32]) -> None:
        """Update the display image from a numpy array.

        Args:
            image: Array of shape (height, width, 3) with values in [0, 1].
                Row j holds pixel row j of the render.

        Raises:
            ValueError: If image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected {expected_shape}"
            )

        # GGUI puts y = 0 at the bottom, the render puts row 0 at the top
        image_transposed = np.ascontiguousarray(
            np.transpose(np.flipud(image), (1, 0, 2))
        )
        self.display_image.from_numpy(image_transposed.astype(np.float32))

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def close(self) -> None:
        """Stop the window loop."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering."""
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        if os.uname().sysname == "Darwin":
            # SSH sessions without X forwarding have no display
            return not (os.environ.get("SSH_CONNECTION") and not display)

        return bool(display or wayland)

    # =========================================================================
    # Reactive Rendering Support
    # =========================================================================

    def set_params(self, params: DemoSceneParams) -> None:
        """Set the scene parameters used from the next frame on."""
        self._pending_params = copy.deepcopy(params)

    def set_bounces(self, bounces: int) -> None:
        """Set the bounce budget used from the next frame on.

        Raises:
            ValueError: If bounces is negative.
        """
        if bounces < 0:
            raise ValueError(f"bounces must be non-negative, got {bounces}")
        self._pending_bounces = bounces

    def _params_changed(self) -> bool:
        return (
            self._current_params is None
            or self._pending_params != self._current_params
            or self._pending_bounces != self._current_bounces
        )

    def _rebuild_scene(self) -> None:
        """Rebuild the scene from the pending parameters and reset accumulation."""
        self._scene = create_demo_scene(self._pending_params, self._scene)
        setup_camera(PinholeCamera(focal_length=self.focal_length), self.width)

        self._ensure_renderer()
        assert self._renderer is not None
        self._renderer.bounces = self._pending_bounces
        self._renderer.reset()

        self._current_params = copy.deepcopy(self._pending_params)
        self._current_bounces = self._pending_bounces
        logger.info(
            "Scene rebuilt: light emission %.1f, %d bounces",
            self._current_params.light_emission,
            self._current_bounces,
        )

    def _ensure_renderer(self) -> None:
        if self._renderer is None:
            self._renderer = ProgressiveRenderer(self.width, self.height, self._pending_bounces)

    def step(self) -> int:
        """Render one sample pass, rebuilding the scene first if needed.

        A pass started before a parameter change only ever lands in the
        buffer that the change then clears, so a superseded render never
        shows up on screen.

        Returns:
            The number of samples per pixel accumulated so far.
        """
        if self._params_changed():
            self._rebuild_scene()

        assert self._scene is not None
        assert self._renderer is not None
        self._scene.upload()
        self._renderer.render(num_samples=1)
        return self._renderer.sample_count

    def run_reactive(self) -> None:
        """Run the reactive rendering loop until the window is closed."""
        self._initialize_window()

        while self.is_running():
            self.step()

            assert self._renderer is not None
            image = process_image_for_display(self._renderer.get_image_numpy())
            self.update_image(image)

            self._draw_gui_panel()
            self.show_frame()

    def get_sample_count(self) -> int:
        """Get the number of samples per pixel rendered so far."""
        if self._renderer is None:
            return 0
        return self._renderer.sample_count

    def get_renderer(self) -> ProgressiveRenderer | None:
        """Get the underlying progressive renderer, if one exists."""
        return self._renderer

    def _draw_gui_panel(self) -> None:
        with self.window.GUI.sub_window("Scene", 0.02, 0.02, 0.3, 0.2) as gui:
            gui.text(f"Samples: {self.get_sample_count()}")
            new_emission = gui.slider_float(
                "Light",
                self._pending_params.light_emission,
                minimum=0.0,
                maximum=MAX_LIGHT_EMISSION,
            )
            new_bounces = gui.slider_int(
                "Bounces", self._pending_bounces, minimum=0, maximum=MAX_BOUNCES
            )
            export_clicked = gui.button("Export PNG")

        if abs(new_emission - self._pending_params.light_emission) > 1e-6:
            self.set_params(
                DemoSceneParams(
                    light_emission=new_emission,
                    red_wall_roughness=self._pending_params.red_wall_roughness,
                    wall_roughness=self._pending_params.wall_roughness,
                    mirror_roughness=self._pending_params.mirror_roughness,
                )
            )
        if new_bounces != self._pending_bounces:
            self.set_bounces(new_bounces)

        if export_clicked:
            self._export_png()

    def _export_png(self) -> None:
        from pathtracer.preview.export import save_png

        filename = f"pathtracer_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png"
        if self._renderer is not None:
            save_png(self._renderer, filename)
            print(f"Exported: {filename} ({self.get_sample_count()} samples)")
