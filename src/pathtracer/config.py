"""Render settings and Taichi initialization.

This module declares no Taichi fields, so it can be imported before
``ti.init`` is called. Scripts build a ``RenderSettings``, call
``init_taichi`` and only then import the rendering modules.

Example:
    >>> from pathtracer.config import RenderSettings, init_taichi
    >>> settings = RenderSettings(width=320, height=240, samples=50)
    >>> settings.validate()
    >>> init_taichi(settings)
"""

import logging
import math
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

# Largest width or height the render target can hold
MAX_IMAGE_SIZE = 2048


@dataclass
class RenderSettings:
    """Parameters for rendering one frame.

    Attributes:
        width: Raster width in pixels.
        height: Raster height in pixels.
        focal_length: Pinhole distance to the image plane, in pixels.
        field_of_view: Horizontal field of view in degrees. Overrides
            focal_length when set.
        samples: Samples averaged per pixel.
        bounces: Maximum contributing hits per path.
        random_seed: Seed for Taichi's random number generator.
    """

    width: int = 250
    height: int = 250
    focal_length: float = 50.0
    field_of_view: float | None = None
    samples: int = 10
    bounces: int = 4
    random_seed: int = 0

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_SIZE or self.height > MAX_IMAGE_SIZE:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_SIZE}x{MAX_IMAGE_SIZE})"
            )
        if self.samples < 1:
            raise ValueError(f"samples must be at least 1, got {self.samples}")
        if self.bounces < 0:
            raise ValueError(f"bounces must be non-negative, got {self.bounces}")
        if not (self.focal_length > 0.0 and math.isfinite(self.focal_length)):
            raise ValueError(f"focal_length must be positive, got {self.focal_length}")
        if self.field_of_view is not None and not 0.0 < self.field_of_view < 180.0:
            raise ValueError(f"field_of_view must be in (0, 180), got {self.field_of_view}")


def init_taichi(settings: RenderSettings | None = None, arch=None) -> None:
    """Initialize Taichi with the settings' random seed.

    Args:
        settings: Settings providing the random seed. Defaults are used
            when omitted.
        arch: Taichi backend. When omitted, a GPU backend is tried first
            and the CPU backend is used as a fallback.
    """
    seed = (settings or RenderSettings()).random_seed

    if arch is not None:
        ti.init(arch=arch, random_seed=seed)
        return

    try:
        ti.init(arch=ti.gpu, random_seed=seed)
        logger.info("Using GPU backend")
    except Exception:
        logger.info("GPU not available, using CPU backend")
        ti.init(arch=ti.cpu, random_seed=seed)
