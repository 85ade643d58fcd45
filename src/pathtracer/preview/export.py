"""PNG export for rendered images.

Example:
    >>> from pathtracer.preview.export import save_png
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(250, 250)
    >>> renderer.render(10)
    >>> save_png(renderer, "output.png", tone_map="reinhard")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.display import (
    DEFAULT_WHITE_POINT,
    ToneMapMethod,
    process_image_for_display,
)

if TYPE_CHECKING:
    from pathtracer.core.progressive import ProgressiveRenderer


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
    white_point: float = DEFAULT_WHITE_POINT,
) -> npt.NDArray[np.uint8]:
    """Convert raw radiance to an 8-bit RGB array.

    With the defaults this clamps to [0, 255] and truncates, matching
    ``ImageBufferSink`` in clamp mode.

    Args:
        image: Raw radiance array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.
        white_point: Radiance displayed as full intensity.

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(
        image,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
        white_point=white_point,
    )
    return (processed * 255).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
    white_point: float = DEFAULT_WHITE_POINT,
) -> None:
    """Save a raw radiance array as an 8-bit PNG file."""
    image_uint8 = image_to_uint8(
        image,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
        white_point=white_point,
    )
    PILImage.fromarray(image_uint8).save(filepath, format="PNG")


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
    white_point: float = DEFAULT_WHITE_POINT,
) -> None:
    """Save the renderer's current image as an 8-bit PNG file.

    Args:
        renderer: The ProgressiveRenderer holding the image.
        filepath: Output file path.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.
        white_point: Radiance displayed as full intensity.
    """
    save_png_from_array(
        renderer.get_image_numpy(),
        filepath,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
        white_point=white_point,
    )


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
