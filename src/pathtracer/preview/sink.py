"""Pixel sinks: where a finished frame's pixels go.

The frame driver hands each pixel to a sink as ``sink((i, j), colour)``.
Colours arrive as raw radiance on an 8-bit scale (255 is full intensity)
and may lie outside [0, 255] or be non-finite; quantization to bytes is the
sink's job.

``ImageBufferSink`` writes into an RGBA byte buffer laid out like a browser
canvas ``ImageData`` (rows of pixels, four bytes each, alpha always 255).
"""

import math
from pathlib import Path
from typing import Literal, Protocol

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.core.values import Colour

# How out-of-range channel values become bytes
QuantizeMethod = Literal["clamp", "wrap"]


class PixelSink(Protocol):
    """Receives one pixel's averaged colour."""

    def __call__(self, pixel: tuple[int, int], colour: Colour) -> None: ...


def quantize_channel(value: float, method: QuantizeMethod = "clamp") -> int:
    """Convert one radiance channel to a byte.

    Args:
        value: Channel value on the 0-255 scale.
        method: ``"clamp"`` clips to [0, 255] (NaN becomes 0) and truncates
            toward zero. ``"wrap"`` truncates toward zero and keeps the low
            eight bits, so 256 becomes 0 and -1 becomes 255; non-finite
            values become 0.

    Returns:
        An integer in [0, 255].

    Raises:
        ValueError: If the method is unknown.
    """
    if method == "clamp":
        if math.isnan(value):
            return 0
        return int(min(max(value, 0.0), 255.0))
    if method == "wrap":
        if not math.isfinite(value):
            return 0
        return int(value) % 256
    raise ValueError(f"Unknown quantize method: {method}")


def quantize_image(
    image: npt.NDArray[np.floating],
    method: QuantizeMethod = "clamp",
) -> npt.NDArray[np.uint8]:
    """Array version of ``quantize_channel``.

    Args:
        image: Radiance values on the 0-255 scale, any shape.
        method: ``"clamp"`` or ``"wrap"``.

    Returns:
        Array of the same shape with dtype uint8.

    Raises:
        ValueError: If the method is unknown.
    """
    values = np.asarray(image, dtype=np.float64)
    if method == "clamp":
        values = np.nan_to_num(values, nan=0.0, posinf=255.0, neginf=0.0)
        return np.clip(values, 0.0, 255.0).astype(np.uint8)
    if method == "wrap":
        values = np.where(np.isfinite(values), values, 0.0)
        return np.mod(np.trunc(values), 256.0).astype(np.uint8)
    raise ValueError(f"Unknown quantize method: {method}")


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format an 8-bit colour as ``#rrggbb``.

    Raises:
        ValueError: If a channel is outside [0, 255].
    """
    for channel in (r, g, b):
        if not 0 <= channel <= 255:
            raise ValueError(f"Colour channels must be in [0, 255], got {(r, g, b)}")
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


class ImageBufferSink:
    """Collects emitted pixels into an RGBA uint8 buffer.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        quantize: Quantization method for out-of-range values.
        buffer: Array of shape (height, width, 4). Pixel (i, j) lives at
            ``buffer[j, i]``.

    Example:
        >>> sink = ImageBufferSink(2, 1)
        >>> sink((1, 0), Colour(300.0, 128.5, -4.0))
        >>> sink.buffer[0, 1].tolist()
        [255, 128, 0, 255]
    """

    def __init__(self, width: int, height: int, quantize: QuantizeMethod = "clamp") -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if quantize not in ("clamp", "wrap"):
            raise ValueError(f"Unknown quantize method: {quantize}")

        self.width = width
        self.height = height
        self.quantize: QuantizeMethod = quantize
        self.buffer: npt.NDArray[np.uint8] = np.zeros((height, width, 4), dtype=np.uint8)
        self.buffer[:, :, 3] = 255
        self.pixels_written = 0

    def __call__(self, pixel: tuple[int, int], colour: Colour) -> None:
        i, j = pixel
        if not (0 <= i < self.width and 0 <= j < self.height):
            raise IndexError(f"Pixel ({i}, {j}) outside {self.width}x{self.height}")

        self.buffer[j, i, 0] = quantize_channel(colour.r, self.quantize)
        self.buffer[j, i, 1] = quantize_channel(colour.g, self.quantize)
        self.buffer[j, i, 2] = quantize_channel(colour.b, self.quantize)
        self.pixels_written += 1

    def get_hex(self, i: int, j: int) -> str:
        """Get pixel (i, j) as a ``#rrggbb`` string."""
        r, g, b = (int(c) for c in self.buffer[j, i, :3])
        return rgb_to_hex(r, g, b)

    def to_image(self) -> PILImage.Image:
        """Get the buffer as a Pillow RGBA image."""
        return PILImage.fromarray(self.buffer.copy())

    def save(self, filepath: str | Path) -> None:
        """Save the buffer as a PNG file."""
        self.to_image().save(filepath, format="PNG")
