"""Preview module for output and visualization.

Components:
    sink: Pixel sink protocol, the RGBA ImageBufferSink and quantization
    display: Matplotlib-based preview display and tone mapping
    export: PNG export utilities
    interactive: Taichi GGUI-based interactive preview window

Example:
    >>> from pathtracer.preview import ImageBufferSink, save_png, show_preview
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(250, 250)
    >>> renderer.render(10)
    >>> sink = ImageBufferSink(250, 250)
    >>> renderer.emit(sink)
    >>> sink.save("output.png")
"""

from pathtracer.preview.display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_comparison,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from pathtracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
)
from pathtracer.preview.interactive import (
    ASPECT_4_3,
    ASPECT_16_9,
    ASPECT_16_10,
    InteractivePreview,
    fit_window,
)
from pathtracer.preview.sink import (
    ImageBufferSink,
    PixelSink,
    QuantizeMethod,
    quantize_channel,
    quantize_image,
    rgb_to_hex,
)

__all__ = [
    # Pixel sinks
    "PixelSink",
    "ImageBufferSink",
    "QuantizeMethod",
    "quantize_channel",
    "quantize_image",
    "rgb_to_hex",
    # Interactive preview
    "InteractivePreview",
    "fit_window",
    "ASPECT_4_3",
    "ASPECT_16_9",
    "ASPECT_16_10",
    # Display functions
    "show_preview",
    "show_comparison",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
