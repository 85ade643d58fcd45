#!/usr/bin/env python3
"""Render the demo scene to a PNG file.

Renders the sphere room (red and green side walls, a bright light sphere
and a mirror sphere) through the pixel sink and saves the resulting RGBA
buffer.

Usage:
    python examples/render_demo.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 250)
    --height HEIGHT         Image height in pixels (default: 250)
    --focal-length PIXELS   Pinhole focal length in pixels (default: 50)
    --fov DEGREES           Horizontal field of view, overrides --focal-length
    --samples SAMPLES       Samples per pixel (default: 10)
    --bounces BOUNCES       Maximum contributing hits per path (default: 4)
    --light EMISSION        Light sphere emission (default: 5550)
    --seed SEED             Random seed (default: 0)
    --quantize MODE         clamp or wrap (default: clamp)
    --output OUTPUT         Output file path (default: demo.png)
    --batch-size SIZE       Samples per progress update (default: 1)
    --quiet                 Suppress progress output

Example:
    python examples/render_demo.py --width 400 --height 300 --samples 100
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from pathtracer.config import RenderSettings, init_taichi


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    defaults = RenderSettings()
    parser = argparse.ArgumentParser(
        description="Render the demo sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width,
                        help=f"Image width in pixels (default: {defaults.width})")
    parser.add_argument("--height", type=int, default=defaults.height,
                        help=f"Image height in pixels (default: {defaults.height})")
    parser.add_argument("--focal-length", type=float, default=defaults.focal_length,
                        help=f"Focal length in pixels (default: {defaults.focal_length:g})")
    parser.add_argument("--fov", type=float, default=None,
                        help="Horizontal field of view in degrees (overrides --focal-length)")
    parser.add_argument("--samples", type=int, default=defaults.samples,
                        help=f"Samples per pixel (default: {defaults.samples})")
    parser.add_argument("--bounces", type=int, default=defaults.bounces,
                        help=f"Maximum contributing hits per path (default: {defaults.bounces})")
    parser.add_argument("--light", type=float, default=5550.0,
                        help="Light sphere emission (default: 5550)")
    parser.add_argument("--seed", type=int, default=defaults.random_seed,
                        help=f"Random seed (default: {defaults.random_seed})")
    parser.add_argument("--quantize", choices=("clamp", "wrap"), default="clamp",
                        help="How out-of-range values become bytes (default: clamp)")
    parser.add_argument("--output", type=str, default="demo.png",
                        help="Output file path (default: demo.png)")
    parser.add_argument("--batch-size", type=int, default=1,
                        help="Samples per progress update (default: 1)")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def render_demo(
    settings: RenderSettings,
    light_emission: float = 5550.0,
    output_path: str = "demo.png",
    quantize: str = "clamp",
    batch_size: int = 1,
    quiet: bool = False,
) -> Path:
    """Render the demo scene and save it as a PNG.

    Args:
        settings: Validated render settings.
        light_emission: Light sphere emission.
        output_path: Output file path.
        quantize: Byte quantization mode for the sink.
        batch_size: Samples rendered between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports: these modules declare Taichi fields
    from pathtracer.camera.pinhole import PinholeCamera, setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.preview.sink import ImageBufferSink
    from pathtracer.scene.demo import DemoSceneParams, create_demo_scene

    if not quiet:
        print(f"Creating demo scene ({settings.width}x{settings.height})...")

    scene = create_demo_scene(DemoSceneParams(light_emission=light_emission))
    setup_camera(
        PinholeCamera(focal_length=settings.focal_length, field_of_view=settings.field_of_view),
        settings.width,
    )
    renderer = ProgressiveRenderer(settings.width, settings.height, settings.bounces)

    if not quiet:
        print(
            f"Rendering {scene.get_sphere_count()} spheres, {settings.samples} samples "
            f"per pixel, {settings.bounces} bounces..."
        )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(settings.samples, batch_size=batch_size, callback=progress_callback)

    if not quiet:
        print()

    sink = ImageBufferSink(settings.width, settings.height, quantize=quantize)
    renderer.emit(sink)

    output_file = Path(output_path)
    sink.save(output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = RenderSettings(
        width=args.width,
        height=args.height,
        focal_length=args.focal_length,
        field_of_view=args.fov,
        samples=args.samples,
        bounces=args.bounces,
        random_seed=args.seed,
    )

    try:
        settings.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    init_taichi(settings)

    try:
        render_demo(
            settings,
            light_emission=args.light,
            output_path=args.output,
            quantize=args.quantize,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
